"""HTML parsing: region scoring and ordered content extraction."""

from .extractor import OrderedContentExtractor, build_hierarchy
from .regions import ContentRegionScorer
from .text import element_text, normalize_text, parse_html

__all__ = [
    "ContentRegionScorer",
    "OrderedContentExtractor",
    "build_hierarchy",
    "element_text",
    "normalize_text",
    "parse_html",
]
