"""Content conversion for pagesync (round-trip and styled Markdown)."""

from .markdown import HtmlToMarkdown, strip_tags
from .protocols import MarkdownConverter
from .serializer import SELECTOR_MARKER, RoundTripSerializer, parse_unit_meta

__all__ = [
    # Protocols
    "MarkdownConverter",
    # Implementations
    "HtmlToMarkdown",
    "RoundTripSerializer",
    # Helpers
    "SELECTOR_MARKER",
    "parse_unit_meta",
    "strip_tags",
]
