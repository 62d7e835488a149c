"""
pagesync - Extract website content to editable markdown and sync edits back.

Usage:
    from pagesync import Extractor, PagesyncConfig, SyncBack, SyncConfig

    config = PagesyncConfig(site_url="https://example.com")

    async with Extractor(config) as extractor:
        async for event in extractor.run():
            print(event)

    # ...edit the markdown files, then:
    result = await SyncBack(SyncConfig(markdown_dir=Path("content"), html_dir=Path("site"))).run()
"""

__version__ = "1.0.0"

from .conversion import HtmlToMarkdown, RoundTripSerializer
from .core.extractor import Extractor, extract_blocking
from .exceptions import (
    ConfigError,
    InvalidIdError,
    NoContentError,
    PagesyncError,
    RenderError,
    SelectorResolutionError,
)
from .metadata import IdGenerator, SelectorBuilder
from .models.config import (
    ContentSelectionConfig,
    OutputConfig,
    PagesyncConfig,
    RenderConfig,
    ScoringConfig,
    SelectorConfig,
    SyncConfig,
)
from .models.content import ContentType, ContentUnit, ParsedPage, SyncBlock
from .models.events import (
    EventType,
    ExtractEvent,
    ExtractionResult,
    ExtractStats,
    SyncChange,
    SyncResult,
    SyncWarning,
)
from .parsing import ContentRegionScorer, OrderedContentExtractor
from .sync import Reconciler, SyncBack, parse_sync_blocks

__all__ = [
    "__version__",
    # Core
    "Extractor",
    "extract_blocking",
    "SyncBack",
    # Config
    "PagesyncConfig",
    "ContentSelectionConfig",
    "ScoringConfig",
    "SelectorConfig",
    "RenderConfig",
    "OutputConfig",
    "SyncConfig",
    # Components
    "ContentRegionScorer",
    "OrderedContentExtractor",
    "SelectorBuilder",
    "IdGenerator",
    "RoundTripSerializer",
    "HtmlToMarkdown",
    "Reconciler",
    "parse_sync_blocks",
    # Models
    "ContentType",
    "ContentUnit",
    "ParsedPage",
    "SyncBlock",
    # Events
    "EventType",
    "ExtractEvent",
    "ExtractStats",
    "ExtractionResult",
    "SyncChange",
    "SyncResult",
    "SyncWarning",
    # Errors
    "PagesyncError",
    "ConfigError",
    "NoContentError",
    "RenderError",
    "InvalidIdError",
    "SelectorResolutionError",
]
