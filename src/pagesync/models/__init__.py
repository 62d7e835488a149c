"""Pagesync configuration, content and event models."""

from .config import (
    ContentSelectionConfig,
    OutputConfig,
    PagesyncConfig,
    RenderConfig,
    ScoringConfig,
    SelectorConfig,
    SyncConfig,
)
from .content import (
    ContentRegion,
    ContentType,
    ContentUnit,
    HierarchyNode,
    ParsedPage,
    RegionType,
    SelectorCandidate,
    SyncBlock,
)
from .events import (
    ErrorKind,
    EventType,
    ExtractEvent,
    ExtractionError,
    ExtractionResult,
    ExtractStats,
    SavedPage,
    SyncChange,
    SyncResult,
    SyncWarning,
)

__all__ = [
    # Config
    "ContentSelectionConfig",
    "OutputConfig",
    "PagesyncConfig",
    "RenderConfig",
    "ScoringConfig",
    "SelectorConfig",
    "SyncConfig",
    # Content
    "ContentRegion",
    "ContentType",
    "ContentUnit",
    "HierarchyNode",
    "ParsedPage",
    "RegionType",
    "SelectorCandidate",
    "SyncBlock",
    # Events
    "ErrorKind",
    "EventType",
    "ExtractEvent",
    "ExtractionError",
    "ExtractionResult",
    "ExtractStats",
    "SavedPage",
    "SyncChange",
    "SyncResult",
    "SyncWarning",
]
