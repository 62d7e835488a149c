"""Event, statistics and result types for extraction and sync runs."""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import Optional


class EventType(str, Enum):
    """Types of events emitted during an extraction run."""

    # Lifecycle events
    STARTED = "started"
    COMPLETED = "completed"
    FAILED = "failed"
    CANCELLED = "cancelled"

    # Per-page events
    PAGE_PROGRESS = "page_progress"
    PAGE_RENDERED = "page_rendered"
    PAGE_PARSED = "page_parsed"
    PAGE_SERIALIZED = "page_serialized"
    PAGE_SAVED = "page_saved"
    PAGE_SKIPPED = "page_skipped"
    PAGE_FAILED = "page_failed"

    # Post-processing
    README_GENERATED = "readme_generated"


class ErrorKind(str, Enum):
    """Taxonomy of recoverable page-level failures."""

    RENDER = "render"
    NO_CONTENT = "no-content"
    CONTENT_PARSE = "content-parse"
    FILE_WRITE = "file-write"


@dataclass
class ExtractEvent:
    """
    Event emitted during extraction.

    Example:
        async for event in extractor.run():
            if event.type == EventType.PAGE_PROGRESS:
                print(f"Progress: {event.current}/{event.total}")
            elif event.type == EventType.PAGE_FAILED:
                print(f"Error: {event.url} - {event.error}")
    """

    type: EventType

    # Timestamp (always UTC)
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    url: Optional[str] = None
    message: Optional[str] = None
    error: Optional[str] = None

    current: Optional[int] = None
    total: Optional[int] = None

    output_path: Optional[Path] = None
    unit_count: Optional[int] = None

    @property
    def is_error(self) -> bool:
        """Check if this is an error event."""
        return self.type in (EventType.FAILED, EventType.PAGE_FAILED)


@dataclass
class ExtractionError:
    """A page that failed during a multi-page run."""

    kind: ErrorKind
    message: str
    url: Optional[str] = None
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


@dataclass
class ExtractStats:
    """Cumulative statistics for an extraction run."""

    pages_total: int = 0
    pages_extracted: int = 0
    pages_failed: int = 0
    pages_skipped: int = 0
    units_extracted: int = 0
    files_saved: int = 0
    duration_seconds: float = 0.0

    @property
    def success_rate(self) -> float:
        """Calculate success rate as a percentage."""
        total = self.pages_extracted + self.pages_failed
        if total == 0:
            return 0.0
        return (self.pages_extracted / total) * 100

    def to_dict(self) -> dict:
        """Convert stats to dictionary for serialization."""
        return {
            "pages_total": self.pages_total,
            "pages_extracted": self.pages_extracted,
            "pages_failed": self.pages_failed,
            "pages_skipped": self.pages_skipped,
            "units_extracted": self.units_extracted,
            "files_saved": self.files_saved,
            "duration_seconds": round(self.duration_seconds, 2),
            "success_rate": round(self.success_rate, 1),
        }


@dataclass
class SavedPage:
    """A page whose document was written (or would be written, in dry-run)."""

    url: str
    title: str
    output_path: Path
    unit_count: int


@dataclass
class ExtractionResult:
    """Structured outcome of an extraction run; partial success is allowed."""

    extraction_id: str
    pages: list[SavedPage] = field(default_factory=list)
    errors: list[ExtractionError] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    content_ids: list[str] = field(default_factory=list)

    @property
    def success(self) -> bool:
        return not self.errors


@dataclass
class SyncChange:
    """One element whose text was (or would be) patched."""

    file: str
    selector: str
    old_text: str
    new_text: str


@dataclass
class SyncWarning:
    """A block that was skipped during reconciliation."""

    file: str
    selector: str
    message: str
    line_number: int = 0


@dataclass
class SyncResult:
    """Aggregate result of a sync-back run."""

    files_processed: int = 0
    files_updated: int = 0
    files_with_errors: int = 0
    changes: list[SyncChange] = field(default_factory=list)
    warnings: list[SyncWarning] = field(default_factory=list)
    file_errors: dict[str, str] = field(default_factory=dict)
    backup_path: Optional[Path] = None
    dry_run: bool = False

    @property
    def success(self) -> bool:
        return self.files_with_errors == 0

    def to_dict(self) -> dict:
        """Convert result counters to a dictionary."""
        return {
            "files_processed": self.files_processed,
            "files_updated": self.files_updated,
            "files_with_errors": self.files_with_errors,
            "changes": len(self.changes),
            "warnings": len(self.warnings),
            "dry_run": self.dry_run,
        }
