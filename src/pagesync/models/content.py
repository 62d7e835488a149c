"""Content data model shared by extraction and reconciliation."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
    from bs4 import Tag


class ContentType(str, Enum):
    """Kinds of content units the extractor can emit."""

    HEADING = "heading"
    PARAGRAPH = "paragraph"
    LIST = "list"
    BLOCKQUOTE = "blockquote"
    CODE = "code"
    TABLE = "table"
    GENERIC_BLOCK = "genericBlock"
    LINK = "link"
    IMAGE = "image"

    @classmethod
    def from_value(cls, value: str) -> Optional[ContentType]:
        """Look up a content type by value, returning None if unknown."""
        try:
            return cls(value)
        except ValueError:
            return None


class RegionType(str, Enum):
    """Semantic class of a candidate main-content region."""

    MAIN = "main"
    ARTICLE = "article"
    SECTION = "section"
    GENERIC_BLOCK = "genericBlock"


@dataclass(frozen=True)
class ContentUnit:
    """
    One extracted, typed piece of page content.

    Units are immutable: edits only ever happen on their serialized text.

    Attributes:
        id: Content-addressed identifier (``content-<hash8>-<counter>``)
        unit_type: Kind of content
        text: Whitespace-normalized text (code keeps its line structure)
        selector: Primary CSS selector for the source element
        source_url: Page the unit was extracted from
        raw_markup: Original inner HTML, used by stylistic conversion
        fallback_locator: XPath used when the selector is not unique
        heading_level: 1-6 for headings, None otherwise
        items: List item texts (lists only)
        rows: Cell texts per row (tables only)
        attributes: href/src/alt for link and image units
        extracted_at: Extraction timestamp (UTC)
    """

    id: str
    unit_type: ContentType
    text: str
    selector: str
    source_url: str
    raw_markup: Optional[str] = None
    fallback_locator: Optional[str] = None
    heading_level: Optional[int] = None
    items: tuple[str, ...] = ()
    rows: tuple[tuple[str, ...], ...] = ()
    attributes: tuple[tuple[str, str], ...] = ()
    extracted_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def attribute(self, name: str) -> Optional[str]:
        """Return a captured attribute value by name."""
        for key, value in self.attributes:
            if key == name:
                return value
        return None


@dataclass
class ContentRegion:
    """A candidate main-content subtree chosen by the scorer."""

    element: Tag
    score: float
    region_type: RegionType
    matched_selector: str


@dataclass(frozen=True)
class SelectorCandidate:
    """Result of one selector strategy."""

    selector: str
    specificity: int
    reliability: float
    xpath: Optional[str] = None
    strategy: str = ""


@dataclass
class SyncBlock:
    """
    A provenance-tagged block parsed back out of an edited document.

    Only lives for the duration of one reconciliation.
    """

    selector: str
    raw_text_block: str
    detected_type: ContentType
    fallback_locator: Optional[str] = None
    content_id: Optional[str] = None
    line_number: int = 0


@dataclass
class HierarchyNode:
    """
    Node of the heading-based outline of a page.

    ``unit`` is None for the synthetic root that collects content appearing
    before the first heading.
    """

    unit: Optional[ContentUnit]
    level: int
    children: list[HierarchyNode] = field(default_factory=list)

    @property
    def is_synthetic(self) -> bool:
        return self.unit is None

    def walk(self):
        """Yield this node and all descendants depth-first."""
        yield self
        for child in self.children:
            yield from child.walk()


@dataclass
class ParsedPage:
    """Everything extracted from a single page."""

    url: str
    title: str
    units: list[ContentUnit]
    hierarchy: list[HierarchyNode]
    page_id: str
    regions: list[ContentRegion] = field(default_factory=list)
    extracted_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
