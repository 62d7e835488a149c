"""Document-order extraction of typed content units."""

import logging
from typing import Optional, Union

from bs4 import BeautifulSoup, Tag

from ..exceptions import NoContentError
from ..metadata.ids import IdGenerator
from ..metadata.selectors import SelectorBuilder
from ..models.config import ContentSelectionConfig, ScoringConfig, SelectorConfig
from ..models.content import ContentType, ContentUnit, HierarchyNode, ParsedPage
from .regions import HEADING_TAGS, ContentRegionScorer
from .text import (
    code_text,
    element_text,
    flatten_items,
    flatten_rows,
    list_items,
    parse_html,
    strip_noise,
    table_rows,
)

logger = logging.getLogger(__name__)

# Tags that always become a unit of their own
BLOCK_TYPES = {
    **{tag: ContentType.HEADING for tag in HEADING_TAGS},
    "p": ContentType.PARAGRAPH,
    "ul": ContentType.LIST,
    "ol": ContentType.LIST,
    "blockquote": ContentType.BLOCKQUOTE,
    "pre": ContentType.CODE,
    "code": ContentType.CODE,
    "table": ContentType.TABLE,
}

GENERIC_CONTAINERS = ("div", "section")


class OrderedContentExtractor:
    """
    Walks content regions in document order and emits typed content units.

    Every unit carries a selector built against the element it came from,
    an XPath fallback, and a content ID from the run's ``IdGenerator``.
    Pass the same generator to every page of one run so IDs stay unique
    across the run.

    Example:
        ids = IdGenerator()
        extractor = OrderedContentExtractor(ids=ids)
        page = extractor.extract(html, "https://example.com/about")
        for unit in page.units:
            print(unit.unit_type, unit.selector, unit.text)
    """

    def __init__(
        self,
        selection: Optional[ContentSelectionConfig] = None,
        scoring: Optional[ScoringConfig] = None,
        selectors: Optional[SelectorConfig] = None,
        ids: Optional[IdGenerator] = None,
        scorer: Optional[ContentRegionScorer] = None,
        selector_builder: Optional[SelectorBuilder] = None,
    ):
        """
        Initialize the extractor.

        Args:
            selection: Region/exclusion selectors and optional unit types
            scoring: Region scoring weights (generic block threshold included)
            selectors: Selector builder settings
            ids: Run-scoped ID generator (a fresh one if omitted)
            scorer: Region scorer (built from selection/scoring if omitted)
            selector_builder: Selector builder (built from selectors if omitted)
        """
        self._selection = selection or ContentSelectionConfig()
        self._scoring = scoring or ScoringConfig()
        self._scorer = scorer or ContentRegionScorer(self._selection, self._scoring)
        self._selectors = selector_builder or SelectorBuilder(selectors)
        self.ids = ids or IdGenerator()

    def extract(self, html: Union[str, bytes, BeautifulSoup], url: str) -> ParsedPage:
        """
        Extract all content units of a page.

        Args:
            html: Rendered HTML (or an already parsed document)
            url: Source URL recorded on every unit

        Returns:
            ParsedPage with units in document order and the heading outline

        Raises:
            NoContentError: If no region yields a single unit
        """
        soup = html if isinstance(html, BeautifulSoup) else parse_html(html)
        strip_noise(soup)

        regions = self._scorer.find_regions(soup)
        units: list[ContentUnit] = []
        for region in regions:
            logger.debug(f"Extracting region {region.matched_selector} (score {region.score:.0f}) from {url}")
            units.extend(self.extract_region(region.element, url, soup))

        if not units:
            raise NoContentError(url)

        return ParsedPage(
            url=url,
            title=self._page_title(soup, url),
            units=units,
            hierarchy=build_hierarchy(units),
            page_id=self.ids.generate_page_id(url),
            regions=regions,
        )

    def extract_region(self, root: Tag, url: str, document: Optional[Tag] = None) -> list[ContentUnit]:
        """Extract units from one region root, depth-first in document order."""
        units: list[ContentUnit] = []
        self._walk(root, url, document if document is not None else root, units)
        return units

    def _walk(self, node: Tag, url: str, document: Tag, units: list[ContentUnit]) -> None:
        for child in node.children:
            if not isinstance(child, Tag):
                continue
            if self._skip(child):
                continue

            unit_type = self._classify(child)
            if unit_type is None:
                self._walk(child, url, document, units)
                continue

            unit = self._build_unit(child, unit_type, url, document)
            if unit is not None:
                units.append(unit)

    def _skip(self, element: Tag) -> bool:
        if self._scorer.should_exclude(element):
            return True
        if self._selection.include_navigation:
            return False
        return self._scorer.looks_like_navigation(element)

    def _classify(self, element: Tag) -> Optional[ContentType]:
        unit_type = BLOCK_TYPES.get(element.name)
        if unit_type is not None:
            return unit_type

        if element.name in GENERIC_CONTAINERS:
            if element.find(list(BLOCK_TYPES)) is not None:
                return None
            if len(element_text(element)) > self._scoring.generic_block_min_length:
                return ContentType.GENERIC_BLOCK
            return None

        if element.name == "a" and self._selection.extract_links:
            return ContentType.LINK
        if element.name == "img" and self._selection.extract_images:
            return ContentType.IMAGE
        return None

    def _build_unit(
        self,
        element: Tag,
        unit_type: ContentType,
        url: str,
        document: Tag,
    ) -> Optional[ContentUnit]:
        items: tuple[str, ...] = ()
        rows: tuple[tuple[str, ...], ...] = ()
        attributes: tuple[tuple[str, str], ...] = ()
        heading_level = None

        if unit_type == ContentType.LIST:
            items = tuple(list_items(element))
            text = flatten_items(list(items))
        elif unit_type == ContentType.TABLE:
            rows = tuple(tuple(row) for row in table_rows(element))
            text = flatten_rows([list(row) for row in rows])
        elif unit_type == ContentType.CODE:
            text = code_text(element)
        elif unit_type == ContentType.LINK:
            href = element.get("href")
            text = element_text(element)
            if not isinstance(href, str) or not href:
                return None
            attributes = (("href", href),)
        elif unit_type == ContentType.IMAGE:
            src = element.get("src")
            if not isinstance(src, str) or not src:
                return None
            alt = element.get("alt")
            text = alt.strip() if isinstance(alt, str) else ""
            attributes = (("src", src), ("alt", text))
        else:
            text = element_text(element)
            if unit_type == ContentType.HEADING:
                heading_level = int(element.name[1])

        if not text and unit_type != ContentType.IMAGE:
            return None

        candidate = self._selectors.build_unique(element, document)
        return ContentUnit(
            id=self.ids.generate_content_id(text, unit_type.value, url),
            unit_type=unit_type,
            text=text,
            selector=candidate.selector,
            source_url=url,
            raw_markup=element.decode_contents(),
            fallback_locator=candidate.xpath,
            heading_level=heading_level,
            items=items,
            rows=rows,
            attributes=attributes,
        )

    @staticmethod
    def _page_title(soup: BeautifulSoup, url: str) -> str:
        if soup.title is not None:
            title = element_text(soup.title)
            if title:
                return title
        h1 = soup.find("h1")
        if isinstance(h1, Tag):
            title = element_text(h1)
            if title:
                return title
        return url


def build_hierarchy(units: list[ContentUnit]) -> list[HierarchyNode]:
    """
    Build the heading outline of an ordered unit list.

    Each heading opens a node nested under the nearest preceding heading of
    a lower level. Other units attach to the most recent heading; units seen
    before any heading go under a synthetic root node (``unit`` is None).
    """
    roots: list[HierarchyNode] = []
    stack: list[HierarchyNode] = []
    orphans: Optional[HierarchyNode] = None

    for unit in units:
        if unit.unit_type == ContentType.HEADING:
            node = HierarchyNode(unit=unit, level=unit.heading_level or 1)
            while stack and stack[-1].level >= node.level:
                stack.pop()
            (stack[-1].children if stack else roots).append(node)
            stack.append(node)
            continue

        if stack:
            stack[-1].children.append(HierarchyNode(unit=unit, level=stack[-1].level + 1))
        else:
            if orphans is None:
                orphans = HierarchyNode(unit=None, level=0)
                roots.append(orphans)
            orphans.children.append(HierarchyNode(unit=unit, level=1))

    return roots
