"""Apply edited sync blocks to the original HTML."""

import logging
import re
from dataclasses import dataclass, field
from typing import Union

from bs4 import BeautifulSoup, NavigableString, Tag
from soupsieve import SelectorSyntaxError

from ..conversion.serializer import FENCE_RE, unescape_line
from ..exceptions import SelectorResolutionError
from ..metadata.selectors import resolve_xpath
from ..models.content import ContentType, SyncBlock
from ..models.events import SyncChange, SyncWarning
from ..parsing.text import (
    code_text,
    element_text,
    flatten_items,
    flatten_rows,
    list_items,
    normalize_code,
    normalize_text,
    table_cells,
    table_rows,
)

logger = logging.getLogger(__name__)

_HEADING_RE = re.compile(r"^\s*#{1,6}\s*")
_QUOTE_RE = re.compile(r"^\s*>\s?")
_BULLET_RE = re.compile(r"^\s*(?:[-*+]|\d+[.)])\s+")
_SEPARATOR_CELL_RE = re.compile(r"^:?-{3,}:?$")
_CELL_SPLIT_RE = re.compile(r"(?<!\\)\|")
_LINK_RE = re.compile(r"^!?\[(?P<text>.*)\]\((?P<target>[^)]*)\)$", re.DOTALL)

# Single wrappers whose text is patched instead of the outer element
_TEXT_WRAPPERS = ("p", "code", "span")

ParsedValue = Union[str, list[str], list[list[str]], tuple[str, str]]


@dataclass
class Reconciliation:
    """Outcome of reconciling one document against one HTML file."""

    html: str
    changes: list[SyncChange] = field(default_factory=list)
    warnings: list[SyncWarning] = field(default_factory=list)

    @property
    def changed(self) -> bool:
        return bool(self.changes)


def parse_list_items(text: str) -> list[str]:
    """Bullet lines to items; unbulleted lines continue the previous item."""
    items: list[str] = []
    for line in text.split("\n"):
        if not line.strip():
            continue
        bullet = _BULLET_RE.match(line)
        if bullet:
            items.append(normalize_text(line[bullet.end() :]))
        elif items:
            items[-1] = normalize_text(f"{items[-1]} {line}")
        else:
            items.append(normalize_text(line))
    return [item for item in items if item]


def parse_table_rows(text: str) -> list[list[str]]:
    """Pipe-table lines to cell texts, skipping the header separator."""
    rows = []
    for line in text.split("\n"):
        line = line.strip()
        if not line:
            continue
        if line.startswith("|"):
            line = line[1:]
        if line.endswith("|") and not line.endswith("\\|"):
            line = line[:-1]
        cells = [normalize_text(cell).replace("\\|", "|") for cell in _CELL_SPLIT_RE.split(line)]
        if all(_SEPARATOR_CELL_RE.match(cell) for cell in cells):
            continue
        rows.append(cells)
    return rows


def strip_fences(text: str) -> str:
    """Body of a fenced code block (text without fences is returned as-is)."""
    lines = text.split("\n")
    if lines and FENCE_RE.match(lines[0].strip()):
        fence = FENCE_RE.match(lines[0].strip()).group(1)
        lines = lines[1:]
        if lines and lines[-1].strip() == fence:
            lines = lines[:-1]
    return normalize_code("\n".join(lines))


class Reconciler:
    """
    Patches the elements whose text changed in an edited document.

    The HTML is parsed fresh for every call. Each block's selector must
    resolve to exactly one element; otherwise the block's XPath is tried,
    and if that fails too the block is skipped with a warning. The rest of
    the file is still processed.

    Example:
        outcome = Reconciler().reconcile(html, parse_sync_blocks(markdown), "about.md")
        if outcome.changed:
            path.write_text(outcome.html)
    """

    def reconcile(self, html: str, blocks: list[SyncBlock], file_label: str = "") -> Reconciliation:
        """
        Reconcile blocks against an HTML document.

        Args:
            html: Original HTML text
            blocks: Blocks parsed from the edited document
            file_label: Name recorded on change and warning records

        Returns:
            Reconciliation with the patched HTML (unchanged if nothing changed)
        """
        soup = BeautifulSoup(html, "html.parser")
        outcome = Reconciliation(html=html)

        for block in blocks:
            try:
                element = self.resolve(soup, block)
            except SelectorResolutionError as e:
                logger.warning(f"{file_label}:{block.line_number}: {e}")
                outcome.warnings.append(SyncWarning(file_label, block.selector, str(e), block.line_number))
                continue

            old_text = self.current_text(element, block.detected_type)
            new_value = self.parse_block(block)
            new_text = self._comparable(new_value, block.detected_type)

            if not new_text:
                message = "empty block, element left unchanged"
                logger.warning(f"{file_label}:{block.line_number}: {message}: {block.selector}")
                outcome.warnings.append(SyncWarning(file_label, block.selector, message, block.line_number))
                continue

            if old_text == new_text:
                continue

            try:
                self.patch(soup, element, block.detected_type, new_value)
            except ValueError as e:
                logger.warning(f"{file_label}:{block.line_number}: {e}: {block.selector}")
                outcome.warnings.append(SyncWarning(file_label, block.selector, str(e), block.line_number))
                continue

            logger.debug(f"{file_label}: patched {block.selector}")
            outcome.changes.append(SyncChange(file_label, block.selector, old_text, new_text))

        if outcome.changes:
            outcome.html = str(soup)
        return outcome

    def resolve(self, soup: BeautifulSoup, block: SyncBlock) -> Tag:
        """
        Locate the element a block refers to.

        Raises:
            SelectorResolutionError: If neither the selector nor the XPath
                resolves to exactly one element
        """
        try:
            matches = soup.select(block.selector, limit=2)
        except (SelectorSyntaxError, ValueError) as e:
            raise SelectorResolutionError(block.selector, f"invalid selector ({e})") from e

        if len(matches) == 1:
            return matches[0]

        if block.fallback_locator:
            element = resolve_xpath(soup, block.fallback_locator)
            if element is not None:
                logger.debug(f"Resolved {block.selector!r} through XPath {block.fallback_locator}")
                return element

        reason = "selector not found" if not matches else "ambiguous selector"
        raise SelectorResolutionError(block.selector, reason, matches=len(matches))

    def current_text(self, element: Tag, unit_type: ContentType) -> str:
        """Comparison form of an element's current content."""
        if unit_type == ContentType.LIST:
            return flatten_items(list_items(element))
        if unit_type == ContentType.TABLE:
            return flatten_rows(table_rows(element))
        if unit_type == ContentType.CODE:
            return code_text(element)
        if unit_type == ContentType.LINK:
            href = element.get("href")
            return f"[{element_text(element)}]({href if isinstance(href, str) else ''})"
        if unit_type == ContentType.IMAGE:
            alt, src = element.get("alt"), element.get("src")
            return f"![{alt.strip() if isinstance(alt, str) else ''}]({src if isinstance(src, str) else ''})"
        return element_text(element)

    def parse_block(self, block: SyncBlock) -> ParsedValue:
        """Strip the Markdown decoration of a block's type."""
        text = block.raw_text_block
        unit_type = block.detected_type

        if unit_type == ContentType.HEADING:
            return normalize_text(_HEADING_RE.sub("", text, count=1))
        if unit_type == ContentType.BLOCKQUOTE:
            return normalize_text(" ".join(_QUOTE_RE.sub("", line) for line in text.split("\n")))
        if unit_type == ContentType.LIST:
            return parse_list_items(text)
        if unit_type == ContentType.TABLE:
            return parse_table_rows(text)
        if unit_type == ContentType.CODE:
            return strip_fences(text)
        if unit_type in (ContentType.LINK, ContentType.IMAGE):
            match = _LINK_RE.match(text.strip())
            if match is None:
                return ("", "")
            return (normalize_text(match.group("text")), match.group("target").strip())
        return normalize_text("\n".join(unescape_line(line) for line in text.split("\n")))

    def patch(self, soup: BeautifulSoup, element: Tag, unit_type: ContentType, value: ParsedValue) -> None:
        """
        Apply a parsed block to its element.

        Raises:
            ValueError: If the edit cannot be applied (table shape changed)
        """
        if unit_type == ContentType.LIST:
            element.clear()
            for item in value:
                li = soup.new_tag("li")
                li.string = item
                element.append(li)
            return

        if unit_type == ContentType.TABLE:
            cells = table_cells(element)
            if [len(row) for row in cells] != [len(row) for row in value]:
                raise ValueError("table shape changed, only cell text can be edited")
            for cell_row, text_row in zip(cells, value):
                for cell, text in zip(cell_row, text_row):
                    cell.string = text
            return

        if unit_type == ContentType.LINK:
            text, href = value
            element.string = text
            if href:
                element["href"] = href
            return

        if unit_type == ContentType.IMAGE:
            alt, src = value
            element["alt"] = alt
            if src:
                element["src"] = src
            return

        self._text_target(element).string = value

    def _comparable(self, value: ParsedValue, unit_type: ContentType) -> str:
        if unit_type == ContentType.LIST:
            return flatten_items(value)
        if unit_type == ContentType.TABLE:
            return flatten_rows(value)
        if unit_type == ContentType.LINK:
            return f"[{value[0]}]({value[1]})" if value[0] else ""
        if unit_type == ContentType.IMAGE:
            return f"![{value[0]}]({value[1]})" if value[1] else ""
        return value

    @staticmethod
    def _text_target(element: Tag) -> Tag:
        """Descend through single wrapper children such as ``pre > code``."""
        while True:
            children = [
                child
                for child in element.contents
                if not (isinstance(child, NavigableString) and not child.strip())
            ]
            if len(children) == 1 and isinstance(children[0], Tag) and children[0].name in _TEXT_WRAPPERS:
                element = children[0]
                continue
            return element
