"""Text helpers shared by extraction and reconciliation.

Both passes must compute an element's text the same way, otherwise an
unedited document would not round-trip to zero changes.
"""

import re
from typing import Union

from bs4 import BeautifulSoup, Tag

# Tags whose contents are never content
NOISE_TAGS = ("script", "style", "noscript", "template")

_WHITESPACE_RE = re.compile(r"\s+")


def detect_encoding(html: bytes) -> str:
    """Detect character encoding from HTML content."""
    head = html[:2048].decode("latin-1", errors="ignore")
    charset_match = re.search(r'charset=["\']?([^"\'\s>;]+)', head, re.IGNORECASE)
    if charset_match:
        return charset_match.group(1).strip()
    return "utf-8"


def parse_html(html: Union[str, bytes]) -> BeautifulSoup:
    """Parse HTML text or bytes to BeautifulSoup."""
    if isinstance(html, bytes):
        encoding = detect_encoding(html)
        try:
            html = html.decode(encoding, errors="replace")
        except LookupError:
            html = html.decode("utf-8", errors="replace")
    return BeautifulSoup(html, "html.parser")


def strip_noise(soup: BeautifulSoup) -> None:
    """Remove script, style and similar elements in place."""
    for element in soup.find_all(NOISE_TAGS):
        element.decompose()


def normalize_text(text: str) -> str:
    """Collapse every whitespace run to a single space and trim."""
    return _WHITESPACE_RE.sub(" ", text).strip()


def element_text(element: Tag) -> str:
    """Normalized human-readable text of an element."""
    return normalize_text(element.get_text())


def normalize_code(text: str) -> str:
    """
    Normalize code text without touching indentation.

    Trailing whitespace is stripped per line and leading/trailing blank
    lines are dropped, matching what the serializer's post-processing does.
    """
    lines = [line.rstrip() for line in text.replace("\r\n", "\n").replace("\r", "\n").split("\n")]
    while lines and not lines[0]:
        lines.pop(0)
    while lines and not lines[-1]:
        lines.pop()
    return "\n".join(lines)


def code_text(element: Tag) -> str:
    """Verbatim text of a pre/code element."""
    return normalize_code(element.get_text())


def list_items(element: Tag) -> list[str]:
    """Non-empty texts of the list's own items, in order."""
    items = []
    for li in element.find_all("li", recursive=False):
        text = element_text(li)
        if text:
            items.append(text)
    return items


def table_cells(element: Tag) -> list[list[Tag]]:
    """Cell elements per row for the table's own rows (nested tables excluded)."""
    rows = []
    for tr in element.find_all("tr"):
        if tr.find_parent("table") is not element:
            continue
        cells = tr.find_all(["th", "td"], recursive=False)
        if cells:
            rows.append(cells)
    return rows


def table_rows(element: Tag) -> list[list[str]]:
    """Cell texts per row, in the order of ``table_cells``."""
    return [[element_text(cell) for cell in row] for row in table_cells(element)]


def flatten_items(items: list[str]) -> str:
    """Comparison form of a list: items joined with commas."""
    return ", ".join(items)


def flatten_rows(rows: list[list[str]]) -> str:
    """Comparison form of a table: one line per row, cells joined with pipes."""
    return "\n".join(" | ".join(row) for row in rows)
