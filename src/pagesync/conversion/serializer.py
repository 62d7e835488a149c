"""Round-trip Markdown serialization of content units."""

import logging
import re
from datetime import datetime, timezone
from typing import Optional

from ..metadata.ids import format_timestamp
from ..models.content import ContentType, ContentUnit, ParsedPage
from .markdown import strip_tags
from .protocols import MarkdownConverter

logger = logging.getLogger(__name__)

# The reconciler keys off this exact marker text
SELECTOR_MARKER = "Selector:"

SELECTOR_COMMENT_RE = re.compile(r"^<!--\s*Selector:\s?(?P<selector>.*?)\s*-->$")
UNIT_META_RE = re.compile(r"^<!--\s*Content ID:\s*(?P<fields>.*?)\s*-->$")
COMMENT_LINE_RE = re.compile(r"^<!--.*-->$")
FENCE_RE = re.compile(r"^(`{3,})")

HEADER_FIELDS = ("Content extracted from", "Title", "Page ID", "Extracted at")

_BACKTICK_RUN_RE = re.compile(r"`+")

# Text lines that would read as a fence or a comment carry one extra leading backslash
_SYNTAX_LINE_RE = re.compile(r"^\\*(?:`{3}|<!--)")


def escape_line(line: str) -> str:
    """
    Escape a text line that would otherwise parse as document syntax.

    A line opening with a backtick fence or ``<!--`` (after any backslashes
    already there) gets one more backslash, which Markdown renders away.
    """
    stripped = line.lstrip()
    if not _SYNTAX_LINE_RE.match(stripped):
        return line
    return f"{line[: len(line) - len(stripped)]}\\{stripped}"


def unescape_line(line: str) -> str:
    """Inverse of escape_line."""
    stripped = line.lstrip()
    if not stripped.startswith("\\") or not _SYNTAX_LINE_RE.match(stripped[1:]):
        return line
    return f"{line[: len(line) - len(stripped)]}{stripped[1:]}"


def comment(text: str) -> str:
    """Single-line HTML comment; ``-->`` inside the text is defused."""
    return f"<!-- {text.replace('-->', '-- >')} -->"


def parse_unit_meta(line: str) -> dict[str, str]:
    """
    Parse a unit metadata comment into its fields.

    Example:
        parse_unit_meta("<!-- Content ID: content-1a2b3c4d-1 | Type: list -->")
        # {'Content ID': 'content-1a2b3c4d-1', 'Type': 'list'}
    """
    match = UNIT_META_RE.match(line.strip())
    if not match:
        return {}
    parts = match.group("fields").split(" | ")
    fields = {"Content ID": parts[0].strip()}
    for part in parts[1:]:
        key, sep, value = part.partition(":")
        if sep:
            fields[key.strip()] = value.strip()
    return fields


def code_fence(code: str) -> str:
    """Backtick fence longer than any backtick run inside the code."""
    longest = max((len(run) for run in _BACKTICK_RUN_RE.findall(code)), default=0)
    return "`" * max(3, longest + 1)


def escape_cell(text: str) -> str:
    return text.replace("|", "\\|")


class RoundTripSerializer:
    """
    Renders content units to an editable Markdown document.

    Each unit is preceded by a metadata comment and a provenance comment
    carrying its exact selector, so edits can be reconciled back into the
    source HTML:

        <!-- Content ID: content-1a2b3c4d-2 | Type: paragraph | XPath: /html[1]/body[1]/main[1]/p[1] -->
        <!-- Selector: html > body > main > p:nth-of-type(1) -->
        Hello world

    With ``provenance=False`` the comments are omitted and, given a
    converter, paragraphs keep inline styling. That output cannot be synced.
    """

    def __init__(
        self,
        include_xpath: bool = True,
        provenance: bool = True,
        converter: Optional[MarkdownConverter] = None,
    ):
        """
        Initialize the serializer.

        Args:
            include_xpath: Embed fallback XPaths in unit metadata comments
            provenance: Embed header and per-unit comments
            converter: Stylistic converter, used only without provenance
        """
        self._include_xpath = include_xpath
        self._provenance = provenance
        self._converter = converter if not provenance else None

    def serialize(self, page: ParsedPage) -> str:
        """Serialize a parsed page."""
        return self.serialize_units(
            page.units,
            url=page.url,
            title=page.title,
            page_id=page.page_id,
            extracted_at=page.extracted_at,
        )

    def serialize_units(
        self,
        units: list[ContentUnit],
        url: str,
        title: Optional[str] = None,
        page_id: Optional[str] = None,
        extracted_at: Optional[datetime] = None,
    ) -> str:
        """
        Serialize an ordered unit list.

        Args:
            units: Units in document order
            url: Source URL for the header
            title: Page title for the header
            page_id: Page ID for the header
            extracted_at: Extraction time (now if omitted)

        Returns:
            The Markdown document
        """
        lines: list[str] = []
        if self._provenance:
            stamp = format_timestamp(extracted_at or datetime.now(timezone.utc))
            values = (url, title, page_id, stamp)
            for name, value in zip(HEADER_FIELDS, values):
                if value:
                    lines.append(comment(f"{name}: {value}"))
            lines.append("")

        for unit in units:
            body = self.render_unit(unit)
            if not body:
                logger.debug(f"Dropping empty {unit.unit_type.value} unit {unit.id}")
                continue
            if self._provenance:
                lines.append(comment(self._unit_meta(unit)))
                lines.append(f"<!-- {SELECTOR_MARKER} {unit.selector} -->")
            lines.append(body)
            lines.append("")

        return self.post_process("\n".join(lines))

    def render_unit(self, unit: ContentUnit) -> str:
        """Type-specific Markdown for one unit (no provenance)."""
        unit_type = unit.unit_type

        if unit_type == ContentType.HEADING:
            return f"{'#' * (unit.heading_level or 1)} {unit.text}" if unit.text else ""

        if unit_type == ContentType.LIST:
            items = unit.items or ((unit.text,) if unit.text else ())
            return "\n".join(f"- {item}" for item in items)

        if unit_type == ContentType.CODE:
            if not unit.text:
                return ""
            fence = code_fence(unit.text)
            return f"{fence}\n{unit.text}\n{fence}"

        if unit_type == ContentType.TABLE:
            return self._render_table(unit)

        if unit_type == ContentType.LINK:
            return f"[{unit.text}]({unit.attribute('href') or ''})"

        if unit_type == ContentType.IMAGE:
            src = unit.attribute("src")
            return f"![{unit.attribute('alt') or ''}]({src})" if src else ""

        text = self._styled_text(unit)
        if unit_type == ContentType.BLOCKQUOTE:
            return "\n".join(f"> {line}" for line in text.split("\n")) if text else ""
        return "\n".join(escape_line(line) for line in text.split("\n"))

    def post_process(self, markdown: str) -> str:
        """
        Tidy the document outside code fences.

        Strips trailing whitespace, collapses blank-line runs to one blank
        line and drops provenance comments with no rendered text after them.
        A fence opens only in text whose unit comment declares a code unit,
        or in text with no unit comment above it.
        """
        lines: list[str] = []
        # unit comments not yet followed by any text
        pending: list[str] = []
        fence: Optional[str] = None
        block_type: Optional[str] = None
        for line in markdown.split("\n"):
            if fence is not None:
                lines.append(line)
                if line.strip() == fence:
                    fence = None
                continue

            line = line.rstrip()
            if UNIT_META_RE.match(line) or SELECTOR_COMMENT_RE.match(line):
                pending.append(line)
                continue
            if not line:
                if not pending and lines and lines[-1]:
                    lines.append(line)
                continue

            if pending:
                kept = self._last_marker_pair(pending)
                lines.extend(kept)
                block_type = next((parse_unit_meta(c).get("Type") for c in kept if UNIT_META_RE.match(c)), None)
                pending = []
            match = FENCE_RE.match(line)
            if match and block_type in (None, ContentType.CODE.value):
                fence = match.group(1)
            lines.append(line)

        return "\n".join(lines).strip("\n") + "\n"

    def _unit_meta(self, unit: ContentUnit) -> str:
        fields = [f"Content ID: {unit.id}", f"Type: {unit.unit_type.value}"]
        if unit.heading_level:
            fields.append(f"Level: {unit.heading_level}")
        if self._include_xpath and unit.fallback_locator:
            fields.append(f"XPath: {unit.fallback_locator}")
        return " | ".join(fields)

    def _styled_text(self, unit: ContentUnit) -> str:
        if self._converter is None or not unit.raw_markup:
            return unit.text
        try:
            styled = self._converter.convert(unit.raw_markup, unit.source_url).strip()
        except Exception as e:
            logger.warning(f"Converter failed for {unit.id}, using plain text: {e}")
            return strip_tags(unit.raw_markup)
        return styled or strip_tags(unit.raw_markup)

    @staticmethod
    def _render_table(unit: ContentUnit) -> str:
        if not unit.rows:
            return ""
        header, *body = unit.rows
        lines = [
            "| " + " | ".join(escape_cell(cell) for cell in header) + " |",
            "|" + "|".join(" --- " for _ in header) + "|",
        ]
        for row in body:
            lines.append("| " + " | ".join(escape_cell(cell) for cell in row) + " |")
        return "\n".join(lines)

    @staticmethod
    def _last_marker_pair(pending: list[str]) -> list[str]:
        """Of a run of unit comments, keep the last metadata/selector pair."""
        selectors = [i for i, line in enumerate(pending) if SELECTOR_COMMENT_RE.match(line)]
        if not selectors:
            return []
        last = selectors[-1]
        start = last - 1 if last > 0 and UNIT_META_RE.match(pending[last - 1]) else last
        return pending[start : last + 1]
