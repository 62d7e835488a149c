"""Parse an edited round-trip document back into provenance-tagged blocks."""

import logging
from enum import Enum
from typing import Optional

from ..conversion.serializer import (
    COMMENT_LINE_RE,
    FENCE_RE,
    SELECTOR_COMMENT_RE,
    UNIT_META_RE,
    parse_unit_meta,
)
from ..models.content import ContentType, SyncBlock

logger = logging.getLogger(__name__)


class ParserState(Enum):
    SCANNING = "scanning"
    ACCUMULATING = "accumulating"


def infer_type(text: str) -> ContentType:
    """Guess a block's type from its leading characters."""
    first = text.lstrip().split("\n", 1)[0]
    if first.startswith("#"):
        return ContentType.HEADING
    if FENCE_RE.match(first):
        return ContentType.CODE
    if first.startswith(("- ", "* ")) or first in ("-", "*"):
        return ContentType.LIST
    if first.startswith(">"):
        return ContentType.BLOCKQUOTE
    if first.startswith("|"):
        return ContentType.TABLE
    if first.startswith("!["):
        return ContentType.IMAGE
    return ContentType.PARAGRAPH


class SyncBlockParser:
    """
    Line-oriented state machine over a round-trip document.

    SCANNING discards lines until a ``Selector:`` comment opens a block.
    ACCUMULATING collects text lines until the next selector comment or end
    of file flushes the block. Only a code block opens a fence, and inside
    it every line is content, comment-like lines included. Other comments
    (the document header, unit metadata) are never accumulated; unit
    metadata is remembered and applied to the next block as its type hint,
    content ID and XPath fallback.

    Example:
        blocks = SyncBlockParser().parse(markdown)
        for block in blocks:
            print(block.line_number, block.selector, block.detected_type)
    """

    def __init__(self) -> None:
        self._reset()

    def _reset(self) -> None:
        self._state = ParserState.SCANNING
        self._blocks: list[SyncBlock] = []
        self._lines: list[str] = []
        self._selector: Optional[str] = None
        self._line_number = 0
        self._meta: dict[str, str] = {}
        self._block_meta: dict[str, str] = {}
        self._fence: Optional[str] = None

    def parse(self, text: str) -> list[SyncBlock]:
        """Parse a document into blocks, in document order."""
        self._reset()
        for number, line in enumerate(text.replace("\r\n", "\n").split("\n"), start=1):
            self._feed(number, line)
        self._flush()
        blocks, self._blocks = self._blocks, []
        return blocks

    def _feed(self, number: int, line: str) -> None:
        if self._fence is not None:
            self._lines.append(line)
            if line.strip() == self._fence:
                self._fence = None
            return

        stripped = line.strip()
        marker = SELECTOR_COMMENT_RE.match(stripped)
        if marker:
            self._flush()
            self._state = ParserState.ACCUMULATING
            self._selector = marker.group("selector")
            self._line_number = number
            self._block_meta, self._meta = self._meta, {}
            return

        if UNIT_META_RE.match(stripped):
            self._meta = parse_unit_meta(stripped)
            return

        if COMMENT_LINE_RE.match(stripped):
            return

        if self._state is ParserState.SCANNING:
            if stripped:
                logger.debug(f"Line {number}: text before the first selector marker discarded")
            return

        first_line = not any(previous.strip() for previous in self._lines)
        self._lines.append(line)
        fence = FENCE_RE.match(stripped)
        if fence and self._opens_fence(first_line):
            self._fence = fence.group(1)

    def _opens_fence(self, first_line: bool) -> bool:
        # Only code blocks have fences; untyped blocks only on their first line
        hint = ContentType.from_value(self._block_meta.get("Type", ""))
        if hint is not None:
            return hint is ContentType.CODE
        return first_line

    def _flush(self) -> None:
        if self._state is ParserState.ACCUMULATING and self._selector is not None:
            raw = "\n".join(self._lines).strip("\n")
            hint = ContentType.from_value(self._block_meta.get("Type", ""))
            self._blocks.append(
                SyncBlock(
                    selector=self._selector,
                    raw_text_block=raw,
                    detected_type=hint or infer_type(raw),
                    fallback_locator=self._block_meta.get("XPath") or None,
                    content_id=self._block_meta.get("Content ID") or None,
                    line_number=self._line_number,
                )
            )

        self._state = ParserState.SCANNING
        self._lines = []
        self._selector = None
        self._block_meta = {}
        self._fence = None


def parse_sync_blocks(text: str) -> list[SyncBlock]:
    """Parse a round-trip document into sync blocks."""
    return SyncBlockParser().parse(text)
