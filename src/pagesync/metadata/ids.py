"""Content-addressed identifiers for pages, units and extraction runs."""

from __future__ import annotations

import hashlib
import re
from datetime import datetime, timezone
from typing import NamedTuple

from ..exceptions import InvalidIdError

HASH_LENGTH = 8

CONTENT_ID_RE = re.compile(r"^content-([a-f0-9]{8})-(\d+)$")

ID_PATTERNS = (
    CONTENT_ID_RE,
    re.compile(r"^page-[a-f0-9]{8}$"),
    re.compile(r"^selector-[a-f0-9]{8}$"),
    re.compile(r"^extraction-[a-f0-9]{8}-\d{4}-\d{2}-\d{2}T\d{2}-\d{2}-\d{2}-\d{3}Z$"),
)


class ContentIdParts(NamedTuple):
    hash: str
    counter: int


def short_hash(value: str, length: int = HASH_LENGTH) -> str:
    """Truncated md5 hex digest of a string."""
    return hashlib.md5(value.encode("utf-8")).hexdigest()[:length]


def format_timestamp(timestamp: datetime) -> str:
    """
    ISO-8601 UTC timestamp with millisecond precision and a ``Z`` suffix.

    Example:
        2024-05-01T10:20:30.123Z
    """
    if timestamp.tzinfo is None:
        timestamp = timestamp.replace(tzinfo=timezone.utc)
    timestamp = timestamp.astimezone(timezone.utc)
    return timestamp.strftime("%Y-%m-%dT%H:%M:%S.") + f"{timestamp.microsecond // 1000:03d}Z"


class IdGenerator:
    """
    Generates stable, collision-resistant identifiers.

    The hash part of a content ID depends only on (text, type, url), so it is
    stable across runs over unchanged HTML. The counter suffix makes IDs
    unique within one run even for identical units (e.g. two "Read more"
    paragraphs). Create one generator per extraction run, or call
    ``reset()`` at the start of a run.

    Example:
        ids = IdGenerator()
        ids.generate_content_id("Read more", "paragraph", url)  # content-1a2b3c4d-1
        ids.generate_content_id("Read more", "paragraph", url)  # content-1a2b3c4d-2
    """

    def __init__(self) -> None:
        self._counter = 0

    @property
    def counter(self) -> int:
        return self._counter

    def reset(self) -> None:
        """Reset the counter for a new extraction run."""
        self._counter = 0

    def generate_content_id(self, text: str, unit_type: str, url: str) -> str:
        """Generate a content ID from normalized text, unit type and source URL."""
        digest = short_hash(f"{text.strip()}-{unit_type}-{url}")
        self._counter += 1
        return f"content-{digest}-{self._counter}"

    def generate_page_id(self, url: str) -> str:
        return f"page-{short_hash(url)}"

    def generate_selector_id(self, selector: str, url: str) -> str:
        return f"selector-{short_hash(f'{selector}-{url}')}"

    def generate_extraction_id(self, site_url: str, timestamp: datetime) -> str:
        """Generate an extraction-run ID from the site URL and start time."""
        stamp = format_timestamp(timestamp).replace(":", "-").replace(".", "-")
        return f"extraction-{short_hash(site_url)}-{stamp}"

    def generate_hierarchical_id(self, parent_id: str, text: str, unit_type: str) -> str:
        """ID for nested content, scoped under its parent's ID."""
        return f"{parent_id}-{unit_type}-{short_hash(text.strip(), 4)}"

    @staticmethod
    def generate_short_id(text: str, max_length: int = 20) -> str:
        """
        Short, readable slug for file names.

        Truncates at word boundaries where possible.
        """
        clean = re.sub(r"[^a-z0-9\s]", "", text.lower())
        clean = re.sub(r"\s+", "-", clean.strip())

        if len(clean) <= max_length:
            return clean

        result = ""
        for word in clean.split("-"):
            candidate = f"{result}-{word}" if result else word
            if len(candidate) > max_length:
                break
            result = candidate

        return result or clean[:max_length]

    @staticmethod
    def is_valid_id(value: str) -> bool:
        """Check whether a string matches one of the known ID formats."""
        return any(pattern.match(value) for pattern in ID_PATTERNS)

    @staticmethod
    def parse_content_id(value: str) -> ContentIdParts:
        """
        Split a content ID into its hash and counter.

        Raises:
            InvalidIdError: If the string is not a well-formed content ID
        """
        match = CONTENT_ID_RE.match(value)
        if not match:
            raise InvalidIdError(f"Not a content ID: {value!r}")
        return ContentIdParts(hash=match.group(1), counter=int(match.group(2)))
