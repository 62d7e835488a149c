"""Protocol definitions for stylistic conversion."""

from typing import Protocol


class MarkdownConverter(Protocol):
    """
    Protocol for converting an element's inner HTML to styled Markdown.

    Only used for plain (non-syncable) output. Implementations may raise;
    the serializer then falls back to plain tag stripping.
    """

    def convert(self, html: str, url: str) -> str:
        """
        Convert HTML to Markdown.

        Args:
            html: Inner HTML of one content unit
            url: Source URL (for resolving relative links)

        Returns:
            Markdown string
        """
        ...
