"""Stylistic HTML to Markdown conversion."""

from __future__ import annotations

import logging
import re
from urllib.parse import urljoin

import html2text
from bs4 import BeautifulSoup

from ..parsing.text import normalize_text

logger = logging.getLogger(__name__)

_LINK_RE = re.compile(r"\[([^\]]+)\]\(([^)]+)\)")


def strip_tags(html: str) -> str:
    """Minimal conversion: the element's text with all markup removed."""
    return normalize_text(BeautifulSoup(html, "html.parser").get_text(" "))


class HtmlToMarkdown:
    """
    Converts a unit's inner HTML to inline-styled Markdown.

    Keeps bold, italic, links and inline code that the plain-text rendering
    would lose. Output is a single block without wrapping.

    Example:
        converter = HtmlToMarkdown()
        converter.convert("Read the <a href='/docs'>docs</a>", "https://example.com/")
        # 'Read the [docs](https://example.com/docs)'
    """

    def __init__(
        self,
        inline_links: bool = True,
        ignore_images: bool = False,
        unicode_snob: bool = True,
        escape_snob: bool = False,
    ):
        """
        Initialize the converter.

        Args:
            inline_links: Use inline [text](url) vs reference style
            ignore_images: Drop inline images
            unicode_snob: Use Unicode chars where possible
            escape_snob: Escape every Markdown special character
        """
        self._converter = html2text.HTML2Text()

        # No wrapping: one unit renders as one paragraph
        self._converter.body_width = 0

        self._converter.inline_links = inline_links
        self._converter.wrap_links = False
        self._converter.protect_links = True
        self._converter.ignore_images = ignore_images
        self._converter.unicode_snob = unicode_snob
        self._converter.escape_snob = escape_snob
        self._converter.mark_code = False
        self._converter.default_image_alt = ""
        self._converter.single_line_break = True

    def _absolute_links(self, markdown: str, base_url: str) -> str:
        def replace_link(match: re.Match[str]) -> str:
            text, url = match.group(1), match.group(2)
            if url.startswith(("#", "http://", "https://", "mailto:", "tel:")):
                return match.group(0)
            return f"[{text}]({urljoin(base_url, url)})"

        return _LINK_RE.sub(replace_link, markdown)

    def convert(self, html: str, url: str) -> str:
        """
        Convert inner HTML to Markdown.

        Args:
            html: Inner HTML string
            url: Source URL for resolving relative links

        Returns:
            Markdown string with surrounding whitespace removed
        """
        self._converter.baseurl = url
        markdown = self._converter.handle(html)
        markdown = "\n".join(line.rstrip() for line in markdown.strip().split("\n"))
        return self._absolute_links(markdown, url)
