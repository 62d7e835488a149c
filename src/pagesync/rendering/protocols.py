"""Protocol definitions for page rendering."""

import html as html_lib
import re
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional, Protocol, runtime_checkable

_TITLE_RE = re.compile(r"<title[^>]*>(.*?)</title>", re.IGNORECASE | re.DOTALL)


def html_title(html: str) -> str:
    """Text of the document's <title>, or an empty string."""
    match = _TITLE_RE.search(html)
    if not match:
        return ""
    return " ".join(html_lib.unescape(match.group(1)).split())


@dataclass
class RenderedPage:
    """
    HTML produced by a renderer.

    Attributes:
        url: Requested URL (or local path)
        html: Rendered HTML text
        title: Document title (may be empty)
        rendered_at: Completion time (UTC)
        load_time: Seconds spent rendering
        status_code: HTTP status, when there was one
    """

    url: str
    html: str
    title: str = ""
    rendered_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    load_time: float = 0.0
    status_code: Optional[int] = None


@runtime_checkable
class PageRenderer(Protocol):
    """
    Protocol for turning a URL into HTML.

    Renderers are async context managers owning their sessions or
    browsers. They perform no retries.
    """

    async def render(self, url: str) -> RenderedPage:
        """
        Render a page.

        Args:
            url: Page to render

        Returns:
            RenderedPage with the HTML

        Raises:
            RenderError: If the page could not be rendered
        """
        ...
