"""Local HTML files as a render source."""

from __future__ import annotations

import asyncio
import logging
import time
from pathlib import Path
from types import TracebackType
from urllib.parse import unquote, urlparse

from ..exceptions import RenderError
from ..parsing.text import detect_encoding
from .protocols import RenderedPage, html_title

logger = logging.getLogger(__name__)


def local_path(url: str) -> Path:
    """Path for a plain path string or a ``file://`` URL."""
    parsed = urlparse(url)
    if parsed.scheme == "file":
        return Path(unquote(parsed.path))
    return Path(url)


class FileRenderer:
    """
    Reads already-rendered HTML from disk.

    Accepts plain paths or ``file://`` URLs; relative paths resolve against
    ``base_dir`` when one is given.

    Example:
        async with FileRenderer(Path("site")) as renderer:
            page = await renderer.render("about/index.html")
    """

    def __init__(self, base_dir: Path | None = None) -> None:
        self._base_dir = base_dir

    async def __aenter__(self) -> FileRenderer:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        return None

    async def render(self, url: str) -> RenderedPage:
        """
        Read and decode an HTML file.

        Raises:
            RenderError: If the file cannot be read
        """
        path = local_path(url)
        if self._base_dir is not None and not path.is_absolute():
            path = self._base_dir / path

        started = time.monotonic()
        try:
            content = await asyncio.to_thread(path.read_bytes)
        except OSError as e:
            raise RenderError(url, f"Cannot read file: {e}") from e

        encoding = detect_encoding(content)
        try:
            html = content.decode(encoding, errors="replace")
        except LookupError:
            html = content.decode("utf-8", errors="replace")

        return RenderedPage(url=url, html=html, title=html_title(html), load_time=time.monotonic() - started)
