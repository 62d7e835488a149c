"""Plain HTTP rendering with aiohttp."""

from __future__ import annotations

import asyncio
import logging
import time
from types import TracebackType

import aiohttp

from ..exceptions import RenderError
from ..models.config import RenderConfig
from .protocols import RenderedPage, html_title

logger = logging.getLogger(__name__)


class HttpRenderer:
    """
    Fetches server-rendered HTML with a single GET per page.

    There is no retry or backoff; a failed request surfaces as a
    ``RenderError`` and the run records the page as failed.

    Example:
        async with HttpRenderer(RenderConfig()) as renderer:
            page = await renderer.render("https://example.com")
            print(page.title, len(page.html))
    """

    MAX_CONTENT_SIZE = 50 * 1024 * 1024  # 50 MB

    def __init__(self, config: RenderConfig | None = None) -> None:
        self._config = config or RenderConfig()
        self._session: aiohttp.ClientSession | None = None

    async def __aenter__(self) -> HttpRenderer:
        """Enter async context and create session."""
        self._session = aiohttp.ClientSession(
            headers={"User-Agent": self._config.user_agent},
            timeout=aiohttp.ClientTimeout(total=self._config.timeout),
        )
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        """Exit async context and close session."""
        if self._session:
            await self._session.close()
            self._session = None

    def _decode(self, content: bytes, charset: str | None) -> str:
        if charset:
            try:
                return content.decode(charset)
            except (UnicodeDecodeError, LookupError):
                logger.debug(f"Failed to decode with declared encoding: {charset}")
        return content.decode("utf-8", errors="replace")

    async def render(self, url: str) -> RenderedPage:
        """
        Fetch a page.

        Raises:
            RenderError: On network errors, timeouts, HTTP >= 400 or oversized content
        """
        if self._session is None:
            raise RuntimeError("Renderer not initialized. Use 'async with' context manager.")

        started = time.monotonic()
        try:
            async with self._session.get(url, allow_redirects=True) as response:
                if response.status >= 400:
                    raise RenderError(url, f"HTTP {response.status}", status_code=response.status)

                content_length = response.headers.get("Content-Length")
                if content_length and int(content_length) > self.MAX_CONTENT_SIZE:
                    raise RenderError(url, f"Content too large: {content_length} bytes")

                content = await response.read()
                html = self._decode(content, response.charset)
                status = response.status

        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise RenderError(url, f"{type(e).__name__}: {e}") from e

        load_time = time.monotonic() - started
        logger.debug(f"Fetched {url} ({len(html)} chars, {load_time:.2f}s)")
        return RenderedPage(url=url, html=html, title=html_title(html), load_time=load_time, status_code=status)
