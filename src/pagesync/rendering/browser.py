"""Browser rendering for JavaScript-heavy pages."""

from __future__ import annotations

import asyncio
import contextlib
import logging
import time
from types import TracebackType
from typing import TYPE_CHECKING

from ..exceptions import RenderError
from ..models.config import RenderConfig
from .protocols import RenderedPage

logger = logging.getLogger(__name__)

# Check for Playwright availability
PLAYWRIGHT_AVAILABLE = False
try:
    from playwright.async_api import Error as PlaywrightError
    from playwright.async_api import async_playwright

    PLAYWRIGHT_AVAILABLE = True
except ImportError:
    pass

if TYPE_CHECKING:
    from playwright.async_api import Browser, BrowserContext, Page, Playwright


class BrowserContextPool:
    """
    Fixed-size pool of reusable browser contexts.

    Contexts are created up front and handed out one page at a time, so at
    most ``max_contexts`` pages render concurrently.

    Example:
        async with BrowserContextPool(max_contexts=3) as pool:
            async with pool.acquire() as page:
                await page.goto("https://example.com")
                html = await page.content()

    Requires: pip install pagesync[js]
    """

    def __init__(
        self,
        max_contexts: int = 3,
        headless: bool = True,
        user_agent: str | None = None,
        timeout: float = 30.0,
    ) -> None:
        """
        Initialize the browser context pool.

        Args:
            max_contexts: Number of browser contexts
            headless: Run browser in headless mode
            user_agent: Custom user agent string
            timeout: Default timeout for page operations (seconds)
        """
        if not PLAYWRIGHT_AVAILABLE:
            raise ImportError("Playwright is required for JavaScript rendering. Install with: pip install pagesync[js]")

        self._max_contexts = max_contexts
        self._headless = headless
        self._user_agent = user_agent
        self._timeout = timeout * 1000  # milliseconds

        self._playwright: Playwright | None = None
        self._browser: Browser | None = None
        self._contexts: list[BrowserContext] = []
        self._available: asyncio.Queue[BrowserContext] = asyncio.Queue()
        self._initialized = False

    async def _create_context(self) -> BrowserContext:
        if self._browser is None:
            raise RuntimeError("Browser not initialized")
        options: dict[str, object] = {
            "viewport": {"width": 1920, "height": 1080},
            "java_script_enabled": True,
        }
        if self._user_agent:
            options["user_agent"] = self._user_agent
        context = await self._browser.new_context(**options)  # type: ignore[arg-type]
        context.set_default_timeout(self._timeout)
        return context

    async def __aenter__(self) -> BrowserContextPool:
        """Launch the browser and pre-create contexts."""
        self._playwright = await async_playwright().start()
        self._browser = await self._playwright.chromium.launch(headless=self._headless)

        for _ in range(self._max_contexts):
            context = await self._create_context()
            self._contexts.append(context)
            await self._available.put(context)

        self._initialized = True
        logger.info(f"Browser pool initialized with {self._max_contexts} contexts")
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        """Close contexts, browser and Playwright."""
        for context in self._contexts:
            try:
                await context.close()
            except PlaywrightError as e:
                logger.debug(f"Error closing context: {e}")
        self._contexts.clear()

        if self._browser:
            await self._browser.close()
            self._browser = None

        if self._playwright:
            await self._playwright.stop()
            self._playwright = None

        self._initialized = False
        logger.info("Browser pool shut down")

    @contextlib.asynccontextmanager
    async def acquire(self):
        """Borrow a context and yield a fresh page in it."""
        if not self._initialized:
            raise RuntimeError("Browser pool not initialized. Use 'async with' context.")

        context = await self._available.get()
        page: Page | None = None
        try:
            page = await context.new_page()
            yield page
        finally:
            if page is not None:
                with contextlib.suppress(PlaywrightError):
                    await page.close()
            await self._available.put(context)


class BrowserRenderer:
    """
    Renders pages in headless Chromium.

    Optionally waits for a selector to appear and then for a fixed delay
    before capturing the DOM. No retries.

    Example:
        config = RenderConfig(javascript=True, wait_for_selector="main")
        async with BrowserRenderer(config) as renderer:
            page = await renderer.render("https://example.com/app")
    """

    def __init__(self, config: RenderConfig | None = None, wait_until: str = "networkidle") -> None:
        """
        Initialize the renderer.

        Args:
            config: Pool size, wait settings, user agent and timeout
            wait_until: Navigation wait condition ('load', 'domcontentloaded', 'networkidle')
        """
        self._config = config or RenderConfig(javascript=True)
        self._pool = BrowserContextPool(
            max_contexts=self._config.browser_contexts,
            headless=self._config.headless,
            user_agent=self._config.user_agent,
            timeout=self._config.timeout,
        )
        self._wait_until = wait_until

    async def __aenter__(self) -> BrowserRenderer:
        await self._pool.__aenter__()
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        await self._pool.__aexit__(exc_type, exc_val, exc_tb)

    async def render(self, url: str) -> RenderedPage:
        """
        Render a page and return its DOM as HTML.

        Raises:
            RenderError: On navigation failure, HTTP >= 400 or wait timeout
        """
        started = time.monotonic()
        try:
            async with self._pool.acquire() as page:
                response = await page.goto(
                    url,
                    wait_until=self._wait_until,  # type: ignore[arg-type]
                    timeout=self._config.timeout * 1000,
                )
                if response is not None and response.status >= 400:
                    raise RenderError(url, f"HTTP {response.status}", status_code=response.status)

                if self._config.wait_for_selector:
                    await page.wait_for_selector(self._config.wait_for_selector)
                if self._config.wait_time:
                    await asyncio.sleep(self._config.wait_time)

                html = await page.content()
                title = await page.title()
                status = response.status if response is not None else None

        except PlaywrightError as e:
            raise RenderError(url, f"Browser error: {e}") from e

        load_time = time.monotonic() - started
        logger.debug(f"Rendered {url} ({len(html)} chars, {load_time:.2f}s)")
        return RenderedPage(url=url, html=html, title=title, load_time=load_time, status_code=status)
