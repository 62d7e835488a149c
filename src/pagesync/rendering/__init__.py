"""Page renderers: plain HTTP, headless browser and local files."""

from typing import Optional

from ..models.config import RenderConfig
from .browser import PLAYWRIGHT_AVAILABLE, BrowserContextPool, BrowserRenderer
from .files import FileRenderer, local_path
from .http import HttpRenderer
from .protocols import PageRenderer, RenderedPage, html_title


def create_renderer(config: Optional[RenderConfig] = None) -> PageRenderer:
    """Browser renderer when JavaScript rendering is enabled, else plain HTTP."""
    config = config or RenderConfig()
    if config.javascript:
        return BrowserRenderer(config)
    return HttpRenderer(config)


__all__ = [
    # Protocols
    "PageRenderer",
    "RenderedPage",
    # Implementations
    "BrowserContextPool",
    "BrowserRenderer",
    "FileRenderer",
    "HttpRenderer",
    # Helpers
    "PLAYWRIGHT_AVAILABLE",
    "create_renderer",
    "html_title",
    "local_path",
]
