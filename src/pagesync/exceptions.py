"""Exception hierarchy for pagesync."""

from typing import Optional


class PagesyncError(Exception):
    """Base class for all pagesync errors."""


class ConfigError(PagesyncError):
    """Configuration could not be loaded or is invalid."""


class NoContentError(PagesyncError):
    """A page (or region) produced nothing extractable."""

    def __init__(self, url: str, message: Optional[str] = None):
        self.url = url
        super().__init__(message or f"No content found on {url}")


class RenderError(PagesyncError):
    """The renderer/fetcher could not produce HTML for a page."""

    def __init__(self, url: str, message: str, status_code: Optional[int] = None):
        self.url = url
        self.status_code = status_code
        super().__init__(f"{url}: {message}")


class InvalidIdError(PagesyncError, ValueError):
    """An identifier string does not match any known ID format."""


class SelectorResolutionError(PagesyncError):
    """
    A sync block's locator could not be resolved to exactly one element.

    Raised inside the reconciler and converted into a warning so that the
    rest of the file is still processed.
    """

    def __init__(self, selector: str, reason: str, matches: int = 0):
        self.selector = selector
        self.reason = reason
        self.matches = matches
        super().__init__(f"{reason}: {selector}")
