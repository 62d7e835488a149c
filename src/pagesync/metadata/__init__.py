"""Provenance and identity for extracted content."""

from .ids import IdGenerator, format_timestamp, short_hash
from .selectors import SelectorBuilder, resolve_xpath, select_safe

__all__ = [
    "IdGenerator",
    "SelectorBuilder",
    "format_timestamp",
    "resolve_xpath",
    "select_safe",
    "short_hash",
]
