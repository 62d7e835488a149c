"""Extraction orchestration."""

from .extractor import Extractor, extract_blocking

__all__ = ["Extractor", "extract_blocking"]
