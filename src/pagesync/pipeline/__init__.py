"""Pipeline architecture for extraction runs."""

from .base import EventEmitter, ExtractionPipeline, ExtractStep, PageContext, classify_error

__all__ = ["EventEmitter", "ExtractionPipeline", "ExtractStep", "PageContext", "classify_error"]
