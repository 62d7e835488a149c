"""Base classes for the extraction pipeline."""

from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Optional, Protocol, runtime_checkable

from ..exceptions import NoContentError, RenderError
from ..models.content import ParsedPage
from ..models.events import ErrorKind, EventType, ExtractEvent

# Type alias for event emitter function
EventEmitter = Callable[[ExtractEvent], None]


def classify_error(error: Exception) -> ErrorKind:
    """Map a step failure to its error kind."""
    if isinstance(error, RenderError):
        return ErrorKind.RENDER
    if isinstance(error, NoContentError):
        return ErrorKind.NO_CONTENT
    if isinstance(error, OSError):
        return ErrorKind.FILE_WRITE
    return ErrorKind.CONTENT_PARSE


@dataclass
class PageContext:
    """
    Context object passed through pipeline steps.

    Accumulates everything known about one page as it moves from
    rendering to parsing, serialization and saving.

    Attributes:
        url: Page URL (or local path)
        output_path: Target path for the Markdown document
        html: Rendered HTML
        title: Document title reported by the renderer
        page: Extracted units and outline
        markdown: Serialized round-trip document
        should_skip: If True, remaining steps are skipped
        skip_reason: Human-readable reason for skipping
        error: Error message if a step failed
        error_kind: Failure category for the run's error list
    """

    url: str
    output_path: Path

    # Content (accumulated through pipeline)
    html: Optional[str] = None
    title: Optional[str] = None
    page: Optional[ParsedPage] = None
    markdown: Optional[str] = None

    # Status
    should_skip: bool = False
    skip_reason: Optional[str] = None
    error: Optional[str] = None
    error_kind: Optional[ErrorKind] = None

    load_time: float = 0.0

    @property
    def unit_count(self) -> int:
        return len(self.page.units) if self.page is not None else 0


@runtime_checkable
class ExtractStep(Protocol):
    """
    Protocol for pipeline steps.

    Each step receives a PageContext, processes it, and returns
    the (possibly modified) context.

    Error Handling Contract:
    - For expected skips (dry-run): set ctx.should_skip = True
      and ctx.skip_reason = "reason"
    - For failures: raise (RenderError, NoContentError, OSError, ...)
    - The pipeline catches exceptions and sets ctx.error / ctx.error_kind
    """

    name: str

    async def execute(
        self,
        ctx: PageContext,
        emit: Optional[EventEmitter] = None,
    ) -> PageContext:
        """
        Execute this pipeline step.

        Args:
            ctx: The page context with accumulated state
            emit: Optional callback to emit events

        Returns:
            The (possibly modified) page context
        """
        ...


@dataclass
class ExtractionPipeline:
    """
    Pipeline for processing a single page through multiple steps.

    Steps are executed in order. If a step sets ctx.should_skip = True,
    remaining steps are skipped. If a step raises, the error is captured
    in ctx.error and processing of this page stops; the run continues.

    Example:
        pipeline = ExtractionPipeline(steps=[
            RenderStep(renderer),
            ParseStep(extractor),
            SerializeStep(serializer),
            SaveStep(base_output_dir=output_dir),
        ])

        ctx = await pipeline.execute(url, output_path, emit=log_event)
        if ctx.error:
            logger.error(f"Failed: {ctx.error}")
    """

    steps: list[ExtractStep]

    async def execute(
        self,
        url: str,
        output_path: Path,
        emit: Optional[EventEmitter] = None,
    ) -> PageContext:
        """
        Execute the pipeline for a page.

        Args:
            url: The page to process
            output_path: Where to save the output
            emit: Optional callback for emitting events

        Returns:
            PageContext with final state (check error/should_skip for status)
        """
        ctx = PageContext(url=url, output_path=output_path)

        for step in self.steps:
            if ctx.should_skip:
                break

            try:
                ctx = await step.execute(ctx, emit)
            except Exception as e:
                ctx.error = f"{step.name}: {e}"
                ctx.error_kind = classify_error(e)
                ctx.should_skip = True

                if emit:
                    emit(
                        ExtractEvent(
                            type=EventType.PAGE_FAILED,
                            url=url,
                            error=ctx.error,
                        )
                    )
                break

        return ctx

    def add_step(self, step: ExtractStep) -> "ExtractionPipeline":
        """Add a step to the pipeline (fluent API)."""
        self.steps.append(step)
        return self
