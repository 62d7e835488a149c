"""Main Extractor class with streaming event API."""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import AsyncIterator
from datetime import datetime, timezone
from pathlib import Path
from types import TracebackType
from typing import Callable

from ..conversion import HtmlToMarkdown, RoundTripSerializer
from ..exceptions import ConfigError
from ..filesystem import build_readme, local_relative_path, url_to_relative_path
from ..metadata import IdGenerator, SelectorBuilder
from ..models.config import PagesyncConfig
from ..models.events import (
    EventType,
    ExtractEvent,
    ExtractionError,
    ExtractionResult,
    ExtractStats,
    SavedPage,
)
from ..parsing import ContentRegionScorer, OrderedContentExtractor
from ..pipeline import ExtractionPipeline
from ..pipeline.steps import ParseStep, RenderStep, SaveStep, SerializeStep
from ..rendering import FileRenderer, PageRenderer, create_renderer
from ..sync.backup import iter_html_files

logger = logging.getLogger(__name__)


class Extractor:
    """
    Primary extraction API - streaming events.

    Renders each configured page (or local HTML file), extracts its content
    units, serializes them to a round-trip Markdown document and saves it.
    A failing page is recorded in ``result.errors`` and the run continues.

    One ``IdGenerator`` is shared by every page of a run and reset when
    the run starts, so content IDs are unique within the run and
    reproducible across runs.

    Example:
        config = PagesyncConfig(site_url="https://example.com", pages=[...])

        async with Extractor(config) as extractor:
            async for event in extractor.run():
                if event.type == EventType.PAGE_PROGRESS:
                    print(f"Progress: {event.current}/{event.total}")
                elif event.type == EventType.PAGE_FAILED:
                    print(f"Error: {event.url} - {event.error}")

        print(f"Stats: {extractor.stats.to_dict()}")
    """

    def __init__(self, config: PagesyncConfig, renderer: PageRenderer | None = None):
        """
        Initialize the Extractor.

        Args:
            config: Configuration for the run
            renderer: Renderer to use instead of the configured one
                      (the caller then owns its lifecycle)
        """
        self.config = config
        self._cancelled = False
        self._stats = ExtractStats()
        self._result: ExtractionResult | None = None
        self._ids = IdGenerator()

        self._renderer = renderer
        self._owns_renderer = renderer is None
        self._pipeline: ExtractionPipeline | None = None

    async def __aenter__(self) -> Extractor:
        """Enter async context and initialize components."""
        if self._renderer is None:
            if self.config.local_path is not None:
                self._renderer = FileRenderer()
            else:
                self._renderer = create_renderer(self.config.render)
        if self._owns_renderer:
            await self._renderer.__aenter__()  # type: ignore[attr-defined]

        self._pipeline = self._build_pipeline(self._renderer)
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        """Exit async context and cleanup resources."""
        if self._owns_renderer and self._renderer is not None:
            await self._renderer.__aexit__(exc_type, exc_val, exc_tb)  # type: ignore[attr-defined]
            self._renderer = None
        self._pipeline = None

    def _build_pipeline(self, renderer: PageRenderer) -> ExtractionPipeline:
        cfg = self.config
        extractor = OrderedContentExtractor(
            selection=cfg.selection,
            scoring=cfg.scoring,
            ids=self._ids,
            scorer=ContentRegionScorer(cfg.selection, cfg.scoring),
            selector_builder=SelectorBuilder(cfg.selectors),
        )
        serializer = RoundTripSerializer(
            include_xpath=cfg.output.include_xpath,
            provenance=cfg.output.provenance,
            converter=HtmlToMarkdown() if cfg.output.styled else None,
        )
        return ExtractionPipeline(
            steps=[
                RenderStep(renderer),
                ParseStep(extractor),
                SerializeStep(serializer),
                SaveStep(base_output_dir=cfg.output.directory, dry_run=cfg.dry_run),
            ]
        )

    @property
    def stats(self) -> ExtractStats:
        """Current extraction statistics."""
        return self._stats

    @property
    def result(self) -> ExtractionResult | None:
        """Structured result of the last run (None before the first run)."""
        return self._result

    def cancel(self) -> None:
        """Stop after the page currently being processed."""
        self._cancelled = True

    def _source_label(self) -> str:
        if self.config.local_path is not None:
            return str(self.config.local_path)
        return self.config.site_url or ", ".join(self.config.pages)

    def sources(self) -> list[tuple[str, Path]]:
        """
        Pages to process with their output paths.

        Raises:
            FileNotFoundError: If the local path does not exist
            ConfigError: If neither a local path nor any page is configured
        """
        output_dir = self.config.output.directory
        local = self.config.local_path

        if local is not None:
            if not local.exists():
                raise FileNotFoundError(f"Local path not found: {local}")
            if local.is_file():
                files = [local]
            else:
                files = list(iter_html_files(local, exclude=self.config.sync.backup_dir))
            return [(str(path), output_dir / local_relative_path(path, local)) for path in files]

        urls = self.config.page_urls()
        if not urls:
            raise ConfigError("Nothing to extract: set site_url, pages or local_path")
        return [(url, output_dir / url_to_relative_path(url, self.config.site_url)) for url in urls]

    async def run(self) -> AsyncIterator[ExtractEvent]:
        """
        Execute the extraction run, yielding events.

        Yields:
            ExtractEvent objects for each significant operation
        """
        if self._pipeline is None:
            raise RuntimeError("Extractor not initialized. Use 'async with' context manager.")

        started = time.monotonic()
        started_at = datetime.now(timezone.utc)
        self._cancelled = False
        self._stats = ExtractStats()
        self._ids.reset()
        result = ExtractionResult(extraction_id=self._ids.generate_extraction_id(self._source_label(), started_at))
        self._result = result

        yield ExtractEvent(type=EventType.STARTED, message=f"Starting extraction of {self._source_label()}")

        try:
            sources = self.sources()
            self._stats.pages_total = len(sources)

            collected_events: list[ExtractEvent] = []

            for i, (url, output_path) in enumerate(sources):
                if self._cancelled:
                    yield ExtractEvent(type=EventType.CANCELLED, message="Extraction cancelled by user")
                    return

                yield ExtractEvent(
                    type=EventType.PAGE_PROGRESS,
                    url=url,
                    current=i + 1,
                    total=len(sources),
                    message=f"Processing {i + 1}/{len(sources)}: {url}",
                )

                collected_events.clear()
                ctx = await self._pipeline.execute(url, output_path, emit=collected_events.append)
                for event in collected_events:
                    yield event

                if ctx.error:
                    self._stats.pages_failed += 1
                    logger.warning(f"Failed {url}: {ctx.error}")
                    result.errors.append(ExtractionError(kind=ctx.error_kind, message=ctx.error, url=url))
                    continue

                self._stats.units_extracted += ctx.unit_count
                if ctx.page is not None:
                    result.content_ids.extend(unit.id for unit in ctx.page.units)

                if ctx.should_skip:
                    self._stats.pages_skipped += 1
                    continue

                self._stats.pages_extracted += 1
                self._stats.files_saved += 1
                result.pages.append(
                    SavedPage(
                        url=url,
                        title=ctx.page.title if ctx.page is not None else url,
                        output_path=ctx.output_path,
                        unit_count=ctx.unit_count,
                    )
                )

            if self.config.output.generate_readme and result.pages and not self.config.dry_run:
                readme_path = await self._write_readme(result, started_at)
                yield ExtractEvent(
                    type=EventType.README_GENERATED,
                    output_path=readme_path,
                    message=f"Wrote index to {readme_path}",
                )

            self._stats.duration_seconds = time.monotonic() - started
            yield ExtractEvent(
                type=EventType.COMPLETED,
                message=(
                    f"Extraction completed: {self._stats.pages_extracted} saved, "
                    f"{self._stats.pages_skipped} skipped, "
                    f"{self._stats.pages_failed} failed"
                ),
            )

        except Exception as e:
            self._stats.duration_seconds = time.monotonic() - started
            yield ExtractEvent(type=EventType.FAILED, error=str(e), message=f"Extraction failed: {e}")
            raise

    async def _write_readme(self, result: ExtractionResult, started_at: datetime) -> Path:
        output_dir = self.config.output.directory
        readme = build_readme(
            result.pages,
            source=self._source_label(),
            extracted_at=started_at,
            output_dir=output_dir,
            extraction_id=result.extraction_id,
        )
        readme_path = output_dir / "README.md"
        output_dir.mkdir(parents=True, exist_ok=True)
        await asyncio.to_thread(readme_path.write_text, readme, encoding="utf-8")
        logger.info(f"Saved: {readme_path}")
        return readme_path


def extract_blocking(
    config: PagesyncConfig,
    on_event: Callable[[ExtractEvent], None] | None = None,
) -> ExtractionResult:
    """
    Blocking extraction with optional event callback.

    Convenience wrapper for sync code. Do not call from within a running
    event loop; use the async Extractor API there.

    Example:
        result = extract_blocking(PagesyncConfig(site_url="https://example.com"))
        print(f"{len(result.pages)} page(s), {len(result.errors)} error(s)")
    """
    try:
        asyncio.get_running_loop()
    except RuntimeError:
        pass
    else:
        raise RuntimeError("extract_blocking() called from async context. Use 'async with Extractor()' instead.")

    async def _run() -> ExtractionResult:
        async with Extractor(config) as extractor:
            async for event in extractor.run():
                if on_event:
                    on_event(event)
            if extractor.result is None:
                raise RuntimeError("Extraction finished without a result")
            return extractor.result

    return asyncio.run(_run())
