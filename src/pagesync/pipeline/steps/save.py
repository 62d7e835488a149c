"""SaveStep - writes the serialized document."""

import asyncio
import logging
from pathlib import Path
from typing import Optional

from ...models.events import EventType, ExtractEvent
from ..base import EventEmitter, PageContext

logger = logging.getLogger(__name__)


class SaveStep:
    """
    Pipeline step that saves ctx.markdown to ctx.output_path.

    Creates parent directories as needed. In dry-run mode nothing is
    written and the page is marked as skipped.

    Example:
        save_step = SaveStep(base_output_dir=Path("content"))
        ctx = await save_step.execute(ctx)
    """

    name = "save"

    def __init__(self, base_output_dir: Optional[Path] = None, dry_run: bool = False) -> None:
        """
        Initialize the save step.

        Args:
            base_output_dir: If set, output paths must be within this directory
            dry_run: Report the target path without writing
        """
        self._base_output_dir = base_output_dir
        self._dry_run = dry_run

    def _validate_output_path(self, output_path: Path) -> Path:
        """
        Resolve the output path and check it stays inside the base directory.

        Raises:
            ValueError: If path is outside base directory (if configured)
        """
        resolved = output_path.resolve()

        if self._base_output_dir is not None:
            base_resolved = self._base_output_dir.resolve()
            try:
                resolved.relative_to(base_resolved)
            except ValueError as err:
                raise ValueError(f"Output path {resolved} is outside base directory {base_resolved}") from err

        return resolved

    async def execute(
        self,
        ctx: PageContext,
        emit: Optional[EventEmitter] = None,
    ) -> PageContext:
        if ctx.markdown is None:
            raise ValueError("No Markdown to save")

        validated_path = self._validate_output_path(ctx.output_path)

        if self._dry_run:
            ctx.should_skip = True
            ctx.skip_reason = f"[dry-run] Would save to {validated_path}"
            logger.info(ctx.skip_reason)
            if emit:
                emit(
                    ExtractEvent(
                        type=EventType.PAGE_SKIPPED,
                        url=ctx.url,
                        output_path=validated_path,
                        unit_count=ctx.unit_count,
                        message=ctx.skip_reason,
                    )
                )
            return ctx

        validated_path.parent.mkdir(parents=True, exist_ok=True)
        await asyncio.to_thread(validated_path.write_text, ctx.markdown, encoding="utf-8")
        ctx.output_path = validated_path

        logger.info(f"Saved: {validated_path}")
        if emit:
            emit(
                ExtractEvent(
                    type=EventType.PAGE_SAVED,
                    url=ctx.url,
                    output_path=validated_path,
                    unit_count=ctx.unit_count,
                    message=f"Saved to {validated_path}",
                )
            )
        return ctx
