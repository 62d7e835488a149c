"""RenderStep - turns a URL into HTML."""

import logging
from typing import Optional

from ...models.events import EventType, ExtractEvent
from ...rendering.protocols import PageRenderer
from ..base import EventEmitter, PageContext

logger = logging.getLogger(__name__)


class RenderStep:
    """
    Pipeline step that renders a page with the configured renderer.

    Sets ctx.html and ctx.title. Render failures propagate as
    ``RenderError`` and the pipeline records the page as failed.
    """

    name = "render"

    def __init__(self, renderer: PageRenderer):
        self._renderer = renderer

    async def execute(
        self,
        ctx: PageContext,
        emit: Optional[EventEmitter] = None,
    ) -> PageContext:
        rendered = await self._renderer.render(ctx.url)
        ctx.html = rendered.html
        ctx.title = rendered.title or None
        ctx.load_time = rendered.load_time

        logger.debug(f"Rendered {ctx.url} in {rendered.load_time:.2f}s")
        if emit:
            emit(
                ExtractEvent(
                    type=EventType.PAGE_RENDERED,
                    url=ctx.url,
                    message=f"Rendered {len(rendered.html)} characters",
                )
            )
        return ctx
