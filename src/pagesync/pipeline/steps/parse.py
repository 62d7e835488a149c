"""ParseStep - extracts content units from rendered HTML."""

import logging
from typing import Optional

from ...models.events import EventType, ExtractEvent
from ...parsing.extractor import OrderedContentExtractor
from ..base import EventEmitter, PageContext

logger = logging.getLogger(__name__)


class ParseStep:
    """
    Pipeline step that runs the ordered content extractor.

    Reads ctx.html, writes ctx.page. A page without extractable content
    raises ``NoContentError``, which fails this page only.

    Example:
        step = ParseStep(OrderedContentExtractor(ids=run_ids))
        ctx = await step.execute(ctx)
        print(ctx.unit_count)
    """

    name = "parse"

    def __init__(self, extractor: OrderedContentExtractor):
        self._extractor = extractor

    async def execute(
        self,
        ctx: PageContext,
        emit: Optional[EventEmitter] = None,
    ) -> PageContext:
        if ctx.html is None:
            raise ValueError("No HTML content to parse")

        page = self._extractor.extract(ctx.html, ctx.url)
        if ctx.title:
            page.title = ctx.title
        ctx.page = page

        logger.debug(f"Extracted {len(page.units)} units from {ctx.url}")
        if emit:
            emit(
                ExtractEvent(
                    type=EventType.PAGE_PARSED,
                    url=ctx.url,
                    unit_count=len(page.units),
                    message=f"Extracted {len(page.units)} units from {len(page.regions)} region(s)",
                )
            )
        return ctx
