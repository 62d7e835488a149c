"""SerializeStep - renders extracted units as a round-trip document."""

import logging
from typing import Optional

from ...conversion.serializer import RoundTripSerializer
from ...models.events import EventType, ExtractEvent
from ..base import EventEmitter, PageContext

logger = logging.getLogger(__name__)


class SerializeStep:
    """Pipeline step that turns ctx.page into ctx.markdown."""

    name = "serialize"

    def __init__(self, serializer: Optional[RoundTripSerializer] = None):
        self._serializer = serializer or RoundTripSerializer()

    async def execute(
        self,
        ctx: PageContext,
        emit: Optional[EventEmitter] = None,
    ) -> PageContext:
        if ctx.page is None:
            raise ValueError("No extracted content to serialize")

        ctx.markdown = self._serializer.serialize(ctx.page)

        if emit:
            emit(
                ExtractEvent(
                    type=EventType.PAGE_SERIALIZED,
                    url=ctx.url,
                    unit_count=ctx.unit_count,
                    message=f"Serialized to {len(ctx.markdown)} characters of Markdown",
                )
            )
        return ctx
