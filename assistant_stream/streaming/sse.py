"""Server-sent-event framing for protocol events."""

import json
from typing import AsyncIterator

from ..config.constants import SSE_DONE_FRAME
from ..models.events import ProtocolEvent


def encode_sse(event: ProtocolEvent) -> str:
    """Frame one protocol event as a ``data:`` SSE frame."""
    return f"data: {json.dumps(event.to_dict(), separators=(',', ':'), ensure_ascii=False)}\n\n"


async def to_sse(events: AsyncIterator[ProtocolEvent]) -> AsyncIterator[str]:
    """Frame every event, then terminate the stream with ``[DONE]``.

    The terminator is only sent when the event sequence ends normally.
    """
    async for event in events:
        yield encode_sse(event)
    yield SSE_DONE_FRAME
