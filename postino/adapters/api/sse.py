# /postino/adapters/api/sse.py
from __future__ import annotations

import json
from collections.abc import AsyncIterator

from postino.domain.paginator import Event

SSE_HEADERS = {"Cache-Control": "no-cache", "Connection": "keep-alive"}


def encode_event(event: Event) -> str:
    return f"data: {json.dumps(event.to_dict(), default=str, allow_nan=False)}\n\n"


async def event_stream(events: AsyncIterator[Event]) -> AsyncIterator[str]:
    async for event in events:
        yield encode_event(event)
