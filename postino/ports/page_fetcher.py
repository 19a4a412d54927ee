# /postino/ports/page_fetcher.py
from __future__ import annotations

from typing import Any, Protocol


class PageFetcherPort(Protocol):
    async def post_json(self, url: str, *, token: str, payload: dict[str, Any]) -> tuple[int, str]:
        """POST payload as JSON with a bearer token; return (status, body_text)."""
