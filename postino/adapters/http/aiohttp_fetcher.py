# /postino/adapters/http/aiohttp_fetcher.py
from __future__ import annotations

import asyncio
import logging
from typing import Any

import aiohttp

from postino.config import settings

LOG = logging.getLogger("adapter.http_fetcher")


class ResponseTooLarge(Exception):
    pass


class AiohttpFetcher:
    """
    Loop-aware aiohttp page fetcher.
    The ASGI server and the test client may run us on different event loops; we
    detect loop changes and rebuild the session so we never hold one tied to a
    closed loop. Single attempt per call: failures propagate to the caller.
    """

    def __init__(
        self,
        *,
        timeout_seconds: float = settings.TIMEOUT_SECONDS,
        max_bytes: int = settings.MAX_BYTES,
        verify_tls: bool = settings.VERIFY_TLS,
    ) -> None:
        self._timeout = aiohttp.ClientTimeout(total=timeout_seconds)
        self._max_bytes = max_bytes
        self._verify_tls = verify_tls
        self._session: aiohttp.ClientSession | None = None
        self._loop: asyncio.AbstractEventLoop | None = None  # track owning loop

    async def _ensure_session(self) -> aiohttp.ClientSession:
        loop = asyncio.get_running_loop()
        loop_changed = self._loop is not None and self._loop is not loop

        if loop_changed:
            # old session belonged to a different (likely closed) loop -> drop it
            try:
                if self._session and not self._session.closed and not self._loop.is_closed():
                    await self._session.close()
            finally:
                self._session = None
                self._loop = None

        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(timeout=self._timeout, raise_for_status=False)
            self._loop = loop

        return self._session

    async def post_json(self, url: str, *, token: str, payload: dict[str, Any]) -> tuple[int, str]:
        """
        POST payload as JSON with `Authorization: Bearer <token>`.
        Returns (status, body_text); raises ResponseTooLarge past max_bytes.
        """
        sess = await self._ensure_session()
        headers = {"Authorization": f"Bearer {token}"}
        LOG.info("posting", extra={"extra": {"url": url, "verify_tls": self._verify_tls}})

        async with sess.post(url, json=payload, headers=headers, ssl=self._verify_tls) as resp:
            body = bytearray()
            async for chunk in resp.content.iter_chunked(64 * 1024):
                body.extend(chunk)
                if len(body) > self._max_bytes:
                    LOG.warning(
                        "body_too_large", extra={"extra": {"url": url, "max": self._max_bytes}}
                    )
                    raise ResponseTooLarge(f"upstream response exceeds {self._max_bytes} bytes")
            text = bytes(body).decode(resp.charset or "utf-8", errors="replace")
            return resp.status, text

    async def close(self) -> None:
        if self._session and not self._session.closed:
            await self._session.close()
        self._session = None
        self._loop = None
