# /postino/domain/paginator.py
from __future__ import annotations

import asyncio
import json
import logging
from collections.abc import AsyncIterator, Awaitable, Callable
from dataclasses import dataclass, field
from typing import Any

from postino.config import settings
from postino.domain.errors import ClientInputError, UpstreamHTTPError
from postino.ports.page_fetcher import PageFetcherPort

LOG = logging.getLogger("paginator")

# Checked in order; first list-valued field wins.
PAGE_FIELDS: tuple[str, ...] = ("results", "data", "items")

# ==== DTOs ====


@dataclass(slots=True)
class FetchRequestDTO:
    endpoint: str
    token: str
    body: dict[str, Any]
    max_pages: int
    delay_ms: int

    @classmethod
    def from_fields(
        cls,
        *,
        endpoint: str | None,
        body: dict[str, Any] | str | None,
        token: str | None,
        max_pages: int | None = None,
        delay_ms: int | None = None,
    ) -> FetchRequestDTO:
        if not endpoint or body is None or body == "" or not token:
            raise ClientInputError("Missing endpoint, body, or token")

        if isinstance(body, str):
            try:
                body = json.loads(body)
            except ValueError:
                raise ClientInputError("Invalid JSON body") from None
        if not isinstance(body, dict):
            raise ClientInputError("Invalid JSON body: expected a JSON object")

        max_pages = settings.DEFAULT_MAX_PAGES if max_pages is None else max_pages
        if max_pages < 0:
            raise ClientInputError("maxPages must be >= 0")

        return cls(
            endpoint=endpoint,
            token=token,
            body=body,
            max_pages=max_pages,
            delay_ms=settings.DEFAULT_DELAY_MS if delay_ms is None else delay_ms,
        )


@dataclass(slots=True, frozen=True)
class ProgressEvent:
    message: str

    def to_dict(self) -> dict[str, Any]:
        return {"type": "progress", "message": self.message}


@dataclass(slots=True, frozen=True)
class ErrorEvent:
    error: str

    def to_dict(self) -> dict[str, Any]:
        return {"type": "error", "error": self.error}


@dataclass(slots=True, frozen=True)
class CompleteEvent:
    data: list[Any]
    total: int

    def to_dict(self) -> dict[str, Any]:
        return {"type": "complete", "data": self.data, "total": self.total}


Event = ProgressEvent | ErrorEvent | CompleteEvent


@dataclass(slots=True)
class PaginationSession:
    """Cursor and accumulator owned by a single /api/fetch request."""

    template: dict[str, Any]
    offset: int
    limit: int
    max_pages: int
    page: int = 0
    results: list[Any] = field(default_factory=list)

    @property
    def total(self) -> int:
        return len(self.results)

    def page_body(self) -> dict[str, Any]:
        return {**self.template, "offset": self.offset, "limit": self.limit}

    def record(self, items: list[Any]) -> None:
        self.results.extend(items)

    def is_last_page(self, count: int) -> bool:
        return count < self.limit

    def at_page_cap(self) -> bool:
        return self.page >= self.max_pages

    def advance(self) -> None:
        self.offset += self.limit


# ==== helpers ====


def extract_items(payload: Any) -> list[Any]:
    """Normalize an upstream page payload to its list of items."""
    if payload is None:
        raise ValueError("upstream returned JSON null")
    if isinstance(payload, list):
        return payload
    if isinstance(payload, dict):
        for name in PAGE_FIELDS:
            value = payload.get(name)
            if isinstance(value, list):
                return value
    return [payload]


def _reject_constant(name: str) -> Any:
    raise ValueError(f"upstream returned non-standard JSON constant {name}")


def _cursor_int(body: dict[str, Any], name: str, default: int, *, minimum: int) -> int:
    value = body.get(name) or default
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    if isinstance(value, bool) or not isinstance(value, int) or value < minimum:
        raise ClientInputError(f"body.{name} must be an integer >= {minimum}")
    return value


# ==== Service ====


class Paginator:
    """Sequential offset/limit pagination over an injected page fetcher."""

    def __init__(
        self,
        fetcher: PageFetcherPort,
        *,
        default_limit: int = settings.DEFAULT_LIMIT,
        unlimited_pages_cap: int = settings.UNLIMITED_PAGES_CAP,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ) -> None:
        self.fetcher = fetcher
        self.default_limit = default_limit
        self.unlimited_pages_cap = unlimited_pages_cap
        self.sleep = sleep

    def open_session(self, req: FetchRequestDTO) -> PaginationSession:
        return PaginationSession(
            template=req.body,
            offset=_cursor_int(req.body, "offset", 0, minimum=0),
            limit=_cursor_int(req.body, "limit", self.default_limit, minimum=1),
            max_pages=self.unlimited_pages_cap if req.max_pages == 0 else req.max_pages,
        )

    async def _fetch_page(self, req: FetchRequestDTO, session: PaginationSession) -> list[Any]:
        status, text = await self.fetcher.post_json(
            req.endpoint, token=req.token, payload=session.page_body()
        )
        if not 200 <= status < 300:
            raise UpstreamHTTPError(status, text)
        return extract_items(json.loads(text, parse_constant=_reject_constant))

    @staticmethod
    async def _client_gone(
        is_disconnected: Callable[[], Awaitable[bool]] | None,
        req: FetchRequestDTO,
        session: PaginationSession,
    ) -> bool:
        if is_disconnected is None or not await is_disconnected():
            return False
        LOG.info(
            "fetch.client_disconnected",
            extra={"extra": {"endpoint": req.endpoint, "page": session.page}},
        )
        return True

    async def run(
        self,
        req: FetchRequestDTO,
        *,
        session: PaginationSession | None = None,
        is_disconnected: Callable[[], Awaitable[bool]] | None = None,
    ) -> AsyncIterator[Event]:
        """
        Yield progress events page by page, then exactly one terminal event:
        CompleteEvent on success or ErrorEvent on the first failure.
        Stops silently when is_disconnected() reports the caller has gone.
        """
        session = session or self.open_session(req)
        LOG.info(
            "fetch.start",
            extra={
                "extra": {
                    "endpoint": req.endpoint,
                    "offset": session.offset,
                    "limit": session.limit,
                    "max_pages": session.max_pages,
                }
            },
        )

        try:
            while True:
                if await self._client_gone(is_disconnected, req, session):
                    return

                session.page += 1
                yield ProgressEvent(f"Fetching page {session.page} (offset: {session.offset})...")

                items = await self._fetch_page(req, session)
                session.record(items)
                LOG.info(
                    "fetch.page",
                    extra={"extra": {"page": session.page, "count": len(items), "total": session.total}},
                )
                yield ProgressEvent(
                    f"Page {session.page} fetched: {len(items)} items (total: {session.total})"
                )

                if session.is_last_page(len(items)):
                    break
                if session.at_page_cap():
                    yield ProgressEvent(f"Reached max pages limit ({session.max_pages})")
                    break

                session.advance()
                if req.delay_ms > 0:
                    if await self._client_gone(is_disconnected, req, session):
                        return
                    yield ProgressEvent(f"Waiting {req.delay_ms}ms...")
                    await self.sleep(req.delay_ms / 1000.0)
        except UpstreamHTTPError as e:
            LOG.warning(
                "fetch.upstream_error",
                extra={"extra": {"endpoint": req.endpoint, "page": session.page, "status": e.status}},
            )
            yield ErrorEvent(str(e))
            return
        except Exception as e:
            LOG.warning(
                "fetch.failed",
                extra={
                    "extra": {
                        "endpoint": req.endpoint,
                        "page": session.page,
                        "error": type(e).__name__,
                        "detail": str(e),
                    }
                },
                exc_info=True,
            )
            yield ErrorEvent(str(e) or type(e).__name__)
            return

        LOG.info("fetch.complete", extra={"extra": {"pages": session.page, "total": session.total}})
        yield ProgressEvent(f"Done! Total items fetched: {session.total}")
        yield CompleteEvent(data=session.results, total=session.total)
