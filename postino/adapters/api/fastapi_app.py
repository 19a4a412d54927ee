# /postino/adapters/api/fastapi_app.py
from __future__ import annotations
import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any, Optional, Union

from fastapi import Depends, FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import FileResponse, JSONResponse, StreamingResponse
from pydantic import BaseModel, ValidationError

from postino.config import settings
from postino.adapters.api.sse import SSE_HEADERS, event_stream
from postino.adapters.http.aiohttp_fetcher import AiohttpFetcher
from postino.adapters.system.logging_cfg import configure_logger
from postino.domain.errors import ClientInputError
from postino.domain.paginator import FetchRequestDTO, Paginator

LOG = logging.getLogger("adapter.api")
configure_logger(settings.LOG_LEVEL)

_fetcher = AiohttpFetcher()


@asynccontextmanager
async def lifespan(_: FastAPI) -> AsyncIterator[None]:
    yield
    await _fetcher.close()


app = FastAPI(title="postino", lifespan=lifespan)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_methods=["*"],
    allow_headers=["*"],
)


class FetchRequestModel(BaseModel):
    endpoint: Optional[str] = None
    body: Optional[Union[dict[str, Any], str]] = None
    token: Optional[str] = None
    maxPages: Optional[int] = None
    delay: Optional[int] = None


def get_paginator() -> Paginator:
    return Paginator(_fetcher)


def _client_error(message: str) -> JSONResponse:
    LOG.info("fetch.rejected", extra={"extra": {"error": message}})
    return JSONResponse(status_code=400, content={"error": message})


def _describe(e: ValidationError) -> str:
    return "; ".join(
        f"{'.'.join(str(p) for p in err['loc']) or 'request'}: {err['msg']}" for err in e.errors()
    )


@app.get("/health")
def health() -> dict:
    return {"status": "ok"}


@app.get("/")
def index() -> FileResponse:
    page = Path(settings.STATIC_DIR) / "index.html"
    if not page.is_file():
        raise HTTPException(status_code=404, detail="index.html not found")
    return FileResponse(page)


@app.post("/api/fetch", response_model=None)
async def api_fetch(
    request: Request, paginator: Paginator = Depends(get_paginator)
) -> StreamingResponse | JSONResponse:
    try:
        raw = await request.json()
    except ValueError:
        return _client_error("Request body must be JSON")

    try:
        payload = FetchRequestModel.model_validate(raw)
        req = FetchRequestDTO.from_fields(
            endpoint=payload.endpoint,
            body=payload.body,
            token=payload.token,
            max_pages=payload.maxPages,
            delay_ms=payload.delay,
        )
        session = paginator.open_session(req)
    except ValidationError as e:
        return _client_error(_describe(e))
    except ClientInputError as e:
        return _client_error(str(e))

    LOG.info("fetch.accepted", extra={"extra": {"endpoint": req.endpoint}})
    events = paginator.run(req, session=session, is_disconnected=request.is_disconnected)
    return StreamingResponse(
        event_stream(events), media_type="text/event-stream", headers=SSE_HEADERS
    )
