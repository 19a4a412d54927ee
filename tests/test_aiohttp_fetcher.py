# /tests/test_aiohttp_fetcher.py
from __future__ import annotations
import json

import pytest
from aiohttp import web
from aiohttp.test_utils import TestServer as UpstreamServer

from postino.adapters.http.aiohttp_fetcher import AiohttpFetcher, ResponseTooLarge


async def _echo(request: web.Request) -> web.Response:
    body = await request.json()
    return web.json_response(
        {"auth": request.headers.get("Authorization"), "content_type": request.content_type, "body": body}
    )


async def _fail(request: web.Request) -> web.Response:
    return web.Response(status=503, text="maintenance")


async def _big(request: web.Request) -> web.Response:
    return web.Response(text="x" * 4096)


def _make_app() -> web.Application:
    app = web.Application()
    app.router.add_post("/echo", _echo)
    app.router.add_post("/fail", _fail)
    app.router.add_post("/big", _big)
    return app


@pytest.mark.asyncio
async def test_posts_json_with_bearer_token() -> None:
    fetcher = AiohttpFetcher(timeout_seconds=5)
    async with UpstreamServer(_make_app()) as server:
        try:
            status, text = await fetcher.post_json(
                str(server.make_url("/echo")), token="abc123", payload={"offset": 0, "limit": 5}
            )
        finally:
            await fetcher.close()

    assert status == 200
    echoed = json.loads(text)
    assert echoed["auth"] == "Bearer abc123"
    assert echoed["content_type"] == "application/json"
    assert echoed["body"] == {"offset": 0, "limit": 5}


@pytest.mark.asyncio
async def test_non_success_status_is_returned_not_raised() -> None:
    fetcher = AiohttpFetcher(timeout_seconds=5)
    async with UpstreamServer(_make_app()) as server:
        try:
            status, text = await fetcher.post_json(str(server.make_url("/fail")), token="t", payload={})
        finally:
            await fetcher.close()

    assert (status, text) == (503, "maintenance")


@pytest.mark.asyncio
async def test_oversized_response_raises() -> None:
    fetcher = AiohttpFetcher(timeout_seconds=5, max_bytes=1024)
    async with UpstreamServer(_make_app()) as server:
        try:
            with pytest.raises(ResponseTooLarge):
                await fetcher.post_json(str(server.make_url("/big")), token="t", payload={})
        finally:
            await fetcher.close()
