#!/usr/bin/env python3
"""Test the aiohttp based downloader against a local test server."""

import asyncio
import sys

import pytest
from aiohttp import web
from aiohttp.test_utils import TestServer as LocalServer

from variantstream.downloader import SegmentDownloader
from variantstream.errors import TransportError
from variantstream.models import FetchConfig


async def _segment(request: web.Request) -> web.Response:
    return web.Response(body=b"\x47segment-bytes")


async def _echo_header(request: web.Request) -> web.Response:
    return web.Response(body=request.headers.get("X-Token", "").encode())


def _app() -> web.Application:
    app = web.Application()
    app.router.add_get("/seg.ts", _segment)
    app.router.add_get("/header", _echo_header)
    return app


def test_download() -> None:
    async def _run() -> bytes:
        async with LocalServer(_app()) as server:
            async with SegmentDownloader() as downloader:
                return await downloader.download(str(server.make_url("/seg.ts")))

    assert asyncio.run(_run()) == b"\x47segment-bytes"


def test_configured_headers_are_sent() -> None:
    async def _run() -> bytes:
        async with LocalServer(_app()) as server:
            async with SegmentDownloader(config=FetchConfig(headers={"X-Token": "abc"})) as downloader:
                return await downloader.download(str(server.make_url("/header")))

    assert asyncio.run(_run()) == b"abc"


def test_http_error_is_transport_error() -> None:
    async def _run():
        async with LocalServer(_app()) as server:
            url = str(server.make_url("/missing.ts"))
            async with SegmentDownloader() as downloader:
                with pytest.raises(TransportError) as info:
                    await downloader.download(url)
            return url, info.value

    url, error = asyncio.run(_run())
    assert error.url == url
    assert "404" in error.message


def test_download_requires_session() -> None:
    with pytest.raises(RuntimeError):
        asyncio.run(SegmentDownloader().download("http://localhost/seg.ts"))


if __name__ == "__main__":
    sys.exit(pytest.main([__file__]))
