"""Tests for the page fetcher."""

import asyncio
import unittest
from unittest.mock import AsyncMock, MagicMock

import aiohttp
from aiohttp import web
from aiohttp import test_utils

from blog_indexer.config import HttpConfig
from blog_indexer.discovery.page_fetcher import PageFetcher
from blog_indexer.exceptions import SourceUnavailable

URL = "https://example.blogspot.com/"


def mock_session(status=200, text="<html></html>", error=None):
    response = MagicMock()
    response.status = status
    response.text = AsyncMock(return_value=text)

    context = MagicMock()
    if error is not None:
        context.__aenter__ = AsyncMock(side_effect=error)
    else:
        context.__aenter__ = AsyncMock(return_value=response)
    context.__aexit__ = AsyncMock(return_value=False)

    session = MagicMock()
    session.closed = False
    session.get = MagicMock(return_value=context)
    session.close = AsyncMock()
    return session


class TestPageFetcher(unittest.IsolatedAsyncioTestCase):
    """Test cases for the PageFetcher class."""

    async def test_fetch_text(self):
        session = mock_session(text="<html>ok</html>")
        fetcher = PageFetcher(HttpConfig(), session=session)

        text = await fetcher.fetch_text(URL)

        self.assertEqual(text, "<html>ok</html>")
        session.get.assert_called_once_with(URL)

    async def test_http_error_status(self):
        fetcher = PageFetcher(HttpConfig(), session=mock_session(status=404))

        with self.assertRaises(SourceUnavailable) as ctx:
            await fetcher.fetch_text(URL)

        self.assertEqual(ctx.exception.reason, "HTTP 404")

    async def test_timeout(self):
        fetcher = PageFetcher(HttpConfig(fetch_timeout_sec=10.0), session=mock_session(error=asyncio.TimeoutError()))

        with self.assertRaises(SourceUnavailable) as ctx:
            await fetcher.fetch_text(URL)

        self.assertEqual(ctx.exception.reason, "timed out after 10.0s")

    async def test_connection_error(self):
        error = aiohttp.ClientConnectionError("Cannot connect to host")
        fetcher = PageFetcher(HttpConfig(), session=mock_session(error=error))

        with self.assertRaises(SourceUnavailable) as ctx:
            await fetcher.fetch_text(URL)

        self.assertIn("Cannot connect", ctx.exception.reason)

    async def test_close_leaves_injected_session_open(self):
        session = mock_session()
        fetcher = PageFetcher(HttpConfig(), session=session)

        await fetcher.close()

        session.close.assert_not_called()


# Declared utf-8 but carries latin-1 and stray bytes
MISENCODED_PAGE = b'<a href="/2024/05/caf\xe9.html">Caf\xe9</a>\xff\xfe'


class TestPageFetcherEncoding(unittest.IsolatedAsyncioTestCase):
    """Fetches against a local server returning a body that does not match its charset."""

    async def asyncSetUp(self):
        async def handler(request):
            return web.Response(body=MISENCODED_PAGE, headers={"Content-Type": "text/html; charset=utf-8"})

        app = web.Application()
        app.router.add_get("/", handler)
        self.server = test_utils.TestServer(app)
        await self.server.start_server()
        self.fetcher = PageFetcher(HttpConfig(fetch_timeout_sec=5.0))

    async def asyncTearDown(self):
        await self.fetcher.close()
        await self.server.close()

    async def test_fetch_text_replaces_undecodable_bytes(self):
        text = await self.fetcher.fetch_text(str(self.server.make_url("/")))

        self.assertIn("/2024/05/caf\ufffd.html", text)

    async def test_fetch_bytes_returns_raw_body(self):
        body = await self.fetcher.fetch_bytes(str(self.server.make_url("/")))

        self.assertEqual(body, MISENCODED_PAGE)

    async def test_decode_error_becomes_source_unavailable(self):
        session = mock_session(error=UnicodeDecodeError("utf-8", b"\xe9", 0, 1, "invalid continuation byte"))
        fetcher = PageFetcher(HttpConfig(), session=session)

        with self.assertRaises(SourceUnavailable) as ctx:
            await fetcher.fetch_text(URL)

        self.assertIn("undecodable", ctx.exception.reason)


if __name__ == "__main__":
    unittest.main()
