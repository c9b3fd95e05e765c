"""HTTP fetcher shared by the feed reader and the page scraper."""

import asyncio
import logging
from typing import Awaitable, Callable, Optional, TypeVar

import aiohttp

from blog_indexer.config import HttpConfig
from blog_indexer.exceptions import SourceUnavailable

logger = logging.getLogger(__name__)

T = TypeVar("T")


class PageFetcher:
    """
    Fetches remote text documents with a bounded timeout.

    Every failure, including a body that cannot be decoded, is raised as
    ``SourceUnavailable`` so that callers only deal with one error type.
    """

    def __init__(self, config: HttpConfig, session: Optional[aiohttp.ClientSession] = None):
        self.config = config
        self._session = session
        self._owns_session = session is None

    async def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(
                timeout=aiohttp.ClientTimeout(total=self.config.fetch_timeout_sec),
                headers={"User-Agent": self.config.user_agent},
            )
            self._owns_session = True
        return self._session

    async def fetch_text(self, url: str) -> str:
        """
        Fetch ``url`` and return the response body as text.

        Bytes that do not match the declared charset are replaced rather than
        failing the fetch.

        Raises:
            SourceUnavailable: If the fetch fails for any reason
        """
        return await self._fetch(url, lambda response: response.text(errors="replace"))

    async def fetch_bytes(self, url: str) -> bytes:
        """
        Fetch ``url`` and return the raw response body.

        Raises:
            SourceUnavailable: If the fetch fails for any reason
        """
        return await self._fetch(url, lambda response: response.read())

    async def _fetch(self, url: str, read: Callable[[aiohttp.ClientResponse], Awaitable[T]]) -> T:
        session = await self._get_session()
        logger.debug(f"Fetching {url}")
        try:
            async with session.get(url) as response:
                if response.status >= 400:
                    raise SourceUnavailable(url, f"HTTP {response.status}")
                return await read(response)
        except (UnicodeDecodeError, LookupError) as e:
            raise SourceUnavailable(url, f"undecodable body: {e}") from e
        except asyncio.TimeoutError as e:
            raise SourceUnavailable(url, f"timed out after {self.config.fetch_timeout_sec}s") from e
        except aiohttp.ClientError as e:
            raise SourceUnavailable(url, str(e) or type(e).__name__) from e

    async def close(self) -> None:
        """Close the underlying HTTP session if this fetcher created it."""
        if self._session is not None and self._owns_session and not self._session.closed:
            await self._session.close()
        self._session = None
