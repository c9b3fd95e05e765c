"""Candidate discovery with feed-first, scrape-second fallback."""

import logging
from typing import List, Optional

from blog_indexer.discovery.extractor import extract_urls
from blog_indexer.discovery.feed_reader import FeedReader
from blog_indexer.discovery.page_fetcher import PageFetcher
from blog_indexer.exceptions import FeedUnavailable, PageUnavailable, SourceUnavailable
from blog_indexer.models.candidate import CandidateItem

logger = logging.getLogger(__name__)


class CandidateSource:
    """
    Produces one unified candidate list per call.

    The feed is tried first. Scraping the blog page is attempted when the
    feed is unavailable or returned nothing; feed and scraped items are
    never mixed in one result.
    """

    def __init__(
        self,
        feed_reader: FeedReader,
        page_fetcher: PageFetcher,
        scrape_limit: Optional[int] = 20,
        prometheus_exporter = None,
    ):
        self.feed_reader = feed_reader
        self.page_fetcher = page_fetcher
        self.scrape_limit = scrape_limit
        self.prometheus_exporter = prometheus_exporter

    async def discover(self, feed_url: str, blog_url: str) -> List[CandidateItem]:
        """
        Discover candidate URLs for ``blog_url``.

        Args:
            feed_url: Primary structured feed URL
            blog_url: Blog page scraped when the feed yields nothing

        Returns:
            Candidate items; empty when neither path found anything
        """
        logger.info(f"Checking for new posts via feed {feed_url}")
        try:
            items = await self.feed_reader.parse_feed(feed_url)
        except FeedUnavailable as e:
            logger.warning(f"Feed unavailable, falling back to page scraping: {e}")
            items = []

        if items:
            self._record(items)
            return items

        logger.info(f"Feed gave no posts, scraping {blog_url}")
        items = await self.scrape(blog_url)
        self._record(items)
        return items

    async def scrape(self, blog_url: str) -> List[CandidateItem]:
        """Fetch the blog page and extract permalinks; failures yield an empty list."""
        try:
            markup = await self._fetch_page(blog_url)
        except PageUnavailable as e:
            logger.warning(f"Blog page unavailable: {e}")
            return []

        items = extract_urls(markup, blog_url)
        if self.scrape_limit is not None:
            items = items[:self.scrape_limit]
        logger.info(f"Found {len(items)} posts via page scraping")
        return items

    async def _fetch_page(self, blog_url: str) -> str:
        try:
            return await self.page_fetcher.fetch_text(blog_url)
        except SourceUnavailable as e:
            raise PageUnavailable(blog_url, e.reason) from e

    def _record(self, items: List[CandidateItem]) -> None:
        if self.prometheus_exporter:
            for item in items:
                self.prometheus_exporter.record_candidate_discovered(item.source_kind.value)
