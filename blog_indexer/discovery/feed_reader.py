"""Structured feed reading (RSS / Atom) via feedparser."""

import calendar
import logging
from datetime import datetime, timezone
from typing import Any, List, Optional
from urllib.parse import urlparse

import feedparser

from blog_indexer.discovery.page_fetcher import PageFetcher
from blog_indexer.exceptions import FeedUnavailable, SourceUnavailable
from blog_indexer.models.candidate import CandidateItem, SourceKind

logger = logging.getLogger(__name__)


def _entry_link(entry: Any) -> Optional[str]:
    """Pick the entry's alternate (HTML) link; Atom feeds list several links."""
    for link in entry.get("links", []) or []:
        if link.get("rel") == "alternate" and link.get("href"):
            return link["href"]
    return entry.get("link") or None


def _entry_published(entry: Any) -> Optional[datetime]:
    for key in ("published_parsed", "updated_parsed", "created_parsed"):
        ts = entry.get(key)
        if ts:
            try:
                return datetime.fromtimestamp(calendar.timegm(ts), tz=timezone.utc)
            except (ValueError, TypeError, OverflowError):
                logger.debug(f"Unparseable {key} on feed entry: {ts!r}")
    return None


def entries_to_candidates(parsed: Any) -> List[CandidateItem]:
    """
    Convert a ``feedparser.parse`` result into candidate items.

    Keeps feed order. Entries without an absolute http(s) link are dropped
    and duplicate links keep their first occurrence.
    """
    items: List[CandidateItem] = []
    seen = set()

    for entry in parsed.entries:
        link = _entry_link(entry)
        if not link or urlparse(link).scheme not in ("http", "https"):
            logger.debug(f"Skipping feed entry without usable link: {entry.get('title')!r}")
            continue
        if link in seen:
            continue
        seen.add(link)
        items.append(CandidateItem(
            url=link,
            source_kind=SourceKind.FEED,
            title=entry.get("title") or None,
            published_at=_entry_published(entry),
        ))

    return items


class FeedReader:
    """Reads a remote feed and shapes its entries into candidates."""

    def __init__(self, fetcher: PageFetcher):
        self.fetcher = fetcher

    async def parse_feed(self, feed_url: str) -> List[CandidateItem]:
        """
        Fetch and parse ``feed_url``.

        Raises:
            FeedUnavailable: If the fetch fails or the payload is not a feed
        """
        try:
            payload = await self.fetcher.fetch_bytes(feed_url)
        except SourceUnavailable as e:
            raise FeedUnavailable(feed_url, e.reason) from e

        # feedparser detects the charset from the XML prolog and BOM
        parsed = feedparser.parse(payload)
        if parsed.bozo and not parsed.entries:
            reason = str(parsed.get("bozo_exception") or "malformed feed")
            raise FeedUnavailable(feed_url, f"unparseable feed: {reason}")
        if not parsed.get("version") and not parsed.entries:
            raise FeedUnavailable(feed_url, "payload is not an RSS or Atom feed")

        items = entries_to_candidates(parsed)
        logger.info(f"Found {len(items)} posts via feed {feed_url}")
        return items
