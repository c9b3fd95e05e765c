"""Scoring and ordering of discovered candidates."""

import logging
import re
from datetime import datetime, timedelta, timezone
from typing import Iterable, List, Optional, Sequence

from blog_indexer.models.candidate import CandidateItem, PrioritizedItem

logger = logging.getLogger(__name__)

RECENT_AGE = timedelta(days=2)
WEEK_AGE = timedelta(days=7)

RECENT_SCORE = 30
WEEK_SCORE = 20
OLDER_SCORE = 10
KEYWORD_SCORE = 5
STRUCTURAL_SCORE = 3

# Static pages such as /p/about.html, distinct from dated post paths
STATIC_PAGE_PATTERN = re.compile(r"^https?://[^/]+/p/[^/]+\.html$")


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def recency_score(published_at: Optional[datetime], now: datetime) -> int:
    """Score by age; an unknown publication time falls in the lowest tier."""
    if published_at is None:
        return OLDER_SCORE
    age = _as_utc(now) - _as_utc(published_at)
    if age <= RECENT_AGE:
        return RECENT_SCORE
    if age <= WEEK_AGE:
        return WEEK_SCORE
    return OLDER_SCORE


def keyword_score(title: Optional[str], keywords: Iterable[str]) -> int:
    """+5 for every keyword found as a case-insensitive substring of the title."""
    if not title:
        return 0
    lowered = title.lower()
    return sum(KEYWORD_SCORE for keyword in keywords if keyword and keyword.lower() in lowered)


def structural_score(url: str, blog_url: Optional[str]) -> int:
    if blog_url and url.rstrip("/") == blog_url.rstrip("/"):
        return STRUCTURAL_SCORE
    if STATIC_PAGE_PATTERN.match(url):
        return STRUCTURAL_SCORE
    return 0


def score_item(
    item: CandidateItem,
    now: datetime,
    blog_url: Optional[str] = None,
    keywords: Sequence[str] = (),
) -> int:
    return (
        recency_score(item.published_at, now)
        + keyword_score(item.title, keywords)
        + structural_score(item.url, blog_url)
    )


def prioritize(
    items: Sequence[CandidateItem],
    max_count: int,
    now: datetime,
    blog_url: Optional[str] = None,
    keywords: Sequence[str] = (),
) -> List[PrioritizedItem]:
    """
    Score candidates, order them by descending score and keep the top ``max_count``.

    Pure function: the sort is stable, so equal scores keep their input order
    and identical inputs always give identical output.

    Args:
        items: Candidates in discovery order
        max_count: Submission budget for this run
        now: Reference time for recency scoring
        blog_url: Canonical blog root, which earns the structural bonus
        keywords: Title keywords worth a bonus

    Returns:
        At most ``max_count`` prioritized items
    """
    if max_count <= 0:
        return []

    scored = [
        PrioritizedItem(item=item, priority_score=score_item(item, now, blog_url, keywords))
        for item in items
    ]
    scored.sort(key=lambda p: p.priority_score, reverse=True)
    selected = scored[:max_count]

    logger.debug(f"Prioritized {len(items)} candidates, selected {len(selected)}")
    return selected
