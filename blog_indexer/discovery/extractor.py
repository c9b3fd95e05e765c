"""Permalink extraction from raw blog markup."""

import logging
import re
from typing import List, Pattern, Sequence, Set
from urllib.parse import urlparse

from blog_indexer.models.candidate import CandidateItem, SourceKind

logger = logging.getLogger(__name__)

# Applied in order; first-seen order across all rules is preserved
PERMALINK_PATTERNS: Sequence[Pattern[str]] = (
    # Dated post permalinks: /2024/05/some-post.html
    re.compile(r'href="([^"]*/[0-9]{4}/[0-9]{2}/[^"]*\.html)"'),
    # Static pages: /p/about.html
    re.compile(r'href="([^"]*/p/[^"]*\.html)"'),
    # Anchors pointing at dated paths without the suffix in the same attribute form
    re.compile(r'<a[^>]*href="([^"]*/[0-9]{4}/[0-9]{2}/[^"]*)"[^>]*>'),
)

EXCLUDED_PATTERNS: Sequence[Pattern[str]] = (
    re.compile(r"/search(?:[/?]|$)"),
    re.compile(r"/feeds/"),
    re.compile(r"[?&](?:showComment|m)="),
    re.compile(r"#"),
)

CONTENT_SUFFIX = ".html"


def _origin(base_url: str) -> str:
    parsed = urlparse(base_url)
    return f"{parsed.scheme}://{parsed.netloc}"


def resolve_url(raw: str, base_url: str) -> str:
    """Resolve a site-relative URL (``/path``) against the origin of ``base_url``."""
    if raw.startswith("//"):
        return f"{urlparse(base_url).scheme}:{raw}"
    if raw.startswith("/"):
        return _origin(base_url) + raw
    return raw


def is_content_url(url: str) -> bool:
    """Check that a resolved URL is an absolute http(s) content page."""
    parsed = urlparse(url)
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        return False
    if any(pattern.search(url) for pattern in EXCLUDED_PATTERNS):
        return False
    return parsed.path.endswith(CONTENT_SUFFIX)


def _extract(markup: str, base_url: str) -> List[CandidateItem]:
    items: List[CandidateItem] = []
    seen: Set[str] = set()

    for pattern in PERMALINK_PATTERNS:
        for match in pattern.finditer(markup):
            url = resolve_url(match.group(1).strip(), base_url)
            if url in seen or not is_content_url(url):
                continue
            seen.add(url)
            items.append(CandidateItem(url=url, source_kind=SourceKind.SCRAPED))

    return items


def extract_urls(markup: str, base_url: str) -> List[CandidateItem]:
    """
    Extract deduplicated absolute content URLs from page markup.

    Never raises: a parse error is logged at warning level and yields an
    empty list. Output order is discovery order, not publication order.

    Args:
        markup: Raw page markup
        base_url: URL the markup was fetched from, used for relative links

    Returns:
        List of scraped candidate items
    """
    try:
        items = _extract(markup, base_url)
    except Exception as e:
        logger.warning(f"Failed to extract permalinks from {base_url}: {e}")
        return []

    logger.debug(f"Extracted {len(items)} permalinks from {base_url}")
    return items
