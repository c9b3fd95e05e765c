"""Candidate URLs produced by discovery and ranked by the prioritizer."""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional


class SourceKind(str, Enum):
    """Where a candidate URL was discovered."""

    FEED = "feed"
    SCRAPED = "scraped"


@dataclass(frozen=True)
class CandidateItem:
    """
    A discovered URL eligible for submission.

    ``url`` is always absolute (http/https). Candidates are deduplicated by
    exact ``url`` string within one discovery pass.
    """

    url: str
    source_kind: SourceKind
    title: Optional[str] = None
    published_at: Optional[datetime] = None

    def __post_init__(self) -> None:
        if not self.url:
            raise ValueError("CandidateItem.url must not be empty")


@dataclass(frozen=True)
class PrioritizedItem:
    """A candidate with the score assigned by the prioritizer."""

    item: CandidateItem
    priority_score: int

    @property
    def url(self) -> str:
        return self.item.url

    def to_dict(self) -> Dict[str, Any]:
        return {
            "url": self.item.url,
            "title": self.item.title,
            "published_at": self.item.published_at.isoformat() if self.item.published_at else None,
            "source_kind": self.item.source_kind.value,
            "priority_score": self.priority_score,
        }
