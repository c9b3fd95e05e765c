"""Exception types raised across the discovery and submission pipeline."""

from typing import Optional


class IndexerError(Exception):
    """Base class for all blog indexer errors."""


class ConfigurationError(IndexerError):
    """Raised when the resolved configuration cannot be used."""


class SourceUnavailable(IndexerError):
    """A feed or page fetch failed (timeout, HTTP error, unparseable payload)."""

    def __init__(self, url: str, reason: str):
        self.url = url
        self.reason = reason
        super().__init__(f"{url}: {reason}")


class FeedUnavailable(SourceUnavailable):
    """The structured feed could not be fetched or parsed."""


class PageUnavailable(SourceUnavailable):
    """The blog page could not be fetched."""


class IndexingApiError(IndexerError):
    """Error response returned by the indexing service."""

    def __init__(self, message: str, status: Optional[int] = None):
        self.status = status
        self.message = message
        super().__init__(message if status is None else f"HTTP {status}: {message}")


class CriticalPipelineFailure(IndexerError):
    """Unanticipated failure that ended a run before it could complete."""
