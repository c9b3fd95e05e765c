"""Map opaque remote failures onto a closed set of error classes."""

from enum import Enum
from typing import Optional, Sequence


class ErrorClass(str, Enum):
    """Classification of a failed indexing call."""

    TRANSIENT = "transient"
    QUOTA = "quota"
    ALREADY_PROCESSED = "already_processed"
    OTHER = "other"


# Checked in this order; the first matching class wins
QUOTA_MARKERS: Sequence[str] = (
    "quota",
    "rate limit",
    "ratelimit",
    "rate_limit",
    "resource_exhausted",
    "resource has been exhausted",
    "too many requests",
    "http 429",
)

ALREADY_PROCESSED_MARKERS: Sequence[str] = (
    "already processed",
    "already been processed",
    "already submitted",
    "already indexed",
    "already exists",
)

TRANSIENT_MARKERS: Sequence[str] = (
    "ssl",
    "tls",
    "handshake",
    "decoder routines",
    "certificate verify",
    "eof occurred",
    "econnreset",
    "connection reset",
    "connection aborted",
    "connection refused",
    "server disconnected",
    "socket hang up",
    "broken pipe",
    "timeout",
    "timed out",
    "temporarily unavailable",
    "http 502",
    "http 503",
    "http 504",
)


def classify_error(detail: Optional[str]) -> ErrorClass:
    """
    Classify the raw error detail of a failed indexing call.

    Matching is case-insensitive substring search over the error text.
    """
    if not detail:
        return ErrorClass.OTHER
    text = detail.lower()
    if any(marker in text for marker in QUOTA_MARKERS):
        return ErrorClass.QUOTA
    if any(marker in text for marker in ALREADY_PROCESSED_MARKERS):
        return ErrorClass.ALREADY_PROCESSED
    if any(marker in text for marker in TRANSIENT_MARKERS):
        return ErrorClass.TRANSIENT
    return ErrorClass.OTHER


def error_detail(error: BaseException) -> str:
    """Text used for classification: exception type name plus its message."""
    message = str(error)
    name = type(error).__name__
    return f"{name}: {message}" if message else name
