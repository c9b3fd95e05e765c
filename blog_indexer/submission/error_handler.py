"""Bounded retry for indexing calls that fail transiently."""

import asyncio
import logging
from functools import wraps
from typing import Any, Awaitable, Callable, Optional, TypeVar, cast

from blog_indexer.submission.classifier import ErrorClass, classify_error, error_detail

logger = logging.getLogger(__name__)

T = TypeVar("T")
AsyncFunc = Callable[..., Awaitable[T]]
Classifier = Callable[[str], ErrorClass]
RetryHook = Callable[[BaseException], Awaitable[None]]


def with_transient_retry(
    max_attempts: int = 3,
    initial_backoff: float = 1.0,
    max_backoff: float = 8.0,
    backoff_factor: float = 2.0,
    classifier: Classifier = classify_error,
    on_retry: Optional[RetryHook] = None,
    prometheus_exporter = None,
) -> Callable[[AsyncFunc[T]], AsyncFunc[T]]:
    """
    Decorator for retrying async calls whose failures classify as transient.

    Every retry is a full re-attempt of the call. Non-transient failures are
    raised immediately; a transient failure on the last attempt is raised
    as-is so the caller can inspect the final error.

    Args:
        max_attempts: Total number of attempts, including the first one
        initial_backoff: Delay before the first retry in seconds (0 disables sleeping)
        max_backoff: Upper bound for the delay between attempts
        backoff_factor: Multiplier for the delay between attempts
        classifier: Maps error detail text to an ErrorClass
        on_retry: Optional coroutine run before each retry, e.g. to rebuild credentials
        prometheus_exporter: Optional Prometheus exporter for metrics

    Returns:
        Decorator function
    """
    def decorator(func: AsyncFunc[T]) -> AsyncFunc[T]:
        @wraps(func)
        async def wrapper(*args: Any, **kwargs: Any) -> T:
            attempt = 1
            backoff = initial_backoff

            while True:
                try:
                    return await func(*args, **kwargs)
                except Exception as e:
                    error_class = classifier(error_detail(e))
                    if prometheus_exporter:
                        prometheus_exporter.record_api_error(error_class.value)

                    if error_class is not ErrorClass.TRANSIENT:
                        raise

                    if attempt >= max_attempts:
                        logger.error(f"Max attempts ({max_attempts}) exceeded: {e}")
                        raise

                    logger.warning(
                        f"Transient error: {e}. "
                        f"Retrying in {backoff:.2f}s ({attempt}/{max_attempts})"
                    )
                    if on_retry is not None:
                        await on_retry(e)
                    if backoff > 0:
                        await asyncio.sleep(backoff)
                    attempt += 1
                    backoff = min(backoff * backoff_factor, max_backoff)

        return cast(AsyncFunc[T], wrapper)
    return decorator
