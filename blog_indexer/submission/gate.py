"""Per-URL submission with outcome classification and transient retry."""

import logging
import time
from typing import Optional

from blog_indexer.config import RetryConfig
from blog_indexer.context import SessionContext
from blog_indexer.indexing_client import URL_UPDATED, IndexingClient
from blog_indexer.models.submission import SubmissionOutcome, SubmissionResult
from blog_indexer.submission.classifier import ErrorClass, classify_error, error_detail
from blog_indexer.submission.error_handler import with_transient_retry

logger = logging.getLogger(__name__)


class SubmissionGate:
    """
    Submits one URL at a time and reports a single terminal result.

    Remote failures are classified by their text: quota exhaustion and
    "already processed" are terminal, transport problems are retried with a
    fresh client up to ``retry.max_attempts`` times, anything else fails.
    """

    def __init__(
        self,
        client: IndexingClient,
        context: SessionContext,
        retry: Optional[RetryConfig] = None,
        prometheus_exporter = None,
    ):
        """
        Initialize the submission gate.

        Args:
            client: Indexing service client
            context: Session context holding the dedup set
            retry: Retry policy for transient failures
            prometheus_exporter: Optional Prometheus exporter for metrics
        """
        self.client = client
        self.context = context
        self.retry = retry or RetryConfig()
        self.prometheus_exporter = prometheus_exporter

    async def _refresh_client(self, error: BaseException) -> None:
        await self.client.reset()

    async def submit(self, url: str, notification_type: str = URL_UPDATED) -> SubmissionResult:
        """
        Submit ``url`` to the indexing service.

        Args:
            url: Absolute URL to submit
            notification_type: ``URL_UPDATED`` or ``URL_DELETED``

        Returns:
            The terminal SubmissionResult for this URL
        """
        if self.context.already_submitted(url):
            logger.info(f"Already submitted in this session, skipping: {url}")
            return self._finish(SubmissionResult(url, SubmissionOutcome.SKIPPED, "already submitted in this session"))

        attempts = 0

        @with_transient_retry(
            max_attempts=self.retry.max_attempts,
            initial_backoff=self.retry.initial_backoff_sec,
            max_backoff=self.retry.max_backoff_sec,
            backoff_factor=self.retry.backoff_factor,
            on_retry=self._refresh_client,
            prometheus_exporter=self.prometheus_exporter,
        )
        async def attempt():
            nonlocal attempts
            attempts += 1
            return await self.client.publish(url, notification_type)

        logger.info(f"Submitting URL: {url}")
        started = time.time()
        try:
            await attempt()
        except Exception as e:
            detail = error_detail(e)
            result = self._classify_failure(url, detail, attempts)
        else:
            logger.info(f"Successfully submitted: {url}")
            self.context.mark_submitted(url)
            result = SubmissionResult(url, SubmissionOutcome.SUBMITTED, attempts=attempts)
        finally:
            if self.prometheus_exporter:
                self.prometheus_exporter.observe_request_duration(time.time() - started)

        return self._finish(result)

    def _classify_failure(self, url: str, detail: str, attempts: int) -> SubmissionResult:
        error_class = classify_error(detail)

        if error_class is ErrorClass.ALREADY_PROCESSED:
            logger.info(f"Already processed by the service: {url}")
            return SubmissionResult(url, SubmissionOutcome.ALREADY_INDEXED, detail, attempts)

        if error_class is ErrorClass.QUOTA:
            logger.warning(f"Quota exhausted while submitting {url}: {detail}")
            return SubmissionResult(url, SubmissionOutcome.QUOTA_EXCEEDED, detail, attempts)

        if error_class is ErrorClass.TRANSIENT:
            detail = f"{detail} (gave up after {attempts} attempts)"

        logger.error(f"Error submitting URL {url}: {detail}")
        return SubmissionResult(url, SubmissionOutcome.FAILED, detail, attempts)

    def _finish(self, result: SubmissionResult) -> SubmissionResult:
        if self.prometheus_exporter:
            self.prometheus_exporter.record_submission(result.outcome.value)
            self.prometheus_exporter.set_session_submitted(len(self.context.submitted_urls))
        return result
