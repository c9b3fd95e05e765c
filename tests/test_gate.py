"""Tests for the submission gate."""

import unittest
from unittest.mock import AsyncMock, MagicMock

from blog_indexer.config import RetryConfig
from blog_indexer.context import SessionContext
from blog_indexer.exceptions import IndexingApiError
from blog_indexer.indexing_client import URL_DELETED, URL_UPDATED, IndexingClient
from blog_indexer.models.submission import SubmissionOutcome
from blog_indexer.submission.gate import SubmissionGate

URL = "https://example.blogspot.com/2024/05/post.html"


class TestSubmissionGate(unittest.IsolatedAsyncioTestCase):
    """Test cases for the SubmissionGate class."""

    def setUp(self):
        self.client = MagicMock(spec=IndexingClient)
        self.client.publish = AsyncMock(return_value={"urlNotificationMetadata": {"url": URL}})
        self.client.reset = AsyncMock()
        self.context = SessionContext()
        self.prometheus_exporter = MagicMock()
        # No backoff sleeps in tests
        self.retry = RetryConfig(max_attempts=3, initial_backoff_sec=0)
        self.gate = SubmissionGate(
            self.client,
            self.context,
            retry=self.retry,
            prometheus_exporter=self.prometheus_exporter,
        )

    async def test_submit_success(self):
        result = await self.gate.submit(URL)

        self.assertIs(result.outcome, SubmissionOutcome.SUBMITTED)
        self.assertEqual(result.attempts, 1)
        self.client.publish.assert_awaited_once_with(URL, URL_UPDATED)
        self.assertIn(URL, self.context.submitted_urls)
        self.prometheus_exporter.record_submission.assert_called_once_with("submitted")
        self.prometheus_exporter.set_session_submitted.assert_called_once_with(1)
        self.prometheus_exporter.observe_request_duration.assert_called_once()

    async def test_transient_twice_then_success(self):
        """Two transient failures and a success give one SUBMITTED result after three calls."""
        self.client.publish.side_effect = [
            ConnectionResetError("Connection reset by peer"),
            IndexingApiError("SSL handshake failed", status=None),
            {},
        ]

        result = await self.gate.submit(URL)

        self.assertIs(result.outcome, SubmissionOutcome.SUBMITTED)
        self.assertEqual(result.attempts, 3)
        self.assertEqual(self.client.publish.await_count, 3)
        self.assertEqual(self.client.reset.await_count, 2)

    async def test_transient_exhausted(self):
        self.client.publish.side_effect = ConnectionResetError("Connection reset by peer")

        result = await self.gate.submit(URL)

        self.assertIs(result.outcome, SubmissionOutcome.FAILED)
        self.assertEqual(result.attempts, 3)
        self.assertIn("gave up after 3 attempts", result.detail)
        self.assertEqual(self.client.publish.await_count, 3)
        self.assertNotIn(URL, self.context.submitted_urls)

    async def test_quota_exceeded(self):
        self.client.publish.side_effect = IndexingApiError(
            "RESOURCE_EXHAUSTED Quota exceeded for quota metric 'Publish requests'", status=429
        )

        result = await self.gate.submit(URL)

        self.assertIs(result.outcome, SubmissionOutcome.QUOTA_EXCEEDED)
        self.client.publish.assert_awaited_once()
        self.client.reset.assert_not_called()

    async def test_already_processed(self):
        self.client.publish.side_effect = IndexingApiError("URL already processed", status=400)

        result = await self.gate.submit(URL)

        self.assertIs(result.outcome, SubmissionOutcome.ALREADY_INDEXED)
        self.assertTrue(result.is_success)
        self.client.publish.assert_awaited_once()

    async def test_other_error_fails_without_retry(self):
        self.client.publish.side_effect = IndexingApiError(
            "PERMISSION_DENIED Permission denied. Failed to verify the URL ownership.", status=403
        )

        result = await self.gate.submit(URL)

        self.assertIs(result.outcome, SubmissionOutcome.FAILED)
        self.assertIn("PERMISSION_DENIED", result.detail)
        self.assertEqual(result.attempts, 1)
        self.client.publish.assert_awaited_once()

    async def test_session_dedup_skips_remote_call(self):
        await self.gate.submit(URL)
        self.client.publish.reset_mock()

        result = await self.gate.submit(URL)

        self.assertIs(result.outcome, SubmissionOutcome.SKIPPED)
        self.client.publish.assert_not_called()

    async def test_dedup_disabled(self):
        gate = SubmissionGate(self.client, SessionContext(dedup_enabled=False), retry=self.retry)

        await gate.submit(URL)
        result = await gate.submit(URL)

        self.assertIs(result.outcome, SubmissionOutcome.SUBMITTED)
        self.assertEqual(self.client.publish.await_count, 2)

    async def test_delete_notification(self):
        await self.gate.submit(URL, URL_DELETED)

        self.client.publish.assert_awaited_once_with(URL, URL_DELETED)


if __name__ == "__main__":
    unittest.main()
