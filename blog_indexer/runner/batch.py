"""Batch runner driving one discovery-to-submission pass."""

import asyncio
import logging
import time
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional, Sequence

from blog_indexer.config import Config
from blog_indexer.discovery.candidate_source import CandidateSource
from blog_indexer.exceptions import CriticalPipelineFailure
from blog_indexer.models.candidate import CandidateItem, PrioritizedItem
from blog_indexer.models.submission import BatchSummary, SubmissionOutcome
from blog_indexer.prioritizer import prioritize
from blog_indexer.submission.gate import SubmissionGate

logger = logging.getLogger(__name__)

Prioritizer = Callable[..., List[PrioritizedItem]]


class BatchRunner:
    """
    Runs the pipeline: discover, prioritize, then submit sequentially.

    Submissions happen strictly in prioritized order with a fixed delay
    between them. Quota exhaustion stops the batch; any unclassified
    exception is turned into a critical-failure summary instead of escaping.
    """

    def __init__(
        self,
        config: Config,
        candidate_source: CandidateSource,
        gate: SubmissionGate,
        prioritizer: Prioritizer = prioritize,
        prometheus_exporter = None,
        clock: Callable[[], datetime] = lambda: datetime.now(timezone.utc),
    ):
        """
        Initialize the batch runner.

        Args:
            config: Application configuration
            candidate_source: Discovery of candidate URLs
            gate: Per-URL submission gate
            prioritizer: Function ranking and truncating candidates
            prometheus_exporter: Optional Prometheus metrics exporter
            clock: Source of the reference time for prioritization
        """
        self.config = config
        self.candidate_source = candidate_source
        self.gate = gate
        self.prioritizer = prioritizer
        self.prometheus_exporter = prometheus_exporter
        self.clock = clock
        self.last_run_time = 0.0
        self.last_summary: Optional[BatchSummary] = None
        self.stats: Dict[str, int] = {
            "runs_completed": 0,
            "runs_with_submissions": 0,
            "runs_aborted": 0,
            "runs_failed": 0,
            "total_submitted": 0,
        }

    def select(self, items: Sequence[CandidateItem]) -> List[PrioritizedItem]:
        """Prioritize discovered items within this run's submission budget."""
        return self.prioritizer(
            items,
            self.config.max_urls_per_run,
            self.clock(),
            blog_url=self.config.blog_url,
            keywords=self.config.prioritizer.important_keywords,
        )

    async def _submit_all(self, selected: List[PrioritizedItem], summary: BatchSummary) -> None:
        delay = self.config.request_delay_sec

        for index, prioritized in enumerate(selected):
            result = await self.gate.submit(prioritized.url)
            summary.record(result)

            if result.outcome is SubmissionOutcome.QUOTA_EXCEEDED:
                summary.aborted_early = True
                summary.unprocessed = len(selected) - (index + 1)
                logger.warning(
                    f"Quota exhausted, stopping batch with {summary.unprocessed} URLs unprocessed"
                )
                return

            if delay > 0 and index < len(selected) - 1:
                await asyncio.sleep(delay)

    async def run(self) -> BatchSummary:
        """
        Run a single discovery-to-submission pass.

        Returns:
            Summary of the run; never raises for pipeline failures
        """
        run_start = time.time()
        self.last_run_time = run_start
        summary = BatchSummary()
        selected: List[PrioritizedItem] = []

        logger.info(f"Starting indexing run at {datetime.fromtimestamp(run_start, tz=timezone.utc).isoformat()}")

        try:
            items = await self.candidate_source.discover(
                self.config.resolved_feed_url, self.config.blog_url
            )
            summary.total_discovered = len(items)

            if not items:
                logger.info("No posts found to index")
                summary.nothing_to_do = True
            else:
                selected = self.select(items)
                logger.info(f"Selected {len(selected)} of {len(items)} discovered posts for submission")
                await self._submit_all(selected, summary)

        except Exception as e:
            failure = CriticalPipelineFailure(str(e) or type(e).__name__)
            logger.critical(f"Indexing run failed: {failure}", exc_info=e)
            summary.critical_failure = True
            summary.error = str(failure)
            summary.unprocessed = max(len(selected) - summary.total_attempted, 0)

        self._update_stats(summary)
        self.last_summary = summary
        log_summary(summary, time.time() - run_start)
        return summary

    def _update_stats(self, summary: BatchSummary) -> None:
        self.stats["runs_completed"] += 1
        submitted = summary.count(SubmissionOutcome.SUBMITTED)
        self.stats["total_submitted"] += submitted
        if submitted:
            self.stats["runs_with_submissions"] += 1
        if summary.aborted_early:
            self.stats["runs_aborted"] += 1
        if summary.critical_failure:
            self.stats["runs_failed"] += 1

        if self.prometheus_exporter:
            if summary.critical_failure:
                status = "critical"
            elif summary.nothing_to_do:
                status = "nothing_to_do"
            elif summary.aborted_early:
                status = "aborted"
            else:
                status = "ok"
            self.prometheus_exporter.record_run(status)

    def get_metrics(self) -> Dict[str, Any]:
        """
        Get current metrics for monitoring.

        Returns:
            Dictionary of metrics
        """
        return {
            **self.stats,
            "last_run_time": datetime.fromtimestamp(self.last_run_time, tz=timezone.utc).isoformat() if self.last_run_time > 0 else None,
            "session_submitted": len(self.gate.context.submitted_urls),
            "last_summary": self.last_summary.to_dict() if self.last_summary else None,
        }


def log_summary(summary: BatchSummary, duration: float) -> None:
    """Log the end-of-run summary."""
    if summary.critical_failure:
        logger.critical(f"Run ended with a critical failure after {duration:.2f}s: {summary.error}")
    logger.info("Indexing summary:")
    logger.info(f"  Newly submitted: {summary.count(SubmissionOutcome.SUBMITTED)}")
    logger.info(f"  Already indexed: {summary.count(SubmissionOutcome.ALREADY_INDEXED)}")
    logger.info(f"  Skipped (session): {summary.count(SubmissionOutcome.SKIPPED)}")
    logger.info(f"  Failed: {summary.count(SubmissionOutcome.FAILED)}")
    logger.info(f"  Quota exceeded: {summary.count(SubmissionOutcome.QUOTA_EXCEEDED)}")
    logger.info(f"  Total attempted: {summary.total_attempted} of {summary.total_discovered} discovered")
    if summary.aborted_early:
        logger.warning(f"  Stopped early on quota exhaustion, {summary.unprocessed} unprocessed")
    logger.info(f"Run completed in {duration:.2f}s")
