"""Wiring of the pipeline components and the one-shot entry point."""

from typing import Optional

from blog_indexer.config import Config
from blog_indexer.context import SessionContext
from blog_indexer.discovery.candidate_source import CandidateSource
from blog_indexer.discovery.feed_reader import FeedReader
from blog_indexer.discovery.page_fetcher import PageFetcher
from blog_indexer.indexing_client import IndexingClient
from blog_indexer.models.submission import BatchSummary
from blog_indexer.runner.batch import BatchRunner
from blog_indexer.submission.gate import SubmissionGate


class Pipeline:
    """
    Owns the network clients and the runner for one process.

    Use as an async context manager so HTTP sessions are closed on exit.
    """

    def __init__(
        self,
        config: Config,
        context: Optional[SessionContext] = None,
        prometheus_exporter = None,
    ):
        self.config = config
        self.context = context or SessionContext(dedup_enabled=config.session_dedup)
        self.prometheus_exporter = prometheus_exporter

        self.page_fetcher = PageFetcher(config.http)
        self.client = IndexingClient(config)
        self.candidate_source = CandidateSource(
            FeedReader(self.page_fetcher),
            self.page_fetcher,
            scrape_limit=config.scrape_limit,
            prometheus_exporter=prometheus_exporter,
        )
        self.gate = SubmissionGate(
            self.client,
            self.context,
            retry=config.retry,
            prometheus_exporter=prometheus_exporter,
        )
        self.runner = BatchRunner(
            config,
            self.candidate_source,
            self.gate,
            prometheus_exporter=prometheus_exporter,
        )

    async def run(self) -> BatchSummary:
        return await self.runner.run()

    async def close(self) -> None:
        await self.page_fetcher.close()
        await self.client.close()

    async def __aenter__(self) -> "Pipeline":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()


async def run_once(
    config: Config,
    context: Optional[SessionContext] = None,
    prometheus_exporter = None,
) -> BatchSummary:
    """
    Run the pipeline once with its own clients.

    Args:
        config: Resolved application configuration
        context: Optional session context to share across runs
        prometheus_exporter: Optional Prometheus metrics exporter

    Returns:
        Summary of the run
    """
    async with Pipeline(config, context, prometheus_exporter) as pipeline:
        return await pipeline.run()
