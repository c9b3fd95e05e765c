"""Prometheus metrics for monitoring the Blog Indexer."""

import logging
import time

from prometheus_client import Counter, Gauge, Histogram, start_http_server

logger = logging.getLogger(__name__)

# Define metrics
CANDIDATES_DISCOVERED = Counter(
    "blog_indexer_candidates_discovered_total",
    "Total number of candidate URLs discovered",
    ["source_kind"],
)

SUBMISSIONS = Counter(
    "blog_indexer_submissions_total",
    "Terminal submission results by outcome",
    ["outcome"],
)

API_ERRORS = Counter(
    "blog_indexer_api_errors_total",
    "Number of indexing API errors encountered",
    ["error_class"],
)

RUNS = Counter(
    "blog_indexer_runs_total",
    "Number of pipeline runs by final status",
    ["status"],
)

LAST_RUN_TIMESTAMP = Gauge(
    "blog_indexer_last_run_timestamp_seconds",
    "Unix time at which the last run finished",
)

SESSION_SUBMITTED = Gauge(
    "blog_indexer_session_submitted_urls",
    "Number of URLs submitted since the process started",
)

REQUEST_DURATION = Histogram(
    "blog_indexer_submission_duration_seconds",
    "Duration of one URL submission including retries",
    buckets=[0.1, 0.5, 1.0, 2.0, 5.0, 10.0, 30.0, 60.0],
)


class PrometheusExporter:
    """Prometheus metrics exporter for the Blog Indexer."""

    def __init__(self, port: int = 8000):
        """
        Initialize the Prometheus exporter.

        Args:
            port: Port to expose metrics on
        """
        self.port = port
        self.server_started = False

    def start_server(self) -> None:
        """Start the Prometheus metrics server."""
        if not self.server_started:
            try:
                start_http_server(self.port)
                self.server_started = True
                logger.info(f"Started Prometheus metrics server on port {self.port}")
            except OSError as e:
                logger.error(f"Failed to start Prometheus metrics server: {str(e)}")

    def record_candidate_discovered(self, source_kind: str) -> None:
        CANDIDATES_DISCOVERED.labels(source_kind=source_kind).inc()

    def record_submission(self, outcome: str) -> None:
        SUBMISSIONS.labels(outcome=outcome).inc()

    def record_api_error(self, error_class: str) -> None:
        """
        Record a classified indexing API error.

        Args:
            error_class: Classification of the error (e.g., 'transient', 'quota')
        """
        API_ERRORS.labels(error_class=error_class).inc()

    def record_run(self, status: str) -> None:
        """
        Record a finished run.

        Args:
            status: Final run status (e.g., 'ok', 'nothing_to_do', 'aborted', 'critical')
        """
        RUNS.labels(status=status).inc()
        LAST_RUN_TIMESTAMP.set(time.time())

    def set_session_submitted(self, count: int) -> None:
        SESSION_SUBMITTED.set(count)

    def observe_request_duration(self, seconds: float) -> None:
        REQUEST_DURATION.observe(seconds)
