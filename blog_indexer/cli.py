"""Command-line interface for the Blog Indexer."""

import asyncio
import json
import logging
import logging.config
import signal
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

import typer
from typing_extensions import Annotated

from blog_indexer.config import Config
from blog_indexer.context import SessionContext
from blog_indexer.exceptions import IndexerError
from blog_indexer.indexing_client import URL_DELETED, URL_UPDATED, IndexingClient
from blog_indexer.monitoring.metrics import PrometheusExporter
from blog_indexer.pipeline import Pipeline
from blog_indexer.runner.scheduler import IndexingScheduler

app = typer.Typer(help="Blog Indexer - submit new blog posts to the Google Indexing API")

logger = logging.getLogger(__name__)

ConfigOption = Annotated[str, typer.Option("--config", "-c", help="Path to configuration file")]
LogLevelOption = Annotated[str, typer.Option("--loglevel", "-l", help="Logging level")]
VerboseOption = Annotated[bool, typer.Option("--verbose", "-v", help="Enable verbose output")]


def setup_logging(log_level: str = "INFO") -> None:
    """
    Set up logging configuration.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    """
    log_dir = Path("logs")
    log_dir.mkdir(exist_ok=True)

    log_config = {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "standard": {
                "format": "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
            },
        },
        "handlers": {
            "console": {
                "class": "logging.StreamHandler",
                "level": log_level,
                "formatter": "standard",
                "stream": "ext://sys.stdout",
            },
            "file": {
                "class": "logging.handlers.RotatingFileHandler",
                "level": log_level,
                "formatter": "standard",
                "filename": "logs/indexer.log",
                "maxBytes": 10485760,  # 10 MB
                "backupCount": 5,
                "encoding": "utf8",
            },
        },
        "loggers": {
            "": {
                "handlers": ["console", "file"],
                "level": log_level,
                "propagate": True
            },
            "asyncio": {
                "level": "WARNING",
            },
            "aiohttp": {
                "level": "WARNING",
            },
            "apscheduler": {
                "level": "WARNING",
            },
        }
    }

    logging.config.dictConfig(log_config)


def load_config(config_path: str) -> Config:
    """Load and validate configuration, exiting with status 1 when invalid."""
    config = Config.from_files(config_path)
    validation_errors = config.validate()

    if validation_errors:
        for error in validation_errors:
            logger.error(f"Configuration error: {error}")
        logger.critical("Invalid configuration, aborting")
        raise typer.Exit(code=1)

    return config


def _start_exporter(config: Config) -> Optional[PrometheusExporter]:
    if not config.monitoring.enable_prometheus:
        return None
    exporter = PrometheusExporter(port=config.monitoring.prometheus_port)
    exporter.start_server()
    return exporter


async def run_indexer(config: Config, once: bool) -> int:
    """
    Run the indexer once or as a scheduled daemon.

    Args:
        config: Validated configuration
        once: Run a single batch instead of the recurring schedule

    Returns:
        Process exit code
    """
    exporter = _start_exporter(config)
    context = SessionContext(dedup_enabled=config.session_dedup)

    async with Pipeline(config, context, exporter) as pipeline:
        if once:
            summary = await pipeline.run()
            return summary.exit_code

        scheduler = IndexingScheduler(pipeline.run, config.schedule)
        loop = asyncio.get_running_loop()
        for sig in (signal.SIGINT, signal.SIGTERM):
            try:
                loop.add_signal_handler(sig, scheduler.stop)
            except NotImplementedError:
                # add_signal_handler is unavailable on Windows event loops
                signal.signal(sig, lambda signum, frame: loop.call_soon_threadsafe(scheduler.stop))

        logger.info(f"Blog indexer started, checking {config.blog_url} on '{config.schedule.cron}'")
        await scheduler.run_forever()
        logger.info(f"Scheduler stopped after {pipeline.runner.stats['runs_completed']} runs")
        return 0


@app.command()
def run(
    config: ConfigOption = "config.yaml",
    once: Annotated[Optional[bool], typer.Option("--once/--daemon", help="Run once and exit, or keep running on the schedule")] = None,
    loglevel: LogLevelOption = "INFO",
    verbose: VerboseOption = False,
) -> None:
    """
    Discover new posts and submit them to the indexing service.

    Without --once/--daemon the RUN_ONCE setting decides the mode.
    """
    setup_logging("DEBUG" if verbose else loglevel)
    cfg = load_config(config)
    run_once = cfg.schedule.run_once if once is None else once

    logger.info(f"Starting Blog Indexer (once={run_once})")

    try:
        exit_code = asyncio.run(run_indexer(cfg, run_once))
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
        exit_code = 0
    except Exception as e:
        logger.critical(f"Unhandled exception: {str(e)}", exc_info=True)
        exit_code = 1

    if exit_code:
        raise typer.Exit(code=exit_code)


async def _discover(cfg: Config, limit: Optional[int]):
    async with Pipeline(cfg) as pipeline:
        items = await pipeline.candidate_source.discover(cfg.resolved_feed_url, cfg.blog_url)
        selected = pipeline.runner.select(items)
    if limit is not None:
        selected = selected[:limit]
    return items, selected


@app.command()
def discover(
    config: ConfigOption = "config.yaml",
    limit: Annotated[Optional[int], typer.Option("--limit", "-n", help="Show at most this many items")] = None,
    loglevel: LogLevelOption = "WARNING",
) -> None:
    """
    Discover and prioritize candidate posts without submitting anything.
    """
    setup_logging(loglevel)
    cfg = Config.from_files(config)

    items, selected = asyncio.run(_discover(cfg, limit))
    output = {
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "feed_url": cfg.resolved_feed_url,
        "total_discovered": len(items),
        "selected": [p.to_dict() for p in selected],
    }
    typer.echo(json.dumps(output, indent=2))


async def _submit(cfg: Config, url: str, notification_type: str):
    async with Pipeline(cfg) as pipeline:
        return await pipeline.gate.submit(url, notification_type)


@app.command()
def submit(
    url: Annotated[str, typer.Argument(help="Absolute URL to submit")],
    delete: Annotated[bool, typer.Option("--delete", help="Notify that the URL was removed")] = False,
    config: ConfigOption = "config.yaml",
    loglevel: LogLevelOption = "INFO",
) -> None:
    """
    Submit a single URL to the indexing service.
    """
    setup_logging(loglevel)
    cfg = load_config(config)

    result = asyncio.run(_submit(cfg, url, URL_DELETED if delete else URL_UPDATED))
    typer.echo(json.dumps(result.to_dict(), indent=2))
    if not result.is_success:
        raise typer.Exit(code=1)


async def _status(cfg: Config, url: str):
    client = IndexingClient(cfg)
    try:
        return await client.get_metadata(url)
    finally:
        await client.close()


@app.command()
def status(
    url: Annotated[str, typer.Argument(help="URL to look up")],
    config: ConfigOption = "config.yaml",
    loglevel: LogLevelOption = "WARNING",
) -> None:
    """
    Show the indexing service's notification metadata for a URL.
    """
    setup_logging(loglevel)
    cfg = load_config(config)

    try:
        metadata = asyncio.run(_status(cfg, url))
    except IndexerError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(code=1)
    typer.echo(json.dumps(metadata, indent=2))


@app.command("check-config")
def check_config(
    config: ConfigOption = "config.yaml",
) -> None:
    """
    Validate the configuration and show the resolved settings.
    """
    cfg = Config.from_files(config)
    errors = cfg.validate()

    output = {
        "blog_url": cfg.blog_url,
        "feed_url": cfg.resolved_feed_url,
        "max_urls_per_run": cfg.max_urls_per_run,
        "request_delay_ms": cfg.request_delay_ms,
        "schedule": cfg.schedule.cron,
        "run_once": cfg.schedule.run_once,
        "errors": errors,
    }
    typer.echo(json.dumps(output, indent=2))
    if errors:
        raise typer.Exit(code=1)


if __name__ == "__main__":
    app()
