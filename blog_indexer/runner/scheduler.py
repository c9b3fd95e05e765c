"""
Recurring execution of the pipeline on a cron schedule.

APScheduler's ``AsyncIOScheduler`` drives runs inside the current event
loop. The indexing job is registered with ``max_instances=1`` and
``coalesce=True`` so a slow run is never overlapped by the next tick.
"""

import asyncio
import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Awaitable, Callable, Dict, Optional

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger

from blog_indexer.config import ScheduleConfig
from blog_indexer.models.submission import BatchSummary

logger = logging.getLogger(__name__)

RunFunc = Callable[[], Awaitable[BatchSummary]]

JOB_ID = "index_new_posts"


def build_scheduler(run: RunFunc, schedule: ScheduleConfig) -> AsyncIOScheduler:
    """
    Build a scheduler with the recurring indexing job registered.

    Returns a configured but *not yet started* scheduler.

    Args:
        run: Coroutine function performing one run
        schedule: Schedule configuration

    Raises:
        ValueError: If ``schedule.cron`` is not a valid crontab expression
    """
    scheduler = AsyncIOScheduler(timezone="UTC")

    job_options: Dict[str, Any] = {}
    if schedule.run_on_startup:
        # The startup run is the first fire of the cron job itself, so
        # max_instances also keeps it from overlapping a cron tick
        job_options["next_run_time"] = (
            datetime.now(timezone.utc) + timedelta(seconds=schedule.startup_delay_sec)
        )

    scheduler.add_job(
        run,
        trigger=CronTrigger.from_crontab(schedule.cron, timezone="UTC"),
        id=JOB_ID,
        name="Index new posts",
        replace_existing=True,
        max_instances=1,
        coalesce=True,
        misfire_grace_time=600,
        **job_options,
    )

    return scheduler


class IndexingScheduler:
    """Keeps the scheduler running until a shutdown is requested."""

    def __init__(self, run: RunFunc, schedule: ScheduleConfig):
        self.run = run
        self.schedule = schedule
        self.scheduler: Optional[AsyncIOScheduler] = None
        self._shutdown_event = asyncio.Event()

    async def run_forever(self) -> None:
        """Start the scheduler and block until ``stop`` is called."""
        self.scheduler = build_scheduler(self.run, self.schedule)
        self.scheduler.start()
        logger.info(
            f"Scheduler started with cron '{self.schedule.cron}'"
            + (f", first run in {self.schedule.startup_delay_sec}s" if self.schedule.run_on_startup else "")
        )
        try:
            await self._shutdown_event.wait()
        finally:
            logger.info("Stopping scheduler")
            self.scheduler.shutdown(wait=False)

    def stop(self) -> None:
        """Request a graceful shutdown."""
        self._shutdown_event.set()
