"""Scheduler manager for background jobs."""

import logging
from datetime import datetime
from typing import Any, Callable, Optional

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger
from apscheduler.triggers.date import DateTrigger
from apscheduler.triggers.interval import IntervalTrigger

from tipsheet.config import settings, utc_now
from tipsheet.scheduler.jobs import JobType, aggregation_cycle_job, tweet_recommendations_job

logger = logging.getLogger(__name__)


class SchedulerManager:
    """Manages background job scheduling.

    Every job runs with ``max_instances=1`` and ``coalesce=True``: a tick
    that fires while the previous run is still going is skipped, never
    stacked. Aggregation cycles are additionally serialised by the
    service's own lock.
    """

    def __init__(self, scheduler: Optional[AsyncIOScheduler] = None):
        self.scheduler = scheduler or AsyncIOScheduler(timezone="UTC")
        self._started = False

    async def start(self) -> None:
        """Start the scheduler."""
        if not self._started:
            self.scheduler.start()
            self._started = True
            logger.info("Scheduler started")

    async def stop(self) -> None:
        """Stop the scheduler."""
        if self._started:
            self.scheduler.shutdown(wait=False)
            self._started = False
            logger.info("Scheduler stopped")

    def add_job(
        self,
        job_id: str,
        func: Callable,
        trigger_type: str = "interval",
        args: Optional[list] = None,
        next_run_time: Optional[datetime] = None,
        **trigger_kwargs,
    ) -> None:
        """Add a job to the scheduler.

        Args:
            job_id: Unique identifier for the job
            func: The async function to run
            trigger_type: One of 'interval', 'cron', 'date'
            args: Positional arguments passed to ``func``
            next_run_time: First run time; None waits one full interval
            **trigger_kwargs: Arguments for the trigger
        """
        if trigger_type == "interval":
            trigger = IntervalTrigger(**trigger_kwargs)
        elif trigger_type == "cron":
            trigger_kwargs.setdefault("timezone", "UTC")
            trigger = CronTrigger(**trigger_kwargs)
        elif trigger_type == "date":
            trigger_kwargs.setdefault("timezone", "UTC")
            trigger = DateTrigger(**trigger_kwargs)
        else:
            raise ValueError(f"Unknown trigger type: {trigger_type}")

        job_kwargs = {}
        if next_run_time is not None:
            job_kwargs["next_run_time"] = next_run_time

        self.scheduler.add_job(
            func,
            trigger,
            args=args or [],
            id=job_id,
            replace_existing=True,
            misfire_grace_time=60,
            max_instances=1,
            coalesce=True,
            **job_kwargs,
        )
        logger.info(f"Added job: {job_id} with {trigger_type} trigger")

    def remove_job(self, job_id: str) -> None:
        """Remove a job from the scheduler."""
        try:
            self.scheduler.remove_job(job_id)
            logger.info(f"Removed job: {job_id}")
        except Exception as e:
            logger.warning(f"Could not remove job {job_id}: {e}")

    def get_job(self, job_id: str) -> Optional[Any]:
        """Get a job by ID."""
        return self.scheduler.get_job(job_id)

    def get_jobs(self) -> list:
        """Get all scheduled jobs."""
        return self.scheduler.get_jobs()

    def setup_recommendation_jobs(self, service, delivery=None) -> None:
        """Schedule periodic aggregation cycles and, if given, tweeting.

        The first cycle runs immediately; tweets follow on their own interval.
        """
        self.add_job(
            JobType.AGGREGATION_CYCLE.value,
            aggregation_cycle_job,
            trigger_type="interval",
            args=[service],
            seconds=settings.cycle_interval_seconds,
            next_run_time=utc_now(),
        )
        if delivery is not None:
            self.add_job(
                JobType.TWEET_RECOMMENDATIONS.value,
                tweet_recommendations_job,
                trigger_type="interval",
                args=[delivery],
                seconds=settings.tweet_interval_seconds,
            )

