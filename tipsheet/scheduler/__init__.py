"""Background job scheduling for the recommendation engine."""

from tipsheet.scheduler.jobs import JobType
from tipsheet.scheduler.manager import SchedulerManager

__all__ = ["SchedulerManager", "JobType"]
