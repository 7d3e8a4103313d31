from __future__ import annotations

import logging
from functools import partial
from typing import Optional

from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.cron import CronTrigger

from ..core.constants import DAILY_SUMMARY_HOUR, LATE_CHECK_HOUR
from .scheduler import NotificationScheduler

logger = logging.getLogger(__name__)


def register_jobs(scheduler: BackgroundScheduler, jobs: NotificationScheduler, *, timezone: Optional[str] = None) -> None:
    """Attach the notification jobs with their cron triggers."""

    def cron(**fields) -> CronTrigger:
        return CronTrigger(timezone=timezone, **fields)

    scheduler.add_job(
        jobs.send_shift_reminders,
        cron(minute="*/15"),
        id="shift_reminders",
        replace_existing=True,
    )
    scheduler.add_job(
        jobs.check_late_attendance,
        cron(hour=LATE_CHECK_HOUR, minute=0),
        id="late_attendance",
        replace_existing=True,
    )
    scheduler.add_job(
        jobs.send_daily_summary,
        cron(hour=DAILY_SUMMARY_HOUR, minute=0),
        id="daily_summary",
        replace_existing=True,
    )
    scheduler.add_job(
        partial(jobs.send_attendance_reminders, tolerance_minutes=10),
        cron(minute="*/10"),
        id="attendance_reminders_10",
        replace_existing=True,
    )
    scheduler.add_job(
        partial(jobs.send_attendance_reminders, tolerance_minutes=15),
        cron(minute="*/15"),
        id="attendance_reminders_15",
        replace_existing=True,
    )


def build_scheduler(jobs: NotificationScheduler, *, timezone: Optional[str] = None) -> BackgroundScheduler:
    # max_instances=1: an overrunning firing is skipped instead of racing the next one.
    options = {
        "job_defaults": {
            "coalesce": True,
            "max_instances": 1,
            "misfire_grace_time": 300,
        }
    }
    if timezone:
        options["timezone"] = timezone

    scheduler = BackgroundScheduler(**options)
    register_jobs(scheduler, jobs, timezone=timezone)
    logger.info("Registered %s notification jobs", len(scheduler.get_jobs()))
    return scheduler
