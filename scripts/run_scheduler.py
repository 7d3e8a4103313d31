"""Run the notification jobs in a dedicated process.

Web workers should start with SCHEDULER_ENABLED=0 so only this process
fires the jobs.
"""

from __future__ import annotations

import argparse
import logging
import sys
import time
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from src.shift_attendance.shift_attendance.common.logging_utils import configure_logging
from src.shift_attendance.shift_attendance.container import build_container_from_settings
from src.shift_attendance.shift_attendance.main import load_settings
from src.shift_attendance.shift_attendance.notifications.jobs import build_scheduler

logger = logging.getLogger("run_scheduler")

_ONE_SHOT = {
    "shift-reminders": lambda jobs: jobs.send_shift_reminders(),
    "late-attendance": lambda jobs: jobs.check_late_attendance(),
    "daily-summary": lambda jobs: jobs.send_daily_summary(),
    "attendance-reminders": lambda jobs: jobs.send_attendance_reminders(tolerance_minutes=15),
}


def main() -> None:
    parser = argparse.ArgumentParser(description="Shift notification scheduler")
    parser.add_argument("--once", choices=sorted(_ONE_SHOT), help="run a single job now and exit")
    args = parser.parse_args()

    _, settings = load_settings()
    configure_logging(getattr(settings, "LOG_LEVEL", "INFO"))
    container = build_container_from_settings(settings)
    jobs = container.notification_scheduler

    if args.once:
        result = _ONE_SHOT[args.once](jobs)
        print(f"{result.job}: candidates={result.candidates} sent={result.sent} skipped={result.skipped} failed={result.failed}")
        return

    scheduler = build_scheduler(jobs, timezone=getattr(settings, "TIMEZONE", None))
    scheduler.start()
    logger.info("Scheduler running; press Ctrl+C to stop")
    try:
        while True:
            time.sleep(60)
    except (KeyboardInterrupt, SystemExit):
        scheduler.shutdown()
        logger.info("Scheduler stopped")


if __name__ == "__main__":
    main()
