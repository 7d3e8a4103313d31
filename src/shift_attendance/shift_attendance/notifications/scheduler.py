"""Periodic notification jobs.

Every shift-based job follows the same steps: scan today's shifts, keep the
ones inside the job's time window, drop the ones already notified for
(type, day, shift), then dispatch and log. Jobs never raise; a failing
shift is logged and the rest of the batch still runs.

Window predicates compare minutes since midnight against ``now + lead``
with an absolute difference, so a shift that started ``lead`` minutes ago
can match as well as one that is about to start. There is no wrap-around
at midnight.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, time, timedelta
from typing import Callable, Iterable

from ..common.datetime_utils import Clock, SystemClock, day_bounds, format_hhmm, minutes_since_midnight
from ..core.constants import (
    ATTENDANCE_REMINDER_LEAD_MINUTES,
    LATE_TOLERANCE_MINUTES,
    SHIFT_REMINDER_LEAD_MINUTES,
    SHIFT_REMINDER_TOLERANCE_MINUTES,
)
from ..core.enums import NotificationType
from ..shifts.model import ShiftAssignment
from ..shifts.repository import ShiftRepository
from ..users.repository import UserRepository
from .model import (
    AttendanceReminderPayload,
    DailySummaryPayload,
    LateAttendancePayload,
    NotificationPayload,
    ShiftReminderPayload,
)
from .repository import NotificationRepository
from .service import NotificationService

logger = logging.getLogger(__name__)


@dataclass
class JobResult:
    job: str
    candidates: int = 0
    sent: int = 0
    skipped: int = 0
    failed: int = 0


def within_window(start: time, now: datetime, *, lead_minutes: int, tolerance_minutes: int) -> bool:
    target = minutes_since_midnight(now + timedelta(minutes=lead_minutes))
    return abs(minutes_since_midnight(start) - target) <= tolerance_minutes


class NotificationScheduler:
    def __init__(
        self,
        shifts: ShiftRepository,
        users: UserRepository,
        notifications: NotificationRepository,
        notification_service: NotificationService,
        *,
        clock: Clock | None = None,
        late_tolerance_minutes: int = LATE_TOLERANCE_MINUTES,
    ):
        self._shifts = shifts
        self._users = users
        self._notifications = notifications
        self._service = notification_service
        self._clock = clock or SystemClock()
        self._late_tolerance = int(late_tolerance_minutes)

    def send_shift_reminders(self) -> JobResult:
        result = JobResult("shift_reminders")
        logger.info("Checking for upcoming shifts to send reminders...")
        try:
            now = self._clock.now()
            upcoming = [
                a
                for a in self._shifts.list_assignments_on(now.date())
                if within_window(
                    a.shift.start_time,
                    now,
                    lead_minutes=SHIFT_REMINDER_LEAD_MINUTES,
                    tolerance_minutes=SHIFT_REMINDER_TOLERANCE_MINUTES,
                )
            ]
            result.candidates = len(upcoming)
            self._notify_each(
                result,
                now,
                upcoming,
                NotificationType.REMINDER_SHIFT,
                lambda a: ShiftReminderPayload.from_shift(a.shift),
            )
        except Exception:
            logger.exception("Error sending shift reminders")
        logger.info("Processed %s upcoming shifts (sent=%s)", result.candidates, result.sent)
        return result

    def check_late_attendance(self) -> JobResult:
        result = JobResult("late_attendance")
        logger.info("Checking for late attendance...")
        try:
            now = self._clock.now()
            now_minutes = minutes_since_midnight(now)
            late: list[tuple[ShiftAssignment, int]] = []
            for a in self._shifts.list_assignments_on(now.date()):
                if minutes_since_midnight(a.shift.start_time) >= now_minutes or a.checked_in:
                    continue
                minutes = (now - a.shift.start_on(a.shift.work_date)) // timedelta(minutes=1)
                if minutes > self._late_tolerance:
                    late.append((a, minutes))

            result.candidates = len(late)
            minutes_by_shift = {a.shift.shift_id: m for a, m in late}
            self._notify_each(
                result,
                now,
                [a for a, _ in late],
                NotificationType.ABSENSI_TERLAMBAT,
                lambda a: LateAttendancePayload(
                    shift_id=a.shift.shift_id,
                    work_date=a.shift.work_date,
                    shift_start=format_hhmm(a.shift.start_time),
                    minutes_late=minutes_by_shift[a.shift.shift_id],
                ),
            )
        except Exception:
            logger.exception("Error checking late attendance")
        logger.info("Processed %s late attendance cases (sent=%s)", result.candidates, result.sent)
        return result

    def send_daily_summary(self) -> JobResult:
        """Once-daily summary; relies on its trigger rather than a dedup lookup."""

        result = JobResult("daily_summary")
        logger.info("Sending daily activity summary...")
        try:
            today = self._clock.now().date()
            users = self._users.list_with_shift_on(today, require_channel=True)
            result.candidates = len(users)
            for user in users:
                try:
                    shifts = tuple(self._shifts.list_for_user_on(user.user_id, today))
                    if not shifts:
                        result.skipped += 1
                        continue
                    self._service.notify(user, DailySummaryPayload.for_day(today, shifts), claim=False)
                    result.sent += 1
                    logger.info("Daily summary sent to user %s", user.display_name)
                except Exception:
                    result.failed += 1
                    logger.exception("Daily summary failed for user %s", user.user_id)
        except Exception:
            logger.exception("Error sending daily activity summary")
        logger.info("Sent daily summaries to %s users", result.sent)
        return result

    def send_attendance_reminders(self, *, tolerance_minutes: int) -> JobResult:
        """Reminder 30 minutes before shift start for users not yet checked in.

        Registered twice (tolerance 10 and 15); both share the
        ``PERSONAL_REMINDER_ABSENSI`` dedup key, so a shift matched by both
        runs is notified once.
        """

        result = JobResult(f"attendance_reminders_{tolerance_minutes}")
        logger.info("Checking for shifts to send attendance reminders (tolerance=%s)...", tolerance_minutes)
        try:
            now = self._clock.now()
            upcoming = [
                a
                for a in self._shifts.list_assignments_on(now.date())
                if not a.checked_in
                and within_window(
                    a.shift.start_time,
                    now,
                    lead_minutes=ATTENDANCE_REMINDER_LEAD_MINUTES,
                    tolerance_minutes=tolerance_minutes,
                )
            ]
            result.candidates = len(upcoming)
            self._notify_each(
                result,
                now,
                upcoming,
                NotificationType.PERSONAL_REMINDER_ABSENSI,
                lambda a: AttendanceReminderPayload.from_shift(a.shift, reminder_minutes=ATTENDANCE_REMINDER_LEAD_MINUTES),
            )
        except Exception:
            logger.exception("Error sending attendance reminders")
        logger.info("Processed %s upcoming shifts for attendance reminders (sent=%s)", result.candidates, result.sent)
        return result

    def _notify_each(
        self,
        result: JobResult,
        now: datetime,
        assignments: Iterable[ShiftAssignment],
        type: NotificationType,
        build_payload: Callable[[ShiftAssignment], NotificationPayload],
    ) -> None:
        since, _ = day_bounds(now.date())
        for a in assignments:
            try:
                if self._notifications.exists_for_shift(
                    user_id=a.user.user_id,
                    type=type,
                    since=since,
                    shift_id=a.shift.shift_id,
                ):
                    result.skipped += 1
                    continue

                if self._service.notify(a.user, build_payload(a)) is None:
                    result.skipped += 1
                    continue

                result.sent += 1
                logger.info(
                    "%s sent to user %s for shift %s at %s",
                    type.value,
                    a.user.display_name,
                    a.shift.shift_id,
                    format_hhmm(a.shift.start_time),
                )
            except Exception:
                result.failed += 1
                logger.exception("%s failed for user %s shift %s", type.value, a.user.user_id, a.shift.shift_id)
