from __future__ import annotations

import logging
from dataclasses import replace
from decimal import ROUND_HALF_UP, Decimal
from typing import Optional, Sequence

from ..common.datetime_utils import Clock, SystemClock, day_bounds, month_bounds, month_start_and_next
from ..common.validators import optional_text, require_non_empty, require_positive_id
from ..core.constants import DEFAULT_ADMIN_PAGE_SIZE, DEFAULT_USER_PAGE_SIZE, VERIFIED_NOTE
from ..core.enums import AttendanceStatus
from ..core.exceptions import AlreadyCheckedIn, AlreadyCheckedOut, NoShiftToday, RecordNotFound, ValidationError
from ..shifts.repository import ShiftRepository
from ..users.model import User
from ..users.repository import UserRepository
from .factory import AttendanceStrategyFactory, minutes_late
from .model import (
    AdminDashboard,
    AttendanceCorrection,
    AttendanceDetail,
    AttendanceQuery,
    AttendanceRecord,
    AttendanceStats,
    CreatedRange,
    StatusCount,
    StatusPercentage,
    TodayAttendance,
    UserDashboard,
    VerificationPatch,
)
from .repository import AttendanceRepository

logger = logging.getLogger(__name__)

_TWO_PLACES = Decimal("0.01")


def percentage_of(count: int, total: int) -> str:
    """``count / total`` as a percentage string with 2 decimals; 0/0 is ``"0.00"``."""

    if total <= 0:
        return "0.00"
    value = Decimal(count) * 100 / Decimal(total)
    return str(value.quantize(_TWO_PLACES, rounding=ROUND_HALF_UP))


def build_stats(counts: Sequence[StatusCount]) -> AttendanceStats:
    total = sum(c.count for c in counts)
    return AttendanceStats(
        stats=list(counts),
        total=total,
        percentage=[StatusPercentage(status=c.status, count=c.count, percentage=percentage_of(c.count, total)) for c in counts],
    )


class AttendanceService:
    def __init__(
        self,
        attendance: AttendanceRepository,
        users: UserRepository,
        shifts: ShiftRepository,
        *,
        clock: Clock | None = None,
        strategy_factory: AttendanceStrategyFactory | None = None,
    ):
        self._attendance = attendance
        self._users = users
        self._shifts = shifts
        self._clock = clock or SystemClock()
        self._factory = strategy_factory or AttendanceStrategyFactory()

    def check_in(
        self,
        user_id: int,
        *,
        location: str,
        photo: Optional[str] = None,
        note: Optional[str] = None,
    ) -> AttendanceRecord:
        user_id = require_positive_id(user_id, "userId")
        location = require_non_empty(location, "Lokasi")
        if not self._users.get_by_id(user_id):
            raise NoShiftToday()

        now = self._clock.now()
        shift = self._shifts.get_first_for_user_on(user_id, now.date())
        if not shift:
            raise NoShiftToday()

        if self._attendance.get_for_user_and_shift(user_id, shift.shift_id):
            raise AlreadyCheckedIn()

        late = minutes_late(now, shift)
        decision = self._factory.for_checkin(minutes_late=late).decide_checkin(minutes_late=late)

        attendance_id = self._attendance.create_checkin(
            user_id=user_id,
            shift_id=shift.shift_id,
            check_in_time=now,
            status=decision.status,
            location=location,
            photo=optional_text(photo),
            note=optional_text(note),
        )
        logger.info(
            "Check-in user=%s shift=%s status=%s minutes_late=%s",
            user_id,
            shift.shift_id,
            decision.status.value,
            decision.minutes_late,
        )
        return self._require_record(attendance_id)

    def check_out(self, attendance_id: int, correction: AttendanceCorrection | None = None) -> AttendanceRecord:
        attendance_id = require_positive_id(attendance_id, "absensiId")

        record = self._attendance.get_by_id(attendance_id)
        if not record:
            raise RecordNotFound()
        if record.check_out_time is not None:
            raise AlreadyCheckedOut()

        now = self._clock.now()
        fields = (correction or AttendanceCorrection()).as_fields()
        self._attendance.update_checkout(attendance_id=attendance_id, check_out_time=now, fields=fields)
        logger.info("Check-out attendance=%s user=%s", attendance_id, record.user_id)
        return self._require_record(attendance_id)

    def list_for_user(self, user_id: int, query: AttendanceQuery | None = None) -> Sequence[AttendanceDetail]:
        query = query or AttendanceQuery()
        return self._attendance.list_details(
            replace(
                query,
                user_id=require_positive_id(user_id, "userId"),
                limit=query.limit or DEFAULT_USER_PAGE_SIZE,
            )
        )

    def get_today(self, user_id: int) -> TodayAttendance:
        user_id = require_positive_id(user_id, "userId")
        shift = self._shifts.get_first_for_user_on(user_id, self._clock.now().date())
        if not shift:
            return TodayAttendance()
        return TodayAttendance(shift=shift, attendance=self._attendance.get_for_user_and_shift(user_id, shift.shift_id))

    def list_all(self, query: AttendanceQuery | None = None) -> Sequence[AttendanceDetail]:
        query = query or AttendanceQuery()
        return self._attendance.list_details(replace(query, limit=query.limit or DEFAULT_ADMIN_PAGE_SIZE))

    def get_stats(self, *, created: Optional[CreatedRange] = None, user_id: Optional[int] = None) -> AttendanceStats:
        return build_stats(self._attendance.count_by_status(created=created, user_id=user_id))

    def get_user_dashboard(self, user_id: int) -> UserDashboard:
        start, next_month = month_start_and_next(self._clock.now().date())
        counts = self._attendance.count_by_status(
            created=CreatedRange(start, next_month, inclusive_end=False),
            user_id=require_positive_id(user_id, "userId"),
        )
        return UserDashboard(monthly_stats=list(counts))

    def get_admin_dashboard(self) -> AdminDashboard:
        today = self._clock.now().date()
        start, tomorrow = day_bounds(today)

        today_stats = self._attendance.count_by_status(created=CreatedRange(start, tomorrow, inclusive_end=False))
        assignments = self._shifts.list_assignments_on(today)

        pending: list[User] = []
        seen: set[int] = set()
        for a in assignments:
            if a.attendance is not None or a.user.user_id in seen:
                continue
            seen.add(a.user.user_id)
            pending.append(a.user)

        return AdminDashboard(
            today_stats=list(today_stats),
            users_not_checked_in=pending,
            total_shifts_today=len(assignments),
        )

    def monthly_report(
        self,
        *,
        year: Optional[int] = None,
        month: Optional[int] = None,
        user_id: Optional[int] = None,
    ) -> Sequence[AttendanceDetail]:
        now = self._clock.now()
        year = int(year) if year else now.year
        month = int(month) if month else now.month
        if not 1 <= month <= 12:
            raise ValidationError("Bulan tidak valid")

        start, end = month_bounds(year, month)
        return self._attendance.list_for_report(created=CreatedRange(start, end), user_id=user_id)

    def verify(self, attendance_id: int, patch: VerificationPatch) -> AttendanceRecord:
        """Manual override by an admin; bypasses the lateness rule on purpose."""

        attendance_id = require_positive_id(attendance_id, "absensiId")
        if not self._attendance.get_by_id(attendance_id):
            raise RecordNotFound()

        fields = patch.as_fields()
        if patch.verified:
            fields["status"] = AttendanceStatus.HADIR
            fields["note"] = f"{patch.note} - {VERIFIED_NOTE}" if patch.note else VERIFIED_NOTE

        if fields:
            self._attendance.update_fields(attendance_id=attendance_id, fields=fields)
        logger.info("Attendance %s corrected by admin (verified=%s)", attendance_id, patch.verified)
        return self._require_record(attendance_id)

    def _require_record(self, attendance_id: int) -> AttendanceRecord:
        record = self._attendance.get_by_id(attendance_id)
        if not record:
            raise RecordNotFound()
        return record
