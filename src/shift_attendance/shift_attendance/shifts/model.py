from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, time
from typing import TYPE_CHECKING, Optional

from ..users.model import User

if TYPE_CHECKING:
    from ..attendance.model import AttendanceRecord


@dataclass(frozen=True)
class Shift:
    """Domain entity: a planned work period for one user on one date."""

    shift_id: int
    user_id: int
    work_date: date
    start_time: time
    end_time: time
    location: Optional[str] = None

    def start_on(self, day: date) -> datetime:
        return datetime.combine(day, self.start_time)


@dataclass(frozen=True)
class ShiftAssignment:
    """Read-model for the scheduler: a shift with its owner and paired attendance."""

    shift: Shift
    user: User
    attendance: Optional["AttendanceRecord"] = None

    @property
    def checked_in(self) -> bool:
        return self.attendance is not None and self.attendance.check_in_time is not None
