from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, Optional

from ..core.enums import AttendanceStatus, Role
from ..shifts.model import Shift
from ..users.model import User


@dataclass(frozen=True)
class AttendanceRecord:
    """Domain entity: one attendance row (absensi) per (user, shift)."""

    attendance_id: int
    user_id: int
    shift_id: int
    check_in_time: Optional[datetime]
    check_out_time: Optional[datetime]
    status: AttendanceStatus
    created_at: datetime
    location: Optional[str] = None
    photo: Optional[str] = None
    note: Optional[str] = None


@dataclass(frozen=True)
class AttendanceDetail:
    """Read-model for listings and reports (record joined with user and shift)."""

    record: AttendanceRecord
    first_name: str
    last_name: Optional[str]
    role: Optional[Role] = None
    shift: Optional[Shift] = None

    @property
    def display_name(self) -> str:
        return " ".join(p for p in (self.first_name, self.last_name) if p)


@dataclass(frozen=True)
class CreatedRange:
    """Range filter on ``created_at``; the upper bound is inclusive unless stated."""

    start: datetime
    end: datetime
    inclusive_end: bool = True

    def contains(self, ts: datetime) -> bool:
        if ts < self.start:
            return False
        return ts <= self.end if self.inclusive_end else ts < self.end


@dataclass(frozen=True)
class AttendanceQuery:
    created: Optional[CreatedRange] = None
    status: Optional[AttendanceStatus] = None
    user_id: Optional[int] = None
    limit: Optional[int] = None
    offset: int = 0


@dataclass(frozen=True)
class AttendanceCorrection:
    """Fields a user may correct at check-out. Anything else is not writable."""

    location: Optional[str] = None
    photo: Optional[str] = None
    note: Optional[str] = None

    def as_fields(self) -> Dict[str, Any]:
        return {k: v for k, v in (("location", self.location), ("photo", self.photo), ("note", self.note)) if v is not None}


@dataclass(frozen=True)
class VerificationPatch:
    """Admin correction. ``verified`` is a flag, not a column."""

    status: Optional[AttendanceStatus] = None
    note: Optional[str] = None
    location: Optional[str] = None
    photo: Optional[str] = None
    check_in_time: Optional[datetime] = None
    check_out_time: Optional[datetime] = None
    verified: bool = False

    def as_fields(self) -> Dict[str, Any]:
        fields = {
            "status": self.status,
            "note": self.note,
            "location": self.location,
            "photo": self.photo,
            "check_in_time": self.check_in_time,
            "check_out_time": self.check_out_time,
        }
        return {k: v for k, v in fields.items() if v is not None}


@dataclass(frozen=True)
class StatusCount:
    status: AttendanceStatus
    count: int


@dataclass(frozen=True)
class StatusPercentage:
    status: AttendanceStatus
    count: int
    percentage: str


@dataclass(frozen=True)
class AttendanceStats:
    stats: list[StatusCount]
    total: int
    percentage: list[StatusPercentage]


@dataclass(frozen=True)
class TodayAttendance:
    shift: Optional[Shift] = None
    attendance: Optional[AttendanceRecord] = None


@dataclass(frozen=True)
class AdminDashboard:
    today_stats: list[StatusCount]
    users_not_checked_in: list[User]
    total_shifts_today: int


@dataclass(frozen=True)
class UserDashboard:
    monthly_stats: list[StatusCount] = field(default_factory=list)
