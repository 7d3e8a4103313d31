from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any, ClassVar, Dict, Optional

from ..common.datetime_utils import format_hhmm
from ..core.enums import NotificationChannel, NotificationType
from ..shifts.model import Shift


@dataclass(frozen=True)
class Notification:
    """Domain entity: one sent notification (outbox log and dedup index)."""

    notification_id: int
    user_id: int
    type: NotificationType
    title: str
    message: str
    data: Dict[str, Any]
    sent_via: NotificationChannel
    created_at: datetime

    @property
    def shift_id(self) -> Optional[int]:
        value = self.data.get("shiftId")
        return int(value) if value is not None else None


class NotificationPayload:
    """Tagged payload variant. Every variant carries ``shift_id``.

    ``to_dict`` is what gets stored in the ``data`` column; ``type`` and
    ``shiftId`` keys are always present.
    """

    type: ClassVar[NotificationType]
    shift_id: Optional[int]

    def to_dict(self) -> Dict[str, Any]:
        return {"type": self.type.value, "shiftId": self.shift_id, **self._fields()}

    def _fields(self) -> Dict[str, Any]:
        raise NotImplementedError


@dataclass(frozen=True)
class ShiftReminderPayload(NotificationPayload):
    type: ClassVar[NotificationType] = NotificationType.REMINDER_SHIFT

    shift_id: int
    work_date: date
    start: str
    end: str
    location: Optional[str] = None

    @classmethod
    def from_shift(cls, shift: Shift) -> "ShiftReminderPayload":
        return cls(
            shift_id=shift.shift_id,
            work_date=shift.work_date,
            start=format_hhmm(shift.start_time),
            end=format_hhmm(shift.end_time),
            location=shift.location,
        )

    def _fields(self) -> Dict[str, Any]:
        return {
            "tanggal": self.work_date.isoformat(),
            "jamMulai": self.start,
            "jamSelesai": self.end,
            "lokasiShift": self.location,
        }


@dataclass(frozen=True)
class LateAttendancePayload(NotificationPayload):
    type: ClassVar[NotificationType] = NotificationType.ABSENSI_TERLAMBAT

    shift_id: int
    work_date: date
    shift_start: str
    minutes_late: int

    def _fields(self) -> Dict[str, Any]:
        return {
            "tanggal": self.work_date.isoformat(),
            "jamMulaiShift": self.shift_start,
            "jamMasuk": None,
            "durasiTerlambat": f"{self.minutes_late} menit",
        }


@dataclass(frozen=True)
class DailySummaryPayload(NotificationPayload):
    """``shift_id`` is the first shift of the day; all shifts are listed in ``shifts``."""

    type: ClassVar[NotificationType] = NotificationType.KEGIATAN_HARIAN

    shift_id: Optional[int]
    day: date
    shifts: tuple[Shift, ...] = field(default_factory=tuple)

    @classmethod
    def for_day(cls, day: date, shifts: tuple[Shift, ...]) -> "DailySummaryPayload":
        return cls(shift_id=shifts[0].shift_id if shifts else None, day=day, shifts=shifts)

    def _fields(self) -> Dict[str, Any]:
        return {
            "date": self.day.isoformat(),
            "shifts": [
                {
                    "shiftId": s.shift_id,
                    "jamMulai": format_hhmm(s.start_time),
                    "jamSelesai": format_hhmm(s.end_time),
                    "lokasiShift": s.location,
                }
                for s in self.shifts
            ],
        }


@dataclass(frozen=True)
class AttendanceReminderPayload(NotificationPayload):
    type: ClassVar[NotificationType] = NotificationType.PERSONAL_REMINDER_ABSENSI

    shift_id: int
    shift_time: str
    location: Optional[str]
    reminder_minutes: int

    @classmethod
    def from_shift(cls, shift: Shift, *, reminder_minutes: int) -> "AttendanceReminderPayload":
        return cls(
            shift_id=shift.shift_id,
            shift_time=f"{format_hhmm(shift.start_time)} - {format_hhmm(shift.end_time)}",
            location=shift.location,
            reminder_minutes=reminder_minutes,
        )

    def _fields(self) -> Dict[str, Any]:
        return {
            "shiftTime": self.shift_time,
            "location": self.location,
            "reminderMinutes": self.reminder_minutes,
        }
