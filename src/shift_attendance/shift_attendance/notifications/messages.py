from __future__ import annotations

from datetime import date

from ..common.datetime_utils import format_hhmm
from ..users.model import User
from .model import (
    AttendanceReminderPayload,
    DailySummaryPayload,
    LateAttendancePayload,
    NotificationPayload,
    ShiftReminderPayload,
)


def _id_date(day: date) -> str:
    return f"{day.day}/{day.month}/{day.year}"


def _shift_reminder(payload: ShiftReminderPayload, user: User) -> tuple[str, str]:
    lines = [
        f"Halo {user.first_name}, shift Anda akan dimulai dalam 1 jam.",
        "",
        f"📅 Tanggal: {_id_date(payload.work_date)}",
        f"🕒 Jam: {payload.start} - {payload.end}",
    ]
    if payload.location:
        lines.append(f"📍 Lokasi: {payload.location}")
    return "⏰ Pengingat Shift", "\n".join(lines)


def _late_attendance(payload: LateAttendancePayload, user: User) -> tuple[str, str]:
    message = (
        f"Halo {user.first_name}, Anda belum melakukan absen masuk untuk shift pukul "
        f"{payload.shift_start} ({_id_date(payload.work_date)}).\n"
        f"Keterlambatan: {payload.minutes_late} menit. Segera lakukan absensi."
    )
    return "⚠️ Absensi Terlambat", message


def _daily_summary(payload: DailySummaryPayload, user: User) -> tuple[str, str]:
    shift_lines = "\n".join(
        f"{format_hhmm(s.start_time)} - {format_hhmm(s.end_time)} ({s.location or '-'})" for s in payload.shifts
    )
    message = (
        "Selamat pagi! Berikut jadwal shift Anda hari ini:\n\n"
        f"📅 Tanggal: {_id_date(payload.day)}\n"
        f"🕒 Jadwal Shift ({len(payload.shifts)} shift):\n"
        f"{shift_lines}\n\n"
        "Semoga hari Anda produktif! 💪"
    )
    return "🌅 Summary Aktivitas Harian", message


def _attendance_reminder(payload: AttendanceReminderPayload, user: User) -> tuple[str, str]:
    lines = [
        f"Halo {user.first_name}, shift Anda dimulai dalam {payload.reminder_minutes} menit.",
        f"🕒 Shift: {payload.shift_time}",
    ]
    if payload.location:
        lines.append(f"📍 Lokasi: {payload.location}")
    lines.append("Jangan lupa melakukan absen masuk.")
    return "🔔 Pengingat Absensi", "\n".join(lines)


_RENDERERS = {
    ShiftReminderPayload: _shift_reminder,
    LateAttendancePayload: _late_attendance,
    DailySummaryPayload: _daily_summary,
    AttendanceReminderPayload: _attendance_reminder,
}


def render(payload: NotificationPayload, user: User) -> tuple[str, str]:
    """Title and body for ``payload`` addressed to ``user``."""

    renderer = _RENDERERS.get(type(payload))
    if renderer is None:
        raise TypeError(f"No message template for {type(payload).__name__}")
    return renderer(payload, user)
