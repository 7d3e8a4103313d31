from __future__ import annotations

from enum import Enum


class Role(str, Enum):
    """Peran pengguna."""

    ADMIN = "ADMIN"
    KARYAWAN = "KARYAWAN"


class AttendanceStatus(str, Enum):
    """Status absensi yang disimpan di database."""

    HADIR = "HADIR"
    TERLAMBAT = "TERLAMBAT"


class NotificationType(str, Enum):
    REMINDER_SHIFT = "REMINDER_SHIFT"
    ABSENSI_TERLAMBAT = "ABSENSI_TERLAMBAT"
    KEGIATAN_HARIAN = "KEGIATAN_HARIAN"
    PERSONAL_REMINDER_ABSENSI = "PERSONAL_REMINDER_ABSENSI"


class NotificationChannel(str, Enum):
    TELEGRAM = "TELEGRAM"
    SYSTEM = "SYSTEM"
