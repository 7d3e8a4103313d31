from __future__ import annotations

import calendar
from datetime import date, datetime, time, timedelta
from typing import Optional, Protocol
from zoneinfo import ZoneInfo


class Clock(Protocol):
    """Source of the current local time.

    Services take a clock instead of calling ``datetime.now()`` so tests can
    pin "today" to any instant.
    """

    def now(self) -> datetime:
        raise NotImplementedError


class SystemClock:
    """Wall-clock time as naive local datetimes.

    With ``timezone`` set (e.g. ``"Asia/Jakarta"``) the wall clock of that zone
    is used instead of the host's.
    """

    def __init__(self, timezone: Optional[str] = None):
        self._tz = ZoneInfo(timezone) if timezone else None

    def now(self) -> datetime:
        if self._tz is None:
            return now_local()
        return datetime.now(self._tz).replace(tzinfo=None)


def parse_iso_date(value: str) -> date:
    """Parse YYYY-MM-DD string into date."""
    return datetime.strptime(value, "%Y-%m-%d").date()


def parse_iso_datetime(value: str) -> datetime:
    """Parse an ISO date or datetime string; plain dates map to midnight."""
    value = value.strip()
    if len(value) == 10:
        return datetime.combine(parse_iso_date(value), time.min)
    return datetime.fromisoformat(value)


def now_local() -> datetime:
    """Current local time.

    Note: Wrapped so tests can patch/mocked easier.
    """
    return datetime.now()


def day_bounds(day: date) -> tuple[datetime, datetime]:
    """[00:00 of ``day``, 00:00 of the next day)."""
    start = datetime.combine(day, time.min)
    return start, start + timedelta(days=1)


def month_bounds(year: int, month: int) -> tuple[datetime, datetime]:
    """First day 00:00:00 and last day 23:59:59 of a calendar month (inclusive)."""
    last_day = calendar.monthrange(year, month)[1]
    start = datetime(year, month, 1)
    end = datetime(year, month, last_day, 23, 59, 59)
    return start, end


def month_start_and_next(day: date) -> tuple[datetime, datetime]:
    """[1st of the month 00:00, 1st of the next month 00:00)."""
    start = datetime(day.year, day.month, 1)
    if day.month == 12:
        return start, datetime(day.year + 1, 1, 1)
    return start, datetime(day.year, day.month + 1, 1)


def minutes_since_midnight(value: time | datetime) -> int:
    return value.hour * 60 + value.minute


def format_hhmm(value: time | datetime) -> str:
    return f"{value.hour:02d}:{value.minute:02d}"
