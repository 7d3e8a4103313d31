from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta

from ..core.constants import LATE_TOLERANCE_MINUTES
from ..shifts.model import Shift
from .strategies.base import AttendanceStrategy
from .strategies.late_strategy import LateStrategy
from .strategies.on_time_strategy import OnTimeStrategy


def minutes_late(now: datetime, shift: Shift) -> int:
    """Whole minutes between the shift start on ``now``'s date and ``now``, floored.

    Negative for early check-ins.
    """

    return (now - shift.start_on(now.date())) // timedelta(minutes=1)


@dataclass
class AttendanceStrategyFactory:
    """Factory Pattern: choose appropriate strategy based on rules."""

    tolerance_minutes: int = LATE_TOLERANCE_MINUTES

    def for_checkin(self, *, minutes_late: int) -> AttendanceStrategy:
        if minutes_late <= self.tolerance_minutes:
            return OnTimeStrategy()
        return LateStrategy()
