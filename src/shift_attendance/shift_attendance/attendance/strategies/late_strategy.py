from __future__ import annotations

from ...core.enums import AttendanceStatus
from .base import AttendanceStrategy, StatusDecision


class LateStrategy(AttendanceStrategy):
    """Late check-in."""

    def decide_checkin(self, *, minutes_late: int) -> StatusDecision:
        return StatusDecision(status=AttendanceStatus.TERLAMBAT, minutes_late=minutes_late)
