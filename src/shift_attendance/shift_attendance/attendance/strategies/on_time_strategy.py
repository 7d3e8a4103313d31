from __future__ import annotations

from ...core.enums import AttendanceStatus
from .base import AttendanceStrategy, StatusDecision


class OnTimeStrategy(AttendanceStrategy):
    """Check-in within the tolerance (early check-ins included)."""

    def decide_checkin(self, *, minutes_late: int) -> StatusDecision:
        return StatusDecision(status=AttendanceStatus.HADIR, minutes_late=minutes_late)
