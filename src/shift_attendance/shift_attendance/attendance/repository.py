from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, Optional, Protocol, Sequence

from ..core.enums import AttendanceStatus
from .model import AttendanceDetail, AttendanceQuery, AttendanceRecord, CreatedRange, StatusCount


class AttendanceRepository(Protocol):
    def get_by_id(self, attendance_id: int) -> Optional[AttendanceRecord]:
        raise NotImplementedError

    def get_for_user_and_shift(self, user_id: int, shift_id: int) -> Optional[AttendanceRecord]:
        raise NotImplementedError

    def create_checkin(
        self,
        *,
        user_id: int,
        shift_id: int,
        check_in_time: datetime,
        status: AttendanceStatus,
        location: Optional[str] = None,
        photo: Optional[str] = None,
        note: Optional[str] = None,
    ) -> int:
        """Insert the check-in row and return its id.

        Raises ``AlreadyCheckedIn`` when the store rejects a second row for the
        same (user, shift).
        """

        raise NotImplementedError

    def update_checkout(self, *, attendance_id: int, check_out_time: datetime, fields: Dict[str, Any]) -> bool:
        raise NotImplementedError

    def update_fields(self, *, attendance_id: int, fields: Dict[str, Any]) -> bool:
        """Admin-only override used by verification."""

        raise NotImplementedError

    def list_details(self, query: AttendanceQuery) -> Sequence[AttendanceDetail]:
        """Newest first, paginated by ``query.limit``/``query.offset``."""

        raise NotImplementedError

    def count_by_status(self, *, created: Optional[CreatedRange] = None, user_id: Optional[int] = None) -> Sequence[StatusCount]:
        raise NotImplementedError

    def list_for_report(self, *, created: CreatedRange, user_id: Optional[int] = None) -> Sequence[AttendanceDetail]:
        """Ordered by user name, then ``created_at`` ascending."""

        raise NotImplementedError
