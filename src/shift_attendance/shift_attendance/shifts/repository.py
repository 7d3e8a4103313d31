from __future__ import annotations

from datetime import date
from typing import Optional, Protocol, Sequence

from .model import Shift, ShiftAssignment


class ShiftRepository(Protocol):
    def get_first_for_user_on(self, user_id: int, work_date: date) -> Optional[Shift]:
        """First shift of ``user_id`` on ``work_date``; uniqueness is assumed, not enforced."""

        raise NotImplementedError

    def list_for_user_on(self, user_id: int, work_date: date) -> Sequence[Shift]:
        raise NotImplementedError

    def list_assignments_on(self, work_date: date) -> Sequence[ShiftAssignment]:
        """All shifts on ``work_date`` joined with their user and attendance (if any)."""

        raise NotImplementedError
