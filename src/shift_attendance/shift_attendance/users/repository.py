from __future__ import annotations

from datetime import date
from typing import Optional, Protocol, Sequence

from .model import User


class UserRepository(Protocol):
    """Repository interface for User.

    Note (DIP): services depend on this interface, not on a concrete DB.
    """

    def get_by_id(self, user_id: int) -> Optional[User]:
        raise NotImplementedError

    def list_with_shift_on(self, work_date: date, *, require_channel: bool = False) -> Sequence[User]:
        """Users owning at least one shift on ``work_date``."""

        raise NotImplementedError
