from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, Optional, Protocol, Sequence

from ..core.enums import NotificationChannel, NotificationType
from .model import Notification


class NotificationRepository(Protocol):
    def exists_for_shift(self, *, user_id: int, type: NotificationType, since: datetime, shift_id: int) -> bool:
        """True if ``user_id`` already got ``type`` for ``shift_id`` at or after ``since``."""

        raise NotImplementedError

    def create(
        self,
        *,
        user_id: int,
        type: NotificationType,
        title: str,
        message: str,
        data: Dict[str, Any],
        sent_via: NotificationChannel,
        created_at: datetime,
        dedup_key: Optional[str] = None,
    ) -> Optional[int]:
        """Append a notification row.

        Returns ``None`` (and writes nothing) when ``dedup_key`` was already
        claimed by an earlier row.
        """

        raise NotImplementedError

    def list_for_user(self, user_id: int, *, limit: int) -> Sequence[Notification]:
        raise NotImplementedError
