from __future__ import annotations

import logging
from datetime import date
from typing import Optional, Sequence

from ..common.datetime_utils import Clock, SystemClock
from ..common.validators import require_positive_id
from ..core.constants import DEFAULT_NOTIFICATION_LIMIT
from ..core.enums import NotificationChannel
from ..users.model import User
from .dispatcher import NotificationDispatcher
from .messages import render
from .model import Notification, NotificationPayload
from .repository import NotificationRepository

logger = logging.getLogger(__name__)


def dedup_key_for(user_id: int, payload: NotificationPayload, day: date) -> Optional[str]:
    """``user:type:day:shift``; ``None`` when the payload has no shift."""

    if payload.shift_id is None:
        return None
    return f"{user_id}:{payload.type.value}:{day.isoformat()}:{payload.shift_id}"


class NotificationService:
    def __init__(
        self,
        notifications: NotificationRepository,
        dispatcher: NotificationDispatcher,
        *,
        clock: Clock | None = None,
    ):
        self._notifications = notifications
        self._dispatcher = dispatcher
        self._clock = clock or SystemClock()

    def notify(self, user: User, payload: NotificationPayload, *, claim: bool = True) -> Optional[Notification]:
        """Record a notification, then deliver it.

        With ``claim`` the row is inserted under a (user, type, day, shift)
        key first; if another run already holds that key nothing is sent and
        ``None`` is returned. Delivery errors propagate as ``DispatchError``
        after the row is stored.
        """

        now = self._clock.now()
        title, message = render(payload, user)
        channel = NotificationChannel.TELEGRAM if user.has_channel else NotificationChannel.SYSTEM
        data = payload.to_dict()

        notification_id = self._notifications.create(
            user_id=user.user_id,
            type=payload.type,
            title=title,
            message=message,
            data=data,
            sent_via=channel,
            created_at=now,
            dedup_key=dedup_key_for(user.user_id, payload, now.date()) if claim else None,
        )
        if notification_id is None:
            logger.info("%s for user %s shift %s already claimed", payload.type.value, user.user_id, payload.shift_id)
            return None

        self._dispatcher.send(
            user,
            title=title,
            body=message,
            type=payload.type,
            payload=data,
            channel=channel,
        )
        return Notification(
            notification_id=notification_id,
            user_id=user.user_id,
            type=payload.type,
            title=title,
            message=message,
            data=data,
            sent_via=channel,
            created_at=now,
        )

    def list_for_user(self, user_id: int, *, limit: int = DEFAULT_NOTIFICATION_LIMIT) -> Sequence[Notification]:
        return self._notifications.list_for_user(require_positive_id(user_id, "userId"), limit=limit)
