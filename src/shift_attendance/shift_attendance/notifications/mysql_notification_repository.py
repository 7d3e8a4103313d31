from __future__ import annotations

import json
from datetime import datetime
from typing import Any, Dict, Optional, Sequence

import mysql.connector

from ..core.enums import NotificationChannel, NotificationType
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, is_duplicate_key, load_json
from .model import Notification
from .repository import NotificationRepository


class MySQLNotificationRepository(NotificationRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def exists_for_shift(self, *, user_id: int, type: NotificationType, since: datetime, shift_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT notification_id
                FROM notifikasi
                WHERE user_id=%s AND type=%s AND created_at >= %s AND shift_id=%s
                LIMIT 1
                """,
                (user_id, type.value, since, shift_id),
            )
            return fetchone(cur) is not None

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
        with db_cursor(self._conn_factory) as (_, cur):
            try:
                cur.execute(
                    """
                    INSERT INTO notifikasi(user_id, type, title, message, data, shift_id, sent_via, dedup_key, created_at)
                    VALUES(%s,%s,%s,%s,%s,%s,%s,%s,%s)
                    """,
                    (
                        user_id,
                        type.value,
                        title,
                        message,
                        json.dumps(data),
                        data.get("shiftId"),
                        sent_via.value,
                        dedup_key,
                        created_at,
                    ),
                )
            except mysql.connector.Error as e:
                if dedup_key and is_duplicate_key(e):
                    return None
                raise
            return int(cur.lastrowid)

    def list_for_user(self, user_id: int, *, limit: int) -> Sequence[Notification]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT notification_id, user_id, type, title, message, data, sent_via, created_at
                FROM notifikasi
                WHERE user_id=%s
                ORDER BY created_at DESC, notification_id DESC
                LIMIT %s
                """,
                (user_id, int(limit)),
            )
            return [
                Notification(
                    notification_id=int(r["notification_id"]),
                    user_id=int(r["user_id"]),
                    type=NotificationType(r["type"]),
                    title=r["title"],
                    message=r["message"],
                    data=load_json(r.get("data")),
                    sent_via=NotificationChannel(r["sent_via"]),
                    created_at=r["created_at"],
                )
                for r in fetchall(cur)
            ]
