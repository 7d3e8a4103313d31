from __future__ import annotations

from datetime import date
from typing import Any, Dict, Optional, Sequence

from ..core.enums import Role
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone
from .model import User
from .repository import UserRepository


def row_to_user(r: Dict[str, Any], *, prefix: str = "") -> User:
    return User(
        user_id=int(r[f"{prefix}user_id"]),
        first_name=r[f"{prefix}first_name"],
        last_name=r.get(f"{prefix}last_name"),
        role=Role(r[f"{prefix}role"]),
        telegram_chat_id=r.get(f"{prefix}telegram_chat_id"),
    )


class MySQLUserRepository(UserRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, user_id: int) -> Optional[User]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT user_id, first_name, last_name, role, telegram_chat_id
                FROM users
                WHERE user_id=%s
                """,
                (user_id,),
            )
            row = fetchone(cur)
            return row_to_user(row) if row else None

    def list_with_shift_on(self, work_date: date, *, require_channel: bool = False) -> Sequence[User]:
        channel_clause = "AND u.telegram_chat_id IS NOT NULL" if require_channel else ""
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT u.user_id, u.first_name, u.last_name, u.role, u.telegram_chat_id
                FROM users u
                WHERE EXISTS (
                    SELECT 1 FROM shifts s
                    WHERE s.user_id = u.user_id AND s.work_date = %s
                )
                {channel_clause}
                ORDER BY u.user_id
                """,
                (work_date,),
            )
            return [row_to_user(r) for r in fetchall(cur)]
