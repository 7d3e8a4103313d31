from __future__ import annotations

from datetime import date
from typing import Any, Dict, Optional, Sequence

from ..attendance.mysql_attendance_repository import row_to_record
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, normalize_mysql_time
from ..users.mysql_user_repository import row_to_user
from .model import Shift, ShiftAssignment
from .repository import ShiftRepository

_SHIFT_COLUMNS = "s.shift_id, s.user_id, s.work_date, s.start_time, s.end_time, s.location"


def row_to_shift(r: Dict[str, Any]) -> Shift:
    return Shift(
        shift_id=int(r["shift_id"]),
        user_id=int(r["user_id"]),
        work_date=r["work_date"],
        start_time=normalize_mysql_time(r["start_time"]),
        end_time=normalize_mysql_time(r["end_time"]),
        location=r.get("location"),
    )


class MySQLShiftRepository(ShiftRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_first_for_user_on(self, user_id: int, work_date: date) -> Optional[Shift]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_SHIFT_COLUMNS}
                FROM shifts s
                WHERE s.user_id=%s AND s.work_date=%s
                ORDER BY s.shift_id
                LIMIT 1
                """,
                (user_id, work_date),
            )
            r = fetchone(cur)
            return row_to_shift(r) if r else None

    def list_for_user_on(self, user_id: int, work_date: date) -> Sequence[Shift]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_SHIFT_COLUMNS}
                FROM shifts s
                WHERE s.user_id=%s AND s.work_date=%s
                ORDER BY s.start_time, s.shift_id
                """,
                (user_id, work_date),
            )
            return [row_to_shift(r) for r in fetchall(cur)]

    def list_assignments_on(self, work_date: date) -> Sequence[ShiftAssignment]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT
                    {_SHIFT_COLUMNS},
                    u.user_id AS u_user_id, u.first_name AS u_first_name, u.last_name AS u_last_name,
                    u.role AS u_role, u.telegram_chat_id AS u_telegram_chat_id,
                    a.attendance_id, a.user_id AS a_user_id, a.shift_id AS a_shift_id,
                    a.check_in_time, a.check_out_time, a.status, a.created_at,
                    a.location AS a_location, a.photo, a.note
                FROM shifts s
                JOIN users u ON u.user_id = s.user_id
                LEFT JOIN absensi a ON a.shift_id = s.shift_id AND a.user_id = s.user_id
                WHERE s.work_date=%s
                ORDER BY s.start_time, s.shift_id
                """,
                (work_date,),
            )
            out: list[ShiftAssignment] = []
            for r in fetchall(cur):
                attendance = None
                if r.get("attendance_id") is not None:
                    attendance = row_to_record(
                        {
                            **r,
                            "user_id": r["a_user_id"],
                            "shift_id": r["a_shift_id"],
                            "location": r.get("a_location"),
                        }
                    )
                out.append(ShiftAssignment(shift=row_to_shift(r), user=row_to_user(r, prefix="u_"), attendance=attendance))
            return out
