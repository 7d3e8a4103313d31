from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional, Sequence

import mysql.connector

from ..core.enums import AttendanceStatus, Role
from ..core.exceptions import AlreadyCheckedIn
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, is_duplicate_key, normalize_mysql_time
from ..shifts.model import Shift
from .model import AttendanceDetail, AttendanceQuery, AttendanceRecord, CreatedRange, StatusCount
from .repository import AttendanceRepository

_RECORD_COLUMNS = (
    "a.attendance_id, a.user_id, a.shift_id, a.check_in_time, a.check_out_time, "
    "a.status, a.created_at, a.location, a.photo, a.note"
)

_DETAIL_SELECT = f"""
    SELECT
        {_RECORD_COLUMNS},
        u.first_name, u.last_name, u.role,
        s.work_date AS s_work_date, s.start_time AS s_start_time,
        s.end_time AS s_end_time, s.location AS s_location
    FROM absensi a
    JOIN users u ON u.user_id = a.user_id
    LEFT JOIN shifts s ON s.shift_id = a.shift_id
"""

# Only these columns may be written through update_fields/update_checkout.
_WRITABLE_COLUMNS = {"status", "note", "location", "photo", "check_in_time", "check_out_time"}


def row_to_record(r: Dict[str, Any]) -> AttendanceRecord:
    return AttendanceRecord(
        attendance_id=int(r["attendance_id"]),
        user_id=int(r["user_id"]),
        shift_id=int(r["shift_id"]),
        check_in_time=r.get("check_in_time"),
        check_out_time=r.get("check_out_time"),
        status=AttendanceStatus(r["status"]),
        created_at=r["created_at"],
        location=r.get("location"),
        photo=r.get("photo"),
        note=r.get("note"),
    )


def _row_to_detail(r: Dict[str, Any]) -> AttendanceDetail:
    shift = None
    if r.get("s_work_date") is not None:
        shift = Shift(
            shift_id=int(r["shift_id"]),
            user_id=int(r["user_id"]),
            work_date=r["s_work_date"],
            start_time=normalize_mysql_time(r["s_start_time"]),
            end_time=normalize_mysql_time(r["s_end_time"]),
            location=r.get("s_location"),
        )
    return AttendanceDetail(
        record=row_to_record(r),
        first_name=r["first_name"],
        last_name=r.get("last_name"),
        role=Role(r["role"]) if r.get("role") else None,
        shift=shift,
    )


def _created_clause(created: Optional[CreatedRange], clauses: list[str], params: list[object]) -> None:
    if created is None:
        return
    clauses.append("a.created_at >= %s")
    params.append(created.start)
    clauses.append("a.created_at <= %s" if created.inclusive_end else "a.created_at < %s")
    params.append(created.end)


def _set_clause(fields: Dict[str, Any]) -> tuple[str, list[object]]:
    unknown = set(fields) - _WRITABLE_COLUMNS
    if unknown:
        raise ValueError(f"Kolom tidak boleh diubah: {sorted(unknown)}")
    parts = [f"{col}=%s" for col in fields]
    values = [v.value if isinstance(v, Enum) else v for v in fields.values()]
    return ", ".join(parts), values


class MySQLAttendanceRepository(AttendanceRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, attendance_id: int) -> Optional[AttendanceRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_RECORD_COLUMNS} FROM absensi a WHERE a.attendance_id=%s",
                (attendance_id,),
            )
            r = fetchone(cur)
            return row_to_record(r) if r else None

    def get_for_user_and_shift(self, user_id: int, shift_id: int) -> Optional[AttendanceRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_RECORD_COLUMNS} FROM absensi a WHERE a.user_id=%s AND a.shift_id=%s LIMIT 1",
                (user_id, shift_id),
            )
            r = fetchone(cur)
            return row_to_record(r) if r else None

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
        with db_cursor(self._conn_factory) as (_, cur):
            try:
                cur.execute(
                    """
                    INSERT INTO absensi(user_id, shift_id, check_in_time, status, location, photo, note, created_at)
                    VALUES(%s,%s,%s,%s,%s,%s,%s,%s)
                    """,
                    (user_id, shift_id, check_in_time, status.value, location, photo, note, check_in_time),
                )
            except mysql.connector.Error as e:
                if is_duplicate_key(e):
                    raise AlreadyCheckedIn() from e
                raise
            return int(cur.lastrowid)

    def update_checkout(self, *, attendance_id: int, check_out_time: datetime, fields: Dict[str, Any]) -> bool:
        return self.update_fields(attendance_id=attendance_id, fields={**fields, "check_out_time": check_out_time})

    def update_fields(self, *, attendance_id: int, fields: Dict[str, Any]) -> bool:
        if not fields:
            return False
        set_sql, values = _set_clause(fields)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"UPDATE absensi SET {set_sql}, updated_at=NOW() WHERE attendance_id=%s",
                (*values, int(attendance_id)),
            )
            return cur.rowcount > 0

    def list_details(self, query: AttendanceQuery) -> Sequence[AttendanceDetail]:
        clauses: list[str] = []
        params: list[object] = []

        _created_clause(query.created, clauses, params)
        if query.status is not None:
            clauses.append("a.status=%s")
            params.append(query.status.value)
        if query.user_id is not None:
            clauses.append("a.user_id=%s")
            params.append(int(query.user_id))

        where = f"WHERE {' AND '.join(clauses)}" if clauses else ""
        params.extend([int(query.limit or 0), int(query.offset or 0)])

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                {_DETAIL_SELECT}
                {where}
                ORDER BY a.created_at DESC, a.attendance_id DESC
                LIMIT %s OFFSET %s
                """,
                tuple(params),
            )
            return [_row_to_detail(r) for r in fetchall(cur)]

    def count_by_status(self, *, created: Optional[CreatedRange] = None, user_id: Optional[int] = None) -> Sequence[StatusCount]:
        clauses: list[str] = []
        params: list[object] = []

        _created_clause(created, clauses, params)
        if user_id is not None:
            clauses.append("a.user_id=%s")
            params.append(int(user_id))

        where = f"WHERE {' AND '.join(clauses)}" if clauses else ""
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT a.status, COUNT(*) AS total
                FROM absensi a
                {where}
                GROUP BY a.status
                ORDER BY a.status
                """,
                tuple(params),
            )
            return [StatusCount(status=AttendanceStatus(r["status"]), count=int(r["total"])) for r in fetchall(cur)]

    def list_for_report(self, *, created: CreatedRange, user_id: Optional[int] = None) -> Sequence[AttendanceDetail]:
        clauses: list[str] = []
        params: list[object] = []

        _created_clause(created, clauses, params)
        if user_id is not None:
            clauses.append("a.user_id=%s")
            params.append(int(user_id))

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                {_DETAIL_SELECT}
                WHERE {' AND '.join(clauses)}
                ORDER BY u.first_name ASC, u.last_name ASC, a.created_at ASC
                """,
                tuple(params),
            )
            return [_row_to_detail(r) for r in fetchall(cur)]
