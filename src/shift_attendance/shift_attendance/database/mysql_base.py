from __future__ import annotations

import json
from contextlib import contextmanager
from datetime import datetime, time, timedelta
from typing import Any, Dict, Iterator, List, Optional, Tuple

import mysql.connector
from mysql.connector import errorcode

from ..core.exceptions import InfrastructureError
from .connection import DatabaseConnection

Row = Dict[str, Any]


@contextmanager
def db_cursor(conn_factory: DatabaseConnection, *, dictionary: bool = True) -> Iterator[Tuple[Any, Any]]:
    """Yield ``(conn, cursor)`` for one unit of work.

    Commits when the block exits cleanly and rolls back otherwise. Driver
    errors surface as ``InfrastructureError`` so services never see
    mysql-connector types; other exceptions (e.g. ``AlreadyCheckedIn``
    raised inside the block) pass through unchanged.
    """

    try:
        conn = conn_factory.connect()
    except mysql.connector.Error as e:
        raise InfrastructureError(f"Koneksi database gagal: {e}") from e

    cur = None
    try:
        cur = conn.cursor(dictionary=dictionary)
        yield conn, cur
        conn.commit()
    except mysql.connector.Error as e:
        conn.rollback()
        raise InfrastructureError(f"Operasi database gagal: {e}") from e
    except Exception:
        conn.rollback()
        raise
    finally:
        if cur is not None:
            cur.close()
        conn.close()


def fetchone(cur) -> Optional[Row]:
    return cur.fetchone() or None


def fetchall(cur) -> List[Row]:
    return list(cur.fetchall() or [])


def is_duplicate_key(error: mysql.connector.Error) -> bool:
    return getattr(error, "errno", None) == errorcode.ER_DUP_ENTRY


def load_json(value: Any) -> Dict[str, Any]:
    """MySQL JSON columns come back as str, bytes or already-decoded dicts."""

    if value is None:
        return {}
    if isinstance(value, dict):
        return value
    if isinstance(value, (bytes, bytearray)):
        value = value.decode("utf-8")
    return json.loads(value)


def normalize_mysql_time(value: Any) -> Optional[time]:
    """TIME columns arrive as ``timedelta`` from the pure-Python connector,
    sometimes as ``time`` or ``'HH:MM[:SS]'`` strings."""

    if value is None or isinstance(value, time):
        return value
    if isinstance(value, timedelta):
        return (datetime.min + timedelta(seconds=int(value.total_seconds()) % 86400)).time()
    if isinstance(value, str):
        return time.fromisoformat(value.strip())
    raise TypeError(f"Unsupported MySQL TIME value: {value!r}")
