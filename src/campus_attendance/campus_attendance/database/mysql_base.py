from __future__ import annotations

import json
from contextlib import contextmanager
from typing import Any, Dict, List, Optional

import mysql.connector
from mysql.connector import errorcode

from ..core.exceptions import StoreUnavailable
from .connection import DatabaseConnection

# Connection refused, timeouts and dropped connections surface as these.
_TRANSPORT_ERRORS = (mysql.connector.errors.InterfaceError, mysql.connector.errors.OperationalError)


def _connect(conn_factory: DatabaseConnection):
    try:
        return conn_factory.connect()
    except _TRANSPORT_ERRORS as exc:
        raise StoreUnavailable("Attendance store is unavailable") from exc


@contextmanager
def db_cursor(conn_factory: DatabaseConnection, *, dictionary: bool = True):
    """One connection, one transaction: commit on success, rollback on error.

    Transport failures are raised as StoreUnavailable; integrity errors are
    re-raised untouched so repositories can translate them.
    """
    conn = _connect(conn_factory)
    try:
        cur = conn.cursor(dictionary=dictionary)
        try:
            yield conn, cur
            conn.commit()
        finally:
            cur.close()
    except _TRANSPORT_ERRORS as exc:
        _safe_rollback(conn)
        raise StoreUnavailable("Attendance store is unavailable") from exc
    except Exception:
        _safe_rollback(conn)
        raise
    finally:
        conn.close()


def _safe_rollback(conn) -> None:
    try:
        conn.rollback()
    except _TRANSPORT_ERRORS:
        # The connection is already gone; the caller's error wins.
        pass


def is_duplicate_key(exc: BaseException) -> bool:
    return isinstance(exc, mysql.connector.errors.IntegrityError) and getattr(exc, "errno", None) == errorcode.ER_DUP_ENTRY


def fetchone(cur) -> Optional[Dict[str, Any]]:
    row = cur.fetchone()
    return row if row else None


def fetchall(cur) -> List[Dict[str, Any]]:
    rows = cur.fetchall()
    return list(rows or [])


def to_json(value: Optional[dict]) -> Optional[str]:
    if value is None:
        return None
    return json.dumps(value, default=str, sort_keys=True)


def from_json(value: Any) -> dict:
    """Normalize JSON columns across connector implementations (str/bytes/dict)."""

    if value is None:
        return {}
    if isinstance(value, dict):
        return value
    if isinstance(value, (bytes, bytearray)):
        value = value.decode("utf-8")
    return json.loads(value)
