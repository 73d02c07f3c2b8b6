from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, Optional, Sequence

from ..core.enums import SessionStatus
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone
from .model import AttendanceSession, Geofence
from .repository import SessionRepository

_COLUMNS = """
    session_id, subject, faculty_id, scheduled_start, scheduled_end, late_after_minutes, status,
    qr_token, qr_issued_at, qr_expires_at, location_required,
    required_latitude, required_longitude, location_radius, created_at
"""


def _to_session(r: Dict[str, Any]) -> AttendanceSession:
    geofence = None
    if r.get("location_required"):
        geofence = Geofence(
            latitude=float(r["required_latitude"]),
            longitude=float(r["required_longitude"]),
            radius_m=float(r["location_radius"]),
        )
    late_after = r.get("late_after_minutes")
    return AttendanceSession(
        session_id=int(r["session_id"]),
        subject=r["subject"],
        faculty_id=int(r["faculty_id"]),
        scheduled_start=r["scheduled_start"],
        scheduled_end=r.get("scheduled_end"),
        late_after_minutes=int(late_after) if late_after is not None else None,
        status=SessionStatus(r["status"]),
        qr_token=r.get("qr_token"),
        qr_issued_at=r.get("qr_issued_at"),
        qr_expires_at=r.get("qr_expires_at"),
        geofence=geofence,
        created_at=r.get("created_at"),
    )


class MySQLSessionRepository(SessionRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def create(
        self,
        *,
        subject: str,
        faculty_id: int,
        scheduled_start: datetime,
        scheduled_end: Optional[datetime],
        late_after_minutes: Optional[int],
        created_at: datetime,
    ) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO attendance_sessions(
                    subject, faculty_id, scheduled_start, scheduled_end, late_after_minutes, status, created_at, updated_at
                )
                VALUES(%s,%s,%s,%s,%s,%s,%s,%s)
                """,
                (
                    subject,
                    int(faculty_id),
                    scheduled_start,
                    scheduled_end,
                    late_after_minutes,
                    SessionStatus.SCHEDULED.value,
                    created_at,
                    created_at,
                ),
            )
            return int(cur.lastrowid)

    def get_by_id(self, session_id: int) -> Optional[AttendanceSession]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM attendance_sessions WHERE session_id=%s", (int(session_id),))
            r = fetchone(cur)
            return _to_session(r) if r else None

    def get_by_token(self, token: str) -> Optional[AttendanceSession]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM attendance_sessions WHERE qr_token=%s", (token,))
            r = fetchone(cur)
            return _to_session(r) if r else None

    def store_token(
        self,
        *,
        session_id: int,
        token: str,
        issued_at: datetime,
        expires_at: datetime,
        geofence: Optional[Geofence],
    ) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE attendance_sessions
                SET qr_token=%s, qr_issued_at=%s, qr_expires_at=%s,
                    location_required=%s, required_latitude=%s, required_longitude=%s, location_radius=%s,
                    status=%s, updated_at=%s
                WHERE session_id=%s
                """,
                (
                    token,
                    issued_at,
                    expires_at,
                    1 if geofence else 0,
                    geofence.latitude if geofence else None,
                    geofence.longitude if geofence else None,
                    geofence.radius_m if geofence else None,
                    SessionStatus.ACTIVE.value,
                    issued_at,
                    int(session_id),
                ),
            )
            return cur.rowcount > 0

    def close(self, *, session_id: int, closed_at: datetime) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE attendance_sessions
                SET status=%s, qr_token=NULL, qr_expires_at=NULL, updated_at=%s
                WHERE session_id=%s
                """,
                (SessionStatus.CLOSED.value, closed_at, int(session_id)),
            )
            return cur.rowcount > 0

    def list_for_faculty(self, *, faculty_id: int, limit: int) -> Sequence[AttendanceSession]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM attendance_sessions
                WHERE faculty_id=%s
                ORDER BY scheduled_start DESC
                LIMIT %s
                """,
                (int(faculty_id), int(limit)),
            )
            return [_to_session(r) for r in fetchall(cur)]

    def list_elapsed(self, *, now: datetime) -> Sequence[AttendanceSession]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM attendance_sessions
                WHERE status<>%s AND scheduled_end IS NOT NULL AND scheduled_end<=%s
                ORDER BY scheduled_end ASC
                """,
                (SessionStatus.CLOSED.value, now),
            )
            return [_to_session(r) for r in fetchall(cur)]
