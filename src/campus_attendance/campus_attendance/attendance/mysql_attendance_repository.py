from __future__ import annotations

from datetime import date, datetime
from typing import Any, Dict, Optional, Sequence

import mysql.connector

from ..core.enums import AttendanceStatus, Standing
from ..core.exceptions import DuplicateAttendance
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, is_duplicate_key
from .model import AttendanceRecord, AttendanceSummary, CohortRecordRow
from .repository import AttendanceRepository, SummaryRepository

_COLUMNS = """
    record_id, user_id, session_id, subject, status, marked_at,
    latitude, longitude, device_fingerprint, geofence_verified, note
"""


def _opt_float(value: Any) -> Optional[float]:
    return float(value) if value is not None else None


def _to_record(r: Dict[str, Any]) -> AttendanceRecord:
    return AttendanceRecord(
        record_id=int(r["record_id"]),
        user_id=int(r["user_id"]),
        session_id=int(r["session_id"]),
        subject=r["subject"],
        status=AttendanceStatus(r["status"]),
        marked_at=r["marked_at"],
        latitude=_opt_float(r.get("latitude")),
        longitude=_opt_float(r.get("longitude")),
        device_fingerprint=r.get("device_fingerprint"),
        geofence_verified=bool(r.get("geofence_verified")),
        note=r.get("note"),
    )


class MySQLAttendanceRepository(AttendanceRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, record_id: int) -> Optional[AttendanceRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM attendance_records WHERE record_id=%s", (int(record_id),))
            r = fetchone(cur)
            return _to_record(r) if r else None

    def get_for_user_and_session(self, user_id: int, session_id: int) -> Optional[AttendanceRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_COLUMNS} FROM attendance_records WHERE user_id=%s AND session_id=%s",
                (int(user_id), int(session_id)),
            )
            r = fetchone(cur)
            return _to_record(r) if r else None

    def insert_record(
        self,
        *,
        user_id: int,
        session_id: int,
        subject: str,
        status: AttendanceStatus,
        marked_at: datetime,
        latitude: Optional[float] = None,
        longitude: Optional[float] = None,
        device_fingerprint: Optional[str] = None,
        geofence_verified: bool = False,
        note: Optional[str] = None,
    ) -> AttendanceRecord:
        try:
            with db_cursor(self._conn_factory) as (_, cur):
                cur.execute(
                    """
                    INSERT INTO attendance_records(
                        user_id, session_id, subject, status, marked_at,
                        latitude, longitude, device_fingerprint, geofence_verified, note
                    )
                    VALUES(%s,%s,%s,%s,%s,%s,%s,%s,%s,%s)
                    """,
                    (
                        int(user_id),
                        int(session_id),
                        subject,
                        status.value,
                        marked_at,
                        latitude,
                        longitude,
                        device_fingerprint,
                        1 if geofence_verified else 0,
                        note,
                    ),
                )
                record_id = int(cur.lastrowid)
        except mysql.connector.errors.IntegrityError as exc:
            if is_duplicate_key(exc):
                raise DuplicateAttendance("Attendance already marked for this session") from exc
            raise

        return AttendanceRecord(
            record_id=record_id,
            user_id=int(user_id),
            session_id=int(session_id),
            subject=subject,
            status=status,
            marked_at=marked_at,
            latitude=latitude,
            longitude=longitude,
            device_fingerprint=device_fingerprint,
            geofence_verified=bool(geofence_verified),
            note=note,
        )

    def list_for_user(
        self,
        user_id: int,
        *,
        start: Optional[date] = None,
        end: Optional[date] = None,
    ) -> Sequence[AttendanceRecord]:
        clauses = ["user_id=%s"]
        params: list[object] = [int(user_id)]
        if start is not None:
            clauses.append("DATE(marked_at)>=%s")
            params.append(start)
        if end is not None:
            clauses.append("DATE(marked_at)<=%s")
            params.append(end)

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM attendance_records
                WHERE {" AND ".join(clauses)}
                ORDER BY marked_at DESC, record_id DESC
                """,
                tuple(params),
            )
            return [_to_record(r) for r in fetchall(cur)]

    def list_for_session(self, session_id: int) -> Sequence[AttendanceRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_COLUMNS} FROM attendance_records WHERE session_id=%s ORDER BY marked_at ASC",
                (int(session_id),),
            )
            return [_to_record(r) for r in fetchall(cur)]

    def update_status(self, *, record_id: int, status: AttendanceStatus, note: Optional[str] = None) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "UPDATE attendance_records SET status=%s, note=%s WHERE record_id=%s",
                (status.value, note, int(record_id)),
            )
            return cur.rowcount > 0

    def delete(self, *, record_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM attendance_records WHERE record_id=%s", (int(record_id),))
            return cur.rowcount > 0

    def get_cohort_rows(
        self,
        *,
        start: Optional[date] = None,
        end: Optional[date] = None,
        department: Optional[str] = None,
        semester: Optional[int] = None,
        subject: Optional[str] = None,
    ) -> Sequence[CohortRecordRow]:
        clauses = ["1=1"]
        params: list[object] = []
        if start is not None:
            clauses.append("DATE(ar.marked_at)>=%s")
            params.append(start)
        if end is not None:
            clauses.append("DATE(ar.marked_at)<=%s")
            params.append(end)
        if department:
            clauses.append("u.department=%s")
            params.append(department)
        if semester is not None:
            clauses.append("u.semester=%s")
            params.append(int(semester))
        if subject:
            clauses.append("ar.subject=%s")
            params.append(subject)

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT
                    ar.record_id, ar.user_id, u.full_name, u.department, u.semester,
                    ar.session_id, ar.subject, ar.status, ar.marked_at, ar.geofence_verified, ar.note
                FROM attendance_records ar
                JOIN users u ON u.user_id = ar.user_id
                WHERE {" AND ".join(clauses)}
                ORDER BY ar.marked_at DESC, ar.user_id ASC
                """,
                tuple(params),
            )
            return [
                CohortRecordRow(
                    record_id=int(r["record_id"]),
                    user_id=int(r["user_id"]),
                    full_name=r["full_name"],
                    department=r.get("department"),
                    semester=int(r["semester"]) if r.get("semester") is not None else None,
                    session_id=int(r["session_id"]),
                    subject=r["subject"],
                    status=AttendanceStatus(r["status"]),
                    marked_at=r["marked_at"],
                    geofence_verified=bool(r.get("geofence_verified")),
                    note=r.get("note"),
                )
                for r in fetchall(cur)
            ]


class MySQLSummaryRepository(SummaryRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get(self, user_id: int) -> Optional[AttendanceSummary]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT user_id, total_classes, present_count, late_count, absent_count, percentage, standing, updated_at
                FROM attendance_summary
                WHERE user_id=%s
                """,
                (int(user_id),),
            )
            r = fetchone(cur)
            if not r:
                return None
            return AttendanceSummary(
                user_id=int(r["user_id"]),
                total=int(r["total_classes"]),
                present=int(r["present_count"]),
                late=int(r["late_count"]),
                absent=int(r["absent_count"]),
                percentage=int(r["percentage"]),
                standing=Standing(r["standing"]),
                updated_at=r.get("updated_at"),
            )

    def upsert(self, summary: AttendanceSummary) -> None:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO attendance_summary(
                    user_id, total_classes, present_count, late_count, absent_count, percentage, standing, updated_at
                )
                VALUES(%s,%s,%s,%s,%s,%s,%s,%s)
                ON DUPLICATE KEY UPDATE
                    total_classes=VALUES(total_classes), present_count=VALUES(present_count),
                    late_count=VALUES(late_count), absent_count=VALUES(absent_count),
                    percentage=VALUES(percentage), standing=VALUES(standing), updated_at=VALUES(updated_at)
                """,
                (
                    int(summary.user_id),
                    summary.total,
                    summary.present,
                    summary.late,
                    summary.absent,
                    summary.percentage,
                    summary.standing.value,
                    summary.updated_at,
                ),
            )

    def invalidate(self, user_id: int) -> None:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM attendance_summary WHERE user_id=%s", (int(user_id),))
