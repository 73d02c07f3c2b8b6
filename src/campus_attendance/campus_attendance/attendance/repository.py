from __future__ import annotations

from datetime import date, datetime
from typing import Optional, Protocol, Sequence

from ..core.enums import AttendanceStatus
from .model import AttendanceRecord, AttendanceSummary, CohortRecordRow


class AttendanceRepository(Protocol):
    def get_by_id(self, record_id: int) -> Optional[AttendanceRecord]:
        raise NotImplementedError

    def get_for_user_and_session(self, user_id: int, session_id: int) -> Optional[AttendanceRecord]:
        raise NotImplementedError

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
        """Atomic constrained insert.

        Raises DuplicateAttendance when (user_id, session_id) already exists;
        the uniqueness check must happen in the store, not in a pre-read.
        """

        raise NotImplementedError

    def list_for_user(
        self,
        user_id: int,
        *,
        start: Optional[date] = None,
        end: Optional[date] = None,
    ) -> Sequence[AttendanceRecord]:
        raise NotImplementedError

    def list_for_session(self, session_id: int) -> Sequence[AttendanceRecord]:
        raise NotImplementedError

    def update_status(self, *, record_id: int, status: AttendanceStatus, note: Optional[str] = None) -> bool:
        """Admin-only override used by corrections."""

        raise NotImplementedError

    def delete(self, *, record_id: int) -> bool:
        raise NotImplementedError

    def get_cohort_rows(
        self,
        *,
        start: Optional[date] = None,
        end: Optional[date] = None,
        department: Optional[str] = None,
        semester: Optional[int] = None,
        subject: Optional[str] = None,
    ) -> Sequence[CohortRecordRow]:
        raise NotImplementedError


class SummaryRepository(Protocol):
    def get(self, user_id: int) -> Optional[AttendanceSummary]:
        raise NotImplementedError

    def upsert(self, summary: AttendanceSummary) -> None:
        """Overwrite the cached summary keyed by user_id."""

        raise NotImplementedError

    def invalidate(self, user_id: int) -> None:
        """Drop the cached summary; readers then compute from records."""

        raise NotImplementedError
