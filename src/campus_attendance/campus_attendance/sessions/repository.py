from __future__ import annotations

from datetime import datetime
from typing import Optional, Protocol, Sequence

from .model import AttendanceSession, Geofence


class SessionRepository(Protocol):
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
        """Insert a session in status 'scheduled'. Returns session_id."""

        raise NotImplementedError

    def get_by_id(self, session_id: int) -> Optional[AttendanceSession]:
        raise NotImplementedError

    def get_by_token(self, token: str) -> Optional[AttendanceSession]:
        """Session whose *current* stored token equals ``token``."""

        raise NotImplementedError

    def store_token(
        self,
        *,
        session_id: int,
        token: str,
        issued_at: datetime,
        expires_at: datetime,
        geofence: Optional[Geofence],
    ) -> bool:
        """Overwrite the token/expiry/geofence fields and mark the session active."""

        raise NotImplementedError

    def close(self, *, session_id: int, closed_at: datetime) -> bool:
        """Mark closed and clear the token fields."""

        raise NotImplementedError

    def list_for_faculty(self, *, faculty_id: int, limit: int) -> Sequence[AttendanceSession]:
        raise NotImplementedError

    def list_elapsed(self, *, now: datetime) -> Sequence[AttendanceSession]:
        """Non-closed sessions whose scheduled_end is at or before ``now``."""

        raise NotImplementedError
