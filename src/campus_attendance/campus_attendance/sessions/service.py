from __future__ import annotations

import logging
from datetime import datetime
from typing import Callable, Iterable, Optional, Sequence

from ..attendance.model import SessionStats
from ..attendance.repository import AttendanceRepository
from ..attendance.summary import SummaryRecorder, compute_session_stats
from ..audit.service import AuditTrail
from ..common.datetime_utils import now_utc
from ..common.validators import require_int, require_non_empty
from ..core.constants import DEFAULT_HISTORY_LIMIT, MAX_SUBJECT_LENGTH
from ..core.enums import AttendanceStatus, AuditAction, Role, SessionStatus
from ..core.exceptions import DuplicateAttendance, Forbidden, NotFoundOrForbidden, ValidationError
from ..users.service import UserService
from .model import AttendanceSession
from .repository import SessionRepository

logger = logging.getLogger(__name__)


class SessionService:
    """Faculty-facing session lifecycle: create, inspect, close."""

    def __init__(
        self,
        sessions: SessionRepository,
        attendance: AttendanceRepository,
        summaries: SummaryRecorder,
        users: UserService,
        audit: AuditTrail,
        *,
        clock: Callable[[], datetime] = now_utc,
    ):
        self._sessions = sessions
        self._attendance = attendance
        self._summaries = summaries
        self._users = users
        self._audit = audit
        self._clock = clock

    def create_session(
        self,
        *,
        faculty_id: int,
        subject: str,
        scheduled_start: datetime,
        scheduled_end: Optional[datetime] = None,
        late_after_minutes: Optional[int] = None,
    ) -> AttendanceSession:
        self._users.require_role(faculty_id, Role.FACULTY)
        subject = require_non_empty(subject, "subject")
        if len(subject) > MAX_SUBJECT_LENGTH:
            raise ValidationError(f"subject must be at most {MAX_SUBJECT_LENGTH} characters")
        if scheduled_end is not None and scheduled_end <= scheduled_start:
            raise ValidationError("scheduledEnd must be after scheduledStart")
        if late_after_minutes is not None:
            late_after_minutes = require_int(late_after_minutes, "lateAfterMinutes")
            if late_after_minutes < 0:
                raise ValidationError("lateAfterMinutes must not be negative")

        now = self._clock()
        session_id = self._sessions.create(
            subject=subject,
            faculty_id=int(faculty_id),
            scheduled_start=scheduled_start,
            scheduled_end=scheduled_end,
            late_after_minutes=late_after_minutes,
            created_at=now,
        )
        self._audit.record(
            actor_id=int(faculty_id),
            action=AuditAction.SESSION_CREATED,
            target_table="attendance_sessions",
            target_id=session_id,
            at=now,
            subject=subject,
            scheduled_start=scheduled_start.isoformat(),
        )
        logger.info("Session %s created by faculty %s (%s)", session_id, faculty_id, subject)
        return self.get_session(session_id)

    def get_session(self, session_id: int) -> AttendanceSession:
        session = self._sessions.get_by_id(int(session_id))
        if not session:
            raise NotFoundOrForbidden("Session not found")
        return session

    def list_for_faculty(self, faculty_id: int, *, limit: int = DEFAULT_HISTORY_LIMIT) -> Sequence[AttendanceSession]:
        return self._sessions.list_for_faculty(faculty_id=int(faculty_id), limit=int(limit))

    def session_stats(self, session_id: int) -> SessionStats:
        session = self.get_session(session_id)
        return compute_session_stats(session.session_id, self._attendance.list_for_session(session.session_id))

    def close_session(
        self,
        *,
        session_id: int,
        faculty_id: int,
        roster: Optional[Iterable[int]] = None,
    ) -> SessionStats:
        """Close the session and mark roster members without a record absent."""
        session = self._sessions.get_by_id(int(session_id))
        if not session or session.faculty_id != int(faculty_id):
            raise NotFoundOrForbidden("Session not found or access denied")

        student_ids = self._roster_students(roster or [])
        now = self._clock()
        if session.status != SessionStatus.CLOSED:
            self._sessions.close(session_id=session.session_id, closed_at=now)

        absentees = self._mark_absent(session, student_ids, now)

        self._audit.record(
            actor_id=int(faculty_id),
            action=AuditAction.SESSION_CLOSED,
            target_table="attendance_sessions",
            target_id=session.session_id,
            at=now,
            absentees=absentees,
        )
        logger.info("Session %s closed by faculty %s (%s marked absent)", session.session_id, faculty_id, len(absentees))
        return self.session_stats(session.session_id)

    def _roster_students(self, roster: Iterable[int]) -> list[int]:
        """Every entry must be an active student; nothing is written otherwise."""
        student_ids: list[int] = []
        for raw_id in roster:
            user_id = require_int(raw_id, "roster entry")
            try:
                self._users.require_role(user_id, Role.STUDENT)
            except Forbidden:
                raise ValidationError(f"roster entry {user_id} is not an active student")
            student_ids.append(user_id)
        return list(dict.fromkeys(student_ids))

    def _mark_absent(self, session: AttendanceSession, student_ids: Sequence[int], now: datetime) -> list[int]:
        marked: list[int] = []
        for user_id in student_ids:
            if self._attendance.get_for_user_and_session(user_id, session.session_id):
                continue
            self._summaries.invalidate(user_id)
            try:
                self._attendance.insert_record(
                    user_id=user_id,
                    session_id=session.session_id,
                    subject=session.subject,
                    status=AttendanceStatus.ABSENT,
                    marked_at=now,
                    note="Marked absent at session close",
                )
            except DuplicateAttendance:
                # The student scanned between the read and the insert; their scan stands.
                continue
            self._summaries.recompute(user_id, at=now)
            marked.append(user_id)
        return marked

    def close_elapsed_sessions(self, *, now: Optional[datetime] = None) -> list[int]:
        """Close every open session whose scheduled window has ended."""
        now = now or self._clock()
        closed: list[int] = []
        for session in self._sessions.list_elapsed(now=now):
            self._sessions.close(session_id=session.session_id, closed_at=now)
            self._audit.record(
                actor_id=None,
                action=AuditAction.SESSION_CLOSED,
                target_table="attendance_sessions",
                target_id=session.session_id,
                at=now,
                reason="scheduled window ended",
            )
            closed.append(session.session_id)
        if closed:
            logger.info("Closed %s elapsed session(s): %s", len(closed), closed)
        return closed
