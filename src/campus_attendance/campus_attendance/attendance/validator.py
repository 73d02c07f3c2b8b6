"""Scan validation: the accept/reject rules for a scanned QR token.

Checks run in a fixed order and stop at the first failure: role, token,
expiry, duplicate, geofence. The duplicate pre-read only gives a cheap early
answer; the store's (user_id, session_id) uniqueness constraint decides races.
Every outcome, accepted or rejected, is written to the audit log.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Callable, Optional

from ..audit.service import AuditTrail
from ..common.datetime_utils import now_utc
from ..common.geo import haversine_distance_m
from ..common.validators import require_non_empty
from ..core.constants import DEFAULT_LATE_AFTER_MINUTES
from ..core.enums import AuditAction, Role
from ..core.exceptions import (
    DomainError,
    DuplicateAttendance,
    GeofenceViolation,
    InvalidToken,
    StoreUnavailable,
    TokenExpired,
)
from ..sessions.model import AttendanceSession
from ..sessions.repository import SessionRepository
from ..users.service import UserService
from .factory import AttendanceStrategyFactory
from .model import AttendanceRecord, Location
from .repository import AttendanceRepository
from .summary import SummaryRecorder

logger = logging.getLogger(__name__)


class AttendanceValidator:
    def __init__(
        self,
        sessions: SessionRepository,
        attendance: AttendanceRepository,
        summaries: SummaryRecorder,
        users: UserService,
        audit: AuditTrail,
        *,
        strategy_factory: AttendanceStrategyFactory | None = None,
        late_after_minutes: int = DEFAULT_LATE_AFTER_MINUTES,
        clock: Callable[[], datetime] = now_utc,
    ):
        self._sessions = sessions
        self._attendance = attendance
        self._summaries = summaries
        self._users = users
        self._audit = audit
        self._factory = strategy_factory or AttendanceStrategyFactory()
        self._late_after_minutes = int(late_after_minutes)
        self._clock = clock

    def validate(
        self,
        token: str,
        user_id: int,
        location: Optional[Location] = None,
        *,
        device_fingerprint: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> AttendanceRecord:
        now = now or self._clock()
        session: Optional[AttendanceSession] = None
        context: dict = {}

        try:
            self._users.require_role(user_id, Role.STUDENT)
            token = require_non_empty(token, "token")

            session = self._sessions.get_by_token(token)
            if not session:
                raise InvalidToken("Invalid QR code")

            if session.qr_expires_at is None or now >= session.qr_expires_at:
                raise TokenExpired("QR code has expired")

            existing = self._attendance.get_for_user_and_session(int(user_id), session.session_id)
            if existing:
                raise DuplicateAttendance(f"Attendance already marked as {existing.status.value}")

            geofence_verified = self._check_geofence(session, location, context)

            late_after = self._factory.late_window_for(session, self._late_after_minutes)
            strategy = self._factory.for_scan(now=now, session=session, late_after_minutes=late_after)
            decision = strategy.decide_scan(now=now, session=session, late_after_minutes=late_after)

            self._summaries.invalidate(int(user_id))
            record = self._attendance.insert_record(
                user_id=int(user_id),
                session_id=session.session_id,
                subject=session.subject,
                status=decision.status,
                marked_at=now,
                latitude=location.latitude if location else None,
                longitude=location.longitude if location else None,
                device_fingerprint=device_fingerprint,
                geofence_verified=geofence_verified,
                note=decision.note,
            )
        except StoreUnavailable:
            raise
        except DomainError as err:
            self._reject(err, user_id=user_id, session=session, now=now, context=context)
            raise

        self._audit.record(
            actor_id=record.user_id,
            action=AuditAction.ATTENDANCE_MARKED,
            target_table="attendance_records",
            target_id=record.record_id,
            at=now,
            session_id=record.session_id,
            status=record.status.value,
            location_verified=record.geofence_verified,
            **context,
        )
        # The record is committed and audited; a failure here leaves the cache invalidated.
        self._summaries.recompute(record.user_id, at=now)
        logger.info(
            "Attendance marked: session=%s user=%s status=%s",
            record.session_id,
            record.user_id,
            record.status.value,
        )
        return record

    def _check_geofence(self, session: AttendanceSession, location: Optional[Location], context: dict) -> bool:
        """Reject outright when outside the fence; no record is written."""
        geofence = session.geofence
        if geofence is None:
            return False

        if location is None:
            raise GeofenceViolation("Location is required for this session")

        distance = haversine_distance_m(location.latitude, location.longitude, geofence.latitude, geofence.longitude)
        context["distance_m"] = round(distance, 1)
        if distance > geofence.radius_m:
            raise GeofenceViolation(
                f"You must be within {geofence.radius_m:g}m of the class location (measured {distance:.0f}m)"
            )
        return True

    def _reject(
        self,
        err: DomainError,
        *,
        user_id,
        session: Optional[AttendanceSession],
        now: datetime,
        context: dict,
    ) -> None:
        session_id = session.session_id if session else None
        actor_id = user_id if isinstance(user_id, int) and not isinstance(user_id, bool) else None
        logger.warning("Attendance rejected (%s): session=%s user=%s", err.kind, session_id, user_id)
        self._audit.record(
            actor_id=actor_id,
            action=AuditAction.ATTENDANCE_REJECTED,
            target_table="attendance_sessions",
            target_id=session_id,
            at=now,
            success=False,
            reason=err.kind,
            message=str(err),
            **context,
        )
