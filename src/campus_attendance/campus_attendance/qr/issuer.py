"""QR token issuing for attendance sessions.

A token is ``<session id>:<issue time in ns>:<random>``. The random part makes
it unguessable; the session id and timestamp keep reissued tokens distinct
even within the same clock tick. Only the value stored on the session is
valid, so issuing a new token retires the previous one.
"""

from __future__ import annotations

import logging
import math
import secrets
import time
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Callable, Optional

from ..audit.service import AuditTrail
from ..common.datetime_utils import now_utc
from ..core.constants import DEFAULT_QR_EXPIRY_MINUTES, MAX_QR_EXPIRY_MINUTES, TOKEN_LOG_PREFIX_LEN
from ..core.enums import AuditAction, SessionStatus
from ..core.exceptions import InvalidToken, NotFoundOrForbidden, TokenExpired, ValidationError
from ..sessions.model import AttendanceSession, Geofence
from ..sessions.repository import SessionRepository
from .renderer import render_png

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class IssuedToken:
    session_id: int
    token: str
    issued_at: datetime
    expires_at: datetime

    def to_dict(self) -> dict:
        return {
            "sessionId": self.session_id,
            "token": self.token,
            "issuedAt": self.issued_at.isoformat(),
            "expiryTime": self.expires_at.isoformat(),
        }


def build_token(session_id: int) -> str:
    return f"{int(session_id)}:{time.time_ns()}:{secrets.token_urlsafe(24)}"


class QrTokenIssuer:
    def __init__(
        self,
        sessions: SessionRepository,
        audit: AuditTrail,
        *,
        default_expiry_minutes: int = DEFAULT_QR_EXPIRY_MINUTES,
        max_expiry_minutes: int = MAX_QR_EXPIRY_MINUTES,
        clock: Callable[[], datetime] = now_utc,
        token_factory: Callable[[int], str] = build_token,
    ):
        self._sessions = sessions
        self._audit = audit
        self._default_expiry = int(default_expiry_minutes)
        self._max_expiry = int(max_expiry_minutes)
        self._clock = clock
        self._token_factory = token_factory

    def _owned_session(self, session_id: int, faculty_id: int) -> AttendanceSession:
        session = self._sessions.get_by_id(int(session_id))
        if not session or session.faculty_id != int(faculty_id):
            raise NotFoundOrForbidden("Session not found or access denied")
        return session

    def _expiry_minutes(self, expiry_minutes: Optional[int]) -> int:
        if expiry_minutes is None:
            return self._default_expiry
        if isinstance(expiry_minutes, bool) or not isinstance(expiry_minutes, int):
            raise ValidationError("expiryMinutes must be an integer")
        if not 0 < expiry_minutes <= self._max_expiry:
            raise ValidationError(f"expiryMinutes must be between 1 and {self._max_expiry}")
        return expiry_minutes

    def issue_token(
        self,
        session_id: int,
        faculty_id: int,
        expiry_minutes: Optional[int] = None,
        geofence: Optional[Geofence] = None,
        *,
        now: Optional[datetime] = None,
    ) -> IssuedToken:
        minutes = self._expiry_minutes(expiry_minutes)
        session = self._owned_session(session_id, faculty_id)
        if session.status == SessionStatus.CLOSED:
            raise ValidationError("Session is closed")
        if geofence is not None and not (math.isfinite(geofence.radius_m) and geofence.radius_m > 0):
            raise ValidationError("Geofence radius must be positive")

        # Whole seconds: the DATETIME columns would otherwise round the stored expiry.
        issued_at = (now or self._clock()).replace(microsecond=0)
        expires_at = issued_at + timedelta(minutes=minutes)
        token = self._token_factory(session.session_id)

        self._sessions.store_token(
            session_id=session.session_id,
            token=token,
            issued_at=issued_at,
            expires_at=expires_at,
            geofence=geofence,
        )

        # Written in its own transaction after the session update.
        self._audit.record(
            actor_id=int(faculty_id),
            action=AuditAction.QR_CODE_GENERATED,
            target_table="attendance_sessions",
            target_id=session.session_id,
            at=issued_at,
            qr_expiry=expires_at.isoformat(),
            location_required=geofence is not None,
            location_radius=geofence.radius_m if geofence else None,
        )
        logger.info(
            "Issued QR token %s... for session %s by faculty %s (expires %s)",
            token[:TOKEN_LOG_PREFIX_LEN],
            session.session_id,
            faculty_id,
            expires_at.isoformat(),
        )
        return IssuedToken(session_id=session.session_id, token=token, issued_at=issued_at, expires_at=expires_at)

    def current_qr_png(self, session_id: int, faculty_id: int, *, now: Optional[datetime] = None) -> bytes:
        """PNG of the session's current token, for display in the classroom."""
        session = self._owned_session(session_id, faculty_id)
        now = now or self._clock()
        if not session.qr_token or session.qr_expires_at is None:
            raise InvalidToken("No QR token has been issued for this session")
        if not session.token_live_at(now):
            raise TokenExpired("The current QR token has expired")
        return render_png(session.qr_token)
