from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from ..core.enums import SessionStatus


@dataclass(frozen=True)
class Geofence:
    """Center point plus radius a scanning device must be within."""

    latitude: float
    longitude: float
    radius_m: float


@dataclass(frozen=True)
class AttendanceSession:
    """Domain entity: one scheduled class instance.

    The qr_* fields are written only by the token issuer; at most one token
    is current per session and validation always compares against it.
    """

    session_id: int
    subject: str
    faculty_id: int
    scheduled_start: datetime
    status: SessionStatus
    scheduled_end: Optional[datetime] = None
    late_after_minutes: Optional[int] = None
    qr_token: Optional[str] = None
    qr_issued_at: Optional[datetime] = None
    qr_expires_at: Optional[datetime] = None
    geofence: Optional[Geofence] = None
    created_at: Optional[datetime] = None

    @property
    def location_required(self) -> bool:
        return self.geofence is not None

    def token_live_at(self, now: datetime) -> bool:
        return bool(self.qr_token) and self.qr_expires_at is not None and now < self.qr_expires_at

    def to_public_dict(self) -> dict:
        """JSON view without the token value."""

        return {
            "id": self.session_id,
            "subject": self.subject,
            "facultyId": self.faculty_id,
            "scheduledStart": self.scheduled_start.isoformat(),
            "scheduledEnd": self.scheduled_end.isoformat() if self.scheduled_end else None,
            "lateAfterMinutes": self.late_after_minutes,
            "status": self.status.value,
            "qrIssuedAt": self.qr_issued_at.isoformat() if self.qr_issued_at else None,
            "qrExpiresAt": self.qr_expires_at.isoformat() if self.qr_expires_at else None,
            "locationRequired": self.location_required,
            "geofence": (
                {
                    "latitude": self.geofence.latitude,
                    "longitude": self.geofence.longitude,
                    "radiusM": self.geofence.radius_m,
                }
                if self.geofence
                else None
            ),
        }
