from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from ..core.enums import AttendanceStatus, Standing


@dataclass(frozen=True)
class Location:
    latitude: float
    longitude: float


@dataclass(frozen=True)
class AttendanceRecord:
    """Domain entity: one student's outcome for one session.

    At most one record exists per (user_id, session_id); the store enforces it.
    """

    record_id: int
    user_id: int
    session_id: int
    subject: str
    status: AttendanceStatus
    marked_at: datetime
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    device_fingerprint: Optional[str] = None
    geofence_verified: bool = False
    note: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "id": self.record_id,
            "userId": self.user_id,
            "sessionId": self.session_id,
            "subject": self.subject,
            "status": self.status.value,
            "markedAt": self.marked_at.isoformat(),
            "location": (
                {"latitude": self.latitude, "longitude": self.longitude}
                if self.latitude is not None and self.longitude is not None
                else None
            ),
            "deviceFingerprint": self.device_fingerprint,
            "geofenceVerified": self.geofence_verified,
            "note": self.note,
        }


@dataclass(frozen=True)
class AttendanceSummary:
    """Derived cache: always a pure function of the user's record set."""

    user_id: int
    total: int
    present: int
    late: int
    absent: int
    percentage: int
    standing: Standing
    updated_at: Optional[datetime] = None

    def to_dict(self) -> dict:
        return {
            "userId": self.user_id,
            "total": self.total,
            "present": self.present,
            "late": self.late,
            "absent": self.absent,
            "percentage": self.percentage,
            "standing": self.standing.value,
        }


@dataclass(frozen=True)
class SessionStats:
    session_id: int
    total: int
    present: int
    late: int
    absent: int
    percentage: int

    def to_dict(self) -> dict:
        return {
            "sessionId": self.session_id,
            "total": self.total,
            "present": self.present,
            "late": self.late,
            "absent": self.absent,
            "percentage": self.percentage,
        }


@dataclass(frozen=True)
class CohortRecordRow:
    """Read-model for cohort analytics and export (record joined with its user)."""

    record_id: int
    user_id: int
    full_name: str
    department: Optional[str]
    semester: Optional[int]
    session_id: int
    subject: str
    status: AttendanceStatus
    marked_at: datetime
    geofence_verified: bool = False
    note: Optional[str] = None
