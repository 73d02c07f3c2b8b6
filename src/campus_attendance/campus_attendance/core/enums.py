from __future__ import annotations

from enum import Enum


class Role(str, Enum):
    """User roles used for authorization checks."""

    ADMIN = "admin"
    FACULTY = "faculty"
    STUDENT = "student"


class SessionStatus(str, Enum):
    SCHEDULED = "scheduled"
    ACTIVE = "active"
    CLOSED = "closed"


class AttendanceStatus(str, Enum):
    """Normalized attendance outcome stored in the database."""

    PRESENT = "present"
    ABSENT = "absent"
    LATE = "late"


class Standing(str, Enum):
    """Attendance band derived from a percentage."""

    EXCELLENT = "excellent"
    GOOD = "good"
    WARNING = "warning"
    CRITICAL = "critical"


class AuditAction(str, Enum):
    SESSION_CREATED = "SESSION_CREATED"
    SESSION_CLOSED = "SESSION_CLOSED"
    QR_CODE_GENERATED = "QR_CODE_GENERATED"
    ATTENDANCE_MARKED = "ATTENDANCE_MARKED"
    ATTENDANCE_REJECTED = "ATTENDANCE_REJECTED"
    ATTENDANCE_OVERRIDDEN = "ATTENDANCE_OVERRIDDEN"
    ATTENDANCE_DELETED = "ATTENDANCE_DELETED"
