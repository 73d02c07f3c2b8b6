from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Callable, Optional

from .analytics.service import AnalyticsAggregator
from .attendance.factory import AttendanceStrategyFactory
from .attendance.mysql_attendance_repository import MySQLAttendanceRepository, MySQLSummaryRepository
from .attendance.repository import AttendanceRepository, SummaryRepository
from .attendance.service import AttendanceService
from .attendance.summary import SummaryRecorder
from .attendance.validator import AttendanceValidator
from .audit.mysql_audit_repository import MySQLAuditRepository
from .audit.repository import AuditRepository
from .audit.service import AuditTrail
from .common.datetime_utils import now_utc
from .core.constants import (
    DEFAULT_LATE_AFTER_MINUTES,
    DEFAULT_QR_EXPIRY_MINUTES,
    DEFAULT_SHORTAGE_THRESHOLD,
    MAX_QR_EXPIRY_MINUTES,
)
from .database.connection import DBConfig, DatabaseConnection
from .qr.issuer import QrTokenIssuer, build_token
from .sessions.mysql_session_repository import MySQLSessionRepository
from .sessions.repository import SessionRepository
from .sessions.service import SessionService
from .users.mysql_user_repository import MySQLUserRepository
from .users.repository import UserRepository
from .users.service import UserService


@dataclass(frozen=True)
class Container:
    conn: Optional[DatabaseConnection]

    users_repo: UserRepository
    sessions_repo: SessionRepository
    attendance_repo: AttendanceRepository
    summaries_repo: SummaryRepository
    audit_repo: AuditRepository

    user_service: UserService
    audit_trail: AuditTrail
    summary_recorder: SummaryRecorder
    qr_issuer: QrTokenIssuer
    attendance_validator: AttendanceValidator
    attendance_service: AttendanceService
    session_service: SessionService
    analytics: AnalyticsAggregator


def build_services(
    *,
    users_repo: UserRepository,
    sessions_repo: SessionRepository,
    attendance_repo: AttendanceRepository,
    summaries_repo: SummaryRepository,
    audit_repo: AuditRepository,
    conn: Optional[DatabaseConnection] = None,
    qr_default_expiry_minutes: int = DEFAULT_QR_EXPIRY_MINUTES,
    qr_max_expiry_minutes: int = MAX_QR_EXPIRY_MINUTES,
    late_after_minutes: int = DEFAULT_LATE_AFTER_MINUTES,
    shortage_threshold: int = DEFAULT_SHORTAGE_THRESHOLD,
    clock: Callable[[], datetime] = now_utc,
    token_factory: Callable[[int], str] = build_token,
) -> Container:
    """Wire services over the given repositories (MySQL in production, in-memory in tests)."""
    user_service = UserService(users_repo)
    audit_trail = AuditTrail(audit_repo)
    summary_recorder = SummaryRecorder(attendance_repo, summaries_repo)

    qr_issuer = QrTokenIssuer(
        sessions_repo,
        audit_trail,
        default_expiry_minutes=qr_default_expiry_minutes,
        max_expiry_minutes=qr_max_expiry_minutes,
        clock=clock,
        token_factory=token_factory,
    )
    attendance_validator = AttendanceValidator(
        sessions_repo,
        attendance_repo,
        summary_recorder,
        user_service,
        audit_trail,
        strategy_factory=AttendanceStrategyFactory(),
        late_after_minutes=late_after_minutes,
        clock=clock,
    )
    attendance_service = AttendanceService(attendance_repo, summary_recorder, user_service, audit_trail, clock=clock)
    session_service = SessionService(
        sessions_repo,
        attendance_repo,
        summary_recorder,
        user_service,
        audit_trail,
        clock=clock,
    )
    analytics = AnalyticsAggregator(attendance_repo, summaries_repo, shortage_threshold=shortage_threshold)

    return Container(
        conn=conn,
        users_repo=users_repo,
        sessions_repo=sessions_repo,
        attendance_repo=attendance_repo,
        summaries_repo=summaries_repo,
        audit_repo=audit_repo,
        user_service=user_service,
        audit_trail=audit_trail,
        summary_recorder=summary_recorder,
        qr_issuer=qr_issuer,
        attendance_validator=attendance_validator,
        attendance_service=attendance_service,
        session_service=session_service,
        analytics=analytics,
    )


def build_container(*, db_config: dict, settings: Any = None) -> Container:
    conn = DatabaseConnection(DBConfig.from_dict(db_config))

    return build_services(
        users_repo=MySQLUserRepository(conn),
        sessions_repo=MySQLSessionRepository(conn),
        attendance_repo=MySQLAttendanceRepository(conn),
        summaries_repo=MySQLSummaryRepository(conn),
        audit_repo=MySQLAuditRepository(conn),
        conn=conn,
        qr_default_expiry_minutes=int(getattr(settings, "QR_DEFAULT_EXPIRY_MINUTES", DEFAULT_QR_EXPIRY_MINUTES)),
        qr_max_expiry_minutes=int(getattr(settings, "QR_MAX_EXPIRY_MINUTES", MAX_QR_EXPIRY_MINUTES)),
        late_after_minutes=int(getattr(settings, "LATE_AFTER_MINUTES", DEFAULT_LATE_AFTER_MINUTES)),
        shortage_threshold=int(getattr(settings, "SHORTAGE_THRESHOLD", DEFAULT_SHORTAGE_THRESHOLD)),
    )
