from __future__ import annotations

from datetime import datetime, timedelta

import pytest

from src.campus_attendance.campus_attendance.container import build_services
from src.campus_attendance.campus_attendance.sessions.model import AttendanceSession
from tests.fakes import (
    FACULTY_ID,
    FakeClock,
    InMemoryAttendance,
    InMemoryAudit,
    InMemorySessions,
    InMemorySummaries,
    InMemoryUsers,
    default_users,
)


@pytest.fixture
def fixed_now() -> datetime:
    return datetime(2026, 3, 2, 9, 0, 0)


@pytest.fixture
def clock(fixed_now) -> FakeClock:
    return FakeClock(fixed_now)


@pytest.fixture
def users_repo() -> InMemoryUsers:
    return InMemoryUsers(default_users())


@pytest.fixture
def sessions_repo() -> InMemorySessions:
    return InMemorySessions()


@pytest.fixture
def attendance_repo(users_repo) -> InMemoryAttendance:
    return InMemoryAttendance(users_repo)


@pytest.fixture
def summaries_repo() -> InMemorySummaries:
    return InMemorySummaries()


@pytest.fixture
def audit_repo() -> InMemoryAudit:
    return InMemoryAudit()


@pytest.fixture
def services(users_repo, sessions_repo, attendance_repo, summaries_repo, audit_repo, clock):
    return build_services(
        users_repo=users_repo,
        sessions_repo=sessions_repo,
        attendance_repo=attendance_repo,
        summaries_repo=summaries_repo,
        audit_repo=audit_repo,
        clock=clock,
    )


@pytest.fixture
def open_session(services, fixed_now) -> AttendanceSession:
    """A CSE session that started at fixed_now and runs for an hour."""
    return services.session_service.create_session(
        faculty_id=FACULTY_ID,
        subject="Data Structures",
        scheduled_start=fixed_now,
        scheduled_end=fixed_now + timedelta(hours=1),
    )
