from __future__ import annotations

import threading
from datetime import timedelta

import pytest

from src.campus_attendance.campus_attendance.attendance.model import Location
from src.campus_attendance.campus_attendance.core.enums import AttendanceStatus, AuditAction, Standing
from src.campus_attendance.campus_attendance.core.exceptions import (
    DuplicateAttendance,
    Forbidden,
    GeofenceViolation,
    InvalidToken,
    StoreUnavailable,
    TokenExpired,
    ValidationError,
)
from src.campus_attendance.campus_attendance.sessions.model import Geofence
from tests.fakes import FACULTY_ID, INACTIVE_STUDENT_ID, OTHER_STUDENT_ID, STUDENT_ID

CLASSROOM = (12.9716, 77.5946)
# Meters per degree of latitude for the 6371 km sphere used by the geofence check.
M_PER_DEG_LAT = 6371e3 * 3.141592653589793 / 180


def _north_of(point, meters):
    lat, lon = point
    return Location(latitude=lat + meters / M_PER_DEG_LAT, longitude=lon)


def _issue(services, session, **kwargs):
    return services.qr_issuer.issue_token(session.session_id, FACULTY_ID, **kwargs)


def test_scan_lifecycle_present_duplicate_then_expired(services, open_session, attendance_repo, summaries_repo, clock):
    issued = _issue(services, open_session, expiry_minutes=30)

    clock.advance(minutes=5)
    record = services.attendance_validator.validate(issued.token, STUDENT_ID)

    assert record.status == AttendanceStatus.PRESENT
    assert record.marked_at == clock.now
    summary = summaries_repo.get(STUDENT_ID)
    assert (summary.total, summary.present, summary.percentage) == (1, 1, 100)
    assert summary.standing == Standing.EXCELLENT

    clock.advance(minutes=1)
    with pytest.raises(DuplicateAttendance):
        services.attendance_validator.validate(issued.token, STUDENT_ID)
    assert len(attendance_repo.list_for_session(open_session.session_id)) == 1
    assert summaries_repo.get(STUDENT_ID) == summary

    clock.advance(minutes=25)
    with pytest.raises(TokenExpired):
        services.attendance_validator.validate(issued.token, OTHER_STUDENT_ID)
    assert attendance_repo.get_for_user_and_session(OTHER_STUDENT_ID, open_session.session_id) is None


def test_token_is_dead_at_exactly_expiry_time(services, open_session, clock):
    issued = _issue(services, open_session, expiry_minutes=10)
    clock.now = issued.expires_at

    with pytest.raises(TokenExpired):
        services.attendance_validator.validate(issued.token, STUDENT_ID)


def test_unknown_token_is_invalid(services, open_session):
    _issue(services, open_session)

    with pytest.raises(InvalidToken):
        services.attendance_validator.validate("1:123:not-a-real-token", STUDENT_ID)


def test_blank_token_is_a_validation_error(services):
    with pytest.raises(ValidationError):
        services.attendance_validator.validate("   ", STUDENT_ID)


def test_reissued_token_retires_the_old_one(services, open_session, clock):
    old = _issue(services, open_session)
    clock.advance(seconds=30)
    new = _issue(services, open_session)

    with pytest.raises(InvalidToken):
        services.attendance_validator.validate(old.token, STUDENT_ID)

    record = services.attendance_validator.validate(new.token, STUDENT_ID)
    assert record.session_id == open_session.session_id


def test_closed_session_token_is_invalid(services, open_session):
    issued = _issue(services, open_session)
    services.session_service.close_session(session_id=open_session.session_id, faculty_id=FACULTY_ID)

    with pytest.raises(InvalidToken):
        services.attendance_validator.validate(issued.token, STUDENT_ID)


@pytest.mark.parametrize("user_id", [FACULTY_ID, INACTIVE_STUDENT_ID, 9999])
def test_only_active_students_can_scan(services, open_session, user_id):
    issued = _issue(services, open_session)

    with pytest.raises(Forbidden):
        services.attendance_validator.validate(issued.token, user_id)


def test_scan_at_end_of_late_window_is_present(services, open_session, clock):
    issued = _issue(services, open_session)
    clock.advance(minutes=15)

    record = services.attendance_validator.validate(issued.token, STUDENT_ID)

    assert record.status == AttendanceStatus.PRESENT


def test_scan_after_late_window_is_late(services, open_session, summaries_repo, clock):
    issued = _issue(services, open_session)
    clock.advance(minutes=20)

    record = services.attendance_validator.validate(issued.token, STUDENT_ID)

    assert record.status == AttendanceStatus.LATE
    assert record.note == "Late by 20 min"
    summary = summaries_repo.get(STUDENT_ID)
    assert (summary.total, summary.present, summary.late, summary.percentage) == (1, 0, 1, 0)


def test_session_late_window_overrides_default(services, fixed_now, clock):
    session = services.session_service.create_session(
        faculty_id=FACULTY_ID,
        subject="Operating Systems",
        scheduled_start=fixed_now,
        late_after_minutes=5,
    )
    issued = _issue(services, session)
    clock.advance(minutes=6)

    record = services.attendance_validator.validate(issued.token, STUDENT_ID)

    assert record.status == AttendanceStatus.LATE


def test_geofence_rejects_far_scan_and_accepts_near_scan(services, open_session, attendance_repo, audit_repo):
    fence = Geofence(latitude=CLASSROOM[0], longitude=CLASSROOM[1], radius_m=50)
    issued = _issue(services, open_session, geofence=fence)

    with pytest.raises(GeofenceViolation):
        services.attendance_validator.validate(issued.token, STUDENT_ID, _north_of(CLASSROOM, 80))
    assert attendance_repo.get_for_user_and_session(STUDENT_ID, open_session.session_id) is None

    rejected = audit_repo.entries[-1]
    assert rejected.action == AuditAction.ATTENDANCE_REJECTED
    assert rejected.success is False
    assert rejected.details["reason"] == "GeofenceViolation"
    assert rejected.details["distance_m"] == pytest.approx(80, abs=0.5)

    record = services.attendance_validator.validate(issued.token, STUDENT_ID, _north_of(CLASSROOM, 20))
    assert record.geofence_verified is True
    assert record.latitude == pytest.approx(CLASSROOM[0] + 20 / M_PER_DEG_LAT)


def test_geofence_requires_a_location(services, open_session):
    fence = Geofence(latitude=CLASSROOM[0], longitude=CLASSROOM[1], radius_m=50)
    issued = _issue(services, open_session, geofence=fence)

    with pytest.raises(GeofenceViolation):
        services.attendance_validator.validate(issued.token, STUDENT_ID)


def test_location_is_kept_but_unverified_without_geofence(services, open_session):
    issued = _issue(services, open_session)

    record = services.attendance_validator.validate(
        issued.token,
        STUDENT_ID,
        Location(latitude=1.0, longitude=2.0),
        device_fingerprint="ios-17-abc",
    )

    assert record.geofence_verified is False
    assert (record.latitude, record.longitude) == (1.0, 2.0)
    assert record.device_fingerprint == "ios-17-abc"


def test_every_attempt_is_audited(services, open_session, audit_repo):
    issued = _issue(services, open_session)

    services.attendance_validator.validate(issued.token, STUDENT_ID)
    with pytest.raises(DuplicateAttendance):
        services.attendance_validator.validate(issued.token, STUDENT_ID)

    marked, rejected = audit_repo.entries[-2:]
    assert marked.action == AuditAction.ATTENDANCE_MARKED
    assert marked.actor_id == STUDENT_ID
    assert marked.details["status"] == "present"
    assert rejected.action == AuditAction.ATTENDANCE_REJECTED
    assert rejected.target_id == open_session.session_id
    assert rejected.details["reason"] == "DuplicateAttendance"


def test_concurrent_scans_record_exactly_once(services, open_session, attendance_repo):
    issued = _issue(services, open_session)
    workers = 8
    barrier = threading.Barrier(workers)
    outcomes: list[str] = []
    lock = threading.Lock()

    def scan():
        barrier.wait()
        try:
            services.attendance_validator.validate(issued.token, STUDENT_ID)
            result = "ok"
        except DuplicateAttendance:
            result = "duplicate"
        with lock:
            outcomes.append(result)

    threads = [threading.Thread(target=scan) for _ in range(workers)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert outcomes.count("ok") == 1
    assert outcomes.count("duplicate") == workers - 1
    assert len(attendance_repo.list_for_session(open_session.session_id)) == 1


def test_store_failure_propagates_without_rejection_audit(services, open_session, sessions_repo, audit_repo, monkeypatch):
    issued = _issue(services, open_session)
    entries_before = len(audit_repo.entries)

    def unavailable(token):
        raise StoreUnavailable("connection timed out")

    monkeypatch.setattr(sessions_repo, "get_by_token", unavailable)

    with pytest.raises(StoreUnavailable):
        services.attendance_validator.validate(issued.token, STUDENT_ID)
    assert len(audit_repo.entries) == entries_before


def test_failed_summary_write_leaves_no_stale_cache(
    services, open_session, summaries_repo, audit_repo, fixed_now, monkeypatch
):
    services.attendance_validator.validate(_issue(services, open_session).token, STUDENT_ID)
    assert summaries_repo.get(STUDENT_ID).total == 1

    second = services.session_service.create_session(
        faculty_id=FACULTY_ID,
        subject="Operating Systems",
        scheduled_start=fixed_now,
        scheduled_end=fixed_now + timedelta(hours=1),
    )
    issued = _issue(services, second)

    def unavailable(summary):
        raise StoreUnavailable("connection reset")

    monkeypatch.setattr(summaries_repo, "upsert", unavailable)

    with pytest.raises(StoreUnavailable):
        services.attendance_validator.validate(issued.token, STUDENT_ID)

    assert summaries_repo.get(STUDENT_ID) is None
    summary = services.analytics.summarize_user(STUDENT_ID)
    assert (summary.total, summary.present) == (2, 2)
    marked = [e for e in audit_repo.entries if e.action == AuditAction.ATTENDANCE_MARKED]
    assert [e.details["session_id"] for e in marked] == [open_session.session_id, second.session_id]


def test_session_expiry_scenario_with_scan_after_expiry(services, open_session, clock):
    issued = _issue(services, open_session, expiry_minutes=30)
    clock.advance(minutes=31)

    with pytest.raises(TokenExpired):
        services.attendance_validator.validate(issued.token, OTHER_STUDENT_ID)
    assert issued.expires_at == open_session.scheduled_start + timedelta(minutes=30)
