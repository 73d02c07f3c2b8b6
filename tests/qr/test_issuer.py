from __future__ import annotations

from datetime import timedelta

import pytest

from src.campus_attendance.campus_attendance.core.enums import AuditAction, SessionStatus
from src.campus_attendance.campus_attendance.core.exceptions import (
    InvalidToken,
    NotFoundOrForbidden,
    TokenExpired,
    ValidationError,
)
from src.campus_attendance.campus_attendance.qr.issuer import build_token
from src.campus_attendance.campus_attendance.sessions.model import Geofence

from tests.fakes import FACULTY_ID, OTHER_FACULTY_ID, STUDENT_ID


def test_issue_token_defaults_to_thirty_minutes_and_activates_session(services, open_session, sessions_repo, fixed_now):
    issued = services.qr_issuer.issue_token(open_session.session_id, FACULTY_ID)

    assert issued.issued_at == fixed_now
    assert issued.expires_at == fixed_now + timedelta(minutes=30)

    stored = sessions_repo.get_by_id(open_session.session_id)
    assert stored.status == SessionStatus.ACTIVE
    assert stored.qr_token == issued.token
    assert stored.qr_expires_at == issued.expires_at
    assert stored.geofence is None


def test_issue_token_stores_geofence(services, open_session, sessions_repo):
    fence = Geofence(latitude=12.9716, longitude=77.5946, radius_m=50)
    services.qr_issuer.issue_token(open_session.session_id, FACULTY_ID, expiry_minutes=10, geofence=fence)

    stored = sessions_repo.get_by_id(open_session.session_id)
    assert stored.location_required
    assert stored.geofence == fence


def test_issue_token_response_shape(services, open_session):
    issued = services.qr_issuer.issue_token(open_session.session_id, FACULTY_ID, expiry_minutes=5)

    body = issued.to_dict()
    assert body["token"] == issued.token
    assert body["expiryTime"] == issued.expires_at.isoformat()
    assert body["sessionId"] == open_session.session_id


def test_other_faculty_cannot_issue(services, open_session):
    with pytest.raises(NotFoundOrForbidden):
        services.qr_issuer.issue_token(open_session.session_id, OTHER_FACULTY_ID)


def test_unknown_session_is_not_found(services):
    with pytest.raises(NotFoundOrForbidden):
        services.qr_issuer.issue_token(999, FACULTY_ID)


@pytest.mark.parametrize("minutes", [0, -5, 241, "10", True])
def test_expiry_minutes_must_be_int_in_range(services, open_session, minutes):
    with pytest.raises(ValidationError):
        services.qr_issuer.issue_token(open_session.session_id, FACULTY_ID, expiry_minutes=minutes)


def test_non_positive_geofence_radius_is_rejected(services, open_session):
    with pytest.raises(ValidationError):
        services.qr_issuer.issue_token(
            open_session.session_id,
            FACULTY_ID,
            geofence=Geofence(latitude=0.0, longitude=0.0, radius_m=0),
        )


@pytest.mark.parametrize("radius", [float("nan"), float("inf")])
def test_non_finite_geofence_radius_is_rejected(services, open_session, radius):
    with pytest.raises(ValidationError):
        services.qr_issuer.issue_token(
            open_session.session_id,
            FACULTY_ID,
            geofence=Geofence(latitude=0.0, longitude=0.0, radius_m=radius),
        )


def test_expiry_is_whole_seconds_and_matches_stored_value(services, open_session, sessions_repo, clock, fixed_now):
    clock.now = fixed_now.replace(microsecond=700000)

    issued = services.qr_issuer.issue_token(open_session.session_id, FACULTY_ID)

    assert issued.expires_at == fixed_now + timedelta(minutes=30)
    assert issued.to_dict()["expiryTime"] == "2026-03-02T09:30:00"
    assert sessions_repo.get_by_id(open_session.session_id).qr_expires_at == issued.expires_at

    clock.now = issued.expires_at + timedelta(microseconds=500000)
    with pytest.raises(TokenExpired):
        services.attendance_validator.validate(issued.token, STUDENT_ID)


def test_closed_session_cannot_get_a_token(services, open_session):
    services.session_service.close_session(session_id=open_session.session_id, faculty_id=FACULTY_ID)

    with pytest.raises(ValidationError):
        services.qr_issuer.issue_token(open_session.session_id, FACULTY_ID)


def test_reissue_replaces_current_token(services, open_session, sessions_repo, clock):
    first = services.qr_issuer.issue_token(open_session.session_id, FACULTY_ID)
    clock.advance(minutes=1)
    second = services.qr_issuer.issue_token(open_session.session_id, FACULTY_ID)

    assert first.token != second.token
    assert sessions_repo.get_by_id(open_session.session_id).qr_token == second.token
    assert sessions_repo.get_by_token(first.token) is None


def test_issue_is_audited(services, open_session, audit_repo):
    services.qr_issuer.issue_token(open_session.session_id, FACULTY_ID, expiry_minutes=20)

    entry = audit_repo.entries[-1]
    assert entry.action == AuditAction.QR_CODE_GENERATED
    assert entry.actor_id == FACULTY_ID
    assert entry.target_id == open_session.session_id
    assert entry.details["location_required"] is False


def test_build_token_is_unique_within_a_session():
    tokens = {build_token(7) for _ in range(200)}

    assert len(tokens) == 200
    for token in tokens:
        session_part, ns_part, random_part = token.split(":", 2)
        assert session_part == "7"
        assert ns_part.isdigit()
        assert len(random_part) >= 24


def test_current_qr_png_renders_live_token(services, open_session):
    services.qr_issuer.issue_token(open_session.session_id, FACULTY_ID)

    png = services.qr_issuer.current_qr_png(open_session.session_id, FACULTY_ID)

    assert png.startswith(b"\x89PNG\r\n\x1a\n")


def test_current_qr_png_without_token(services, open_session):
    with pytest.raises(InvalidToken):
        services.qr_issuer.current_qr_png(open_session.session_id, FACULTY_ID)


def test_current_qr_png_after_expiry(services, open_session, clock):
    services.qr_issuer.issue_token(open_session.session_id, FACULTY_ID, expiry_minutes=1)
    clock.advance(minutes=1)

    with pytest.raises(TokenExpired):
        services.qr_issuer.current_qr_png(open_session.session_id, FACULTY_ID)
