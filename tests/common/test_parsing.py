from datetime import date, datetime

import pytest

from src.campus_attendance.campus_attendance.common.datetime_utils import (
    parse_iso_date,
    parse_iso_datetime,
    parse_optional_date,
)
from src.campus_attendance.campus_attendance.common.validators import (
    optional_text,
    require_float,
    require_int,
    require_latitude,
    require_longitude,
)
from src.campus_attendance.campus_attendance.core.exceptions import ValidationError


def test_parse_iso_datetime_normalizes_to_naive_utc():
    assert parse_iso_datetime("2026-03-02T14:30:00+05:30") == datetime(2026, 3, 2, 9, 0)
    assert parse_iso_datetime("2026-03-02T09:00:00Z") == datetime(2026, 3, 2, 9, 0)
    assert parse_iso_datetime("2026-03-02T09:00:00") == datetime(2026, 3, 2, 9, 0)


@pytest.mark.parametrize("value", [None, "", "yesterday"])
def test_parse_iso_datetime_rejects_garbage(value):
    with pytest.raises(ValidationError):
        parse_iso_datetime(value)


def test_parse_dates():
    assert parse_iso_date("2026-03-02") == date(2026, 3, 2)
    assert parse_optional_date("") is None
    with pytest.raises(ValidationError):
        parse_iso_date("2026-13-01")


def test_require_int_rejects_bools_and_text():
    assert require_int("42", "userId") == 42
    with pytest.raises(ValidationError):
        require_int(True, "userId")
    with pytest.raises(ValidationError):
        require_int("4x", "userId")


def test_coordinates_must_be_in_range():
    assert require_latitude("-33.9") == -33.9
    assert require_longitude(151.2) == 151.2
    with pytest.raises(ValidationError):
        require_latitude(-90.5)
    with pytest.raises(ValidationError):
        require_longitude(180.01)


def test_require_int_rejects_fractions():
    assert require_int(4.0, "expiryMinutes") == 4
    with pytest.raises(ValidationError):
        require_int(3.7, "expiryMinutes")


@pytest.mark.parametrize("value", [float("nan"), float("inf"), "-inf", "nan"])
def test_require_float_rejects_non_finite(value):
    with pytest.raises(ValidationError):
        require_float(value, "geofence.radiusM")


def test_optional_text():
    assert optional_text(None, "note", max_length=5) is None
    assert optional_text("   ", "note", max_length=5) is None
    assert optional_text(" hello ", "note", max_length=5) == "hello"
    with pytest.raises(ValidationError):
        optional_text("hello!", "note", max_length=5)
    with pytest.raises(ValidationError):
        optional_text(42, "note", max_length=5)
