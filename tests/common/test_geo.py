import pytest

from src.campus_attendance.campus_attendance.common.geo import haversine_distance_m


def test_same_point_is_zero():
    assert haversine_distance_m(12.97, 77.59, 12.97, 77.59) == 0


def test_one_degree_of_latitude():
    assert haversine_distance_m(0, 0, 1, 0) == pytest.approx(111_194.9, abs=0.1)


def test_is_symmetric():
    a = haversine_distance_m(28.6139, 77.2090, 19.0760, 72.8777)
    b = haversine_distance_m(19.0760, 72.8777, 28.6139, 77.2090)

    assert a == pytest.approx(b)
    assert a == pytest.approx(1_153_000, rel=0.01)
