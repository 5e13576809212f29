import pytest

from src.attendance_payroll.attendance_payroll.core.exceptions import ValidationError
from src.attendance_payroll.attendance_payroll.geofence.model import GeoPoint, OfficeLocation
from src.attendance_payroll.attendance_payroll.geofence.validator import (
    GeofenceValidator,
    accuracy_confidence,
    haversine_distance,
)


def _office(location_id=1, lat=12.9716, lon=77.5946, radius=100.0, is_active=True):
    return OfficeLocation(
        location_id=location_id,
        name=f"Office {location_id}",
        latitude=lat,
        longitude=lon,
        radius_meters=radius,
        is_active=is_active,
    )


def test_distance_to_same_point_is_zero():
    p = GeoPoint(latitude=12.9716, longitude=77.5946)
    assert haversine_distance(p, p) == 0.0


def test_one_degree_of_latitude_is_about_111_km():
    a = GeoPoint(latitude=0.0, longitude=0.0)
    b = GeoPoint(latitude=1.0, longitude=0.0)
    assert haversine_distance(a, b) == pytest.approx(111194.93, abs=1.0)


def test_radius_boundary_is_inclusive():
    office = _office()
    p = GeoPoint(latitude=12.9726, longitude=77.5946)
    d = haversine_distance(p, office.point)

    v = GeofenceValidator()
    assert v.check(p, _office(radius=d)).is_within_radius is True
    assert v.check(p, _office(radius=d - 0.01)).is_within_radius is False


def test_point_inside_radius_records_distance_and_office():
    office = _office(radius=200)
    p = GeoPoint(latitude=12.9720, longitude=77.5950, accuracy=15)

    res = GeofenceValidator().check(p, office)

    assert res.validated is True
    assert res.is_within_radius is True
    assert 0 < res.distance_meters < 200
    assert res.office == office
    assert res.confidence == "high"


def test_closest_skips_inactive_offices():
    near_inactive = _office(location_id=1, lat=12.9716, lon=77.5946, is_active=False)
    far_active = _office(location_id=2, lat=13.0827, lon=80.2707)
    p = GeoPoint(latitude=12.9716, longitude=77.5946)

    res = GeofenceValidator().closest(p, [near_inactive, far_active])

    assert res.office.location_id == 2
    assert res.is_within_radius is False


def test_closest_picks_nearest_office():
    a = _office(location_id=1, lat=12.9716, lon=77.5946)
    b = _office(location_id=2, lat=12.9800, lon=77.6000)
    p = GeoPoint(latitude=12.9799, longitude=77.6001)

    assert GeofenceValidator().closest(p, [a, b]).office.location_id == 2


def test_no_office_configured_captures_but_does_not_validate():
    p = GeoPoint(latitude=12.9716, longitude=77.5946, accuracy=500)

    res = GeofenceValidator().closest(p, [])

    assert res.validated is False
    assert res.distance_meters is None
    assert res.is_within_radius is False
    assert res.confidence == "low"


@pytest.mark.parametrize(
    "accuracy,expected",
    [(None, "unknown"), (5, "high"), (20, "high"), (60, "medium"), (101, "low")],
)
def test_accuracy_only_annotates_confidence(accuracy, expected):
    assert accuracy_confidence(accuracy) == expected


def test_invalid_coordinates_are_rejected():
    with pytest.raises(ValidationError):
        GeoPoint(latitude=91, longitude=0)
    with pytest.raises(ValidationError):
        GeoPoint(latitude=0, longitude=-181)
