from __future__ import annotations

from math import atan2, cos, radians, sin, sqrt
from typing import Iterable

from ..core.constants import (
    EARTH_RADIUS_METERS,
    GPS_HIGH_CONFIDENCE_METERS,
    GPS_MEDIUM_CONFIDENCE_METERS,
)
from .model import GeofenceResult, GeoPoint, OfficeLocation


def haversine_distance(a: GeoPoint, b: GeoPoint) -> float:
    """Great-circle distance between two points, in meters."""
    lat1, lon1 = radians(a.latitude), radians(a.longitude)
    lat2, lon2 = radians(b.latitude), radians(b.longitude)

    dlat = lat2 - lat1
    dlon = lon2 - lon1

    h = sin(dlat / 2) ** 2 + cos(lat1) * cos(lat2) * sin(dlon / 2) ** 2
    h = min(1.0, h)  # float noise near antipodes
    c = 2 * atan2(sqrt(h), sqrt(1 - h))
    return EARTH_RADIUS_METERS * c


def accuracy_confidence(accuracy: float | None) -> str:
    if accuracy is None:
        return "unknown"
    if accuracy <= GPS_HIGH_CONFIDENCE_METERS:
        return "high"
    if accuracy <= GPS_MEDIUM_CONFIDENCE_METERS:
        return "medium"
    return "low"


class GeofenceValidator:
    """Classifies a reported position against office geofences.

    Advisory only: the result is stored for audit and never rejects a
    check-in. Reported accuracy annotates confidence; it does not widen or
    shrink the radius.
    """

    def check(self, point: GeoPoint, office: OfficeLocation) -> GeofenceResult:
        distance = haversine_distance(point, office.point)
        return GeofenceResult(
            validated=True,
            distance_meters=round(distance, 2),
            is_within_radius=distance <= float(office.radius_meters),
            office=office,
            confidence=accuracy_confidence(point.accuracy),
        )

    def closest(self, point: GeoPoint, offices: Iterable[OfficeLocation]) -> GeofenceResult:
        best: GeofenceResult | None = None
        best_distance = float("inf")
        for office in offices:
            if not office.is_active:
                continue
            distance = haversine_distance(point, office.point)
            if distance < best_distance:
                best_distance = distance
                best = self.check(point, office)

        if best is None:
            return GeofenceResult(validated=False, confidence=accuracy_confidence(point.accuracy))
        return best
