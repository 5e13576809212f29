from __future__ import annotations

from dataclasses import dataclass

from ..core.constants import DEFAULT_OFFICE_RADIUS_METERS
from ..core.exceptions import ValidationError


@dataclass(frozen=True)
class GeoPoint:
    """A reported device position; accuracy is the GPS error radius in meters."""

    latitude: float
    longitude: float
    accuracy: float | None = None

    def __post_init__(self):
        if self.latitude is None or self.longitude is None:
            raise ValidationError("Latitude and longitude are required")
        if not -90.0 <= float(self.latitude) <= 90.0:
            raise ValidationError("Latitude must be between -90 and 90")
        if not -180.0 <= float(self.longitude) <= 180.0:
            raise ValidationError("Longitude must be between -180 and 180")
        if self.accuracy is not None and float(self.accuracy) < 0:
            raise ValidationError("Accuracy must not be negative")


@dataclass(frozen=True)
class OfficeLocation:
    location_id: int
    name: str
    latitude: float
    longitude: float
    radius_meters: float = DEFAULT_OFFICE_RADIUS_METERS
    address: str | None = None
    is_active: bool = True

    @property
    def point(self) -> GeoPoint:
        return GeoPoint(latitude=self.latitude, longitude=self.longitude)


@dataclass(frozen=True)
class GeofenceResult:
    """Audit data for one reported position.

    ``validated`` is False when no office location is configured; the
    position is then captured but not compared against anything.
    """

    validated: bool
    distance_meters: float | None = None
    is_within_radius: bool = False
    office: OfficeLocation | None = None
    confidence: str = "unknown"
