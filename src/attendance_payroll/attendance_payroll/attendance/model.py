from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime

from ..core.enums import AttendanceState, AttendanceStatus, AttendanceType, AutoCheckoutReason
from ..core.exceptions import ValidationError
from ..geofence.model import GeoPoint


@dataclass(frozen=True)
class AttendanceRecord:
    """Domain entity: one user's attendance for one calendar day."""

    attendance_id: int
    user_id: int
    work_date: date
    check_in_time: datetime | None
    check_out_time: datetime | None
    status: AttendanceStatus
    attendance_type: AttendanceType = AttendanceType.OFFICE
    check_in_location: GeoPoint | None = None
    check_in_photo_ref: str | None = None
    check_out_location: GeoPoint | None = None
    check_out_photo_ref: str | None = None
    is_late: bool = False
    late_minutes: int = 0
    early_check_in_minutes: int = 0
    reason: str | None = None
    early_checkout_minutes: int = 0
    checkout_reason: str | None = None
    overtime_requested: bool = False
    ot_reason: str | None = None
    overtime_hours: float = 0.0
    working_hours: float = 0.0
    is_within_office_radius: bool = False
    distance_from_office: float | None = None
    location_confidence: str | None = None
    office_location_id: int | None = None
    is_auto_checkout: bool = False
    auto_checkout_reason: AutoCheckoutReason | None = None

    def __post_init__(self):
        if self.check_out_time is not None:
            if self.check_in_time is None:
                raise ValidationError("Check-out recorded without a check-in")
            if self.check_out_time <= self.check_in_time:
                raise ValidationError("Check-out time must be after check-in time")
        if self.overtime_hours < 0:
            raise ValidationError("Overtime hours must not be negative")
        if self.working_hours < 0:
            raise ValidationError("Working hours must not be negative")

    @property
    def is_open(self) -> bool:
        return self.check_in_time is not None and self.check_out_time is None

    @property
    def state(self) -> AttendanceState:
        if self.check_in_time is None:
            return AttendanceState.NOT_STARTED
        if self.check_out_time is None:
            return AttendanceState.CHECKED_IN
        return AttendanceState.CHECKED_OUT


@dataclass(frozen=True)
class CheckInEntry:
    """Values persisted when a day's record is opened."""

    user_id: int
    work_date: date
    check_in_time: datetime
    status: AttendanceStatus
    attendance_type: AttendanceType
    location: GeoPoint
    photo_ref: str | None
    is_late: bool = False
    late_minutes: int = 0
    early_check_in_minutes: int = 0
    reason: str | None = None
    is_within_office_radius: bool = False
    distance_from_office: float | None = None
    location_confidence: str | None = None
    office_location_id: int | None = None


@dataclass(frozen=True)
class CheckOutEntry:
    """Values persisted when an open record is closed (manually or by the sweep)."""

    check_out_time: datetime
    status: AttendanceStatus
    working_hours: float
    overtime_hours: float
    location: GeoPoint | None = None
    photo_ref: str | None = None
    early_checkout_minutes: int = 0
    checkout_reason: str | None = None
    overtime_requested: bool = False
    ot_reason: str | None = None
    is_auto_checkout: bool = False
    auto_checkout_reason: AutoCheckoutReason | None = None
