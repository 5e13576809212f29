from __future__ import annotations

from enum import Enum


class Role(str, Enum):
    """User roles used for authorization checks."""

    ADMIN = "admin"
    STAFF = "staff"


class AttendanceType(str, Enum):
    OFFICE = "office"
    REMOTE = "remote"
    FIELD_WORK = "field_work"


class AttendanceStatus(str, Enum):
    """Day status stored on the attendance record."""

    PRESENT = "present"
    LATE = "late"
    ABSENT = "absent"
    LEAVE = "leave"
    HOLIDAY = "holiday"
    HALF_DAY = "half_day"


class AttendanceState(str, Enum):
    """Lifecycle of one user's attendance for one day."""

    NOT_STARTED = "NOT_STARTED"
    CHECKED_IN = "CHECKED_IN"
    CHECKED_OUT = "CHECKED_OUT"


class Detection(str, Enum):
    """Classification computed at check-in/out time (never persisted as a state)."""

    ON_TIME = "ON_TIME"
    EARLY = "EARLY"
    LATE = "LATE"
    OVERTIME_ELIGIBLE = "OVERTIME_ELIGIBLE"
    OVERTIME_CONFIRMED = "OVERTIME_CONFIRMED"


class AutoCheckoutReason(str, Enum):
    TWO_HOUR_GRACE = "two_hour_grace"
    EMERGENCY_CUTOFF = "emergency_cutoff"


class PerDaySalaryBase(str, Enum):
    BASIC = "basic"
    BASIC_HRA = "basic_hra"
    GROSS = "gross"


class PayrollStatus(str, Enum):
    """Payroll workflow; transitions only move forward."""

    DRAFT = "draft"
    PROCESSED = "processed"
    APPROVED = "approved"
    PAID = "paid"

    @property
    def rank(self) -> int:
        return _PAYROLL_ORDER.index(self)


_PAYROLL_ORDER = [
    PayrollStatus.DRAFT,
    PayrollStatus.PROCESSED,
    PayrollStatus.APPROVED,
    PayrollStatus.PAID,
]
