from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime, time, timedelta

from ..core.constants import (
    DEFAULT_HALF_DAY_MINUTES,
    DEFAULT_LATE_THRESHOLD_MINUTES,
    DEFAULT_OVERTIME_THRESHOLD_MINUTES,
    DEFAULT_WEEKLY_OFF_DAYS,
    DEFAULT_WORKING_HOURS_PER_DAY,
)
from ..core.enums import AttendanceType
from ..core.exceptions import ValidationError


def _clock_minutes(t: time) -> int:
    return t.hour * 60 + t.minute


@dataclass(frozen=True)
class TimingPolicy:
    """Per-department timing rules used by every attendance decision.

    A ``check_out_time`` earlier than ``check_in_time`` describes an
    overnight shift: checkout then falls on the day after the work date.
    Weekly off days use ``date.weekday()`` numbering (Monday=0).
    """

    department: str
    check_in_time: time
    check_out_time: time
    working_hours_per_day: float = DEFAULT_WORKING_HOURS_PER_DAY
    late_threshold_minutes: int = DEFAULT_LATE_THRESHOLD_MINUTES
    overtime_threshold_minutes: int = DEFAULT_OVERTIME_THRESHOLD_MINUTES
    weekly_off_days: frozenset = field(default=DEFAULT_WEEKLY_OFF_DAYS)
    is_flexible_timing: bool = False
    flexible_window_minutes: int = 0
    half_day_minutes: int = DEFAULT_HALF_DAY_MINUTES
    allow_remote_work: bool = True
    allow_field_work: bool = True
    is_active: bool = True

    def __post_init__(self):
        if not self.department or not self.department.strip():
            raise ValidationError("Department is required")
        if _clock_minutes(self.check_in_time) == _clock_minutes(self.check_out_time):
            raise ValidationError("Check-out time must differ from check-in time")
        if self.working_hours_per_day <= 0 or self.working_hours_per_day > 24:
            raise ValidationError("Working hours per day must be within (0, 24]")
        for name in ("late_threshold_minutes", "overtime_threshold_minutes", "flexible_window_minutes", "half_day_minutes"):
            if int(getattr(self, name)) < 0:
                raise ValidationError(f"{name} must not be negative")

        off_days = frozenset(int(d) for d in (self.weekly_off_days or ()))
        if any(d < 0 or d > 6 for d in off_days):
            raise ValidationError("Weekly off days must be weekday indexes 0-6")
        object.__setattr__(self, "weekly_off_days", off_days)
        object.__setattr__(self, "department", self.department.strip().lower())

    @property
    def is_overnight(self) -> bool:
        return _clock_minutes(self.check_out_time) < _clock_minutes(self.check_in_time)

    @property
    def shift_minutes(self) -> int:
        return (_clock_minutes(self.check_out_time) - _clock_minutes(self.check_in_time)) % (24 * 60)

    @property
    def standard_minutes(self) -> int:
        return int(round(self.working_hours_per_day * 60))

    @property
    def grace_minutes(self) -> int:
        grace = int(self.late_threshold_minutes)
        if self.is_flexible_timing:
            grace += int(self.flexible_window_minutes)
        return grace

    def expected_check_in(self, work_date: date) -> datetime:
        return datetime.combine(work_date, self.check_in_time)

    def expected_check_out(self, work_date: date) -> datetime:
        end = datetime.combine(work_date, self.check_out_time)
        if self.is_overnight:
            end += timedelta(days=1)
        return end

    def late_cutoff(self, work_date: date) -> datetime:
        return self.expected_check_in(work_date) + timedelta(minutes=self.grace_minutes)

    def is_weekly_off(self, day: date) -> bool:
        return day.weekday() in self.weekly_off_days

    def allows(self, attendance_type: AttendanceType) -> bool:
        if attendance_type == AttendanceType.REMOTE:
            return self.allow_remote_work
        if attendance_type == AttendanceType.FIELD_WORK:
            return self.allow_field_work
        return True
