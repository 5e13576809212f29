from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from ..common.datetime_utils import minutes_between
from ..common.money import round_hours
from ..core.enums import AttendanceStatus
from ..timing.model import TimingPolicy


@dataclass(frozen=True)
class WorkedTime:
    total_minutes: int
    working_hours: float
    overtime_hours: float


def compute_worked_time(
    check_in: datetime,
    check_out: datetime,
    policy: TimingPolicy,
    *,
    count_overtime: bool = True,
) -> WorkedTime:
    """Split a closed interval into regular and overtime hours.

    Regular time is capped at the policy's standard minutes. The excess only
    counts as overtime once it reaches ``overtime_threshold_minutes``.
    """
    total = max(0, minutes_between(check_in, check_out))
    standard = policy.standard_minutes
    regular = min(total, standard)
    excess = total - standard

    overtime = 0
    if count_overtime and excess > 0 and excess >= int(policy.overtime_threshold_minutes):
        overtime = excess

    return WorkedTime(
        total_minutes=total,
        working_hours=round_hours(regular / 60),
        overtime_hours=round_hours(overtime / 60),
    )


def compute_auto_closed_time(
    check_in: datetime,
    expected_check_out: datetime,
    stamp: datetime,
    policy: TimingPolicy,
) -> WorkedTime:
    """Working time of a record the sweep closed without an overtime request.

    Only minutes up to the department's checkout time count, capped at the
    policy's standard minutes like a manual checkout; overtime is zero.
    """
    counted_until = min(stamp, expected_check_out)
    total = max(0, minutes_between(check_in, counted_until))
    regular = min(total, policy.standard_minutes)
    return WorkedTime(total_minutes=total, working_hours=round_hours(regular / 60), overtime_hours=0.0)


def closing_status(current: AttendanceStatus, worked: WorkedTime, policy: TimingPolicy) -> AttendanceStatus:
    if worked.total_minutes < int(policy.half_day_minutes):
        return AttendanceStatus.HALF_DAY
    return current
