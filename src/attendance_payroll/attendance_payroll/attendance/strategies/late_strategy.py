from __future__ import annotations

from datetime import date, datetime

from ...common.datetime_utils import minutes_between
from ...core.enums import AttendanceStatus, Detection
from ...timing.model import TimingPolicy
from ..model import AttendanceRecord
from .base import AttendanceStrategy, StatusDecision


class LateStrategy(AttendanceStrategy):
    """Late check-in; minutes are counted past the end of the grace period."""

    def decide_checkin(self, *, now: datetime, work_date: date, policy: TimingPolicy) -> StatusDecision:
        minutes = minutes_between(policy.late_cutoff(work_date), now)
        return StatusDecision(
            status=AttendanceStatus.LATE,
            detection=Detection.LATE,
            minutes=max(minutes, 0),
            reason_required=True,
        )

    def decide_checkout(self, *, now: datetime, record: AttendanceRecord, policy: TimingPolicy) -> StatusDecision:
        return StatusDecision(status=record.status, detection=Detection.ON_TIME)
