from __future__ import annotations

from datetime import date, datetime

from ...common.datetime_utils import minutes_between
from ...core.enums import AttendanceStatus, Detection
from ...timing.model import TimingPolicy
from ..model import AttendanceRecord
from .base import AttendanceStrategy, StatusDecision


class EarlyStrategy(AttendanceStrategy):
    """Before the scheduled time, on either side of the day. A reason is mandatory."""

    def decide_checkin(self, *, now: datetime, work_date: date, policy: TimingPolicy) -> StatusDecision:
        minutes = minutes_between(now, policy.expected_check_in(work_date))
        return StatusDecision(
            status=AttendanceStatus.PRESENT,
            detection=Detection.EARLY,
            minutes=max(minutes, 0),
            reason_required=True,
        )

    def decide_checkout(self, *, now: datetime, record: AttendanceRecord, policy: TimingPolicy) -> StatusDecision:
        minutes = minutes_between(now, policy.expected_check_out(record.work_date))
        return StatusDecision(
            status=record.status,
            detection=Detection.EARLY,
            minutes=max(minutes, 0),
            reason_required=True,
        )
