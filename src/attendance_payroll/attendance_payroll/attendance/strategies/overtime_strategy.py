from __future__ import annotations

from datetime import date, datetime

from ...common.datetime_utils import minutes_between
from ...core.enums import AttendanceStatus, Detection
from ...timing.model import TimingPolicy
from ..model import AttendanceRecord
from .base import AttendanceStrategy, StatusDecision


class OvertimeStrategy(AttendanceStrategy):
    """Checkout at or after the scheduled time.

    The record stays overtime-eligible until the holder confirms overtime.
    """

    def decide_checkin(self, *, now: datetime, work_date: date, policy: TimingPolicy) -> StatusDecision:
        return StatusDecision(status=AttendanceStatus.PRESENT, detection=Detection.ON_TIME)

    def decide_checkout(self, *, now: datetime, record: AttendanceRecord, policy: TimingPolicy) -> StatusDecision:
        minutes = minutes_between(policy.expected_check_out(record.work_date), now)
        detection = Detection.OVERTIME_CONFIRMED if record.overtime_requested else Detection.OVERTIME_ELIGIBLE
        return StatusDecision(status=record.status, detection=detection, minutes=max(minutes, 0))
