from __future__ import annotations

from datetime import date, datetime

from ...core.enums import AttendanceStatus, Detection
from ...timing.model import TimingPolicy
from ..model import AttendanceRecord
from .base import AttendanceStrategy, StatusDecision


class NormalStrategy(AttendanceStrategy):
    """Check-in between scheduled start and the end of the grace period."""

    def decide_checkin(self, *, now: datetime, work_date: date, policy: TimingPolicy) -> StatusDecision:
        return StatusDecision(status=AttendanceStatus.PRESENT, detection=Detection.ON_TIME)

    def decide_checkout(self, *, now: datetime, record: AttendanceRecord, policy: TimingPolicy) -> StatusDecision:
        return StatusDecision(status=record.status, detection=Detection.ON_TIME)
