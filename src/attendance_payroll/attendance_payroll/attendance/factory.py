from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime

from ..timing.model import TimingPolicy
from .model import AttendanceRecord
from .strategies.base import AttendanceStrategy
from .strategies.early_strategy import EarlyStrategy
from .strategies.late_strategy import LateStrategy
from .strategies.normal_strategy import NormalStrategy
from .strategies.overtime_strategy import OvertimeStrategy


@dataclass
class AttendanceStrategyFactory:
    """Factory Pattern: choose appropriate strategy based on rules.

    Early wins only when ``now`` is strictly before the scheduled time;
    from then on lateness is checked, so no instant is both early and late.
    """

    def for_checkin(self, *, now: datetime, work_date: date, policy: TimingPolicy) -> AttendanceStrategy:
        if now < policy.expected_check_in(work_date):
            return EarlyStrategy()
        if now > policy.late_cutoff(work_date):
            return LateStrategy()
        return NormalStrategy()

    def for_checkout(self, *, now: datetime, record: AttendanceRecord, policy: TimingPolicy) -> AttendanceStrategy:
        if now < policy.expected_check_out(record.work_date):
            return EarlyStrategy()
        return OvertimeStrategy()
