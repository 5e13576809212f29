from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import date, datetime

from ...core.enums import AttendanceStatus, Detection
from ...timing.model import TimingPolicy
from ..model import AttendanceRecord


@dataclass(frozen=True)
class StatusDecision:
    status: AttendanceStatus
    detection: Detection
    minutes: int = 0
    reason_required: bool = False


class AttendanceStrategy(ABC):
    """Strategy Pattern: encapsulate how a check-in/out instant is classified."""

    @abstractmethod
    def decide_checkin(self, *, now: datetime, work_date: date, policy: TimingPolicy) -> StatusDecision:
        raise NotImplementedError

    @abstractmethod
    def decide_checkout(self, *, now: datetime, record: AttendanceRecord, policy: TimingPolicy) -> StatusDecision:
        raise NotImplementedError
