from __future__ import annotations

from datetime import datetime

from ..core.enums import AttendanceState, Detection
from ..core.exceptions import InvalidStateTransition, NoOpenAttendance
from ..timing.model import TimingPolicy
from .factory import AttendanceStrategyFactory
from .model import AttendanceRecord
from .strategies.base import StatusDecision


class AttendanceStateMachine:
    """NOT_STARTED -> CHECKED_IN -> CHECKED_OUT for one user and one day.

    The state is derived from the record itself; only the transitions are
    guarded here. Early/late/overtime detection is delegated to the
    strategy factory and never stored as a state of its own.
    """

    def __init__(self, strategy_factory: AttendanceStrategyFactory | None = None):
        self._factory = strategy_factory or AttendanceStrategyFactory()

    @staticmethod
    def state_of(record: AttendanceRecord | None) -> AttendanceState:
        if record is None:
            return AttendanceState.NOT_STARTED
        return record.state

    def can_check_in(self, record: AttendanceRecord | None) -> bool:
        return record is None or record.check_in_time is None

    def can_check_out(self, record: AttendanceRecord | None) -> bool:
        return record is not None and record.is_open

    def ensure_can_check_in(self, record: AttendanceRecord | None) -> None:
        if not self.can_check_in(record):
            raise InvalidStateTransition("Already checked in today")

    def ensure_can_check_out(self, record: AttendanceRecord | None) -> None:
        state = self.state_of(record)
        if state == AttendanceState.NOT_STARTED:
            raise NoOpenAttendance("No open attendance record to check out")
        if state == AttendanceState.CHECKED_OUT:
            raise InvalidStateTransition("Already checked out")

    def detect_check_in(self, *, now: datetime, policy: TimingPolicy) -> StatusDecision:
        work_date = now.date()
        strategy = self._factory.for_checkin(now=now, work_date=work_date, policy=policy)
        return strategy.decide_checkin(now=now, work_date=work_date, policy=policy)

    def detect_check_out(self, *, now: datetime, record: AttendanceRecord, policy: TimingPolicy) -> StatusDecision:
        strategy = self._factory.for_checkout(now=now, record=record, policy=policy)
        return strategy.decide_checkout(now=now, record=record, policy=policy)

    def preview(self, *, now: datetime, record: AttendanceRecord | None, policy: TimingPolicy) -> Detection:
        """Detection the holder would get if they acted at ``now``."""
        if record is None or record.check_in_time is None:
            return self.detect_check_in(now=now, policy=policy).detection
        if record.is_open:
            return self.detect_check_out(now=now, record=record, policy=policy).detection
        if record.overtime_requested:
            return Detection.OVERTIME_CONFIRMED
        if record.is_late:
            return Detection.LATE
        return Detection.ON_TIME
