from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, time, timedelta

from ..common.validators import require_reason
from ..core.constants import AUTO_CHECKOUT_GRACE_HOURS, EMERGENCY_CUTOFF_TIME
from ..core.exceptions import InvalidStateTransition, NoOpenAttendance
from ..timing.model import TimingPolicy
from .model import AttendanceRecord

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class OvertimeOffer:
    eligible: bool
    already_confirmed: bool
    expected_check_out: datetime
    auto_checkout_deadline: datetime
    emergency_cutoff: datetime


@dataclass(frozen=True)
class OvertimeChoice:
    overtime_requested: bool
    ot_reason: str | None = None


class OvertimeNegotiator:
    """One binary choice per day once the scheduled checkout has passed.

    Declining keeps the 2-hour auto-checkout deadline. Confirming needs a
    reason and moves the deadline to the emergency cutoff. Once confirmed the
    choice is never undone for that record.
    """

    def __init__(
        self,
        *,
        grace_hours: float = AUTO_CHECKOUT_GRACE_HOURS,
        emergency_cutoff: time = EMERGENCY_CUTOFF_TIME,
    ):
        self.grace = timedelta(hours=float(grace_hours))
        self.emergency_cutoff = emergency_cutoff

    def grace_deadline(self, record: AttendanceRecord, policy: TimingPolicy) -> datetime:
        return policy.expected_check_out(record.work_date) + self.grace

    def emergency_cutoff_for(self, record: AttendanceRecord, policy: TimingPolicy) -> datetime:
        expected_out = policy.expected_check_out(record.work_date)
        return datetime.combine(expected_out.date(), self.emergency_cutoff)

    def deadline(self, record: AttendanceRecord, policy: TimingPolicy) -> datetime:
        """When the sweep will close this record if nobody checks out."""
        cutoff = self.emergency_cutoff_for(record, policy)
        if record.overtime_requested:
            return cutoff
        return min(self.grace_deadline(record, policy), cutoff)

    def is_eligible(self, record: AttendanceRecord | None, policy: TimingPolicy, *, now: datetime) -> bool:
        if record is None or not record.is_open:
            return False
        return now >= policy.expected_check_out(record.work_date)

    def offer(self, record: AttendanceRecord, policy: TimingPolicy, *, now: datetime) -> OvertimeOffer:
        return OvertimeOffer(
            eligible=self.is_eligible(record, policy, now=now),
            already_confirmed=record.overtime_requested,
            expected_check_out=policy.expected_check_out(record.work_date),
            auto_checkout_deadline=self.deadline(record, policy),
            emergency_cutoff=self.emergency_cutoff_for(record, policy),
        )

    def confirm(
        self,
        record: AttendanceRecord | None,
        policy: TimingPolicy,
        *,
        ot_reason: str | None,
        now: datetime,
    ) -> OvertimeChoice:
        if record is None or record.check_in_time is None:
            raise NoOpenAttendance("No open attendance record for overtime")
        if not record.is_open:
            raise InvalidStateTransition("Attendance already checked out")
        if record.overtime_requested:
            raise InvalidStateTransition("Overtime already requested for this day")
        if now < policy.expected_check_out(record.work_date):
            raise InvalidStateTransition("Overtime can only be requested after scheduled checkout")

        reason = require_reason(ot_reason, "Overtime reason is required")
        logger.info("Overtime confirmed: attendance_id=%s user_id=%s", record.attendance_id, record.user_id)
        return OvertimeChoice(overtime_requested=True, ot_reason=reason)

    def resolve_at_checkout(
        self,
        record: AttendanceRecord,
        policy: TimingPolicy,
        *,
        confirm_overtime: bool,
        ot_reason: str | None,
        now: datetime,
    ) -> OvertimeChoice:
        if record.overtime_requested:
            return OvertimeChoice(overtime_requested=True, ot_reason=record.ot_reason)
        if not confirm_overtime:
            return OvertimeChoice(overtime_requested=False)
        return self.confirm(record, policy, ot_reason=ot_reason, now=now)
