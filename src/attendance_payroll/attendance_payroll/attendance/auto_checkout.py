from __future__ import annotations

import logging
from datetime import datetime, time
from typing import List

from ..core.constants import AUTO_CHECKOUT_JOB
from ..core.enums import AutoCheckoutReason
from ..timing.model import TimingPolicy
from ..timing.service import TimingPolicyResolver
from ..users.repository import UserRepository
from .model import AttendanceRecord, CheckOutEntry
from .overtime import OvertimeNegotiator
from .repository import AttendanceRepository, SweepWatermarkRepository
from .working_hours import closing_status, compute_auto_closed_time, compute_worked_time

logger = logging.getLogger(__name__)


class AutoCheckoutService:
    """Closes attendance records left open for too long.

    Two triggers, evaluated per record:

    - the emergency cutoff (23:55 on the checkout day) closes anything still
      open, overtime or not;
    - otherwise a record without an overtime request is closed once its
      2-hour grace window after scheduled checkout has passed, stamped at
      the end of that window.

    Closing goes through the repository's compare-and-swap, so a record
    checked out manually in the meantime (or by a concurrent sweep) is left
    alone.
    """

    def __init__(
        self,
        attendance: AttendanceRepository,
        users: UserRepository,
        resolver: TimingPolicyResolver,
        negotiator: OvertimeNegotiator,
        watermarks: SweepWatermarkRepository | None = None,
        *,
        job_name: str = AUTO_CHECKOUT_JOB,
    ):
        self._attendance = attendance
        self._users = users
        self._resolver = resolver
        self._negotiator = negotiator
        self._watermarks = watermarks
        self._job_name = job_name

    def last_swept_at(self) -> datetime | None:
        if self._watermarks is None:
            return None
        return self._watermarks.get_last_swept_at(self._job_name)

    def run_sweep(self, now: datetime) -> List[AttendanceRecord]:
        closed: List[AttendanceRecord] = []
        open_records = self._attendance.list_open(up_to=now.date())

        for record in open_records:
            try:
                result = self._close_if_due(record, now)
            except Exception:
                logger.exception(
                    "Auto-checkout failed: attendance_id=%s user_id=%s",
                    record.attendance_id,
                    record.user_id,
                )
                continue
            if result is not None:
                closed.append(result)

        if self._watermarks is not None:
            self._watermarks.set_last_swept_at(self._job_name, now)

        logger.info("Auto-checkout sweep at %s: open=%d closed=%d", now.isoformat(), len(open_records), len(closed))
        return closed

    def _close_if_due(self, record: AttendanceRecord, now: datetime) -> AttendanceRecord | None:
        user = self._users.get_by_id(record.user_id)
        policy = self._resolver.resolve(user.department if user else None)

        entry = self.decide(record, policy, now)
        if entry is None:
            return None

        if not self._attendance.close(record.attendance_id, entry):
            logger.info("Auto-checkout skipped, already closed: attendance_id=%s", record.attendance_id)
            return None

        logger.info(
            "Auto-checkout: attendance_id=%s user_id=%s reason=%s at=%s",
            record.attendance_id,
            record.user_id,
            entry.auto_checkout_reason.value,
            entry.check_out_time.isoformat(),
        )
        return self._attendance.get_by_id(record.attendance_id)

    def decide(self, record: AttendanceRecord, policy: TimingPolicy, now: datetime) -> CheckOutEntry | None:
        """Pure decision: the checkout to apply at ``now``, or None."""
        if not record.is_open:
            return None

        check_in = record.check_in_time
        cutoff = self._negotiator.emergency_cutoff_for(record, policy)
        grace_deadline = self._negotiator.grace_deadline(record, policy)

        if now >= cutoff:
            stamp = cutoff
            if check_in >= cutoff:
                # checked in after the cutoff itself: close at the end of that day
                stamp = min(now, datetime.combine(check_in.date(), time(23, 59, 59)))
            reason = AutoCheckoutReason.EMERGENCY_CUTOFF
        elif not record.overtime_requested and now >= grace_deadline and check_in < grace_deadline:
            stamp = grace_deadline
            reason = AutoCheckoutReason.TWO_HOUR_GRACE
        else:
            return None

        if stamp <= check_in:
            return None

        if record.overtime_requested:
            worked = compute_worked_time(check_in, stamp, policy, count_overtime=True)
        else:
            worked = compute_auto_closed_time(check_in, policy.expected_check_out(record.work_date), stamp, policy)

        return CheckOutEntry(
            check_out_time=stamp,
            status=closing_status(record.status, worked, policy),
            working_hours=worked.working_hours,
            overtime_hours=worked.overtime_hours,
            overtime_requested=record.overtime_requested,
            ot_reason=record.ot_reason,
            is_auto_checkout=True,
            auto_checkout_reason=reason,
        )
