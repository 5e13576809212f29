from __future__ import annotations

from datetime import date, datetime
from typing import Protocol, Sequence

from .model import AttendanceRecord, CheckInEntry, CheckOutEntry


class AttendanceRepository(Protocol):
    def get_by_id(self, attendance_id: int) -> AttendanceRecord | None:
        raise NotImplementedError

    def get_for_user_and_date(self, user_id: int, work_date: date) -> AttendanceRecord | None:
        raise NotImplementedError

    def create_checkin(self, entry: CheckInEntry) -> int:
        """Insert the day's record.

        Must raise ``InvalidStateTransition`` when (user, date) already exists.
        """

        raise NotImplementedError

    def close(self, attendance_id: int, entry: CheckOutEntry) -> bool:
        """Compare-and-swap checkout: only applies while check_out_time is NULL.

        Returns False when the record was already closed.
        """

        raise NotImplementedError

    def mark_overtime_requested(self, attendance_id: int, *, ot_reason: str) -> bool:
        """Flip overtime_requested on an open record that has not chosen yet."""

        raise NotImplementedError

    def list_open(self, *, up_to: date) -> Sequence[AttendanceRecord]:
        """Records with check-in but no checkout, work_date <= up_to."""

        raise NotImplementedError

    def list_for_user_between(self, user_id: int, start: date, end: date) -> Sequence[AttendanceRecord]:
        raise NotImplementedError


class SweepWatermarkRepository(Protocol):
    def get_last_swept_at(self, job_name: str) -> datetime | None:
        raise NotImplementedError

    def set_last_swept_at(self, job_name: str, swept_at: datetime) -> None:
        raise NotImplementedError
