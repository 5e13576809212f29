from __future__ import annotations

from datetime import date
from typing import Protocol, Sequence

from ..core.enums import PayrollStatus
from .model import PayrollRecord, SalaryStructure


class SalaryStructureRepository(Protocol):
    def list_for_user(self, user_id: int) -> Sequence[SalaryStructure]:
        raise NotImplementedError

    def list_user_ids_active_between(self, start: date, end: date) -> Sequence[int]:
        """Users with at least one active structure overlapping ``[start, end]``."""

        raise NotImplementedError


class PayrollRepository(Protocol):
    def get_by_id(self, payroll_id: int) -> PayrollRecord | None:
        raise NotImplementedError

    def get_for_user_and_month(self, user_id: int, month: int, year: int) -> PayrollRecord | None:
        raise NotImplementedError

    def upsert(self, record: PayrollRecord) -> int | None:
        """Create or replace the (user, month, year) record; returns its id.

        Returns None, writing nothing, when the stored record is already
        approved or paid. The status check and the write are atomic.
        """

        raise NotImplementedError

    def list_for_month(
        self,
        month: int,
        year: int,
        *,
        user_ids: Sequence[int] | None = None,
        status: PayrollStatus | None = None,
    ) -> Sequence[PayrollRecord]:
        raise NotImplementedError

    def update_status(
        self,
        payroll_id: int,
        *,
        expected: PayrollStatus,
        new_status: PayrollStatus,
        actor_id: int | None = None,
    ) -> bool:
        """Move status only while it still equals ``expected``."""

        raise NotImplementedError
