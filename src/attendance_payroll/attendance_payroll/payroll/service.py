from __future__ import annotations

import io
import logging
from dataclasses import replace
from datetime import date, datetime, timedelta
from typing import Dict, List, Sequence, Union

import pandas as pd

from ..attendance.repository import AttendanceRepository
from ..common.datetime_utils import days_in_month, month_bounds
from ..common.money import round_hours
from ..common.validators import require_month
from ..core.constants import PAID_LEAVE_STATUSES, PRESENT_STATUSES
from ..core.enums import PayrollStatus
from ..core.exceptions import (
    DomainError,
    FuturePeriodRejected,
    InvalidStateTransition,
    NegativeNetSalary,
    NoActiveSalaryStructure,
    NotFound,
    PolicyNotFound,
)
from ..timing.service import TimingPolicyResolver
from ..users.model import User
from ..users.repository import UserRepository
from .calculator.base import PayrollCalculator
from .calculator.standard_calculator import StandardPayrollCalculator
from .deductions import StatutoryDeductionEngine
from .model import AttendanceSummary, PayrollAdjustments, PayrollRecord, PerUserError, SalaryStructure
from .repository import PayrollRepository, SalaryStructureRepository

logger = logging.getLogger(__name__)

PayrollResult = Union[PayrollRecord, PerUserError]


class PayrollService:
    """Monthly payroll: attendance aggregation, calculation and the status workflow.

    Bulk processing isolates each user: a failing user is reported as a
    ``PerUserError`` and the others are still saved.
    """

    def __init__(
        self,
        payrolls: PayrollRepository,
        structures: SalaryStructureRepository,
        attendance: AttendanceRepository,
        users: UserRepository,
        *,
        resolver: TimingPolicyResolver | None = None,
        calculator: PayrollCalculator | None = None,
        deductions: StatutoryDeductionEngine | None = None,
    ):
        self._payrolls = payrolls
        self._structures = structures
        self._attendance = attendance
        self._users = users
        self._resolver = resolver
        self._deductions = deductions or StatutoryDeductionEngine()
        self._calculator = calculator or StandardPayrollCalculator(
            standard_working_hours=self._deductions.settings.standard_working_hours
        )

    def select_structure(self, user_id: int, month: int, year: int) -> SalaryStructure:
        """The active structure in effect during the month; the latest one wins."""
        first, last = month_bounds(month, year)
        candidates = [s for s in self._structures.list_for_user(user_id) if s.overlaps(first, last)]
        if not candidates:
            raise NoActiveSalaryStructure(f"No active salary structure for user {user_id} in {month:02d}/{year}")
        return max(candidates, key=lambda s: s.effective_from)

    def summarize_attendance(self, user_id: int, month: int, year: int, *, user: User | None = None) -> AttendanceSummary:
        require_month(month, year)
        first, last = month_bounds(month, year)
        records = self._attendance.list_for_user_between(user_id, first, last)

        present = sum(1 for r in records if r.status.value in PRESENT_STATUSES)
        paid_leave = sum(1 for r in records if r.status.value in PAID_LEAVE_STATUSES)
        overtime = round_hours(sum(float(r.overtime_hours or 0) for r in records))

        return AttendanceSummary(
            user_id=user_id,
            month=month,
            year=year,
            month_days=days_in_month(month, year),
            present_days=float(present),
            paid_leave_days=float(paid_leave),
            overtime_hours=overtime,
            weekly_off_days=self._count_weekly_offs(user, first, last),
        )

    def _count_weekly_offs(self, user: User | None, first: date, last: date) -> int:
        if self._resolver is None or user is None:
            return 0
        try:
            policy = self._resolver.resolve(user.department)
        except PolicyNotFound:
            return 0
        days = (last - first).days + 1
        return sum(1 for i in range(days) if policy.is_weekly_off(first + timedelta(days=i)))

    def process_payroll(
        self,
        month: int,
        year: int,
        user_ids: Sequence[int] | None = None,
        *,
        processed_by: int | None = None,
        adjustments: Dict[int, PayrollAdjustments] | None = None,
        now: datetime | None = None,
    ) -> List[PayrollResult]:
        now = now or datetime.now()
        require_month(month, year)
        adjustments = adjustments or {}

        if user_ids is None:
            first, last = month_bounds(month, year)
            targets = list(self._structures.list_user_ids_active_between(first, last))
        else:
            targets = list(dict.fromkeys(int(u) for u in user_ids))

        results: List[PayrollResult] = []
        for user_id in targets:
            try:
                record = self._process_one(
                    user_id,
                    month,
                    year,
                    processed_by=processed_by,
                    adjustments=adjustments.get(user_id),
                    now=now,
                )
                results.append(record)
            except DomainError as e:
                logger.warning("Payroll %02d/%s skipped for user %s: %s", month, year, user_id, e)
                results.append(
                    PerUserError(user_id=user_id, code=type(e).__name__, message=str(e), record=getattr(e, "record", None))
                )
            except Exception:
                logger.exception("Payroll %02d/%s failed for user %s", month, year, user_id)
                results.append(PerUserError(user_id=user_id, code="InternalError", message="Unexpected payroll failure"))

        processed = sum(1 for r in results if isinstance(r, PayrollRecord))
        logger.info("Payroll %02d/%s processed: ok=%d failed=%d", month, year, processed, len(results) - processed)
        return results

    def _process_one(
        self,
        user_id: int,
        month: int,
        year: int,
        *,
        processed_by: int | None,
        adjustments: PayrollAdjustments | None,
        now: datetime,
    ) -> PayrollRecord:
        if (year, month) > (now.year, now.month):
            raise FuturePeriodRejected(f"Payroll for {month:02d}/{year} cannot be processed before the month starts")

        user = self._users.get_by_id(user_id)
        if not user:
            raise NotFound(f"User {user_id} does not exist")

        existing = self._payrolls.get_for_user_and_month(user_id, month, year)
        if existing is not None and existing.status.rank >= PayrollStatus.APPROVED.rank:
            raise InvalidStateTransition(f"Payroll already {existing.status.value}; it cannot be reprocessed")

        structure = self.select_structure(user_id, month, year)
        summary = self.summarize_attendance(user_id, month, year, user=user)
        earnings = self._calculator.calculate(structure, summary)
        deductions = self._deductions.apply(structure, earnings, adjustments)

        record = PayrollRecord(
            payroll_id=existing.payroll_id if existing else None,
            user_id=user_id,
            month=month,
            year=year,
            month_days=summary.month_days,
            present_days=summary.present_days,
            paid_leave_days=summary.paid_leave_days,
            weekly_off_days=summary.weekly_off_days,
            overtime_hours=summary.overtime_hours,
            earnings=earnings,
            deductions=deductions,
            total_earnings=earnings.gross_salary,
            total_deductions=deductions.total,
            net_salary=earnings.gross_salary - deductions.total,
            status=PayrollStatus.PROCESSED,
            employee_code=user.employee_code,
            processed_by=processed_by,
            processed_at=now,
        )
        if record.net_salary < 0:
            raise NegativeNetSalary(
                f"Deductions {record.total_deductions} exceed earnings {record.total_earnings}",
                record=record,
            )

        payroll_id = self._payrolls.upsert(record)
        if payroll_id is None:
            raise InvalidStateTransition("Payroll was approved meanwhile; it cannot be reprocessed")
        return replace(record, payroll_id=payroll_id)

    def get_payroll(
        self,
        month: int,
        year: int,
        *,
        user_id: int | None = None,
        status: PayrollStatus | None = None,
        department: str | None = None,
    ) -> List[PayrollRecord]:
        require_month(month, year)
        user_ids: List[int] | None = None
        if department:
            user_ids = [u.user_id for u in self._users.list_active(department=department)]
        if user_id is not None:
            user_ids = [u for u in user_ids if u == user_id] if user_ids is not None else [user_id]
        return list(self._payrolls.list_for_month(month, year, user_ids=user_ids, status=status))

    def advance_status(self, payroll_id: int, new_status: PayrollStatus, *, actor_id: int | None = None) -> PayrollRecord:
        record = self._payrolls.get_by_id(payroll_id)
        if record is None:
            raise NotFound(f"Payroll {payroll_id} does not exist")
        if new_status.rank != record.status.rank + 1:
            raise InvalidStateTransition(f"Cannot move payroll from {record.status.value} to {new_status.value}")

        if not self._payrolls.update_status(payroll_id, expected=record.status, new_status=new_status, actor_id=actor_id):
            raise InvalidStateTransition("Payroll status changed meanwhile")

        logger.info("Payroll %s: %s -> %s (actor=%s)", payroll_id, record.status.value, new_status.value, actor_id)
        return self._payrolls.get_by_id(payroll_id)

    def export_register(self, month: int, year: int) -> bytes:
        """Payroll register of the month as an .xlsx workbook."""
        records = self.get_payroll(month, year)
        users = {u.user_id: u for u in self._users.list_by_ids([r.user_id for r in records])}

        data = []
        for r in records:
            user = users.get(r.user_id)
            data.append(
                {
                    "Employee Code": r.employee_code or "",
                    "Name": user.full_name if user else "Unknown",
                    "Department": (user.department or "") if user else "",
                    "Month Days": r.month_days,
                    "Present Days": r.present_days,
                    "Paid Leave": r.paid_leave_days,
                    "Weekly Offs": r.weekly_off_days,
                    "OT Hours": r.overtime_hours,
                    "Per Day": r.earnings.per_day_salary,
                    "Basic": r.earnings.earned_basic,
                    "HRA": r.earnings.earned_hra,
                    "Conveyance": r.earnings.earned_conveyance,
                    "Other Earnings": sum(r.earnings.custom_earnings.values()),
                    "OT Pay": r.earnings.overtime_pay,
                    "Gross": r.earnings.gross_salary,
                    "EPF": r.deductions.epf,
                    "ESI": r.deductions.esi,
                    "VPT": r.deductions.vpt,
                    "TDS": r.deductions.tds,
                    "Fine": r.deductions.fine,
                    "Advance": r.deductions.salary_advance,
                    "Credit": r.deductions.credit_adjustment,
                    "Other Deductions": r.deductions.other + sum(r.deductions.custom_deductions.values()),
                    "Total Deductions": r.total_deductions,
                    "Net Salary": r.net_salary,
                    "Status": r.status.value,
                }
            )

        df = pd.DataFrame(data)
        output = io.BytesIO()
        with pd.ExcelWriter(output, engine="openpyxl") as writer:
            df.to_excel(writer, index=False, sheet_name=f"Payroll {month:02d}-{year}")
        return output.getvalue()
