from __future__ import annotations

from decimal import Decimal

from ...common.money import prorate, round_money, to_decimal
from ...core.constants import DEFAULT_STANDARD_WORKING_HOURS
from ...core.enums import PerDaySalaryBase
from ...core.exceptions import PresentDaysExceedMonthDays, ValidationError
from ..model import AttendanceSummary, EarningsBreakdown, SalaryStructure
from .base import PayrollCalculator


class StandardPayrollCalculator(PayrollCalculator):
    """Pro-rated fixed pay plus overtime.

    Each fixed component is pro-rated over present days and rounded on its
    own; paid leave is reported but does not add to them. Custom earnings
    are paid flat. Overtime is paid per hour at
    ``per_day_salary / standard_working_hours * overtime_rate``.
    """

    def __init__(self, *, standard_working_hours: float = DEFAULT_STANDARD_WORKING_HOURS):
        if standard_working_hours <= 0:
            raise ValidationError("standard_working_hours must be positive")
        self._standard_hours = to_decimal(standard_working_hours)

    @staticmethod
    def per_day_base(structure: SalaryStructure) -> Decimal:
        if structure.per_day_salary_base == PerDaySalaryBase.BASIC:
            return to_decimal(structure.fixed_basic)
        if structure.per_day_salary_base == PerDaySalaryBase.BASIC_HRA:
            return to_decimal(structure.fixed_basic) + to_decimal(structure.fixed_hra)
        return to_decimal(structure.fixed_total) + sum(
            (to_decimal(v) for v in structure.custom_earnings.values()), Decimal(0)
        )

    def calculate(self, structure: SalaryStructure, summary: AttendanceSummary) -> EarningsBreakdown:
        month_days = int(summary.month_days)
        if month_days <= 0:
            raise ValidationError("month_days must be positive")
        if summary.present_days < 0 or summary.paid_leave_days < 0 or summary.overtime_hours < 0:
            raise ValidationError("Attendance figures must not be negative")
        days = summary.present_days
        if days > month_days:
            raise PresentDaysExceedMonthDays(
                f"Present days {days:g} exceed the {month_days} days of {summary.month:02d}/{summary.year}"
            )

        per_day = round_money(self.per_day_base(structure) / Decimal(month_days))

        earned_basic = prorate(structure.fixed_basic, days, month_days)
        earned_hra = prorate(structure.fixed_hra, days, month_days)
        earned_conveyance = prorate(structure.fixed_conveyance, days, month_days)
        custom = {name: round_money(amount) for name, amount in structure.custom_earnings.items()}

        overtime_pay = round_money(
            to_decimal(summary.overtime_hours) * to_decimal(per_day) / self._standard_hours
            * to_decimal(structure.overtime_rate)
        )

        gross = earned_basic + earned_hra + earned_conveyance + sum(custom.values()) + overtime_pay
        return EarningsBreakdown(
            per_day_salary=per_day,
            earned_basic=earned_basic,
            earned_hra=earned_hra,
            earned_conveyance=earned_conveyance,
            custom_earnings=custom,
            overtime_pay=overtime_pay,
            gross_salary=gross,
        )
