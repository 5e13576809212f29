from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Dict

from ..core.constants import (
    DEFAULT_EPF_CEILING,
    DEFAULT_EPF_RATE,
    DEFAULT_EPF_WAGE_CEILING,
    DEFAULT_ESI_RATE,
    DEFAULT_ESI_THRESHOLD,
    DEFAULT_OVERTIME_RATE,
    DEFAULT_STANDARD_WORKING_HOURS,
    DEFAULT_TDS_ANNUAL_THRESHOLD,
    DEFAULT_TDS_RATE,
)
from ..core.enums import PayrollStatus, PerDaySalaryBase
from ..core.exceptions import ValidationError


def _non_negative_map(values: Dict[str, float] | None, label: str) -> Dict[str, float]:
    out: Dict[str, float] = {}
    for key, amount in (values or {}).items():
        if amount is None:
            continue
        if float(amount) < 0:
            raise ValidationError(f"{label} {key!r} must not be negative")
        out[str(key)] = float(amount)
    return out


@dataclass(frozen=True)
class SalaryStructure:
    """Monthly fixed pay of one employee, valid on ``[effective_from, effective_to)``."""

    structure_id: int
    user_id: int
    fixed_basic: float
    fixed_hra: float = 0.0
    fixed_conveyance: float = 0.0
    custom_earnings: Dict[str, float] = field(default_factory=dict)
    custom_deductions: Dict[str, float] = field(default_factory=dict)
    per_day_salary_base: PerDaySalaryBase = PerDaySalaryBase.BASIC_HRA
    overtime_rate: float = DEFAULT_OVERTIME_RATE
    epf_applicable: bool = True
    esi_applicable: bool = True
    vpt_amount: float = 0.0
    effective_from: date = date(2000, 1, 1)
    effective_to: date | None = None
    is_active: bool = True

    def __post_init__(self):
        for name in ("fixed_basic", "fixed_hra", "fixed_conveyance", "vpt_amount"):
            if float(getattr(self, name) or 0) < 0:
                raise ValidationError(f"{name} must not be negative")
        if float(self.overtime_rate) < 0:
            raise ValidationError("overtime_rate must not be negative")
        if self.effective_to is not None and self.effective_to <= self.effective_from:
            raise ValidationError("effective_to must be after effective_from")
        object.__setattr__(self, "custom_earnings", _non_negative_map(self.custom_earnings, "Custom earning"))
        object.__setattr__(self, "custom_deductions", _non_negative_map(self.custom_deductions, "Custom deduction"))

    def overlaps(self, start: date, end: date) -> bool:
        """True if the structure is in effect on any day of ``[start, end]``."""
        if not self.is_active or self.effective_from > end:
            return False
        return self.effective_to is None or self.effective_to > start

    @property
    def fixed_total(self) -> float:
        return float(self.fixed_basic) + float(self.fixed_hra) + float(self.fixed_conveyance)


@dataclass(frozen=True)
class PayrollSettings:
    """Organisation-wide statutory parameters (configurable, see config.PAYROLL)."""

    epf_rate: float = DEFAULT_EPF_RATE
    epf_ceiling: float = DEFAULT_EPF_CEILING
    epf_wage_ceiling: float = DEFAULT_EPF_WAGE_CEILING
    exempt_epf_above_wage_ceiling: bool = False
    esi_rate: float = DEFAULT_ESI_RATE
    esi_threshold: float = DEFAULT_ESI_THRESHOLD
    tds_rate: float = DEFAULT_TDS_RATE
    tds_annual_threshold: float = DEFAULT_TDS_ANNUAL_THRESHOLD
    standard_working_hours: float = DEFAULT_STANDARD_WORKING_HOURS

    @classmethod
    def from_dict(cls, data: dict | None) -> "PayrollSettings":
        data = dict(data or {})
        known = {k: data[k] for k in cls.__dataclass_fields__ if k in data}
        return cls(**known)


@dataclass(frozen=True)
class AttendanceSummary:
    user_id: int
    month: int
    year: int
    month_days: int
    present_days: float
    paid_leave_days: float = 0.0
    overtime_hours: float = 0.0
    weekly_off_days: int = 0


@dataclass(frozen=True)
class PayrollAdjustments:
    """Manual entries an administrator adds to a payroll run.

    ``tds`` overrides the rate-based TDS when given. ``credit_adjustment``
    is paid back to the employee, so it reduces total deductions.
    """

    tds: float | None = None
    fine: float = 0.0
    salary_advance: float = 0.0
    credit_adjustment: float = 0.0
    other_deductions: float = 0.0


@dataclass(frozen=True)
class EarningsBreakdown:
    per_day_salary: int
    earned_basic: int
    earned_hra: int
    earned_conveyance: int
    custom_earnings: Dict[str, int]
    overtime_pay: int
    gross_salary: int


@dataclass(frozen=True)
class DeductionBreakdown:
    epf: int
    esi: int
    vpt: int
    tds: int
    custom_deductions: Dict[str, int]
    fine: int
    salary_advance: int
    credit_adjustment: int
    other: int
    total: int
    esi_eligible: bool


@dataclass(frozen=True)
class PayrollRecord:
    payroll_id: int | None
    user_id: int
    month: int
    year: int
    month_days: int
    present_days: float
    paid_leave_days: float
    overtime_hours: float
    earnings: EarningsBreakdown
    deductions: DeductionBreakdown
    total_earnings: int
    total_deductions: int
    net_salary: int
    status: PayrollStatus = PayrollStatus.DRAFT
    employee_code: str | None = None
    processed_by: int | None = None
    processed_at: datetime | None = None
    weekly_off_days: int = 0

    def __post_init__(self):
        if self.net_salary != self.total_earnings - self.total_deductions:
            raise ValidationError("net_salary must equal total_earnings - total_deductions")
        if self.present_days > self.month_days:
            raise ValidationError("present_days cannot exceed month_days")


@dataclass(frozen=True)
class PerUserError:
    user_id: int
    code: str
    message: str
    record: PayrollRecord | None = None
