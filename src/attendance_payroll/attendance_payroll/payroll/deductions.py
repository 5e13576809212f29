from __future__ import annotations

from ..common.money import round_money, to_decimal
from ..core.exceptions import ValidationError
from .model import DeductionBreakdown, EarningsBreakdown, PayrollAdjustments, PayrollSettings, SalaryStructure


class StatutoryDeductionEngine:
    """EPF, ESI, VPT, TDS plus manual adjustments.

    - EPF: ``min(earned_basic * epf_rate, epf_ceiling)``. Pay above the wage
      ceiling is only capped, unless ``exempt_epf_above_wage_ceiling`` is set.
    - ESI: ``gross * esi_rate`` while gross is at or under the threshold,
      evaluated once per payroll run.
    - VPT and custom deductions are flat amounts from the structure.
    - TDS: the manual amount when given, else ``gross * tds_rate`` once the
      annualised gross exceeds ``tds_annual_threshold``.
    """

    def __init__(self, settings: PayrollSettings | None = None):
        self.settings = settings or PayrollSettings()

    def epf(self, structure: SalaryStructure, earnings: EarningsBreakdown) -> int:
        s = self.settings
        if not structure.epf_applicable:
            return 0
        if s.exempt_epf_above_wage_ceiling and earnings.earned_basic > s.epf_wage_ceiling:
            return 0
        amount = round_money(to_decimal(earnings.earned_basic) * to_decimal(s.epf_rate))
        return min(amount, round_money(s.epf_ceiling))

    def esi_eligible(self, structure: SalaryStructure, earnings: EarningsBreakdown) -> bool:
        return bool(structure.esi_applicable) and earnings.gross_salary <= self.settings.esi_threshold

    def esi(self, structure: SalaryStructure, earnings: EarningsBreakdown) -> int:
        if not self.esi_eligible(structure, earnings):
            return 0
        return round_money(to_decimal(earnings.gross_salary) * to_decimal(self.settings.esi_rate))

    def tds(self, earnings: EarningsBreakdown, adjustments: PayrollAdjustments) -> int:
        if adjustments.tds is not None:
            return round_money(adjustments.tds)
        s = self.settings
        if s.tds_rate <= 0 or earnings.gross_salary * 12 <= s.tds_annual_threshold:
            return 0
        return round_money(to_decimal(earnings.gross_salary) * to_decimal(s.tds_rate))

    def apply(
        self,
        structure: SalaryStructure,
        earnings: EarningsBreakdown,
        adjustments: PayrollAdjustments | None = None,
    ) -> DeductionBreakdown:
        adjustments = adjustments or PayrollAdjustments()
        for name in ("fine", "salary_advance", "credit_adjustment", "other_deductions"):
            if getattr(adjustments, name) < 0:
                raise ValidationError(f"{name} must not be negative")
        if adjustments.tds is not None and adjustments.tds < 0:
            raise ValidationError("tds must not be negative")

        epf = self.epf(structure, earnings)
        esi = self.esi(structure, earnings)
        vpt = round_money(structure.vpt_amount)
        tds = self.tds(earnings, adjustments)
        custom = {name: round_money(amount) for name, amount in structure.custom_deductions.items()}
        fine = round_money(adjustments.fine)
        advance = round_money(adjustments.salary_advance)
        credit = round_money(adjustments.credit_adjustment)
        other = round_money(adjustments.other_deductions)

        total = epf + esi + vpt + tds + sum(custom.values(), 0) + fine + advance + other - credit
        return DeductionBreakdown(
            epf=epf,
            esi=esi,
            vpt=vpt,
            tds=tds,
            custom_deductions=custom,
            fine=fine,
            salary_advance=advance,
            credit_adjustment=credit,
            other=other,
            total=total,
            esi_eligible=self.esi_eligible(structure, earnings),
        )
