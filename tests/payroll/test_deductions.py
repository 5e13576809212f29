import pytest

from src.attendance_payroll.attendance_payroll.core.exceptions import ValidationError
from src.attendance_payroll.attendance_payroll.payroll.deductions import StatutoryDeductionEngine
from src.attendance_payroll.attendance_payroll.payroll.model import (
    EarningsBreakdown,
    PayrollAdjustments,
    PayrollSettings,
    SalaryStructure,
)


def _earnings(*, basic: int, gross: int) -> EarningsBreakdown:
    return EarningsBreakdown(
        per_day_salary=0,
        earned_basic=basic,
        earned_hra=gross - basic,
        earned_conveyance=0,
        custom_earnings={},
        overtime_pay=0,
        gross_salary=gross,
    )


def _structure(**kwargs) -> SalaryStructure:
    return SalaryStructure(structure_id=1, user_id=1, fixed_basic=15000, **kwargs)


def test_epf_is_twelve_percent_of_earned_basic_capped():
    engine = StatutoryDeductionEngine()

    assert engine.epf(_structure(), _earnings(basic=10000, gross=15000)) == 1200
    assert engine.epf(_structure(), _earnings(basic=15000, gross=22500)) == 1800
    assert engine.epf(_structure(), _earnings(basic=20000, gross=30000)) == 1800
    assert engine.epf(_structure(epf_applicable=False), _earnings(basic=10000, gross=15000)) == 0


def test_epf_exemption_above_wage_ceiling_is_opt_in():
    engine = StatutoryDeductionEngine(PayrollSettings(exempt_epf_above_wage_ceiling=True))

    assert engine.epf(_structure(), _earnings(basic=20000, gross=30000)) == 0
    assert engine.epf(_structure(), _earnings(basic=15000, gross=22500)) == 1800


def test_esi_applies_only_up_to_threshold():
    engine = StatutoryDeductionEngine()

    assert engine.esi(_structure(), _earnings(basic=10000, gross=20000)) == 150
    assert engine.esi(_structure(), _earnings(basic=10000, gross=21000)) == 158
    assert engine.esi(_structure(), _earnings(basic=10000, gross=21001)) == 0
    assert engine.esi(_structure(esi_applicable=False), _earnings(basic=10000, gross=20000)) == 0


def test_tds_manual_amount_wins_over_rate():
    engine = StatutoryDeductionEngine(PayrollSettings(tds_rate=0.1))

    assert engine.tds(_earnings(basic=15000, gross=25000), PayrollAdjustments()) == 2500
    assert engine.tds(_earnings(basic=15000, gross=20000), PayrollAdjustments()) == 0
    assert engine.tds(_earnings(basic=15000, gross=25000), PayrollAdjustments(tds=300)) == 300


def test_apply_totals_every_component_and_subtracts_credit():
    engine = StatutoryDeductionEngine()
    structure = _structure(vpt_amount=200, custom_deductions={"canteen": 450})
    adjustments = PayrollAdjustments(tds=100, fine=50, salary_advance=1000, credit_adjustment=300, other_deductions=25)

    d = engine.apply(structure, _earnings(basic=15000, gross=22500), adjustments)

    assert d.epf == 1800
    assert d.esi == 0
    assert d.esi_eligible is False
    assert d.vpt == 200
    assert d.tds == 100
    assert d.custom_deductions == {"canteen": 450}
    assert d.total == 1800 + 200 + 100 + 450 + 50 + 1000 + 25 - 300


def test_negative_adjustments_are_rejected():
    engine = StatutoryDeductionEngine()
    with pytest.raises(ValidationError):
        engine.apply(_structure(), _earnings(basic=1000, gross=1000), PayrollAdjustments(fine=-1))
    with pytest.raises(ValidationError):
        engine.apply(_structure(), _earnings(basic=1000, gross=1000), PayrollAdjustments(tds=-10))


def test_settings_from_dict_ignores_unknown_keys():
    settings = PayrollSettings.from_dict({"epf_ceiling": 2000, "unknown": 1})

    assert settings.epf_ceiling == 2000
    assert settings.esi_threshold == 21000
