import pytest

from src.hr_portal.hr_portal.core.enums import DeductionType
from src.hr_portal.hr_portal.payroll.calculator.standard_calculator import StandardPayrollCalculator
from src.hr_portal.hr_portal.payroll.model import PayrollInputs, TaxRule


@pytest.fixture
def calc():
    return StandardPayrollCalculator()


def test_lop_day_is_basic_over_thirty(calc):
    assert calc.lop_deduction(30000, 1) == 1000.0
    assert calc.lop_deduction(30000, 0) == 0.0
    assert calc.lop_deduction(0, 5) == 0.0


def test_first_matching_tax_rule_applies_without_stacking(calc):
    rules = (TaxRule(100000, 20), TaxRule(50000, 5))
    assert calc.income_tax(120000, rules) == 24000.0
    assert calc.income_tax(60000, rules) == 3000.0
    assert calc.income_tax(50000, rules) == 0.0


def test_build_deduction_lines_and_net_identity(calc):
    draft = calc.build(
        PayrollInputs(
            basic_salary=60000,
            hra=10000,
            reimbursements=500,
            lop_days=3,
            pf=1800,
            professional_tax=200,
            tax_rules=(TaxRule(50000, 5),),
        ),
        employee_id=3,
        month=2,
        year=2025,
    )

    by_type = {line.type: line.amount for line in draft.lines}
    assert by_type == {
        DeductionType.LOP: 6000.0,
        DeductionType.TAX: 3200.0,  # 5% of (70000 - 6000)
        DeductionType.PT: 200.0,
        DeductionType.PF: 1800.0,
    }
    assert draft.deductions == 11200.0
    assert draft.net_pay == 59300.0
    assert draft.net_pay == pytest.approx(draft.total_earnings + draft.reimbursements - sum(by_type.values()))


def test_explicit_taxes_and_gst(calc):
    draft = calc.build(
        PayrollInputs(basic_salary=10000, taxes=250, manual_deductions=100, gst_percent=18),
        employee_id=1,
        month=1,
        year=2025,
    )
    labels = [line.label for line in draft.lines]
    assert "GST Deduction (18%)" in labels
    assert draft.taxes == 250.0
    assert draft.deductions == 250 + 1800 + 100
    assert draft.net_pay == 10000 - draft.deductions
