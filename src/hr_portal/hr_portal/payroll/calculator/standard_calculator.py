from __future__ import annotations

from typing import Sequence

from ...core.constants import LOP_DAY_DIVISOR
from ...core.enums import DeductionType
from ..model import DeductionLine, PayrollInputs, PayslipDraft, TaxRule
from .base import PayrollCalculator


def _money(value: float) -> float:
    return round(float(value), 2)


def lop_label(days: int) -> str:
    return f"Loss of Pay for {days} day(s)"


class StandardPayrollCalculator(PayrollCalculator):
    """Standard rules.

    - one LOP day costs basic / 30
    - tax: first rule with taxable income above its threshold, taxable = earnings - LOP
    - net pay = earnings + reimbursements - every deduction line
    """

    def __init__(self, lop_divisor: int = LOP_DAY_DIVISOR):
        self._lop_divisor = int(lop_divisor)

    def lop_deduction(self, basic_salary: float, days: int) -> float:
        if days <= 0 or basic_salary <= 0:
            return 0.0
        return _money(basic_salary / self._lop_divisor * days)

    def income_tax(self, taxable_income: float, rules: Sequence[TaxRule]) -> float:
        for rule in rules:
            if taxable_income > rule.min_income:
                return _money(taxable_income * rule.percentage / 100)
        return 0.0

    def build(self, inputs: PayrollInputs, *, employee_id: int, month: int, year: int) -> PayslipDraft:
        earnings = inputs.basic_salary + inputs.hra + inputs.travel_allowance + inputs.other_allowances + inputs.bonuses

        lop = self.lop_deduction(inputs.basic_salary, inputs.lop_days)
        if inputs.taxes is None:
            taxes = self.income_tax(earnings - lop, inputs.tax_rules)
        else:
            taxes = _money(inputs.taxes)
        gst = _money(earnings * inputs.gst_percent / 100) if inputs.gst_percent > 0 else 0.0

        candidates = (
            (DeductionType.LOP, lop_label(inputs.lop_days), lop),
            (DeductionType.TAX, "Income Tax (TDS)", taxes),
            (DeductionType.PT, "Professional Tax", _money(inputs.professional_tax)),
            (DeductionType.PF, "Provident Fund", _money(inputs.pf)),
            (DeductionType.GST, f"GST Deduction ({inputs.gst_percent:g}%)", gst),
            (DeductionType.MANUAL, "Other Manual Deductions", _money(inputs.manual_deductions)),
        )
        lines = tuple(DeductionLine(type=t, label=label, amount=amount) for t, label, amount in candidates if amount > 0)
        deductions = _money(sum(line.amount for line in lines))

        return PayslipDraft(
            employee_id=int(employee_id),
            month=int(month),
            year=int(year),
            basic_salary=_money(inputs.basic_salary),
            hra=_money(inputs.hra),
            travel_allowance=_money(inputs.travel_allowance),
            other_allowances=_money(inputs.other_allowances),
            bonuses=_money(inputs.bonuses),
            reimbursements=_money(inputs.reimbursements),
            pf=_money(inputs.pf),
            professional_tax=_money(inputs.professional_tax),
            taxes=taxes,
            lop_days=int(inputs.lop_days),
            deductions=deductions,
            net_pay=_money(earnings + inputs.reimbursements - deductions),
            lines=lines,
        )
