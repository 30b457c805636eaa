from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional, Sequence, Tuple

from ..core.constants import DEFAULT_TAX_MIN_INCOME, DEFAULT_TAX_PERCENTAGE
from ..core.enums import DeductionType, PaymentStatus


@dataclass(frozen=True)
class DeductionLine:
    type: DeductionType
    label: str
    amount: float


@dataclass(frozen=True)
class TaxRule:
    min_income: float
    percentage: float


@dataclass(frozen=True)
class PayrollConfig:
    """Ordered tax rules: the first rule whose threshold is exceeded applies (no stacking)."""

    tax_rules: Tuple[TaxRule, ...] = (TaxRule(DEFAULT_TAX_MIN_INCOME, DEFAULT_TAX_PERCENTAGE),)
    pf_percentage: float = 0.0
    pt_amount: float = 0.0


@dataclass(frozen=True)
class PayrollInputs:
    """Everything the calculator needs for one payslip."""

    basic_salary: float = 0.0
    hra: float = 0.0
    travel_allowance: float = 0.0
    other_allowances: float = 0.0
    bonuses: float = 0.0
    reimbursements: float = 0.0
    lop_days: int = 0
    pf: float = 0.0
    professional_tax: float = 0.0
    taxes: Optional[float] = None
    manual_deductions: float = 0.0
    gst_percent: float = 0.0
    tax_rules: Tuple[TaxRule, ...] = ()


@dataclass(frozen=True)
class PayslipDraft:
    """Computed payslip, ready to be upserted for (employee, month, year)."""

    employee_id: int
    month: int
    year: int
    basic_salary: float
    hra: float
    travel_allowance: float
    other_allowances: float
    bonuses: float
    reimbursements: float
    pf: float
    professional_tax: float
    taxes: float
    lop_days: int
    deductions: float
    net_pay: float
    lines: Tuple[DeductionLine, ...] = ()

    @property
    def total_earnings(self) -> float:
        return self.basic_salary + self.hra + self.travel_allowance + self.other_allowances + self.bonuses


@dataclass(frozen=True)
class Payslip:
    payslip_id: int
    employee_id: int
    month: int
    year: int
    basic_salary: float
    hra: float
    travel_allowance: float
    other_allowances: float
    bonuses: float
    reimbursements: float
    pf: float
    professional_tax: float
    taxes: float
    lop_days: int
    deductions: float
    net_pay: float
    payment_status: PaymentStatus = PaymentStatus.NOT_PAID
    lines: Sequence[DeductionLine] = field(default_factory=tuple)
    created_at: Optional[datetime] = None
    employee_name: str = ""
    employee_code: str = ""

    @property
    def total_earnings(self) -> float:
        return self.basic_salary + self.hra + self.travel_allowance + self.other_allowances + self.bonuses

    @property
    def allowances(self) -> float:
        return self.hra + self.travel_allowance + self.other_allowances

    @property
    def period_label(self) -> str:
        return f"{self.month:02d}/{self.year}"


@dataclass(frozen=True)
class BulkGenerationResult:
    generated: int
    failed: Tuple[Tuple[int, str], ...] = ()


@dataclass(frozen=True)
class LopEmployeeRow:
    employee_id: int
    employee_code: str
    full_name: str
    department: str
    lop_count: int
    lop_days_this_month: int


@dataclass(frozen=True)
class LopStats:
    total_lop_days: int
    employees_with_lop: int
    rows: Tuple[LopEmployeeRow, ...] = ()
