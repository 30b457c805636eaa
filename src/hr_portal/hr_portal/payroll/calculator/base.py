from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Sequence

from ..model import PayrollInputs, PayslipDraft, TaxRule


class PayrollCalculator(ABC):
    """Calculator interface (Strategy Pattern for payroll)."""

    @abstractmethod
    def lop_deduction(self, basic_salary: float, days: int) -> float:
        raise NotImplementedError

    @abstractmethod
    def income_tax(self, taxable_income: float, rules: Sequence[TaxRule]) -> float:
        raise NotImplementedError

    @abstractmethod
    def build(self, inputs: PayrollInputs, *, employee_id: int, month: int, year: int) -> PayslipDraft:
        raise NotImplementedError
