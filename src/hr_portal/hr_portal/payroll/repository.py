from __future__ import annotations

from typing import Optional, Protocol, Sequence

from .model import DeductionLine, PayrollConfig, Payslip, PayslipDraft


class PayslipRepository(Protocol):
    """One payslip per (employee, month, year)."""

    def get(self, payslip_id: int) -> Optional[Payslip]:
        raise NotImplementedError

    def get_for_period(self, *, employee_id: int, month: int, year: int) -> Optional[Payslip]:
        raise NotImplementedError

    def list_for_employee(self, employee_id: int) -> Sequence[Payslip]:
        raise NotImplementedError

    def list_for_period(self, *, month: int, year: int) -> Sequence[Payslip]:
        raise NotImplementedError

    def upsert(self, draft: PayslipDraft) -> int:
        """Create or replace the payslip (and its deduction lines) for the draft's period."""
        raise NotImplementedError

    def append_deduction(self, payslip_id: int, line: DeductionLine, *, lop_days: int = 0) -> bool:
        """Add a line and apply it to deductions / net pay / lop days in one atomic update."""
        raise NotImplementedError


class PayrollConfigRepository(Protocol):
    def get_config(self) -> Optional[PayrollConfig]:
        raise NotImplementedError
