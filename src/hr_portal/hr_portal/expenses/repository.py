from __future__ import annotations

from datetime import date
from typing import Optional, Protocol, Sequence

from ..core.enums import ExpenseStatus
from .model import Expense, NewExpense


class ExpenseRepository(Protocol):
    def create(self, expense: NewExpense) -> int:
        raise NotImplementedError

    def get(self, expense_id: int) -> Optional[Expense]:
        raise NotImplementedError

    def list_for_employee(self, employee_id: int) -> Sequence[Expense]:
        raise NotImplementedError

    def list_by_status(self, status: ExpenseStatus) -> Sequence[Expense]:
        raise NotImplementedError

    def transition(
        self,
        expense_id: int,
        *,
        expected: ExpenseStatus,
        target: ExpenseStatus,
        hr_action_by: int,
        rejection_reason: Optional[str] = None,
    ) -> bool:
        raise NotImplementedError

    def sum_approved(self, employee_id: int, *, start: date, end: date) -> float:
        """Approved reimbursements dated within [start, end]."""
        raise NotImplementedError
