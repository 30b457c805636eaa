from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional

from ..core.enums import ExpenseStatus, ExpenseType


@dataclass(frozen=True)
class Expense:
    expense_id: int
    employee_id: int
    expense_type: ExpenseType
    amount: float
    expense_date: date
    description: str
    status: ExpenseStatus
    receipt_path: Optional[str] = None
    lat: Optional[float] = None
    lng: Optional[float] = None
    address: Optional[str] = None
    rejection_reason: Optional[str] = None
    hr_action_by: Optional[int] = None
    created_at: Optional[datetime] = None
    employee_name: str = ""
    employee_code: str = ""


@dataclass(frozen=True)
class NewExpense:
    employee_id: int
    expense_type: ExpenseType
    amount: float
    expense_date: date
    description: str
    receipt_path: Optional[str] = None
    lat: Optional[float] = None
    lng: Optional[float] = None
    address: Optional[str] = None
