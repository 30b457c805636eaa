from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional, Sequence

from ..common.validators import require_non_empty, require_positive_amount
from ..core.constants import NO_REASON_PROVIDED, RECEIPT_CONTENT_TYPES, RECEIPT_EXTENSIONS
from ..core.enums import ExpenseStatus, ExpenseType
from ..core.exceptions import AuthorizationError, ConflictError, NotFoundError, ValidationError
from ..core.state_machine import EXPENSE_FLOW
from ..employees.model import Employee
from ..employees.repository import EmployeeRepository
from ..storage.file_storage import FileStorage, Upload, UploadPolicy
from ..users.principal import Principal
from .model import Expense, NewExpense
from .repository import ExpenseRepository

logger = logging.getLogger(__name__)

RECEIPT_POLICY = UploadPolicy(
    allowed_types=RECEIPT_CONTENT_TYPES,
    allowed_extensions=RECEIPT_EXTENSIONS,
    label="Receipt",
)


@dataclass(frozen=True)
class ExpenseDashboard:
    pending: Sequence[Expense]
    employees_on_map: Sequence[Employee]


class ExpenseService:
    def __init__(self, expenses: ExpenseRepository, employees: EmployeeRepository, storage: FileStorage):
        self._expenses = expenses
        self._employees = employees
        self._storage = storage

    def submit(
        self,
        principal: Principal,
        *,
        expense_type: ExpenseType,
        amount,
        expense_date: date,
        description: str,
        receipt: Optional[Upload] = None,
        lat: Optional[float] = None,
        lng: Optional[float] = None,
        address: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> int:
        amount = require_positive_amount(amount, "Amount")
        description = require_non_empty(description, "Description")

        receipt_path = None
        if receipt is not None and receipt.data:
            stored = self._storage.save(
                receipt.data,
                content_type=receipt.content_type,
                filename=receipt.filename,
                policy=RECEIPT_POLICY,
                prefix="receipts",
            )
            receipt_path = stored.reference

        expense_id = self._expenses.create(
            NewExpense(
                employee_id=principal.employee_id,
                expense_type=expense_type,
                amount=amount,
                expense_date=expense_date,
                description=description,
                receipt_path=receipt_path,
                lat=lat,
                lng=lng,
                address=address,
            )
        )
        if lat is not None and lng is not None:
            self._employees.set_last_location(principal.employee_id, lat=lat, lng=lng, address=address, at=now or datetime.now())

        logger.info("Expense %s submitted by employee %s (%.2f)", expense_id, principal.employee_id, amount)
        return expense_id

    def list_mine(self, principal: Principal) -> Sequence[Expense]:
        return self._expenses.list_for_employee(principal.employee_id)

    def dashboard(self, principal: Principal) -> ExpenseDashboard:
        if not principal.is_hr:
            raise AuthorizationError("Access denied")
        return ExpenseDashboard(
            pending=self._expenses.list_by_status(ExpenseStatus.PENDING),
            employees_on_map=self._employees.list_with_location(),
        )

    def decide(self, principal: Principal, expense_id: int, *, approve: bool, rejection_reason: str = "") -> None:
        if not principal.is_hr:
            raise AuthorizationError("Only HR can review expenses")

        expense = self._expenses.get(int(expense_id))
        if not expense:
            raise NotFoundError("Expense not found")

        target = ExpenseStatus.APPROVED if approve else ExpenseStatus.REJECTED
        EXPENSE_FLOW.ensure(expense.status, target)

        reason = None if approve else ((rejection_reason or "").strip() or NO_REASON_PROVIDED)
        won = self._expenses.transition(
            expense.expense_id,
            expected=ExpenseStatus.PENDING,
            target=target,
            hr_action_by=principal.employee_id,
            rejection_reason=reason,
        )
        if not won:
            raise ConflictError("Expense was already processed")
        logger.info("Expense %s %s by %s", expense.expense_id, target.value, principal.employee_id)

    def receipt_bytes(self, principal: Principal, expense_id: int) -> tuple[bytes, str]:
        expense = self._expenses.get(int(expense_id))
        if not expense or not expense.receipt_path:
            raise NotFoundError("Receipt not found")
        if not principal.is_hr and expense.employee_id != principal.employee_id:
            raise AuthorizationError("Access denied")
        return self._storage.read(expense.receipt_path), expense.receipt_path

    @staticmethod
    def parse_type(value: str) -> ExpenseType:
        try:
            return ExpenseType(value)
        except ValueError:
            raise ValidationError("Invalid expense type")
