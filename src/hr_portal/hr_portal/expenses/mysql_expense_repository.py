from __future__ import annotations

from datetime import date
from typing import Optional, Sequence

from ..core.enums import ExpenseStatus, ExpenseType
from ..database.connection import DatabaseConnection
from ..database.mysql_base import as_float, as_optional_float, db_cursor, fetchall, fetchone
from .model import Expense, NewExpense
from .repository import ExpenseRepository

_SELECT_EXPENSE = """
    SELECT x.expense_id, x.employee_id, x.expense_type, x.amount, x.expense_date, x.description,
           x.receipt_path, x.lat, x.lng, x.address, x.status, x.rejection_reason, x.hr_action_by, x.created_at,
           CONCAT(e.first_name, ' ', e.last_name) AS employee_name, e.employee_code
    FROM expenses x
    JOIN employees e ON e.employee_id = x.employee_id
"""


def _to_expense(r: dict) -> Expense:
    return Expense(
        expense_id=int(r["expense_id"]),
        employee_id=int(r["employee_id"]),
        expense_type=ExpenseType(r["expense_type"]),
        amount=as_float(r["amount"]),
        expense_date=r["expense_date"],
        description=r["description"],
        status=ExpenseStatus(r["status"]),
        receipt_path=r.get("receipt_path"),
        lat=as_optional_float(r.get("lat")),
        lng=as_optional_float(r.get("lng")),
        address=r.get("address"),
        rejection_reason=r.get("rejection_reason"),
        hr_action_by=r.get("hr_action_by"),
        created_at=r.get("created_at"),
        employee_name=r.get("employee_name") or "",
        employee_code=r.get("employee_code") or "",
    )


class MySQLExpenseRepository(ExpenseRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def create(self, expense: NewExpense) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO expenses (
                    employee_id, expense_type, amount, expense_date, description, receipt_path, lat, lng, address, status
                )
                VALUES (%s,%s,%s,%s,%s,%s,%s,%s,%s,%s)
                """,
                (
                    int(expense.employee_id),
                    expense.expense_type.value,
                    expense.amount,
                    expense.expense_date,
                    expense.description,
                    expense.receipt_path,
                    expense.lat,
                    expense.lng,
                    expense.address,
                    ExpenseStatus.PENDING.value,
                ),
            )
            return int(cur.lastrowid)

    def get(self, expense_id: int) -> Optional[Expense]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"{_SELECT_EXPENSE} WHERE x.expense_id=%s", (int(expense_id),))
            row = fetchone(cur)
            return _to_expense(row) if row else None

    def list_for_employee(self, employee_id: int) -> Sequence[Expense]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"{_SELECT_EXPENSE} WHERE x.employee_id=%s ORDER BY x.created_at DESC", (int(employee_id),))
            return [_to_expense(r) for r in fetchall(cur)]

    def list_by_status(self, status: ExpenseStatus) -> Sequence[Expense]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"{_SELECT_EXPENSE} WHERE x.status=%s ORDER BY x.created_at DESC", (status.value,))
            return [_to_expense(r) for r in fetchall(cur)]

    def transition(
        self,
        expense_id: int,
        *,
        expected: ExpenseStatus,
        target: ExpenseStatus,
        hr_action_by: int,
        rejection_reason: Optional[str] = None,
    ) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE expenses SET status=%s, hr_action_by=%s, rejection_reason=%s
                WHERE expense_id=%s AND status=%s
                """,
                (target.value, int(hr_action_by), rejection_reason, int(expense_id), expected.value),
            )
            return cur.rowcount > 0

    def sum_approved(self, employee_id: int, *, start: date, end: date) -> float:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT COALESCE(SUM(amount), 0) AS total
                FROM expenses
                WHERE employee_id=%s AND status=%s AND expense_date BETWEEN %s AND %s
                """,
                (int(employee_id), ExpenseStatus.APPROVED.value, start, end),
            )
            row = fetchone(cur)
            return as_float(row["total"]) if row else 0.0
