from __future__ import annotations

from datetime import date, datetime
from typing import Optional, Sequence

from ..core.enums import LeaveStatus, LeaveType
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone
from .model import Leave, NewLeave
from .repository import LeaveRepository

_SELECT_LEAVE = """
    SELECT l.leave_id, l.employee_id, l.department, l.leave_type, l.from_date, l.to_date, l.total_days,
           l.reason, l.status, l.applied_at, l.action_by, l.action_at, l.rejection_reason,
           CONCAT(e.first_name, ' ', e.last_name) AS employee_name, e.employee_code
    FROM leaves l
    JOIN employees e ON e.employee_id = l.employee_id
"""


def _to_leave(r: dict) -> Leave:
    return Leave(
        leave_id=int(r["leave_id"]),
        employee_id=int(r["employee_id"]),
        department=r["department"],
        leave_type=LeaveType(r["leave_type"]),
        from_date=r["from_date"],
        to_date=r["to_date"],
        total_days=int(r["total_days"]),
        reason=r["reason"],
        status=LeaveStatus(r["status"]),
        applied_at=r.get("applied_at"),
        action_by=r.get("action_by"),
        action_at=r.get("action_at"),
        rejection_reason=r.get("rejection_reason"),
        employee_name=r.get("employee_name") or "",
        employee_code=r.get("employee_code") or "",
    )


class MySQLLeaveRepository(LeaveRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def create(self, leave: NewLeave) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO leaves (employee_id, department, leave_type, from_date, to_date, total_days, reason, status)
                VALUES (%s,%s,%s,%s,%s,%s,%s,%s)
                """,
                (
                    int(leave.employee_id),
                    leave.department,
                    leave.leave_type.value,
                    leave.from_date,
                    leave.to_date,
                    int(leave.total_days),
                    leave.reason,
                    LeaveStatus.PENDING.value,
                ),
            )
            return int(cur.lastrowid)

    def get(self, leave_id: int) -> Optional[Leave]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"{_SELECT_LEAVE} WHERE l.leave_id=%s", (int(leave_id),))
            row = fetchone(cur)
            return _to_leave(row) if row else None

    def list_for_employee(self, employee_id: int) -> Sequence[Leave]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"{_SELECT_LEAVE} WHERE l.employee_id=%s ORDER BY l.applied_at DESC", (int(employee_id),))
            return [_to_leave(r) for r in fetchall(cur)]

    def list_by_status(self, status: LeaveStatus, *, department: Optional[str] = None) -> Sequence[Leave]:
        sql = f"{_SELECT_LEAVE} WHERE l.status=%s"
        params: list = [status.value]
        if department:
            sql += " AND l.department=%s"
            params.append(department)
        sql += " ORDER BY l.applied_at DESC"
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(sql, tuple(params))
            return [_to_leave(r) for r in fetchall(cur)]

    def transition(
        self,
        leave_id: int,
        *,
        expected: LeaveStatus,
        target: LeaveStatus,
        action_by: int,
        action_at: datetime,
        rejection_reason: Optional[str] = None,
        leave_type: Optional[LeaveType] = None,
    ) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE leaves
                SET status=%s, action_by=%s, action_at=%s, rejection_reason=%s,
                    leave_type=COALESCE(%s, leave_type)
                WHERE leave_id=%s AND status=%s
                """,
                (
                    target.value,
                    int(action_by),
                    action_at,
                    rejection_reason,
                    leave_type.value if leave_type else None,
                    int(leave_id),
                    expected.value,
                ),
            )
            return cur.rowcount > 0

    def sum_approved_lop_days(self, employee_id: int, *, start: date, end: date) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT COALESCE(SUM(total_days), 0) AS days
                FROM leaves
                WHERE employee_id=%s AND leave_type=%s AND status=%s AND from_date BETWEEN %s AND %s
                """,
                (int(employee_id), LeaveType.LOP.value, LeaveStatus.APPROVED.value, start, end),
            )
            row = fetchone(cur)
            return int(row["days"]) if row else 0
