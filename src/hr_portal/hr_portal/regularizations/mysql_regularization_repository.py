from __future__ import annotations

from datetime import date, datetime
from typing import Optional, Sequence

import mysql.connector
from mysql.connector import errorcode

from ..core.enums import RegularizationStatus
from ..core.exceptions import ConflictError
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone
from .model import Regularization
from .repository import RegularizationRepository

_SELECT = """
    SELECT r.regularization_id, r.employee_id, r.request_date, r.reason, r.status, r.created_at,
           r.reviewed_by, r.reviewed_at,
           CONCAT(e.first_name, ' ', e.last_name) AS employee_name, e.employee_code
    FROM regularizations r
    JOIN employees e ON e.employee_id = r.employee_id
"""


def _to_regularization(r: dict) -> Regularization:
    return Regularization(
        regularization_id=int(r["regularization_id"]),
        employee_id=int(r["employee_id"]),
        request_date=r["request_date"],
        reason=r["reason"],
        status=RegularizationStatus(r["status"]),
        created_at=r.get("created_at"),
        reviewed_by=r.get("reviewed_by"),
        reviewed_at=r.get("reviewed_at"),
        employee_name=r.get("employee_name") or "",
        employee_code=r.get("employee_code") or "",
    )


class MySQLRegularizationRepository(RegularizationRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def create(self, *, employee_id: int, request_date: date, reason: str) -> int:
        try:
            with db_cursor(self._conn_factory) as (_, cur):
                cur.execute(
                    "INSERT INTO regularizations (employee_id, request_date, reason, status) VALUES (%s,%s,%s,%s)",
                    (int(employee_id), request_date, reason, RegularizationStatus.PENDING.value),
                )
                return int(cur.lastrowid)
        except mysql.connector.IntegrityError as e:
            if e.errno == errorcode.ER_DUP_ENTRY:
                raise ConflictError("Request already exists for this date.") from e
            raise

    def get(self, regularization_id: int) -> Optional[Regularization]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"{_SELECT} WHERE r.regularization_id=%s", (int(regularization_id),))
            row = fetchone(cur)
            return _to_regularization(row) if row else None

    def get_for_date(self, employee_id: int, request_date: date) -> Optional[Regularization]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"{_SELECT} WHERE r.employee_id=%s AND r.request_date=%s", (int(employee_id), request_date))
            row = fetchone(cur)
            return _to_regularization(row) if row else None

    def count_for_employee(self, employee_id: int) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("SELECT COUNT(*) AS n FROM regularizations WHERE employee_id=%s", (int(employee_id),))
            row = fetchone(cur)
            return int(row["n"]) if row else 0

    def list_for_employee(self, employee_id: int) -> Sequence[Regularization]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"{_SELECT} WHERE r.employee_id=%s ORDER BY r.request_date DESC", (int(employee_id),))
            return [_to_regularization(r) for r in fetchall(cur)]

    def list_all(self, *, status: Optional[RegularizationStatus] = None) -> Sequence[Regularization]:
        sql = _SELECT
        params: tuple = ()
        if status:
            sql += " WHERE r.status=%s"
            params = (status.value,)
        sql += " ORDER BY r.created_at DESC"
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(sql, params)
            return [_to_regularization(r) for r in fetchall(cur)]

    def transition(
        self,
        regularization_id: int,
        *,
        expected: RegularizationStatus,
        target: RegularizationStatus,
        reviewed_by: int,
        reviewed_at: datetime,
    ) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE regularizations
                SET status=%s, reviewed_by=%s, reviewed_at=%s
                WHERE regularization_id=%s AND status=%s
                """,
                (target.value, int(reviewed_by), reviewed_at, int(regularization_id), expected.value),
            )
            return cur.rowcount > 0
