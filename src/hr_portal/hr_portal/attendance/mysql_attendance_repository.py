from __future__ import annotations

from datetime import date, datetime
from typing import Optional, Sequence

import mysql.connector
from mysql.connector import errorcode

from ..core.exceptions import ConflictError
from ..database.connection import DatabaseConnection
from ..database.mysql_base import as_optional_float, db_cursor, fetchall, fetchone
from .model import AttendanceRecord, AttendanceReportRow, WorkedTime
from .repository import AttendanceRepository

_SELECT_RECORD = """
    SELECT attendance_id, employee_id, work_date, punch_in, punch_out,
           punch_in_lat, punch_in_lng, punch_out_lat, punch_out_lng,
           total_hours, total_minutes, work_duration, work_from_home, wfh_reason
    FROM attendance
"""


def _to_record(r: dict) -> AttendanceRecord:
    return AttendanceRecord(
        attendance_id=int(r["attendance_id"]),
        employee_id=int(r["employee_id"]),
        work_date=r["work_date"],
        punch_in=r["punch_in"],
        punch_out=r.get("punch_out"),
        punch_in_lat=as_optional_float(r.get("punch_in_lat")),
        punch_in_lng=as_optional_float(r.get("punch_in_lng")),
        punch_out_lat=as_optional_float(r.get("punch_out_lat")),
        punch_out_lng=as_optional_float(r.get("punch_out_lng")),
        total_hours=as_optional_float(r.get("total_hours")),
        total_minutes=r.get("total_minutes"),
        work_duration=r.get("work_duration"),
        work_from_home=bool(r.get("work_from_home")),
        wfh_reason=r.get("wfh_reason"),
    )


class MySQLAttendanceRepository(AttendanceRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_for_employee_and_date(self, employee_id: int, work_date: date) -> Optional[AttendanceRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"{_SELECT_RECORD} WHERE employee_id=%s AND work_date=%s", (int(employee_id), work_date))
            r = fetchone(cur)
            return _to_record(r) if r else None

    def get_recent_for_employee(self, employee_id: int, limit: int) -> Sequence[AttendanceRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"{_SELECT_RECORD} WHERE employee_id=%s ORDER BY work_date DESC LIMIT %s",
                (int(employee_id), int(limit)),
            )
            return [_to_record(r) for r in fetchall(cur)]

    def create_punch_in(
        self,
        *,
        employee_id: int,
        work_date: date,
        punch_in: datetime,
        lat: Optional[float],
        lng: Optional[float],
        work_from_home: bool = False,
        wfh_reason: Optional[str] = None,
    ) -> int:
        try:
            with db_cursor(self._conn_factory) as (_, cur):
                cur.execute(
                    """
                    INSERT INTO attendance (
                        employee_id, work_date, punch_in, punch_in_lat, punch_in_lng, work_from_home, wfh_reason
                    )
                    VALUES (%s,%s,%s,%s,%s,%s,%s)
                    """,
                    (int(employee_id), work_date, punch_in, lat, lng, 1 if work_from_home else 0, wfh_reason),
                )
                return int(cur.lastrowid)
        except mysql.connector.IntegrityError as e:
            if e.errno == errorcode.ER_DUP_ENTRY:
                raise ConflictError("Already marked attendance for today") from e
            raise

    def update_punch_out(
        self,
        *,
        attendance_id: int,
        punch_out: datetime,
        lat: Optional[float],
        lng: Optional[float],
        worked: WorkedTime,
    ) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE attendance
                SET punch_out=%s, punch_out_lat=%s, punch_out_lng=%s,
                    total_hours=%s, total_minutes=%s, work_duration=%s
                WHERE attendance_id=%s AND punch_out IS NULL
                """,
                (
                    punch_out,
                    lat,
                    lng,
                    worked.total_hours,
                    worked.total_minutes,
                    worked.work_duration,
                    int(attendance_id),
                ),
            )
            return cur.rowcount > 0

    def get_report_rows(self, *, start_date: date, end_date: date, employee_id: Optional[int] = None) -> Sequence[AttendanceReportRow]:
        sql = """
            SELECT a.employee_id, e.employee_code, CONCAT(e.first_name, ' ', e.last_name) AS full_name,
                   e.department, a.work_date, a.punch_in, a.punch_out, a.work_duration, a.work_from_home
            FROM attendance a
            JOIN employees e ON e.employee_id = a.employee_id
            WHERE a.work_date BETWEEN %s AND %s
        """
        params: list = [start_date, end_date]
        if employee_id is not None:
            sql += " AND a.employee_id=%s"
            params.append(int(employee_id))
        sql += " ORDER BY a.work_date DESC, e.employee_code"

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(sql, tuple(params))
            return [
                AttendanceReportRow(
                    employee_id=int(r["employee_id"]),
                    employee_code=r["employee_code"],
                    full_name=r["full_name"],
                    department=r["department"],
                    work_date=r["work_date"],
                    punch_in=r["punch_in"],
                    punch_out=r.get("punch_out"),
                    work_duration=r.get("work_duration"),
                    work_from_home=bool(r.get("work_from_home")),
                )
                for r in fetchall(cur)
            ]
