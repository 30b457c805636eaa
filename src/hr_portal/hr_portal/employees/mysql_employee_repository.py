from __future__ import annotations

from datetime import date, datetime
from typing import Optional, Sequence

from ..core.enums import EmployeeStatus, EmploymentType, ResignationStatus
from ..database.connection import DatabaseConnection
from ..database.mysql_base import as_float, db_cursor, fetchall, fetchone
from .model import (
    BankDetails,
    Employee,
    EmployeeFields,
    KnownLocation,
    Resignation,
    SalaryComponents,
    StoredPhoto,
    WfhSchedule,
)
from .repository import EmployeeRepository

_COLUMNS = """
    employee_id, employee_code, first_name, last_name, dob, email, phone_number, address,
    department, designation, employment_type, joining_date, work_location, status,
    salary, hra, travel_allowance, other_allowances, pf, professional_tax, income_tax,
    leave_balance, lop_count, lop_days_this_month,
    wfh_start, wfh_end, wfh_reason, wfh_allotted_by,
    bank_account_number, bank_ifsc, bank_name, bank_branch, aadhar,
    last_lat, last_lng, last_location_address, last_location_at,
    resignation_status, resignation_date, resignation_reason,
    (profile_photo IS NOT NULL) AS has_photo
"""


def _to_employee(r: dict) -> Employee:
    location = None
    if r.get("last_lat") is not None and r.get("last_lng") is not None:
        location = KnownLocation(
            lat=float(r["last_lat"]),
            lng=float(r["last_lng"]),
            address=r.get("last_location_address"),
            recorded_at=r.get("last_location_at"),
        )

    return Employee(
        employee_id=int(r["employee_id"]),
        employee_code=r["employee_code"],
        first_name=r["first_name"],
        last_name=r["last_name"],
        dob=r["dob"],
        email=r["email"],
        phone_number=r["phone_number"],
        address=r.get("address") or "",
        department=r["department"],
        designation=r["designation"],
        employment_type=EmploymentType(r["employment_type"]),
        joining_date=r["joining_date"],
        work_location=r.get("work_location") or "",
        status=EmployeeStatus(r["status"]),
        pay=SalaryComponents(
            salary=as_float(r.get("salary")),
            hra=as_float(r.get("hra")),
            travel_allowance=as_float(r.get("travel_allowance")),
            other_allowances=as_float(r.get("other_allowances")),
            pf=as_float(r.get("pf")),
            professional_tax=as_float(r.get("professional_tax")),
            income_tax=as_float(r.get("income_tax")),
        ),
        leave_balance=int(r.get("leave_balance") or 0),
        lop_count=int(r.get("lop_count") or 0),
        lop_days_this_month=int(r.get("lop_days_this_month") or 0),
        wfh=WfhSchedule(
            start=r.get("wfh_start"),
            end=r.get("wfh_end"),
            reason=r.get("wfh_reason"),
            allotted_by=r.get("wfh_allotted_by"),
        ),
        bank=BankDetails(
            account_number=r.get("bank_account_number"),
            ifsc=r.get("bank_ifsc"),
            bank_name=r.get("bank_name"),
            branch_name=r.get("bank_branch"),
            aadhar=r.get("aadhar"),
        ),
        last_location=location,
        resignation=Resignation(
            status=ResignationStatus(r["resignation_status"]) if r.get("resignation_status") else None,
            date=r.get("resignation_date"),
            reason=r.get("resignation_reason"),
        ),
        has_photo=bool(r.get("has_photo")),
    )


def _field_params(fields: EmployeeFields) -> tuple:
    return (
        fields.employee_code,
        fields.first_name,
        fields.last_name,
        fields.dob,
        fields.email,
        fields.phone_number,
        fields.address,
        fields.department,
        fields.designation,
        fields.employment_type.value,
        fields.joining_date,
        fields.work_location,
        fields.pay.salary,
        fields.pay.hra,
        fields.pay.travel_allowance,
        fields.pay.other_allowances,
        fields.pay.pf,
        fields.pay.professional_tax,
        fields.pay.income_tax,
    )


class MySQLEmployeeRepository(EmployeeRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def _one(self, where: str, params: tuple) -> Optional[Employee]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM employees WHERE {where}", params)
            row = fetchone(cur)
            return _to_employee(row) if row else None

    def _many(self, where: str = "1=1", params: tuple = (), order: str = "first_name, last_name") -> list[Employee]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM employees WHERE {where} ORDER BY {order}", params)
            return [_to_employee(r) for r in fetchall(cur)]

    def _update(self, sql: str, params: tuple) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(sql, params)
            return cur.rowcount > 0

    def get_by_id(self, employee_id: int) -> Optional[Employee]:
        return self._one("employee_id=%s", (int(employee_id),))

    def get_by_code(self, employee_code: str) -> Optional[Employee]:
        return self._one("employee_code=%s", (employee_code,))

    def get_by_email(self, email: str) -> Optional[Employee]:
        return self._one("email=%s", (email.lower(),))

    def list_employees(self, *, search: Optional[str] = None, status: Optional[EmployeeStatus] = None) -> Sequence[Employee]:
        where = ["1=1"]
        params: list = []
        if search:
            like = f"%{search.strip()}%"
            where.append("(first_name LIKE %s OR last_name LIKE %s OR employee_code LIKE %s)")
            params.extend([like, like, like])
        if status is not None:
            where.append("status=%s")
            params.append(status.value)
        return self._many(" AND ".join(where), tuple(params))

    def list_by_department(self, department: str) -> Sequence[Employee]:
        return self._many("department=%s", (department,))

    def find_department_manager(self, department: str, *, exclude_employee_id: Optional[int] = None) -> Optional[Employee]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS} FROM employees
                WHERE department=%s AND UPPER(designation) LIKE %s AND employee_id<>%s
                ORDER BY employee_id
                LIMIT 1
                """,
                (department, "%MANAGER%", int(exclude_employee_id or 0)),
            )
            row = fetchone(cur)
            return _to_employee(row) if row else None

    def create(self, fields: EmployeeFields, *, leave_balance: int) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO employees (
                    employee_code, first_name, last_name, dob, email, phone_number, address,
                    department, designation, employment_type, joining_date, work_location,
                    salary, hra, travel_allowance, other_allowances, pf, professional_tax, income_tax,
                    leave_balance
                )
                VALUES (%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s)
                """,
                _field_params(fields) + (int(leave_balance),),
            )
            return int(cur.lastrowid)

    def update(self, employee_id: int, fields: EmployeeFields) -> bool:
        return self._update(
            """
            UPDATE employees
            SET employee_code=%s, first_name=%s, last_name=%s, dob=%s, email=%s, phone_number=%s, address=%s,
                department=%s, designation=%s, employment_type=%s, joining_date=%s, work_location=%s,
                salary=%s, hra=%s, travel_allowance=%s, other_allowances=%s, pf=%s, professional_tax=%s,
                income_tax=%s
            WHERE employee_id=%s
            """,
            _field_params(fields) + (int(employee_id),),
        )

    def set_status(self, employee_id: int, *, status: EmployeeStatus) -> bool:
        return self._update("UPDATE employees SET status=%s WHERE employee_id=%s", (status.value, int(employee_id)))

    def try_deduct_leave_balance(self, employee_id: int, *, days: int) -> bool:
        return self._update(
            "UPDATE employees SET leave_balance = leave_balance - %s WHERE employee_id=%s AND leave_balance >= %s",
            (int(days), int(employee_id), int(days)),
        )

    def refund_leave_balance(self, employee_id: int, *, days: int) -> bool:
        return self._update(
            "UPDATE employees SET leave_balance = leave_balance + %s WHERE employee_id=%s",
            (int(days), int(employee_id)),
        )

    def add_lop_days(self, employee_id: int, *, days: int) -> bool:
        return self._update(
            """
            UPDATE employees
            SET lop_count = lop_count + %s, lop_days_this_month = lop_days_this_month + %s
            WHERE employee_id=%s
            """,
            (int(days), int(days), int(employee_id)),
        )

    def reset_lop_days_this_month(self, employee_id: int) -> bool:
        return self._update("UPDATE employees SET lop_days_this_month=0 WHERE employee_id=%s", (int(employee_id),))

    def reset_all_lop_days_this_month(self) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("UPDATE employees SET lop_days_this_month=0 WHERE lop_days_this_month<>0")
            return int(cur.rowcount)

    def set_wfh_schedule(self, employee_id: int, schedule: WfhSchedule) -> bool:
        return self._update(
            "UPDATE employees SET wfh_start=%s, wfh_end=%s, wfh_reason=%s, wfh_allotted_by=%s WHERE employee_id=%s",
            (schedule.start, schedule.end, schedule.reason, schedule.allotted_by, int(employee_id)),
        )

    def set_bank_details(self, employee_id: int, bank: BankDetails) -> bool:
        return self._update(
            """
            UPDATE employees
            SET bank_account_number=%s, bank_ifsc=%s, bank_name=%s, bank_branch=%s, aadhar=%s
            WHERE employee_id=%s
            """,
            (bank.account_number, bank.ifsc, bank.bank_name, bank.branch_name, bank.aadhar, int(employee_id)),
        )

    def set_last_location(self, employee_id: int, *, lat: float, lng: float, address: Optional[str], at: datetime) -> bool:
        return self._update(
            """
            UPDATE employees
            SET last_lat=%s, last_lng=%s, last_location_address=%s, last_location_at=%s
            WHERE employee_id=%s
            """,
            (float(lat), float(lng), address, at, int(employee_id)),
        )

    def list_with_location(self) -> Sequence[Employee]:
        return self._many("last_lat IS NOT NULL AND last_lng IS NOT NULL", order="last_location_at DESC")

    def set_profile_photo(self, employee_id: int, photo: StoredPhoto) -> bool:
        return self._update(
            "UPDATE employees SET profile_photo=%s, profile_photo_type=%s WHERE employee_id=%s",
            (photo.data, photo.content_type, int(employee_id)),
        )

    def get_profile_photo(self, employee_id: int) -> Optional[StoredPhoto]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "SELECT profile_photo, profile_photo_type FROM employees WHERE employee_id=%s",
                (int(employee_id),),
            )
            row = fetchone(cur)
            if not row or row.get("profile_photo") is None:
                return None
            return StoredPhoto(data=bytes(row["profile_photo"]), content_type=row.get("profile_photo_type") or "image/jpeg")

    def set_resignation(
        self,
        employee_id: int,
        *,
        status: ResignationStatus,
        resignation_date: Optional[date] = None,
        reason: Optional[str] = None,
        expected_status: Optional[ResignationStatus] = None,
    ) -> bool:
        sql = """
            UPDATE employees
            SET resignation_status=%s,
                resignation_date=COALESCE(%s, resignation_date),
                resignation_reason=COALESCE(%s, resignation_reason)
            WHERE employee_id=%s
        """
        params: list = [status.value, resignation_date, reason, int(employee_id)]
        if expected_status is not None:
            sql += " AND resignation_status=%s"
            params.append(expected_status.value)
        return self._update(sql, tuple(params))
