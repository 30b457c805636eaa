from __future__ import annotations

from datetime import date, datetime
from typing import Optional, Protocol, Sequence

from ..core.enums import EmployeeStatus, ResignationStatus
from .model import BankDetails, Employee, EmployeeFields, StoredPhoto, WfhSchedule


class EmployeeRepository(Protocol):
    """Repository interface for employee records.

    Counters (leave balance, LOP days) are only changed through the atomic
    methods below, never by read-modify-write in services.
    """

    def get_by_id(self, employee_id: int) -> Optional[Employee]:
        raise NotImplementedError

    def get_by_code(self, employee_code: str) -> Optional[Employee]:
        raise NotImplementedError

    def get_by_email(self, email: str) -> Optional[Employee]:
        raise NotImplementedError

    def list_employees(self, *, search: Optional[str] = None, status: Optional[EmployeeStatus] = None) -> Sequence[Employee]:
        raise NotImplementedError

    def list_by_department(self, department: str) -> Sequence[Employee]:
        raise NotImplementedError

    def find_department_manager(self, department: str, *, exclude_employee_id: Optional[int] = None) -> Optional[Employee]:
        raise NotImplementedError

    def create(self, fields: EmployeeFields, *, leave_balance: int) -> int:
        raise NotImplementedError

    def update(self, employee_id: int, fields: EmployeeFields) -> bool:
        raise NotImplementedError

    def set_status(self, employee_id: int, *, status: EmployeeStatus) -> bool:
        raise NotImplementedError

    # -------- Atomic counters --------
    def try_deduct_leave_balance(self, employee_id: int, *, days: int) -> bool:
        """Lower the balance only if it stays >= 0. Returns False otherwise."""
        raise NotImplementedError

    def refund_leave_balance(self, employee_id: int, *, days: int) -> bool:
        raise NotImplementedError

    def add_lop_days(self, employee_id: int, *, days: int) -> bool:
        raise NotImplementedError

    def reset_lop_days_this_month(self, employee_id: int) -> bool:
        raise NotImplementedError

    def reset_all_lop_days_this_month(self) -> int:
        raise NotImplementedError

    # -------- Profile sections --------
    def set_wfh_schedule(self, employee_id: int, schedule: WfhSchedule) -> bool:
        raise NotImplementedError

    def set_bank_details(self, employee_id: int, bank: BankDetails) -> bool:
        raise NotImplementedError

    def set_last_location(self, employee_id: int, *, lat: float, lng: float, address: Optional[str], at: datetime) -> bool:
        raise NotImplementedError

    def list_with_location(self) -> Sequence[Employee]:
        raise NotImplementedError

    def set_profile_photo(self, employee_id: int, photo: StoredPhoto) -> bool:
        raise NotImplementedError

    def get_profile_photo(self, employee_id: int) -> Optional[StoredPhoto]:
        raise NotImplementedError

    def set_resignation(
        self,
        employee_id: int,
        *,
        status: ResignationStatus,
        resignation_date: Optional[date] = None,
        reason: Optional[str] = None,
        expected_status: Optional[ResignationStatus] = None,
    ) -> bool:
        """Conditional when expected_status is given."""
        raise NotImplementedError
