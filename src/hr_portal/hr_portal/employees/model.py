from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Optional

from ..core.constants import DEFAULT_ADDRESS, DEFAULT_LEAVE_BALANCE, DEFAULT_WORK_LOCATION
from ..core.enums import EmployeeStatus, EmploymentType, ResignationStatus


@dataclass(frozen=True)
class SalaryComponents:
    salary: float = 0.0
    hra: float = 0.0
    travel_allowance: float = 0.0
    other_allowances: float = 0.0
    pf: float = 0.0
    professional_tax: float = 0.0
    income_tax: float = 0.0


@dataclass(frozen=True)
class WfhSchedule:
    start: Optional[date] = None
    end: Optional[date] = None
    reason: Optional[str] = None
    allotted_by: Optional[int] = None

    def covers(self, day: date) -> bool:
        # whole days: start 00:00 through end 23:59:59.999
        if not self.start or not self.end:
            return False
        return self.start <= day <= self.end


@dataclass(frozen=True)
class BankDetails:
    account_number: Optional[str] = None
    ifsc: Optional[str] = None
    bank_name: Optional[str] = None
    branch_name: Optional[str] = None
    aadhar: Optional[str] = None


@dataclass(frozen=True)
class KnownLocation:
    lat: float
    lng: float
    address: Optional[str] = None
    recorded_at: Optional[datetime] = None


@dataclass(frozen=True)
class Resignation:
    status: Optional[ResignationStatus] = None
    date: Optional[date] = None
    reason: Optional[str] = None


@dataclass(frozen=True)
class Employee:
    employee_id: int
    employee_code: str
    first_name: str
    last_name: str
    dob: date
    email: str
    phone_number: str
    department: str
    designation: str
    joining_date: date
    address: str = DEFAULT_ADDRESS
    employment_type: EmploymentType = EmploymentType.FULL_TIME
    work_location: str = DEFAULT_WORK_LOCATION
    status: EmployeeStatus = EmployeeStatus.ACTIVE
    pay: SalaryComponents = field(default_factory=SalaryComponents)
    leave_balance: int = DEFAULT_LEAVE_BALANCE
    lop_count: int = 0
    lop_days_this_month: int = 0
    wfh: WfhSchedule = field(default_factory=WfhSchedule)
    bank: BankDetails = field(default_factory=BankDetails)
    last_location: Optional[KnownLocation] = None
    resignation: Resignation = field(default_factory=Resignation)
    has_photo: bool = False

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()

    @property
    def is_active(self) -> bool:
        return self.status == EmployeeStatus.ACTIVE


@dataclass(frozen=True)
class EmployeeFields:
    """Editable employee attributes (create and update forms)."""

    employee_code: str
    first_name: str
    last_name: str
    dob: date
    email: str
    phone_number: str
    department: str
    designation: str
    joining_date: date
    address: str = DEFAULT_ADDRESS
    employment_type: EmploymentType = EmploymentType.FULL_TIME
    work_location: str = DEFAULT_WORK_LOCATION
    pay: SalaryComponents = field(default_factory=SalaryComponents)


@dataclass(frozen=True)
class StoredPhoto:
    data: bytes
    content_type: str
