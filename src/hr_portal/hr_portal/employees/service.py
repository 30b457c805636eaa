from __future__ import annotations

import logging
from dataclasses import replace
from datetime import date, datetime
from typing import Optional, Sequence

from ..common.validators import require_non_empty
from ..core.constants import DEFAULT_LEAVE_BALANCE, PHOTO_CONTENT_TYPES, TEMP_PASSWORD
from ..core.enums import EmployeeStatus, ResignationStatus, Role
from ..core.exceptions import AuthorizationError, ConflictError, NotFoundError, ValidationError
from ..notifications.messages import MessageBuilder
from ..notifications.outbox import NotificationOutbox
from ..storage.file_storage import FileStorage, UploadPolicy
from ..users.principal import Principal
from ..users.service import AuthService
from .model import BankDetails, Employee, EmployeeFields, StoredPhoto, WfhSchedule
from .repository import EmployeeRepository

logger = logging.getLogger(__name__)

PHOTO_POLICY = UploadPolicy(allowed_types=PHOTO_CONTENT_TYPES, label="Profile photo")


class EmployeeService:
    def __init__(
        self,
        employees: EmployeeRepository,
        auth: AuthService,
        outbox: NotificationOutbox,
        messages: MessageBuilder,
        photo_storage: FileStorage,
        *,
        default_leave_balance: int = DEFAULT_LEAVE_BALANCE,
    ):
        self._employees = employees
        self._auth = auth
        self._outbox = outbox
        self._messages = messages
        self._photos = photo_storage
        self._default_leave_balance = int(default_leave_balance)

    # -------- lookups --------
    def get(self, employee_id: int) -> Employee:
        emp = self._employees.get_by_id(int(employee_id))
        if not emp:
            raise NotFoundError("Employee not found")
        return emp

    def can_view(self, principal: Principal, emp: Employee) -> bool:
        if principal.is_hr or principal.employee_id == emp.employee_id:
            return True
        if principal.is_manager:
            me = self._employees.get_by_id(principal.employee_id)
            return bool(me and me.department == emp.department)
        return False

    def get_profile(self, principal: Principal, employee_id: int) -> Employee:
        emp = self.get(employee_id)
        if not self.can_view(principal, emp):
            raise AuthorizationError("You cannot view this employee")
        return emp

    def list_employees(self, principal: Principal, *, search: Optional[str] = None) -> Sequence[Employee]:
        if principal.is_hr:
            return self._employees.list_employees(search=(search or "").strip() or None)
        if principal.is_manager:
            me = self.get(principal.employee_id)
            team = self._employees.list_by_department(me.department)
            if search:
                needle = search.strip().lower()
                team = [e for e in team if needle in e.full_name.lower() or needle in e.employee_code.lower()]
            return team
        raise AuthorizationError("Access denied")

    # -------- HR: create / edit --------
    def _validate(self, fields: EmployeeFields) -> EmployeeFields:
        code = require_non_empty(fields.employee_code, "Employee code")
        email = require_non_empty(fields.email, "Email").lower()
        if "@" not in email:
            raise ValidationError("Email is invalid")
        for value, name in (
            (fields.first_name, "First name"),
            (fields.last_name, "Last name"),
            (fields.phone_number, "Phone number"),
            (fields.department, "Department"),
            (fields.designation, "Designation"),
        ):
            require_non_empty(value, name)
        if fields.dob is None or fields.joining_date is None:
            raise ValidationError("Date of birth and joining date are required")
        pay = fields.pay
        if min(pay.salary, pay.hra, pay.travel_allowance, pay.other_allowances, pay.pf, pay.professional_tax, pay.income_tax) < 0:
            raise ValidationError("Salary components cannot be negative")
        return replace(
            fields,
            employee_code=code,
            email=email,
            first_name=fields.first_name.strip(),
            last_name=fields.last_name.strip(),
            department=fields.department.strip(),
            designation=fields.designation.strip(),
        )

    def create_employee(self, principal: Principal, fields: EmployeeFields, *, role: Role = Role.EMPLOYEE) -> int:
        """Create the employee record and its login account (username = employee code)."""
        if not principal.is_hr:
            raise AuthorizationError("Only HR can add employees")

        fields = self._validate(fields)
        if self._employees.get_by_code(fields.employee_code):
            raise ConflictError("Employee code already exists")
        if self._employees.get_by_email(fields.email):
            raise ConflictError("Email already exists")

        employee_id = self._employees.create(fields, leave_balance=self._default_leave_balance)
        self._auth.create_account(employee_id=employee_id, username=fields.employee_code, role=role, password=TEMP_PASSWORD)
        logger.info("Employee %s created by user %s", fields.employee_code, principal.user_id)

        emp = self._employees.get_by_id(employee_id)
        if emp:
            self._outbox.enqueue(
                self._messages.account_created(employee=emp, username=fields.employee_code, temp_password=TEMP_PASSWORD)
            )
        return employee_id

    def update_employee(self, principal: Principal, employee_id: int, fields: EmployeeFields) -> None:
        if not principal.is_hr:
            raise AuthorizationError("Only HR can edit employees")

        current = self.get(employee_id)
        fields = self._validate(fields)

        other = self._employees.get_by_code(fields.employee_code)
        if other and other.employee_id != current.employee_id:
            raise ConflictError("Employee code already exists")
        other = self._employees.get_by_email(fields.email)
        if other and other.employee_id != current.employee_id:
            raise ConflictError("Email already exists")

        self._employees.update(current.employee_id, fields)

    def set_status(self, principal: Principal, employee_id: int, status: EmployeeStatus) -> None:
        if not principal.is_hr:
            raise AuthorizationError("Only HR can change employee status")
        emp = self.get(employee_id)
        self._employees.set_status(emp.employee_id, status=status)
        self._auth.set_login_enabled(emp.employee_id, enabled=status == EmployeeStatus.ACTIVE)

    # -------- manager: WFH --------
    def allot_wfh(self, principal: Principal, employee_id: int, *, start: date, end: date, reason: str) -> None:
        emp = self.get(employee_id)
        if principal.is_manager:
            me = self.get(principal.employee_id)
            if me.department != emp.department:
                raise AuthorizationError("You can only allot WFH to your own department")
        elif not principal.is_hr:
            raise AuthorizationError("Only managers can allot WFH")

        if end < start:
            raise ValidationError("End date must be on or after start date")

        schedule = WfhSchedule(
            start=start,
            end=end,
            reason=(reason or "").strip() or None,
            allotted_by=principal.employee_id,
        )
        self._employees.set_wfh_schedule(emp.employee_id, schedule)
        logger.info("WFH %s..%s allotted to employee %s by %s", start, end, emp.employee_id, principal.employee_id)

    # -------- self-service --------
    def update_bank_details(self, principal: Principal, bank: BankDetails) -> None:
        account = require_non_empty(bank.account_number or "", "Account number")
        ifsc = require_non_empty(bank.ifsc or "", "IFSC").upper()
        self._employees.set_bank_details(principal.employee_id, replace(bank, account_number=account, ifsc=ifsc))

    def upload_profile_photo(self, principal: Principal, data: bytes, *, content_type: str, filename: str) -> None:
        stored = self._photos.save(data, content_type=content_type, filename=filename, policy=PHOTO_POLICY)
        self._employees.set_profile_photo(principal.employee_id, StoredPhoto(data=stored.data or data, content_type=stored.content_type))

    def get_profile_photo(self, employee_id: int) -> StoredPhoto:
        photo = self._employees.get_profile_photo(int(employee_id))
        if not photo:
            raise NotFoundError("No profile photo")
        return photo

    def update_location(
        self,
        principal: Principal,
        *,
        lat: Optional[float],
        lng: Optional[float],
        address: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> None:
        if lat is None or lng is None:
            raise ValidationError("Location data missing.")
        self._employees.set_last_location(principal.employee_id, lat=lat, lng=lng, address=address, at=now or datetime.now())

    def employees_on_map(self) -> Sequence[Employee]:
        return self._employees.list_with_location()

    # -------- resignation --------
    def submit_resignation(self, principal: Principal, *, reason: str, today: Optional[date] = None) -> None:
        reason = require_non_empty(reason, "Reason")
        emp = self.get(principal.employee_id)
        if emp.resignation.status in (ResignationStatus.PENDING, ResignationStatus.APPROVED):
            raise ConflictError(f"Resignation already {emp.resignation.status.value.lower()}")

        self._employees.set_resignation(
            emp.employee_id,
            status=ResignationStatus.PENDING,
            resignation_date=today or date.today(),
            reason=reason,
        )
        manager = self._employees.find_department_manager(emp.department, exclude_employee_id=emp.employee_id)
        if manager:
            updated = self.get(emp.employee_id)
            self._outbox.enqueue(self._messages.resignation_submitted(manager=manager, employee=updated))
        else:
            logger.warning("No manager found for department %s; resignation not notified", emp.department)

    def revoke_resignation(self, principal: Principal) -> None:
        ok = self._employees.set_resignation(
            principal.employee_id,
            status=ResignationStatus.REVOKED,
            expected_status=ResignationStatus.PENDING,
        )
        if not ok:
            raise ConflictError("No pending resignation to revoke")

    def decide_resignation(self, principal: Principal, employee_id: int, *, approve: bool) -> None:
        emp = self.get(employee_id)
        if principal.is_manager:
            me = self.get(principal.employee_id)
            if me.department != emp.department:
                raise AuthorizationError("You can only process resignations of your department")
        elif not principal.is_hr:
            raise AuthorizationError("Access denied")

        target = ResignationStatus.APPROVED if approve else ResignationStatus.REJECTED
        ok = self._employees.set_resignation(emp.employee_id, status=target, expected_status=ResignationStatus.PENDING)
        if not ok:
            raise ConflictError("Resignation is not pending")

        if approve:
            self._employees.set_status(emp.employee_id, status=EmployeeStatus.RESIGNED)
            self._auth.set_login_enabled(emp.employee_id, enabled=False)
        self._outbox.enqueue(self._messages.resignation_decided(employee=emp, approved=approve))
