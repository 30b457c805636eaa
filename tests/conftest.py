from __future__ import annotations

from dataclasses import replace
from datetime import date, datetime

import pytest

from src.hr_portal.hr_portal.attendance.model import AttendanceRecord, AttendanceReportRow
from src.hr_portal.hr_portal.core.enums import (
    DailyLogStatus,
    DocumentStatus,
    ExpenseStatus,
    LeaveStatus,
    RegularizationStatus,
    Role,
    SubmissionStatus,
    TripStatus,
)
from src.hr_portal.hr_portal.core.exceptions import ConflictError
from src.hr_portal.hr_portal.documents.model import Document, DocumentFile
from src.hr_portal.hr_portal.employees.model import (
    Employee,
    KnownLocation,
    Resignation,
    SalaryComponents,
)
from src.hr_portal.hr_portal.expenses.model import Expense
from src.hr_portal.hr_portal.leaves.model import Leave
from src.hr_portal.hr_portal.notifications.outbox import QueueOutbox
from src.hr_portal.hr_portal.payroll.calculator.standard_calculator import StandardPayrollCalculator
from src.hr_portal.hr_portal.payroll.lop_ledger import LossOfPayLedger
from src.hr_portal.hr_portal.payroll.model import Payslip
from src.hr_portal.hr_portal.regularizations.model import Regularization
from src.hr_portal.hr_portal.trips.model import DailyLog, Trip
from src.hr_portal.hr_portal.users.model import User
from src.hr_portal.hr_portal.users.principal import Principal


def make_employee(employee_id: int, **overrides) -> Employee:
    values = dict(
        employee_id=employee_id,
        employee_code=f"EMP{employee_id:03d}",
        first_name="Emp",
        last_name=str(employee_id),
        dob=date(1990, 1, 1),
        email=f"emp{employee_id}@example.com",
        phone_number="9999999999",
        department="Engineering",
        designation="Engineer",
        joining_date=date(2020, 1, 1),
    )
    values.update(overrides)
    return Employee(**values)


class InMemoryEmployees:
    def __init__(self, *employees: Employee):
        self.rows: dict[int, Employee] = {e.employee_id: e for e in employees}
        self.photos: dict = {}

    def add(self, emp: Employee) -> Employee:
        self.rows[emp.employee_id] = emp
        return emp

    def _patch(self, employee_id: int, **changes) -> bool:
        emp = self.rows.get(int(employee_id))
        if not emp:
            return False
        self.rows[emp.employee_id] = replace(emp, **changes)
        return True

    def get_by_id(self, employee_id):
        return self.rows.get(int(employee_id))

    def get_by_code(self, employee_code):
        return next((e for e in self.rows.values() if e.employee_code == employee_code), None)

    def get_by_email(self, email):
        return next((e for e in self.rows.values() if e.email == email), None)

    def list_employees(self, *, search=None, status=None):
        items = list(self.rows.values())
        if status is not None:
            items = [e for e in items if e.status == status]
        if search:
            items = [e for e in items if search.lower() in e.full_name.lower() or search.lower() in e.employee_code.lower()]
        return items

    def list_by_department(self, department):
        return [e for e in self.rows.values() if e.department == department]

    def find_department_manager(self, department, *, exclude_employee_id=None):
        for e in self.rows.values():
            if e.department == department and "MANAGER" in e.designation.upper() and e.employee_id != exclude_employee_id:
                return e
        return None

    def create(self, fields, *, leave_balance):
        employee_id = max(self.rows, default=0) + 1
        self.rows[employee_id] = Employee(
            employee_id=employee_id,
            employee_code=fields.employee_code,
            first_name=fields.first_name,
            last_name=fields.last_name,
            dob=fields.dob,
            email=fields.email,
            phone_number=fields.phone_number,
            department=fields.department,
            designation=fields.designation,
            joining_date=fields.joining_date,
            address=fields.address,
            employment_type=fields.employment_type,
            work_location=fields.work_location,
            pay=fields.pay,
            leave_balance=leave_balance,
        )
        return employee_id

    def update(self, employee_id, fields):
        return self._patch(
            employee_id,
            employee_code=fields.employee_code,
            first_name=fields.first_name,
            last_name=fields.last_name,
            email=fields.email,
            department=fields.department,
            designation=fields.designation,
            pay=fields.pay,
        )

    def set_status(self, employee_id, *, status):
        return self._patch(employee_id, status=status)

    def try_deduct_leave_balance(self, employee_id, *, days):
        emp = self.rows.get(int(employee_id))
        if not emp or emp.leave_balance < days:
            return False
        return self._patch(employee_id, leave_balance=emp.leave_balance - days)

    def refund_leave_balance(self, employee_id, *, days):
        emp = self.rows[int(employee_id)]
        return self._patch(employee_id, leave_balance=emp.leave_balance + days)

    def add_lop_days(self, employee_id, *, days):
        emp = self.rows[int(employee_id)]
        return self._patch(
            employee_id, lop_count=emp.lop_count + days, lop_days_this_month=emp.lop_days_this_month + days
        )

    def reset_lop_days_this_month(self, employee_id):
        return self._patch(employee_id, lop_days_this_month=0)

    def reset_all_lop_days_this_month(self):
        ids = [e.employee_id for e in self.rows.values() if e.lop_days_this_month]
        for employee_id in ids:
            self._patch(employee_id, lop_days_this_month=0)
        return len(ids)

    def set_wfh_schedule(self, employee_id, schedule):
        return self._patch(employee_id, wfh=schedule)

    def set_bank_details(self, employee_id, bank):
        return self._patch(employee_id, bank=bank)

    def set_last_location(self, employee_id, *, lat, lng, address, at):
        return self._patch(employee_id, last_location=KnownLocation(lat=lat, lng=lng, address=address, recorded_at=at))

    def list_with_location(self):
        return [e for e in self.rows.values() if e.last_location]

    def set_profile_photo(self, employee_id, photo):
        self.photos[int(employee_id)] = photo
        return self._patch(employee_id, has_photo=True)

    def get_profile_photo(self, employee_id):
        return self.photos.get(int(employee_id))

    def set_resignation(self, employee_id, *, status, resignation_date=None, reason=None, expected_status=None):
        emp = self.rows.get(int(employee_id))
        if not emp or (expected_status is not None and emp.resignation.status != expected_status):
            return False
        current = emp.resignation
        return self._patch(
            employee_id,
            resignation=Resignation(
                status=status,
                date=resignation_date or current.date,
                reason=reason or current.reason,
            ),
        )


class InMemoryUsers:
    def __init__(self):
        self.rows: dict[int, User] = {}

    def add(self, user: User) -> User:
        self.rows[user.user_id] = user
        return user

    def get_by_id(self, user_id):
        return self.rows.get(int(user_id))

    def get_by_username(self, username):
        return next((u for u in self.rows.values() if u.username == username), None)

    def get_by_employee_id(self, employee_id):
        return next((u for u in self.rows.values() if u.employee_id == employee_id), None)

    def create_user(self, *, username, password_hash, role, employee_id):
        user_id = max(self.rows, default=0) + 1
        self.rows[user_id] = User(
            user_id=user_id, username=username, password_hash=password_hash, role=role, employee_id=employee_id
        )
        return user_id

    def update_password(self, user_id, *, password_hash):
        self.rows[int(user_id)] = replace(self.rows[int(user_id)], password_hash=password_hash)
        return True

    def set_active(self, employee_id, *, is_active):
        for user_id, user in list(self.rows.items()):
            if user.employee_id == employee_id:
                self.rows[user_id] = replace(user, is_active=is_active)
                return True
        return False


class InMemoryAttendance:
    def __init__(self):
        self.rows: dict[tuple, AttendanceRecord] = {}

    def get_for_employee_and_date(self, employee_id, work_date):
        return self.rows.get((int(employee_id), work_date))

    def get_recent_for_employee(self, employee_id, limit):
        items = sorted((r for r in self.rows.values() if r.employee_id == employee_id), key=lambda r: r.punch_in, reverse=True)
        return items[:limit]

    def create_punch_in(self, *, employee_id, work_date, punch_in, lat, lng, work_from_home=False, wfh_reason=None):
        if (employee_id, work_date) in self.rows:
            raise ConflictError("Already marked attendance for today")
        attendance_id = len(self.rows) + 1
        self.rows[(employee_id, work_date)] = AttendanceRecord(
            attendance_id=attendance_id,
            employee_id=employee_id,
            work_date=work_date,
            punch_in=punch_in,
            punch_in_lat=lat,
            punch_in_lng=lng,
            work_from_home=work_from_home,
            wfh_reason=wfh_reason,
        )
        return attendance_id

    def update_punch_out(self, *, attendance_id, punch_out, lat, lng, worked):
        for key, rec in self.rows.items():
            if rec.attendance_id == attendance_id and rec.punch_out is None:
                self.rows[key] = replace(
                    rec,
                    punch_out=punch_out,
                    punch_out_lat=lat,
                    punch_out_lng=lng,
                    total_hours=worked.total_hours,
                    total_minutes=worked.total_minutes,
                    work_duration=worked.work_duration,
                )
                return True
        return False

    def get_report_rows(self, *, start_date, end_date, employee_id=None):
        return [
            AttendanceReportRow(
                employee_id=r.employee_id,
                employee_code="",
                full_name="",
                department="",
                work_date=r.work_date,
                punch_in=r.punch_in,
                punch_out=r.punch_out,
                work_duration=r.work_duration,
                work_from_home=r.work_from_home,
            )
            for r in self.rows.values()
            if start_date <= r.work_date <= end_date and (employee_id is None or r.employee_id == employee_id)
        ]


class InMemoryLeaves:
    def __init__(self):
        self.rows: dict[int, Leave] = {}

    def create(self, leave):
        leave_id = len(self.rows) + 1
        self.rows[leave_id] = Leave(
            leave_id=leave_id,
            employee_id=leave.employee_id,
            department=leave.department,
            leave_type=leave.leave_type,
            from_date=leave.from_date,
            to_date=leave.to_date,
            total_days=leave.total_days,
            reason=leave.reason,
            status=LeaveStatus.PENDING,
        )
        return leave_id

    def get(self, leave_id):
        return self.rows.get(int(leave_id))

    def list_for_employee(self, employee_id):
        return [x for x in self.rows.values() if x.employee_id == employee_id]

    def list_by_status(self, status, *, department=None):
        return [x for x in self.rows.values() if x.status == status and (department is None or x.department == department)]

    def transition(self, leave_id, *, expected, target, action_by, action_at, rejection_reason=None, leave_type=None):
        leave = self.rows.get(int(leave_id))
        if not leave or leave.status != expected:
            return False
        self.rows[leave.leave_id] = replace(
            leave,
            status=target,
            action_by=action_by,
            action_at=action_at,
            rejection_reason=rejection_reason,
            leave_type=leave_type or leave.leave_type,
        )
        return True

    def sum_approved_lop_days(self, employee_id, *, start, end):
        return sum(
            x.total_days
            for x in self.rows.values()
            if x.employee_id == employee_id
            and x.status == LeaveStatus.APPROVED
            and not x.is_paid
            and start <= x.from_date <= end
        )


class InMemoryPayslips:
    def __init__(self, config=None):
        self.rows: dict[int, Payslip] = {}
        self.config = config

    def get(self, payslip_id):
        return self.rows.get(int(payslip_id))

    def get_for_period(self, *, employee_id, month, year):
        return next(
            (p for p in self.rows.values() if (p.employee_id, p.month, p.year) == (employee_id, month, year)), None
        )

    def list_for_employee(self, employee_id):
        return [p for p in self.rows.values() if p.employee_id == employee_id]

    def list_for_period(self, *, month, year):
        return [p for p in self.rows.values() if (p.month, p.year) == (month, year)]

    def upsert(self, draft):
        existing = self.get_for_period(employee_id=draft.employee_id, month=draft.month, year=draft.year)
        payslip_id = existing.payslip_id if existing else len(self.rows) + 1
        self.rows[payslip_id] = Payslip(
            payslip_id=payslip_id,
            employee_id=draft.employee_id,
            month=draft.month,
            year=draft.year,
            basic_salary=draft.basic_salary,
            hra=draft.hra,
            travel_allowance=draft.travel_allowance,
            other_allowances=draft.other_allowances,
            bonuses=draft.bonuses,
            reimbursements=draft.reimbursements,
            pf=draft.pf,
            professional_tax=draft.professional_tax,
            taxes=draft.taxes,
            lop_days=draft.lop_days,
            deductions=draft.deductions,
            net_pay=draft.net_pay,
            lines=tuple(draft.lines),
        )
        return payslip_id

    def append_deduction(self, payslip_id, line, *, lop_days=0):
        p = self.rows.get(int(payslip_id))
        if not p:
            return False
        self.rows[p.payslip_id] = replace(
            p,
            deductions=round(p.deductions + line.amount, 2),
            net_pay=round(p.net_pay - line.amount, 2),
            lop_days=p.lop_days + lop_days,
            lines=tuple(p.lines) + (line,),
        )
        return True

    def get_config(self):
        return self.config


class InMemoryExpenses:
    def __init__(self):
        self.rows: dict[int, Expense] = {}

    def create(self, expense):
        expense_id = len(self.rows) + 1
        self.rows[expense_id] = Expense(
            expense_id=expense_id,
            employee_id=expense.employee_id,
            expense_type=expense.expense_type,
            amount=expense.amount,
            expense_date=expense.expense_date,
            description=expense.description,
            status=ExpenseStatus.PENDING,
            receipt_path=expense.receipt_path,
            lat=expense.lat,
            lng=expense.lng,
            address=expense.address,
        )
        return expense_id

    def get(self, expense_id):
        return self.rows.get(int(expense_id))

    def list_for_employee(self, employee_id):
        return [x for x in self.rows.values() if x.employee_id == employee_id]

    def list_by_status(self, status):
        return [x for x in self.rows.values() if x.status == status]

    def transition(self, expense_id, *, expected, target, hr_action_by, rejection_reason=None):
        x = self.rows.get(int(expense_id))
        if not x or x.status != expected:
            return False
        self.rows[x.expense_id] = replace(x, status=target, hr_action_by=hr_action_by, rejection_reason=rejection_reason)
        return True

    def sum_approved(self, employee_id, *, start, end):
        return sum(
            x.amount
            for x in self.rows.values()
            if x.employee_id == employee_id and x.status == ExpenseStatus.APPROVED and start <= x.expense_date <= end
        )


class InMemoryRegularizations:
    def __init__(self):
        self.rows: dict[int, Regularization] = {}

    def create(self, *, employee_id, request_date, reason):
        if self.get_for_date(employee_id, request_date):
            raise ConflictError("Request already exists for this date.")
        regularization_id = len(self.rows) + 1
        self.rows[regularization_id] = Regularization(
            regularization_id=regularization_id,
            employee_id=employee_id,
            request_date=request_date,
            reason=reason,
            status=RegularizationStatus.PENDING,
        )
        return regularization_id

    def get(self, regularization_id):
        return self.rows.get(int(regularization_id))

    def get_for_date(self, employee_id, request_date):
        return next(
            (r for r in self.rows.values() if r.employee_id == employee_id and r.request_date == request_date), None
        )

    def count_for_employee(self, employee_id):
        return len(self.list_for_employee(employee_id))

    def list_for_employee(self, employee_id):
        return [r for r in self.rows.values() if r.employee_id == employee_id]

    def list_all(self, *, status=None):
        return [r for r in self.rows.values() if status is None or r.status == status]

    def transition(self, regularization_id, *, expected, target, reviewed_by, reviewed_at):
        r = self.rows.get(int(regularization_id))
        if not r or r.status != expected:
            return False
        self.rows[r.regularization_id] = replace(r, status=target, reviewed_by=reviewed_by, reviewed_at=reviewed_at)
        return True


class InMemoryTrips:
    def __init__(self):
        self.rows: dict[int, Trip] = {}
        self.pings: list = []
        self.logs: dict[int, DailyLog] = {}

    def create(self, trip):
        trip_id = len(self.rows) + 1
        self.rows[trip_id] = Trip(
            trip_id=trip_id,
            employee_id=trip.employee_id,
            source=trip.source,
            destination=trip.destination,
            purpose=trip.purpose,
            start_date=trip.start_date,
            end_date=trip.end_date,
            status=TripStatus.PENDING,
            estimated_cost=trip.estimated_cost,
            dest_lat=trip.dest_lat,
            dest_lng=trip.dest_lng,
            department="Engineering",
        )
        return trip_id

    def get(self, trip_id):
        return self.rows.get(int(trip_id))

    def list_for_employee(self, employee_id):
        return [t for t in self.rows.values() if t.employee_id == employee_id]

    def list_by_status(self, status, *, limit=None):
        items = [t for t in self.rows.values() if t.status == status]
        return items[:limit] if limit else items

    def list_active_on(self, day):
        return [t for t in self.rows.values() if t.status == TripStatus.APPROVED and t.is_active_on(day)]

    def transition(self, trip_id, *, expected, target, hr_action_by=None, rejection_reason=None):
        t = self.rows.get(int(trip_id))
        if not t or t.status != expected:
            return False
        self.rows[t.trip_id] = replace(
            t,
            status=target,
            hr_action_by=hr_action_by if hr_action_by is not None else t.hr_action_by,
            rejection_reason=rejection_reason if rejection_reason is not None else t.rejection_reason,
        )
        return True

    def add_location(self, ping):
        self.pings.append(replace(ping, location_id=len(self.pings) + 1))
        return len(self.pings)

    def list_locations(self, trip_id):
        return [p for p in self.pings if p.trip_id == trip_id]

    def get_log_for_date(self, trip_id, log_date):
        return next((x for x in self.logs.values() if x.trip_id == trip_id and x.log_date == log_date), None)

    def get_log(self, trip_id, log_id):
        x = self.logs.get(int(log_id))
        return x if x and x.trip_id == trip_id else None

    def get_open_log(self, trip_id):
        return next((x for x in self.logs.values() if x.trip_id == trip_id and x.status == DailyLogStatus.STARTED), None)

    def list_logs(self, trip_id):
        return [x for x in self.logs.values() if x.trip_id == trip_id]

    def start_log(self, trip_id, *, log_date, start_time, lat, lng):
        existing = self.get_log_for_date(trip_id, log_date)
        if existing and existing.status != DailyLogStatus.PENDING:
            return False
        log_id = existing.log_id if existing else len(self.logs) + 1
        self.logs[log_id] = DailyLog(
            log_id=log_id,
            trip_id=trip_id,
            log_date=log_date,
            status=DailyLogStatus.STARTED,
            start_time=start_time,
            start_lat=lat,
            start_lng=lng,
        )
        return True

    def end_log(self, log_id, *, end_time, lat, lng, tasks_done, keep_existing_tasks=False):
        x = self.logs.get(int(log_id))
        if not x or x.status != DailyLogStatus.STARTED:
            return False
        if keep_existing_tasks and x.tasks_done:
            tasks_done = x.tasks_done
        self.logs[x.log_id] = replace(
            x, status=DailyLogStatus.COMPLETED, end_time=end_time, end_lat=lat, end_lng=lng, tasks_done=tasks_done
        )
        return True

    def update_log_tasks(self, log_id, tasks_done):
        self.logs[int(log_id)] = replace(self.logs[int(log_id)], tasks_done=tasks_done)
        return True


class InMemoryDocuments:
    def __init__(self):
        self.rows: dict[int, Document] = {}
        self.files: dict[int, bytes] = {}

    def create(self, *, employee_id, name, file_type, data):
        document_id = len(self.rows) + 1
        self.rows[document_id] = Document(
            document_id=document_id, employee_id=employee_id, name=name, file_type=file_type, status=DocumentStatus.PENDING
        )
        self.files[document_id] = data
        return document_id

    def get(self, document_id):
        return self.rows.get(int(document_id))

    def get_file(self, document_id):
        doc = self.rows.get(int(document_id))
        if not doc:
            return None
        return DocumentFile(
            document_id=doc.document_id,
            employee_id=doc.employee_id,
            name=doc.name,
            file_type=doc.file_type,
            data=self.files[doc.document_id],
        )

    def list_for_employee(self, employee_id):
        return [d for d in self.rows.values() if d.employee_id == employee_id]

    def list_by_status(self, status):
        return [d for d in self.rows.values() if d.status == status]

    def transition(self, document_id, *, expected, target, reviewed_by, reviewed_at):
        d = self.rows.get(int(document_id))
        if not d or d.status != expected:
            return False
        self.rows[d.document_id] = replace(d, status=target, reviewed_by=reviewed_by, reviewed_at=reviewed_at)
        return True


class InMemorySettings:
    def __init__(self, status: SubmissionStatus = SubmissionStatus.OPEN):
        self.status = status

    def get_submission_status(self):
        return self.status

    def set_submission_status(self, status):
        self.status = status


class RecordingOutbox(QueueOutbox):
    """Queue outbox that also keeps everything it accepted."""

    def __init__(self):
        super().__init__()
        self.sent: list = []

    def enqueue(self, notification):
        self.sent.append(notification)
        super().enqueue(notification)


@pytest.fixture
def fixed_now() -> datetime:
    return datetime(2025, 3, 14, 10, 30)


@pytest.fixture
def hr() -> Principal:
    return Principal(user_id=1, employee_id=1, role=Role.HR, name="Hannah HR")


@pytest.fixture
def manager() -> Principal:
    return Principal(user_id=2, employee_id=2, role=Role.MANAGER, name="Mona Manager")


@pytest.fixture
def employee() -> Principal:
    return Principal(user_id=3, employee_id=3, role=Role.EMPLOYEE, name="Eli Employee")


@pytest.fixture
def employees_repo() -> InMemoryEmployees:
    return InMemoryEmployees(
        make_employee(1, first_name="Hannah", last_name="HR", department="HR", designation="HR Executive"),
        make_employee(2, first_name="Mona", last_name="Manager", designation="Engineering Manager"),
        make_employee(
            3,
            first_name="Eli",
            last_name="Employee",
            leave_balance=5,
            pay=SalaryComponents(salary=30000, hra=6000, travel_allowance=2000, other_allowances=1000, pf=1800, professional_tax=200),
        ),
    )


@pytest.fixture
def users_repo() -> InMemoryUsers:
    return InMemoryUsers()


@pytest.fixture
def attendance_repo() -> InMemoryAttendance:
    return InMemoryAttendance()


@pytest.fixture
def leaves_repo() -> InMemoryLeaves:
    return InMemoryLeaves()


@pytest.fixture
def payslips_repo() -> InMemoryPayslips:
    return InMemoryPayslips()


@pytest.fixture
def expenses_repo() -> InMemoryExpenses:
    return InMemoryExpenses()


@pytest.fixture
def regularizations_repo() -> InMemoryRegularizations:
    return InMemoryRegularizations()


@pytest.fixture
def trips_repo() -> InMemoryTrips:
    return InMemoryTrips()


@pytest.fixture
def documents_repo() -> InMemoryDocuments:
    return InMemoryDocuments()


@pytest.fixture
def settings_repo() -> InMemorySettings:
    return InMemorySettings()


@pytest.fixture
def outbox() -> RecordingOutbox:
    return RecordingOutbox()


@pytest.fixture
def calculator() -> StandardPayrollCalculator:
    return StandardPayrollCalculator()


@pytest.fixture
def ledger(employees_repo, payslips_repo, calculator) -> LossOfPayLedger:
    return LossOfPayLedger(employees_repo, payslips_repo, calculator)


@pytest.fixture
def make_emp():
    return make_employee


@pytest.fixture
def set_status():
    """Force an entity into a status without going through a service."""

    def _set(repo, entity_id: int, status):
        repo.rows[entity_id] = replace(repo.rows[entity_id], status=status)

    return _set
