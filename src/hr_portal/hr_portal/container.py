from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional

from .attendance.factory import PunchInStrategyFactory
from .attendance.mysql_attendance_repository import MySQLAttendanceRepository
from .attendance.service import AttendanceService
from .common.geo import Geofence, GeoPoint
from .core.constants import GEOFENCE_RADIUS_METERS, OFFICE_LATITUDE, OFFICE_LONGITUDE
from .database.connection import DBConfig, DatabaseConnection
from .documents.mysql_document_repository import MySQLDocumentRepository, MySQLSettingsRepository
from .documents.service import DocumentService
from .employees.mysql_employee_repository import MySQLEmployeeRepository
from .employees.service import EmployeeService
from .expenses.mysql_expense_repository import MySQLExpenseRepository
from .expenses.service import ExpenseService
from .leaves.mysql_leave_repository import MySQLLeaveRepository
from .leaves.service import LeaveService
from .notifications.dispatcher import NotificationDispatcher
from .notifications.mailer import SmtpMailer
from .notifications.messages import MessageBuilder
from .notifications.outbox import QueueOutbox
from .payroll.calculator.standard_calculator import StandardPayrollCalculator
from .payroll.lop_ledger import LossOfPayLedger
from .payroll.mysql_payslip_repository import MySQLPayslipRepository
from .payroll.service import PayrollService
from .regularizations.mysql_regularization_repository import MySQLRegularizationRepository
from .regularizations.service import RegularizationService
from .storage.file_storage import InlineFileStorage, LocalFileStorage
from .trips.mysql_trip_repository import MySQLTripRepository
from .trips.service import TripService
from .users.mysql_user_repository import MySQLUserRepository
from .users.service import AuthService


@dataclass(frozen=True)
class Container:
    auth_service: AuthService
    employee_service: EmployeeService
    attendance_service: AttendanceService
    leave_service: LeaveService
    regularization_service: RegularizationService
    payroll_service: PayrollService
    expense_service: ExpenseService
    trip_service: TripService
    document_service: DocumentService
    dispatcher: Optional[NotificationDispatcher] = None
    conn: Optional[DatabaseConnection] = None


def _geofence(settings: Any) -> Geofence:
    office = getattr(settings, "OFFICE_LOCATION", None) or {}
    return Geofence(
        center=GeoPoint(float(office.get("lat", OFFICE_LATITUDE)), float(office.get("lng", OFFICE_LONGITUDE))),
        radius_meters=float(getattr(settings, "GEOFENCE_RADIUS_METERS", GEOFENCE_RADIUS_METERS)),
    )


def build_container(*, db_config: dict, settings: Any = None) -> Container:
    conn = DatabaseConnection.get_instance(DBConfig.from_mapping(db_config))

    users_repo = MySQLUserRepository(conn)
    employees_repo = MySQLEmployeeRepository(conn)
    attendance_repo = MySQLAttendanceRepository(conn)
    leaves_repo = MySQLLeaveRepository(conn)
    regularizations_repo = MySQLRegularizationRepository(conn)
    payslips_repo = MySQLPayslipRepository(conn)
    expenses_repo = MySQLExpenseRepository(conn)
    trips_repo = MySQLTripRepository(conn)
    documents_repo = MySQLDocumentRepository(conn)
    settings_repo = MySQLSettingsRepository(conn)

    outbox = QueueOutbox(enabled=bool(getattr(settings, "NOTIFICATIONS_ENABLED", False)))
    messages = MessageBuilder(portal_name=str(getattr(settings, "MAIL_FROM_NAME", "HR Portal")))
    mailer = SmtpMailer(
        smtp_host=str(getattr(settings, "SMTP_HOST", "smtp.gmail.com")),
        smtp_port=int(getattr(settings, "SMTP_PORT", 587)),
        smtp_user=str(getattr(settings, "SMTP_EMAIL", "")),
        smtp_password=str(getattr(settings, "SMTP_PASSWORD", "")),
        from_name=str(getattr(settings, "MAIL_FROM_NAME", "HR Portal")),
    )
    dispatcher = NotificationDispatcher(outbox, mailer)

    upload_storage = LocalFileStorage(str(getattr(settings, "UPLOAD_DIR", "uploads")))
    inline_storage = InlineFileStorage()

    calculator = StandardPayrollCalculator()
    ledger = LossOfPayLedger(employees_repo, payslips_repo, calculator)

    auth_service = AuthService(users_repo)
    employee_service = EmployeeService(employees_repo, auth_service, outbox, messages, inline_storage)
    attendance_service = AttendanceService(
        attendance_repo,
        employees_repo,
        strategy_factory=PunchInStrategyFactory(geofence=_geofence(settings)),
    )
    leave_service = LeaveService(leaves_repo, employees_repo, ledger, outbox, messages)
    regularization_service = RegularizationService(regularizations_repo, attendance_repo, ledger)
    payroll_service = PayrollService(
        payslips_repo,
        payslips_repo,
        employees_repo,
        leaves_repo,
        expenses_repo,
        calculator=calculator,
    )
    expense_service = ExpenseService(expenses_repo, employees_repo, upload_storage)
    trip_service = TripService(trips_repo, employees_repo)
    document_service = DocumentService(documents_repo, settings_repo, inline_storage)

    return Container(
        auth_service=auth_service,
        employee_service=employee_service,
        attendance_service=attendance_service,
        leave_service=leave_service,
        regularization_service=regularization_service,
        payroll_service=payroll_service,
        expense_service=expense_service,
        trip_service=trip_service,
        document_service=document_service,
        dispatcher=dispatcher,
        conn=conn,
    )
