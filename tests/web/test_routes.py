import pytest
from werkzeug.security import generate_password_hash

from src.hr_portal.hr_portal.attendance.service import AttendanceService
from src.hr_portal.hr_portal.container import Container
from src.hr_portal.hr_portal.core.enums import Role, SubmissionStatus
from src.hr_portal.hr_portal.documents.service import DocumentService
from src.hr_portal.hr_portal.employees.service import EmployeeService
from src.hr_portal.hr_portal.expenses.service import ExpenseService
from src.hr_portal.hr_portal.leaves.service import LeaveService
from src.hr_portal.hr_portal.main import create_app
from src.hr_portal.hr_portal.notifications.messages import MessageBuilder
from src.hr_portal.hr_portal.payroll.service import PayrollService
from src.hr_portal.hr_portal.regularizations.service import RegularizationService
from src.hr_portal.hr_portal.storage.file_storage import InlineFileStorage, LocalFileStorage
from src.hr_portal.hr_portal.trips.service import TripService
from src.hr_portal.hr_portal.users.model import User
from src.hr_portal.hr_portal.users.service import AuthService


@pytest.fixture
def app(
    monkeypatch,
    tmp_path,
    users_repo,
    employees_repo,
    attendance_repo,
    leaves_repo,
    regularizations_repo,
    payslips_repo,
    expenses_repo,
    trips_repo,
    documents_repo,
    settings_repo,
    outbox,
    ledger,
    calculator,
):
    monkeypatch.setenv("APP_ENV", "testing")
    users_repo.add(
        User(
            user_id=3,
            username="EMP003",
            password_hash=generate_password_hash("employee123"),
            role=Role.EMPLOYEE,
            employee_id=3,
            full_name="Eli Employee",
        )
    )
    auth = AuthService(users_repo)
    container = Container(
        auth_service=auth,
        employee_service=EmployeeService(employees_repo, auth, outbox, MessageBuilder(), InlineFileStorage()),
        attendance_service=AttendanceService(attendance_repo, employees_repo),
        leave_service=LeaveService(leaves_repo, employees_repo, ledger, outbox, MessageBuilder()),
        regularization_service=RegularizationService(regularizations_repo, attendance_repo, ledger),
        payroll_service=PayrollService(
            payslips_repo, payslips_repo, employees_repo, leaves_repo, expenses_repo, calculator=calculator
        ),
        expense_service=ExpenseService(expenses_repo, employees_repo, LocalFileStorage(tmp_path)),
        trip_service=TripService(trips_repo, employees_repo),
        document_service=DocumentService(documents_repo, settings_repo, InlineFileStorage()),
    )
    return create_app(container=container)


@pytest.fixture
def client(app):
    return app.test_client()


def _login_as(client, *, user_id, employee_id, role, name="User"):
    with client.session_transaction() as sess:
        sess["user_id"] = user_id
        sess["employee_id"] = employee_id
        sess["role"] = role.value
        sess["name"] = name


def test_pages_require_login(client):
    resp = client.get("/dashboard")
    assert resp.status_code == 302
    assert resp.headers["Location"].endswith("/")

    api = client.post("/api/attendance/punch-in", json={"lat": 19.0, "lng": 73.0})
    assert api.status_code == 401
    assert api.get_json() == {"success": False, "message": "Unauthorized"}


def test_login_sets_session_and_disables_cache(client):
    resp = client.post("/", data={"username": "EMP003", "password": "employee123"})
    assert resp.status_code == 302
    assert resp.headers["Location"].endswith("/dashboard")
    assert "no-store" in resp.headers["Cache-Control"]

    with client.session_transaction() as sess:
        assert sess["employee_id"] == 3 and sess["role"] == "EMPLOYEE"

    page = client.get("/dashboard")
    assert page.status_code == 200
    assert b"Eli" in page.data


def test_wrong_password_stays_on_login(client):
    resp = client.post("/", data={"username": "EMP003", "password": "nope"})
    assert resp.status_code == 200
    assert b"Invalid username or password" in resp.data


def test_punch_in_far_from_office_is_rejected_as_json(client, attendance_repo):
    _login_as(client, user_id=3, employee_id=3, role=Role.EMPLOYEE)
    resp = client.post("/api/attendance/punch-in", json={"lat": 0.0, "lng": 0.0})

    assert resp.status_code == 400
    body = resp.get_json()
    assert body["success"] is False
    assert "away from office" in body["message"]
    assert attendance_repo.rows == {}


def test_punch_in_at_office_then_out(client):
    _login_as(client, user_id=3, employee_id=3, role=Role.EMPLOYEE)
    office = {"lat": 19.05973973209058, "lng": 73.11899471349244}

    first = client.post("/api/attendance/punch-in", json=office)
    assert first.status_code == 200 and first.get_json()["success"] is True

    again = client.post("/api/attendance/punch-in", json=office)
    assert again.status_code == 409

    out = client.post("/api/attendance/punch-out", json=office)
    assert out.get_json()["work_duration"] == "0h 0m"


def test_employee_cannot_open_hr_pages(client):
    _login_as(client, user_id=3, employee_id=3, role=Role.EMPLOYEE)
    assert client.get("/hr/payroll").status_code == 403
    api = client.get("/api/hr/lop-stats")
    assert api.status_code == 403


def test_leave_application_form_flow(client, leaves_repo):
    _login_as(client, user_id=3, employee_id=3, role=Role.EMPLOYEE)
    resp = client.post(
        "/leaves/apply",
        data={"leave_type": "Casual", "from_date": "2025-03-03", "to_date": "2025-03-04", "reason": "Trip home"},
    )
    assert resp.status_code == 302
    [leave] = leaves_repo.rows.values()
    assert leave.total_days == 2


def test_closed_document_window_is_forbidden(client, settings_repo):
    settings_repo.status = SubmissionStatus.CLOSED
    _login_as(client, user_id=3, employee_id=3, role=Role.EMPLOYEE)
    resp = client.post("/documents/upload", data={"name": "PAN"})
    assert resp.status_code == 403


def test_unknown_page_renders_404(client):
    assert client.get("/no-such-page").status_code == 404
