from datetime import date, datetime, timedelta

import pytest

from src.hr_portal.hr_portal.attendance.factory import PunchInStrategyFactory
from src.hr_portal.hr_portal.attendance.service import AttendanceService, worked_time
from src.hr_portal.hr_portal.common.geo import Geofence, GeoPoint
from src.hr_portal.hr_portal.core.exceptions import AuthorizationError, ConflictError, NotFoundError, ValidationError
from src.hr_portal.hr_portal.employees.model import WfhSchedule

OFFICE = GeoPoint(19.0, 73.0)


@pytest.fixture
def service(attendance_repo, employees_repo):
    factory = PunchInStrategyFactory(geofence=Geofence(center=OFFICE, radius_meters=200))
    return AttendanceService(attendance_repo, employees_repo, strategy_factory=factory)


def test_worked_time_floors_minutes():
    start = datetime(2025, 3, 14, 9, 0)
    worked = worked_time(start, start + timedelta(hours=8, minutes=30, seconds=59))
    assert worked.total_minutes == 510
    assert worked.total_hours == 8.52
    assert worked.work_duration == "8h 30m"


def test_punch_in_then_out(service, employee, attendance_repo, fixed_now):
    record = service.punch_in(employee, lat=OFFICE.lat, lng=OFFICE.lng, now=fixed_now)
    assert record.work_date == fixed_now.date()
    assert not record.work_from_home

    worked = service.punch_out(employee, now=fixed_now + timedelta(hours=2))
    assert worked.work_duration == "2h 0m"
    stored = attendance_repo.get_for_employee_and_date(employee.employee_id, fixed_now.date())
    assert stored.total_minutes == 120


def test_far_punch_in_is_refused_and_nothing_stored(service, employee, attendance_repo, fixed_now):
    with pytest.raises(ValidationError, match="away from office"):
        service.punch_in(employee, lat=OFFICE.lat + 0.045, lng=OFFICE.lng, now=fixed_now)
    assert attendance_repo.rows == {}


def test_nan_coordinates_do_not_punch_in(service, employee, attendance_repo, fixed_now):
    with pytest.raises(ValidationError):
        service.punch_in(employee, lat=float("nan"), lng=float("nan"), now=fixed_now)
    assert attendance_repo.rows == {}


def test_second_punch_in_same_day_is_conflict(service, employee, fixed_now):
    service.punch_in(employee, lat=OFFICE.lat, lng=OFFICE.lng, now=fixed_now)
    with pytest.raises(ConflictError):
        service.punch_in(employee, lat=OFFICE.lat, lng=OFFICE.lng, now=fixed_now + timedelta(minutes=5))


def test_punch_out_rules(service, employee, fixed_now):
    with pytest.raises(NotFoundError):
        service.punch_out(employee, now=fixed_now)

    service.punch_in(employee, lat=OFFICE.lat, lng=OFFICE.lng, now=fixed_now)
    service.punch_out(employee, now=fixed_now + timedelta(hours=1))
    with pytest.raises(ConflictError):
        service.punch_out(employee, now=fixed_now + timedelta(hours=2))


def test_wfh_punch_in_inside_window(service, employee, employees_repo, fixed_now):
    employees_repo.set_wfh_schedule(
        employee.employee_id, WfhSchedule(start=fixed_now.date(), end=fixed_now.date() + timedelta(days=2))
    )
    record = service.punch_in(employee, work_from_home=True, reason="Plumber visit", now=fixed_now)
    assert record.work_from_home
    assert record.wfh_reason == "Plumber visit"


def test_history_is_hr_only(service, hr, employee, fixed_now):
    service.punch_in(employee, lat=OFFICE.lat, lng=OFFICE.lng, now=fixed_now)
    with pytest.raises(AuthorizationError):
        service.history(employee)
    rows = service.history(hr, start=date(2025, 3, 1), end=date(2025, 3, 31))
    assert [r.employee_id for r in rows] == [employee.employee_id]
