from datetime import date, datetime, timedelta

import pytest

from src.hr_portal.hr_portal.core.enums import DailyLogStatus, LocationType, Role, TripStatus
from src.hr_portal.hr_portal.core.exceptions import AuthorizationError, ConflictError, NotFoundError, ValidationError
from src.hr_portal.hr_portal.trips.service import TRIP_ENDED_NOTE, TripService, day_number
from src.hr_portal.hr_portal.users.principal import Principal

START = date(2025, 3, 14)


@pytest.fixture
def service(trips_repo, employees_repo):
    return TripService(trips_repo, employees_repo)


@pytest.fixture
def trip_id(service, employee):
    return service.request(
        employee,
        source="Pune",
        destination="Mumbai",
        purpose="Site visit",
        start_date=START,
        end_date=START + timedelta(days=2),
        estimated_cost="1500",
        dest_lat=19.07,
        dest_lng=None,
    )


def test_day_number():
    assert day_number(START, datetime(2025, 3, 14, 0, 0)) == 1
    assert day_number(START, datetime(2025, 3, 14, 18, 0)) == 1
    assert day_number(START, datetime(2025, 3, 15, 9, 0)) == 2
    assert day_number(START, datetime(2025, 3, 10, 9, 0)) == 1


def test_request_validation(service, employee, trips_repo, trip_id):
    trip = trips_repo.get(trip_id)
    assert trip.status == TripStatus.PENDING
    assert trip.estimated_cost == 1500.0
    assert trip.dest_lat is None  # only kept when both coordinates are given

    with pytest.raises(ValidationError):
        service.request(
            employee, source="A", destination="B", purpose="C", start_date=START, end_date=START - timedelta(days=1)
        )


def test_start_requires_approval(service, employee, hr, trip_id, fixed_now):
    with pytest.raises(ValidationError, match="not approved"):
        service.start(employee, trip_id, now=fixed_now)

    service.decide(hr, trip_id, approve=True)
    started = service.start(employee, trip_id, lat=19.0, lng=73.0, now=fixed_now)
    assert started.status == TripStatus.IN_PROGRESS

    with pytest.raises(ValidationError):
        service.start(employee, trip_id, now=fixed_now)


def test_start_opens_today_log_and_end_closes_it(service, employee, hr, trips_repo, trip_id, fixed_now):
    service.decide(hr, trip_id, approve=True)
    service.start(employee, trip_id, lat=19.0, lng=73.0, now=fixed_now)

    [ping] = trips_repo.list_locations(trip_id)
    assert ping.location_type == LocationType.START_TRIP and ping.day_number == 1
    [log] = trips_repo.list_logs(trip_id)
    assert log.status == DailyLogStatus.STARTED

    service.end(employee, trip_id, now=fixed_now + timedelta(hours=6))
    [log] = trips_repo.list_logs(trip_id)
    assert log.status == DailyLogStatus.COMPLETED
    assert log.tasks_done == TRIP_ENDED_NOTE
    assert trips_repo.get(trip_id).status == TripStatus.COMPLETED

    with pytest.raises(ConflictError):
        service.end(employee, trip_id)


def test_end_keeps_tasks_already_written(service, employee, hr, trips_repo, trip_id, fixed_now):
    service.decide(hr, trip_id, approve=True)
    service.start(employee, trip_id, now=fixed_now)
    [log] = trips_repo.list_logs(trip_id)
    service.update_log(employee, trip_id, log_id=log.log_id, tasks_done="Met vendor")

    service.end(employee, trip_id, now=fixed_now)
    assert trips_repo.list_logs(trip_id)[0].tasks_done == "Met vendor"


def test_day_cycle(service, employee, hr, trips_repo, trip_id, fixed_now):
    service.decide(hr, trip_id, approve=True)
    service.start(employee, trip_id, now=fixed_now)

    with pytest.raises(ValidationError, match="already started"):
        service.start_day(employee, trip_id, now=fixed_now)
    service.end_day(employee, trip_id, tasks_done="Survey", now=fixed_now + timedelta(hours=8))
    with pytest.raises(ValidationError, match="not started"):
        service.end_day(employee, trip_id, now=fixed_now + timedelta(hours=9))

    tomorrow = fixed_now + timedelta(days=1)
    with pytest.raises(ValidationError, match="not started"):
        service.end_day(employee, trip_id, now=tomorrow)
    service.start_day(employee, trip_id, lat=19.0, lng=73.0, now=tomorrow)
    assert trips_repo.get_log_for_date(trip_id, tomorrow.date()).status == DailyLogStatus.STARTED

    with pytest.raises(NotFoundError, match="Log entry"):
        service.update_log(employee, trip_id, log_id=99, tasks_done="x")


def test_pings(service, employee, trips_repo, trip_id, fixed_now):
    assert service.log_location(employee, trip_id, lat=None, lng=73.0, now=fixed_now) is None
    service.log_location(employee, trip_id, lat=19.0, lng=73.0, now=fixed_now + timedelta(days=1))
    assert trips_repo.list_locations(trip_id)[0].day_number == 2

    with pytest.raises(ValidationError, match="Coordinates required"):
        service.log_activity(employee, trip_id, lat=None, lng=None, note="x")
    service.log_activity(employee, trip_id, lat=19.0, lng=73.0, note="Reached plant", now=fixed_now)
    assert trips_repo.list_locations(trip_id)[-1].note == "Reached plant"


def test_other_employees_trip_is_not_found(service, manager, trip_id):
    with pytest.raises(NotFoundError):
        service.monitor(manager, trip_id)


def test_decide_and_dashboard(service, hr, employee, trip_id):
    with pytest.raises(AuthorizationError):
        service.decide(employee, trip_id, approve=True)

    service.decide(hr, trip_id, approve=False)
    with pytest.raises(ConflictError):
        service.decide(hr, trip_id, approve=True)

    board = service.dashboard(hr, today=START)
    assert board.pending == [] and board.active == []


def test_active_on_dashboard(service, hr, trip_id):
    service.decide(hr, trip_id, approve=True)
    assert [t.trip_id for t in service.dashboard(hr, today=START + timedelta(days=1)).active] == [trip_id]
    assert service.dashboard(hr, today=START + timedelta(days=5)).active == []


def test_track_access(service, hr, employee, manager, employees_repo, make_emp, trip_id, fixed_now):
    service.log_location(employee, trip_id, lat=19.0, lng=73.0, now=fixed_now)
    service.log_location(employee, trip_id, lat=19.01, lng=73.0, now=fixed_now)

    track = service.track(employee, trip_id)
    assert track.is_owner and track.distance_km == pytest.approx(1.11, abs=0.01)
    assert not service.track(hr, trip_id).is_owner
    assert service.track(manager, trip_id).trip.trip_id == trip_id

    employees_repo.add(make_emp(8, department="Sales", designation="Sales Manager"))
    outsider = Principal(user_id=8, employee_id=8, role=Role.MANAGER)
    with pytest.raises(AuthorizationError, match="Access Denied"):
        service.track(outsider, trip_id)
