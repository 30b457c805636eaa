from __future__ import annotations

import logging
import math
from dataclasses import replace
from datetime import date, datetime, time, timedelta
from typing import Optional, Sequence

from ..common.geo import GeoPoint, path_length_km
from ..common.validators import require_non_empty, to_amount
from ..core.constants import NO_REASON_PROVIDED, RECENT_COMPLETED_TRIPS
from ..core.enums import DailyLogStatus, LocationType, TripStatus
from ..core.exceptions import AuthorizationError, ConflictError, NotFoundError, ValidationError
from ..core.state_machine import TRIP_FLOW
from ..employees.repository import EmployeeRepository
from ..users.principal import Principal
from .model import DailyLog, LocationPing, NewTrip, Trip, TripDashboard, TripTrack
from .repository import TripRepository

logger = logging.getLogger(__name__)

TRIP_ENDED_NOTE = "Trip Ended by User"


def day_number(start_date: date, now: datetime) -> int:
    """1-based day of the trip; anything up to the first 24h counts as day 1."""
    elapsed = now - datetime.combine(start_date, time.min)
    return max(1, math.ceil(elapsed / timedelta(days=1)))


class TripService:
    def __init__(self, trips: TripRepository, employees: EmployeeRepository):
        self._trips = trips
        self._employees = employees

    # ---- lookups

    def _get(self, trip_id: int) -> Trip:
        trip = self._trips.get(int(trip_id))
        if not trip:
            raise NotFoundError("Trip not found")
        return trip

    def _own(self, principal: Principal, trip_id: int) -> Trip:
        trip = self._get(trip_id)
        if trip.employee_id != principal.employee_id:
            raise NotFoundError("Trip not found")
        return trip

    # ---- employee

    def request(
        self,
        principal: Principal,
        *,
        source: str,
        destination: str,
        purpose: str,
        start_date: date,
        end_date: date,
        estimated_cost=None,
        dest_lat: Optional[float] = None,
        dest_lng: Optional[float] = None,
    ) -> int:
        if end_date < start_date:
            raise ValidationError("End date cannot be before start date")

        has_destination = dest_lat is not None and dest_lng is not None
        trip_id = self._trips.create(
            NewTrip(
                employee_id=principal.employee_id,
                source=require_non_empty(source, "Source"),
                destination=require_non_empty(destination, "Destination"),
                purpose=require_non_empty(purpose, "Purpose"),
                start_date=start_date,
                end_date=end_date,
                estimated_cost=to_amount(estimated_cost),
                dest_lat=dest_lat if has_destination else None,
                dest_lng=dest_lng if has_destination else None,
            )
        )
        logger.info("Trip %s requested by employee %s (%s -> %s)", trip_id, principal.employee_id, source, destination)
        return trip_id

    def list_mine(self, principal: Principal) -> Sequence[Trip]:
        return self._trips.list_for_employee(principal.employee_id)

    def start(
        self,
        principal: Principal,
        trip_id: int,
        *,
        lat: Optional[float] = None,
        lng: Optional[float] = None,
        now: Optional[datetime] = None,
    ) -> Trip:
        now = now or datetime.now()
        trip = self._own(principal, trip_id)
        if trip.status != TripStatus.APPROVED:
            raise ValidationError("Trip not approved or already started")

        if not self._trips.transition(trip.trip_id, expected=TripStatus.APPROVED, target=TripStatus.IN_PROGRESS):
            raise ConflictError("Trip not approved or already started")

        if lat is not None and lng is not None:
            self._trips.add_location(
                LocationPing(
                    trip_id=trip.trip_id,
                    lat=lat,
                    lng=lng,
                    recorded_at=now,
                    day_number=1,
                    location_type=LocationType.START_TRIP,
                )
            )
        self._trips.start_log(trip.trip_id, log_date=now.date(), start_time=now, lat=lat, lng=lng)

        logger.info("Trip %s started by employee %s", trip.trip_id, principal.employee_id)
        return replace(trip, status=TripStatus.IN_PROGRESS)

    def end(self, principal: Principal, trip_id: int, *, now: Optional[datetime] = None) -> Trip:
        now = now or datetime.now()
        trip = self._own(principal, trip_id)
        TRIP_FLOW.ensure(trip.status, TripStatus.COMPLETED)

        open_log = self._trips.get_open_log(trip.trip_id)
        if open_log:
            self._trips.end_log(
                open_log.log_id,
                end_time=now,
                lat=None,
                lng=None,
                tasks_done=TRIP_ENDED_NOTE,
                keep_existing_tasks=True,
            )

        if not self._trips.transition(trip.trip_id, expected=TripStatus.IN_PROGRESS, target=TripStatus.COMPLETED):
            raise ConflictError("Trip was already completed")
        logger.info("Trip %s completed by employee %s", trip.trip_id, principal.employee_id)
        return replace(trip, status=TripStatus.COMPLETED)

    def monitor(self, principal: Principal, trip_id: int, *, now: Optional[datetime] = None) -> tuple:
        """Employee field view: (trip, today's day number, daily logs)."""
        trip = self._own(principal, trip_id)
        return trip, day_number(trip.start_date, now or datetime.now()), self._trips.list_logs(trip.trip_id)

    def log_location(
        self,
        principal: Principal,
        trip_id: int,
        *,
        lat: Optional[float],
        lng: Optional[float],
        location_type: LocationType = LocationType.PING,
        now: Optional[datetime] = None,
    ) -> Optional[int]:
        """Pings without coordinates are accepted and ignored."""
        now = now or datetime.now()
        trip = self._own(principal, trip_id)
        if lat is None or lng is None:
            return None
        return self._trips.add_location(
            LocationPing(
                trip_id=trip.trip_id,
                lat=lat,
                lng=lng,
                recorded_at=now,
                day_number=day_number(trip.start_date, now),
                location_type=location_type,
            )
        )

    def log_activity(
        self,
        principal: Principal,
        trip_id: int,
        *,
        lat: Optional[float],
        lng: Optional[float],
        note: str,
        address: str = "",
        now: Optional[datetime] = None,
    ) -> int:
        now = now or datetime.now()
        trip = self._own(principal, trip_id)
        if lat is None or lng is None:
            raise ValidationError("Coordinates required")
        return self._trips.add_location(
            LocationPing(
                trip_id=trip.trip_id,
                lat=lat,
                lng=lng,
                recorded_at=now,
                day_number=day_number(trip.start_date, now),
                location_type=LocationType.ACTIVITY,
                address=address or "",
                note=require_non_empty(note, "Note"),
            )
        )

    def start_day(
        self,
        principal: Principal,
        trip_id: int,
        *,
        lat: Optional[float] = None,
        lng: Optional[float] = None,
        now: Optional[datetime] = None,
    ) -> None:
        now = now or datetime.now()
        trip = self._own(principal, trip_id)

        existing = self._trips.get_log_for_date(trip.trip_id, now.date())
        if existing and existing.status != DailyLogStatus.PENDING:
            raise ValidationError("Day already started or completed")
        if not self._trips.start_log(trip.trip_id, log_date=now.date(), start_time=now, lat=lat, lng=lng):
            raise ValidationError("Day already started or completed")

    def end_day(
        self,
        principal: Principal,
        trip_id: int,
        *,
        lat: Optional[float] = None,
        lng: Optional[float] = None,
        tasks_done: str = "",
        now: Optional[datetime] = None,
    ) -> None:
        now = now or datetime.now()
        trip = self._own(principal, trip_id)

        log = self._trips.get_log_for_date(trip.trip_id, now.date())
        if not log or log.status != DailyLogStatus.STARTED:
            raise ValidationError("Day not started today")
        if not self._trips.end_log(log.log_id, end_time=now, lat=lat, lng=lng, tasks_done=tasks_done):
            raise ValidationError("Day not started today")

    def update_log(self, principal: Principal, trip_id: int, *, log_id: int, tasks_done: str) -> None:
        trip = self._own(principal, trip_id)
        log: Optional[DailyLog] = self._trips.get_log(trip.trip_id, int(log_id))
        if not log:
            raise NotFoundError("Log entry not found")
        self._trips.update_log_tasks(log.log_id, tasks_done or "")

    # ---- HR

    def dashboard(self, principal: Principal, *, today: Optional[date] = None) -> TripDashboard:
        if not principal.is_hr:
            raise AuthorizationError("Only HR can view the trip dashboard")
        today = today or date.today()
        return TripDashboard(
            pending=self._trips.list_by_status(TripStatus.PENDING),
            active=self._trips.list_active_on(today),
            completed=self._trips.list_by_status(TripStatus.COMPLETED, limit=RECENT_COMPLETED_TRIPS),
        )

    def decide(self, principal: Principal, trip_id: int, *, approve: bool, reason: str = "") -> Trip:
        if not principal.is_hr:
            raise AuthorizationError("Only HR can approve or reject trips")
        trip = self._get(trip_id)

        target = TripStatus.APPROVED if approve else TripStatus.REJECTED
        TRIP_FLOW.ensure(trip.status, target)

        rejection_reason = None if approve else ((reason or "").strip() or NO_REASON_PROVIDED)
        won = self._trips.transition(
            trip.trip_id,
            expected=TripStatus.PENDING,
            target=target,
            hr_action_by=principal.employee_id,
            rejection_reason=rejection_reason,
        )
        if not won:
            raise ConflictError("Trip was already processed")
        logger.info("Trip %s %s by employee %s", trip.trip_id, target.value, principal.employee_id)
        return replace(trip, status=target, hr_action_by=principal.employee_id, rejection_reason=rejection_reason)

    def track(self, principal: Principal, trip_id: int) -> TripTrack:
        trip = self._get(trip_id)

        is_owner = trip.employee_id == principal.employee_id
        allowed = principal.is_hr or is_owner
        if not allowed and principal.is_manager:
            viewer = self._employees.get_by_id(principal.employee_id)
            allowed = viewer is not None and viewer.department == trip.department
        if not allowed:
            raise AuthorizationError("Access Denied")

        pings = self._trips.list_locations(trip.trip_id)
        return TripTrack(
            trip=trip,
            pings=pings,
            daily_logs=self._trips.list_logs(trip.trip_id),
            distance_km=path_length_km(GeoPoint(p.lat, p.lng) for p in pings),
            is_owner=is_owner,
        )
