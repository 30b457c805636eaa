from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Optional, Sequence

from ..core.enums import DailyLogStatus, LocationType, TripStatus


@dataclass(frozen=True)
class Trip:
    trip_id: int
    employee_id: int
    source: str
    destination: str
    purpose: str
    start_date: date
    end_date: date
    status: TripStatus
    estimated_cost: float = 0.0
    dest_lat: Optional[float] = None
    dest_lng: Optional[float] = None
    rejection_reason: Optional[str] = None
    hr_action_by: Optional[int] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    employee_name: str = ""
    employee_code: str = ""
    department: str = ""

    def is_active_on(self, day: date) -> bool:
        return self.start_date <= day <= self.end_date


@dataclass(frozen=True)
class NewTrip:
    employee_id: int
    source: str
    destination: str
    purpose: str
    start_date: date
    end_date: date
    estimated_cost: float = 0.0
    dest_lat: Optional[float] = None
    dest_lng: Optional[float] = None


@dataclass(frozen=True)
class DailyLog:
    """One field-work session (start day / end day) of a trip."""

    log_id: int
    trip_id: int
    log_date: date
    status: DailyLogStatus
    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None
    start_lat: Optional[float] = None
    start_lng: Optional[float] = None
    end_lat: Optional[float] = None
    end_lng: Optional[float] = None
    tasks_done: Optional[str] = None


@dataclass(frozen=True)
class LocationPing:
    trip_id: int
    lat: float
    lng: float
    recorded_at: datetime
    day_number: int = 1
    location_type: LocationType = LocationType.PING
    address: Optional[str] = None
    note: Optional[str] = None
    location_id: Optional[int] = None


@dataclass(frozen=True)
class TripDashboard:
    pending: Sequence[Trip] = field(default_factory=list)
    active: Sequence[Trip] = field(default_factory=list)
    completed: Sequence[Trip] = field(default_factory=list)


@dataclass(frozen=True)
class TripTrack:
    trip: Trip
    pings: Sequence[LocationPing]
    daily_logs: Sequence[DailyLog]
    distance_km: float
    is_owner: bool
