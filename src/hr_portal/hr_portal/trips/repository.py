from __future__ import annotations

from datetime import date, datetime
from typing import Optional, Protocol, Sequence

from ..core.enums import TripStatus
from .model import DailyLog, LocationPing, NewTrip, Trip


class TripRepository(Protocol):
    def create(self, trip: NewTrip) -> int:
        raise NotImplementedError

    def get(self, trip_id: int) -> Optional[Trip]:
        raise NotImplementedError

    def list_for_employee(self, employee_id: int) -> Sequence[Trip]:
        raise NotImplementedError

    def list_by_status(self, status: TripStatus, *, limit: Optional[int] = None) -> Sequence[Trip]:
        """Newest first (by updated_at)."""
        raise NotImplementedError

    def list_active_on(self, day: date) -> Sequence[Trip]:
        """Approved trips whose date range covers `day`."""
        raise NotImplementedError

    def transition(
        self,
        trip_id: int,
        *,
        expected: TripStatus,
        target: TripStatus,
        hr_action_by: Optional[int] = None,
        rejection_reason: Optional[str] = None,
    ) -> bool:
        raise NotImplementedError

    def add_location(self, ping: LocationPing) -> int:
        raise NotImplementedError

    def list_locations(self, trip_id: int) -> Sequence[LocationPing]:
        """Oldest first."""
        raise NotImplementedError

    def get_log_for_date(self, trip_id: int, log_date: date) -> Optional[DailyLog]:
        raise NotImplementedError

    def get_log(self, trip_id: int, log_id: int) -> Optional[DailyLog]:
        raise NotImplementedError

    def get_open_log(self, trip_id: int) -> Optional[DailyLog]:
        raise NotImplementedError

    def list_logs(self, trip_id: int) -> Sequence[DailyLog]:
        raise NotImplementedError

    def start_log(
        self, trip_id: int, *, log_date: date, start_time: datetime, lat: Optional[float], lng: Optional[float]
    ) -> bool:
        """Create or restart the day's log; only succeeds while it is missing or still Pending."""
        raise NotImplementedError

    def end_log(
        self,
        log_id: int,
        *,
        end_time: datetime,
        lat: Optional[float],
        lng: Optional[float],
        tasks_done: Optional[str],
        keep_existing_tasks: bool = False,
    ) -> bool:
        """Close a Started log. With keep_existing_tasks, tasks_done only fills an empty value."""
        raise NotImplementedError

    def update_log_tasks(self, log_id: int, tasks_done: str) -> bool:
        raise NotImplementedError

