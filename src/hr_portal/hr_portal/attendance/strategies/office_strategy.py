from __future__ import annotations

import math
from datetime import date
from typing import Optional

from ...common.geo import Geofence, GeoPoint
from ...core.exceptions import ValidationError
from ...employees.model import Employee
from .base import PunchInDecision, PunchInStrategy


class OfficeGeofenceStrategy(PunchInStrategy):
    """Office punch-in: must be inside the geofence."""

    def __init__(self, geofence: Geofence):
        self._geofence = geofence

    def decide(self, *, employee: Employee, location: Optional[GeoPoint], today: date, reason: str = "") -> PunchInDecision:
        if location is None:
            raise ValidationError("Location data missing.")

        distance = self._geofence.distance_to(location)
        if not math.isfinite(distance):
            raise ValidationError("Invalid location data.")
        if distance > self._geofence.radius_meters:
            raise ValidationError(
                f"You are {round(distance)}m away from office. Must be within {self._geofence.radius_meters:g}m."
            )
        return PunchInDecision(work_from_home=False, distance_meters=distance)
