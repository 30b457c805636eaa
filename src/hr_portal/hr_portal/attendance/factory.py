from __future__ import annotations

from dataclasses import dataclass, field

from ..common.geo import Geofence, GeoPoint
from ..core.constants import GEOFENCE_RADIUS_METERS, OFFICE_LATITUDE, OFFICE_LONGITUDE
from .strategies.base import PunchInStrategy
from .strategies.office_strategy import OfficeGeofenceStrategy
from .strategies.wfh_strategy import WorkFromHomeStrategy


def default_geofence() -> Geofence:
    return Geofence(center=GeoPoint(OFFICE_LATITUDE, OFFICE_LONGITUDE), radius_meters=GEOFENCE_RADIUS_METERS)


@dataclass
class PunchInStrategyFactory:
    """Factory Pattern: choose the punch-in policy for the requested mode."""

    geofence: Geofence = field(default_factory=default_geofence)

    def for_punch_in(self, *, work_from_home: bool) -> PunchInStrategy:
        if work_from_home:
            return WorkFromHomeStrategy()
        return OfficeGeofenceStrategy(self.geofence)
