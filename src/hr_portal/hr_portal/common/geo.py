from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Iterable

from ..core.constants import EARTH_RADIUS_METERS


@dataclass(frozen=True)
class GeoPoint:
    lat: float
    lng: float


def haversine_meters(a: GeoPoint, b: GeoPoint) -> float:
    """Great-circle distance in meters."""
    phi1 = math.radians(a.lat)
    phi2 = math.radians(b.lat)
    d_phi = math.radians(b.lat - a.lat)
    d_lambda = math.radians(b.lng - a.lng)

    h = math.sin(d_phi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(d_lambda / 2) ** 2
    return EARTH_RADIUS_METERS * 2 * math.atan2(math.sqrt(h), math.sqrt(1 - h))


def path_length_km(points: Iterable[GeoPoint]) -> float:
    total = 0.0
    prev = None
    for p in points:
        if prev is not None:
            total += haversine_meters(prev, p)
        prev = p
    return round(total / 1000, 2)


@dataclass(frozen=True)
class Geofence:
    center: GeoPoint
    radius_meters: float

    def distance_to(self, point: GeoPoint) -> float:
        return haversine_meters(self.center, point)

    def contains(self, point: GeoPoint) -> bool:
        return self.distance_to(point) <= self.radius_meters
