from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import date
from typing import Optional

from ...common.geo import GeoPoint
from ...employees.model import Employee


@dataclass(frozen=True)
class PunchInDecision:
    work_from_home: bool = False
    wfh_reason: Optional[str] = None
    distance_meters: Optional[float] = None


class PunchInStrategy(ABC):
    """Strategy Pattern: decide whether a punch-in is allowed, raising ValidationError if not."""

    @abstractmethod
    def decide(self, *, employee: Employee, location: Optional[GeoPoint], today: date, reason: str = "") -> PunchInDecision:
        raise NotImplementedError
