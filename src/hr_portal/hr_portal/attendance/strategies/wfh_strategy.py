from __future__ import annotations

from datetime import date
from typing import Optional

from ...common.geo import GeoPoint
from ...core.constants import NO_REASON_PROVIDED
from ...core.exceptions import ValidationError
from ...employees.model import Employee
from .base import PunchInDecision, PunchInStrategy


class WorkFromHomeStrategy(PunchInStrategy):
    """WFH punch-in: no geofence, but today must fall inside the allotted WFH window."""

    def decide(self, *, employee: Employee, location: Optional[GeoPoint], today: date, reason: str = "") -> PunchInDecision:
        if not employee.wfh.covers(today):
            raise ValidationError("Work From Home is not authorized for today. Please contact your manager.")
        return PunchInDecision(work_from_home=True, wfh_reason=(reason or "").strip() or NO_REASON_PROVIDED)
