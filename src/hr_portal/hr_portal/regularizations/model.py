from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional

from ..core.enums import RegularizationStatus


@dataclass(frozen=True)
class Regularization:
    regularization_id: int
    employee_id: int
    request_date: date
    reason: str
    status: RegularizationStatus
    created_at: Optional[datetime] = None
    reviewed_by: Optional[int] = None
    reviewed_at: Optional[datetime] = None
    employee_name: str = ""
    employee_code: str = ""
