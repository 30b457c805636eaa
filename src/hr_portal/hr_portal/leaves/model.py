from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional

from ..core.enums import LeaveStatus, LeaveType


@dataclass(frozen=True)
class Leave:
    leave_id: int
    employee_id: int
    department: str
    leave_type: LeaveType
    from_date: date
    to_date: date
    total_days: int
    reason: str
    status: LeaveStatus
    applied_at: Optional[datetime] = None
    action_by: Optional[int] = None
    action_at: Optional[datetime] = None
    rejection_reason: Optional[str] = None
    employee_name: str = ""
    employee_code: str = ""

    @property
    def is_paid(self) -> bool:
        return self.leave_type != LeaveType.LOP


@dataclass(frozen=True)
class NewLeave:
    employee_id: int
    department: str
    leave_type: LeaveType
    from_date: date
    to_date: date
    total_days: int
    reason: str
