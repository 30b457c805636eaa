from __future__ import annotations

from datetime import date, datetime
from typing import Optional, Protocol, Sequence

from ..core.enums import LeaveStatus, LeaveType
from .model import Leave, NewLeave


class LeaveRepository(Protocol):
    def create(self, leave: NewLeave) -> int:
        raise NotImplementedError

    def get(self, leave_id: int) -> Optional[Leave]:
        raise NotImplementedError

    def list_for_employee(self, employee_id: int) -> Sequence[Leave]:
        raise NotImplementedError

    def list_by_status(self, status: LeaveStatus, *, department: Optional[str] = None) -> Sequence[Leave]:
        raise NotImplementedError

    def transition(
        self,
        leave_id: int,
        *,
        expected: LeaveStatus,
        target: LeaveStatus,
        action_by: int,
        action_at: datetime,
        rejection_reason: Optional[str] = None,
        leave_type: Optional[LeaveType] = None,
    ) -> bool:
        """Conditional status write: only succeeds while the row is still `expected`."""
        raise NotImplementedError

    def sum_approved_lop_days(self, employee_id: int, *, start: date, end: date) -> int:
        """Total days of APPROVED LOP leaves whose from_date falls in [start, end]."""
        raise NotImplementedError
