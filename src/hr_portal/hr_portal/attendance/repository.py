from __future__ import annotations

from datetime import date, datetime
from typing import Optional, Protocol, Sequence

from .model import AttendanceRecord, AttendanceReportRow, WorkedTime


class AttendanceRepository(Protocol):
    def get_for_employee_and_date(self, employee_id: int, work_date: date) -> Optional[AttendanceRecord]:
        raise NotImplementedError

    def get_recent_for_employee(self, employee_id: int, limit: int) -> Sequence[AttendanceRecord]:
        raise NotImplementedError

    def create_punch_in(
        self,
        *,
        employee_id: int,
        work_date: date,
        punch_in: datetime,
        lat: Optional[float],
        lng: Optional[float],
        work_from_home: bool = False,
        wfh_reason: Optional[str] = None,
    ) -> int:
        """Raises ConflictError if the employee already has a record for work_date."""
        raise NotImplementedError

    def update_punch_out(
        self,
        *,
        attendance_id: int,
        punch_out: datetime,
        lat: Optional[float],
        lng: Optional[float],
        worked: WorkedTime,
    ) -> bool:
        """Only succeeds while the record is still open."""
        raise NotImplementedError

    def get_report_rows(self, *, start_date: date, end_date: date, employee_id: Optional[int] = None) -> Sequence[AttendanceReportRow]:
        raise NotImplementedError
