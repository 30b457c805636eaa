from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional


@dataclass(frozen=True)
class AttendanceRecord:
    """One punch-in/out record per employee per day."""

    attendance_id: int
    employee_id: int
    work_date: date
    punch_in: datetime
    punch_out: Optional[datetime] = None
    punch_in_lat: Optional[float] = None
    punch_in_lng: Optional[float] = None
    punch_out_lat: Optional[float] = None
    punch_out_lng: Optional[float] = None
    total_hours: Optional[float] = None
    total_minutes: Optional[int] = None
    work_duration: Optional[str] = None
    work_from_home: bool = False
    wfh_reason: Optional[str] = None


@dataclass(frozen=True)
class AttendanceReportRow:
    """Read-model for the HR attendance history."""

    employee_id: int
    employee_code: str
    full_name: str
    department: str
    work_date: date
    punch_in: datetime
    punch_out: Optional[datetime]
    work_duration: Optional[str]
    work_from_home: bool


@dataclass(frozen=True)
class WorkedTime:
    total_minutes: int
    total_hours: float
    work_duration: str
