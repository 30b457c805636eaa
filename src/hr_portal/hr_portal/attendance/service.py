from __future__ import annotations

import logging
from datetime import date, datetime, timedelta
from typing import Optional, Sequence

from ..common.datetime_utils import format_duration
from ..common.geo import GeoPoint
from ..core.constants import DEFAULT_HISTORY_DAYS
from ..core.exceptions import AuthorizationError, ConflictError, NotFoundError
from ..employees.repository import EmployeeRepository
from ..users.principal import Principal
from .factory import PunchInStrategyFactory
from .model import AttendanceRecord, AttendanceReportRow, WorkedTime
from .repository import AttendanceRepository

logger = logging.getLogger(__name__)


def worked_time(punch_in: datetime, punch_out: datetime) -> WorkedTime:
    elapsed = max((punch_out - punch_in).total_seconds(), 0)
    total_minutes = int(elapsed // 60)
    return WorkedTime(
        total_minutes=total_minutes,
        total_hours=round(elapsed / 3600, 2),
        work_duration=format_duration(total_minutes),
    )


def _point(lat: Optional[float], lng: Optional[float]) -> Optional[GeoPoint]:
    if lat is None or lng is None:
        return None
    return GeoPoint(float(lat), float(lng))


class AttendanceService:
    def __init__(
        self,
        attendance: AttendanceRepository,
        employees: EmployeeRepository,
        *,
        strategy_factory: Optional[PunchInStrategyFactory] = None,
    ):
        self._attendance = attendance
        self._employees = employees
        self._factory = strategy_factory or PunchInStrategyFactory()

    def punch_in(
        self,
        principal: Principal,
        *,
        lat: Optional[float] = None,
        lng: Optional[float] = None,
        work_from_home: bool = False,
        reason: str = "",
        now: Optional[datetime] = None,
    ) -> AttendanceRecord:
        now = now or datetime.now()
        today = now.date()

        emp = self._employees.get_by_id(principal.employee_id)
        if not emp:
            raise NotFoundError("Employee not found")

        if self._attendance.get_for_employee_and_date(emp.employee_id, today):
            raise ConflictError("Already marked attendance for today")

        location = _point(lat, lng)
        strategy = self._factory.for_punch_in(work_from_home=work_from_home)
        decision = strategy.decide(employee=emp, location=location, today=today, reason=reason)

        attendance_id = self._attendance.create_punch_in(
            employee_id=emp.employee_id,
            work_date=today,
            punch_in=now,
            lat=location.lat if location else None,
            lng=location.lng if location else None,
            work_from_home=decision.work_from_home,
            wfh_reason=decision.wfh_reason,
        )
        logger.info("Punch-in employee=%s wfh=%s at %s", emp.employee_id, decision.work_from_home, now)
        return AttendanceRecord(
            attendance_id=attendance_id,
            employee_id=emp.employee_id,
            work_date=today,
            punch_in=now,
            punch_in_lat=location.lat if location else None,
            punch_in_lng=location.lng if location else None,
            work_from_home=decision.work_from_home,
            wfh_reason=decision.wfh_reason,
        )

    def punch_out(
        self,
        principal: Principal,
        *,
        lat: Optional[float] = None,
        lng: Optional[float] = None,
        now: Optional[datetime] = None,
    ) -> WorkedTime:
        now = now or datetime.now()

        record = self._attendance.get_for_employee_and_date(principal.employee_id, now.date())
        if not record:
            raise NotFoundError("No punch-in found for today")
        if record.punch_out is not None:
            raise ConflictError("Already punched out for today")

        worked = worked_time(record.punch_in, now)
        if not self._attendance.update_punch_out(attendance_id=record.attendance_id, punch_out=now, lat=lat, lng=lng, worked=worked):
            raise ConflictError("Already punched out for today")
        logger.info("Punch-out employee=%s duration=%s", principal.employee_id, worked.work_duration)
        return worked

    def today(self, principal: Principal, *, today: Optional[date] = None) -> Optional[AttendanceRecord]:
        return self._attendance.get_for_employee_and_date(principal.employee_id, today or date.today())

    def recent(self, principal: Principal, *, limit: int = 15) -> Sequence[AttendanceRecord]:
        return self._attendance.get_recent_for_employee(principal.employee_id, limit)

    def history(
        self,
        principal: Principal,
        *,
        start: Optional[date] = None,
        end: Optional[date] = None,
        employee_id: Optional[int] = None,
    ) -> Sequence[AttendanceReportRow]:
        if not principal.is_hr:
            raise AuthorizationError("Only HR can view attendance history")
        end = end or date.today()
        start = start or end - timedelta(days=DEFAULT_HISTORY_DAYS)
        if start > end:
            start, end = end, start
        return self._attendance.get_report_rows(start_date=start, end_date=end, employee_id=employee_id)
