from __future__ import annotations

import logging
from dataclasses import replace
from datetime import date, datetime
from typing import Optional, Sequence

from ..attendance.repository import AttendanceRepository
from ..common.validators import require_non_empty
from ..core.constants import MAX_REGULARIZATION_REQUESTS
from ..core.enums import RegularizationStatus
from ..core.exceptions import AuthorizationError, ConflictError, NotFoundError, ValidationError
from ..core.state_machine import REGULARIZATION_FLOW
from ..payroll.lop_ledger import LossOfPayLedger
from ..users.principal import Principal
from .model import Regularization
from .repository import RegularizationRepository

logger = logging.getLogger(__name__)


def regularization_label(day: date) -> str:
    return f"Regularization (Loss of Pay) for {day.isoformat()}"


class RegularizationService:
    """Retroactive attendance requests. An approved request costs one LOP day."""

    def __init__(
        self,
        regularizations: RegularizationRepository,
        attendance: AttendanceRepository,
        ledger: LossOfPayLedger,
        *,
        max_requests: int = MAX_REGULARIZATION_REQUESTS,
    ):
        self._regularizations = regularizations
        self._attendance = attendance
        self._ledger = ledger
        self._max_requests = max_requests

    def request(self, principal: Principal, *, request_date: date, reason: str) -> int:
        reason = require_non_empty(reason, "Reason")

        if self._attendance.get_for_employee_and_date(principal.employee_id, request_date):
            raise ValidationError("Attendance already marked for this date.")
        if self._regularizations.get_for_date(principal.employee_id, request_date):
            raise ConflictError("Request already exists for this date.")
        if self._regularizations.count_for_employee(principal.employee_id) >= self._max_requests:
            raise ValidationError(f"Maximum {self._max_requests} regularization requests allowed.")

        regularization_id = self._regularizations.create(
            employee_id=principal.employee_id, request_date=request_date, reason=reason
        )
        logger.info("Regularization %s requested by employee %s for %s", regularization_id, principal.employee_id, request_date)
        return regularization_id

    def list_mine(self, principal: Principal) -> Sequence[Regularization]:
        return self._regularizations.list_for_employee(principal.employee_id)

    def list_all(self, principal: Principal) -> Sequence[Regularization]:
        if not principal.is_hr:
            raise AuthorizationError("Only HR can review regularization requests")
        return self._regularizations.list_all()

    def decide(
        self,
        principal: Principal,
        regularization_id: int,
        *,
        approve: bool,
        now: Optional[datetime] = None,
    ) -> Regularization:
        if not principal.is_hr:
            raise AuthorizationError("Only HR can review regularization requests")
        now = now or datetime.now()

        item = self._regularizations.get(int(regularization_id))
        if not item:
            raise NotFoundError("Regularization request not found")

        target = RegularizationStatus.APPROVED if approve else RegularizationStatus.REJECTED
        REGULARIZATION_FLOW.ensure(item.status, target)

        won = self._regularizations.transition(
            item.regularization_id,
            expected=RegularizationStatus.PENDING,
            target=target,
            reviewed_by=principal.employee_id,
            reviewed_at=now,
        )
        if not won:
            raise ConflictError("Regularization request was already processed")

        if approve:
            self._ledger.post(item.employee_id, on_date=item.request_date, days=1, label=regularization_label(item.request_date))

        logger.info("Regularization %s %s by employee %s", item.regularization_id, target.value, principal.employee_id)
        return replace(item, status=target, reviewed_by=principal.employee_id, reviewed_at=now)
