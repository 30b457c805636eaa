from __future__ import annotations

import logging
from dataclasses import replace
from datetime import date, datetime
from typing import Optional, Sequence

from ..common.datetime_utils import inclusive_days
from ..common.validators import require_non_empty
from ..core.constants import NO_REASON_PROVIDED
from ..core.enums import LeaveAction, LeaveStatus, LeaveType
from ..core.exceptions import AuthorizationError, ConflictError, NotFoundError, ValidationError
from ..core.state_machine import LEAVE_FLOW
from ..employees.model import Employee
from ..employees.repository import EmployeeRepository
from ..notifications.messages import MessageBuilder
from ..notifications.outbox import NotificationOutbox
from ..payroll.calculator.standard_calculator import lop_label
from ..payroll.lop_ledger import LossOfPayLedger
from ..users.principal import Principal
from .model import Leave, NewLeave
from .repository import LeaveRepository

logger = logging.getLogger(__name__)

BALANCE_EXHAUSTED = "Your leaves are finished / Insufficient balance. You can only apply for LOP."


def regularized_label(days: int) -> str:
    return f"Regularized as Unpaid Leave for {days} day(s)"


class LeaveService:
    """Leave application and approval.

    Rules, in one place:
    - paid leave: balance lowered by a conditional update, never below zero;
      not enough balance is a hard reject on every path
    - LOP / regularize-unpaid: counters incremented and the payslip of the
      start month amended through the LOP ledger
    - PENDING -> APPROVED | REJECTED exactly once
    """

    def __init__(
        self,
        leaves: LeaveRepository,
        employees: EmployeeRepository,
        ledger: LossOfPayLedger,
        outbox: NotificationOutbox,
        messages: MessageBuilder,
    ):
        self._leaves = leaves
        self._employees = employees
        self._ledger = ledger
        self._outbox = outbox
        self._messages = messages

    def _employee(self, employee_id: int) -> Employee:
        emp = self._employees.get_by_id(int(employee_id))
        if not emp:
            raise NotFoundError("Employee not found")
        return emp

    def apply(
        self,
        principal: Principal,
        *,
        leave_type: LeaveType,
        from_date: date,
        to_date: date,
        reason: str,
    ) -> int:
        reason = require_non_empty(reason, "Reason")
        if to_date < from_date:
            raise ValidationError("End date cannot be before start date")

        emp = self._employee(principal.employee_id)
        total_days = inclusive_days(from_date, to_date)

        if leave_type != LeaveType.LOP and (emp.leave_balance <= 0 or emp.leave_balance < total_days):
            raise ValidationError(BALANCE_EXHAUSTED)

        leave_id = self._leaves.create(
            NewLeave(
                employee_id=emp.employee_id,
                department=emp.department,
                leave_type=leave_type,
                from_date=from_date,
                to_date=to_date,
                total_days=total_days,
                reason=reason,
            )
        )
        logger.info("Leave %s applied by employee %s (%s, %d days)", leave_id, emp.employee_id, leave_type.value, total_days)

        manager = self._employees.find_department_manager(emp.department, exclude_employee_id=emp.employee_id)
        leave = self._leaves.get(leave_id)
        if manager and leave:
            self._outbox.enqueue(self._messages.leave_applied(manager=manager, employee=emp, leave=leave))
        elif not manager:
            logger.warning("No manager found for department %s; leave %s not notified", emp.department, leave_id)
        return leave_id

    def list_mine(self, principal: Principal) -> Sequence[Leave]:
        return self._leaves.list_for_employee(principal.employee_id)

    def list_pending(self, principal: Principal) -> Sequence[Leave]:
        if principal.is_hr:
            return self._leaves.list_by_status(LeaveStatus.PENDING)
        if principal.is_manager:
            me = self._employee(principal.employee_id)
            return [
                leave
                for leave in self._leaves.list_by_status(LeaveStatus.PENDING, department=me.department)
                if leave.employee_id != principal.employee_id
            ]
        raise AuthorizationError("Access denied")

    def _authorize_decision(self, principal: Principal, leave: Leave) -> None:
        if principal.is_hr:
            return
        if not principal.is_manager:
            raise AuthorizationError("Only HR or a department manager can decide leaves")
        if leave.employee_id == principal.employee_id:
            raise AuthorizationError("You cannot decide your own leave")
        me = self._employee(principal.employee_id)
        if me.department != leave.department:
            raise AuthorizationError("You can only decide leaves of your department")

    def decide(
        self,
        principal: Principal,
        leave_id: int,
        *,
        action: LeaveAction,
        rejection_reason: str = "",
        now: Optional[datetime] = None,
    ) -> Leave:
        now = now or datetime.now()
        leave = self._leaves.get(int(leave_id))
        if not leave:
            raise NotFoundError("Leave not found")
        self._authorize_decision(principal, leave)

        target = LeaveStatus.REJECTED if action == LeaveAction.REJECT else LeaveStatus.APPROVED
        LEAVE_FLOW.ensure(leave.status, target)

        if action == LeaveAction.REJECT:
            reason = (rejection_reason or "").strip() or NO_REASON_PROVIDED
            self._claim(leave, target, principal, now, rejection_reason=reason)
            decided = replace(leave, status=target, rejection_reason=reason, action_by=principal.employee_id, action_at=now)
        elif action == LeaveAction.REGULARIZE_UNPAID or leave.leave_type == LeaveType.LOP:
            decided = self._approve_unpaid(leave, principal, now, regularize=action == LeaveAction.REGULARIZE_UNPAID)
        else:
            decided = self._approve_paid(leave, principal, now)

        logger.info("Leave %s %s by employee %s", leave.leave_id, decided.status.value, principal.employee_id)
        self._notify(decided)
        return decided

    def _claim(
        self,
        leave: Leave,
        target: LeaveStatus,
        principal: Principal,
        now: datetime,
        *,
        rejection_reason: Optional[str] = None,
        leave_type: Optional[LeaveType] = None,
    ) -> None:
        won = self._leaves.transition(
            leave.leave_id,
            expected=LeaveStatus.PENDING,
            target=target,
            action_by=principal.employee_id,
            action_at=now,
            rejection_reason=rejection_reason,
            leave_type=leave_type,
        )
        if not won:
            raise ConflictError("Leave was already processed")

    def _approve_paid(self, leave: Leave, principal: Principal, now: datetime) -> Leave:
        if not self._employees.try_deduct_leave_balance(leave.employee_id, days=leave.total_days):
            raise ValidationError("Insufficient leave balance")
        try:
            self._claim(leave, LeaveStatus.APPROVED, principal, now)
        except ConflictError:
            self._employees.refund_leave_balance(leave.employee_id, days=leave.total_days)
            raise
        return replace(leave, status=LeaveStatus.APPROVED, action_by=principal.employee_id, action_at=now)

    def _approve_unpaid(self, leave: Leave, principal: Principal, now: datetime, *, regularize: bool) -> Leave:
        self._claim(leave, LeaveStatus.APPROVED, principal, now, leave_type=LeaveType.LOP if regularize else None)
        label = regularized_label(leave.total_days) if regularize else lop_label(leave.total_days)
        # Leave approval and payslip amendment are separate writes.
        self._ledger.post(leave.employee_id, on_date=leave.from_date, days=leave.total_days, label=label)
        return replace(
            leave,
            status=LeaveStatus.APPROVED,
            leave_type=LeaveType.LOP,
            action_by=principal.employee_id,
            action_at=now,
        )

    def _notify(self, leave: Leave) -> None:
        emp = self._employees.get_by_id(leave.employee_id)
        if not emp:
            return
        self._outbox.enqueue(self._messages.leave_decided(employee=emp, leave=leave))
