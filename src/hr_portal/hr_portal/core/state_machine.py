from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Mapping

from .enums import DocumentStatus, ExpenseStatus, LeaveStatus, RegularizationStatus, TripStatus
from .exceptions import ConflictError, ValidationError


@dataclass(frozen=True)
class StateMachine:
    """Allowed status transitions for one entity.

    A state with no outgoing edge is terminal: any action on it is a conflict.
    """

    entity: str
    transitions: Mapping[Enum, frozenset]

    def targets(self, current: Enum) -> frozenset:
        return self.transitions.get(current, frozenset())

    def is_terminal(self, state: Enum) -> bool:
        return not self.targets(state)

    def can(self, current: Enum, target: Enum) -> bool:
        return target in self.targets(current)

    def ensure(self, current: Enum, target: Enum) -> None:
        if self.is_terminal(current):
            raise ConflictError(f"{self.entity} already {current.value.lower()}")
        if not self.can(current, target):
            raise ValidationError(f"{self.entity} cannot move from {current.value} to {target.value}")


LEAVE_FLOW = StateMachine(
    "Leave",
    {LeaveStatus.PENDING: frozenset({LeaveStatus.APPROVED, LeaveStatus.REJECTED})},
)

REGULARIZATION_FLOW = StateMachine(
    "Regularization request",
    {RegularizationStatus.PENDING: frozenset({RegularizationStatus.APPROVED, RegularizationStatus.REJECTED})},
)

EXPENSE_FLOW = StateMachine(
    "Expense",
    {ExpenseStatus.PENDING: frozenset({ExpenseStatus.APPROVED, ExpenseStatus.REJECTED})},
)

TRIP_FLOW = StateMachine(
    "Trip",
    {
        TripStatus.PENDING: frozenset({TripStatus.APPROVED, TripStatus.REJECTED}),
        TripStatus.APPROVED: frozenset({TripStatus.IN_PROGRESS}),
        TripStatus.IN_PROGRESS: frozenset({TripStatus.COMPLETED}),
    },
)

DOCUMENT_FLOW = StateMachine(
    "Document",
    {DocumentStatus.PENDING: frozenset({DocumentStatus.APPROVED, DocumentStatus.REJECTED})},
)
