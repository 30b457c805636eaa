from __future__ import annotations

from datetime import date, datetime
from typing import Optional, Protocol, Sequence

from ..core.enums import RegularizationStatus
from .model import Regularization


class RegularizationRepository(Protocol):
    def create(self, *, employee_id: int, request_date: date, reason: str) -> int:
        """Raises ConflictError if a request for that date already exists."""
        raise NotImplementedError

    def get(self, regularization_id: int) -> Optional[Regularization]:
        raise NotImplementedError

    def get_for_date(self, employee_id: int, request_date: date) -> Optional[Regularization]:
        raise NotImplementedError

    def count_for_employee(self, employee_id: int) -> int:
        raise NotImplementedError

    def list_for_employee(self, employee_id: int) -> Sequence[Regularization]:
        raise NotImplementedError

    def list_all(self, *, status: Optional[RegularizationStatus] = None) -> Sequence[Regularization]:
        raise NotImplementedError

    def transition(
        self,
        regularization_id: int,
        *,
        expected: RegularizationStatus,
        target: RegularizationStatus,
        reviewed_by: int,
        reviewed_at: datetime,
    ) -> bool:
        raise NotImplementedError
