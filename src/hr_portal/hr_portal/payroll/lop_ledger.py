from __future__ import annotations

import logging
from datetime import date
from typing import Optional

from ..core.enums import DeductionType
from ..employees.repository import EmployeeRepository
from .calculator.base import PayrollCalculator
from .model import DeductionLine
from .repository import PayslipRepository

logger = logging.getLogger(__name__)


class LossOfPayLedger:
    """Single place where unpaid days are booked against an employee.

    Used by leave approval (LOP / regularize-unpaid) and by approved attendance
    regularization. Counters move by an atomic increment; if the payslip for
    the month of `on_date` already exists it is amended with a LOP line.
    """

    def __init__(self, employees: EmployeeRepository, payslips: PayslipRepository, calculator: PayrollCalculator):
        self._employees = employees
        self._payslips = payslips
        self._calculator = calculator

    def post(self, employee_id: int, *, on_date: date, days: int, label: str) -> Optional[int]:
        """Returns the id of the amended payslip, or None when there was none to amend."""
        self._employees.add_lop_days(int(employee_id), days=int(days))

        payslip = self._payslips.get_for_period(employee_id=int(employee_id), month=on_date.month, year=on_date.year)
        if not payslip:
            return None

        amount = self._calculator.lop_deduction(payslip.basic_salary, int(days))
        line = DeductionLine(type=DeductionType.LOP, label=label, amount=amount)
        if not self._payslips.append_deduction(payslip.payslip_id, line, lop_days=int(days)):
            logger.warning("Payslip %s vanished before LOP amendment", payslip.payslip_id)
            return None

        logger.info(
            "Payslip %s amended: %s (%.2f) for employee %s", payslip.payslip_id, label, amount, employee_id
        )
        return payslip.payslip_id
