from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date
from typing import Optional, Sequence

from ..common.datetime_utils import is_future_period, month_bounds
from ..core.enums import EmployeeStatus
from ..core.exceptions import AuthorizationError, NotFoundError, ValidationError
from ..employees.model import Employee
from ..employees.repository import EmployeeRepository
from ..expenses.repository import ExpenseRepository
from ..leaves.repository import LeaveRepository
from ..users.principal import Principal
from .calculator.base import PayrollCalculator
from .calculator.standard_calculator import StandardPayrollCalculator
from .model import (
    BulkGenerationResult,
    LopEmployeeRow,
    LopStats,
    PayrollConfig,
    PayrollInputs,
    Payslip,
    PayslipDraft,
)
from .repository import PayrollConfigRepository, PayslipRepository

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ManualPayFigures:
    """HR-entered figures for a single payslip; missing values are 0."""

    basic_salary: float = 0.0
    hra: float = 0.0
    travel_allowance: float = 0.0
    other_allowances: float = 0.0
    bonuses: float = 0.0
    pf: float = 0.0
    professional_tax: float = 0.0
    taxes: float = 0.0
    manual_deductions: float = 0.0
    gst_percent: float = 0.0


class PayrollService:
    def __init__(
        self,
        payslips: PayslipRepository,
        config: PayrollConfigRepository,
        employees: EmployeeRepository,
        leaves: LeaveRepository,
        expenses: ExpenseRepository,
        *,
        calculator: Optional[PayrollCalculator] = None,
    ):
        self._payslips = payslips
        self._config = config
        self._employees = employees
        self._leaves = leaves
        self._expenses = expenses
        self._calculator = calculator or StandardPayrollCalculator()

    @staticmethod
    def _require_hr(principal: Principal) -> None:
        if not principal.is_hr:
            raise AuthorizationError("Only HR can manage payroll")

    def _employee(self, employee_id: int) -> Employee:
        emp = self._employees.get_by_id(int(employee_id))
        if not emp:
            raise NotFoundError("Employee not found")
        return emp

    def payroll_config(self) -> PayrollConfig:
        return self._config.get_config() or PayrollConfig()

    # -------- single payslip --------
    def generate_payslip(
        self,
        principal: Principal,
        *,
        employee_id: int,
        month: int,
        year: int,
        figures: ManualPayFigures,
    ) -> int:
        self._require_hr(principal)
        month_bounds(month, year)
        emp = self._employee(employee_id)

        draft = self._calculator.build(
            PayrollInputs(
                basic_salary=figures.basic_salary,
                hra=figures.hra,
                travel_allowance=figures.travel_allowance,
                other_allowances=figures.other_allowances,
                bonuses=figures.bonuses,
                lop_days=max(emp.lop_days_this_month, 0),
                pf=figures.pf,
                professional_tax=figures.professional_tax,
                taxes=figures.taxes,
                manual_deductions=figures.manual_deductions,
                gst_percent=figures.gst_percent,
            ),
            employee_id=emp.employee_id,
            month=month,
            year=year,
        )
        payslip_id = self._payslips.upsert(draft)
        self._employees.reset_lop_days_this_month(emp.employee_id)
        logger.info("Payslip %s generated for employee %s (%02d/%d)", payslip_id, emp.employee_id, month, year)
        return payslip_id

    # -------- bulk --------
    def draft_for(self, emp: Employee, *, month: int, year: int, config: PayrollConfig) -> PayslipDraft:
        start, end = month_bounds(month, year)
        pay = emp.pay

        lop_from_leaves = self._leaves.sum_approved_lop_days(emp.employee_id, start=start, end=end)
        lop_days = max(lop_from_leaves, emp.lop_days_this_month)

        pt = pay.professional_tax if pay.professional_tax > 0 else config.pt_amount
        pf = pay.pf if pay.pf > 0 else pay.salary * config.pf_percentage / 100

        return self._calculator.build(
            PayrollInputs(
                basic_salary=pay.salary,
                hra=pay.hra,
                travel_allowance=pay.travel_allowance,
                other_allowances=pay.other_allowances,
                reimbursements=self._expenses.sum_approved(emp.employee_id, start=start, end=end),
                lop_days=lop_days,
                pf=pf,
                professional_tax=pt,
                tax_rules=config.tax_rules,
            ),
            employee_id=emp.employee_id,
            month=month,
            year=year,
        )

    def bulk_generate(self, principal: Principal, *, month: int, year: int, today: Optional[date] = None) -> BulkGenerationResult:
        """Upsert one payslip per active employee. Re-running replaces, never accumulates."""
        self._require_hr(principal)
        month_bounds(month, year)
        if is_future_period(month, year, today=today or date.today()):
            raise ValidationError("Cannot generate payslips for a future month")

        config = self.payroll_config()
        generated = 0
        failed: list[tuple[int, str]] = []
        for emp in self._employees.list_employees(status=EmployeeStatus.ACTIVE):
            try:
                self._payslips.upsert(self.draft_for(emp, month=month, year=year, config=config))
                generated += 1
            except Exception as e:
                logger.exception("Payslip generation failed for employee %s (%02d/%d)", emp.employee_id, month, year)
                failed.append((emp.employee_id, str(e)))

        logger.info("Bulk payroll %02d/%d: %d generated, %d failed", month, year, generated, len(failed))
        return BulkGenerationResult(generated=generated, failed=tuple(failed))

    # -------- views --------
    def list_mine(self, principal: Principal) -> Sequence[Payslip]:
        return self._payslips.list_for_employee(principal.employee_id)

    def list_for_employee(self, principal: Principal, employee_id: int) -> Sequence[Payslip]:
        self._require_hr(principal)
        return self._payslips.list_for_employee(int(employee_id))

    def list_for_period(self, principal: Principal, *, month: int, year: int) -> Sequence[Payslip]:
        self._require_hr(principal)
        month_bounds(month, year)
        return self._payslips.list_for_period(month=month, year=year)

    def get_for_viewer(self, principal: Principal, payslip_id: int) -> Payslip:
        payslip = self._payslips.get(int(payslip_id))
        if not payslip:
            raise NotFoundError("Payslip not found")
        if not principal.is_hr and payslip.employee_id != principal.employee_id:
            raise AuthorizationError("You cannot view this payslip")
        return payslip

    # -------- LOP maintenance --------
    def lop_stats(self, principal: Principal) -> LopStats:
        self._require_hr(principal)
        rows = tuple(
            LopEmployeeRow(
                employee_id=e.employee_id,
                employee_code=e.employee_code,
                full_name=e.full_name,
                department=e.department,
                lop_count=e.lop_count,
                lop_days_this_month=e.lop_days_this_month,
            )
            for e in self._employees.list_employees()
            if e.lop_days_this_month > 0
        )
        return LopStats(
            total_lop_days=sum(r.lop_days_this_month for r in rows),
            employees_with_lop=len(rows),
            rows=rows,
        )

    def reset_monthly_lop(self, principal: Principal) -> int:
        self._require_hr(principal)
        count = self._employees.reset_all_lop_days_this_month()
        logger.info("Monthly LOP counters reset for %d employees by user %s", count, principal.user_id)
        return count
