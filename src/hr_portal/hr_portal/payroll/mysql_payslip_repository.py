from __future__ import annotations

from typing import Dict, List, Optional, Sequence

from ..core.enums import DeductionType, PaymentStatus
from ..database.connection import DatabaseConnection
from ..database.mysql_base import as_float, db_cursor, fetchall, fetchone
from .model import DeductionLine, PayrollConfig, Payslip, PayslipDraft, TaxRule
from .repository import PayrollConfigRepository, PayslipRepository

_SELECT_PAYSLIP = """
    SELECT p.payslip_id, p.employee_id, p.month, p.year,
           p.basic_salary, p.hra, p.travel_allowance, p.other_allowances, p.bonuses, p.reimbursements,
           p.pf, p.professional_tax, p.taxes, p.lop_days, p.deductions, p.net_pay,
           p.payment_status, p.created_at,
           CONCAT(e.first_name, ' ', e.last_name) AS employee_name, e.employee_code
    FROM payslips p
    JOIN employees e ON e.employee_id = p.employee_id
"""


def _to_payslip(r: dict, lines: Sequence[DeductionLine]) -> Payslip:
    return Payslip(
        payslip_id=int(r["payslip_id"]),
        employee_id=int(r["employee_id"]),
        month=int(r["month"]),
        year=int(r["year"]),
        basic_salary=as_float(r["basic_salary"]),
        hra=as_float(r["hra"]),
        travel_allowance=as_float(r["travel_allowance"]),
        other_allowances=as_float(r["other_allowances"]),
        bonuses=as_float(r["bonuses"]),
        reimbursements=as_float(r["reimbursements"]),
        pf=as_float(r["pf"]),
        professional_tax=as_float(r["professional_tax"]),
        taxes=as_float(r["taxes"]),
        lop_days=int(r["lop_days"] or 0),
        deductions=as_float(r["deductions"]),
        net_pay=as_float(r["net_pay"]),
        payment_status=PaymentStatus(r["payment_status"]),
        lines=tuple(lines),
        created_at=r.get("created_at"),
        employee_name=r.get("employee_name") or "",
        employee_code=r.get("employee_code") or "",
    )


class MySQLPayslipRepository(PayslipRepository, PayrollConfigRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def _load_lines(self, cur, payslip_ids: Sequence[int]) -> Dict[int, List[DeductionLine]]:
        out: Dict[int, List[DeductionLine]] = {pid: [] for pid in payslip_ids}
        if not payslip_ids:
            return out
        placeholders = ",".join(["%s"] * len(payslip_ids))
        cur.execute(
            f"""
            SELECT payslip_id, deduction_type, label, amount
            FROM payslip_deductions
            WHERE payslip_id IN ({placeholders})
            ORDER BY line_id
            """,
            tuple(payslip_ids),
        )
        for r in fetchall(cur):
            out[int(r["payslip_id"])].append(
                DeductionLine(type=DeductionType(r["deduction_type"]), label=r["label"], amount=as_float(r["amount"]))
            )
        return out

    def _query(self, where: str, params: tuple, order: str = "p.year DESC, p.month DESC") -> list[Payslip]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"{_SELECT_PAYSLIP} WHERE {where} ORDER BY {order}", params)
            rows = fetchall(cur)
            lines = self._load_lines(cur, [int(r["payslip_id"]) for r in rows])
            return [_to_payslip(r, lines[int(r["payslip_id"])]) for r in rows]

    def get(self, payslip_id: int) -> Optional[Payslip]:
        found = self._query("p.payslip_id=%s", (int(payslip_id),))
        return found[0] if found else None

    def get_for_period(self, *, employee_id: int, month: int, year: int) -> Optional[Payslip]:
        found = self._query("p.employee_id=%s AND p.month=%s AND p.year=%s", (int(employee_id), int(month), int(year)))
        return found[0] if found else None

    def list_for_employee(self, employee_id: int) -> Sequence[Payslip]:
        return self._query("p.employee_id=%s", (int(employee_id),))

    def list_for_period(self, *, month: int, year: int) -> Sequence[Payslip]:
        return self._query("p.month=%s AND p.year=%s", (int(month), int(year)), order="e.employee_code")

    def upsert(self, draft: PayslipDraft) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO payslips (
                    employee_id, month, year, basic_salary, hra, travel_allowance, other_allowances, bonuses,
                    reimbursements, pf, professional_tax, taxes, lop_days, deductions, net_pay, payment_status
                )
                VALUES (%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s)
                ON DUPLICATE KEY UPDATE
                    payslip_id=LAST_INSERT_ID(payslip_id),
                    basic_salary=VALUES(basic_salary), hra=VALUES(hra), travel_allowance=VALUES(travel_allowance),
                    other_allowances=VALUES(other_allowances), bonuses=VALUES(bonuses),
                    reimbursements=VALUES(reimbursements), pf=VALUES(pf), professional_tax=VALUES(professional_tax),
                    taxes=VALUES(taxes), lop_days=VALUES(lop_days), deductions=VALUES(deductions),
                    net_pay=VALUES(net_pay), payment_status=VALUES(payment_status)
                """,
                (
                    draft.employee_id,
                    draft.month,
                    draft.year,
                    draft.basic_salary,
                    draft.hra,
                    draft.travel_allowance,
                    draft.other_allowances,
                    draft.bonuses,
                    draft.reimbursements,
                    draft.pf,
                    draft.professional_tax,
                    draft.taxes,
                    draft.lop_days,
                    draft.deductions,
                    draft.net_pay,
                    PaymentStatus.NOT_PAID.value,
                ),
            )
            payslip_id = int(cur.lastrowid)

            # Replace, never accumulate, the deduction lines.
            cur.execute("DELETE FROM payslip_deductions WHERE payslip_id=%s", (payslip_id,))
            if draft.lines:
                cur.executemany(
                    "INSERT INTO payslip_deductions (payslip_id, deduction_type, label, amount) VALUES (%s,%s,%s,%s)",
                    [(payslip_id, line.type.value, line.label, line.amount) for line in draft.lines],
                )
            return payslip_id

    def append_deduction(self, payslip_id: int, line: DeductionLine, *, lop_days: int = 0) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE payslips
                SET deductions = deductions + %s,
                    net_pay = net_pay - %s,
                    lop_days = lop_days + %s
                WHERE payslip_id=%s
                """,
                (line.amount, line.amount, int(lop_days), int(payslip_id)),
            )
            if cur.rowcount == 0:
                return False
            cur.execute(
                "INSERT INTO payslip_deductions (payslip_id, deduction_type, label, amount) VALUES (%s,%s,%s,%s)",
                (int(payslip_id), line.type.value, line.label, line.amount),
            )
            return True

    def get_config(self) -> Optional[PayrollConfig]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("SELECT pf_percentage, pt_amount FROM payroll_config ORDER BY config_id LIMIT 1")
            cfg = fetchone(cur)
            if not cfg:
                return None
            cur.execute("SELECT min_income, percentage FROM payroll_tax_rules ORDER BY sort_order, rule_id")
            rules = tuple(
                TaxRule(min_income=as_float(r["min_income"]), percentage=as_float(r["percentage"])) for r in fetchall(cur)
            )
            return PayrollConfig(
                tax_rules=rules,
                pf_percentage=as_float(cfg["pf_percentage"]),
                pt_amount=as_float(cfg["pt_amount"]),
            )
