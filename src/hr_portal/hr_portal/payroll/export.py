from __future__ import annotations

import io
from typing import Sequence

import pandas as pd

from .model import Payslip

XLSX_MIMETYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"


def payslip_register_frame(payslips: Sequence[Payslip]) -> pd.DataFrame:
    rows = [
        {
            "Employee Code": p.employee_code,
            "Employee": p.employee_name,
            "Period": p.period_label,
            "Basic": p.basic_salary,
            "HRA": p.hra,
            "Travel": p.travel_allowance,
            "Other Allowances": p.other_allowances,
            "Bonuses": p.bonuses,
            "Total Earnings": p.total_earnings,
            "Reimbursements": p.reimbursements,
            "LOP Days": p.lop_days,
            "PF": p.pf,
            "Professional Tax": p.professional_tax,
            "Income Tax": p.taxes,
            "Total Deductions": p.deductions,
            "Net Pay": p.net_pay,
            "Payment Status": p.payment_status.value,
        }
        for p in payslips
    ]
    return pd.DataFrame(rows, columns=None if rows else ["Employee Code", "Employee", "Period", "Net Pay"])


def payslip_register_xlsx(payslips: Sequence[Payslip]) -> io.BytesIO:
    """Payslip register for one period as an .xlsx workbook."""
    output = io.BytesIO()
    with pd.ExcelWriter(output, engine="openpyxl") as writer:
        payslip_register_frame(payslips).to_excel(writer, index=False, sheet_name="Payslips")
    output.seek(0)
    return output
