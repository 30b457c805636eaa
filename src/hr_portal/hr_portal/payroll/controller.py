from __future__ import annotations

from datetime import date

from flask import Flask, flash, redirect, render_template, request, send_file, url_for

from ..common.validators import require_int, to_amount
from ..common.web import flash_error, hr_required, json_ack, json_endpoint, login_required, render_forbidden
from ..core.exceptions import AuthorizationError, NotFoundError
from ..container import Container
from ..users.principal import Principal
from .export import XLSX_MIMETYPE, payslip_register_xlsx
from .service import ManualPayFigures


def _figures_from_form(form) -> ManualPayFigures:
    return ManualPayFigures(
        basic_salary=to_amount(form.get("basic_salary")),
        hra=to_amount(form.get("hra")),
        travel_allowance=to_amount(form.get("travel_allowance")),
        other_allowances=to_amount(form.get("other_allowances")),
        bonuses=to_amount(form.get("bonuses")),
        pf=to_amount(form.get("pf")),
        professional_tax=to_amount(form.get("professional_tax")),
        taxes=to_amount(form.get("taxes")),
        manual_deductions=to_amount(form.get("manual_deductions")),
        gst_percent=to_amount(form.get("gst_percent")),
    )


def _period(source, today: date) -> tuple[int, int]:
    month = source.get("month") or today.month
    year = source.get("year") or today.year
    return require_int(month, "Month"), require_int(year, "Year")


def register(app: Flask, container: Container) -> None:
    @app.route("/payslips", endpoint="my_payslips")
    @login_required
    def my_payslips(principal: Principal):
        return render_template(
            "payroll/my_payslips.html",
            current_user=principal,
            payslips=container.payroll_service.list_mine(principal),
            active_page="payslips",
        )

    @app.route("/payslips/<int:payslip_id>", endpoint="view_payslip")
    @login_required
    def view_payslip(principal: Principal, payslip_id: int):
        try:
            payslip = container.payroll_service.get_for_viewer(principal, payslip_id)
        except AuthorizationError:
            return render_forbidden(principal)
        except NotFoundError as e:
            flash(str(e), "warning")
            return redirect(url_for("my_payslips"))

        employee = container.employee_service.get(payslip.employee_id)
        return render_template("payroll/payslip.html", current_user=principal, payslip=payslip, employee=employee)

    @app.route("/hr/payroll", endpoint="hr_payroll")
    @hr_required
    def hr_payroll(principal: Principal):
        search = request.args.get("search", "")
        today = date.today()
        return render_template(
            "payroll/hr_payroll.html",
            current_user=principal,
            employees=container.employee_service.list_employees(principal, search=search),
            search=search,
            month=today.month,
            year=today.year,
            active_page="hr_payroll",
        )

    @app.route("/hr/payroll/employee/<int:employee_id>", endpoint="hr_payroll_employee")
    @hr_required
    def hr_payroll_employee(principal: Principal, employee_id: int):
        try:
            employee = container.employee_service.get(employee_id)
        except NotFoundError as e:
            flash(str(e), "warning")
            return redirect(url_for("hr_payroll"))

        today = date.today()
        return render_template(
            "payroll/hr_employee.html",
            current_user=principal,
            employee=employee,
            payslips=container.payroll_service.list_for_employee(principal, employee_id),
            month=today.month,
            year=today.year,
            active_page="hr_payroll",
        )

    @app.route("/hr/payroll/employee/<int:employee_id>/generate", methods=["POST"], endpoint="generate_payslip")
    @hr_required
    def generate_payslip(principal: Principal, employee_id: int):
        try:
            month, year = _period(request.form, date.today())
            container.payroll_service.generate_payslip(
                principal,
                employee_id=employee_id,
                month=month,
                year=year,
                figures=_figures_from_form(request.form),
            )
            flash("Payslip generated.", "success")
        except Exception as e:
            flash_error(e, "generating payslip")
        return redirect(url_for("hr_payroll_employee", employee_id=employee_id))

    @app.route("/hr/payroll/bulk", methods=["POST"], endpoint="bulk_generate_payslips")
    @hr_required
    def bulk_generate_payslips(principal: Principal):
        try:
            month, year = _period(request.form, date.today())
            result = container.payroll_service.bulk_generate(principal, month=month, year=year)
            if result.failed:
                flash(f"Generated {result.generated} payslips; {len(result.failed)} failed.", "warning")
            else:
                flash(f"Generated {result.generated} payslips for {month:02d}/{year}.", "success")
        except Exception as e:
            flash_error(e, "generating payslips")
        return redirect(url_for("hr_payroll"))

    @app.route("/hr/payroll/export.xlsx", endpoint="export_payslips")
    @hr_required
    def export_payslips(principal: Principal):
        try:
            month, year = _period(request.args, date.today())
            payslips = container.payroll_service.list_for_period(principal, month=month, year=year)
        except Exception as e:
            flash_error(e, "exporting payslips")
            return redirect(url_for("hr_payroll"))

        return send_file(
            payslip_register_xlsx(payslips),
            mimetype=XLSX_MIMETYPE,
            as_attachment=True,
            download_name=f"payslips_{year}_{month:02d}.xlsx",
        )

    @app.route("/api/hr/lop-stats", endpoint="api_lop_stats")
    @hr_required
    @json_endpoint
    def api_lop_stats(principal: Principal):
        stats = container.payroll_service.lop_stats(principal)
        return json_ack(
            True,
            total_lop_days=stats.total_lop_days,
            employees_with_lop=stats.employees_with_lop,
            employees=[
                {
                    "employee_id": r.employee_id,
                    "employee_code": r.employee_code,
                    "name": r.full_name,
                    "department": r.department,
                    "lop_count": r.lop_count,
                    "lop_days_this_month": r.lop_days_this_month,
                }
                for r in stats.rows
            ],
        )

    @app.route("/api/hr/lop-reset", methods=["POST"], endpoint="api_lop_reset")
    @hr_required
    @json_endpoint
    def api_lop_reset(principal: Principal):
        count = container.payroll_service.reset_monthly_lop(principal)
        return json_ack(True, f"Monthly LOP reset for {count} employees", reset=count)
