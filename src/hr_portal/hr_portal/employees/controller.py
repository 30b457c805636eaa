from __future__ import annotations

import io

from flask import Flask, abort, flash, redirect, render_template, request, send_file, url_for

from ..common.datetime_utils import parse_iso_date
from ..common.validators import to_amount
from ..common.web import flash_error, hr_required, login_required, render_forbidden, roles_required
from ..core.constants import DEFAULT_ADDRESS, DEFAULT_WORK_LOCATION
from ..core.enums import EmployeeStatus, EmploymentType, ResignationStatus, Role
from ..core.exceptions import AuthorizationError, NotFoundError, ValidationError
from ..container import Container
from ..users.principal import Principal
from .model import EmployeeFields, SalaryComponents


def _enum(enum_cls, value, label: str):
    try:
        return enum_cls(value)
    except ValueError:
        raise ValidationError(f"Invalid {label}")


def _optional_date(value: str):
    return parse_iso_date(value) if (value or "").strip() else None


def _fields_from_form(form) -> EmployeeFields:
    return EmployeeFields(
        employee_code=form.get("employee_code", ""),
        first_name=form.get("first_name", ""),
        last_name=form.get("last_name", ""),
        dob=_optional_date(form.get("dob", "")),
        email=form.get("email", ""),
        phone_number=form.get("phone_number", ""),
        department=form.get("department", ""),
        designation=form.get("designation", ""),
        joining_date=_optional_date(form.get("joining_date", "")),
        address=form.get("address") or DEFAULT_ADDRESS,
        employment_type=_enum(EmploymentType, form.get("employment_type") or EmploymentType.FULL_TIME.value, "employment type"),
        work_location=form.get("work_location") or DEFAULT_WORK_LOCATION,
        pay=SalaryComponents(
            salary=to_amount(form.get("salary")),
            hra=to_amount(form.get("hra")),
            travel_allowance=to_amount(form.get("travel_allowance")),
            other_allowances=to_amount(form.get("other_allowances")),
            pf=to_amount(form.get("pf")),
            professional_tax=to_amount(form.get("professional_tax")),
            income_tax=to_amount(form.get("income_tax")),
        ),
    )


def register(app: Flask, container: Container) -> None:
    @app.route("/employees", endpoint="employees")
    @roles_required(Role.HR, Role.MANAGER)
    def employees(principal: Principal):
        search = request.args.get("search", "")
        team = container.employee_service.list_employees(principal, search=search)
        return render_template(
            "employees/list.html",
            current_user=principal,
            employees=team,
            pending_resignations=[e for e in team if e.resignation.status == ResignationStatus.PENDING],
            search=search,
            statuses=list(EmployeeStatus),
            active_page="employees",
        )

    @app.route("/employees/add", methods=["GET", "POST"], endpoint="add_employee")
    @hr_required
    def add_employee(principal: Principal):
        if request.method == "POST":
            try:
                role = _enum(Role, request.form.get("role") or Role.EMPLOYEE.value, "role")
                container.employee_service.create_employee(principal, _fields_from_form(request.form), role=role)
                flash("Employee added. Login created with the temporary password.", "success")
                return redirect(url_for("employees"))
            except Exception as e:
                flash_error(e, "adding employee")

        return render_template(
            "employees/form.html",
            current_user=principal,
            employee=None,
            form=request.form,
            roles=list(Role),
            employment_types=list(EmploymentType),
            active_page="employees",
        )

    @app.route("/employees/<int:employee_id>/edit", methods=["GET", "POST"], endpoint="edit_employee")
    @hr_required
    def edit_employee(principal: Principal, employee_id: int):
        try:
            employee = container.employee_service.get(employee_id)
        except NotFoundError:
            abort(404)

        if request.method == "POST":
            try:
                container.employee_service.update_employee(principal, employee_id, _fields_from_form(request.form))
                flash("Employee updated.", "success")
                return redirect(url_for("employee_profile", employee_id=employee_id))
            except Exception as e:
                flash_error(e, "updating employee")

        return render_template(
            "employees/form.html",
            current_user=principal,
            employee=employee,
            form=request.form,
            roles=list(Role),
            employment_types=list(EmploymentType),
            active_page="employees",
        )

    @app.route("/employees/<int:employee_id>/status", methods=["POST"], endpoint="set_employee_status")
    @hr_required
    def set_employee_status(principal: Principal, employee_id: int):
        try:
            status = _enum(EmployeeStatus, request.form.get("status", ""), "status")
            container.employee_service.set_status(principal, employee_id, status)
            flash(f"Status set to {status.value}.", "success")
        except Exception as e:
            flash_error(e, "updating status")
        return redirect(url_for("employees"))

    @app.route("/employees/<int:employee_id>", endpoint="employee_profile")
    @login_required
    def employee_profile(principal: Principal, employee_id: int):
        try:
            employee = container.employee_service.get_profile(principal, employee_id)
        except AuthorizationError:
            return render_forbidden(principal)
        except NotFoundError:
            abort(404)
        return render_template("employees/profile.html", current_user=principal, employee=employee, active_page="employees")

    @app.route("/profile", endpoint="my_profile")
    @login_required
    def my_profile(principal: Principal):
        return redirect(url_for("employee_profile", employee_id=principal.employee_id))

    @app.route("/employees/<int:employee_id>/photo", endpoint="employee_photo")
    @login_required
    def employee_photo(principal: Principal, employee_id: int):
        try:
            photo = container.employee_service.get_profile_photo(employee_id)
        except NotFoundError:
            abort(404)
        return send_file(io.BytesIO(photo.data), mimetype=photo.content_type)

    @app.route("/employees/<int:employee_id>/wfh", methods=["POST"], endpoint="allot_wfh")
    @roles_required(Role.MANAGER, Role.HR)
    def allot_wfh(principal: Principal, employee_id: int):
        try:
            container.employee_service.allot_wfh(
                principal,
                employee_id,
                start=parse_iso_date(request.form.get("start_date", "")),
                end=parse_iso_date(request.form.get("end_date", "")),
                reason=request.form.get("reason", ""),
            )
            flash("Work From Home allotted.", "success")
        except Exception as e:
            flash_error(e, "allotting WFH")
        return redirect(url_for("employees"))

    @app.route("/resignation", methods=["GET", "POST"], endpoint="resignation")
    @login_required
    def resignation(principal: Principal):
        if request.method == "POST":
            try:
                container.employee_service.submit_resignation(principal, reason=request.form.get("reason", ""))
                flash("Resignation submitted.", "success")
                return redirect(url_for("resignation"))
            except Exception as e:
                flash_error(e, "submitting resignation")

        return render_template(
            "employees/resignation.html",
            current_user=principal,
            employee=container.employee_service.get(principal.employee_id),
            active_page="resignation",
        )

    @app.route("/resignation/revoke", methods=["POST"], endpoint="revoke_resignation")
    @login_required
    def revoke_resignation(principal: Principal):
        try:
            container.employee_service.revoke_resignation(principal)
            flash("Resignation revoked.", "success")
        except Exception as e:
            flash_error(e, "revoking resignation")
        return redirect(url_for("resignation"))

    @app.route("/employees/<int:employee_id>/resignation/<string:action>", methods=["POST"], endpoint="decide_resignation")
    @roles_required(Role.MANAGER, Role.HR)
    def decide_resignation(principal: Principal, employee_id: int, action: str):
        try:
            if action not in {"approve", "reject"}:
                raise ValidationError("Invalid action")
            container.employee_service.decide_resignation(principal, employee_id, approve=action == "approve")
            flash(f"Resignation {'approved' if action == 'approve' else 'rejected'}.", "success")
        except Exception as e:
            flash_error(e, "processing resignation")
        return redirect(url_for("employees"))
