from __future__ import annotations

from flask import Flask, flash, redirect, render_template, request, url_for

from ..common.datetime_utils import parse_iso_date
from ..common.web import flash_error, login_required, roles_required
from ..core.enums import LeaveAction, LeaveType, Role
from ..core.exceptions import ValidationError
from ..container import Container
from ..users.principal import Principal


def _parse_leave_type(value: str) -> LeaveType:
    try:
        return LeaveType(value)
    except ValueError:
        raise ValidationError("Invalid leave type")


def _parse_action(value: str) -> LeaveAction:
    try:
        return LeaveAction((value or "").strip().lower())
    except ValueError:
        raise ValidationError("Invalid action")


def register(app: Flask, container: Container) -> None:
    @app.route("/leaves", endpoint="my_leaves")
    @login_required
    def my_leaves(principal: Principal):
        employee = container.employee_service.get(principal.employee_id)
        return render_template(
            "leaves/my_leaves.html",
            current_user=principal,
            employee=employee,
            leaves=container.leave_service.list_mine(principal),
            leave_types=list(LeaveType),
            active_page="leaves",
        )

    @app.route("/leaves/apply", methods=["POST"], endpoint="apply_leave")
    @login_required
    def apply_leave(principal: Principal):
        try:
            container.leave_service.apply(
                principal,
                leave_type=_parse_leave_type(request.form.get("leave_type", "")),
                from_date=parse_iso_date(request.form.get("from_date", "")),
                to_date=parse_iso_date(request.form.get("to_date", "")),
                reason=request.form.get("reason", ""),
            )
            flash("Leave applied successfully.", "success")
        except Exception as e:
            flash_error(e, "applying for leave")
        return redirect(url_for("my_leaves"))

    @app.route("/leaves/approvals", endpoint="leave_approvals")
    @roles_required(Role.HR, Role.MANAGER)
    def leave_approvals(principal: Principal):
        return render_template(
            "leaves/approvals.html",
            current_user=principal,
            leaves=container.leave_service.list_pending(principal),
            active_page="leave_approvals",
        )

    @app.route("/leaves/<int:leave_id>/action", methods=["POST"], endpoint="leave_action")
    @roles_required(Role.HR, Role.MANAGER)
    def leave_action(principal: Principal, leave_id: int):
        try:
            leave = container.leave_service.decide(
                principal,
                leave_id,
                action=_parse_action(request.form.get("action", "")),
                rejection_reason=request.form.get("rejection_reason", ""),
            )
            flash(f"Leave {leave.status.value.lower()}.", "success")
        except Exception as e:
            flash_error(e, "processing leave")
        return redirect(url_for("leave_approvals"))
