from __future__ import annotations

import io
import mimetypes

from flask import Flask, flash, redirect, render_template, request, send_file, url_for

from ..common.datetime_utils import parse_iso_date
from ..common.web import (
    coordinates,
    flash_error,
    hr_required,
    json_ack,
    json_endpoint,
    json_payload,
    login_required,
    render_forbidden,
    upload_from_request,
)
from ..core.enums import ExpenseType
from ..core.exceptions import AuthorizationError, DomainError, ValidationError
from ..container import Container
from ..users.principal import Principal


def register(app: Flask, container: Container) -> None:
    @app.route("/expenses", methods=["GET", "POST"], endpoint="my_expenses")
    @login_required
    def my_expenses(principal: Principal):
        if request.method == "POST":
            try:
                lat, lng = coordinates(request.form)
                container.expense_service.submit(
                    principal,
                    expense_type=container.expense_service.parse_type(request.form.get("expense_type", "")),
                    amount=request.form.get("amount"),
                    expense_date=parse_iso_date(request.form.get("date", "")),
                    description=request.form.get("description", ""),
                    receipt=upload_from_request("receipt"),
                    lat=lat,
                    lng=lng,
                    address=request.form.get("address") or None,
                )
                flash("Expense submitted.", "success")
                return redirect(url_for("my_expenses"))
            except Exception as e:
                flash_error(e, "submitting expense")

        return render_template(
            "expenses/my_expenses.html",
            current_user=principal,
            expenses=container.expense_service.list_mine(principal),
            expense_types=list(ExpenseType),
            active_page="expenses",
        )

    @app.route("/expenses/<int:expense_id>/receipt", endpoint="expense_receipt")
    @login_required
    def expense_receipt(principal: Principal, expense_id: int):
        try:
            data, reference = container.expense_service.receipt_bytes(principal, expense_id)
        except AuthorizationError:
            return render_forbidden(principal)
        except DomainError as e:
            flash(str(e), "warning")
            return redirect(url_for("my_expenses"))

        mimetype = mimetypes.guess_type(reference)[0] or "application/octet-stream"
        return send_file(io.BytesIO(data), mimetype=mimetype, download_name=reference.rsplit("/", 1)[-1])

    @app.route("/api/location/check-in", methods=["POST"], endpoint="api_location_check_in")
    @login_required
    @json_endpoint
    def api_location_check_in(principal: Principal):
        data = json_payload()
        lat, lng = coordinates(data)
        if lat is None or lng is None:
            raise ValidationError("Coordinates required")
        container.employee_service.update_location(principal, lat=lat, lng=lng, address=data.get("address") or "Manual Pin Drop")
        return json_ack(True, "Location Updated")

    @app.route("/hr/expenses", endpoint="hr_expenses")
    @hr_required
    def hr_expenses(principal: Principal):
        board = container.expense_service.dashboard(principal)
        return render_template(
            "expenses/hr_dashboard.html",
            current_user=principal,
            expenses=board.pending,
            employees_on_map=board.employees_on_map,
            active_page="hr_expenses",
        )

    @app.route("/hr/expenses/<int:expense_id>/<string:action>", methods=["POST"], endpoint="decide_expense")
    @hr_required
    def decide_expense(principal: Principal, expense_id: int, action: str):
        try:
            if action not in {"approve", "reject"}:
                raise ValidationError("Invalid action")
            container.expense_service.decide(
                principal,
                expense_id,
                approve=action == "approve",
                rejection_reason=request.form.get("reason", ""),
            )
            flash(f"Expense {'approved' if action == 'approve' else 'rejected'}.", "success")
        except Exception as e:
            flash_error(e, "reviewing expense")
        return redirect(url_for("hr_expenses"))
