from __future__ import annotations

from flask import Flask, flash, redirect, render_template, request, url_for

from ..common.datetime_utils import parse_iso_date
from ..common.web import flash_error, hr_required, login_required
from ..core.exceptions import ValidationError
from ..container import Container
from ..users.principal import Principal


def register(app: Flask, container: Container) -> None:
    @app.route("/regularization", methods=["GET", "POST"], endpoint="my_regularizations")
    @login_required
    def my_regularizations(principal: Principal):
        if request.method == "POST":
            try:
                container.regularization_service.request(
                    principal,
                    request_date=parse_iso_date(request.form.get("date", "")),
                    reason=request.form.get("reason", ""),
                )
                flash("Regularization request submitted.", "success")
                return redirect(url_for("my_regularizations"))
            except Exception as e:
                flash_error(e, "requesting regularization")

        return render_template(
            "regularizations/my_requests.html",
            current_user=principal,
            requests=container.regularization_service.list_mine(principal),
            active_page="regularization",
        )

    @app.route("/hr/regularization", endpoint="hr_regularizations")
    @hr_required
    def hr_regularizations(principal: Principal):
        return render_template(
            "regularizations/review.html",
            current_user=principal,
            requests=container.regularization_service.list_all(principal),
            active_page="hr_regularization",
        )

    @app.route("/hr/regularization/<int:regularization_id>/<string:action>", methods=["POST"], endpoint="decide_regularization")
    @hr_required
    def decide_regularization(principal: Principal, regularization_id: int, action: str):
        try:
            if action not in {"approve", "reject"}:
                raise ValidationError("Invalid action")
            item = container.regularization_service.decide(principal, regularization_id, approve=action == "approve")
            flash(f"Request {item.status.value.lower()}.", "success")
        except Exception as e:
            flash_error(e, "reviewing regularization")
        return redirect(url_for("hr_regularizations"))
