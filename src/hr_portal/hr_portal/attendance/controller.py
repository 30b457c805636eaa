from __future__ import annotations

import logging
from datetime import date

from flask import Flask, flash, redirect, render_template, request, url_for

from ..common.datetime_utils import parse_iso_date
from ..common.web import coordinates, flash_error, hr_required, json_ack, json_endpoint, json_payload, login_required
from ..core.exceptions import DomainError
from ..container import Container
from ..users.principal import Principal

logger = logging.getLogger(__name__)


def register(app: Flask, container: Container) -> None:
    @app.route("/dashboard", endpoint="dashboard")
    @login_required
    def dashboard(principal: Principal):
        try:
            employee = container.employee_service.get(principal.employee_id)
        except DomainError as e:
            flash(str(e), "danger")
            return redirect(url_for("logout"))

        today_record = container.attendance_service.today(principal)
        pending_leaves = []
        if principal.is_hr or principal.is_manager:
            # Do not block the dashboard if the approvals panel fails.
            try:
                pending_leaves = container.leave_service.list_pending(principal)
            except DomainError:
                logger.warning("Could not load pending leaves for user %s", principal.user_id)

        return render_template(
            "dashboard.html",
            current_user=principal,
            employee=employee,
            today_record=today_record,
            pending_leaves=pending_leaves,
            active_page="dashboard",
        )

    @app.route("/attendance", endpoint="attendance_today")
    @login_required
    def attendance_today(principal: Principal):
        employee = container.employee_service.get(principal.employee_id)
        return render_template(
            "attendance/today.html",
            current_user=principal,
            employee=employee,
            today_record=container.attendance_service.today(principal),
            recent=container.attendance_service.recent(principal),
            wfh_allowed=employee.wfh.covers(date.today()),
            active_page="attendance",
        )

    @app.route("/api/attendance/punch-in", methods=["POST"], endpoint="api_punch_in")
    @login_required
    @json_endpoint
    def api_punch_in(principal: Principal):
        data = json_payload()
        lat, lng = coordinates(data)
        record = container.attendance_service.punch_in(principal, lat=lat, lng=lng)
        return json_ack(True, "Punched in successfully", punch_in=record.punch_in.isoformat())

    @app.route("/api/attendance/wfh-punch-in", methods=["POST"], endpoint="api_wfh_punch_in")
    @login_required
    @json_endpoint
    def api_wfh_punch_in(principal: Principal):
        data = json_payload()
        lat, lng = coordinates(data)
        record = container.attendance_service.punch_in(
            principal,
            lat=lat,
            lng=lng,
            work_from_home=True,
            reason=str(data.get("reason") or ""),
        )
        return json_ack(True, "Punched in (Work From Home)", punch_in=record.punch_in.isoformat())

    @app.route("/api/attendance/punch-out", methods=["POST"], endpoint="api_punch_out")
    @login_required
    @json_endpoint
    def api_punch_out(principal: Principal):
        data = json_payload()
        lat, lng = coordinates(data)
        worked = container.attendance_service.punch_out(principal, lat=lat, lng=lng)
        return json_ack(
            True,
            f"Punched out. Worked {worked.work_duration}",
            total_hours=worked.total_hours,
            total_minutes=worked.total_minutes,
            work_duration=worked.work_duration,
        )

    @app.route("/hr/attendance", endpoint="hr_attendance")
    @hr_required
    def hr_attendance(principal: Principal):
        start_s = request.args.get("start")
        end_s = request.args.get("end")
        rows = []
        try:
            start = parse_iso_date(start_s) if start_s else None
            end = parse_iso_date(end_s) if end_s else None
            rows = container.attendance_service.history(principal, start=start, end=end)
        except Exception as e:
            flash_error(e, "loading attendance history")

        return render_template(
            "attendance/history.html",
            current_user=principal,
            rows=rows,
            start=start_s or "",
            end=end_s or "",
            active_page="hr_attendance",
        )
