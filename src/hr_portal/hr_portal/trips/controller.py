from __future__ import annotations

from flask import Flask, flash, redirect, render_template, request, url_for

from ..common.datetime_utils import parse_iso_date
from ..common.validators import require_int
from ..common.web import (
    coordinates,
    flash_error,
    hr_required,
    json_ack,
    json_endpoint,
    json_payload,
    login_required,
    render_forbidden,
)
from ..core.enums import LocationType
from ..core.exceptions import AuthorizationError, DomainError, ValidationError
from ..container import Container
from ..users.principal import Principal


def _location_type(value) -> LocationType:
    if not value:
        return LocationType.PING
    try:
        return LocationType(value)
    except ValueError:
        raise ValidationError("Invalid location type")


def register(app: Flask, container: Container) -> None:
    @app.route("/trips", endpoint="my_trips")
    @login_required
    def my_trips(principal: Principal):
        return render_template(
            "trips/my_trips.html",
            current_user=principal,
            trips=container.trip_service.list_mine(principal),
            active_page="trips",
        )

    @app.route("/trips/request", methods=["GET", "POST"], endpoint="request_trip")
    @login_required
    def request_trip(principal: Principal):
        if request.method == "POST":
            try:
                dest_lat, dest_lng = coordinates(
                    {"lat": request.form.get("dest_lat"), "lng": request.form.get("dest_lng")}
                )
                container.trip_service.request(
                    principal,
                    source=request.form.get("source", ""),
                    destination=request.form.get("destination", ""),
                    purpose=request.form.get("purpose", ""),
                    start_date=parse_iso_date(request.form.get("start_date", "")),
                    end_date=parse_iso_date(request.form.get("end_date", "")),
                    estimated_cost=request.form.get("estimated_cost"),
                    dest_lat=dest_lat,
                    dest_lng=dest_lng,
                )
                flash("Trip request submitted.", "success")
                return redirect(url_for("my_trips"))
            except Exception as e:
                flash_error(e, "requesting trip")

        return render_template("trips/request.html", current_user=principal, active_page="trips")

    @app.route("/api/trips/<int:trip_id>/start", methods=["POST"], endpoint="api_start_trip")
    @login_required
    @json_endpoint
    def api_start_trip(principal: Principal, trip_id: int):
        lat, lng = coordinates(json_payload())
        container.trip_service.start(principal, trip_id, lat=lat, lng=lng)
        return json_ack(True, "Trip started", redirect=url_for("my_trips"))

    @app.route("/trips/<int:trip_id>/end", methods=["POST"], endpoint="end_trip")
    @login_required
    def end_trip(principal: Principal, trip_id: int):
        try:
            container.trip_service.end(principal, trip_id)
            flash("Trip completed.", "success")
        except Exception as e:
            flash_error(e, "ending trip")
        return redirect(url_for("my_trips"))

    @app.route("/trips/<int:trip_id>/monitor", endpoint="trip_monitor")
    @login_required
    def trip_monitor(principal: Principal, trip_id: int):
        try:
            trip, day_number, logs = container.trip_service.monitor(principal, trip_id)
        except DomainError:
            return redirect(url_for("my_trips"))
        return render_template(
            "trips/monitor.html",
            current_user=principal,
            trip=trip,
            day_number=day_number,
            logs=logs,
            active_page="trips",
        )

    @app.route("/api/trips/<int:trip_id>/log", methods=["POST"], endpoint="api_trip_log")
    @login_required
    @json_endpoint
    def api_trip_log(principal: Principal, trip_id: int):
        data = json_payload()
        lat, lng = coordinates(data)
        container.trip_service.log_location(
            principal, trip_id, lat=lat, lng=lng, location_type=_location_type(data.get("type"))
        )
        return json_ack(True)

    @app.route("/api/trips/<int:trip_id>/activity", methods=["POST"], endpoint="api_trip_activity")
    @login_required
    @json_endpoint
    def api_trip_activity(principal: Principal, trip_id: int):
        data = json_payload()
        lat, lng = coordinates(data)
        container.trip_service.log_activity(
            principal,
            trip_id,
            lat=lat,
            lng=lng,
            note=str(data.get("note") or ""),
            address=str(data.get("address") or ""),
        )
        return json_ack(True)

    @app.route("/api/trips/<int:trip_id>/start-day", methods=["POST"], endpoint="api_trip_start_day")
    @login_required
    @json_endpoint
    def api_trip_start_day(principal: Principal, trip_id: int):
        lat, lng = coordinates(json_payload())
        container.trip_service.start_day(principal, trip_id, lat=lat, lng=lng)
        return json_ack(True)

    @app.route("/api/trips/<int:trip_id>/end-day", methods=["POST"], endpoint="api_trip_end_day")
    @login_required
    @json_endpoint
    def api_trip_end_day(principal: Principal, trip_id: int):
        data = json_payload()
        lat, lng = coordinates(data)
        container.trip_service.end_day(
            principal, trip_id, lat=lat, lng=lng, tasks_done=str(data.get("tasks_done") or "")
        )
        return json_ack(True)

    @app.route("/api/trips/<int:trip_id>/update-log", methods=["POST"], endpoint="api_trip_update_log")
    @login_required
    @json_endpoint
    def api_trip_update_log(principal: Principal, trip_id: int):
        data = json_payload()
        container.trip_service.update_log(
            principal,
            trip_id,
            log_id=require_int(data.get("log_id"), "Log"),
            tasks_done=str(data.get("tasks_done") or ""),
        )
        return json_ack(True)

    @app.route("/trips/<int:trip_id>/track", endpoint="track_trip")
    @login_required
    def track_trip(principal: Principal, trip_id: int):
        try:
            track = container.trip_service.track(principal, trip_id)
        except AuthorizationError:
            return render_forbidden(principal)
        except DomainError as e:
            flash(str(e), "warning")
            return redirect(url_for("dashboard"))
        return render_template("trips/track.html", current_user=principal, track=track)

    @app.route("/hr/trips", endpoint="hr_trips")
    @hr_required
    def hr_trips(principal: Principal):
        board = container.trip_service.dashboard(principal)
        return render_template(
            "trips/hr_dashboard.html",
            current_user=principal,
            pending=board.pending,
            active=board.active,
            completed=board.completed,
            active_page="hr_trips",
        )

    @app.route("/hr/trips/<int:trip_id>/<string:action>", methods=["POST"], endpoint="decide_trip")
    @hr_required
    def decide_trip(principal: Principal, trip_id: int, action: str):
        try:
            if action not in {"approve", "reject"}:
                raise ValidationError("Invalid action")
            trip = container.trip_service.decide(
                principal, trip_id, approve=action == "approve", reason=request.form.get("reason", "")
            )
            flash(f"Trip {trip.status.value.lower()}.", "success")
        except Exception as e:
            flash_error(e, "reviewing trip")
        return redirect(url_for("hr_trips"))
