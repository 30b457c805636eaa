from __future__ import annotations

import logging
from datetime import timedelta

from flask import Flask, flash, redirect, render_template, request, session, url_for

from ..common.web import flash_error, login_required
from ..core.constants import DEFAULT_SESSION_DAYS
from ..core.exceptions import AuthenticationError
from ..container import Container
from .principal import Principal

logger = logging.getLogger(__name__)


def register(app: Flask, container: Container) -> None:
    @app.route("/", methods=["GET", "POST"], endpoint="login")
    def login():
        if Principal.from_session(session):
            return redirect(url_for("dashboard"))

        if request.method == "POST":
            username = request.form.get("username", "")
            password = request.form.get("password", "")
            remember = request.form.get("remember_me")

            try:
                principal = container.auth_service.authenticate(username, password)

                session.clear()
                session.permanent = bool(remember)
                app.permanent_session_lifetime = timedelta(days=int(app.config.get("SESSION_DAYS", DEFAULT_SESSION_DAYS)))

                session["user_id"] = principal.user_id
                session["employee_id"] = principal.employee_id
                session["role"] = principal.role.value
                session["name"] = principal.name

                logger.info("User %s logged in (%s)", principal.user_id, principal.role.value)
                flash("Login successful!", "success")
                return redirect(url_for("dashboard"))
            except AuthenticationError as e:
                flash(str(e), "danger")
            except Exception as e:
                logger.exception("Login failed for %r", username)
                if bool(app.config.get("DEBUG", False)):
                    flash(f"System error during login: {e}", "danger")
                else:
                    flash("System error during login", "danger")

        return render_template("login.html")

    @app.route("/logout", endpoint="logout")
    def logout():
        session.clear()
        flash("You have been logged out.", "info")
        return redirect(url_for("login"))

    @app.route("/change-password", methods=["GET", "POST"], endpoint="change_password")
    @login_required
    def change_password(principal: Principal):
        if request.method == "POST":
            try:
                container.auth_service.change_password(
                    principal,
                    current_password=request.form.get("current_password", ""),
                    new_password=request.form.get("new_password", ""),
                    confirm_password=request.form.get("confirm_password", ""),
                )
                flash("Password updated.", "success")
                return redirect(url_for("dashboard"))
            except Exception as e:
                flash_error(e, "changing password")

        return render_template("change_password.html", current_user=principal)
