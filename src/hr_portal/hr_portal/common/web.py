"""Route helpers shared by the feature controllers.

Views decorated with :func:`login_required` / :func:`roles_required` receive the
resolved :class:`Principal` as their first positional argument.
"""
from __future__ import annotations

import logging
from functools import wraps

from flask import flash, jsonify, redirect, render_template, request, session, url_for

from ..core.enums import Role
from ..core.exceptions import DomainError
from ..storage.file_storage import Upload
from ..users.principal import Principal
from .validators import optional_float

logger = logging.getLogger(__name__)


def _wants_json() -> bool:
    return request.is_json or request.path.startswith("/api/")


def json_ack(success: bool, message: str | None = None, status: int = 200, **extra):
    body = {"success": success}
    if message is not None:
        body["message"] = message
    body.update(extra)
    return jsonify(body), status


def render_forbidden(principal: Principal | None = None):
    return render_template("403.html", current_user=principal), 403


def login_required(view):
    @wraps(view)
    def wrapper(*args, **kwargs):
        principal = Principal.from_session(session)
        if principal is None:
            if _wants_json():
                return json_ack(False, "Unauthorized", 401)
            flash("Please log in to continue.", "warning")
            return redirect(url_for("login"))
        return view(principal, *args, **kwargs)

    return wrapper


def roles_required(*roles: Role):
    allowed = frozenset(roles)

    def decorator(view):
        @wraps(view)
        def wrapper(*args, **kwargs):
            principal = Principal.from_session(session)
            if principal is None:
                if _wants_json():
                    return json_ack(False, "Unauthorized", 401)
                return redirect(url_for("login"))
            if principal.role not in allowed:
                if _wants_json():
                    return json_ack(False, "Access denied", 403)
                return render_forbidden(principal)
            return view(principal, *args, **kwargs)

        return wrapper

    return decorator


hr_required = roles_required(Role.HR)


def json_endpoint(view):
    """Translate domain errors raised by a JSON view into `{success, message}` acks."""

    @wraps(view)
    def wrapper(*args, **kwargs):
        try:
            return view(*args, **kwargs)
        except DomainError as e:
            return json_ack(False, str(e), e.status_code)
        except Exception:
            logger.exception("Unhandled error in %s", request.path)
            return json_ack(False, "Server error", 500)

    return wrapper


def json_payload() -> dict:
    """Body of a JSON request, falling back to form fields."""
    data = request.get_json(silent=True)
    if isinstance(data, dict):
        return data
    return request.form.to_dict()


def coordinates(data: dict) -> tuple:
    """(lat, lng) from a request payload; either may be None."""
    return optional_float(data.get("lat")), optional_float(data.get("lng"))


def upload_from_request(field_name: str) -> Upload | None:
    storage = request.files.get(field_name)
    if storage is None or not storage.filename:
        return None
    return Upload(data=storage.read(), content_type=storage.mimetype or "", filename=storage.filename)


def flash_error(e: Exception, what: str) -> None:
    """Flash a domain error as-is; log anything else and flash a generic message."""
    if isinstance(e, DomainError):
        flash(str(e), "danger")
        return
    logger.exception("Unexpected error while %s", what)
    flash(f"System error while {what}", "danger")
