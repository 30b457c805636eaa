from __future__ import annotations

import importlib
import logging
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from flask import Flask, render_template, session

from config import get_settings_module

from .attendance.controller import register as register_attendance
from .container import Container, build_container
from .database.bootstrap import apply_schema, apply_seed_sql, ensure_demo_users, list_tables
from .documents.controller import register as register_documents
from .employees.controller import register as register_employees
from .expenses.controller import register as register_expenses
from .leaves.controller import register as register_leaves
from .payroll.controller import register as register_payroll
from .regularizations.controller import register as register_regularizations
from .trips.controller import register as register_trips
from .users.controller import register as register_users
from .users.principal import Principal

logger = logging.getLogger(__name__)

REPO_ROOT = Path(__file__).resolve().parents[3]


def _configure_logging(level_name: str) -> None:
    logging.basicConfig(
        level=getattr(logging, str(level_name).upper(), logging.INFO),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )


def create_app(*, container: Optional[Container] = None) -> Flask:
    load_dotenv(override=False)
    app = Flask(__name__, template_folder="../../../templates", static_folder="../../../static")

    settings_module = get_settings_module()
    settings = importlib.import_module(settings_module)
    _configure_logging(getattr(settings, "LOG_LEVEL", "INFO"))

    app.secret_key = getattr(settings, "SECRET_KEY")
    db_config = getattr(settings, "DB_CONFIG")
    app.config["DEBUG"] = bool(getattr(settings, "DEBUG", False))
    app.config["TESTING"] = bool(getattr(settings, "TESTING", False))
    app.config["SESSION_DAYS"] = int(getattr(settings, "SESSION_DAYS", 7))
    # Leave headroom for multipart overhead; per-file limits are enforced by the upload policies.
    app.config["MAX_CONTENT_LENGTH"] = int(getattr(settings, "MAX_UPLOAD_BYTES", 5 * 1024 * 1024)) * 2

    if container is None:
        logger.info(
            "settings=%s db=%s@%s:%s/%s",
            settings_module,
            db_config.get("user"),
            db_config.get("host"),
            db_config.get("port", 3306),
            db_config.get("database"),
        )

        if bool(getattr(settings, "AUTO_INIT_DB", False)):
            apply_schema(db_config, schema_path=REPO_ROOT / "database" / "schema.sql")
            logger.info("Schema ready (tables=%d)", len(list_tables(db_config)))
        if bool(getattr(settings, "AUTO_SEED_DB", False)):
            apply_seed_sql(db_config, seed_path=REPO_ROOT / "database" / "seed.sql")
            ensure_demo_users(db_config)
            logger.info("Demo seed ready")

        container = build_container(db_config=db_config, settings=settings)

    if container.dispatcher is not None and bool(getattr(settings, "NOTIFICATIONS_ENABLED", False)):
        container.dispatcher.start()

    register_users(app, container)
    register_attendance(app, container)
    register_employees(app, container)
    register_leaves(app, container)
    register_regularizations(app, container)
    register_payroll(app, container)
    register_expenses(app, container)
    register_trips(app, container)
    register_documents(app, container)

    @app.after_request
    def prevent_cache(response):
        response.headers["Cache-Control"] = "no-store, no-cache, must-revalidate, private"
        response.headers["Pragma"] = "no-cache"
        response.headers["Expires"] = "0"
        return response

    @app.errorhandler(404)
    def not_found(_e):
        return render_template("404.html", current_user=Principal.from_session(session)), 404

    @app.errorhandler(500)
    def server_error(e):
        logger.error("Unhandled error: %s", e)
        return render_template("500.html", current_user=Principal.from_session(session)), 500

    return app
