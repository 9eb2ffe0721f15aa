from __future__ import annotations

import importlib
import logging
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from flask import Flask, jsonify

from config import get_settings_module

from .attendance.controller import register as register_attendance
from .container import Container, build_container
from .core.constants import DEFAULT_GRACE_PERIOD_MINUTES, DEFAULT_LOCK_AFTER_DAYS, DEFAULT_MAX_EDIT_HOURS
from .core.exceptions import (
    AuthorizationError,
    NotFoundError,
    PolicyDenied,
    StoreFailure,
    ValidationError,
)
from .database.bootstrap import apply_schema, list_tables
from .events.controller import register as register_events
from .reports.controller import register as register_reports

logger = logging.getLogger(__name__)


def _attendance_settings(settings) -> dict:
    return {
        "grace_period_minutes": getattr(settings, "ATTENDANCE_GRACE_PERIOD_MINUTES", DEFAULT_GRACE_PERIOD_MINUTES),
        "lock_after_days": getattr(settings, "ATTENDANCE_LOCK_AFTER_DAYS", DEFAULT_LOCK_AFTER_DAYS),
        "max_edit_hours": getattr(settings, "MAX_ATTENDANCE_EDIT_HOURS", DEFAULT_MAX_EDIT_HOURS),
        "count_late_as_attended": getattr(settings, "ATTENDANCE_COUNT_LATE_AS_ATTENDED", True),
    }


def register_error_handlers(app: Flask) -> None:
    @app.errorhandler(ValidationError)
    def handle_validation(exc: ValidationError):
        return jsonify({"success": False, "message": str(exc), "errors": [v.as_dict() for v in exc.violations]}), 400

    @app.errorhandler(PolicyDenied)
    def handle_policy(exc: PolicyDenied):
        return jsonify({"success": False, "message": str(exc), "reason": exc.reason.value}), 409

    @app.errorhandler(NotFoundError)
    def handle_not_found(exc: NotFoundError):
        return jsonify({"success": False, "message": str(exc)}), 404

    @app.errorhandler(AuthorizationError)
    def handle_forbidden(exc: AuthorizationError):
        return jsonify({"success": False, "message": str(exc)}), 403

    @app.errorhandler(StoreFailure)
    def handle_store(exc: StoreFailure):
        logger.error("store failure: %s", exc)
        body = {"success": False, "message": "Attendance store unavailable, please retry", "retryable": True}
        if exc.partial is not None:
            body["data"] = exc.partial.as_dict()
        return jsonify(body), 503


def create_app(container: Optional[Container] = None) -> Flask:
    load_dotenv(override=False)
    app = Flask(__name__)

    settings_module = get_settings_module()
    settings = importlib.import_module(settings_module)
    app.secret_key = getattr(settings, "SECRET_KEY")
    app.config["DEBUG"] = bool(getattr(settings, "DEBUG", False))
    app.config["TESTING"] = bool(getattr(settings, "TESTING", False))

    logging.basicConfig(
        level=getattr(settings, "LOG_LEVEL", "INFO"),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )

    if container is None:
        db_config = getattr(settings, "DB_CONFIG")
        logger.info(
            "settings=%s db=%s@%s:%s/%s",
            settings_module,
            db_config.get("user"),
            db_config.get("host"),
            db_config.get("port", 3306),
            db_config.get("database"),
        )
        if bool(getattr(settings, "AUTO_INIT_DB", False)):
            schema_path = Path(__file__).resolve().parents[3] / "database" / "schema.sql"
            apply_schema(db_config, schema_path=schema_path)
            logger.info("schema ready (tables=%d)", len(list_tables(db_config)))
        container = build_container(db_config=db_config, attendance_settings=_attendance_settings(settings))

    register_error_handlers(app)
    register_attendance(app, container)
    register_reports(app, container)
    register_events(app, container)

    return app
