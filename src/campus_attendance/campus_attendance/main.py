from __future__ import annotations

import importlib
import logging
import os
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from flask import Flask, jsonify
from werkzeug.exceptions import HTTPException

from config import get_settings_module

from .attendance.controller import register as register_attendance
from .audit.controller import register as register_audit
from .container import Container, build_container
from .core.exceptions import (
    AuditInconsistencyError,
    AuthorizationError,
    ConflictError,
    DomainError,
    NotFoundError,
    ValidationError,
    VerificationFailedError,
)
from .core.settings import load_policy
from .database.bootstrap import apply_schema, list_tables
from .escalations.controller import register as register_escalations

logger = logging.getLogger(__name__)

SCHEMA_PATH = Path(__file__).resolve().parents[3] / "database" / "schema.sql"

ERROR_STATUS = (
    (ValidationError, 400),
    (AuthorizationError, 403),
    (NotFoundError, 404),
    (ConflictError, 409),
    (VerificationFailedError, 422),
    (AuditInconsistencyError, 500),
)


def setup_logging(app: Flask, level: str = "INFO") -> None:
    """Configure the package logger; file logging only outside debug/testing."""

    pkg_logger = logging.getLogger(__package__)
    pkg_logger.setLevel(getattr(logging, str(level).upper(), logging.INFO))

    if not app.debug and not app.testing:
        os.makedirs("logs", exist_ok=True)
        file_handler = RotatingFileHandler("logs/campus_attendance.log", maxBytes=1_048_576, backupCount=5)
        file_handler.setFormatter(
            logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s [in %(pathname)s:%(lineno)d]")
        )
        file_handler.setLevel(logging.INFO)
        pkg_logger.addHandler(file_handler)
        app.logger.addHandler(file_handler)
        app.logger.setLevel(logging.INFO)
        app.logger.info("campus-attendance startup")


def _error_body(e: DomainError) -> dict:
    body = {"success": False, "error": type(e).__name__, "message": str(e)}
    if isinstance(e, AuthorizationError) and e.capability:
        body["capability"] = e.capability
    if isinstance(e, VerificationFailedError):
        if e.distance_meters is not None:
            body["distance_meters"] = round(e.distance_meters)
        if e.failed_checks:
            body["failed_checks"] = list(e.failed_checks)
    if isinstance(e, AuditInconsistencyError):
        body["target_type"] = e.target_type
        body["target_id"] = e.target_id
    return body


def register_error_handlers(app: Flask) -> None:
    @app.errorhandler(DomainError)
    def handle_domain_error(e: DomainError):
        for exc_type, status in ERROR_STATUS:
            if isinstance(e, exc_type):
                if status >= 500:
                    logger.error("%s: %s", type(e).__name__, e)
                return jsonify(_error_body(e)), status
        return jsonify(_error_body(e)), 400

    @app.errorhandler(HTTPException)
    def handle_http_error(e: HTTPException):
        return jsonify({"success": False, "error": e.name, "message": e.description}), e.code


def create_app(container: Optional[Container] = None) -> Flask:
    load_dotenv(override=False)
    app = Flask(__name__)

    settings_module = get_settings_module()
    settings = importlib.import_module(settings_module)
    app.secret_key = getattr(settings, "SECRET_KEY")
    db_config = getattr(settings, "DB_CONFIG")
    app.config["DEBUG"] = bool(getattr(settings, "DEBUG", False))
    app.config["TESTING"] = bool(getattr(settings, "TESTING", False))

    setup_logging(app, getattr(settings, "LOG_LEVEL", "INFO"))
    logger.info(
        "settings=%s db=%s@%s:%s/%s",
        settings_module,
        db_config.get("user"),
        db_config.get("host"),
        db_config.get("port", 3306),
        db_config.get("database"),
    )

    if container is None:
        if bool(getattr(settings, "AUTO_INIT_DB", False)):
            apply_schema(db_config, schema_path=SCHEMA_PATH)
            logger.info("schema ready (tables=%s)", len(list_tables(db_config)))
        container = build_container(db_config=db_config, policy=load_policy(settings))

    register_error_handlers(app)
    register_attendance(app, container)
    register_escalations(app, container)
    register_audit(app, container)

    return app
