from __future__ import annotations

import importlib
import logging
from pathlib import Path

from dotenv import load_dotenv
from flask import Flask

from config import get_settings_module

from .attendance.controller import register as register_attendance
from .common.http_utils import register_error_handlers
from .common.logging_utils import configure_logging
from .container import Container, build_container_from_settings
from .database.bootstrap import apply_schema, list_tables
from .notifications.controller import register as register_notifications
from .notifications.jobs import build_scheduler

logger = logging.getLogger(__name__)

SCHEMA_PATH = Path(__file__).resolve().parents[3] / "database" / "schema.sql"


def load_settings():
    load_dotenv(override=False)
    settings_module = get_settings_module()
    return settings_module, importlib.import_module(settings_module)


def create_app(container: Container | None = None) -> Flask:
    """Build the Flask app; a prebuilt ``container`` skips database setup."""

    settings_module, settings = load_settings()
    configure_logging(getattr(settings, "LOG_LEVEL", "INFO"))

    app = Flask(__name__)
    app.secret_key = getattr(settings, "SECRET_KEY")
    app.config["DEBUG"] = bool(getattr(settings, "DEBUG", False))
    app.config["TESTING"] = bool(getattr(settings, "TESTING", False))

    db_config = getattr(settings, "DB_CONFIG")
    logger.info(
        "settings=%s db=%s@%s:%s/%s",
        settings_module,
        db_config.get("user"),
        db_config.get("host"),
        db_config.get("port", 3306),
        db_config.get("database"),
    )

    if container is None and getattr(settings, "AUTO_INIT_DB", False):
        apply_schema(db_config, schema_path=SCHEMA_PATH)
        logger.info("Schema ready (tables=%s)", len(list_tables(db_config)))

    container = container or build_container_from_settings(settings)
    app.extensions["shift_attendance"] = container

    register_error_handlers(app)
    register_attendance(app, container)
    register_notifications(app, container)

    if getattr(settings, "SCHEDULER_ENABLED", False):
        scheduler = build_scheduler(container.notification_scheduler, timezone=getattr(settings, "TIMEZONE", None))
        scheduler.start()
        app.extensions["shift_attendance_scheduler"] = scheduler
        logger.info("Notification scheduler started")

    return app
