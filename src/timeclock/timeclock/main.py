from __future__ import annotations

import importlib
import logging
import os

from dotenv import load_dotenv
from flask import Flask, jsonify

from config import get_settings_module

from .attendance.controller import register as register_attendance
from .common.http import register_error_handlers
from .compliance.controller import register as register_compliance
from .container import STORAGE_MYSQL, Container, build_container
from .database.bootstrap import apply_schema, list_tables
from .rota.controller import register as register_rota

logger = logging.getLogger(__name__)


def create_app(container: Container | None = None) -> Flask:
    load_dotenv(override=False)

    settings_module = get_settings_module()
    settings = importlib.import_module(settings_module)

    logging.basicConfig(
        level=os.getenv("LOG_LEVEL", getattr(settings, "LOG_LEVEL", "INFO")).upper(),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    app = Flask(__name__)
    app.secret_key = getattr(settings, "SECRET_KEY")
    app.config["DEBUG"] = bool(getattr(settings, "DEBUG", False))
    app.config["TESTING"] = bool(getattr(settings, "TESTING", False))

    db_config = getattr(settings, "DB_CONFIG", None)
    storage = str(getattr(settings, "STORAGE_BACKEND", STORAGE_MYSQL))

    if container is None:
        if storage == STORAGE_MYSQL and bool(getattr(settings, "AUTO_INIT_DB", False)):
            apply_schema(db_config)
            logger.info("Schema ready (tables=%d)", len(list_tables(db_config)))
        container = build_container(db_config=db_config, storage=storage)

    logger.info("Starting timeclock: settings=%s storage=%s", settings_module, storage)

    app.extensions["timeclock"] = container

    register_error_handlers(app)
    register_compliance(app, container)
    register_attendance(app, container)
    register_rota(app, container)

    @app.route("/api/health", methods=["GET"], endpoint="api_health")
    def health():
        return jsonify({"ok": True})

    if bool(getattr(settings, "SCHEDULER_AUTOSTART", False)):
        container.reminder_task.start()

    return app
