from __future__ import annotations

import importlib
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from flask import Flask, jsonify

from config import get_settings_module

from .attendance.controller import register as register_attendance
from .common.datetime_utils import now_local, to_iso
from .common.logging_config import get_logger, setup_logging
from .common.responses import register_error_handlers
from .companies.controller import register as register_companies
from .container import Container, build_container
from .core.constants import DEFAULT_JWT_EXPIRES_DAYS, DEFAULT_PAGE_LIMIT
from .database.bootstrap import apply_schema, list_tables
from .database.connection import DBConfig
from .offices.controller import register as register_offices
from .service_cards.controller import register as register_service_cards
from .users.controller import register as register_users
from .visits.controller import register as register_visits

logger = get_logger(__name__)

SCHEMA_PATH = Path(__file__).resolve().parents[3] / "database" / "schema.sql"


def create_app(container: Optional[Container] = None) -> Flask:
    """Application factory.

    `container` lets callers (tests) inject services built on other repositories;
    when omitted, the MySQL-backed container is built from the active settings module.
    """
    load_dotenv(override=False)
    app = Flask(__name__)

    settings_module = get_settings_module()
    settings = importlib.import_module(settings_module)
    setup_logging(getattr(settings, "LOG_LEVEL", "INFO"))

    app.secret_key = getattr(settings, "SECRET_KEY")
    app.config["DEBUG"] = bool(getattr(settings, "DEBUG", False))
    app.config["TESTING"] = bool(getattr(settings, "TESTING", False))
    app.json.sort_keys = False

    if container is None:
        db_config = getattr(settings, "DB_CONFIG")
        db = DBConfig.from_mapping(db_config)
        logger.info("Starting with settings=%s db=%s", settings_module, db.describe())

        if bool(getattr(settings, "AUTO_INIT_DB", False)):
            apply_schema(db, schema_path=SCHEMA_PATH)
            logger.info("Schema ready (tables=%d)", len(list_tables(db)))

        container = build_container(
            db_config=db_config,
            jwt_secret=getattr(settings, "JWT_SECRET"),
            jwt_expires_days=int(getattr(settings, "JWT_EXPIRES_DAYS", DEFAULT_JWT_EXPIRES_DAYS)),
            default_page_limit=int(getattr(settings, "DEFAULT_PAGE_LIMIT", DEFAULT_PAGE_LIMIT)),
        )

    register_error_handlers(app)

    @app.route("/", methods=["GET"], endpoint="index")
    def index():
        return jsonify({"message": "Welcome to the EasyDoor API"})

    @app.route("/health", methods=["GET"], endpoint="health")
    def health():
        return jsonify({"status": "OK", "message": "Server is running", "timestamp": to_iso(now_local())})

    register_users(app, container)
    register_companies(app, container)
    register_offices(app, container)
    register_service_cards(app, container)
    register_visits(app, container)
    register_attendance(app, container)

    return app
