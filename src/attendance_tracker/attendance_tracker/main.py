from __future__ import annotations

import importlib
import logging
from pathlib import Path

from dotenv import load_dotenv
from flask import Flask, render_template

from config import get_settings_module

from .common import web
from .core.constants import DEFAULT_ACCESS_TOKEN_MINUTES, DEFAULT_EXPORT_TIMEOUT_SECONDS, DEFAULT_RESET_TOKEN_MINUTES
from .database.bootstrap import apply_schema, apply_seed_sql, ensure_demo_admin, list_tables
from .database.connection import DBConfig

from .container import build_container
from .attendance.controller import register as register_attendance
from .functions.controller import register as register_functions
from .reports.controller import register as register_reports
from .students.controller import register as register_students
from .users.controller import register as register_users

logger = logging.getLogger(__name__)

REPO_ROOT = Path(__file__).resolve().parents[3]


def _configure_logging(level_name: str) -> None:
    logging.basicConfig(
        level=getattr(logging, (level_name or "INFO").upper(), logging.INFO),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )
    # Request lines are noise next to the app's own log.
    logging.getLogger("werkzeug").setLevel(logging.WARNING)


def create_app() -> Flask:
    load_dotenv(override=False)
    app = Flask(__name__, template_folder="../../../templates")

    settings_module = get_settings_module()
    settings = importlib.import_module(settings_module)
    _configure_logging(getattr(settings, "LOG_LEVEL", "INFO"))

    app.secret_key = getattr(settings, "SECRET_KEY")
    db_config = getattr(settings, "DB_CONFIG")
    app.config["DEBUG"] = bool(getattr(settings, "DEBUG", False))
    app.config["TESTING"] = bool(getattr(settings, "TESTING", False))
    app.config["STUDENT_REPORT_PASSWORD"] = getattr(settings, "STUDENT_REPORT_PASSWORD", "")

    config = DBConfig.from_mapping(db_config)
    logger.info(
        "settings=%s db=%s@%s:%s/%s", settings_module, config.user, config.host, config.port, config.database
    )

    if bool(getattr(settings, "AUTO_INIT_DB", False)):
        apply_schema(config, schema_path=REPO_ROOT / "database" / "schema.sql")
        logger.info("schema ready (tables=%s)", len(list_tables(config)))
    if bool(getattr(settings, "AUTO_SEED_DB", False)):
        apply_seed_sql(config, seed_path=REPO_ROOT / "database" / "seed.sql")
        ensure_demo_admin(config)
        logger.info("demo seed ready")

    container = build_container(
        db_config=db_config,
        secret_key=app.secret_key,
        sheets_url=getattr(settings, "GOOGLE_SHEETS_WEB_APP_URL", ""),
        export_timeout=float(getattr(settings, "EXPORT_TIMEOUT_SECONDS", DEFAULT_EXPORT_TIMEOUT_SECONDS)),
        access_ttl_minutes=int(getattr(settings, "ACCESS_TOKEN_TTL_MINUTES", DEFAULT_ACCESS_TOKEN_MINUTES)),
        reset_ttl_minutes=int(getattr(settings, "PASSWORD_RESET_TTL_MINUTES", DEFAULT_RESET_TOKEN_MINUTES)),
    )
    app.extensions["attendance_tracker"] = container

    web.install(app, container.auth_service.refresh)
    register_users(app, container)
    register_attendance(app, container)
    register_students(app, container)
    register_reports(app, container)
    register_functions(app, container)

    @app.errorhandler(404)
    def not_found(_e):
        return render_template("404.html"), 404

    return app
