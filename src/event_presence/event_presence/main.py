from __future__ import annotations

import importlib
import logging
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from flask import Flask

from config import get_settings_module

from .analytics.controller import register as register_analytics
from .attendance.controller import register as register_attendance
from .common.web import register_error_handlers
from .container import Container, build_container
from .database.bootstrap import apply_schema, apply_seed_sql, list_tables
from .events.controller import register as register_events
from .scanlogs.controller import register as register_scanlogs

logger = logging.getLogger(__name__)

REPO_ROOT = Path(__file__).resolve().parents[3]


def container_from_settings(settings) -> Container:
    return build_container(
        db_config=getattr(settings, "DB_CONFIG"),
        qr_secret=getattr(settings, "QR_SECRET"),
        qr_token_leeway_seconds=int(getattr(settings, "QR_TOKEN_LEEWAY_SECONDS", 0)),
        lock_wait_timeout_seconds=int(getattr(settings, "LOCK_WAIT_TIMEOUT_SECONDS")),
        min_checkout_seconds=int(getattr(settings, "SCAN_MIN_CHECKOUT_SECONDS")),
        recheckin_cooldown_seconds=int(getattr(settings, "SCAN_RECHECKIN_COOLDOWN_SECONDS")),
        operator_cache_ttl_seconds=int(getattr(settings, "OPERATOR_CACHE_TTL_SECONDS")),
    )


def create_app(container: Optional[Container] = None) -> Flask:
    load_dotenv(override=False)
    app = Flask(__name__)

    settings_module = get_settings_module()
    settings = importlib.import_module(settings_module)
    logging.basicConfig(
        level=getattr(settings, "LOG_LEVEL", "INFO"),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    app.secret_key = getattr(settings, "SECRET_KEY")
    app.config["DEBUG"] = bool(getattr(settings, "DEBUG", False))
    app.config["TESTING"] = bool(getattr(settings, "TESTING", False))

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
            apply_schema(db_config, schema_path=REPO_ROOT / "database" / "schema.sql")
            logger.info("schema ready (tables=%d)", len(list_tables(db_config)))
        if bool(getattr(settings, "AUTO_SEED_DB", False)):
            apply_seed_sql(db_config, seed_path=REPO_ROOT / "database" / "seed.sql")
            logger.info("demo seed ready")
        container = container_from_settings(settings)

    app.extensions["event_presence"] = container

    register_error_handlers(app)
    register_attendance(app, container)
    register_events(app, container)
    register_scanlogs(app, container)
    register_analytics(app, container)

    return app
