from __future__ import annotations

import importlib
import logging

from dotenv import load_dotenv
from flask import Flask

from .config import get_settings_module
from .container import build_container
from .database.bootstrap import apply_schema, list_tables
from .database.connection import DBConfig
from .graphql.controller import register as register_graphql
from .logging_config import setup_logging
from .notifications.email_notifier import build_notifier

logger = logging.getLogger(__name__)


def create_app() -> Flask:
    load_dotenv(override=False)
    app = Flask(__name__)

    settings_module = get_settings_module()
    settings = importlib.import_module(settings_module)
    setup_logging(getattr(settings, "LOG_LEVEL", "INFO"))

    app.secret_key = getattr(settings, "SECRET_KEY")
    app.config["DEBUG"] = bool(getattr(settings, "DEBUG", False))
    app.config["TESTING"] = bool(getattr(settings, "TESTING", False))
    db_config = getattr(settings, "DB_CONFIG")

    container = build_container(
        db_config=db_config,
        jwt_secret=getattr(settings, "JWT_SECRET"),
        notifier=build_notifier(settings),
        token_days=int(getattr(settings, "JWT_EXPIRES_DAYS", 7)),
        otp_ttl_minutes=int(getattr(settings, "OTP_TTL_MINUTES", 10)),
    )
    logger.info("settings=%s db=%s", settings_module, container.conn.target)

    if bool(getattr(settings, "AUTO_INIT_DB", False)):
        target = DBConfig.from_dict(db_config)
        apply_schema(target)
        logger.info("schema ready (tables=%d)", len(list_tables(target)))

    register_graphql(app, container, settings)

    return app
