from __future__ import annotations

import importlib
import logging
from typing import Optional

from dotenv import load_dotenv
from flask import Flask

from config import get_settings_module

from .common.http import register_error_handlers
from .container import Container, build_container
from .database.bootstrap import apply_schema, list_tables

from .payroll.controller import register as register_payroll
from .positions.controller import register as register_positions
from .requests.controller import register as register_requests
from .schedules.controller import register as register_schedules
from .shifts.controller import register as register_shifts
from .vacation.controller import register as register_vacation

logger = logging.getLogger("shift_roster")


def _configure_logging(level_name: str) -> None:
    level = getattr(logging, str(level_name).upper(), logging.INFO)
    if not logging.getLogger().handlers:
        logging.basicConfig(format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    logger.setLevel(level)


def create_app(container: Optional[Container] = None) -> Flask:
    load_dotenv(override=False)
    app = Flask(__name__)

    settings_module = get_settings_module()
    settings = importlib.import_module(settings_module)
    app.secret_key = getattr(settings, "SECRET_KEY")
    app.config["DEBUG"] = bool(getattr(settings, "DEBUG", False))
    app.config["TESTING"] = bool(getattr(settings, "TESTING", False))
    _configure_logging(getattr(settings, "LOG_LEVEL", "INFO"))

    storage = str(getattr(settings, "STORAGE", "mysql")).lower()
    db_config = dict(getattr(settings, "DB_CONFIG", {}))
    logger.info("Starting with settings=%s storage=%s", settings_module, storage)

    if container is None:
        if storage == "mysql" and bool(getattr(settings, "AUTO_INIT_DB", False)):
            apply_schema(db_config)
            logger.info("Schema ready (tables=%d)", len(list_tables(db_config)))

        container = build_container(
            storage=storage,
            db_config=db_config,
            lock_timeout=float(getattr(settings, "LOCK_TIMEOUT_SECONDS", 10)),
        )
    app.extensions["shift_roster"] = container

    register_error_handlers(app)
    register_schedules(app, container)
    register_shifts(app, container)
    register_requests(app, container)
    register_payroll(app, container)
    register_vacation(app, container)
    register_positions(app, container)

    return app
