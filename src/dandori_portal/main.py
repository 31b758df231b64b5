from __future__ import annotations

import importlib
import logging
from datetime import timedelta
from typing import Optional

from dotenv import load_dotenv
from flask import Flask

from config import get_settings_module

from .assets.controller import register as register_assets
from .attendance.controller import register as register_attendance
from .billing.cli import register as register_billing_cli
from .billing.controller import register as register_billing
from .common.logging_config import configure_logging
from .common.responses import register_error_handlers
from .common.serialization import PortalJSONProvider
from .container import build_container
from .database.bootstrap import init_schema, seed_demo
from .database.extension import db
from .leave.controller import register as register_leave
from .notifications.controller import register as register_notifications
from .organization.controller import register as register_organization
from .pages.controller import register as register_pages
from .payroll.controller import register as register_payroll
from .payroll.master_controller import register as register_payroll_master
from .saas.controller import register as register_saas
from .tenants.controller import register as register_tenants
from .users.controller import register as register_users
from .workflow.controller import register as register_workflow
from .year_end.controller import register as register_year_end

logger = logging.getLogger(__name__)


def create_app(settings_module: Optional[str] = None) -> Flask:
    load_dotenv(override=False)
    app = Flask(__name__)
    app.json = PortalJSONProvider(app)

    settings_module = settings_module or get_settings_module()
    settings = importlib.import_module(settings_module)
    app.config.from_object(settings)
    app.secret_key = getattr(settings, "SECRET_KEY")
    app.config["DEBUG"] = bool(getattr(settings, "DEBUG", False))
    app.config["SQLALCHEMY_TRACK_MODIFICATIONS"] = False
    app.permanent_session_lifetime = timedelta(days=int(getattr(settings, "SESSION_DAYS", 7)))

    configure_logging(getattr(settings, "LOG_LEVEL", "INFO"))
    logger.debug("settings=%s db=%s", settings_module, app.config["SQLALCHEMY_DATABASE_URI"].split("@")[-1])

    db.init_app(app)
    with app.app_context():
        if getattr(settings, "AUTO_INIT_DB", False):
            tables = init_schema(db, db_config=getattr(settings, "DB_CONFIG", None))
            logger.info("Schema ready (tables=%d)", len(tables))
        if getattr(settings, "AUTO_SEED_DB", False):
            seed_demo(db)

    container = build_container(db=db, config=app.config)
    app.extensions["dandori_container"] = container

    register_users(app, container)
    register_tenants(app, container)
    register_organization(app, container)
    register_notifications(app, container)
    register_attendance(app, container)
    register_workflow(app, container)
    register_leave(app, container)
    register_payroll_master(app, container)
    register_payroll(app, container)
    register_year_end(app, container)
    register_assets(app, container)
    register_saas(app, container)
    register_billing(app, container)
    register_billing_cli(app, container)
    register_pages(app, container)
    register_error_handlers(app)

    return app
