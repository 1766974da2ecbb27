"""
Task Tracker
Flask Application Factory.

Usage:
    from tasktracker import create_app
    app = create_app()           # defaults to APP_ENV or "development"
    app = create_app("testing")  # explicit config
"""

import logging
import os

from flask import Flask
from flask_cors import CORS
from flask_limiter import Limiter
from flask_limiter.util import get_remote_address

from tasktracker.auth import init_auth
from tasktracker.config import config
from tasktracker.middleware.jwt_auth import init_jwt_middleware
from tasktracker.middleware.logging_config import configure_logging
from tasktracker.middleware.rate_limiter import init_rate_limits
from tasktracker.middleware.security_headers import init_security_headers
from tasktracker.middleware.timing import init_request_timing
from tasktracker.models import db
from tasktracker.utils.errors import register_error_handlers

logger = logging.getLogger(__name__)

# ── SQLite FK enforcement (global engine event) ─────────────────────────
from sqlalchemy import event as _sa_event, engine as _sa_engine  # noqa: E402


@_sa_event.listens_for(_sa_engine.Engine, "connect")
def _enable_sqlite_fk(dbapi_conn, connection_record):
    """Enable foreign key enforcement for SQLite connections."""
    if "sqlite" in type(dbapi_conn).__module__:
        cursor = dbapi_conn.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


limiter = Limiter(
    key_func=get_remote_address,
    default_limits=[],                     # no global limit; applied per blueprint
    storage_uri=os.getenv("REDIS_URL", "memory://"),
)


def create_app(config_name=None, config_overrides=None):
    """
    Create and configure the Flask application.

    Args:
        config_name: Configuration environment name.
                     One of: "development", "testing", "production".
                     Defaults to APP_ENV env var, or "development" if unset.
        config_overrides: Optional mapping applied on top of the config
                          class (e.g. a different SQLALCHEMY_DATABASE_URI).

    Returns:
        Configured Flask application instance.
    """
    if config_name is None:
        config_name = os.getenv("APP_ENV", "development")

    app = Flask(__name__, instance_relative_config=True)
    app.config.from_object(config[config_name]())
    if config_overrides:
        app.config.update(config_overrides)

    # ── Structured logging (must be first) ───────────────────────────────
    configure_logging(app)

    # ── Extensions ───────────────────────────────────────────────────────
    db.init_app(app)
    limiter.init_app(app)
    cors_origins = app.config.get("CORS_ORIGINS", "*")
    if cors_origins and cors_origins != "*":
        CORS(app, origins=[o.strip() for o in cors_origins.split(",") if o.strip()])
    else:
        CORS(app)

    # ── Request pipeline ─────────────────────────────────────────────────
    init_request_timing(app)
    init_auth(app)
    init_jwt_middleware(app)
    init_security_headers(app)

    # ── Blueprints ───────────────────────────────────────────────────────
    from tasktracker.blueprints.auth_bp import auth_bp
    from tasktracker.blueprints.health_bp import health_bp
    from tasktracker.blueprints.notification_bp import notification_bp
    from tasktracker.blueprints.project_bp import project_bp
    from tasktracker.blueprints.task_bp import task_bp
    from tasktracker.blueprints.user_bp import user_bp

    app.register_blueprint(health_bp)
    app.register_blueprint(auth_bp)
    app.register_blueprint(project_bp)
    app.register_blueprint(task_bp)
    app.register_blueprint(notification_bp)
    app.register_blueprint(user_bp)

    # ── Error handlers ───────────────────────────────────────────────────
    register_error_handlers(app)

    # ── Models (register tables on db.metadata) ──────────────────────────
    from tasktracker.models import auth as _auth_models                  # noqa: F401
    from tasktracker.models import notification as _notification_models  # noqa: F401
    from tasktracker.models import project as _project_models            # noqa: F401
    from tasktracker.models import task as _task_models                  # noqa: F401

    # ── Auto-create tables (CREATE IF NOT EXISTS) ────────────────────────
    db_uri = app.config["SQLALCHEMY_DATABASE_URI"]
    if db_uri.startswith("sqlite:///") and ":memory:" not in db_uri:
        os.makedirs(app.instance_path, exist_ok=True)
    with app.app_context():
        db.create_all()
        app.logger.debug("db.create_all() completed")

    # ── Rate limiting (after blueprints registered) ──────────────────────
    init_rate_limits(app, limiter)

    logger.info("Task Tracker app created (config=%s)", config_name)
    return app
