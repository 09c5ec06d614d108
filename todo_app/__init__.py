"""
Task Service Flask Application Factory.

Provides the ``create_app`` factory function that assembles the
multi-tenant task service.  The factory pattern allows multiple
application instances with different configurations (development,
testing, production) to coexist in the same process.

The service registers one blueprint:
  * **api_bp** -- JSON REST endpoints mounted at ``/api/v1/internal``.

Key Concepts Demonstrated:
- Application factory pattern (``create_app``)
- SQLAlchemy integration with Flask via ``flask_sqlalchemy``
- Request-scoped sessions drawn from a process-wide connection pool
"""

from __future__ import annotations

import logging
import os
from pathlib import Path

from flask import Flask
from flask_sqlalchemy import SQLAlchemy

from config import get_config

db = SQLAlchemy()

logging.basicConfig(
    level=os.environ.get("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


def _ensure_sqlite_db_parent_exists(database_uri: str) -> None:
    """Create parent directories for file-based SQLite URIs when missing."""
    sqlite_prefix = "sqlite:///"
    if not database_uri.startswith(sqlite_prefix):
        return

    sqlite_path = database_uri[len(sqlite_prefix) :].split("?", 1)[0]
    if sqlite_path == ":memory:":
        return

    db_parent = Path(sqlite_path).parent
    db_parent.mkdir(parents=True, exist_ok=True)


def create_app(config_name: str | None = None) -> Flask:
    """
    Create and configure the task service application.

    Instantiates the Flask app, loads the appropriate configuration object,
    initialises extensions (SQLAlchemy), registers the API blueprint and
    the session teardown hook, and ensures that all database tables exist.

    Args:
        config_name: Optional configuration environment name
            (``"development"``, ``"testing"``, ``"production"``).  When *None*,
            the value is read from the ``FLASK_ENV`` environment variable,
            defaulting to ``"development"``.

    Returns:
        A fully configured Flask application instance ready to serve requests.
    """
    app = Flask(__name__, instance_relative_config=True)
    config_class = get_config(config_name)
    app.config.from_object(config_class)

    logger.info("Creating task service app with config: %s", config_class.__name__)

    os.makedirs(app.instance_path, exist_ok=True)
    _ensure_sqlite_db_parent_exists(app.config.get("SQLALCHEMY_DATABASE_URI", ""))

    db.init_app(app)

    from .database import init_session_teardown
    from .routes.api import api_bp

    init_session_teardown(app)

    # Every task endpoint lives under the versioned internal prefix.
    app.register_blueprint(api_bp, url_prefix="/api/v1/internal")

    with app.app_context():
        db.create_all()
        logger.info("Task service database tables created")

    return app
