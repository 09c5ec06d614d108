"""
Configuration Classes for the Task Service.

Centralises all environment-dependent settings (database URI, connection
pool sizing, retry hints) into a hierarchy of configuration classes. The
base ``Config`` class defines sensible development defaults, while
subclasses override only what differs per environment.

Key Concepts Demonstrated:
- Class-based configuration with inheritance
- Environment-variable overrides for twelve-factor app compliance
- Bounded connection pool settings shared by every profile
"""

from __future__ import annotations

import os
from pathlib import Path

BASE_DIR = Path(__file__).resolve().parent


def _env_int(name: str, default: int) -> int:
    """Read an integer environment variable, falling back to ``default``."""
    raw_value = os.environ.get(name, "").strip()
    if not raw_value:
        return default
    try:
        return int(raw_value)
    except ValueError as exc:
        raise RuntimeError(f"Environment variable {name} must be an integer.") from exc


def _pool_options(*, pool_timeout: int) -> dict:
    """Build SQLAlchemy engine options for a bounded connection pool."""
    return {
        "pool_pre_ping": True,
        "pool_size": _env_int("DB_POOL_SIZE", 10),
        "max_overflow": _env_int("DB_MAX_OVERFLOW", 0),
        "pool_timeout": _env_int("DB_POOL_TIMEOUT", pool_timeout),
    }


class Config:
    """
    Base configuration with development-safe defaults.

    All settings can be overridden by environment variables so that the
    same code-base can serve any environment by simply changing the
    environment.

    Attributes:
        SECRET_KEY: Flask signing key.
        SQLALCHEMY_TRACK_MODIFICATIONS: Disabled to save memory.
        SQLALCHEMY_DATABASE_URI: Database connection string (default: local
            SQLite file).
        SQLALCHEMY_ENGINE_OPTIONS: Pool sizing. When every connection is
            checked out, callers wait ``pool_timeout`` seconds and then get
            a ``TimeoutError`` instead of hanging.
        STORE_RETRY_AFTER_SECONDS: Value of the ``Retry-After`` header sent
            with 503 responses when the store is unavailable.
    """

    SECRET_KEY: str = os.environ.get(
        "SECRET_KEY", "task-service-dev-secret-change-in-production"
    )
    SQLALCHEMY_TRACK_MODIFICATIONS: bool = False
    SQLALCHEMY_DATABASE_URI: str = os.environ.get(
        "DATABASE_URL",
        f"sqlite:///{BASE_DIR / 'instance' / 'tasks.db'}",
    )
    SQLALCHEMY_ENGINE_OPTIONS: dict = _pool_options(pool_timeout=30)

    STORE_RETRY_AFTER_SECONDS: int = _env_int("STORE_RETRY_AFTER_SECONDS", 5)


class DevelopmentConfig(Config):
    """
    Development environment configuration.

    Enables debug mode for auto-reloading and verbose error pages.
    Inherits all other defaults from ``Config``.
    """

    DEBUG: bool = True
    TESTING: bool = False


class TestingConfig(Config):
    """
    Testing environment configuration.

    Uses an isolated SQLite database so that tests do not pollute
    development data, and a short pool timeout so exhaustion surfaces
    quickly.
    """

    DEBUG: bool = True
    TESTING: bool = True
    SQLALCHEMY_DATABASE_URI: str = os.environ.get(
        "TEST_DATABASE_URL",
        f"sqlite:///{BASE_DIR / 'instance' / 'test_tasks.db'}?check_same_thread=False",
    )
    SQLALCHEMY_ENGINE_OPTIONS: dict = _pool_options(pool_timeout=5)


class ProductionConfig(Config):
    """
    Production environment configuration.

    Disables debug mode and testing flags.  All secrets and URIs should
    be supplied exclusively through environment variables in production.
    """

    DEBUG: bool = False
    TESTING: bool = False


config = {
    "development": DevelopmentConfig,
    "testing": TestingConfig,
    "production": ProductionConfig,
    "default": DevelopmentConfig,
}


def get_config(env: str | None = None) -> type[Config]:
    """
    Look up and return the configuration class for the given environment.

    Args:
        env: Environment name (``"development"``, ``"testing"``,
            ``"production"``).  When ``None``, falls back to the
            ``FLASK_ENV`` environment variable, defaulting to
            ``"development"``.

    Returns:
        The configuration class (not an instance) corresponding to the
        requested environment.
    """
    if env is None:
        env = os.environ.get("FLASK_ENV", "development")
    return config.get(env, config["default"])
