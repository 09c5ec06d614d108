"""
Session, transaction and connection-pool helpers.

The Flask-SQLAlchemy engine is the process-wide connection pool: it is
created lazily on first use and disposed explicitly by ``close_pool``.
Sessions are request scoped and handed back to the pool when the app
context is torn down, on success and on error alike.
"""

from __future__ import annotations

import logging
import sqlite3
from collections.abc import Iterator
from contextlib import contextmanager

from flask import Flask
from sqlalchemy import event, text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from . import db

logger = logging.getLogger(__name__)


@event.listens_for(Engine, "connect")
def _enable_sqlite_foreign_keys(dbapi_connection, _connection_record) -> None:
    """SQLite ignores foreign keys unless asked per connection."""
    if isinstance(dbapi_connection, sqlite3.Connection):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


@contextmanager
def unit_of_work(session: Session) -> Iterator[Session]:
    """
    Run a block of reads and writes as one atomic transaction.

    Commits when the block exits normally.  On any exception the
    transaction is rolled back and the original exception is re-raised
    unchanged, so no partial write ever persists.

    Args:
        session: The session whose transaction wraps the block.

    Yields:
        The same session, for convenience.
    """
    try:
        yield session
        session.commit()
    except BaseException as exc:
        session.rollback()
        logger.warning("Transaction rolled back: %s", exc.__class__.__name__)
        raise


def ping_store() -> None:
    """Run a trivial query so connectivity problems surface as errors."""
    db.session.execute(text("SELECT 1"))


def close_pool(app: Flask) -> None:
    """Dispose every engine bound to ``app``, closing pooled connections."""
    with app.app_context():
        for engine in db.engines.values():
            engine.dispose()
    logger.info("Database connection pool closed")


def init_session_teardown(app: Flask) -> None:
    """
    Register a teardown hook that rolls back sessions left mid-transaction.

    Flask-SQLAlchemy removes the scoped session at teardown as well; this
    hook only makes the rollback after a failed request explicit and
    logged.
    """

    @app.teardown_appcontext
    def _rollback_open_transaction(error: BaseException | None) -> None:
        if error is None:
            return
        try:
            if db.session.is_active and db.session.in_transaction():
                db.session.rollback()
                logger.warning("Rolled back open transaction after request error")
        except SQLAlchemyError:
            logger.exception("Failed to roll back session after request error")
