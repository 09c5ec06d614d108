"""
Database Models for the Task Service.

Defines the SQLAlchemy ORM models for tenants (accounts), their users and
the tasks those users own.  Every task is scoped to exactly one
``(account_id, user_id)`` pair, and the table carries the store-level
constraints that back up the rule engine: foreign keys, check constraints
on the enumerations and a partial unique index on the title that ignores
soft-deleted rows.

Key Concepts Demonstrated:
- SQLAlchemy declarative ORM models with typed columns
- ``IntEnum`` enumerations stored as small integers
- Partial (filtered) indexes for soft-delete aware uniqueness
- Timezone-aware datetime handling (UTC normalisation)
"""

from __future__ import annotations

from datetime import date, datetime, timezone
from enum import IntEnum

from sqlalchemy import (
    CheckConstraint,
    ForeignKeyConstraint,
    Index,
    UniqueConstraint,
    false,
    text,
)

from . import db

TITLE_MAX_LENGTH = 100
DESCRIPTION_MAX_LENGTH = 500
TITLE_UNIQUE_INDEX = "uq_task_account_user_title"

# Filters shared by every partial index on the task table.
_NOT_DELETED = {
    "sqlite_where": text("deleted = 0"),
    "postgresql_where": text("NOT deleted"),
}


def utc_now() -> datetime:
    """Return the current timezone-aware UTC datetime."""
    return datetime.now(timezone.utc)


def to_utc_iso(value: datetime | None) -> str | None:
    """
    Convert a datetime to a UTC ISO-8601 string.

    SQLite does not store timezone information, so datetime values read
    back from the database may be *naive* (``tzinfo is None``) even though
    they were written in UTC.  Naive datetimes are assumed UTC and get
    their ``tzinfo`` attached; aware datetimes are converted to UTC before
    formatting.

    Args:
        value: A datetime instance, or ``None``.

    Returns:
        An ISO-8601 formatted string in UTC, or ``None`` if the input was
        ``None``.
    """
    if value is None:
        return None
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    else:
        value = value.astimezone(timezone.utc)
    return value.isoformat()


class TaskPriority(IntEnum):
    """Task priority levels; higher values sort first in listings."""

    LOW = 0
    MEDIUM = 1
    HIGH = 2


class TaskStatus(IntEnum):
    """Task lifecycle statuses."""

    PENDING = 0
    COMPLETED = 1


class Account(db.Model):
    """
    Tenant account.

    All task data is partitioned by account.  The task service never
    manages accounts; it only checks that they exist.
    """

    __tablename__ = "accounts"

    id: int = db.Column(db.Integer, primary_key=True)
    name: str = db.Column(db.String(100), nullable=False)
    created_at: datetime = db.Column(
        db.DateTime(timezone=True), nullable=False, default=utc_now
    )

    def __repr__(self) -> str:
        return f"<Account {self.id}: {self.name}>"


class User(db.Model):
    """
    User belonging to exactly one account.

    The ``(account_id, id)`` unique constraint exists so that tasks can
    reference the pair and the store itself rejects a task whose user
    belongs to another account.
    """

    __tablename__ = "users"
    __table_args__ = (UniqueConstraint("account_id", "id", name="uq_user_account"),)

    id: int = db.Column(db.Integer, primary_key=True)
    account_id: int = db.Column(
        db.Integer, db.ForeignKey("accounts.id"), nullable=False, index=True
    )
    username: str = db.Column(db.String(80), nullable=False)
    created_at: datetime = db.Column(
        db.DateTime(timezone=True), nullable=False, default=utc_now
    )

    def __repr__(self) -> str:
        return f"<User {self.id}@{self.account_id}: {self.username}>"


class Task(db.Model):
    """
    Task owned by a single user of a single account.

    Attributes:
        id: Auto-incrementing surrogate key (``idTask`` on the wire).
        account_id: Owning tenant.
        user_id: Owning user; must belong to ``account_id``.
        title: Short summary, unique per owner among non-deleted tasks.
        description: Longer text, empty string when not given.
        priority: See ``TaskPriority``.
        due_date: Optional calendar date.
        status: See ``TaskStatus``.
        created_at: Timestamp of task creation (UTC).
        updated_at: Timestamp of the last mutation (UTC).
        deleted: Soft-delete flag.  Deleted rows stay in the table but are
            invisible to every query the service runs.
    """

    __tablename__ = "tasks"
    __table_args__ = (
        ForeignKeyConstraint(
            ["account_id", "user_id"],
            ["users.account_id", "users.id"],
            name="fk_task_user_account",
        ),
        CheckConstraint("priority BETWEEN 0 AND 2", name="chk_task_priority"),
        CheckConstraint("status BETWEEN 0 AND 1", name="chk_task_status"),
        CheckConstraint(
            f"length(title) <= {TITLE_MAX_LENGTH}", name="chk_task_title_length"
        ),
        CheckConstraint(
            f"length(description) <= {DESCRIPTION_MAX_LENGTH}",
            name="chk_task_description_length",
        ),
        Index(
            TITLE_UNIQUE_INDEX,
            "account_id",
            "user_id",
            "title",
            unique=True,
            **_NOT_DELETED,
        ),
        Index("ix_task_account_user", "account_id", "user_id", **_NOT_DELETED),
        Index("ix_task_account_status", "account_id", "status", **_NOT_DELETED),
        Index(
            "ix_task_account_due_date",
            "account_id",
            "due_date",
            sqlite_where=text("deleted = 0 AND due_date IS NOT NULL"),
            postgresql_where=text("NOT deleted AND due_date IS NOT NULL"),
        ),
    )

    id: int = db.Column(db.Integer, primary_key=True)
    account_id: int = db.Column(
        db.Integer, db.ForeignKey("accounts.id", name="fk_task_account"), nullable=False
    )
    user_id: int = db.Column(db.Integer, nullable=False)
    title: str = db.Column(db.String(TITLE_MAX_LENGTH), nullable=False)
    description: str = db.Column(
        db.String(DESCRIPTION_MAX_LENGTH), nullable=False, default="", server_default=""
    )
    priority: int = db.Column(
        db.SmallInteger,
        nullable=False,
        default=int(TaskPriority.MEDIUM),
        server_default=text(str(int(TaskPriority.MEDIUM))),
    )
    due_date: date | None = db.Column(db.Date, nullable=True)
    status: int = db.Column(
        db.SmallInteger,
        nullable=False,
        default=int(TaskStatus.PENDING),
        server_default=text(str(int(TaskStatus.PENDING))),
    )
    created_at: datetime = db.Column(
        db.DateTime(timezone=True), nullable=False, default=utc_now
    )
    updated_at: datetime = db.Column(
        db.DateTime(timezone=True), nullable=False, default=utc_now, onupdate=utc_now
    )
    deleted: bool = db.Column(
        db.Boolean, nullable=False, default=False, server_default=false()
    )

    def __repr__(self) -> str:
        return f"<Task {self.id}: {self.title}>"
