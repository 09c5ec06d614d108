"""
Task Rule Engine.

Validates and executes the five task operations against the task store.
Every operation checks its preconditions in a fixed order and raises a
``TaskRuleError`` for the first one that fails.  Writes run inside a
single ``unit_of_work`` covering the tenant checks, the uniqueness check
and the mutation itself, so a failure at any point leaves the store
untouched.

The uniqueness pre-check is backed by the partial unique index on the
task table: when two writers race past the check, the loser's flush trips
the index and is reported as ``titleAlreadyExists`` as well.

Key Concepts Demonstrated:
- Fail-fast validation with tagged errors
- Tenant-scoped base query (account + user + not deleted)
- Soft delete that hides rows from every read and uniqueness check
"""

from __future__ import annotations

import logging
from collections.abc import Iterator
from contextlib import contextmanager
from datetime import date, datetime, timezone

from sqlalchemy import Select, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from .database import unit_of_work
from .errors import TaskErrorKind, TaskRuleError
from .models import (
    DESCRIPTION_MAX_LENGTH,
    TITLE_MAX_LENGTH,
    TITLE_UNIQUE_INDEX,
    Account,
    Task,
    TaskPriority,
    TaskStatus,
    User,
    utc_now,
)

logger = logging.getLogger(__name__)

_PRIORITY_VALUES = frozenset(int(p) for p in TaskPriority)
_STATUS_VALUES = frozenset(int(s) for s in TaskStatus)


def utc_today() -> date:
    """Return the current calendar date in UTC."""
    return datetime.now(timezone.utc).date()


# =====================================================================
# Field validation
# =====================================================================


def _fail(kind: TaskErrorKind) -> TaskRuleError:
    logger.info("Task rule violated: %s", kind.value)
    return TaskRuleError(kind)


def _validate_title(title: str | None) -> None:
    if title is None or not title.strip():
        raise _fail(TaskErrorKind.TITLE_REQUIRED)
    if len(title) > TITLE_MAX_LENGTH:
        raise _fail(TaskErrorKind.TITLE_EXCEEDS_MAX_LENGTH)


def _validate_description(description: str | None) -> None:
    if description is not None and len(description) > DESCRIPTION_MAX_LENGTH:
        raise _fail(TaskErrorKind.DESCRIPTION_EXCEEDS_MAX_LENGTH)


def _validate_priority(priority: int | None) -> None:
    if priority is not None and priority not in _PRIORITY_VALUES:
        raise _fail(TaskErrorKind.INVALID_PRIORITY)


def _validate_status(status: int | None) -> None:
    if status is not None and status not in _STATUS_VALUES:
        raise _fail(TaskErrorKind.INVALID_STATUS)


def _validate_due_date(due_date: date | None) -> None:
    # Only checked when the date is written; overdue tasks stay readable.
    if due_date is not None and due_date < utc_today():
        raise _fail(TaskErrorKind.DUE_DATE_IN_PAST)


# =====================================================================
# Store lookups
# =====================================================================


def _ensure_tenant(session: Session, account_id: int, user_id: int) -> None:
    """Require the account to exist and the user to belong to it."""
    if session.scalar(select(Account.id).where(Account.id == account_id)) is None:
        raise _fail(TaskErrorKind.ACCOUNT_DOESNT_EXIST)

    user_stmt = select(User.id).where(User.id == user_id, User.account_id == account_id)
    if session.scalar(user_stmt) is None:
        raise _fail(TaskErrorKind.USER_DOESNT_EXIST)


def _owned_task_query(account_id: int, user_id: int) -> Select:
    """
    Build a base ``select`` over the owner's non-deleted tasks.

    Every read and every existence check goes through this query, so a
    task owned by someone else and a soft-deleted task look exactly like a
    task that never existed.
    """
    return select(Task).where(
        Task.account_id == account_id,
        Task.user_id == user_id,
        Task.deleted.is_(False),
    )


def _find_owned_task(session: Session, account_id: int, user_id: int, task_id: int) -> Task:
    task = session.scalar(_owned_task_query(account_id, user_id).where(Task.id == task_id))
    if task is None:
        raise _fail(TaskErrorKind.TASK_DOESNT_EXIST)
    return task


def _title_taken(
    session: Session,
    account_id: int,
    user_id: int,
    title: str,
    exclude_task_id: int | None = None,
) -> bool:
    stmt = select(Task.id).where(
        Task.account_id == account_id,
        Task.user_id == user_id,
        Task.title == title,
        Task.deleted.is_(False),
    )
    if exclude_task_id is not None:
        stmt = stmt.where(Task.id != exclude_task_id)
    return session.scalar(stmt.limit(1)) is not None


def _violated_constraint(exc: IntegrityError) -> str | None:
    """Return the constraint name reported by drivers that expose one (psycopg)."""
    diag = getattr(exc.orig, "diag", None)
    return getattr(diag, "constraint_name", None)


def _is_title_conflict(exc: IntegrityError) -> bool:
    """Tell a title uniqueness violation apart from other integrity errors."""
    constraint = _violated_constraint(exc)
    if constraint:
        return constraint == TITLE_UNIQUE_INDEX

    message = str(exc.orig).lower()
    if TITLE_UNIQUE_INDEX in message:
        return True
    # SQLite names the columns instead of the index.
    return "unique" in message and "tasks.title" in message


@contextmanager
def _title_conflicts_as_rule_error() -> Iterator[None]:
    """Report a trip of the title unique index as ``titleAlreadyExists``."""
    try:
        yield
    except IntegrityError as exc:
        if _is_title_conflict(exc):
            raise _fail(TaskErrorKind.TITLE_ALREADY_EXISTS) from exc
        raise


def _flush_guarding_title(session: Session) -> None:
    with _title_conflicts_as_rule_error():
        session.flush()


def _update_live_task(session: Session, task_id: int, **values) -> None:
    """
    Write ``values`` to a task only while it is still not deleted.

    The ``deleted`` guard sits in the UPDATE itself, so a delete that
    commits between the lookup and the write turns into
    ``taskDoesntExist`` instead of modifying a deleted row.
    """
    stmt = (
        update(Task)
        .where(Task.id == task_id, Task.deleted.is_(False))
        .values(**values, updated_at=utc_now())
    )
    with _title_conflicts_as_rule_error():
        result = session.execute(stmt)
    if result.rowcount == 0:
        raise _fail(TaskErrorKind.TASK_DOESNT_EXIST)


# =====================================================================
# Operations
# =====================================================================


def create_task(
    session: Session,
    *,
    account_id: int,
    user_id: int,
    title: str,
    description: str | None = None,
    priority: int | None = None,
    due_date: date | None = None,
) -> int:
    """
    Create a pending task for the given owner.

    Args:
        session: Session used for the lookups and the insert.
        account_id: Owning account.
        user_id: Owning user, which must belong to ``account_id``.
        title: Non-blank title of at most 100 characters, unique among
            the owner's non-deleted tasks.
        description: Optional text of at most 500 characters.
        priority: Optional ``TaskPriority`` value, Medium when omitted.
        due_date: Optional date, not earlier than today (UTC).

    Returns:
        The identifier of the new task.

    Raises:
        TaskRuleError: On the first violated rule.
    """
    _validate_title(title)
    _validate_description(description)
    _validate_priority(priority)
    _validate_due_date(due_date)

    with unit_of_work(session):
        _ensure_tenant(session, account_id, user_id)
        if _title_taken(session, account_id, user_id, title):
            raise _fail(TaskErrorKind.TITLE_ALREADY_EXISTS)

        now = utc_now()
        task = Task(
            account_id=account_id,
            user_id=user_id,
            title=title,
            description=description or "",
            priority=int(TaskPriority.MEDIUM) if priority is None else int(priority),
            due_date=due_date,
            status=int(TaskStatus.PENDING),
            deleted=False,
            created_at=now,
            updated_at=now,
        )
        session.add(task)
        _flush_guarding_title(session)
        task_id = task.id

    logger.info(
        "Created task %s for account_id=%s user_id=%s", task_id, account_id, user_id
    )
    return task_id


def list_tasks(
    session: Session,
    *,
    account_id: int,
    user_id: int,
    status: int | None = None,
    priority: int | None = None,
) -> list[Task]:
    """
    List the owner's non-deleted tasks, optionally filtered.

    Results are ordered by priority (High first), then due date (earliest
    first, tasks without a due date last), then creation time (newest
    first).

    Returns:
        A new list on every call.
    """
    _ensure_tenant(session, account_id, user_id)
    _validate_status(status)
    _validate_priority(priority)

    stmt = _owned_task_query(account_id, user_id)
    if status is not None:
        stmt = stmt.where(Task.status == status)
    if priority is not None:
        stmt = stmt.where(Task.priority == priority)

    stmt = stmt.order_by(
        Task.priority.desc(),
        Task.due_date.is_(None),
        Task.due_date.asc(),
        Task.created_at.desc(),
        Task.id.desc(),
    )
    return list(session.scalars(stmt).all())


def get_task(session: Session, *, account_id: int, user_id: int, task_id: int) -> Task:
    """Return one of the owner's non-deleted tasks or raise ``taskDoesntExist``."""
    _ensure_tenant(session, account_id, user_id)
    return _find_owned_task(session, account_id, user_id, task_id)


def update_task(
    session: Session,
    *,
    account_id: int,
    user_id: int,
    task_id: int,
    title: str,
    description: str | None = None,
    priority: int,
    due_date: date | None = None,
    status: int,
) -> int:
    """
    Replace every editable field of an existing task.

    Omitted ``description`` becomes the empty string and omitted
    ``due_date`` clears the date.  ``status`` may move freely between
    Pending and Completed.

    Returns:
        The identifier of the updated task.

    Raises:
        TaskRuleError: On the first violated rule.
    """
    _validate_title(title)
    _validate_description(description)
    if priority is None:
        raise _fail(TaskErrorKind.INVALID_PRIORITY)
    _validate_priority(priority)
    if status is None:
        raise _fail(TaskErrorKind.INVALID_STATUS)
    _validate_status(status)
    _validate_due_date(due_date)

    with unit_of_work(session):
        _ensure_tenant(session, account_id, user_id)
        _find_owned_task(session, account_id, user_id, task_id)
        if _title_taken(session, account_id, user_id, title, exclude_task_id=task_id):
            raise _fail(TaskErrorKind.TITLE_ALREADY_EXISTS)

        _update_live_task(
            session,
            task_id,
            title=title,
            description=description or "",
            priority=int(priority),
            due_date=due_date,
            status=int(status),
        )

    logger.info("Updated task %s for account_id=%s user_id=%s", task_id, account_id, user_id)
    return task_id


def delete_task(session: Session, *, account_id: int, user_id: int, task_id: int) -> int:
    """
    Soft-delete a task.

    The row stays in the table with ``deleted`` set; afterwards it is
    invisible to every read, so deleting it again raises
    ``taskDoesntExist``.
    """
    with unit_of_work(session):
        _ensure_tenant(session, account_id, user_id)
        _find_owned_task(session, account_id, user_id, task_id)
        _update_live_task(session, task_id, deleted=True)

    logger.info("Deleted task %s for account_id=%s user_id=%s", task_id, account_id, user_id)
    return task_id
