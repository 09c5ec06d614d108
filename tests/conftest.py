"""
Shared pytest fixtures for task-service tests.

Provides the Flask application, test client, database session, tenant
rows and reusable task factories used by the unit, integration,
resilience and contract suites.

Key SDET Concepts Demonstrated:
- Session-scoped vs function-scoped fixtures for performance and isolation
- Factory pattern (task_factory) for flexible test-data creation
- Fixture teardown / cleanup to prevent test pollution
"""

from __future__ import annotations

import os
from datetime import date, datetime, timedelta, timezone
from types import SimpleNamespace

import pytest
from faker import Faker

os.environ["FLASK_ENV"] = "testing"

from todo_app import create_app, db
from todo_app.database import close_pool
from todo_app.models import Account, Task, TaskPriority, TaskStatus, User

fake = Faker()


@pytest.fixture(scope="session")
def app():
    """
    Provide the Flask application instance for the entire test session.

    Creates the app once using the 'testing' configuration and disposes
    the connection pool when the session ends.
    """
    application = create_app("testing")
    yield application
    close_pool(application)


@pytest.fixture(scope="function")
def client(app):
    """
    Provide a Flask test client scoped to a single test function.

    A new test client is created for every test to ensure complete HTTP
    isolation between tests.
    """
    with app.test_client() as test_client:
        yield test_client


@pytest.fixture(scope="function")
def db_session(app):
    """
    Provide a clean database session for each test function.

    Creates all tables before the test, yields the db instance for use,
    then rolls back any uncommitted changes and drops all tables to
    guarantee a pristine state for the next test.
    """
    with app.app_context():
        db.create_all()
        yield db
        db.session.rollback()
        db.drop_all()


@pytest.fixture
def tenant(db_session) -> SimpleNamespace:
    """
    Create two accounts and three users.

    ``owner`` and ``teammate`` share account 1; ``outsider`` belongs to
    account 2.  Most tests act as ``owner``.
    """
    account = Account(id=1, name=fake.company())
    other_account = Account(id=2, name=fake.company())
    owner = User(id=1, account_id=1, username=fake.user_name())
    teammate = User(id=2, account_id=1, username=fake.user_name())
    outsider = User(id=3, account_id=2, username=fake.user_name())
    db_session.session.add_all([account, other_account])
    db_session.session.flush()
    db_session.session.add_all([owner, teammate, outsider])
    db_session.session.commit()
    return SimpleNamespace(
        account_id=1,
        other_account_id=2,
        owner_id=1,
        teammate_id=2,
        outsider_id=3,
    )


@pytest.fixture
def owner_query(tenant) -> dict[str, int]:
    """Query-string parameters identifying the owner."""
    return {"idAccount": tenant.account_id, "idUser": tenant.owner_id}


@pytest.fixture
def task_factory(db_session, tenant):
    """
    Factory fixture that inserts Task rows directly into the store.

    Returns a callable ``_create_task(**kwargs)`` with sensible defaults
    (Faker titles, owner of account 1).  Rows bypass the rule engine so
    tests can build states the API would refuse, such as overdue tasks.
    """

    def _create_task(
        *,
        account_id: int = 1,
        user_id: int = 1,
        title: str | None = None,
        description: str = "",
        priority: int = TaskPriority.MEDIUM,
        status: int = TaskStatus.PENDING,
        due_date: date | None = None,
        created_at: datetime | None = None,
        deleted: bool = False,
    ) -> Task:
        now = created_at or datetime.now(timezone.utc)
        task = Task(
            account_id=account_id,
            user_id=user_id,
            title=title or fake.unique.sentence(nb_words=4)[:100],
            description=description,
            priority=int(priority),
            status=int(status),
            due_date=due_date,
            created_at=now,
            updated_at=now,
            deleted=deleted,
        )
        db_session.session.add(task)
        db_session.session.commit()
        return task

    return _create_task


@pytest.fixture
def sample_task(task_factory) -> Task:
    """Create a single pending Medium-priority task owned by the owner."""
    return task_factory(
        title="Sample Task",
        description="This is a sample task for testing",
    )


@pytest.fixture
def ordering_tasks(task_factory) -> dict[str, Task]:
    """
    Create a fixed set of six tasks spanning every priority.

    The Medium group mixes a dated task (created first) with two undated
    ones, so it only sorts correctly when undated tasks go last.

    Expected listing order:
        high_soon, high_later, medium_dated, medium_no_due_new,
        medium_no_due_old, low_soon
    """
    today = datetime.now(timezone.utc).date()
    base = datetime.now(timezone.utc) - timedelta(days=1)
    return {
        "low_soon": task_factory(
            title="Low soon",
            priority=TaskPriority.LOW,
            due_date=today,
            created_at=base,
        ),
        "medium_dated": task_factory(
            title="Medium with due date",
            priority=TaskPriority.MEDIUM,
            due_date=today + timedelta(days=3),
            created_at=base - timedelta(hours=1),
        ),
        "medium_no_due_old": task_factory(
            title="Medium without due date (old)",
            priority=TaskPriority.MEDIUM,
            created_at=base,
        ),
        "medium_no_due_new": task_factory(
            title="Medium without due date (new)",
            priority=TaskPriority.MEDIUM,
            created_at=base + timedelta(hours=2),
        ),
        "high_later": task_factory(
            title="High later",
            priority=TaskPriority.HIGH,
            due_date=today + timedelta(days=7),
            created_at=base + timedelta(hours=3),
        ),
        "high_soon": task_factory(
            title="High soon",
            priority=TaskPriority.HIGH,
            due_date=today + timedelta(days=1),
            created_at=base,
        ),
    }


@pytest.fixture
def valid_task_data(tenant) -> dict:
    """Provide a complete, valid create payload for the owner."""
    return {
        "idAccount": tenant.account_id,
        "idUser": tenant.owner_id,
        "title": "Test Task",
        "description": "This is a test task description",
        "priority": int(TaskPriority.HIGH),
        "dueDate": (datetime.now(timezone.utc).date() + timedelta(days=7)).isoformat(),
    }


@pytest.fixture
def minimal_task_data(tenant) -> dict:
    """Provide the smallest valid create payload (tenant + title)."""
    return {
        "idAccount": tenant.account_id,
        "idUser": tenant.owner_id,
        "title": "Minimal Task",
    }
