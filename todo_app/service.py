"""
Task Service Facade.

Thin adapter between the HTTP controllers and the rule engine.  It takes
typed request objects, forwards them to ``todo_app.rules`` and turns the
ORM rows it gets back into immutable ``TaskEntity`` domain objects.  Rule
errors pass through untouched.

The facade keeps no state of its own beyond an optional session, so one
instance can be shared by the whole process or built per request.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Any

from sqlalchemy.orm import Session

from . import db, rules
from .models import Task, TaskPriority, TaskStatus, to_utc_iso


@dataclass(frozen=True)
class TaskCreateRequest:
    account_id: int
    user_id: int
    title: str
    description: str | None = None
    priority: int | None = None
    due_date: date | None = None


@dataclass(frozen=True)
class TaskListRequest:
    account_id: int
    user_id: int
    status: int | None = None
    priority: int | None = None


@dataclass(frozen=True)
class TaskGetRequest:
    account_id: int
    user_id: int
    task_id: int


@dataclass(frozen=True)
class TaskUpdateRequest:
    account_id: int
    user_id: int
    task_id: int
    title: str
    priority: int
    status: int
    description: str | None = None
    due_date: date | None = None


@dataclass(frozen=True)
class TaskDeleteRequest:
    account_id: int
    user_id: int
    task_id: int


@dataclass(frozen=True)
class TaskEntity:
    """Read-only snapshot of a task, detached from the ORM session."""

    task_id: int
    account_id: int
    user_id: int
    title: str
    description: str
    priority: TaskPriority
    due_date: date | None
    status: TaskStatus
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_model(cls, task: Task) -> TaskEntity:
        return cls(
            task_id=task.id,
            account_id=task.account_id,
            user_id=task.user_id,
            title=task.title,
            description=task.description,
            priority=TaskPriority(task.priority),
            due_date=task.due_date,
            status=TaskStatus(task.status),
            created_at=task.created_at,
            updated_at=task.updated_at,
        )

    def to_dict(self) -> dict[str, Any]:
        """
        Serialise the task to a JSON-safe dictionary using the wire names.

        Enumerations are emitted as their integer values, ``dueDate`` as
        ``YYYY-MM-DD`` and timestamps as UTC ISO-8601 strings.
        """
        return {
            "idTask": self.task_id,
            "idAccount": self.account_id,
            "idUser": self.user_id,
            "title": self.title,
            "description": self.description,
            "priority": int(self.priority),
            "dueDate": self.due_date.isoformat() if self.due_date else None,
            "status": int(self.status),
            "dateCreated": to_utc_iso(self.created_at),
            "dateModified": to_utc_iso(self.updated_at),
        }


class TaskService:
    """
    Pass-through facade over the rule engine.

    Args:
        session: Session to run operations with.  Defaults to the
            request-scoped ``db.session``.
    """

    def __init__(self, session: Session | None = None) -> None:
        self._session = session

    @property
    def session(self) -> Session:
        return self._session if self._session is not None else db.session

    def create_task(self, request: TaskCreateRequest) -> int:
        return rules.create_task(
            self.session,
            account_id=request.account_id,
            user_id=request.user_id,
            title=request.title,
            description=request.description,
            priority=request.priority,
            due_date=request.due_date,
        )

    def list_tasks(self, request: TaskListRequest) -> list[TaskEntity]:
        tasks = rules.list_tasks(
            self.session,
            account_id=request.account_id,
            user_id=request.user_id,
            status=request.status,
            priority=request.priority,
        )
        return [TaskEntity.from_model(task) for task in tasks]

    def get_task(self, request: TaskGetRequest) -> TaskEntity:
        task = rules.get_task(
            self.session,
            account_id=request.account_id,
            user_id=request.user_id,
            task_id=request.task_id,
        )
        return TaskEntity.from_model(task)

    def update_task(self, request: TaskUpdateRequest) -> int:
        return rules.update_task(
            self.session,
            account_id=request.account_id,
            user_id=request.user_id,
            task_id=request.task_id,
            title=request.title,
            description=request.description,
            priority=request.priority,
            due_date=request.due_date,
            status=request.status,
        )

    def delete_task(self, request: TaskDeleteRequest) -> int:
        return rules.delete_task(
            self.session,
            account_id=request.account_id,
            user_id=request.user_id,
            task_id=request.task_id,
        )
