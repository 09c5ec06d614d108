"""Transport-level request schemas for the task API."""

from __future__ import annotations

from datetime import date, datetime, timezone
from typing import Annotated, Any

from pydantic import BaseModel, ConfigDict, Field, StrictInt, ValidationError, field_validator

from .models import DESCRIPTION_MAX_LENGTH, TITLE_MAX_LENGTH

# JSON bodies must carry real integers; query strings and path segments
# arrive as text and are coerced.
BodyId = Annotated[StrictInt, Field(gt=0)]
CoercedId = Annotated[int, Field(gt=0)]
BodyPriority = Annotated[StrictInt, Field(ge=0, le=2)]
BodyStatus = Annotated[StrictInt, Field(ge=0, le=1)]
QueryPriority = Annotated[int, Field(ge=0, le=2)]
QueryStatus = Annotated[int, Field(ge=0, le=1)]


def ensure_utc(value: datetime) -> datetime:
    """Normalise a datetime to UTC, treating naive values as UTC already."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def parse_due_date(date_string: str) -> date:
    """
    Parse an ISO-8601 date or date-time string into a UTC calendar date.

    ``"2026-10-20"`` and ``"2026-10-20T23:30:00-02:00"`` are both accepted;
    the latter becomes ``2026-10-21`` because it falls on that day in UTC.
    """
    parsed = datetime.fromisoformat(date_string.replace("Z", "+00:00"))
    return ensure_utc(parsed).date()


class _RequestSchema(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class _DueDateMixin(BaseModel):
    due_date: date | None = Field(default=None, alias="dueDate")

    @field_validator("due_date", mode="before")
    @classmethod
    def _parse_due_date(cls, value: Any) -> Any:
        if value is None:
            return None
        if not isinstance(value, str):
            raise ValueError("dueDate must be an ISO-8601 date string")
        try:
            return parse_due_date(value)
        except ValueError as exc:
            raise ValueError("dueDate must be an ISO-8601 date string") from exc


class TaskCreateBody(_RequestSchema, _DueDateMixin):
    account_id: BodyId = Field(alias="idAccount")
    user_id: BodyId = Field(alias="idUser")
    title: str = Field(min_length=1, max_length=TITLE_MAX_LENGTH)
    description: str | None = Field(default=None, max_length=DESCRIPTION_MAX_LENGTH)
    priority: BodyPriority | None = None


class TaskUpdateBody(_RequestSchema, _DueDateMixin):
    account_id: BodyId = Field(alias="idAccount")
    user_id: BodyId = Field(alias="idUser")
    title: str = Field(min_length=1, max_length=TITLE_MAX_LENGTH)
    description: str | None = Field(default=None, max_length=DESCRIPTION_MAX_LENGTH)
    priority: BodyPriority
    status: BodyStatus


class TaskListQuery(_RequestSchema):
    account_id: CoercedId = Field(alias="idAccount")
    user_id: CoercedId = Field(alias="idUser")
    status: QueryStatus | None = None
    priority: QueryPriority | None = None


class TenantQuery(_RequestSchema):
    account_id: CoercedId = Field(alias="idAccount")
    user_id: CoercedId = Field(alias="idUser")


class TaskPath(_RequestSchema):
    task_id: CoercedId = Field(alias="id")


def validation_details(exc: ValidationError) -> list[dict[str, str]]:
    """Flatten pydantic errors into JSON-safe ``{field, message, type}`` items."""
    return [
        {
            "field": ".".join(str(part) for part in error["loc"]) or "body",
            "message": error["msg"],
            "type": error["type"],
        }
        for error in exc.errors()
    ]
