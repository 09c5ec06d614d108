"""
Unit tests for the transport-level request schemas.

Key SDET Concepts Demonstrated:
- Equivalence partitioning via @pytest.mark.parametrize
- Aggregated validation errors (several fields reported at once)
- Coercion rules: strict integers in JSON bodies, coerced query strings
"""

from __future__ import annotations

from datetime import date

import pytest
from pydantic import ValidationError

from todo_app.schemas import (
    TaskCreateBody,
    TaskListQuery,
    TaskPath,
    TaskUpdateBody,
    TenantQuery,
    parse_due_date,
    validation_details,
)

pytestmark = pytest.mark.unit


def _fields(exc_info) -> set[str]:
    return {detail["field"] for detail in validation_details(exc_info.value)}


class TestTaskCreateBody:
    def test_minimal_body_applies_defaults(self):
        body = TaskCreateBody.model_validate({"idAccount": 1, "idUser": 2, "title": "A"})
        assert body.account_id == 1
        assert body.user_id == 2
        assert body.description is None
        assert body.priority is None
        assert body.due_date is None

    def test_errors_are_aggregated(self):
        """Test that every bad field is reported in a single error."""
        with pytest.raises(ValidationError) as exc_info:
            TaskCreateBody.model_validate(
                {"idAccount": 0, "title": "", "priority": 5, "description": "d" * 501}
            )
        assert _fields(exc_info) == {"idAccount", "idUser", "title", "priority", "description"}

    @pytest.mark.parametrize("bad_id", ["1", 1.5, True, -3])
    def test_body_ids_must_be_positive_integers(self, bad_id):
        with pytest.raises(ValidationError) as exc_info:
            TaskCreateBody.model_validate({"idAccount": bad_id, "idUser": 1, "title": "A"})
        assert _fields(exc_info) == {"idAccount"}

    def test_whitespace_title_passes_transport_validation(self):
        """Blank titles are left for the rule engine to reject."""
        body = TaskCreateBody.model_validate({"idAccount": 1, "idUser": 1, "title": "   "})
        assert body.title == "   "

    @pytest.mark.parametrize(
        ("raw", "expected"),
        [
            ("2030-05-01", date(2030, 5, 1)),
            ("2030-05-01T10:00:00Z", date(2030, 5, 1)),
            ("2030-05-01T23:30:00-02:00", date(2030, 5, 2)),
        ],
    )
    def test_due_date_accepts_dates_and_datetimes(self, raw, expected):
        body = TaskCreateBody.model_validate(
            {"idAccount": 1, "idUser": 1, "title": "A", "dueDate": raw}
        )
        assert body.due_date == expected

    @pytest.mark.parametrize("raw", ["not-a-date", "2030-13-01", 20300501])
    def test_due_date_rejects_garbage(self, raw):
        with pytest.raises(ValidationError) as exc_info:
            TaskCreateBody.model_validate(
                {"idAccount": 1, "idUser": 1, "title": "A", "dueDate": raw}
            )
        assert _fields(exc_info) == {"dueDate"}


class TestTaskUpdateBody:
    def test_priority_and_status_are_required(self):
        with pytest.raises(ValidationError) as exc_info:
            TaskUpdateBody.model_validate({"idAccount": 1, "idUser": 1, "title": "A"})
        assert _fields(exc_info) == {"priority", "status"}

    def test_status_range(self):
        with pytest.raises(ValidationError) as exc_info:
            TaskUpdateBody.model_validate(
                {"idAccount": 1, "idUser": 1, "title": "A", "priority": 1, "status": 2}
            )
        assert _fields(exc_info) == {"status"}


class TestQuerySchemas:
    def test_query_numbers_are_coerced_from_strings(self):
        query = TaskListQuery.model_validate(
            {"idAccount": "1", "idUser": "2", "status": "1", "priority": "0"}
        )
        assert (query.account_id, query.user_id, query.status, query.priority) == (1, 2, 1, 0)

    @pytest.mark.parametrize("raw", ["abc", "1.5", ""])
    def test_uncoercible_query_values_fail(self, raw):
        with pytest.raises(ValidationError) as exc_info:
            TenantQuery.model_validate({"idAccount": raw, "idUser": "1"})
        assert _fields(exc_info) == {"idAccount"}

    def test_path_id_must_be_positive(self):
        with pytest.raises(ValidationError):
            TaskPath.model_validate({"id": "0"})
        assert TaskPath.model_validate({"id": "42"}).task_id == 42


def test_parse_due_date_without_offset_is_utc():
    assert parse_due_date("2030-01-01T23:59:59") == date(2030, 1, 1)
