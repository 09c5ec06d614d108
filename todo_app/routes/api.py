"""
REST API Endpoints for the Task Service.

Exposes the task CRUD interface plus a health-check endpoint.  Handlers
validate transport input with pydantic schemas, call the service facade
and wrap results in the response envelope.  Error kinds raised by the
rule engine are mapped to HTTP statuses here and nowhere else.

Endpoints (mounted under ``/api/v1/internal``):
    GET    /health      - Service and database health check
    POST   /task        - Create a task
    GET    /task        - List the owner's tasks (optional status/priority)
    GET    /task/<id>   - Retrieve a single task
    PUT    /task/<id>   - Replace a task's editable fields
    DELETE /task/<id>   - Soft-delete a task

Response envelope:
    success: ``{"success": true, "data": ...}``
    failure: ``{"success": false, "error": {"code", "message", "details"?}}``
"""

from __future__ import annotations

import logging
from typing import Any

from flask import Blueprint, Response, current_app, jsonify, request
from pydantic import ValidationError
from sqlalchemy.exc import OperationalError
from sqlalchemy.exc import TimeoutError as PoolTimeoutError
from werkzeug.exceptions import HTTPException, NotFound

from .. import database
from ..errors import TaskRuleError
from ..schemas import (
    TaskCreateBody,
    TaskListQuery,
    TaskPath,
    TaskUpdateBody,
    TenantQuery,
    validation_details,
)
from ..service import (
    TaskCreateRequest,
    TaskDeleteRequest,
    TaskGetRequest,
    TaskListRequest,
    TaskService,
    TaskUpdateRequest,
)

logger = logging.getLogger(__name__)

api_bp = Blueprint("task_api", __name__)

task_service = TaskService()


class InvalidJsonError(Exception):
    """Raised when a request body is not a JSON object."""


# =====================================================================
# Helper Functions
# =====================================================================


def success_response(data: Any, status_code: int = 200) -> tuple[Response, int]:
    """Wrap ``data`` in the success envelope."""
    return jsonify({"success": True, "data": data}), status_code


def error_response(
    code: str,
    message: str,
    status_code: int,
    details: Any = None,
    **extra: Any,
) -> tuple[Response, int]:
    """Build the error envelope; ``details`` is omitted when ``None``."""
    error: dict[str, Any] = {"code": code, "message": message}
    if details is not None:
        error["details"] = details
    error.update(extra)
    return jsonify({"success": False, "error": error}), status_code


def _json_body() -> dict[str, Any]:
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        raise InvalidJsonError()
    return data


# =====================================================================
# API Endpoints
# =====================================================================


@api_bp.route("/health", methods=["GET"])
def health_check() -> tuple[Response, int]:
    """
    Return service health status.

    Runs a trivial query so that load balancers stop routing to an
    instance whose database is unreachable (the store errors are mapped
    to 503 by the handlers below).
    """
    database.ping_store()
    return success_response({"status": "healthy", "service": "tasks", "database": "ok"})


@api_bp.route("/task", methods=["POST"])
def create_task() -> tuple[Response, int]:
    """Create a task and return its identifier with a 201 status."""
    body = TaskCreateBody.model_validate(_json_body())
    logger.info(
        "POST /task - account_id=%s user_id=%s", body.account_id, body.user_id
    )

    task_id = task_service.create_task(
        TaskCreateRequest(
            account_id=body.account_id,
            user_id=body.user_id,
            title=body.title,
            description=body.description,
            priority=body.priority,
            due_date=body.due_date,
        )
    )
    return success_response({"idTask": task_id}, 201)


@api_bp.route("/task", methods=["GET"])
def list_tasks() -> tuple[Response, int]:
    """List the owner's tasks in priority/due-date/creation order."""
    query = TaskListQuery.model_validate(request.args.to_dict())
    logger.info(
        "GET /task - account_id=%s user_id=%s", query.account_id, query.user_id
    )

    tasks = task_service.list_tasks(
        TaskListRequest(
            account_id=query.account_id,
            user_id=query.user_id,
            status=query.status,
            priority=query.priority,
        )
    )
    return success_response([task.to_dict() for task in tasks])


@api_bp.route("/task/<task_id>", methods=["GET"])
def get_task(task_id: str) -> tuple[Response, int]:
    """Return one task, or 404 when it is absent, deleted or not owned."""
    path = TaskPath.model_validate({"id": task_id})
    query = TenantQuery.model_validate(request.args.to_dict())

    task = task_service.get_task(
        TaskGetRequest(
            account_id=query.account_id,
            user_id=query.user_id,
            task_id=path.task_id,
        )
    )
    return success_response(task.to_dict())


@api_bp.route("/task/<task_id>", methods=["PUT"])
def update_task(task_id: str) -> tuple[Response, int]:
    """Replace title, description, priority, due date and status of a task."""
    path = TaskPath.model_validate({"id": task_id})
    body = TaskUpdateBody.model_validate(_json_body())
    logger.info(
        "PUT /task/%s - account_id=%s user_id=%s",
        path.task_id,
        body.account_id,
        body.user_id,
    )

    updated_id = task_service.update_task(
        TaskUpdateRequest(
            account_id=body.account_id,
            user_id=body.user_id,
            task_id=path.task_id,
            title=body.title,
            description=body.description,
            priority=body.priority,
            due_date=body.due_date,
            status=body.status,
        )
    )
    return success_response({"idTask": updated_id})


@api_bp.route("/task/<task_id>", methods=["DELETE"])
def delete_task(task_id: str) -> tuple[Response, int]:
    """Soft-delete a task."""
    path = TaskPath.model_validate({"id": task_id})
    query = TenantQuery.model_validate(request.args.to_dict())
    logger.info(
        "DELETE /task/%s - account_id=%s user_id=%s",
        path.task_id,
        query.account_id,
        query.user_id,
    )

    deleted_id = task_service.delete_task(
        TaskDeleteRequest(
            account_id=query.account_id,
            user_id=query.user_id,
            task_id=path.task_id,
        )
    )
    return success_response({"idTask": deleted_id})


# =====================================================================
# Error Handlers
# =====================================================================


@api_bp.app_errorhandler(InvalidJsonError)
def invalid_json(_: InvalidJsonError) -> tuple[Response, int]:
    """Return a JSON 400 when the body is missing or not a JSON object."""
    return error_response("INVALID_JSON", "Request body must be a JSON object", 400)


@api_bp.app_errorhandler(ValidationError)
def validation_failed(error: ValidationError) -> tuple[Response, int]:
    """Return every transport-level field error in one 400 response."""
    return error_response(
        "VALIDATION_ERROR", "Validation failed", 400, details=validation_details(error)
    )


@api_bp.app_errorhandler(TaskRuleError)
def rule_violated(error: TaskRuleError) -> tuple[Response, int]:
    """Map a rule-engine error kind to 404 (task not found) or 400."""
    status_code = 404 if error.not_found else 400
    return error_response(error.kind.value, error.message, status_code)


@api_bp.app_errorhandler(PoolTimeoutError)
@api_bp.app_errorhandler(OperationalError)
def store_unavailable(error: Exception) -> tuple[Response, int]:
    """
    Return a retryable 503 when the database cannot serve the request.

    Covers both an exhausted connection pool and a store that is down or
    unreachable.  No partial effects are assumed; the client should retry
    with backoff.
    """
    logger.error("Task store unavailable: %s", error)
    response, status_code = error_response(
        "STORE_UNAVAILABLE",
        "Task store is temporarily unavailable, retry later",
        503,
        retryable=True,
    )
    response.headers["Retry-After"] = str(current_app.config["STORE_RETRY_AFTER_SECONDS"])
    return response, status_code


@api_bp.app_errorhandler(NotFound)
def route_not_found(_: NotFound) -> tuple[Response, int]:
    """Return a JSON 404 for URLs that match no route."""
    return error_response(
        "NOT_FOUND",
        f"Route {request.method} {request.path} not found",
        404,
        details={"path": request.path, "method": request.method},
    )


@api_bp.app_errorhandler(HTTPException)
def http_error(error: HTTPException) -> tuple[Response, int]:
    """Return a JSON envelope for any other HTTP error (405, 415, ...)."""
    return error_response("HTTP_ERROR", error.description or error.name, error.code or 500)


@api_bp.app_errorhandler(Exception)
def internal_error(error: Exception) -> tuple[Response, int]:
    """Log the exception and return a JSON 500 Internal Server Error."""
    logger.exception("Internal server error: %s", error)
    return error_response("INTERNAL_ERROR", "Internal server error", 500)
