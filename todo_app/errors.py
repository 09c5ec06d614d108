"""
Tagged errors raised by the task rule engine.

Each rule violation carries a ``TaskErrorKind`` so that callers can react
to the kind without parsing messages.  The rule engine never deals in HTTP
status codes; the controller layer is the only place that maps a kind to a
response.
"""

from __future__ import annotations

from enum import Enum


class TaskErrorKind(str, Enum):
    """
    Every rule violation the engine can report.

    Inherits from ``str`` so the member value doubles as the machine
    readable error code sent to clients.
    """

    TITLE_REQUIRED = "titleRequired"
    TITLE_EXCEEDS_MAX_LENGTH = "titleExceedsMaxLength"
    DESCRIPTION_EXCEEDS_MAX_LENGTH = "descriptionExceedsMaxLength"
    INVALID_PRIORITY = "invalidPriority"
    INVALID_STATUS = "invalidStatus"
    DUE_DATE_IN_PAST = "dueDateInPast"
    ACCOUNT_DOESNT_EXIST = "accountDoesntExist"
    USER_DOESNT_EXIST = "userDoesntExist"
    TASK_DOESNT_EXIST = "taskDoesntExist"
    TITLE_ALREADY_EXISTS = "titleAlreadyExists"


ERROR_MESSAGES: dict[TaskErrorKind, str] = {
    TaskErrorKind.TITLE_REQUIRED: "Title is required",
    TaskErrorKind.TITLE_EXCEEDS_MAX_LENGTH: "Title must be 100 characters or less",
    TaskErrorKind.DESCRIPTION_EXCEEDS_MAX_LENGTH: (
        "Description must be 500 characters or less"
    ),
    TaskErrorKind.INVALID_PRIORITY: "Priority must be 0 (Low), 1 (Medium) or 2 (High)",
    TaskErrorKind.INVALID_STATUS: "Status must be 0 (Pending) or 1 (Completed)",
    TaskErrorKind.DUE_DATE_IN_PAST: "Due date cannot be in the past",
    TaskErrorKind.ACCOUNT_DOESNT_EXIST: "Account does not exist",
    TaskErrorKind.USER_DOESNT_EXIST: "User does not exist in this account",
    TaskErrorKind.TASK_DOESNT_EXIST: "Task does not exist",
    TaskErrorKind.TITLE_ALREADY_EXISTS: "A task with this title already exists",
}

NOT_FOUND_KINDS = frozenset({TaskErrorKind.TASK_DOESNT_EXIST})


class TaskRuleError(Exception):
    """
    Raised on the first violated task rule.

    Attributes:
        kind: The violated rule.
        message: Human readable description of the violation.
    """

    def __init__(self, kind: TaskErrorKind, message: str | None = None) -> None:
        self.kind = kind
        self.message = message or ERROR_MESSAGES[kind]
        super().__init__(kind.value)

    @property
    def not_found(self) -> bool:
        """True when the violation means the addressed task is absent."""
        return self.kind in NOT_FOUND_KINDS

    def __repr__(self) -> str:
        return f"TaskRuleError({self.kind.value!r})"
