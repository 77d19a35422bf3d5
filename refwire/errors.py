"""refwire error hierarchy and structured error models."""

from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import BaseModel

from refwire.exit_codes import ExitCode


def _default_exit_code(category: ErrorCategory) -> ExitCode:
    mapping = {
        ErrorCategory.INPUT: ExitCode.INVALID_INPUT,
        ErrorCategory.AUTH: ExitCode.AUTH_DENIED,
        ErrorCategory.STATE: ExitCode.STATE_ERROR,
        ErrorCategory.RUNTIME: ExitCode.RUNTIME_UNAVAILABLE,
        ErrorCategory.INTERNAL: ExitCode.INTERNAL_ERROR,
    }
    return mapping[category]


class ErrorCategory(str, Enum):
    INPUT = "input"
    AUTH = "auth"
    STATE = "state"
    RUNTIME = "runtime"
    INTERNAL = "internal"


class Suggestion(BaseModel):
    action: str
    fix: str
    example: str | None = None


class ToolError(Exception):
    """Base error for every failure a refwire command reports."""

    def __init__(
        self,
        message: str,
        code: str,
        category: ErrorCategory = ErrorCategory.RUNTIME,
        suggestion: Suggestion | None = None,
        is_retryable: bool = False,
        details: dict[str, Any] | None = None,
        exit_code: ExitCode | int | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.code = code
        self.category = category
        self.suggestion = suggestion
        self.is_retryable = is_retryable
        self.details = details or {}
        resolved_exit_code = exit_code if exit_code is not None else _default_exit_code(category)
        self.exit_code = int(resolved_exit_code)

    def to_dict(self) -> dict[str, Any]:
        return {
            "message": self.message,
            "code": self.code,
            "category": self.category.value,
            "suggestion": self.suggestion.model_dump() if self.suggestion else None,
            "is_retryable": self.is_retryable,
            "details": self.details,
        }


class InputError(ToolError):
    """E1xxx: Input validation failures."""

    def __init__(
        self,
        message: str,
        code: str = "E1000",
        suggestion: Suggestion | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(
            message,
            code,
            category=ErrorCategory.INPUT,
            suggestion=suggestion,
            details=details,
            exit_code=ExitCode.INVALID_INPUT,
        )


class AuthError(ToolError):
    """E2xxx: Missing credentials or rejected API key."""

    def __init__(
        self,
        message: str,
        code: str = "E2000",
        suggestion: Suggestion | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(
            message,
            code,
            category=ErrorCategory.AUTH,
            suggestion=suggestion,
            details=details,
            exit_code=ExitCode.AUTH_DENIED,
        )


class StateError(ToolError):
    """E3xxx: Precondition or state failures."""

    def __init__(
        self,
        message: str,
        code: str = "E3000",
        suggestion: Suggestion | None = None,
        details: dict[str, Any] | None = None,
        exit_code: ExitCode | int = ExitCode.STATE_ERROR,
    ) -> None:
        super().__init__(
            message,
            code,
            category=ErrorCategory.STATE,
            suggestion=suggestion,
            details=details,
            exit_code=exit_code,
        )


class ToolRuntimeError(ToolError):
    """E4xxx: Server, network or store failures."""

    def __init__(
        self,
        message: str,
        code: str = "E4000",
        suggestion: Suggestion | None = None,
        is_retryable: bool = False,
        details: dict[str, Any] | None = None,
        exit_code: ExitCode | int = ExitCode.RUNTIME_UNAVAILABLE,
    ) -> None:
        super().__init__(
            message,
            code,
            category=ErrorCategory.RUNTIME,
            suggestion=suggestion,
            is_retryable=is_retryable,
            details=details,
            exit_code=exit_code,
        )


class InternalError(ToolError):
    """E5xxx: Uncaught exceptions."""

    def __init__(
        self,
        message: str,
        code: str = "E5000",
        suggestion: Suggestion | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(
            message,
            code,
            category=ErrorCategory.INTERNAL,
            suggestion=suggestion,
            details=details,
            exit_code=ExitCode.INTERNAL_ERROR,
        )


# Import pipeline failures. All abort the whole import.

_ROLE_FLAGS = {"ID": "--id-field", "Name": "--name-field"}


class ParseError(InputError):
    """Import input is not valid JSON."""

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(
            message,
            code="E1201",
            suggestion=Suggestion(
                action="fix the input file",
                fix="Provide UTF-8 text containing a JSON array of objects.",
                example='[{"id": "us", "name": "United States"}]',
            ),
            details=details,
        )


class ValidationError(InputError):
    """Import input or dataset identifier breaks a structural rule."""

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(message, code="E1202", details=details)


class FieldNotFoundError(InputError):
    """An explicit ID/Name override names a field that was not discovered."""

    def __init__(self, role: str, field_name: str, available: list[str]) -> None:
        flag = _ROLE_FLAGS.get(role)
        suggestion = None
        if flag is not None:
            suggestion = Suggestion(
                action=f"choose an existing {role} field",
                fix=f"Pass one of the available fields to {flag}.",
                example=f"{flag} {available[0]}" if available else None,
            )
        super().__init__(
            f"Specified {role} field '{field_name}' not found in dataset. "
            f"Available fields: {', '.join(available)}",
            code="E1203",
            suggestion=suggestion,
            details={"role": role, "field": field_name, "available": available},
        )


class ResolutionError(InputError):
    """Neither an override nor a usable hint designates the ID/Name field."""

    def __init__(self, role: str, available: list[str]) -> None:
        flag = _ROLE_FLAGS.get(role, "--id-field")
        super().__init__(
            f"No {role} field specified and none could be auto-detected.",
            code="E1204",
            suggestion=Suggestion(
                action=f"specify the {role} field",
                fix=f"Use {flag} to specify which field to use as {role}.",
                example=f"{flag} {available[0]}" if available else None,
            ),
            details={"role": role, "available": available},
        )


class ImportCancelled(StateError):
    """The user backed out of an import or a confirmation."""

    def __init__(self, message: str = "Import cancelled.") -> None:
        super().__init__(message, code="E3101", exit_code=ExitCode.CANCELLED)


# Remote failures.


class NotFoundError(StateError):
    """The admin API answered 404."""

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(message, code="E3404", details=details)


class ApiError(ToolRuntimeError):
    """The admin API failed, timed out or could not be reached."""


class StoreError(ToolRuntimeError):
    """A ListStor download or package extraction failed."""

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(f"ListStor download failed: {message}", code="E4201", details=details)
