"""Tests for the structured error hierarchy."""

from __future__ import annotations

from refwire.errors import (
    ApiError,
    ErrorCategory,
    FieldNotFoundError,
    ImportCancelled,
    InputError,
    NotFoundError,
    ParseError,
    ResolutionError,
    StateError,
    StoreError,
    ToolRuntimeError,
    ValidationError,
)
from refwire.exit_codes import ExitCode


def test_import_errors_are_input_errors() -> None:
    for error in (
        ParseError("bad"),
        ValidationError("bad"),
        FieldNotFoundError("ID", "x", ["a"]),
        ResolutionError("Name", ["a"]),
    ):
        assert isinstance(error, InputError)
        assert error.exit_code == ExitCode.INVALID_INPUT
        assert error.category is ErrorCategory.INPUT


def test_cancel_and_not_found_are_state_errors() -> None:
    cancelled = ImportCancelled()
    assert isinstance(cancelled, StateError)
    assert cancelled.exit_code == ExitCode.CANCELLED
    assert cancelled.message == "Import cancelled."

    assert NotFoundError("gone").exit_code == ExitCode.STATE_ERROR


def test_runtime_errors() -> None:
    store = StoreError("timed out")
    assert isinstance(store, ToolRuntimeError)
    assert store.message == "ListStor download failed: timed out"
    assert ApiError("down", code="E4500").exit_code == ExitCode.RUNTIME_UNAVAILABLE


def test_field_not_found_suggestion_only_for_role_flags() -> None:
    assert FieldNotFoundError("Name", "x", ["a"]).suggestion.example == "--name-field a"
    assert FieldNotFoundError("included", "x", ["a"]).suggestion is None


def test_to_dict() -> None:
    payload = ResolutionError("ID", ["code"]).to_dict()
    assert payload["code"] == "E1204"
    assert payload["category"] == "input"
    assert payload["suggestion"]["example"] == "--id-field code"
    assert payload["details"] == {"role": "ID", "available": ["code"]}
    assert payload["is_retryable"] is False
