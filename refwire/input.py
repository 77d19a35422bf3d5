"""File and option input helpers for refwire commands."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

import click

from refwire.errors import InputError, Suggestion

logger = logging.getLogger(__name__)

STDIN_MARKER = "-"


class _NonStandardConstant(ValueError):
    """Raised for the NaN and Infinity tokens that json.loads would accept."""

    def __init__(self, token: str) -> None:
        self.msg = f"Unexpected token {token}"
        super().__init__(self.msg)


def _reject_constant(token: str) -> Any:
    raise _NonStandardConstant(token)


def read_text_file(path: str | Path) -> str:
    """Read UTF-8 text from a file path, or from stdin when the path is ``-``."""
    if str(path) == STDIN_MARKER:
        try:
            return click.get_text_stream("stdin").read()
        except OSError as e:
            raise InputError(message=f"Failed to read from stdin: {e}", code="E1105") from e

    file_path = Path(path)
    if not file_path.exists():
        raise InputError(
            message=f"File not found: {path}",
            code="E1100",
            suggestion=Suggestion(action="check the file path", fix="Pass an existing file with --file."),
            details={"path": str(path)},
        )
    if not file_path.is_file():
        raise InputError(message=f"Not a file: {path}", code="E1101", details={"path": str(path)})

    logger.debug("Reading %s", file_path)
    try:
        return file_path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise InputError(
            message=f"Failed to read file '{path}': {e}",
            code="E1102",
            details={"path": str(path)},
        ) from e


def read_json_file(path: str | Path, *, expect: type | None = None) -> Any:
    """Read and decode a JSON file.

    ``expect`` restricts the top-level value, e.g. ``dict`` or ``list``.
    """

    text = read_text_file(path)
    try:
        value = json.loads(text, parse_constant=_reject_constant)
    except _NonStandardConstant as e:
        raise InputError(
            message=f"Invalid JSON in file '{path}': {e.msg}",
            code="E1103",
            details={"path": str(path)},
        ) from e
    except json.JSONDecodeError as e:
        raise InputError(
            message=f"Invalid JSON in file '{path}': {e.msg} (line {e.lineno}, column {e.colno})",
            code="E1103",
            details={"path": str(path), "line": e.lineno, "column": e.colno},
        ) from e
    if expect is not None and not isinstance(value, expect):
        kind = "an array" if expect is list else "an object"
        raise InputError(
            message=f"File '{path}' must contain {kind}.",
            code="E1106",
            details={"path": str(path)},
        )
    return value


def parse_json_option(value: str, option: str) -> Any:
    """Decode the JSON text passed to a command option."""
    try:
        return json.loads(value, parse_constant=_reject_constant)
    except (json.JSONDecodeError, _NonStandardConstant) as e:
        raise InputError(
            message=f"Invalid JSON for {option}: {e.msg}",
            code="E1104",
            suggestion=Suggestion(
                action="quote the JSON value",
                fix=f"Pass a JSON document to {option}, or use --data-file.",
                example=f"{option} '{{\"population\": 331}}'",
            ),
            details={"option": option},
        ) from e


def require_keys(value: dict[str, Any], keys: tuple[str, ...], *, source: str) -> None:
    """Fail when a decoded JSON object lacks any of ``keys``."""
    missing = [key for key in keys if key not in value]
    if missing:
        raise InputError(
            message=f"{source} is missing required properties: {', '.join(missing)}",
            code="E1107",
            details={"missing": missing},
        )
