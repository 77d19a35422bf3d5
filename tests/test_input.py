"""Tests for file and option input helpers."""

from __future__ import annotations

from pathlib import Path

import pytest

from refwire.errors import InputError
from refwire.input import parse_json_option, read_json_file, read_text_file, require_keys


def test_read_text_file(tmp_path: Path) -> None:
    path = tmp_path / "data.json"
    path.write_text("[]", encoding="utf-8")
    assert read_text_file(path) == "[]"


def test_read_text_file_errors(tmp_path: Path) -> None:
    with pytest.raises(InputError) as exc_info:
        read_text_file(tmp_path / "missing.json")
    assert exc_info.value.code == "E1100"

    with pytest.raises(InputError) as exc_info:
        read_text_file(tmp_path)
    assert exc_info.value.code == "E1101"


def test_read_json_file_checks_shape(tmp_path: Path) -> None:
    path = tmp_path / "data.json"
    path.write_text('{"a": 1}', encoding="utf-8")
    assert read_json_file(path, expect=dict) == {"a": 1}
    with pytest.raises(InputError, match="must contain an array"):
        read_json_file(path, expect=list)


def test_read_json_file_reports_position(tmp_path: Path) -> None:
    path = tmp_path / "data.json"
    path.write_text('{\n  "a": }', encoding="utf-8")
    with pytest.raises(InputError) as exc_info:
        read_json_file(path)
    assert exc_info.value.details["line"] == 2


def test_parse_json_option() -> None:
    assert parse_json_option('{"pop": 1}', "--data") == {"pop": 1}
    with pytest.raises(InputError) as exc_info:
        parse_json_option("{pop}", "--data")
    assert exc_info.value.details == {"option": "--data"}


def test_require_keys() -> None:
    require_keys({"a": 1, "b": 2}, ("a", "b"), source="File")
    with pytest.raises(InputError, match="missing required properties: b"):
        require_keys({"a": 1}, ("a", "b"), source="File")


def test_non_standard_constants_are_rejected(tmp_path: Path) -> None:
    path = tmp_path / "data.json"
    path.write_text('{"pop": NaN}', encoding="utf-8")
    with pytest.raises(InputError) as exc_info:
        read_json_file(path)
    assert exc_info.value.code == "E1103"

    with pytest.raises(InputError) as exc_info:
        parse_json_option('{"pop": Infinity}', "--data")
    assert exc_info.value.code == "E1104"
