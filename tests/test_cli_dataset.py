"""Tests for the dataset commands, including import and pull."""

from __future__ import annotations

import json
from pathlib import Path

import pytest
from helpers import make_package, parse_envelope

pytestmark = pytest.mark.usefixtures("credentials_env")

RECORDS = [
    {"code": "us", "title": "United States", "pop": 331},
    {"code": "fr", "title": "France", "pop": 68},
    {"code": "us", "title": "Duplicate"},
    {"code": "", "title": "Empty"},
]

PACKAGE_META = {
    "id": "World-Countries",
    "title": "World Countries",
    "description": "Countries of the world",
    "idField": "code",
    "nameField": "title",
}


@pytest.fixture
def records_file(tmp_path: Path) -> Path:
    path = tmp_path / "countries.json"
    path.write_text(json.dumps(RECORDS), encoding="utf-8")
    return path


@pytest.fixture
def accepts_datasets(admin_server):
    admin_server.add("POST", "/admin/datasets/", json={"id": "created"})
    return admin_server


def test_list_ids(invoke, admin_server) -> None:
    admin_server.add("GET", "/admin/datasets/list", json=["countries", "cities"])
    result = invoke("dataset", "list-ids")
    assert result.exit_code == 0
    assert parse_envelope(result.stdout)["result"] == ["countries", "cities"]


def test_list_ids_text(invoke, admin_server) -> None:
    admin_server.add("GET", "/admin/datasets/list", json=["countries"])
    result = invoke("dataset", "list-ids", "--text")
    assert "Available Dataset IDs:" in result.output
    assert "- countries" in result.output


def test_get_meta_not_found(invoke) -> None:
    result = invoke("dataset", "get-meta", "nope")
    assert result.exit_code == 10
    assert parse_envelope(result.stdout)["error"]["code"] == "E3404"


def test_get_api_text(invoke, admin_server) -> None:
    admin_server.add(
        "GET",
        "/admin/datasets/countries/api/spec",
        json={"listItemsUrl": "https://refwire.test/api/countries", "updateItemUrlTemplate": "/items/{id}"},
    )
    result = invoke("dataset", "get-api", "countries", "--text", "--no-color")
    assert result.exit_code == 0
    assert "https://refwire.test/api/countries" in result.output
    assert "/items/123456" in result.output


def test_delete_with_force(invoke, admin_server) -> None:
    admin_server.add("GET", "/admin/datasets/countries/meta", json={"name": "Countries"})
    admin_server.add("DELETE", "/admin/datasets/countries", status=204)
    result = invoke("dataset", "delete", "countries", "--force")
    assert result.exit_code == 0
    assert parse_envelope(result.stdout)["result"] == {"id": "countries", "deleted": True}
    assert admin_server.sent("DELETE", "/admin/datasets/countries")


def test_delete_declined(invoke, admin_server) -> None:
    admin_server.add("DELETE", "/admin/datasets/countries", status=204)
    result = invoke("dataset", "delete", "countries", input="n\n")
    assert result.exit_code == 1
    assert parse_envelope(result.stdout)["error"]["message"] == "Deletion cancelled."
    assert not admin_server.sent("DELETE", "/admin/datasets/countries")


def test_create_from_definition_file(invoke, accepts_datasets, tmp_path: Path) -> None:
    definition = {"id": "c", "name": "C", "idField": "code", "nameField": "title", "fields": []}
    path = tmp_path / "def.json"
    path.write_text(json.dumps(definition), encoding="utf-8")

    result = invoke("dataset", "create", "--file", str(path))
    assert result.exit_code == 0
    body = accepts_datasets.sent_json("POST", "/admin/datasets/")
    assert body["id"] == "c"
    assert body["description"] == ""
    assert body["items"] == {}


def test_create_rejects_incomplete_definition(invoke, tmp_path: Path) -> None:
    path = tmp_path / "def.json"
    path.write_text(json.dumps({"id": "c"}), encoding="utf-8")
    result = invoke("dataset", "create", "-f", str(path))
    assert result.exit_code == 2
    assert "name, idField, nameField, fields" in parse_envelope(result.stdout)["error"]["message"]


def test_update_from_file(invoke, admin_server, tmp_path: Path) -> None:
    admin_server.add("PUT", "/admin/datasets/c", json={"ok": True})
    path = tmp_path / "update.json"
    path.write_text(json.dumps({"name": "Renamed", "fields": [{"name": "code"}]}), encoding="utf-8")
    result = invoke("dataset", "update", "c", "-f", str(path))
    assert result.exit_code == 0
    assert admin_server.sent_json("PUT", "/admin/datasets/c") == {"name": "Renamed", "fields": [{"name": "code"}]}


def test_import_with_flags(invoke, accepts_datasets, records_file: Path) -> None:
    """All flags present: no prompts, duplicates and empty IDs skipped."""
    result = invoke(
        "dataset",
        "import",
        "-f",
        str(records_file),
        "--id",
        "Countries",
        "--name",
        "Countries",
        "--id-field",
        "code",
        "--name-field",
        "title",
        "--yes",
    )
    assert result.exit_code == 0, result.output
    envelope = parse_envelope(result.stdout)
    assert envelope["result"]["datasetId"] == "countries"
    assert envelope["result"]["itemCount"] == 2
    assert envelope["result"]["skippedCount"] == 2
    assert envelope["meta"]["warnings"] == [
        "2 records will be skipped (missing or duplicate ID/Name values)."
    ]

    body = accepts_datasets.sent_json("POST", "/admin/datasets/")
    assert body["idField"] == "code"
    assert list(body["items"]) == ["us", "fr"]
    assert body["items"]["us"]["data"] == {"code": "us", "title": "United States", "pop": 331}
    assert [f["name"] for f in body["fields"]] == ["code", "title", "pop"]


def test_import_wizard(invoke, accepts_datasets, records_file: Path) -> None:
    """Prompted designation: set ID, set Name, exclude a field, proceed, confirm."""
    answers = "\n".join(["set-id", "1", "set-name", "title", "toggle-include", "pop", "", "y"]) + "\n"
    result = invoke(
        "dataset",
        "import",
        "-f",
        str(records_file),
        "--id",
        "countries",
        "--name",
        "Countries",
        input=answers,
    )
    assert result.exit_code == 0, result.output
    body = accepts_datasets.sent_json("POST", "/admin/datasets/")
    assert body["idField"] == "code"
    assert body["nameField"] == "title"
    assert [f["name"] for f in body["fields"]] == ["code", "title"]
    assert all("pop" not in item["data"] for item in body["items"].values())


def test_import_wizard_prompts_for_metadata(invoke, accepts_datasets, records_file: Path) -> None:
    answers = "\n".join(["countries", "Countries", "All countries", "y"]) + "\n"
    result = invoke(
        "dataset",
        "import",
        "-f",
        str(records_file),
        "--id-field",
        "code",
        "--name-field",
        "title",
        input=answers,
    )
    assert result.exit_code == 0, result.output
    body = accepts_datasets.sent_json("POST", "/admin/datasets/")
    assert (body["id"], body["name"], body["description"]) == ("countries", "Countries", "All countries")


def test_import_cancel(invoke, accepts_datasets, records_file: Path) -> None:
    result = invoke("dataset", "import", "-f", str(records_file), input="cancel\n")
    assert result.exit_code == 1
    assert parse_envelope(result.stdout)["error"]["code"] == "E3101"
    assert not accepts_datasets.requests


def test_import_end_of_input_cancels(invoke, accepts_datasets, records_file: Path) -> None:
    result = invoke("dataset", "import", "-f", str(records_file), input="")
    assert result.exit_code == 1
    assert parse_envelope(result.stdout)["error"]["code"] == "E3101"
    assert not accepts_datasets.requests


def test_import_declined_confirmation(invoke, accepts_datasets, records_file: Path) -> None:
    result = invoke(
        "dataset",
        "import",
        "-f",
        str(records_file),
        "--id",
        "countries",
        "--name",
        "Countries",
        "--id-field",
        "code",
        "--name-field",
        "title",
        input="n\n",
    )
    assert result.exit_code == 1
    assert not accepts_datasets.sent("POST", "/admin/datasets/")


def test_import_unknown_id_field(invoke, accepts_datasets, records_file: Path) -> None:
    result = invoke(
        "dataset",
        "import",
        "-f",
        str(records_file),
        "--id",
        "c",
        "--name",
        "C",
        "--id-field",
        "missing",
        "--name-field",
        "title",
        "--yes",
    )
    assert result.exit_code == 2
    error = parse_envelope(result.stdout)["error"]
    assert error["code"] == "E1203"
    assert error["details"]["available"] == ["code", "title", "pop"]


@pytest.mark.parametrize(
    ("content", "code"),
    [("[]", "E1202"), ("{not json", "E1201"), ('[{"a": 1}, 3]', "E1202"), ('[{"a": NaN}]', "E1201")],
)
def test_import_invalid_input(invoke, tmp_path: Path, content: str, code: str) -> None:
    path = tmp_path / "bad.json"
    path.write_text(content, encoding="utf-8")
    result = invoke("dataset", "import", "-f", str(path), "--yes")
    assert result.exit_code == 2
    assert parse_envelope(result.stdout)["error"]["code"] == code


def test_import_missing_file(invoke) -> None:
    result = invoke("dataset", "import", "-f", "does-not-exist.json")
    assert result.exit_code == 2
    assert parse_envelope(result.stdout)["error"]["code"] == "E1100"


def _serve_package(store_server, records=RECORDS, meta=PACKAGE_META) -> None:
    store_server.add(
        "GET",
        "/packages/world-countries",
        content=make_package(records, meta),
        headers={"content-type": "application/zip"},
    )


def test_pull_uses_package_metadata(invoke, accepts_datasets, store_server) -> None:
    _serve_package(store_server)
    result = invoke("dataset", "pull", "world-countries", "--dataset-version", "1.0.0")
    assert result.exit_code == 0, result.output

    assert store_server.requests[0].url.params["version"] == "1.0.0"
    body = accepts_datasets.sent_json("POST", "/admin/datasets/")
    assert body["id"] == "world-countries"
    assert body["name"] == "World Countries"
    assert body["description"] == "Countries of the world"
    assert (body["idField"], body["nameField"]) == ("code", "title")
    assert list(body["items"]) == ["us", "fr"]
    assert parse_envelope(result.stdout)["result"]["skippedCount"] == 2


def test_pull_overrides(invoke, accepts_datasets, store_server) -> None:
    _serve_package(store_server)
    result = invoke(
        "dataset",
        "pull",
        "world-countries",
        "-i",
        "mine",
        "-n",
        "Mine",
        "-d",
        "",
        "--name-field",
        "code",
    )
    assert result.exit_code == 0, result.output
    body = accepts_datasets.sent_json("POST", "/admin/datasets/")
    assert (body["id"], body["name"], body["description"]) == ("mine", "Mine", "")
    assert body["nameField"] == "code"
    assert body["items"]["us"]["name"] == "us"


def test_pull_without_hints_fails_resolution(invoke, accepts_datasets, store_server) -> None:
    _serve_package(store_server, meta={"id": "world-countries", "title": "World"})
    result = invoke("dataset", "pull", "world-countries")
    assert result.exit_code == 2
    assert parse_envelope(result.stdout)["error"]["code"] == "E1204"
    assert not accepts_datasets.requests


def test_pull_rejects_bad_version(invoke, store_server) -> None:
    result = invoke("dataset", "pull", "world-countries", "-V", "1.0")
    assert result.exit_code == 2
    assert parse_envelope(result.stdout)["error"]["code"] == "E1108"
    assert not store_server.requests


def test_pull_store_failure(invoke, store_server) -> None:
    result = invoke("dataset", "pull", "unknown")
    assert result.exit_code == 40
    assert parse_envelope(result.stdout)["error"]["code"] == "E4201"
