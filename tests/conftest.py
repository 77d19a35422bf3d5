"""Shared test fixtures for refwire tests."""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path
from typing import Any

import pytest
from helpers import SERVER_URL, STORE_URL, FakeServer
from typer.testing import CliRunner

from refwire.cli import app
from refwire.context import RefwireContext


@pytest.fixture(autouse=True)
def isolated_home(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Point HOME at a temporary directory and clear refwire environment."""
    home = tmp_path / "home"
    home.mkdir()
    monkeypatch.setenv("HOME", str(home))
    for var in ("LISTSERV_URL", "LISTSERV_API_KEY", "LISTSERV_STORE_URL", "REFWIRE_OUTPUT", "NO_COLOR"):
        monkeypatch.delenv(var, raising=False)
    return home


@pytest.fixture
def credentials_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("LISTSERV_URL", SERVER_URL)
    monkeypatch.setenv("LISTSERV_API_KEY", "test-key")
    monkeypatch.setenv("LISTSERV_STORE_URL", STORE_URL)


@pytest.fixture
def runner() -> CliRunner:
    """Provide a CLI test runner."""
    return CliRunner()


@pytest.fixture
def admin_server() -> FakeServer:
    return FakeServer()


@pytest.fixture
def store_server() -> FakeServer:
    return FakeServer()


@pytest.fixture
def invoke(runner: CliRunner, admin_server: FakeServer, store_server: FakeServer) -> Callable[..., Any]:
    """Invoke the refwire CLI with both servers faked."""

    def _invoke(*args: str, input: str | None = None) -> Any:
        obj = RefwireContext(transport=admin_server.transport, store_transport=store_server.transport)
        return runner.invoke(app, list(args), input=input, obj=obj)

    return _invoke
