"""Tests for global flags, output routing and error envelopes."""

from __future__ import annotations

import logging
from typing import Any

import click
import pytest
import typer
from helpers import parse_envelope
from typer.testing import CliRunner

from refwire import RefwireApp
from refwire.command import configure_logging
from refwire.errors import InputError, Suggestion
from refwire.output import OutputMode, resolve_output_mode


def _app() -> RefwireApp:
    app = RefwireApp(name="demo", version="9.9.9")
    rendered: list[Any] = []

    def _render(result: Any) -> None:
        rendered.append(result)
        click.echo(f"rendered {result['value']}")

    @app.command(render=_render)
    def show(value: str = "x") -> dict[str, Any]:
        """Return a value."""
        return {"value": value}

    @app.command()
    def fail() -> None:
        """Raise a structured error."""
        raise InputError(
            message="Bad input",
            code="E1999",
            suggestion=Suggestion(action="retry", fix="Pass a better value."),
        )

    @app.command()
    def crash() -> None:
        """Raise an unexpected exception."""
        raise RuntimeError("boom")

    @app.command()
    def context(ctx: typer.Context) -> dict[str, Any]:
        """Report the verbosity seen by the command."""
        return {"verbose": ctx.obj.verbose}

    return app


def test_non_tty_output_is_a_json_envelope(runner: CliRunner) -> None:
    result = runner.invoke(_app(), ["show", "--value", "42"])
    assert result.exit_code == 0
    envelope = parse_envelope(result.stdout)
    assert envelope["ok"] is True
    assert envelope["result"] == {"value": "42"}
    assert envelope["meta"]["tool"] == "demo.show"
    assert envelope["meta"]["version"] == "9.9.9"
    assert envelope["meta"]["warnings"] == []
    assert "error" not in envelope


def test_text_flag_uses_renderer(runner: CliRunner) -> None:
    result = runner.invoke(_app(), ["show", "--value", "42", "--text"])
    assert result.exit_code == 0
    assert "rendered 42" in result.output
    assert '"ok"' not in result.output


def test_output_env_var_selects_mode(runner: CliRunner, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("REFWIRE_OUTPUT", "text")
    result = runner.invoke(_app(), ["show"])
    assert "rendered x" in result.output

    # Flags win over the environment.
    result = runner.invoke(_app(), ["show", "--json"])
    assert parse_envelope(result.stdout)["ok"] is True


def test_tool_error_in_json_mode(runner: CliRunner) -> None:
    result = runner.invoke(_app(), ["fail"])
    assert result.exit_code == 2
    envelope = parse_envelope(result.stdout)
    assert envelope["ok"] is False
    assert envelope["result"] is None
    assert envelope["error"]["code"] == "E1999"
    assert envelope["error"]["category"] == "input"
    assert envelope["error"]["suggestion"]["fix"] == "Pass a better value."


def test_tool_error_in_text_mode(runner: CliRunner) -> None:
    result = runner.invoke(_app(), ["fail", "--text", "--no-color"])
    assert result.exit_code == 2
    assert "Error: Bad input" in result.output
    assert "Suggestion: Pass a better value." in result.output


def test_unexpected_exception_becomes_internal_error(runner: CliRunner) -> None:
    result = runner.invoke(_app(), ["crash", "-v"])
    assert result.exit_code == 70
    envelope = parse_envelope(result.stdout)
    assert envelope["error"]["code"] == "E5000"
    assert envelope["error"]["message"] == "Internal error: boom"
    assert "RuntimeError" in envelope["error"]["details"]["traceback"]


def test_verbose_flag_reaches_context(runner: CliRunner) -> None:
    result = runner.invoke(_app(), ["context", "-vv"])
    assert parse_envelope(result.stdout)["result"] == {"verbose": 2}


def test_configure_logging_levels() -> None:
    logger = logging.getLogger("refwire")
    configure_logging(0)
    assert logger.level == logging.WARNING
    configure_logging(1)
    assert logger.level == logging.INFO
    configure_logging(2)
    assert logger.level == logging.DEBUG
    assert len([h for h in logger.handlers if h.get_name() == "refwire-cli"]) == 1
    configure_logging(0)


def test_resolve_output_mode_prefers_explicit_override(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("REFWIRE_OUTPUT", "json")
    ctx = click.Context(click.Command("x"))
    ctx.meta["refwire_output_override"] = OutputMode.TEXT
    assert resolve_output_mode(ctx) is OutputMode.TEXT

    ctx = click.Context(click.Command("x"))
    assert resolve_output_mode(ctx) is OutputMode.JSON
