"""Refwire command implementation: global flags and output routing."""

from __future__ import annotations

import dataclasses
import json
import logging
import sys
import time
import traceback
from collections.abc import Callable
from typing import Any

import click
from typer.core import TyperCommand

from refwire.command_meta import get_command_meta
from refwire.context import RefwireContext
from refwire.envelope import Envelope, EnvelopeMeta
from refwire.errors import InternalError, ToolError
from refwire.exit_codes import ExitCode
from refwire.output import (
    OutputMode,
    json_dumps,
    parse_output_mode,
    print_json,
    resolve_no_color,
    resolve_output_mode,
)

LOG_HANDLER_NAME = "refwire-cli"
LOG_FORMAT = "%(levelname)s %(name)s: %(message)s"


def _set_output_override(mode: OutputMode) -> Callable[[click.Context, click.Parameter, Any], Any]:
    def _cb(ctx: click.Context, param: click.Parameter, value: Any) -> Any:
        # Only apply when the option is explicitly provided.
        if value is None or value is False:
            return value
        ctx.meta["refwire_output_override"] = mode
        return value

    return _cb


def _set_output_override_from_string(ctx: click.Context, param: click.Parameter, value: Any) -> Any:
    if value is None:
        return value
    ctx.meta["refwire_output_override"] = parse_output_mode(str(value))
    return value


def _set_no_color(ctx: click.Context, param: click.Parameter, value: Any) -> Any:
    if value:
        ctx.meta["refwire_no_color"] = True
    return value


def _set_verbose(ctx: click.Context, param: click.Parameter, value: Any) -> Any:
    if value:
        ctx.meta["refwire_verbose"] = int(value)
    return value


def configure_logging(verbose: int) -> None:
    """Attach a stderr handler to the ``refwire`` logger.

    WARNING by default, INFO with ``-v`` and DEBUG with ``-vv``.
    """

    if verbose >= 2:
        level = logging.DEBUG
    elif verbose == 1:
        level = logging.INFO
    else:
        level = logging.WARNING

    logger = logging.getLogger("refwire")
    for handler in list(logger.handlers):
        if handler.get_name() == LOG_HANDLER_NAME:
            logger.removeHandler(handler)

    handler = logging.StreamHandler(sys.stderr)
    handler.set_name(LOG_HANDLER_NAME)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    logger.addHandler(handler)
    logger.setLevel(level)


def _get_tool_id(ctx: click.Context) -> str:
    # click uses command_path like "refwire dataset import".
    return ctx.command_path.replace(" ", ".")


def _build_envelope_meta(ctx: click.Context, *, app_version: str, duration_ms: int) -> EnvelopeMeta:
    return EnvelopeMeta(
        tool=_get_tool_id(ctx),
        version=app_version,
        duration_ms=duration_ms,
        warnings=list(ctx.meta.get("refwire_warnings", [])),
    )


def _duration_ms(start: float) -> int:
    return max(0, int((time.perf_counter() - start) * 1000))


class RefwireCommand(TyperCommand):
    """TyperCommand subclass with refwire global flags and output routing."""

    def __init__(self, *args: Any, **kwargs: Any) -> None:
        params = list(kwargs.get("params") or [])

        # Global flags injected into every command. expose_value=False prevents passing into callbacks.
        params.extend(
            [
                click.Option(
                    ["--output", "-o"],
                    metavar="MODE",
                    type=click.Choice([m.value for m in OutputMode], case_sensitive=False),
                    help="Output mode: auto|json|text",
                    expose_value=False,
                    callback=_set_output_override_from_string,
                ),
                click.Option(
                    ["--json"],
                    is_flag=True,
                    help="Alias for --output json",
                    expose_value=False,
                    callback=_set_output_override(OutputMode.JSON),
                ),
                click.Option(
                    ["--text"],
                    is_flag=True,
                    help="Alias for --output text",
                    expose_value=False,
                    callback=_set_output_override(OutputMode.TEXT),
                ),
                click.Option(
                    ["--no-color"],
                    is_flag=True,
                    help="Disable colored output (also respects NO_COLOR).",
                    expose_value=False,
                    callback=_set_no_color,
                ),
                click.Option(
                    ["--verbose", "-v"],
                    count=True,
                    help="Increase log verbosity (-v info, -vv debug).",
                    expose_value=False,
                    callback=_set_verbose,
                ),
            ]
        )
        kwargs["params"] = params
        super().__init__(*args, **kwargs)

    def invoke(self, ctx: click.Context) -> Any:
        meta = get_command_meta(self.callback)
        verbose = int(ctx.meta.get("refwire_verbose", 0))
        configure_logging(verbose)

        # Keep injected transports and environment from a caller-supplied context.
        base = ctx.obj if isinstance(ctx.obj, RefwireContext) else RefwireContext()
        ctx.obj = dataclasses.replace(base, verbose=verbose)

        mode = resolve_output_mode(ctx)
        start = time.perf_counter()

        try:
            try:
                result = super().invoke(ctx)
            except ToolError:
                raise
            except (click.exceptions.Exit, click.Abort, click.ClickException):
                raise
            except Exception as e:
                details: dict[str, Any] = {}
                if verbose > 0:
                    details["traceback"] = traceback.format_exc()
                raise InternalError(
                    message=f"Internal error: {e}",
                    details=details,
                ) from e
        except ToolError as e:
            return self._handle_tool_error(ctx, meta.app_version, start, e, mode)

        if mode is OutputMode.TEXT:
            if result is None:
                return None
            if meta.render is not None:
                meta.render(result)
            else:
                print_json(result)
            return result

        envelope_meta = _build_envelope_meta(ctx, app_version=meta.app_version, duration_ms=_duration_ms(start))
        click.echo(json_dumps(Envelope.success(result, envelope_meta).to_document()))
        return result

    def _handle_tool_error(
        self,
        ctx: click.Context,
        app_version: str,
        start: float,
        error: ToolError,
        mode: OutputMode,
    ) -> None:
        logging.getLogger(__name__).debug("%s failed: %s (%s)", _get_tool_id(ctx), error.message, error.code)
        if mode is OutputMode.JSON:
            envelope_meta = _build_envelope_meta(ctx, app_version=app_version, duration_ms=_duration_ms(start))
            click.echo(json_dumps(Envelope.failure(error, envelope_meta).to_document()))
        elif resolve_no_color(ctx):
            click.echo(f"Error: {error.message}", err=True)
            if error.suggestion:
                click.echo(f"Suggestion: {error.suggestion.fix}", err=True)
        else:
            from rich.console import Console
            from rich.markup import escape

            console = Console(stderr=True, highlight=False)
            console.print(f"[bold red]Error:[/bold red] {escape(error.message)}")
            if error.suggestion:
                console.print(f"[bold blue]Suggestion:[/bold blue] {escape(error.suggestion.fix)}")
            if error.details and ctx.meta.get("refwire_verbose", 0) > 0:
                console.print(f"[dim]{escape(json.dumps(error.details, indent=2, default=str))}[/dim]")

        if error.exit_code is not None:
            raise SystemExit(int(error.exit_code))

        raise SystemExit(int(ExitCode.INTERNAL_ERROR))
