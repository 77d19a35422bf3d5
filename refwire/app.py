"""Core refwire application class extending Typer."""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

import typer

from refwire.command import RefwireCommand
from refwire.command_meta import CommandMeta


class RefwireApp(typer.Typer):
    """Typer application whose commands return results instead of printing.

    Every command registered through :meth:`command` gets the refwire global
    flags and has its return value routed to a JSON envelope or to the
    command's text renderer.
    """

    def __init__(self, *args: Any, version: str = "0.0.0", **kwargs: Any) -> None:
        kwargs.setdefault("no_args_is_help", True)
        kwargs.setdefault("pretty_exceptions_enable", False)
        super().__init__(*args, **kwargs)
        self.version = version

    def command(
        self,
        name: str | None = None,
        *,
        render: Callable[[Any], None] | None = None,
        **kwargs: Any,
    ) -> Any:
        """Register a command using RefwireCommand and attach its metadata."""

        kwargs.setdefault("cls", RefwireCommand)
        decorator = super().command(name=name, **kwargs)

        def _wrap(func: Any) -> Any:
            func.__refwire_meta__ = CommandMeta(
                app_name=self.info.name or "refwire",
                app_version=self.version,
                render=render,
            )
            return decorator(func)

        return _wrap
