"""Metadata container for refwire command callbacks."""

from __future__ import annotations

from collections.abc import Callable  # noqa: TC003
from dataclasses import dataclass
from typing import Any


@dataclass
class CommandMeta:
    """Metadata attached as ``__refwire_meta__`` on a command callback."""

    app_name: str = "refwire"
    app_version: str = "0.0.0"
    # Called with the command result in text mode.
    render: Callable[[Any], None] | None = None


def get_command_meta(callback: Callable[..., Any] | None) -> CommandMeta:
    """Retrieve CommandMeta from a callback, with safe defaults."""
    if callback is None:
        return CommandMeta()
    meta = getattr(callback, "__refwire_meta__", None)
    if isinstance(meta, CommandMeta):
        return meta
    return CommandMeta()
