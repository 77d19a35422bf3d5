"""refwire: command-line administration client for RefWire."""

from __future__ import annotations

from typing import Annotated

from typer import Argument, Option

from refwire.app import RefwireApp

__version__ = "1.0.0"
__all__ = [
    "Annotated",
    "Argument",
    "Option",
    "RefwireApp",
    "__version__",
]
