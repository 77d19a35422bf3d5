"""Server health commands."""

from __future__ import annotations

from typing import Any

import typer  # noqa: TC002

from refwire import RefwireApp, __version__
from refwire.context import get_context

app = RefwireApp(name="health", help="Inspect server health.", version=__version__)


@app.command()
def report(ctx: typer.Context) -> Any:
    """Show the server health report."""
    with get_context(ctx).admin_client() as client:
        return client.get_health_report()
