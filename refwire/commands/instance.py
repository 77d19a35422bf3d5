"""App instance commands."""

from __future__ import annotations

from typing import Annotated, Any

import typer  # noqa: TC002

from refwire import Argument, RefwireApp, __version__
from refwire.context import get_context
from refwire.output import print_success, render_instances

app = RefwireApp(name="instance", help="Inspect and remove server instances.", version=__version__)


def _render_removed(result: dict[str, Any]) -> None:
    print_success(f"Instance '{result['id']}' removed.")


@app.command("list", render=render_instances)
def list_instances(ctx: typer.Context) -> Any:
    """List the app instances known to the cluster."""
    with get_context(ctx).admin_client() as client:
        return client.list_instances()


@app.command(render=_render_removed)
def remove(
    ctx: typer.Context,
    instance_id: Annotated[str, Argument(help="Instance ID")],
) -> dict[str, Any]:
    """Remove a stale instance from the cluster."""
    with get_context(ctx).admin_client() as client:
        client.remove_instance(instance_id)
    return {"id": instance_id, "removed": True}
