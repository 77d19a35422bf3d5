"""API key management commands."""

from __future__ import annotations

from typing import Annotated, Any

import typer  # noqa: TC002

from refwire import Argument, Option, RefwireApp, __version__
from refwire.context import get_context
from refwire.errors import InputError, Suggestion
from refwire.output import print_json, print_success, render_api_keys, render_key_created

app = RefwireApp(name="api-key", help="Manage admin API keys.", version=__version__)


def _render_revoked(result: dict[str, Any]) -> None:
    print_success(f"API key {result['id']} revoked.")


def _render_updated(result: Any) -> None:
    print_success("API key updated.")
    print_json(result)


@app.command(render=render_key_created)
def create(
    ctx: typer.Context,
    name: Annotated[str, Argument(help="Name for the new key")],
    *,
    description: Annotated[str | None, Option("--description", "-d", help="What the key is for")] = None,
    scope: Annotated[list[str] | None, Option("--scope", "-s", help="Scope to grant (repeatable)")] = None,
) -> Any:
    """Create an API key. The key value is shown only once."""
    with get_context(ctx).admin_client() as client:
        return client.create_api_key(name, description, list(scope or []))


@app.command("list", render=render_api_keys)
def list_keys(ctx: typer.Context) -> Any:
    """List API keys."""
    with get_context(ctx).admin_client() as client:
        return client.list_api_keys()


@app.command()
def get(
    ctx: typer.Context,
    key_id: Annotated[str, Argument(help="API key ID")],
) -> Any:
    """Show one API key."""
    with get_context(ctx).admin_client() as client:
        return client.get_api_key(key_id)


@app.command(render=_render_updated)
def update(
    ctx: typer.Context,
    key_id: Annotated[str, Argument(help="API key ID")],
    *,
    name: Annotated[str | None, Option("--name", "-n", help="New name")] = None,
    description: Annotated[str | None, Option("--description", "-d", help="New description")] = None,
    scope: Annotated[list[str] | None, Option("--scope", "-s", help="Replacement scopes (repeatable)")] = None,
) -> Any:
    """Update an API key. Values that are not given keep their current setting."""
    if name is None and description is None and not scope:
        raise InputError(
            message="Nothing to update.",
            code="E1110",
            suggestion=Suggestion(
                action="pass a new value",
                fix="Provide at least one of --name, --description or --scope.",
                example=f"refwire api-key update {key_id} --name reporting",
            ),
        )

    with get_context(ctx).admin_client() as client:
        current = client.get_api_key(key_id) or {}
        return client.update_api_key(
            key_id,
            name if name is not None else current.get("name"),
            description if description is not None else current.get("description"),
            list(scope) if scope else list(current.get("scopes") or []),
        )


@app.command(render=_render_revoked)
def revoke(
    ctx: typer.Context,
    key_id: Annotated[str, Argument(help="API key ID")],
) -> dict[str, Any]:
    """Revoke an API key."""
    with get_context(ctx).admin_client() as client:
        client.revoke_api_key(key_id)
    return {"id": key_id, "revoked": True}
