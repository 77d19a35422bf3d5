"""Credential commands: save, inspect and forget the admin API login."""

from __future__ import annotations

from typing import Annotated, Any

import click
import typer  # noqa: TC002

from refwire import Option, RefwireApp, __version__
from refwire.config import (
    ENV_VAR_API_KEY,
    ENV_VAR_URL,
    Credentials,
    clear_credentials,
    is_valid_url,
    normalize_url,
    save_credentials,
)
from refwire.context import get_context
from refwire.errors import ImportCancelled, InputError
from refwire.output import console, print_info, print_success, warn
from refwire.prompts import cancel_on_abort

app = RefwireApp(name="auth", help="Manage saved credentials.", version=__version__)


def mask_key(api_key: str | None) -> str | None:
    """Hide all but the last four characters of an API key."""
    if not api_key:
        return api_key
    if len(api_key) <= 4:
        return "*" * len(api_key)
    return "*" * (len(api_key) - 4) + api_key[-4:]


def _check_url(value: str, option: str) -> str:
    if not is_valid_url(value):
        raise InputError(
            message=f"Invalid URL for {option}: {value}",
            code="E1301",
            details={"option": option, "value": value},
        )
    return value


def _render_login(result: dict[str, Any]) -> None:
    print_success(f"Credentials saved to {result['configFile']}.")


def _render_status(result: dict[str, Any]) -> None:
    out = console()
    sources = result["sources"]
    for label, key in (("Server URL", "serverUrl"), ("API Key", "apiKey"), ("Store URL", "storeUrl")):
        value = result[key] or "[dim](not set)[/dim]"
        source = sources.get(key)
        suffix = f" [dim]({source})[/dim]" if source else ""
        out.print(f" [bold]{label + ':':<12}[/bold] {value}{suffix}")
    out.print(f" [bold]{'Config:':<12}[/bold] {result['configFile']}")
    if not result["configured"]:
        print_info("Not fully configured. Run 'refwire auth login'.")


def _render_logout(result: dict[str, Any]) -> None:
    if result["removed"]:
        print_success(f"Removed {result['configFile']}.")
    else:
        print_info("No saved credentials to remove.")


@app.command(render=_render_login)
def login(
    ctx: typer.Context,
    *,
    server_url: Annotated[str | None, Option("--server-url", help="RefWire server URL")] = None,
    api_key: Annotated[str | None, Option("--api-key", help="Admin API key")] = None,
    store_url: Annotated[str | None, Option("--store-url", help="ListStor URL")] = None,
) -> dict[str, Any]:
    """Save the server URL and API key for later commands."""
    refwire_ctx = get_context(ctx)
    with cancel_on_abort("Login cancelled."):
        if server_url is None:
            server_url = click.prompt("RefWire server URL", err=True)
        if api_key is None:
            api_key = click.prompt("API Key", hide_input=True, err=True)

    server_url = _check_url(normalize_url(server_url) or "", "--server-url")
    if store_url is not None:
        store_url = normalize_url(store_url)

    config = refwire_ctx.config()
    path = save_credentials(Credentials(server_url=server_url, api_key=api_key, store_url=store_url), config.path)
    for env_key in config.env_overrides:
        warn(f"{env_key} is set and takes precedence over the saved value.")
    return {"configFile": str(path), "serverUrl": server_url, "storeUrl": store_url}


@app.command(render=_render_status)
def status(ctx: typer.Context) -> dict[str, Any]:
    """Show which credentials are in effect and where they come from."""
    config = get_context(ctx).config()
    credentials = config.credentials()
    return {
        "configured": bool(credentials.server_url and credentials.api_key),
        "serverUrl": credentials.server_url,
        "apiKey": mask_key(credentials.api_key),
        "storeUrl": credentials.store_url,
        "sources": {
            "serverUrl": config.source("server_url"),
            "apiKey": config.source("api_key"),
            "storeUrl": config.source("store_url"),
        },
        "configFile": str(config.path),
        "envVars": [ENV_VAR_URL, ENV_VAR_API_KEY],
    }


@app.command(render=_render_logout)
def logout(
    ctx: typer.Context,
    *,
    force: Annotated[bool, Option("--force", "-f", help="Remove without asking")] = False,
) -> dict[str, Any]:
    """Delete the saved credentials file."""
    refwire_ctx = get_context(ctx)
    config = refwire_ctx.config()
    if config.path.exists() and not refwire_ctx.confirm(f"Remove saved credentials in {config.path}?", force=force):
        raise ImportCancelled("Logout cancelled.")
    removed = clear_credentials(config.path)
    return {"configFile": str(config.path), "removed": removed}
