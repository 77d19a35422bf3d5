"""Command-line entry point for refwire."""

from __future__ import annotations

from typing import Annotated

import typer

from refwire import RefwireApp, __version__
from refwire.commands import api_key, auth, dataset, health, instance, item

app = RefwireApp(
    name="refwire",
    help="Administration client for a RefWire server.",
    version=__version__,
)
app.add_typer(api_key.app, name="api-key")
app.add_typer(dataset.app, name="dataset")
app.add_typer(item.app, name="item")
app.add_typer(health.app, name="health")
app.add_typer(instance.app, name="instance")
app.add_typer(auth.app, name="auth")


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(f"refwire {__version__}")
        raise typer.Exit()


@app.callback()
def _root(
    version: Annotated[
        bool,
        typer.Option("--version", callback=_version_callback, is_eager=True, help="Show the version and exit."),
    ] = False,
) -> None:
    """Administration client for a RefWire server."""


def main() -> None:
    app()


if __name__ == "__main__":
    main()
