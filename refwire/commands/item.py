"""Item commands for a single dataset."""

from __future__ import annotations

from typing import Annotated, Any

import typer  # noqa: TC002

from refwire import Argument, Option, RefwireApp, __version__
from refwire.context import get_context
from refwire.errors import InputError, Suggestion
from refwire.input import parse_json_option, read_json_file
from refwire.output import print_json, print_success

app = RefwireApp(name="item", help="Manage the items of a dataset.", version=__version__)


def _render_item(result: Any) -> None:
    print_success("Item saved.")
    if result is not None:
        print_json(result)


def _render_bulk(result: dict[str, Any]) -> None:
    print_success(f"Submitted {result['submitted']} items to '{result['datasetId']}'.")
    if result.get("response") is not None:
        print_json(result["response"])


def _render_archived(result: dict[str, Any]) -> None:
    print_success(f"Item '{result['itemId']}' archived.")


def _item_data(data: str | None, data_file: str | None) -> Any:
    if data is not None and data_file is not None:
        raise InputError(
            message="Use either --data or --data-file, not both.",
            code="E1111",
            details={"data": data, "data_file": data_file},
        )
    if data_file is not None:
        return read_json_file(data_file)
    if data is not None:
        return parse_json_option(data, "--data")
    return None


@app.command(render=_render_item)
def add(
    ctx: typer.Context,
    dataset_id: Annotated[str, Argument(help="Dataset ID")],
    item_id: Annotated[str, Argument(help="Item ID")],
    name: Annotated[str, Argument(help="Item display name")],
    *,
    data: Annotated[str | None, Option("--data", "-d", help="Item data as a JSON document")] = None,
    data_file: Annotated[str | None, Option("--data-file", help="File holding the item data as JSON")] = None,
) -> Any:
    """Add one item to a dataset."""
    payload = _item_data(data, data_file)
    with get_context(ctx).admin_client() as client:
        return client.add_item(dataset_id, item_id, name, payload if payload is not None else {})


@app.command("add-bulk", render=_render_bulk)
def add_bulk(
    ctx: typer.Context,
    dataset_id: Annotated[str, Argument(help="Dataset ID")],
    *,
    file: Annotated[str, Option("--file", "-f", help="JSON array of items, each with id, name and data")],
) -> dict[str, Any]:
    """Add many items to a dataset from a JSON file."""
    items = read_json_file(file, expect=list)
    with get_context(ctx).admin_client() as client:
        response = client.add_items_bulk(dataset_id, items)
    return {"datasetId": dataset_id, "submitted": len(items), "response": response}


@app.command(render=_render_item)
def update(
    ctx: typer.Context,
    dataset_id: Annotated[str, Argument(help="Dataset ID")],
    item_id: Annotated[str, Argument(help="Item ID")],
    *,
    name: Annotated[str | None, Option("--name", "-n", help="New display name")] = None,
    data: Annotated[str | None, Option("--data", "-d", help="Replacement data as a JSON document")] = None,
    data_file: Annotated[str | None, Option("--data-file", help="File holding the replacement data")] = None,
) -> Any:
    """Update an item's name or data."""
    payload = _item_data(data, data_file)
    if name is None and payload is None:
        raise InputError(
            message="Nothing to update.",
            code="E1110",
            suggestion=Suggestion(
                action="pass a new value",
                fix="Provide --name, --data or --data-file.",
                example=f"refwire item update {dataset_id} {item_id} --name 'New name'",
            ),
        )
    with get_context(ctx).admin_client() as client:
        return client.update_item(dataset_id, item_id, name, payload)


@app.command(render=_render_archived)
def archive(
    ctx: typer.Context,
    dataset_id: Annotated[str, Argument(help="Dataset ID")],
    item_id: Annotated[str, Argument(help="Item ID")],
) -> dict[str, Any]:
    """Archive an item so it no longer appears in the dataset."""
    with get_context(ctx).admin_client() as client:
        client.archive_item(dataset_id, item_id)
    return {"datasetId": dataset_id, "itemId": item_id, "archived": True}
