"""Dataset commands, including the JSON import wizard and ListStor pulls."""

from __future__ import annotations

import logging
import re
from dataclasses import replace
from typing import Annotated, Any

import typer  # noqa: TC002

from refwire import Argument, Option, RefwireApp, __version__
from refwire.context import get_context
from refwire.errors import ApiError, ImportCancelled, InputError, NotFoundError, Suggestion
from refwire.importer import (
    ImportState,
    UploadRequest,
    build_request,
    configure_fields,
    designate_fields,
    load,
    upload,
    with_metadata,
)
from refwire.importer.designation import Role, designate
from refwire.input import read_json_file, read_text_file, require_keys
from refwire.output import (
    print_info,
    print_json,
    print_success,
    render_dataset_api,
    render_dataset_ids,
    render_dataset_meta,
    render_import_summary,
    warn,
)
from refwire.prompts import PromptDesignator, cancel_on_abort, prompt_input_file, prompt_metadata

logger = logging.getLogger(__name__)

app = RefwireApp(name="dataset", help="Manage datasets.", version=__version__)

VERSION_PATTERN = re.compile(r"^\d+\.\d+\.\d+$")


def _render_deleted(result: dict[str, Any]) -> None:
    print_success(f"Dataset '{result['id']}' deleted.")


def _render_saved(result: Any) -> None:
    print_success("Dataset saved.")
    if result is not None:
        print_json(result)


def _render_imported(result: dict[str, Any]) -> None:
    print_success(
        f"Dataset '{result['datasetId']}' created with {result['itemCount']} items "
        f"({result['skippedCount']} skipped)."
    )


def _import_result(state: ImportState, request: UploadRequest, response: Any) -> dict[str, Any]:
    return {
        "datasetId": request.dataset_id,
        "name": request.dataset_name,
        "idField": request.id_field,
        "nameField": request.name_field,
        "fields": state.included_fields,
        "recordCount": state.item_count,
        "itemCount": len(request.items),
        "skippedCount": state.skipped_count,
        "response": response,
    }


def _report_skipped(state: ImportState) -> None:
    if state.skipped_count:
        warn(f"{state.skipped_count} records will be skipped (missing or duplicate ID/Name values).")


@app.command("list-ids", render=render_dataset_ids)
def list_ids(ctx: typer.Context) -> Any:
    """List the IDs of all datasets."""
    with get_context(ctx).admin_client() as client:
        return client.list_dataset_ids()


@app.command("get-meta", render=render_dataset_meta)
def get_meta(
    ctx: typer.Context,
    dataset_id: Annotated[str, Argument(help="Dataset ID")],
) -> Any:
    """Show a dataset's metadata and field definitions."""
    with get_context(ctx).admin_client() as client:
        return client.get_dataset_meta(dataset_id)


@app.command("get-api", render=render_dataset_api)
def get_api(
    ctx: typer.Context,
    dataset_id: Annotated[str, Argument(help="Dataset ID")],
) -> Any:
    """Show the public API endpoints of a dataset."""
    with get_context(ctx).admin_client() as client:
        return client.get_dataset_api(dataset_id)


@app.command("get-state")
def get_state(ctx: typer.Context) -> Any:
    """Show the dataset state of the whole system."""
    with get_context(ctx).admin_client() as client:
        return client.get_system_state()


@app.command(render=_render_deleted)
def delete(
    ctx: typer.Context,
    dataset_id: Annotated[str, Argument(help="Dataset ID")],
    *,
    force: Annotated[bool, Option("--force", "-f", help="Delete without asking")] = False,
) -> dict[str, Any]:
    """Delete a dataset and all of its items."""
    refwire_ctx = get_context(ctx)
    with refwire_ctx.admin_client() as client:
        label = dataset_id
        try:
            meta = client.get_dataset_meta(dataset_id) or {}
            if meta.get("name"):
                label = f"{meta['name']} ({dataset_id})"
        except (ApiError, NotFoundError) as e:
            logger.info("Could not fetch metadata for %s: %s", dataset_id, e.message)

        if not refwire_ctx.confirm(f"Delete dataset {label}? This cannot be undone.", force=force):
            raise ImportCancelled("Deletion cancelled.")
        client.delete_dataset(dataset_id)
    return {"id": dataset_id, "deleted": True}


@app.command(render=_render_saved)
def create(
    ctx: typer.Context,
    *,
    file: Annotated[str, Option("--file", "-f", help="JSON file describing the dataset")],
) -> Any:
    """Create a dataset from a JSON definition file."""
    definition = read_json_file(file, expect=dict)
    require_keys(definition, ("id", "name", "idField", "nameField", "fields"), source=f"Dataset file '{file}'")
    with get_context(ctx).admin_client() as client:
        return client.create_dataset(
            definition["id"],
            definition["name"],
            definition.get("description") or "",
            definition["idField"],
            definition["nameField"],
            definition["fields"],
            definition.get("items") or {},
        )


@app.command(render=_render_saved)
def update(
    ctx: typer.Context,
    dataset_id: Annotated[str, Argument(help="Dataset ID")],
    *,
    file: Annotated[str, Option("--file", "-f", help="JSON file with the new name and fields")],
) -> Any:
    """Replace a dataset's name and field definitions."""
    definition = read_json_file(file, expect=dict)
    require_keys(definition, ("name", "fields"), source=f"Dataset file '{file}'")
    with get_context(ctx).admin_client() as client:
        return client.update_dataset(dataset_id, definition["name"], definition["fields"])


@app.command("import", render=_render_imported)
def import_dataset(
    ctx: typer.Context,
    *,
    file: Annotated[str | None, Option("--file", "-f", help="JSON array of records ('-' for stdin)")] = None,
    dataset_id: Annotated[str | None, Option("--id", help="Target dataset ID")] = None,
    name: Annotated[str | None, Option("--name", help="Target dataset name")] = None,
    description: Annotated[str | None, Option("--description", "-d", help="Dataset description")] = None,
    id_field: Annotated[str | None, Option("--id-field", help="Field holding each item's unique ID")] = None,
    name_field: Annotated[str | None, Option("--name-field", help="Field holding each item's display name")] = None,
    yes: Annotated[bool, Option("--yes", "-y", help="Upload without the final confirmation")] = False,
) -> dict[str, Any]:
    """Import a dataset from a JSON file.

    Prompts for anything not given on the command line. With --file, --id,
    --name, --id-field and --name-field all present no field prompts are shown.
    """
    refwire_ctx = get_context(ctx)
    with cancel_on_abort(), refwire_ctx.admin_client() as client:
        state = load(read_text_file(file or prompt_input_file()))
        print_info(f"Found {state.item_count} records with {len(state.fields)} fields.")

        if id_field and name_field:
            state = designate_fields(state, id_field=id_field, name_field=name_field, notify=print_info)
        else:
            fields = state.fields
            if id_field:
                fields = designate(fields, Role.ID, id_field)
            if name_field:
                fields = designate(fields, Role.NAME, name_field)
            state = configure_fields(replace(state, fields=fields), PromptDesignator(), warn)

        if dataset_id is None or name is None:
            dataset_id, name, description = prompt_metadata(
                dataset_id=dataset_id, dataset_name=name, description=description
            )
        state = with_metadata(
            state, dataset_id=dataset_id, dataset_name=name, description=description, notify=print_info
        )

        state, request = build_request(state)
        render_import_summary(state)
        _report_skipped(state)

        if not refwire_ctx.confirm("Proceed with import?", default=True, force=yes):
            raise ImportCancelled()
        print_info(f"Uploading {len(request.items)} items...")
        response = upload(client, request)

    return _import_result(state, request, response)


@app.command(render=_render_imported)
def pull(
    ctx: typer.Context,
    liststor_id: Annotated[str, Argument(help="Dataset ID in ListStor")],
    *,
    dataset_version: Annotated[
        str | None, Option("--dataset-version", "-V", help="Package version (x.y.z); latest when omitted")
    ] = None,
    dataset_id: Annotated[str | None, Option("--id", "-i", help="Target dataset ID (defaults to the ListStor ID)")] = None,
    name: Annotated[str | None, Option("--name", "-n", help="Target dataset name (defaults to the ListStor title)")] = None,
    description: Annotated[str | None, Option("--description", "-d", help="Dataset description")] = None,
    id_field: Annotated[str | None, Option("--id-field", help="Override the ID field from the package metadata")] = None,
    name_field: Annotated[
        str | None, Option("--name-field", help="Override the Name field from the package metadata")
    ] = None,
) -> dict[str, Any]:
    """Download a dataset from ListStor and create it on the server."""
    if dataset_version is not None and not VERSION_PATTERN.match(dataset_version):
        raise InputError(
            message=f"Invalid dataset version: {dataset_version}",
            code="E1108",
            suggestion=Suggestion(
                action="use a semantic version",
                fix="Pass the version as MAJOR.MINOR.PATCH.",
                example=f"refwire dataset pull {liststor_id} --dataset-version 1.0.0",
            ),
            details={"version": dataset_version},
        )

    refwire_ctx = get_context(ctx)
    with refwire_ctx.admin_client() as client:
        print_info(f"Downloading '{liststor_id}' from ListStor...")
        with refwire_ctx.store_client() as store:
            package = store.get_dataset(liststor_id, dataset_version)

        state = load(package.data)
        state = designate_fields(
            state,
            id_field=id_field,
            name_field=name_field,
            id_hint=package.meta_value("idField"),
            name_hint=package.meta_value("nameField"),
            notify=print_info,
        )
        state = with_metadata(
            state,
            dataset_id=dataset_id or package.meta_value("id"),
            dataset_name=name or package.meta_value("title"),
            description=description if description is not None else package.meta_value("description"),
            notify=print_info,
        )

        state, request = build_request(state)
        render_import_summary(state, heading="Pulled Dataset")
        _report_skipped(state)
        response = upload(client, request)

    return _import_result(state, request, response)
