"""Output mode resolution and human-oriented rendering for refwire."""

from __future__ import annotations

import json
import os
import sys
from collections.abc import Iterable
from datetime import datetime
from enum import Enum
from typing import TYPE_CHECKING, Any

import click
from rich import box
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

if TYPE_CHECKING:
    from refwire.importer import Field, ImportState

OUTPUT_ENV_VAR = "REFWIRE_OUTPUT"


class OutputMode(str, Enum):
    AUTO = "auto"
    JSON = "json"
    TEXT = "text"


def is_tty() -> bool:
    """Return True if stdout is an interactive terminal.

    This wrapper exists to make TTY behavior testable.
    """

    try:
        return bool(sys.stdout.isatty())
    except Exception:
        return False


def parse_output_mode(value: str) -> OutputMode:
    normalized = value.strip().lower()
    for mode in OutputMode:
        if normalized == mode.value:
            return mode
    raise click.BadParameter(f"Invalid output mode: {value!r}")


def resolve_output_mode(ctx: click.Context) -> OutputMode:
    """Resolve output mode for the current invocation.

    Precedence:
    1) explicit CLI flags captured into ctx.meta (last flag wins)
    2) REFWIRE_OUTPUT env var
    3) auto-detection (TTY -> TEXT, non-TTY -> JSON)
    """

    explicit: OutputMode | None = ctx.meta.get("refwire_output_override")
    mode = explicit
    if mode is None:
        env = os.getenv(OUTPUT_ENV_VAR)
        mode = parse_output_mode(env) if env else OutputMode.AUTO
    if mode is OutputMode.AUTO:
        return OutputMode.TEXT if is_tty() else OutputMode.JSON
    return mode


def resolve_no_color(ctx: click.Context | None = None) -> bool:
    """Return True if color/markup should be disabled."""

    ctx = ctx or click.get_current_context(silent=True)
    if ctx is not None and bool(ctx.meta.get("refwire_no_color")):
        return True
    return bool(os.getenv("NO_COLOR"))


def console(*, stderr: bool = False) -> Console:
    no_color = resolve_no_color()
    return Console(stderr=stderr, no_color=no_color, highlight=False, soft_wrap=True)


# Status lines go to stderr so stdout stays machine-readable.


def print_success(message: str) -> None:
    console(stderr=True).print(f"[green]Success:[/green] {escape(message)}")


def print_info(message: str) -> None:
    console(stderr=True).print(f"[bright_blue]{escape(message)}[/bright_blue]")


def print_warning(message: str) -> None:
    console(stderr=True).print(f"[yellow]Warning:[/yellow] {escape(message)}")


def print_error(message: str) -> None:
    console(stderr=True).print(f"[bold red]Error:[/bold red] {escape(message)}")


def json_dumps(value: Any) -> str:
    return json.dumps(value, ensure_ascii=False, sort_keys=True, separators=(",", ":"), default=str)


def print_json(data: Any) -> None:
    click.echo(json.dumps(data, indent=2, ensure_ascii=False, default=str))


def _yes(value: Any) -> str:
    return "[green]Yes[/green]" if value else "No"


def format_timestamp(value: str | None) -> str:
    if not value:
        return "-"
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return value
    return parsed.astimezone().strftime("%Y-%m-%d %H:%M:%S")


def _cell(value: Any) -> str:
    if value is None or value == "":
        return "-"
    return escape(str(value))


def render_api_keys(keys: list[dict[str, Any]] | None) -> None:
    if not keys:
        print_info("No API keys found.")
        return
    table = Table(box=box.SQUARE, header_style="cyan")
    table.add_column("ID", min_width=36)
    table.add_column("Name")
    table.add_column("Expires")
    for key in keys:
        table.add_row(_cell(key.get("id")), _cell(key.get("name")), format_timestamp(key.get("expiresAt")))
    console().print(table)


def render_key_created(response: dict[str, Any]) -> None:
    out = console()
    out.print("[green]API Key Created Successfully![/green]")
    out.print("[yellow]IMPORTANT: Store this key securely. It will not be shown again.[/yellow]")
    out.print("-" * 42)
    out.print(f" [bold]ID:[/bold]      {_cell(response.get('id'))}")
    out.print(f" [bold]Name:[/bold]    {_cell(response.get('name'))}")
    out.print(f" [bold]Key:[/bold]     [cyan]{_cell(response.get('oneTimeDisplayKey'))}[/cyan]")
    out.print(f" [bold]Expires:[/bold] {format_timestamp(response.get('expiresAt'))}")
    out.print("-" * 42)


def render_instances(instances: list[dict[str, Any]] | None) -> None:
    if not instances:
        print_info("No app instances found.")
        return
    table = Table(box=box.SQUARE, header_style="cyan")
    for column in ("ID", "Alive", "Datasets", "Memory", "CPU", "Leader"):
        table.add_column(column)
    for inst in instances:
        memory = inst.get("managedMemory", inst.get("mangedMemory"))
        cpu = inst.get("cpuUsage")
        table.add_row(
            _cell(inst.get("hostName") or inst.get("id")),
            "[green]Yes[/green]" if inst.get("isAlive") else "[red]No[/red]",
            _cell(inst.get("loadedDatasets")),
            f"{memory} MB" if memory else "N/A",
            f"{cpu} %" if cpu else "N/A",
            _yes(inst.get("isLeader")),
        )
    console().print(table)


def render_dataset_ids(ids: list[str] | None) -> None:
    if not ids:
        print_info("No datasets found.")
        return
    out = console()
    out.print("Available Dataset IDs:")
    for dataset_id in ids:
        out.print(f"- {escape(str(dataset_id))}")


def _format_samples(samples: Iterable[Any] | None) -> str:
    values = [str(s) for s in (samples or [])]
    if not values:
        return "None"
    shown = values[:3]
    if len(values) > 3:
        shown.append("...")
    return ", ".join(shown)


def render_dataset_meta(metadata: dict[str, Any] | None) -> None:
    if not metadata:
        print_error("No dataset metadata provided")
        return

    out = console()
    header = [
        f"[bold cyan]Dataset:[/bold cyan] {_cell(metadata.get('name') or 'Unnamed')} "
        f"[grey50]({_cell(metadata.get('id'))})[/grey50]",
    ]
    if metadata.get("description"):
        header.append(f"[bold cyan]Description:[/bold cyan] {escape(str(metadata['description']))}")
    header.append(f"[bold cyan]ID Field:[/bold cyan] [yellow]{_cell(metadata.get('idField') or 'None')}[/yellow]")
    header.append(f"[bold cyan]Name Field:[/bold cyan] [yellow]{_cell(metadata.get('nameField') or 'None')}[/yellow]")
    out.print(Panel("\n".join(header), border_style="blue", box=box.ROUNDED, padding=1))

    fields = metadata.get("fields") or []
    if not fields:
        print_info("This dataset has no fields defined.")
        return

    table = Table(box=box.SQUARE, header_style="cyan")
    table.add_column("Field Name")
    table.add_column("Data Type")
    table.add_column("Properties")
    table.add_column("Sample Values", max_width=40)
    for f in fields:
        properties = []
        if f.get("isId"):
            properties.append("[yellow]ID Field[/yellow]")
        if f.get("isName"):
            properties.append("[green]Name Field[/green]")
        if f.get("isRequired"):
            properties.append("[red]Required[/red]")
        if f.get("isIncluded"):
            properties.append("[blue]Included[/blue]")
        table.add_row(
            _cell(f.get("name")),
            f"[cyan]{_cell(f.get('dataType') or 'Unknown')}[/cyan]",
            "\n".join(properties) or "-",
            f"[dim]{escape(_format_samples(f.get('sampleValues')))}[/dim]",
        )

    out.print("[bold underline]Fields Definition:[/bold underline]")
    out.print(table)
    out.print(f"[dim]Total Fields: {len(fields)}[/dim]")


_API_ENDPOINTS = (
    ("List Items", "listItemsUrl"),
    ("Get Item By ID", "getItemByIdUrl"),
    ("Search Items By IDs", "searchItemsByIdsUrl"),
    ("Search Items", "searchItemsUrl"),
)


def render_dataset_api(spec: dict[str, Any] | None) -> None:
    if not spec:
        print_error("No API specification provided")
        return

    out = console()
    out.print(Panel("[bold cyan]Dataset API Endpoints[/bold cyan]", border_style="cyan", box=box.ROUNDED, padding=1))

    table = Table(box=box.SQUARE, header_style="cyan")
    table.add_column("Operation", min_width=25)
    table.add_column("Endpoint URL")
    for label, key in _API_ENDPOINTS:
        table.add_row(f"[green]{label}[/green]", _cell(spec.get(key) or "Not defined"))
    out.print(table)

    out.print("[bold underline]Example Usage:[/bold underline]")
    if spec.get("getItemByIdUrl"):
        out.print(f"[dim]GET[/dim] [cyan]{escape(spec['getItemByIdUrl'])}[/cyan] [dim]- Retrieves a specific item[/dim]")
    if spec.get("searchItemsUrl"):
        out.print(f"[dim]POST[/dim] [cyan]{escape(spec['searchItemsUrl'])}[/cyan] [dim]- Finds items matching query criteria[/dim]")
    template = spec.get("updateItemUrlTemplate")
    if template:
        example = template.replace("{id}", "123456")
        out.print(f"[dim]PUT[/dim] [cyan]{escape(example)}[/cyan] [dim]- Updates an existing item[/dim]")


def render_fields_table(fields: Iterable[Field]) -> None:
    """Show the field configuration table used by the import wizard."""
    table = Table(box=box.SQUARE, header_style="cyan")
    table.add_column("Field Name", max_width=25)
    table.add_column("Data Type")
    table.add_column("Samples", max_width=40)
    table.add_column("Is ID?", header_style="yellow")
    table.add_column("Is Name?", header_style="yellow")
    table.add_column("Included?", header_style="yellow")
    for f in fields:
        table.add_row(
            escape(f.name),
            f.data_type.value,
            escape(", ".join(f.sample_values)) or "[dim](none)[/dim]",
            _yes(f.is_id),
            _yes(f.is_name),
            "[green]Yes[/green]" if f.is_included else "[red]No[/red]",
        )
    console(stderr=True).print(table)


def render_import_summary(state: ImportState, heading: str = "Dataset Configuration") -> None:
    """Summarize an import before it is uploaded."""
    id_field = next((f for f in state.fields if f.is_id), None)
    name_field = next((f for f in state.fields if f.is_name), None)
    out = console(stderr=True)
    out.print(f"\n[cyan]--- {heading} ---[/cyan]")
    out.print(f" [bold]Dataset ID:[/bold]      {escape(state.dataset_id)}")
    out.print(f" [bold]Dataset Name:[/bold]    {escape(state.dataset_name)}")
    out.print(f" [bold]Description:[/bold]     {escape(state.description) or '[dim](none)[/dim]'}")
    if id_field is not None:
        out.print(f" [bold]ID Field:[/bold]        {escape(id_field.name)} ({id_field.data_type.value})")
    if name_field is not None:
        out.print(f" [bold]Name Field:[/bold]      {escape(name_field.name)} ({name_field.data_type.value})")
    out.print(f" [bold]Total Items:[/bold]     {state.item_count}")
    included = state.included_fields
    out.print(f" [bold]Included Fields:[/bold] {escape(', '.join(included)) if included else '[dim](none)[/dim]'}")
    if state.excluded_fields:
        out.print(f" [dim italic]Excluded Fields:[/dim italic] {escape(', '.join(state.excluded_fields))}")


def warn(message: str) -> None:
    """Print a warning and record it for the JSON envelope of this invocation."""
    ctx = click.get_current_context(silent=True)
    if ctx is not None:
        ctx.meta.setdefault("refwire_warnings", []).append(message)
    print_warning(message)
