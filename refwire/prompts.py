"""Interactive prompts for the dataset import wizard.

All prompts are written to stderr so that stdout carries only the command
result.
"""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path

import click

from refwire.errors import ImportCancelled
from refwire.importer import Action, Field
from refwire.output import console, render_fields_table

_ACTION_LABELS = {
    Action.SET_ID: "Set ID field",
    Action.SET_NAME: "Set Name field",
    Action.CHANGE_TYPE: "Change field data type",
    Action.TOGGLE_INCLUDE: "Include/exclude field",
    Action.PROCEED: "Proceed with import",
    Action.CANCEL: "Cancel import",
}


@contextmanager
def cancel_on_abort(message: str = "Import cancelled.") -> Iterator[None]:
    """Turn Ctrl-C or end of input at a prompt into :class:`ImportCancelled`."""
    try:
        yield
    except click.Abort as e:
        raise ImportCancelled(message) from e


class PromptDesignator:
    """Human-driven designator: shows the field table and asks via click."""

    def choose_action(self, fields: tuple[Field, ...], can_proceed: bool) -> Action:
        render_fields_table(fields)
        out = console(stderr=True)
        out.print("[bold]What would you like to do?[/bold]")
        for action, label in _ACTION_LABELS.items():
            if action is Action.PROCEED and not can_proceed:
                out.print(f"  [dim]{action.value:<15} {label} (select ID and Name first)[/dim]")
            else:
                out.print(f"  {action.value:<15} {label}")
        value = click.prompt(
            "Action",
            type=click.Choice([a.value for a in Action]),
            default=Action.PROCEED.value if can_proceed else Action.SET_ID.value,
            show_choices=False,
            err=True,
        )
        return Action(value)

    def choose_field(self, message: str, choices: list[str]) -> str:
        out = console(stderr=True)
        out.print(f"[bold]{message}[/bold]")
        for index, choice in enumerate(choices, start=1):
            out.print(f"  {index:>3}) {choice}")

        def _convert(value: str) -> str:
            value = value.strip()
            if value in choices:
                return value
            if value.isdigit() and 1 <= int(value) <= len(choices):
                return choices[int(value) - 1]
            raise click.BadParameter(f"Enter a number between 1 and {len(choices)} or a field name.")

        return click.prompt("Choice", value_proc=_convert, err=True)


def _existing_file(value: str) -> str:
    path = Path(value.strip())
    if not path.is_file():
        raise click.BadParameter(f"File not found: {value}")
    return str(path)


def prompt_input_file() -> str:
    return click.prompt("Path to the JSON file to import", value_proc=_existing_file, err=True)


def _dataset_id(value: str) -> str:
    if not value.strip():
        raise click.BadParameter("Dataset ID cannot be empty.")
    if any(ch.isspace() for ch in value):
        raise click.BadParameter("Dataset ID cannot contain spaces.")
    return value


def _required(value: str) -> str:
    if not value.strip():
        raise click.BadParameter("A value is required.")
    return value


def prompt_metadata(
    *,
    dataset_id: str | None = None,
    dataset_name: str | None = None,
    description: str | None = None,
) -> tuple[str, str, str]:
    """Ask for whatever dataset metadata was not given on the command line."""
    if dataset_id is None:
        dataset_id = click.prompt("Dataset ID (lowercase, no spaces)", value_proc=_dataset_id, err=True)
    if dataset_name is None:
        dataset_name = click.prompt("Dataset name", value_proc=_required, err=True)
    if description is None:
        description = click.prompt("Description (optional)", default="", show_default=False, err=True)
    return dataset_id, dataset_name, description
