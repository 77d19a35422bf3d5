"""Import pipeline shared by the import wizard and remote pulls.

Each stage takes an :class:`ImportState` and returns a new one:

    load(raw) -> configure_fields(state, designator) -> with_metadata(...)
        -> build_request(state) -> upload(client, request)

Nothing is sent to the server until the request has been built in full.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass, field, replace
from typing import TYPE_CHECKING, Any

from refwire.errors import ImportCancelled, ValidationError
from refwire.importer.designation import (
    Role,
    can_proceed,
    check_designations,
    designate,
    normalize_dataset_id,
    toggle_included,
)
from refwire.importer.designator import (
    ID_FIELD_PROMPT,
    NAME_FIELD_PROMPT,
    Action,
    Designator,
    FlagDesignator,
)
from refwire.importer.payload import SkippedRecord, build_items_payload
from refwire.importer.schema import DataType, Field, discover_fields, field_names, find_field, parse_records, with_data_type

if TYPE_CHECKING:
    from refwire.api_client import AdminClient

logger = logging.getLogger(__name__)

Notify = Callable[[str], None]


def _log_notice(message: str) -> None:
    logger.info(message)


@dataclass(frozen=True)
class ImportState:
    """Working state of one import or pull."""

    raw_text: str
    records: tuple[dict[str, Any], ...]
    fields: tuple[Field, ...]
    dataset_id: str = ""
    dataset_name: str = ""
    description: str = ""
    skipped_count: int = 0

    @property
    def item_count(self) -> int:
        return len(self.records)

    @property
    def included_fields(self) -> list[str]:
        return [f.name for f in self.fields if f.is_included]

    @property
    def excluded_fields(self) -> list[str]:
        return [f.name for f in self.fields if not f.is_included]


@dataclass(frozen=True)
class UploadRequest:
    """Everything the dataset-creation endpoint receives."""

    dataset_id: str
    dataset_name: str
    description: str
    id_field: str
    name_field: str
    fields: list[dict[str, Any]]
    items: dict[str, dict[str, Any]]
    skipped: tuple[SkippedRecord, ...] = field(default_factory=tuple)

    def to_payload(self) -> dict[str, Any]:
        return {
            "id": self.dataset_id,
            "name": self.dataset_name,
            "description": self.description,
            "idField": self.id_field,
            "nameField": self.name_field,
            "fields": self.fields,
            "items": self.items,
        }


def load(raw_text: str | None) -> ImportState:
    """Parse raw text and discover the field schema."""
    records = parse_records(raw_text)
    fields = discover_fields(records)
    logger.debug("Discovered %d fields across %d records", len(fields), len(records))
    return ImportState(raw_text=raw_text or "", records=tuple(records), fields=fields)


def configure_fields(state: ImportState, designator: Designator, notify: Notify = _log_notice) -> ImportState:
    """Run the field configuration loop until the designator proceeds."""
    fields = state.fields
    data_types = [t.value for t in DataType]

    while True:
        names = field_names(fields)
        action = designator.choose_action(fields, can_proceed(fields))

        if action is Action.SET_ID:
            fields = designate(fields, Role.ID, designator.choose_field(ID_FIELD_PROMPT, names))
        elif action is Action.SET_NAME:
            fields = designate(fields, Role.NAME, designator.choose_field(NAME_FIELD_PROMPT, names))
        elif action is Action.CHANGE_TYPE:
            name = designator.choose_field("Select field to change data type", names)
            current = find_field(fields, name)
            current_type = current.data_type.value if current else DataType.UNKNOWN.value
            new_type = designator.choose_field(
                f"Select new data type for '{name}' (current: {current_type})", data_types
            )
            fields = with_data_type(fields, name, DataType(new_type))
        elif action is Action.TOGGLE_INCLUDE:
            name = designator.choose_field("Select field to include/exclude from the dataset", names)
            try:
                fields = toggle_included(fields, name)
            except ValidationError as e:
                notify(e.message)
        elif action is Action.PROCEED:
            if can_proceed(fields):
                break
            notify("Select ID and Name fields first.")
        elif action is Action.CANCEL:
            raise ImportCancelled()

    return replace(state, fields=fields)


def designate_fields(
    state: ImportState,
    *,
    id_field: str | None = None,
    name_field: str | None = None,
    id_hint: str | None = None,
    name_hint: str | None = None,
    notify: Notify = _log_notice,
) -> ImportState:
    """Designate ID and Name from flags or hints, without prompting."""
    designator = FlagDesignator(
        id_field=id_field,
        name_field=name_field,
        id_hint=id_hint,
        name_hint=name_hint,
        notify=notify,
    )
    return configure_fields(state, designator, notify)


def with_metadata(
    state: ImportState,
    *,
    dataset_id: str | None,
    dataset_name: str | None,
    description: str | None = None,
    notify: Notify = _log_notice,
) -> ImportState:
    """Attach target dataset metadata, normalizing the identifier."""
    normalized, changed = normalize_dataset_id(dataset_id)
    if changed:
        notify(f"Dataset ID normalized to lowercase: '{normalized}'")
    if not dataset_name:
        raise ValidationError("Dataset name is required.")
    return replace(
        state,
        dataset_id=normalized,
        dataset_name=dataset_name,
        description=description or "",
    )


def build_request(state: ImportState) -> tuple[ImportState, UploadRequest]:
    """Build the full upload request and record how many records were skipped."""
    id_field, name_field = check_designations(state.fields)
    payload = build_items_payload(state.fields, list(state.records), id_field.name, name_field.name)
    request = UploadRequest(
        dataset_id=state.dataset_id,
        dataset_name=state.dataset_name,
        description=state.description,
        id_field=id_field.name,
        name_field=name_field.name,
        fields=[f.to_definition() for f in state.fields if f.is_included],
        items=payload.items,
        skipped=payload.skipped,
    )
    return replace(state, skipped_count=payload.skipped_count), request


def upload(client: AdminClient, request: UploadRequest) -> Any:
    """Send the request to the dataset-creation endpoint."""
    return client.create_dataset(
        request.dataset_id,
        request.dataset_name,
        request.description,
        request.id_field,
        request.name_field,
        request.fields,
        request.items,
    )
