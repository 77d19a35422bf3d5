"""ID / Name designation and dataset identifier rules."""

from __future__ import annotations

import re
from dataclasses import dataclass, replace
from enum import Enum

from refwire.errors import FieldNotFoundError, ResolutionError, ValidationError
from refwire.importer.schema import Field, field_names, find_field

_WHITESPACE = re.compile(r"\s")


class Role(str, Enum):
    ID = "ID"
    NAME = "Name"


@dataclass(frozen=True)
class Pick:
    """Outcome of resolving one role against the discovered fields."""

    role: Role
    field_name: str
    auto_selected: bool = False


def designate(fields: tuple[Field, ...], role: Role, name: str) -> tuple[Field, ...]:
    """Mark exactly ``name`` as the field for ``role`` and clear it elsewhere."""
    if find_field(fields, name) is None:
        raise FieldNotFoundError(role.value, name, field_names(fields))
    if role is Role.ID:
        return tuple(replace(f, is_id=(f.name == name)) for f in fields)
    return tuple(replace(f, is_name=(f.name == name)) for f in fields)


def pick_field(
    available: list[str],
    role: Role,
    explicit: str | None = None,
    hint: str | None = None,
) -> Pick:
    """Choose the field for ``role``: explicit override first, then the hint."""
    if explicit:
        if explicit not in available:
            raise FieldNotFoundError(role.value, explicit, available)
        return Pick(role=role, field_name=explicit)
    if hint and hint in available:
        return Pick(role=role, field_name=hint, auto_selected=True)
    raise ResolutionError(role.value, available)


def designated(fields: tuple[Field, ...], role: Role) -> Field | None:
    for f in fields:
        if (f.is_id if role is Role.ID else f.is_name):
            return f
    return None


def can_proceed(fields: tuple[Field, ...]) -> bool:
    return designated(fields, Role.ID) is not None and designated(fields, Role.NAME) is not None


def toggle_included(fields: tuple[Field, ...], name: str) -> tuple[Field, ...]:
    """Flip inclusion of ``name``. The ID and Name fields cannot be excluded."""
    target = find_field(fields, name)
    if target is None:
        raise FieldNotFoundError("included", name, field_names(fields))
    if target.is_id or target.is_name:
        raise ValidationError("Cannot exclude the ID or Name field.", details={"field": name})
    return tuple(replace(f, is_included=not f.is_included) if f.name == name else f for f in fields)


def check_designations(fields: tuple[Field, ...]) -> tuple[Field, Field]:
    """Return the (ID, Name) fields, enforcing the upload invariant."""
    ids = [f for f in fields if f.is_id]
    names = [f for f in fields if f.is_name]
    if len(ids) != 1 or len(names) != 1:
        raise ValidationError(
            "Exactly one ID field and one Name field must be designated.",
            details={"id_fields": [f.name for f in ids], "name_fields": [f.name for f in names]},
        )
    if not ids[0].is_included or not names[0].is_included:
        raise ValidationError(
            "The final list of included fields is missing an ID or Name field.",
            details={"id_field": ids[0].name, "name_field": names[0].name},
        )
    return ids[0], names[0]


def normalize_dataset_id(dataset_id: str | None) -> tuple[str, bool]:
    """Validate a dataset identifier and lower-case it.

    Returns the normalized identifier and whether lower-casing changed it.
    Whitespace is rejected rather than trimmed.
    """
    if not dataset_id:
        raise ValidationError("Dataset ID cannot be empty.")
    if _WHITESPACE.search(dataset_id):
        raise ValidationError("Dataset ID should not contain spaces.", details={"dataset_id": dataset_id})
    normalized = dataset_id.lower()
    return normalized, normalized != dataset_id
