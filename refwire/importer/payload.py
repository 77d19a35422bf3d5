"""Item payload construction for bulk dataset creation."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any

from refwire.importer.schema import Field, stringify

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SkippedRecord:
    index: int
    reason: str


@dataclass(frozen=True)
class ItemsPayload:
    """Items keyed by stringified ID, plus the records that were dropped."""

    items: dict[str, dict[str, Any]]
    skipped: tuple[SkippedRecord, ...] = field(default_factory=tuple)

    @property
    def skipped_count(self) -> int:
        return len(self.skipped)


def build_items_payload(
    fields: tuple[Field, ...],
    records: list[dict[str, Any]],
    id_field: str,
    name_field: str,
) -> ItemsPayload:
    """Build the items payload, skipping records without a usable ID or Name.

    The first record with a given stringified ID wins. Only included fields that
    a record actually carries are copied into its ``data``.
    """
    included = [f.name for f in fields if f.is_included]
    items: dict[str, dict[str, Any]] = {}
    skipped: list[SkippedRecord] = []

    for index, record in enumerate(records):
        raw_id = record.get(id_field)
        raw_name = record.get(name_field)
        if raw_id is None or raw_name is None:
            skipped.append(SkippedRecord(index, f"missing ID ('{id_field}') or Name ('{name_field}') field"))
            continue

        item_id = stringify(raw_id)
        if not item_id:
            skipped.append(SkippedRecord(index, f"empty ID ('{id_field}') field after conversion"))
            continue
        if item_id in items:
            skipped.append(SkippedRecord(index, f"duplicate item ID '{item_id}', using first occurrence"))
            continue

        data = {name: record[name] for name in included if name in record}
        items[item_id] = {
            "id": item_id,
            "name": stringify(raw_name),
            "data": data,
            "isArchived": False,
        }

    for skip in skipped:
        logger.debug("Skipping item at index %d: %s", skip.index, skip.reason)

    return ItemsPayload(items=items, skipped=tuple(skipped))
