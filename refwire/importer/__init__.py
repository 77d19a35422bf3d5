"""Schema inference and payload construction for dataset imports."""

from __future__ import annotations

from refwire.importer.designation import Role, normalize_dataset_id
from refwire.importer.designator import Action, Designator, FlagDesignator
from refwire.importer.payload import ItemsPayload, build_items_payload
from refwire.importer.pipeline import (
    ImportState,
    UploadRequest,
    build_request,
    configure_fields,
    designate_fields,
    load,
    upload,
    with_metadata,
)
from refwire.importer.schema import DataType, Field, discover_fields, infer_data_type, parse_records, sample_value

__all__ = [
    "Action",
    "DataType",
    "Designator",
    "Field",
    "FlagDesignator",
    "ImportState",
    "ItemsPayload",
    "Role",
    "UploadRequest",
    "build_items_payload",
    "build_request",
    "configure_fields",
    "designate_fields",
    "discover_fields",
    "infer_data_type",
    "load",
    "normalize_dataset_id",
    "parse_records",
    "sample_value",
    "upload",
    "with_metadata",
]
