"""Field discovery and type inference over an array of JSON records."""

from __future__ import annotations

import json
import math
import re
from dataclasses import dataclass, replace
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Any

from refwire.errors import ParseError, ValidationError

MAX_SAMPLES = 3
MAX_SAMPLE_LENGTH = 30

_DATE_PATTERN = re.compile(r"\d{4}-\d{2}-\d{2}")


class DataType(str, Enum):
    TEXT = "Text"
    DATE = "Date"
    NUMBER = "Number"
    BOOLEAN = "Boolean"
    LIST = "List"
    UNKNOWN = "Unknown"


@dataclass(frozen=True)
class Field:
    """Inferred descriptor for one key seen across the records."""

    name: str
    data_type: DataType = DataType.UNKNOWN
    sample_values: tuple[str, ...] = ()
    is_id: bool = False
    is_name: bool = False
    is_included: bool = True

    def to_definition(self) -> dict[str, Any]:
        """Return the field definition the dataset API expects."""
        return {
            "name": self.name,
            "dataType": self.data_type.value,
            "isId": self.is_id,
            "isName": self.is_name,
            "isRequired": self.is_id or self.is_name,
            "isIncluded": self.is_included,
            "sampleValues": list(self.sample_values),
        }


class SampleBuffer:
    """Keeps the first few distinct, non-empty samples of a field."""

    def __init__(self, capacity: int = MAX_SAMPLES) -> None:
        self.capacity = capacity
        self._values: list[str] = []

    def add(self, sample: str | None) -> None:
        if len(self._values) >= self.capacity:
            return
        if sample is None or sample == "":
            return
        if sample not in self._values:
            self._values.append(sample)

    def freeze(self) -> tuple[str, ...]:
        return tuple(self._values)


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _looks_like_date(value: str) -> bool:
    if _DATE_PATTERN.search(value) is None:
        return False
    candidate = value.strip()
    if candidate.endswith(("Z", "z")):
        candidate = candidate[:-1] + "+00:00"
    try:
        datetime.fromisoformat(candidate)
    except ValueError:
        return False
    return True


def infer_data_type(value: Any) -> DataType:
    """Infer the data type of a single JSON value."""
    if isinstance(value, str):
        return DataType.DATE if _looks_like_date(value) else DataType.TEXT
    if isinstance(value, bool):
        return DataType.BOOLEAN
    if _is_number(value):
        return DataType.NUMBER
    if isinstance(value, list):
        return DataType.LIST
    return DataType.UNKNOWN


def format_number(value: int | float) -> str:
    """Render a JSON number the way a JavaScript client prints it.

    Positional notation covers magnitudes from 1e-6 up to 1e21; anything
    outside that range uses exponent notation such as ``1e-7`` or ``1e+21``.
    """
    if not isinstance(value, float):
        return str(value)
    if not math.isfinite(value):
        return repr(value)

    sign = "-" if value < 0 else ""
    _, digit_tuple, exponent = Decimal(repr(abs(value))).normalize().as_tuple()
    digits = "".join(str(d) for d in digit_tuple)
    point = exponent + len(digits)
    if 0 < point <= 21:
        if point >= len(digits):
            return sign + digits + "0" * (point - len(digits))
        return f"{sign}{digits[:point]}.{digits[point:]}"
    if -6 < point <= 0:
        return f"{sign}0.{'0' * -point}{digits}"
    mantissa = digits[0] + (f".{digits[1:]}" if len(digits) > 1 else "")
    power = point - 1
    return f"{sign}{mantissa}e{'+' if power > 0 else '-'}{abs(power)}"


def stringify(value: Any) -> str:
    """Convert a raw JSON value to the string used for item IDs and names."""
    if isinstance(value, str):
        return value
    if isinstance(value, bool):
        return "true" if value else "false"
    if _is_number(value):
        return format_number(value)
    if value is None:
        return "null"
    return json.dumps(value, ensure_ascii=False, separators=(",", ":"))


def sample_value(value: Any) -> str:
    """Project a value to the short string shown in field previews."""
    if value is None:
        return "null"
    if isinstance(value, str):
        if len(value) > MAX_SAMPLE_LENGTH:
            return value[:27] + "..."
        return value
    if isinstance(value, bool) or _is_number(value):
        return stringify(value)
    if isinstance(value, list):
        return "[...]"
    if isinstance(value, dict):
        return "{...}"
    return str(value)[:MAX_SAMPLE_LENGTH]


def _reject_constant(token: str) -> Any:
    # NaN, Infinity and -Infinity are accepted by json.loads but are not JSON.
    raise ParseError(f"JSON Parsing Error: Unexpected token {token}", details={"token": token})


def parse_records(raw: str | None) -> list[dict[str, Any]]:
    """Parse import text into a list of records, validating its shape."""
    if raw is None or raw == "":
        raise ValidationError("No JSON content provided or downloaded.")
    try:
        parsed = json.loads(raw, parse_constant=_reject_constant)
    except json.JSONDecodeError as e:
        raise ParseError(
            f"JSON Parsing Error: {e.msg}",
            details={"line": e.lineno, "column": e.colno},
        ) from e
    return validate_records(parsed)


def validate_records(parsed: Any) -> list[dict[str, Any]]:
    if not isinstance(parsed, list):
        raise ValidationError("Input must be a JSON array.", details={"type": type(parsed).__name__})
    if not parsed:
        raise ValidationError("JSON array cannot be empty.")
    for index, item in enumerate(parsed):
        if not isinstance(item, dict):
            raise ValidationError(
                f"Item at index {index} is not a valid JSON object.",
                details={"index": index},
            )
    return parsed


def discover_fields(records: list[dict[str, Any]]) -> tuple[Field, ...]:
    """Infer one Field per distinct key, in first-seen order.

    A field typed ``Unknown`` (null or object values) is upgraded by the first
    later value with a concrete type. Once concrete, the type never changes,
    even if later records disagree.
    """
    records = validate_records(records)

    types: dict[str, DataType] = {}
    samples: dict[str, SampleBuffer] = {}
    for record in records:
        for key, value in record.items():
            inferred = infer_data_type(value)
            if key not in types:
                types[key] = inferred
                samples[key] = SampleBuffer()
            elif types[key] is DataType.UNKNOWN and inferred is not DataType.UNKNOWN:
                types[key] = inferred
            samples[key].add(sample_value(value))

    if not types:
        raise ValidationError("No fields found across all items in the JSON array.")

    return tuple(
        Field(name=name, data_type=data_type, sample_values=samples[name].freeze())
        for name, data_type in types.items()
    )


def field_names(fields: tuple[Field, ...]) -> list[str]:
    return [f.name for f in fields]


def find_field(fields: tuple[Field, ...], name: str) -> Field | None:
    for f in fields:
        if f.name == name:
            return f
    return None


def with_data_type(fields: tuple[Field, ...], name: str, data_type: DataType) -> tuple[Field, ...]:
    """Return fields with ``name`` retyped."""
    return tuple(replace(f, data_type=data_type) if f.name == name else f for f in fields)
