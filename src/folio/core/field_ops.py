"""Field schemas, coercion, and validation for admin request bodies.

Each admin resource declares a ``dict[str, FieldDef]`` that maps a table column
to the body key it is read from and the coercion applied to it. Handlers call
``coerce_body`` to turn an untrusted JSON body into bind parameters, and
``validate_body`` to collect choice errors before touching the store.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from enum import Enum
from typing import Any

STATUSES = ("draft", "published")


class FieldType(Enum):
    """Supported column types for admin bodies."""

    STRING = "string"
    OPTIONAL_STRING = "optional_string"
    INT = "int"
    OPTIONAL_INT = "optional_int"
    STATUS = "status"
    JSON_LIST = "json_list"
    JSON_OBJECT = "json_object"


@dataclass
class FieldDef:
    """Schema definition for a single column."""

    field_type: FieldType
    description: str
    source: str | None = None
    default: Any = None
    choices: list[str] | None = None

    def body_key(self, column: str) -> str:
        return self.source or column


# ---------------------------------------------------------------------------
# Scalar coercion
# ---------------------------------------------------------------------------


def as_int(value: Any, fallback: int) -> int:
    """Parse a positive integer (query-string style), else return *fallback*."""
    try:
        parsed = int(str(value).strip())
    except (TypeError, ValueError):
        return fallback
    return parsed if parsed > 0 else fallback


def as_optional_int(value: Any) -> int | None:
    """Return an int for numeric input, None for blanks and garbage."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, str) and not value.strip():
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    if number != number or number in (float("inf"), float("-inf")):
        return None
    return int(number)


def as_status(value: Any, fallback: str = "draft") -> str:
    """Anything other than 'published' is a draft."""
    return "published" if value == "published" else fallback


def to_json_text(value: Any, fallback: str) -> str:
    """Serialize a body value for a JSON text column.

    Strings pass through untouched (the admin form may send raw JSON text),
    None falls back, anything else is dumped.
    """
    if isinstance(value, str):
        return value
    if value is None:
        return fallback
    return json.dumps(value)


def parse_json_column(value: str | None, fallback: Any) -> Any:
    """Decode a JSON text column, returning *fallback* for empty or invalid text."""
    if not value:
        return fallback
    try:
        return json.loads(value)
    except (TypeError, ValueError):
        return fallback


def coerce_value(value: Any, field_def: FieldDef) -> Any:
    """Coerce one body value to its column type."""
    ft = field_def.field_type

    if ft == FieldType.STRING:
        default = "" if field_def.default is None else field_def.default
        return str(value) if value not in (None, "") else default

    if ft == FieldType.OPTIONAL_STRING:
        return str(value) if value not in (None, "") else None

    if ft == FieldType.INT:
        parsed = as_optional_int(value)
        if parsed is None:
            return 0 if field_def.default is None else field_def.default
        return parsed

    if ft == FieldType.OPTIONAL_INT:
        return as_optional_int(value)

    if ft == FieldType.STATUS:
        return as_status(value)

    if ft == FieldType.JSON_LIST:
        return to_json_text(value, "[]")

    if ft == FieldType.JSON_OBJECT:
        return to_json_text(value, "{}")

    raise ValueError(f"Unknown field type: {ft}")


# ---------------------------------------------------------------------------
# Whole-body helpers
# ---------------------------------------------------------------------------


def coerce_body(body: dict[str, Any], schema: dict[str, FieldDef]) -> dict[str, Any]:
    """Map a request body onto ``{column: coerced value}`` for every schema column."""
    return {
        column: coerce_value(body.get(field_def.body_key(column)), field_def)
        for column, field_def in schema.items()
    }


def validate_body(body: dict[str, Any], schema: dict[str, FieldDef]) -> list[str]:
    """Return a list of error messages (empty if valid)."""
    errors: list[str] = []
    for column, field_def in schema.items():
        key = field_def.body_key(column)
        value = body.get(key)
        if value in (None, ""):
            continue

        if field_def.choices is not None and str(value) not in field_def.choices:
            errors.append(f"{key}: {value!r} is not a valid choice. Options: {', '.join(field_def.choices)}.")

        if field_def.field_type in (FieldType.JSON_LIST, FieldType.JSON_OBJECT) and isinstance(value, str):
            try:
                json.loads(value)
            except ValueError:
                errors.append(f"{key}: not valid JSON.")

    return errors


def changed_columns(old: dict[str, Any], new: dict[str, Any]) -> list[str]:
    """List the columns whose value differs between a stored row and new params."""
    return sorted(column for column, value in new.items() if old.get(column) != value)
