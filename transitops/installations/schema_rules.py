"""Validation rules for schema field definitions.

Used by the sync engine on every desired entry before anything is written.
Errors are appended to a collector under ``{prefix}.<field>`` paths.
"""

from __future__ import annotations

from typing import Any

from transitops.errors import ErrorCode, FieldErrorCollector
from transitops.models import ENUM_VALUES_KEY, FieldType


def _path(prefix: str, field: str) -> str:
    return f"{prefix}.{field}" if prefix else field


def is_supported_type(field_type: Any) -> bool:
    try:
        FieldType(field_type)
    except ValueError:
        return False
    return True


def validate_schema_name(name: str | None, collector: FieldErrorCollector, prefix: str = "") -> None:
    """Reject missing or blank field names."""
    if name is None or not str(name).strip():
        collector.add_error(_path(prefix, "name"), ErrorCode.REQUIRED, "Schema name is required", name)


def validate_schema_field_type(
    field_type: str | None,
    options: Any,
    collector: FieldErrorCollector,
    prefix: str = "",
) -> None:
    """Check a field type and the options it carries.

    Args:
        field_type: Effective type (payload value, or current value on update)
        options: Effective options; ``None`` is treated as empty
        collector: Receives any violations
        prefix: Field path prefix, e.g. ``schemas[2]``
    """
    type_path = _path(prefix, "type")
    options_path = _path(prefix, "options")

    if field_type is None or (isinstance(field_type, str) and not field_type.strip()):
        collector.add_error(type_path, ErrorCode.REQUIRED, "Schema type is required", field_type)
        return

    if not is_supported_type(field_type):
        supported = ", ".join(t.value for t in FieldType)
        collector.add_error(
            type_path,
            ErrorCode.UNSUPPORTED_FIELD_TYPE,
            f'Unsupported field type "{field_type}". Supported types are: {supported}',
            field_type,
        )
        return

    options = {} if options is None else options

    if FieldType(field_type) is FieldType.ENUM:
        _validate_enum_options(options, collector, options_path)
    elif options != {}:
        collector.add_error(
            options_path,
            ErrorCode.INVALID_OPTIONS_FOR_TYPE,
            f'Options are only supported for enum fields, not "{field_type}"',
            options,
        )


def _validate_enum_options(options: Any, collector: FieldErrorCollector, path: str) -> None:
    values = options.get(ENUM_VALUES_KEY) if isinstance(options, dict) else None

    if not isinstance(values, list):
        collector.add_error(
            path,
            ErrorCode.INVALID_ENUM_OPTIONS,
            f"Enum fields require options.{ENUM_VALUES_KEY} to be a list of values",
            options,
        )
        return

    if not values:
        collector.add_error(
            path,
            ErrorCode.EMPTY_ENUM_OPTIONS,
            f"Enum fields require at least one value in options.{ENUM_VALUES_KEY}",
            options,
        )
        return

    bad = [v for v in values if not isinstance(v, str) or not v.strip()]
    if bad:
        collector.add_error(
            path,
            ErrorCode.INVALID_ENUM_VALUES,
            "Enum values must be non-empty strings",
            bad,
        )
