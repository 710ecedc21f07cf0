"""Error taxonomy for the installation-attribute engine.

Three kinds of failure reach callers:

- ``NotFoundError``: a referenced installation type, installation or schema
  does not exist (or is soft-deleted).
- ``FieldValidationError``: one or more named-field problems, always
  aggregated into a single exception.
- ``ValidationError``: sync-level failures not attributable to one field,
  wrapped with context before re-raising.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass
from enum import Enum
from typing import Any, Iterable


class ErrorCode(str, Enum):
    """Stable field error codes."""

    REQUIRED = "REQUIRED"
    INVALID_TYPE = "INVALID_TYPE"
    INVALID_NUMBER = "INVALID_NUMBER"
    INVALID_BOOLEAN = "INVALID_BOOLEAN"
    INVALID_DATE = "INVALID_DATE"
    INVALID_ENUM_VALUE = "INVALID_ENUM_VALUE"
    UNSUPPORTED_FIELD_TYPE = "UNSUPPORTED_FIELD_TYPE"
    INVALID_ENUM_OPTIONS = "INVALID_ENUM_OPTIONS"
    EMPTY_ENUM_OPTIONS = "EMPTY_ENUM_OPTIONS"
    INVALID_ENUM_VALUES = "INVALID_ENUM_VALUES"
    INVALID_OPTIONS_FOR_TYPE = "INVALID_OPTIONS_FOR_TYPE"
    DUPLICATE_NAME_IN_BATCH = "DUPLICATE_NAME_IN_BATCH"
    DUPLICATE_NAME_IN_DATABASE = "DUPLICATE_NAME_IN_DATABASE"
    DUPLICATE = "DUPLICATE"
    NOT_FOUND = "NOT_FOUND"


# Codes that mean "the value does not parse as the field's type".
TYPE_MISMATCH_CODES = frozenset(
    {
        ErrorCode.INVALID_TYPE,
        ErrorCode.INVALID_NUMBER,
        ErrorCode.INVALID_BOOLEAN,
        ErrorCode.INVALID_DATE,
        ErrorCode.INVALID_ENUM_VALUE,
    }
)


class TransitOpsError(Exception):
    """Base class for errors raised by transitops."""


class NotFoundError(TransitOpsError):
    """Raised when a referenced entity does not exist."""

    def __init__(self, entity: str, entity_id: Any, message: str | None = None):
        self.entity = entity
        self.entity_id = entity_id
        super().__init__(message or f"{entity} with id {entity_id} not found")


class ValidationError(TransitOpsError):
    """Generic validation failure not tied to a single field."""


@dataclass(frozen=True, slots=True)
class FieldError:
    field: str
    code: str
    message: str
    value: Any = None

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


class FieldValidationError(ValidationError):
    """One or more field-level violations, raised together."""

    def __init__(self, errors: Iterable[FieldError]):
        self.errors: list[FieldError] = list(errors)
        summary = "; ".join(f"{e.field}: {e.message}" for e in self.errors)
        super().__init__(f"Validation failed for {len(self.errors)} field(s): {summary}")

    @property
    def codes(self) -> list[str]:
        return [e.code for e in self.errors]

    def for_field(self, field: str) -> list[FieldError]:
        return [e for e in self.errors if e.field == field]

    def to_dict(self) -> dict[str, Any]:
        return {
            "message": "Validation failed",
            "errors": [e.to_dict() for e in self.errors],
        }


class FieldErrorCollector:
    """Accumulates field errors so callers see every problem in one round trip."""

    def __init__(self) -> None:
        self._errors: list[FieldError] = []

    def add_error(self, field: str, code: ErrorCode | str, message: str, value: Any = None) -> None:
        code_value = code.value if isinstance(code, ErrorCode) else code
        self._errors.append(FieldError(field=field, code=code_value, message=message, value=value))

    def extend(self, errors: Iterable[FieldError], prefix: str | None = None) -> None:
        """Copy errors from another collector, optionally nesting their field paths."""
        for error in errors:
            field = f"{prefix}.{error.field}" if prefix else error.field
            self._errors.append(
                FieldError(field=field, code=error.code, message=error.message, value=error.value)
            )

    @property
    def errors(self) -> list[FieldError]:
        return list(self._errors)

    def has_errors(self) -> bool:
        return bool(self._errors)

    def raise_if_errors(self) -> None:
        if self._errors:
            raise FieldValidationError(self._errors)
