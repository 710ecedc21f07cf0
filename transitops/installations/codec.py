"""Property value codec.

Installation properties are always stored as text; their meaning comes from
the owning schema's field type. A schema's type and options are resolved once
into a *field kind*, a closed set of frozen dataclasses, and every parse,
decode and encode dispatches over that set with ``match`` so a new kind
without a branch fails type checking at ``assert_never``.
"""

from __future__ import annotations

import logging
import math
import re
from collections.abc import Mapping
from dataclasses import dataclass
from datetime import date
from decimal import Decimal, InvalidOperation
from typing import Any, assert_never

from faker import Faker

from transitops.errors import ErrorCode, FieldErrorCollector
from transitops.models import ENUM_VALUES_KEY, FieldType

logger = logging.getLogger(__name__)

_NUMBER_RE = re.compile(r"^[+-]?(\d+(\.\d*)?|\.\d+)([eE][+-]?\d+)?$", re.ASCII)
_DATE_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$", re.ASCII)

# Integral numbers with more digits than this decode as floats.
_MAX_INT_DIGITS = 18

TRUE_TOKENS = frozenset({"true", "1"})
FALSE_TOKENS = frozenset({"false", "0"})


@dataclass(frozen=True, slots=True)
class NumberKind:
    pass


@dataclass(frozen=True, slots=True)
class StringKind:
    pass


@dataclass(frozen=True, slots=True)
class BooleanKind:
    pass


@dataclass(frozen=True, slots=True)
class DateKind:
    pass


@dataclass(frozen=True, slots=True)
class LongTextKind:
    pass


@dataclass(frozen=True, slots=True)
class EnumKind:
    values: tuple[str, ...] = ()


FieldKind = NumberKind | StringKind | BooleanKind | DateKind | LongTextKind | EnumKind


class UnsupportedFieldType(ValueError):
    """Field type outside the supported set."""

    def __init__(self, field_type: Any):
        self.field_type = field_type
        supported = ", ".join(t.value for t in FieldType)
        super().__init__(
            f"Unsupported field type: {field_type}. Supported types are: {supported}"
        )


class InvalidValue(ValueError):
    """A raw value does not parse as its field kind."""

    def __init__(self, code: ErrorCode, message: str):
        self.code = code
        super().__init__(message)


def field_kind(field_type: FieldType | str, options: Mapping[str, Any] | None = None) -> FieldKind:
    """Resolve a schema's type and options into its field kind.

    Raises:
        UnsupportedFieldType: If ``field_type`` is not a supported type
    """
    try:
        resolved = FieldType(field_type)
    except ValueError as exc:
        raise UnsupportedFieldType(field_type) from exc

    match resolved:
        case FieldType.NUMBER:
            return NumberKind()
        case FieldType.STRING:
            return StringKind()
        case FieldType.BOOLEAN:
            return BooleanKind()
        case FieldType.DATE:
            return DateKind()
        case FieldType.LONG_TEXT:
            return LongTextKind()
        case FieldType.ENUM:
            raw_values = (options or {}).get(ENUM_VALUES_KEY) or []
            return EnumKind(values=tuple(str(v) for v in raw_values))
        case _:
            assert_never(resolved)


def kind_of(schema: Any) -> FieldKind:
    """Field kind of any object exposing ``type`` and ``options``."""
    return field_kind(schema.type, schema.options)


def _parse_number(text: str) -> int | float:
    if not _NUMBER_RE.match(text):
        raise InvalidValue(ErrorCode.INVALID_NUMBER, f'"{text}" is not a valid number')
    try:
        number = Decimal(text)
    except InvalidOperation as exc:
        raise InvalidValue(ErrorCode.INVALID_NUMBER, f'"{text}" is not a valid number') from exc
    if not number.is_finite():
        raise InvalidValue(ErrorCode.INVALID_NUMBER, f'"{text}" is not a finite number')
    if number.adjusted() < _MAX_INT_DIGITS and number == number.to_integral_value():
        return int(number)
    value = float(number)
    if math.isinf(value):
        raise InvalidValue(ErrorCode.INVALID_NUMBER, f'"{text}" is out of range')
    return value


def _parse_boolean(text: str) -> bool:
    token = text.lower()
    if token in TRUE_TOKENS:
        return True
    if token in FALSE_TOKENS:
        return False
    raise InvalidValue(
        ErrorCode.INVALID_BOOLEAN,
        f'"{text}" is not a valid boolean. Use "true", "false", "1", or "0"',
    )


def _parse_date(text: str) -> str:
    if _DATE_RE.match(text):
        try:
            date.fromisoformat(text)
            return text
        except ValueError:
            pass
    raise InvalidValue(ErrorCode.INVALID_DATE, f'"{text}" is not a valid date. Use YYYY-MM-DD format')


def _parse_enum(text: str, values: tuple[str, ...]) -> str:
    if not values:
        raise InvalidValue(
            ErrorCode.INVALID_ENUM_VALUE,
            f'"{text}" is not a valid option. The field has no allowed values configured',
        )
    if text not in values:
        raise InvalidValue(
            ErrorCode.INVALID_ENUM_VALUE,
            f'"{text}" is not a valid option. Valid options are: {", ".join(values)}',
        )
    return text


def parse_value(raw: str, kind: FieldKind) -> Any:
    """Parse a non-blank raw value into its logical type.

    Raises:
        InvalidValue: If the value does not parse as ``kind``
    """
    match kind:
        case NumberKind():
            return _parse_number(raw.strip())
        case BooleanKind():
            return _parse_boolean(raw.strip())
        case DateKind():
            return _parse_date(raw.strip())
        case EnumKind(values=values):
            # Enum membership is exact, whitespace included.
            return _parse_enum(raw, values)
        case StringKind() | LongTextKind():
            return raw
        case _:
            assert_never(kind)


def is_blank(raw: str | None) -> bool:
    return raw is None or raw.strip() == ""


def validate_property_value(
    field_name: str,
    raw: str,
    kind: FieldKind,
    required: bool,
    collector: FieldErrorCollector,
) -> str:
    """Validate a raw value against its field, recording failures on ``collector``.

    Returns the value to store. Booleans are stored as ``"true"``/``"false"``;
    every other kind is stored as given.
    """
    if is_blank(raw):
        if required:
            collector.add_error(field_name, ErrorCode.REQUIRED, f"{field_name} is required", raw)
        return raw

    try:
        parsed = parse_value(raw, kind)
    except InvalidValue as exc:
        collector.add_error(field_name, exc.code, str(exc), raw)
        return raw
    if isinstance(kind, BooleanKind):
        return "true" if parsed else "false"
    return raw


def decode_property_value(raw: str | None, kind: FieldKind, field_name: str | None = None) -> Any:
    """Decode a stored value for callers; ``None`` means unset.

    Values that no longer parse (the schema's type changed after they were
    written) decode to ``None`` rather than failing the whole read.
    """
    if is_blank(raw):
        return None
    try:
        return parse_value(raw, kind)
    except InvalidValue as exc:
        logger.warning(f"Stored value for field {field_name!r} no longer decodes: {exc}")
        return None


def encode_property_value(value: Any, kind: FieldKind) -> str:
    """Encode a logical value to its storage text.

    Raises:
        InvalidValue: If ``value`` is not valid for ``kind``
    """
    if value is None:
        return ""

    match kind:
        case NumberKind():
            if isinstance(value, bool) or not isinstance(value, (int, float, Decimal, str)):
                raise InvalidValue(ErrorCode.INVALID_NUMBER, f"{value!r} is not a number")
            text = format(value, "f") if isinstance(value, Decimal) else str(value)
        case BooleanKind():
            text = str(value)
            if isinstance(value, bool):
                text = "true" if value else "false"
            elif not is_blank(text):
                text = "true" if _parse_boolean(text.strip()) else "false"
        case DateKind():
            text = value.isoformat() if isinstance(value, date) else str(value)
        case EnumKind() | StringKind() | LongTextKind():
            text = str(value)
        case _:
            assert_never(kind)

    if not is_blank(text):
        parse_value(text, kind)
    return text


# Per-field ranges for generated numeric examples.
_EXAMPLE_NUMBER_RANGES: dict[str, tuple[int, int]] = {
    "capacity": (50, 500),
    "platforms": (2, 12),
    "bench_capacity": (5, 20),
    "service_bays": (2, 8),
    "office_area": (100, 1000),
}


def generate_example_value(kind: FieldKind, field_name: str, faker: Faker) -> str:
    """Generate a valid storage value for seeding."""
    match kind:
        case NumberKind():
            low, high = _EXAMPLE_NUMBER_RANGES.get(field_name, (1, 100))
            return str(faker.random_int(min=low, max=high))
        case StringKind():
            if field_name == "operating_hours":
                return "06:00 - 22:00"
            if field_name == "contact_person":
                return faker.name()
            return " ".join(faker.words(nb=3))
        case BooleanKind():
            return "true" if faker.pybool() else "false"
        case DateKind():
            return faker.date_between(start_date="-30d", end_date="today").isoformat()
        case LongTextKind():
            return faker.paragraph()
        case EnumKind(values=values):
            return faker.random_element(elements=values) if values else ""
        case _:
            assert_never(kind)
