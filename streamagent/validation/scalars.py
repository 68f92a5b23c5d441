"""Validators for scalar schemas: string, number, integer, boolean and null."""

import math
import re
from datetime import datetime
from typing import Any

from pydantic import AnyUrl, TypeAdapter, ValidationError

from streamagent.models.schema import (
    BooleanSchema,
    IntegerSchema,
    NullSchema,
    NumberSchema,
    ParseError,
    StringSchema,
)

_EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
_ISO_DATE_PREFIX = re.compile(r"^\d{4}-\d{2}-\d{2}")
_uri_adapter = TypeAdapter(AnyUrl)
_datetime_adapter = TypeAdapter(datetime)


def is_valid_email(value: str) -> bool:
    return _EMAIL_PATTERN.match(value) is not None


def is_valid_uri(value: str) -> bool:
    """Absolute URIs only; a bare word like ``not-a-uri`` has no scheme."""
    try:
        _uri_adapter.validate_python(value)
    except ValidationError:
        return False
    return True


def is_valid_date_time(value: str) -> bool:
    """ISO 8601 date-times only; a bare number is not read as a Unix timestamp."""
    if _ISO_DATE_PREFIX.match(value) is None:
        return False
    try:
        _datetime_adapter.validate_python(value)
    except ValidationError:
        return False
    return True


_FORMAT_CHECKS = {
    "email": is_valid_email,
    "uri": is_valid_uri,
    "date-time": is_valid_date_time,
}


def is_number(value: Any) -> bool:
    """bool is an int subclass in Python but never a JSON number."""
    return isinstance(value, int | float) and not isinstance(value, bool)


def parse_string(schema: StringSchema, path: str, input: Any) -> str:  # noqa: A002
    """Validate a string against length, enum and format constraints.

    Args:
        schema: The string schema
        path: Location of the value within the root input
        input: Raw value to validate

    Returns:
        The input string, unchanged

    Raises:
        ParseError: On the first violated constraint
    """
    if not isinstance(input, str):
        raise ParseError(f"input is not a string: {input!r}", path, input)
    if schema.max_length is not None and len(input) > schema.max_length:
        raise ParseError(f"string is too long: {len(input)} > {schema.max_length}", path, input)
    if schema.min_length is not None and len(input) < schema.min_length:
        raise ParseError(f"string is too short: {len(input)} < {schema.min_length}", path, input)
    if schema.enum is not None and input not in schema.enum:
        raise ParseError(f"string is not in enum {list(schema.enum)}: {input!r}", path, input)
    if schema.format is not None and not _FORMAT_CHECKS[schema.format](input):
        raise ParseError(f"string is not a valid {schema.format}: {input!r}", path, input)
    return input


def parse_number(schema: NumberSchema | IntegerSchema, path: str, input: Any) -> int | float:  # noqa: A002
    """Validate a number against enum and inclusive bounds."""
    if not is_number(input):
        raise ParseError(f"input is not a number: {input!r}", path, input)
    if isinstance(input, float) and not math.isfinite(input):
        raise ParseError(f"number is not finite: {input}", path, input)
    if schema.enum is not None and input not in schema.enum:
        raise ParseError(f"number is not in enum {list(schema.enum)}: {input}", path, input)
    if schema.minimum is not None and input < schema.minimum:
        raise ParseError(f"number is too small: {input} < {schema.minimum}", path, input)
    if schema.maximum is not None and input > schema.maximum:
        raise ParseError(f"number is too large: {input} > {schema.maximum}", path, input)
    return input


def parse_integer(schema: IntegerSchema, path: str, input: Any) -> int:  # noqa: A002
    """Validate as a number, then require an integral value.

    Integral floats such as ``3.0`` are returned as ``int``.
    """
    value = parse_number(schema, path, input)
    if isinstance(value, float):
        if not value.is_integer():
            raise ParseError(f"number is not an integer: {value}", path, value)
        return int(value)
    return value


def parse_boolean(schema: BooleanSchema, path: str, input: Any) -> bool:  # noqa: A002
    if not isinstance(input, bool):
        raise ParseError(f"input is not a boolean: {input!r}", path, input)
    return input


def parse_null(schema: NullSchema, path: str, input: Any) -> None:  # noqa: A002
    if input is not None:
        raise ParseError(f"input is not null: {input!r}", path, input)
    return None
