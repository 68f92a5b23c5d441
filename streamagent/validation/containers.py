"""Recursive validators for array and object schemas, and the tag dispatcher."""

import copy
from collections.abc import Mapping
from typing import Any

from streamagent.models.schema import (
    ArraySchema,
    BooleanSchema,
    IntegerSchema,
    NullSchema,
    NumberSchema,
    ObjectSchema,
    ParseError,
    SchemaNode,
    StringSchema,
)
from streamagent.validation.scalars import (
    parse_boolean,
    parse_integer,
    parse_null,
    parse_number,
    parse_string,
)


def parse_array(schema: ArraySchema, path: str, input: Any) -> list[Any]:  # noqa: A002
    """Validate a sequence and every element against ``schema.items``.

    Elements are checked in order; the first failing element aborts the walk
    and its error carries ``path[index]``.
    """
    if not isinstance(input, list | tuple):
        raise ParseError(f"input is not an array: {input!r}", path, input)
    if schema.min_items is not None and len(input) < schema.min_items:
        raise ParseError(f"array is too short: {len(input)} < {schema.min_items}", path, input)
    if schema.max_items is not None and len(input) > schema.max_items:
        raise ParseError(f"array is too long: {len(input)} > {schema.max_items}", path, input)
    return [parse_any(schema.items, f"{path}[{index}]", item) for index, item in enumerate(input)]


def parse_object(schema: ObjectSchema, path: str, input: Any) -> dict[str, Any]:  # noqa: A002
    """Validate a mapping property by property.

    Only declared properties end up in the result. A property that is missing
    from the input fails if required, falls back to its default if one is
    declared, and is left out otherwise. An explicit ``None`` counts as present
    and is validated like any other value.
    """
    if not isinstance(input, Mapping):
        raise ParseError(f"input is not an object: {input!r}", path, input)

    result: dict[str, Any] = {}
    for key, prop in schema.properties.items():
        if key not in input:
            if schema.is_required(key):
                raise ParseError(f'required property "{key}" is missing', path, input)
            if prop.has_default:
                result[key] = copy.deepcopy(prop.default)
            continue
        result[key] = parse_any(prop, f"{path}.{key}", input[key])
    return result


def parse_any(schema: SchemaNode, path: str, input: Any) -> Any:  # noqa: A002
    """Dispatch on the schema variant."""
    match schema:
        case StringSchema():
            return parse_string(schema, path, input)
        case IntegerSchema():
            return parse_integer(schema, path, input)
        case NumberSchema():
            return parse_number(schema, path, input)
        case BooleanSchema():
            return parse_boolean(schema, path, input)
        case NullSchema():
            return parse_null(schema, path, input)
        case ArraySchema():
            return parse_array(schema, path, input)
        case ObjectSchema():
            return parse_object(schema, path, input)
    raise ParseError(f"unsupported schema: {schema!r}", path, input)
