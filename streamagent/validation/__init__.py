"""Recursive-descent validation of untyped values against tool schemas."""

from collections.abc import Mapping
from typing import Any

from streamagent.models.schema import ParseError, ParseResult, SchemaNode, schema
from streamagent.validation.containers import parse_any


def parse(definition: SchemaNode | Mapping[str, Any], input: Any) -> Any:  # noqa: A002
    """Validate and coerce ``input`` against a schema from the root path.

    Raises:
        ParseError: On the first violated constraint
    """
    return parse_any(schema(definition), "", input)


def safe_parse(definition: SchemaNode | Mapping[str, Any], input: Any) -> ParseResult:  # noqa: A002
    """Like :func:`parse` but reports failure in the result instead of raising."""
    try:
        return ParseResult(success=True, value=parse(definition, input))
    except ParseError as e:
        return ParseResult(success=False, error=e)


__all__ = ["ParseError", "ParseResult", "parse", "parse_any", "safe_parse"]
