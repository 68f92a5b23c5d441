"""Schema types for tool arguments (a JSON-Schema subset)."""

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Annotated, Any, Literal

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, model_serializer

StringFormat = Literal["email", "uri", "date-time"]


class SchemaNode(BaseModel):
    """Fields shared by every schema variant.

    ``description`` is only advertised to the provider. ``default`` is used when
    the node is an object property missing from the input.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    description: str | None = None
    default: Any = None

    @property
    def has_default(self) -> bool:
        """Whether a default was declared (``None`` is a valid default)."""
        return "default" in self.model_fields_set

    @model_serializer(mode="wrap")
    def _drop_unset_constraints(self, handler: Any) -> dict[str, Any]:
        data = handler(self)
        return {
            key: value for key, value in data.items() if value is not None or (key == "default" and self.has_default)
        }

    def to_json_schema(self) -> dict[str, Any]:
        """Dump with wire (camelCase) names, omitting unset constraints."""
        return self.model_dump(mode="json", by_alias=True)


class StringSchema(SchemaNode):
    type: Literal["string"] = "string"
    min_length: int | None = Field(default=None, alias="minLength", ge=0)
    max_length: int | None = Field(default=None, alias="maxLength", ge=0)
    enum: tuple[str, ...] | None = None
    format: StringFormat | None = None


class NumberSchema(SchemaNode):
    type: Literal["number"] = "number"
    minimum: int | float | None = None
    maximum: int | float | None = None
    enum: tuple[int | float, ...] | None = None


class IntegerSchema(SchemaNode):
    type: Literal["integer"] = "integer"
    minimum: int | float | None = None
    maximum: int | float | None = None
    enum: tuple[int | float, ...] | None = None


class BooleanSchema(SchemaNode):
    type: Literal["boolean"] = "boolean"


class NullSchema(SchemaNode):
    type: Literal["null"] = "null"


class ArraySchema(SchemaNode):
    type: Literal["array"] = "array"
    items: "Schema"
    min_items: int | None = Field(default=None, alias="minItems", ge=0)
    max_items: int | None = Field(default=None, alias="maxItems", ge=0)


class ObjectSchema(SchemaNode):
    type: Literal["object"] = "object"
    properties: dict[str, "Schema"] = Field(default_factory=dict)
    required: tuple[str, ...] | None = None

    def is_required(self, key: str) -> bool:
        return self.required is not None and key in self.required


Schema = Annotated[
    StringSchema | NumberSchema | IntegerSchema | BooleanSchema | NullSchema | ArraySchema | ObjectSchema,
    Field(discriminator="type"),
]

ArraySchema.model_rebuild()
ObjectSchema.model_rebuild()

_schema_adapter: TypeAdapter[Schema] = TypeAdapter(Schema)


def schema(definition: Mapping[str, Any] | SchemaNode) -> SchemaNode:
    """Build a schema from a JSON-Schema-shaped mapping.

    Already-built schemas are returned unchanged, so callers can pass either.

    Raises:
        pydantic.ValidationError: If the mapping has an unknown ``type`` or
            malformed constraints.
    """
    if isinstance(definition, SchemaNode):
        return definition
    return _schema_adapter.validate_python(dict(definition))


class ParseError(ValueError):
    """Raised when a value does not satisfy a schema.

    Attributes:
        message: Human readable description of the violated constraint
        path: Location of the offending value, e.g. ``.user.addresses[2].zip``
        input: The offending raw value
    """

    def __init__(self, message: str, path: str, input: Any):  # noqa: A002
        super().__init__(message)
        self.message = message
        self.path = path
        self.input = input

    def __repr__(self) -> str:
        return f"ParseError(message={self.message!r}, path={self.path!r})"

    def to_dict(self) -> dict[str, Any]:
        return {"message": self.message, "path": self.path, "input": self.input}


@dataclass
class ParseResult:
    """Outcome of a non-raising validation."""

    success: bool
    value: Any = None
    error: ParseError | None = None
