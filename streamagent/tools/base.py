"""Base types and the adapter that turns a handler into an invocable tool."""

import asyncio
import json
from collections.abc import Awaitable, Callable, Mapping
from dataclasses import dataclass
from typing import Any, Protocol

from pydantic import BaseModel

from streamagent.models.llm import ChatMessage, FunctionDefinition, ToolDeclaration
from streamagent.models.schema import ParseError, SchemaNode, schema
from streamagent.utils.logging import get_logger
from streamagent.validation import parse

logger = get_logger(__name__)

ToolHandler = Callable[[Any], Awaitable[Any]]


def serialize_result(value: Any) -> str:
    """Serialize a handler result as JSON text."""
    if isinstance(value, BaseModel):
        value = value.model_dump(mode="json")
    return json.dumps(value, ensure_ascii=False)


def error_envelope(error: Exception) -> str:
    """Serialize a failure as ``{"error": {...}}`` for the model to read."""
    details: dict[str, Any] = {"type": type(error).__name__, "message": str(error)}
    if isinstance(error, ParseError):
        details.update(error.to_dict())
    return json.dumps({"error": details}, ensure_ascii=False, default=repr)


@dataclass
class Tool:
    """A named capability with a declared input contract.

    ``invoke`` never raises: parse, validation and handler failures all come
    back as an error envelope so the conversation can carry on.
    """

    name: str
    description: str
    input_schema: SchemaNode
    handler: ToolHandler
    output_schema: SchemaNode | None = None

    @property
    def definition(self) -> ToolDeclaration:
        return ToolDeclaration(
            function=FunctionDefinition(
                name=self.name,
                description=self.description,
                parameters=self.input_schema.to_json_schema(),
            )
        )

    async def call(self, arguments: str) -> Any:
        """Parse and validate the arguments, then await the handler.

        Raises:
            json.JSONDecodeError: If the argument text is not JSON
            ParseError: If the arguments or the result violate their schema
        """
        params = parse(self.input_schema, json.loads(arguments))
        logger.debug(f"Invoking tool {self.name} with {params}")
        result = await self.handler(params)
        if self.output_schema is not None:
            result = parse(self.output_schema, result)
        return result

    async def invoke(self, arguments: str) -> str:
        """Run the tool and serialize its result.

        Args:
            arguments: Raw JSON argument text as streamed by the provider

        Returns:
            The JSON-serialized result, or an error envelope
        """
        try:
            return serialize_result(await self.call(arguments))
        except asyncio.CancelledError:
            raise
        except ParseError as e:
            logger.warning(f"Tool {self.name} rejected arguments at '{e.path}': {e.message}")
            return error_envelope(e)
        except Exception as e:
            logger.error(f"Tool {self.name} failed: {e}")
            return error_envelope(e)


def make_tool(
    name: str,
    description: str,
    input_schema: SchemaNode | Mapping[str, Any],
    handler: ToolHandler,
    output_schema: SchemaNode | Mapping[str, Any] | None = None,
) -> Tool:
    """Create a tool, building schemas from plain mappings where needed."""
    return Tool(
        name=name,
        description=description,
        input_schema=schema(input_schema),
        handler=handler,
        output_schema=schema(output_schema) if output_schema is not None else None,
    )


class ConversationTool(Protocol):
    """A tool as the agent loop sees it: allowed to write to history."""

    @property
    def definition(self) -> ToolDeclaration: ...

    async def __call__(self, messages: list[ChatMessage], call_id: str, arguments: str) -> str: ...


@dataclass
class BoundTool:
    """Wraps a :class:`Tool` so its result is appended to history as a tool message."""

    tool: Tool

    @property
    def definition(self) -> ToolDeclaration:
        return self.tool.definition

    async def __call__(self, messages: list[ChatMessage], call_id: str, arguments: str) -> str:
        result = await self.tool.invoke(arguments)
        messages.append(ChatMessage(role="tool", content=result, tool_call_id=call_id))
        return result


def bind_tool(tool: Tool) -> BoundTool:
    return BoundTool(tool)
