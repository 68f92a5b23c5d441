"""Output chunks emitted by an agent run."""

from typing import Annotated, Literal, TypeGuard

from pydantic import BaseModel, Field


class NewIteration(BaseModel):
    """Marks the start of a loop pass."""

    type: Literal["new_iteration"] = "new_iteration"
    iteration: int = 1


class TextChunk(BaseModel):
    """Incremental assistant text."""

    type: Literal["text"] = "text"
    content: str


class ToolCallRequest(BaseModel):
    """A finalized tool call requested by the model."""

    type: Literal["tool_call_request"] = "tool_call_request"
    id: str
    name: str
    arguments: str


class ToolCallResponse(BaseModel):
    """The serialized result (or error envelope) answering a tool call."""

    type: Literal["tool_call_response"] = "tool_call_response"
    id: str
    result: str


AgentOutputChunk = Annotated[
    NewIteration | TextChunk | ToolCallRequest | ToolCallResponse,
    Field(discriminator="type"),
]


def is_new_iteration(chunk: BaseModel) -> TypeGuard[NewIteration]:
    return isinstance(chunk, NewIteration)


def is_text_chunk(chunk: BaseModel) -> TypeGuard[TextChunk]:
    return isinstance(chunk, TextChunk)


def is_tool_call_request(chunk: BaseModel) -> TypeGuard[ToolCallRequest]:
    return isinstance(chunk, ToolCallRequest)


def is_tool_call_response(chunk: BaseModel) -> TypeGuard[ToolCallResponse]:
    return isinstance(chunk, ToolCallResponse)
