"""Agent iteration engine: streams completions and dispatches tool calls."""

from collections.abc import AsyncGenerator, AsyncIterator, Iterable

from streamagent.clients import ChatCompletionProvider, get_provider
from streamagent.config import AgentConfig
from streamagent.models.chunks import (
    AgentOutputChunk,
    NewIteration,
    TextChunk,
    ToolCallResponse,
)
from streamagent.models.llm import (
    AgentRunResult,
    ChatMessage,
    CompletionRequest,
    FunctionCall,
    StopReason,
    ToolCallRecord,
)
from streamagent.services.aggregator import ToolCallAccumulator
from streamagent.tools.base import ConversationTool, Tool
from streamagent.tools.registry import ToolsRegistry
from streamagent.utils.logging import get_logger

logger = get_logger(__name__)


class AgentRun:
    """One conversation, consumed as an async iterator of output chunks.

    The run owns its history for its whole lifetime. It can be iterated once;
    ``stop_reason`` is set when the sequence ends normally.
    """

    def __init__(
        self,
        provider: ChatCompletionProvider,
        tools: dict[str, ConversationTool],
        history: list[ChatMessage],
        config: AgentConfig,
    ):
        self.history = history
        self.iterations = 0
        self.stop_reason: StopReason | None = None
        self._provider = provider
        self._tools = tools
        self._config = config
        self._chunks = self._stream()

    def __aiter__(self) -> AsyncIterator[AgentOutputChunk]:
        return self

    async def __anext__(self) -> AgentOutputChunk:
        return await self._chunks.__anext__()

    async def aclose(self) -> None:
        """Stop the run at its current suspension point."""
        await self._chunks.aclose()

    async def collect(self) -> AgentRunResult:
        """Drain the run and summarize what it produced."""
        chunks = [chunk async for chunk in self]
        return AgentRunResult(
            chunks=chunks,
            text="".join(chunk.content for chunk in chunks if isinstance(chunk, TextChunk)),
            stop_reason=self.stop_reason,
            iterations=self.iterations,
            messages=self.history,
        )

    async def _stream(self) -> AsyncGenerator[AgentOutputChunk, None]:
        max_iterations = self._config.max_iterations
        declarations = [tool.definition for tool in self._tools.values()]
        logger.info(
            f"Starting agent loop with {len(self.history)} seed messages, {len(declarations)} tools, "
            f"max_iterations: {max_iterations}"
        )

        while self.iterations < max_iterations:
            self.iterations += 1
            logger.debug(f"Agent loop iteration {self.iterations}/{max_iterations}")
            yield NewIteration(iteration=self.iterations)

            request = CompletionRequest(
                model=self._config.model,
                messages=list(self.history),
                tools=declarations,
                tool_choice="auto",
                parallel_tool_calls=True,
            )
            assistant_message = ChatMessage(role="assistant", content="")
            self.history.append(assistant_message)

            accumulator = ToolCallAccumulator()
            async for frame in self._provider.stream_chat(request):
                if frame.content:
                    assistant_message.content += frame.content
                    yield TextChunk(content=frame.content)
                accumulator.accumulate(frame.tool_calls)

            tool_calls = accumulator.finalize()
            if tool_calls:
                logger.info(f"Model requested {len(tool_calls)} tool calls: {[call.name for call in tool_calls]}")

            for call in tool_calls:
                yield call

                tool = self._tools.get(call.name)
                if tool is None:
                    logger.warning(f"Unknown tool requested: {call.name}")
                    continue

                # A prune earlier in this pass removed the assistant message
                if not any(message is assistant_message for message in self.history):
                    assistant_message = ChatMessage(role="assistant", content="")
                    self.history.append(assistant_message)

                if assistant_message.tool_calls is None:
                    assistant_message.tool_calls = []
                assistant_message.tool_calls.append(
                    ToolCallRecord(id=call.id, function=FunctionCall(name=call.name, arguments=call.arguments))
                )
                result = await tool(self.history, call.id, call.arguments)
                logger.debug(f"Tool {call.name} returned: {result[:100]}")
                yield ToolCallResponse(id=call.id, result=result)

            if not tool_calls:
                self.stop_reason = "complete"
                logger.info(f"Agent loop completed in {self.iterations} iterations")
                return

        self.stop_reason = "max_iterations"
        logger.warning(f"Agent loop reached max iterations ({max_iterations})")


class Agent:
    """Runs conversations against a provider with a fixed set of tools."""

    def __init__(
        self,
        provider: ChatCompletionProvider,
        tools: Iterable[Tool] | ToolsRegistry = (),
        config: AgentConfig | None = None,
    ):
        """Initialize the agent.

        Args:
            provider: Streaming chat-completion provider
            tools: Caller-supplied tools, or a prepared registry
            config: Model, system prompt and iteration cap
        """
        self.provider = provider
        self.registry = tools if isinstance(tools, ToolsRegistry) else ToolsRegistry(tools)
        self.config = config or AgentConfig()

    def run(self, message: str) -> AgentRun:
        """Start a conversation seeded with the system prompt and ``message``."""
        history = [
            ChatMessage(role="system", content=self.config.system_prompt),
            ChatMessage(role="user", content=message),
        ]
        tools = self.registry.get_conversation_tools(seed_length=len(history))
        return AgentRun(self.provider, tools, history, self.config)


_agent: Agent | None = None


def get_agent() -> Agent:
    """Get or create the agent configured from the environment."""
    global _agent
    if _agent is None:
        config = AgentConfig.from_env()
        _agent = Agent(get_provider(config.provider), config=config)
    return _agent
