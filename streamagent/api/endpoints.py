"""API endpoints for the agent service."""

from collections.abc import AsyncIterator
from datetime import UTC, datetime

from fastapi import APIRouter, Depends
from fastapi.responses import StreamingResponse

from streamagent import __version__
from streamagent.clients.base import ProviderError
from streamagent.models.conversation import ConversationRequest, HealthResponse
from streamagent.services.agent import Agent, AgentRun, get_agent
from streamagent.utils.logging import get_logger

logger = get_logger(__name__)

router = APIRouter()


async def _ndjson(run: AgentRun) -> AsyncIterator[str]:
    try:
        async for chunk in run:
            yield chunk.model_dump_json() + "\n"
    except ProviderError as e:
        # Headers are already sent; report the failure in-band and end the stream
        logger.error(f"Provider failed mid-conversation: {e}", exc_info=True)
        yield '{"type": "error", "message": "The model provider failed. Please try again."}\n'
        return
    logger.info(f"Conversation finished after {run.iterations} iterations ({run.stop_reason})")


@router.post("/conversation", tags=["Conversation"])
async def handle_conversation(request: ConversationRequest, agent: Agent = Depends(get_agent)) -> StreamingResponse:
    """Run a conversation and stream its output chunks as NDJSON."""
    logger.info(f"Starting conversation: {request.message[:50]}...")
    run = agent.run(request.message)
    return StreamingResponse(_ndjson(run), media_type="application/x-ndjson")


@router.get("/health", response_model=HealthResponse, tags=["Health"])
async def health_check() -> HealthResponse:
    """Health check endpoint."""
    return HealthResponse(
        status="healthy",
        timestamp=datetime.now(UTC),
        version=__version__,
    )
