"""Main FastAPI application."""

from fastapi import FastAPI

from streamagent import __version__
from streamagent.api.endpoints import router
from streamagent.utils.logging import setup_logging

setup_logging()

app = FastAPI(
    title="streamagent",
    description="Streams tool-calling conversations with a chat-completion provider.",
    version=__version__,
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_tags=[
        {
            "name": "Conversation",
            "description": "Run a conversation and stream its output chunks.",
        },
        {
            "name": "Health",
            "description": "Service health monitoring and status checks.",
        },
    ],
)

app.include_router(router)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("streamagent.main:app", host="0.0.0.0", port=8000, reload=True, log_level="info")
