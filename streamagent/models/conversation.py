"""Request and response models for the HTTP surface."""

from datetime import datetime

from pydantic import BaseModel, Field


class ConversationRequest(BaseModel):
    """Request model for the conversation endpoint."""

    message: str = Field(..., min_length=1)


class HealthResponse(BaseModel):
    """Response model for health check endpoint."""

    status: str
    timestamp: datetime
    version: str
