"""Request models for the chat gateway."""

from typing import List
from pydantic import BaseModel, ConfigDict, Field


class HistoryMessage(BaseModel):
    """One prior turn of the conversation."""

    role: str = Field(..., description="Either 'user' or 'assistant'")
    content: str = Field(..., description="Text of the message")


class ChatRequest(BaseModel):
    """Request model for a chat completion.

    ``mode`` is kept as a plain string so that an invalid value reaches the
    chat service and is rejected with the gateway's own validation error.
    """

    message: str = Field(..., description="The user's message")
    mode: str = Field(default="fast", description="Answer mode: 'fast' or 'deep'")
    history: List[HistoryMessage] = Field(default_factory=list, description="Previous conversation turns")

    model_config = ConfigDict(json_schema_extra={
        "example": {
            "message": "Explain how a circuit breaker works",
            "mode": "deep",
            "history": [
                {"role": "user", "content": "Hi"},
                {"role": "assistant", "content": "Hello! How can I help?"}
            ]
        }
    })
