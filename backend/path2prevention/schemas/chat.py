"""Schemas for chat requests and responses."""

from typing import List, Optional

from fastapi import Query
from pydantic import BaseModel


class Message(BaseModel):
    """A single assistant message.

    `delay_ms` is how long the client waits after the previous message
    before showing this one.
    """

    content: str
    role: str = "assistant"
    delay_ms: int = 0
    quick_options: Optional[List[str]] = None


class ChatRequest(BaseModel):
    """Request body containing the user's next message."""

    session_id: Optional[str] = None
    message: str = Query(
        title="Message",
        default="Am I at risk for diabetes?",
        description="Message which will be processed",
    )


class ChatResponse(BaseModel):
    """The assistant's reply to one user message.

    When `navigate_to` is set the client switches to that page
    `navigate_delay_ms` after the last message is shown.
    """

    session_id: str
    intent: str
    messages: List[Message]
    navigate_to: Optional[str] = None
    navigate_delay_ms: Optional[int] = None


class EndSessionResponse(BaseModel):
    success: bool = True
    session_id: str
