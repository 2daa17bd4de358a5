"""Chat API routes.

Each request carries one user message and an optional session id. The
session is created on the first message and kept in process memory until
the client ends it or it sits idle past the session TTL.
"""

from core.logging import logger
from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from schemas.chat import ChatRequest, ChatResponse, EndSessionResponse
from services.chat.chat_bot import ChatBot
from services.chat.session import SessionRegistry, session_registry

router = APIRouter(prefix="/chat", tags=["chat"])


def get_session_registry() -> SessionRegistry:
    return session_registry


def get_chat_bot() -> ChatBot:
    return ChatBot()


@router.post("", response_model=ChatResponse)
async def chat(
    request: ChatRequest,
    registry: SessionRegistry = Depends(get_session_registry),
    chat_bot: ChatBot = Depends(get_chat_bot),
):
    """Process one user message and return the assistant's reply.

    Args:
        request: Request body with the message and optional `session_id`.

    Returns:
        ChatResponse: Assistant messages, the detected intent and an optional
        navigation instruction.

    Notes:
        Errors during processing are returned as a 500 JSON response.
    """

    if not request.message.strip():
        return JSONResponse(
            status_code=400, content={"message": "Message is required"}
        )

    session = registry.get_or_create(request.session_id)
    try:
        response = await chat_bot.handle(session, request.message)
        logger.debug("Chat response generated for session={}", session.session_id)
        return response
    except Exception as error:
        logger.exception(
            "Error during chat processing for session={}", session.session_id
        )
        return JSONResponse(
            status_code=500,
            content={"message": "Error during chat processing", "error": str(error)},
        )


@router.delete("/{session_id}", response_model=EndSessionResponse)
async def end_chat(
    session_id: str,
    registry: SessionRegistry = Depends(get_session_registry),
):
    """Discard a chat session and everything remembered in it."""

    if not registry.end(session_id):
        return JSONResponse(status_code=404, content={"message": "Session not found"})
    return EndSessionResponse(session_id=session_id)
