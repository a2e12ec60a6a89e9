"""
REST API endpoints related to chat functionality.

This module provides the streaming chat endpoint and the endpoints for
managing chat sessions and retrieving message history.
"""

import logging
from typing import List

from fastapi import APIRouter, Depends, HTTPException, Response, status
from fastapi.responses import StreamingResponse
from sqlalchemy.orm import Session

from app.db.session import get_db
from app.db.models import User
from app.dependencies import get_chat_relay, get_current_user
from app.schemas.chat import (
    ChatMessageResponse,
    ChatResetResponse,
    ChatSessionCreate,
    ChatSessionResponse,
    ChatStreamRequest,
)
from app.services.chat import session_manager
from app.services.chat.errors import (
    CharacterAccessDeniedError,
    CharacterNotFoundError,
    SessionAccessDeniedError,
    SessionNotFoundError,
)
from app.services.chat.message_store import get_session_messages
from app.services.chat.stream_relay import ChatStreamRelay, ChatTurn
from app.services.openrouter.client import UpstreamConfigurationError

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/chat", tags=["chat"])

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "POST, OPTIONS",
    "Access-Control-Allow-Headers": "Content-Type, Authorization",
}

SSE_HEADERS = {
    "Cache-Control": "no-cache",
    "Connection": "keep-alive",
    "X-Accel-Buffering": "no",
    **CORS_HEADERS,
}


def _raise_http_error(error: Exception):
    """Translate chat service errors into HTTP errors."""
    if isinstance(error, (SessionNotFoundError, CharacterNotFoundError)):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(error))
    if isinstance(error, (SessionAccessDeniedError, CharacterAccessDeniedError)):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=str(error))
    raise error


@router.post("/stream")
async def stream_chat(
    payload: ChatStreamRequest,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    relay: ChatStreamRelay = Depends(get_chat_relay),
):
    """
    Send a message and stream the character's reply as server-sent events.

    Events are ``delta`` (incremental text), then one ``done`` or ``error``.
    """
    try:
        relay.authorize(db, payload.session_id, user.id)
    except (
        SessionNotFoundError,
        SessionAccessDeniedError,
        CharacterNotFoundError,
    ) as e:
        _raise_http_error(e)

    try:
        relay.ensure_configured()
    except UpstreamConfigurationError as e:
        logger.error(str(e))
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="OpenRouter API key not configured",
        )

    turn = ChatTurn(
        session_id=payload.session_id,
        user_id=user.id,
        content=payload.content,
        image_url=payload.image_url,
        browser_time=payload.browser_time,
    )

    return StreamingResponse(
        relay.stream_turn(turn),
        media_type="text/event-stream",
        headers=SSE_HEADERS,
    )


@router.options("/stream")
async def stream_chat_preflight():
    """CORS preflight for the streaming endpoint."""
    return Response(status_code=status.HTTP_200_OK, headers=CORS_HEADERS)


@router.post("/sessions", response_model=ChatSessionResponse)
async def get_or_create_chat_session(
    data: ChatSessionCreate,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """
    Return the caller's session with a character, creating it if needed.

    With ``forceNew`` any existing session with the character is replaced.
    """
    try:
        chat_session = session_manager.get_or_create_session(
            db, user.id, data.character_id, force_new=data.force_new
        )
    except (CharacterNotFoundError, CharacterAccessDeniedError) as e:
        _raise_http_error(e)

    return chat_session


@router.get("/sessions", response_model=List[ChatSessionResponse])
async def list_chat_sessions(
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Get all chat sessions for the current user, most recent first."""
    return session_manager.get_user_sessions(db, user.id)


@router.get("/sessions/{session_id}/messages", response_model=List[ChatMessageResponse])
async def list_session_messages(
    session_id: int,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Get the full message history of a session, oldest first."""
    try:
        session_manager.get_owned_session(db, session_id, user.id)
    except (SessionNotFoundError, SessionAccessDeniedError) as e:
        _raise_http_error(e)

    return get_session_messages(db, session_id)


@router.delete("/sessions/{session_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_chat_session(
    session_id: int,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Delete a chat session and all of its messages."""
    try:
        session_manager.delete_session(db, session_id, user.id)
    except (SessionNotFoundError, SessionAccessDeniedError) as e:
        _raise_http_error(e)

    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/sessions/{session_id}/reset", response_model=ChatResetResponse)
async def reset_chat_session(
    session_id: int,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Clear a session's messages while keeping the session itself."""
    try:
        deleted = session_manager.reset_session(db, session_id, user.id)
    except (SessionNotFoundError, SessionAccessDeniedError) as e:
        _raise_http_error(e)

    return ChatResetResponse(deleted_messages=deleted)
