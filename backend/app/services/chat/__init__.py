"""
Chat services package initialization.
"""

from app.services.chat.session_manager import (
    delete_session,
    get_or_create_session,
    get_user_sessions,
    load_session_with_character,
    reset_session,
)
from app.services.chat.stream_relay import ChatStreamRelay, ChatTurn

__all__ = [
    "ChatStreamRelay",
    "ChatTurn",
    "delete_session",
    "get_or_create_session",
    "get_user_sessions",
    "load_session_with_character",
    "reset_session",
]
