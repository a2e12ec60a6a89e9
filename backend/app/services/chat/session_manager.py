"""
Service for managing chat sessions.

A user has at most one active session per character (find-or-create).
Session rows carry the mood state that the stream relay updates after
every exchange.
"""

import logging
from typing import List, Optional, Tuple

from sqlalchemy import desc
from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import StaleDataError

from app.core.config import debug_bypass_access
from app.db.models import Character, ChatSession
from app.services.chat.errors import (
    CharacterAccessDeniedError,
    CharacterNotFoundError,
    SessionAccessDeniedError,
    SessionNotFoundError,
)
from app.services.chat.message_store import delete_messages, store_message
from app.services.mood.definitions import Mood, normalize_mood
from app.utils.datetime_helper import utc_now

logger = logging.getLogger(__name__)

MAX_UPDATE_ATTEMPTS = 3


def load_session_with_character(
    db: Session,
    session_id: int,
    user_id: int,
) -> Tuple[ChatSession, Character]:
    """
    Read a session and its character in one query and check ownership.

    Args:
        db: Database session
        session_id: Chat session ID
        user_id: ID of the caller

    Returns:
        Tuple of (chat session, character)

    Raises:
        SessionNotFoundError: If the session does not exist
        SessionAccessDeniedError: If the caller does not own the session
        CharacterNotFoundError: If the session's character is gone
    """
    row = (
        db.query(ChatSession, Character)
        .outerjoin(Character, ChatSession.character_id == Character.id)
        .filter(ChatSession.id == session_id)
        .first()
    )

    if row is None:
        raise SessionNotFoundError(f"Chat session {session_id} not found")

    chat_session, character = row
    if chat_session.user_id != user_id and not debug_bypass_access():
        logger.warning(f"User {user_id} denied access to session {session_id}")
        raise SessionAccessDeniedError("Session not found or access denied")

    if character is None:
        raise CharacterNotFoundError("Character not found")

    return chat_session, character


def get_owned_session(db: Session, session_id: int, user_id: int) -> ChatSession:
    """Fetch a session the caller owns, raising like load_session_with_character."""
    chat_session = db.query(ChatSession).filter(ChatSession.id == session_id).first()

    if chat_session is None:
        raise SessionNotFoundError(f"Chat session {session_id} not found")
    if chat_session.user_id != user_id and not debug_bypass_access():
        raise SessionAccessDeniedError("Session not found or access denied")

    return chat_session


def get_accessible_character(db: Session, character_id: int, user_id: int) -> Character:
    """A character the caller may chat with: their own, or a public one."""
    character = db.query(Character).filter(Character.id == character_id).first()

    if character is None:
        raise CharacterNotFoundError("Karakter tidak ditemukan")
    if (
        character.user_id != user_id
        and not character.is_public
        and not debug_bypass_access()
    ):
        raise CharacterAccessDeniedError("Anda tidak memiliki akses ke karakter ini")

    return character


def get_or_create_session(
    db: Session,
    user_id: int,
    character_id: int,
    force_new: bool = False,
) -> ChatSession:
    """
    Return the caller's session with a character, creating it if needed.

    New sessions are seeded with the character's greeting as the first
    assistant message.

    Args:
        db: Database session
        user_id: User ID
        character_id: Character ID
        force_new: Delete any existing session with the character first

    Returns:
        The existing or newly created chat session
    """
    character = get_accessible_character(db, character_id, user_id)

    existing = (
        db.query(ChatSession)
        .filter(ChatSession.user_id == user_id, ChatSession.character_id == character_id)
        .order_by(desc(ChatSession.updated_at))
        .all()
    )

    if existing and not force_new:
        return existing[0]

    try:
        for old_session in existing:
            db.delete(old_session)

        chat_session = ChatSession(
            user_id=user_id,
            character_id=character_id,
            title=f"Chat dengan {character.name}",
            current_mood=Mood.HAPPY.value,
            mood_intensity=5,
            conversation_length=0,
            user_response_time=0,
        )
        db.add(chat_session)
        db.commit()
    except Exception:
        db.rollback()
        raise
    db.refresh(chat_session)

    logger.info(f"Created new chat session {chat_session.id} for user {user_id}")

    greeting = (character.greetings or "").strip()
    if greeting:
        store_message(db, chat_session.id, "assistant", greeting)

    return chat_session


def get_user_sessions(db: Session, user_id: int) -> List[ChatSession]:
    """
    Get the user's chat sessions, most recently active first.

    Args:
        db: Database session
        user_id: User ID

    Returns:
        List of chat sessions
    """
    return (
        db.query(ChatSession)
        .filter(ChatSession.user_id == user_id)
        .order_by(desc(ChatSession.updated_at))
        .all()
    )


def delete_session(db: Session, session_id: int, user_id: int) -> None:
    """
    Delete a chat session and its messages.

    Raises:
        SessionNotFoundError: If the session does not exist
        SessionAccessDeniedError: If the caller does not own the session
    """
    chat_session = get_owned_session(db, session_id, user_id)

    try:
        db.delete(chat_session)
        db.commit()
    except Exception as e:
        db.rollback()
        logger.error(f"Error deleting chat session {session_id}: {str(e)}")
        raise

    logger.info(f"Deleted chat session {session_id} for user {user_id}")


def reset_session(db: Session, session_id: int, user_id: int) -> int:
    """
    Clear a session's messages and conversation counters, keeping the row.

    Returns:
        Number of messages deleted
    """
    chat_session = get_owned_session(db, session_id, user_id)

    try:
        deleted = delete_messages(db, session_id)
        chat_session.conversation_length = 0
        chat_session.last_user_message = None
        chat_session.user_response_time = 0
        db.commit()
    except Exception:
        db.rollback()
        raise

    return deleted


def record_turn(
    db: Session,
    session_id: int,
    mood: Mood,
    intensity: int,
    response_time_minutes: int,
    now=None,
) -> ChatSession:
    """
    Write the end-of-turn state of a session.

    The update is guarded by the session's version counter: if another turn
    changed the row in the meantime, the row is re-read and the update is
    applied again on top of the fresh values.

    Args:
        db: Database session
        session_id: Chat session ID
        mood: Mood computed for the turn
        intensity: Mood intensity, clamped to 1..10
        response_time_minutes: Gap since the previous user message
        now: Timestamp of the turn

    Returns:
        Updated chat session
    """
    if now is None:
        now = utc_now()
    mood = normalize_mood(mood)
    intensity = max(1, min(10, int(intensity)))

    for attempt in range(1, MAX_UPDATE_ATTEMPTS + 1):
        chat_session = db.get(ChatSession, session_id)
        if chat_session is None:
            raise SessionNotFoundError(f"Chat session {session_id} not found")

        if normalize_mood(chat_session.current_mood) != mood:
            chat_session.last_mood_change = now
        chat_session.current_mood = mood.value
        chat_session.mood_intensity = intensity
        chat_session.conversation_length = (chat_session.conversation_length or 0) + 2
        chat_session.last_user_message = now
        chat_session.user_response_time = response_time_minutes
        chat_session.updated_at = now

        try:
            db.commit()
            return chat_session
        except StaleDataError:
            db.rollback()
            logger.warning(
                f"Session {session_id} changed concurrently, retrying update "
                f"({attempt}/{MAX_UPDATE_ATTEMPTS})"
            )

    raise StaleDataError(f"Could not update session {session_id} after {MAX_UPDATE_ATTEMPTS} attempts")
