"""
Service for storing and retrieving chat messages.
"""

import logging
from typing import Dict, List, Optional

from sqlalchemy import desc
from sqlalchemy.orm import Session

from app.db.models import ChatMessage

logger = logging.getLogger(__name__)


def store_message(
    db: Session,
    session_id: int,
    role: str,
    content: str,
    image_url: Optional[str] = None,
    image_description: Optional[str] = None,
) -> ChatMessage:
    """
    Append a message to a chat session and commit it.

    Args:
        db: Database session
        session_id: Chat session ID
        role: Message role ('user' or 'assistant')
        content: Message content
        image_url: Optional URL of an attached image
        image_description: Optional description of the attached image

    Returns:
        Created chat message
    """
    message = ChatMessage(
        session_id=session_id,
        role=role,
        content=content,
        image_url=image_url,
        image_description=image_description,
    )

    db.add(message)
    try:
        db.commit()
    except Exception:
        db.rollback()
        raise
    db.refresh(message)

    logger.info(f"Stored {role} message {message.id} in session {session_id}")
    return message


def get_recent_messages(
    db: Session,
    session_id: int,
    limit: int = 8,
) -> List[ChatMessage]:
    """
    Get the most recent messages of a session in chronological order.

    Args:
        db: Database session
        session_id: Chat session ID
        limit: Maximum number of messages to return

    Returns:
        Up to ``limit`` messages, oldest first
    """
    messages = (
        db.query(ChatMessage)
        .filter(ChatMessage.session_id == session_id)
        .order_by(desc(ChatMessage.created_at), desc(ChatMessage.id))
        .limit(limit)
        .all()
    )

    # Reverse to get oldest first
    messages.reverse()
    return messages


def get_session_messages(db: Session, session_id: int) -> List[ChatMessage]:
    """Full history of a session, oldest first."""
    return (
        db.query(ChatMessage)
        .filter(ChatMessage.session_id == session_id)
        .order_by(ChatMessage.created_at, ChatMessage.id)
        .all()
    )


def build_context_messages(messages: List[ChatMessage]) -> List[Dict[str, str]]:
    """
    Convert stored messages to completion-API messages.

    Only the newest user message that carries an image description gets the
    description inlined; older descriptions are dropped.

    Args:
        messages: Messages in chronological order

    Returns:
        List of {role, content} dicts
    """
    image_message_id = None
    for message in reversed(messages):
        if message.role == "user" and message.image_description:
            image_message_id = message.id
            break

    context = []
    for message in messages:
        content = message.content
        if message.id == image_message_id:
            content = f"{content}\n\n[Gambar yang dikirim user: {message.image_description}]"
        context.append({"role": message.role, "content": content})
    return context


def delete_messages(db: Session, session_id: int) -> int:
    """
    Delete all messages in a chat session.

    Args:
        db: Database session
        session_id: Chat session ID

    Returns:
        Number of messages deleted
    """
    result = (
        db.query(ChatMessage)
        .filter(ChatMessage.session_id == session_id)
        .delete(synchronize_session=False)
    )

    logger.info(f"Deleted {result} messages from session {session_id}")
    return result
