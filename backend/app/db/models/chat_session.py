from sqlalchemy import Column, DateTime, ForeignKey, Index, Integer, String
from sqlalchemy.orm import relationship

from app.db.base import Base, TimestampMixin


class ChatSession(Base, TimestampMixin):
    """Conversation between one user and one character, with mood state."""

    user_id = Column(Integer, ForeignKey("user.id", ondelete="CASCADE"), nullable=False)
    character_id = Column(
        Integer, ForeignKey("character.id", ondelete="CASCADE"), nullable=False
    )
    title = Column(String(255), nullable=True)

    # Mood state
    current_mood = Column(String(20), default="happy", nullable=False)
    mood_intensity = Column(Integer, default=5, nullable=False)
    last_mood_change = Column(DateTime(timezone=True), nullable=True)

    # Interaction tracking
    conversation_length = Column(Integer, default=0, nullable=False)
    last_user_message = Column(DateTime(timezone=True), nullable=True)
    user_response_time = Column(Integer, default=0, nullable=False)  # minutes

    # Optimistic concurrency counter, checked on every UPDATE
    version_id = Column(Integer, nullable=False)

    __mapper_args__ = {"version_id_col": version_id}
    __table_args__ = (
        Index("ix_chatsession_user_character", "user_id", "character_id"),
    )

    # Relationships
    user = relationship("User", back_populates="chat_sessions")
    character = relationship("Character", back_populates="chat_sessions")
    messages = relationship(
        "ChatMessage",
        back_populates="chat_session",
        cascade="all, delete-orphan",
        order_by="ChatMessage.created_at",
    )
