from sqlalchemy import Column, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import relationship

from app.db.base import Base
from app.utils.datetime_helper import utc_now


class ChatMessage(Base):
    """Individual message within a chat session."""

    session_id = Column(
        Integer, ForeignKey("chatsession.id", ondelete="CASCADE"), nullable=False, index=True
    )
    role = Column(String(10), nullable=False)  # 'user' or 'assistant'
    content = Column(Text, nullable=False)

    # Image attachment
    image_url = Column(Text, nullable=True)
    image_description = Column(Text, nullable=True)

    created_at = Column(DateTime(timezone=True), default=utc_now, nullable=False)

    # Relationships
    chat_session = relationship("ChatSession", back_populates="messages")
