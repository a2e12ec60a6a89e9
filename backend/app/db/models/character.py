from sqlalchemy import Boolean, Column, ForeignKey, Integer, String, Text
from sqlalchemy.orm import relationship

from app.db.base import Base, TimestampMixin

COMPLIANCE_MODES = ("standard", "obedient", "strict")


class Character(Base, TimestampMixin):
    """User-authored roleplay character."""

    name = Column(String(200), nullable=False)
    summary = Column(Text, nullable=True)
    synopsis = Column(Text, nullable=False, default="")
    description = Column(Text, nullable=False, default="")
    greetings = Column(Text, nullable=False, default="")
    personality = Column(Text, nullable=True)
    backstory = Column(Text, nullable=True)
    avatar_url = Column(Text, nullable=True)

    # Default user role and situation
    default_user_role_name = Column(String(200), nullable=True)
    default_user_role_details = Column(Text, nullable=True)
    default_situation_name = Column(String(200), nullable=True)
    initial_situation_details = Column(Text, nullable=True)

    # "standard", "obedient" or "strict"
    compliance_mode = Column(String(20), default="standard", nullable=False)

    is_public = Column(Boolean, default=False, nullable=False)
    user_id = Column(
        Integer, ForeignKey("user.id", ondelete="CASCADE"), nullable=False
    )

    # Relationships
    user = relationship("User", back_populates="characters")
    chat_sessions = relationship(
        "ChatSession", back_populates="character", cascade="all, delete-orphan"
    )
