"""
Pydantic models for chat-related schemas.

Chat payloads use camelCase on the wire (``sessionId``, ``imageUrl``) to
match the web client; Python code uses snake_case field names.
"""

from datetime import datetime
from typing import Optional
from pydantic import BaseModel, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Base model serialised with camelCase aliases."""

    class Config:
        alias_generator = to_camel
        populate_by_name = True
        from_attributes = True


class ChatStreamRequest(CamelModel):
    """Body of POST /api/chat/stream."""

    session_id: int
    content: str = Field(min_length=1)
    image_url: Optional[str] = None
    browser_time: Optional[str] = None


class ChatSessionCreate(CamelModel):
    """Schema for finding or creating the session with a character."""

    character_id: int
    force_new: bool = False


class ChatMessageResponse(CamelModel):
    """Schema for chat message response."""

    id: int
    session_id: int
    role: str  # 'user' or 'assistant'
    content: str
    image_url: Optional[str] = None
    image_description: Optional[str] = None
    created_at: datetime


class CharacterSummary(CamelModel):
    """Character fields shown next to a session."""

    id: int
    name: str
    avatar_url: Optional[str] = None


class ChatSessionResponse(CamelModel):
    """Schema for chat session response."""

    id: int
    title: Optional[str] = None
    character_id: int
    current_mood: str
    mood_intensity: int
    conversation_length: int
    created_at: datetime
    updated_at: datetime
    character: Optional[CharacterSummary] = None


class ChatResetResponse(CamelModel):
    """Schema for the reset endpoint."""

    success: bool = True
    deleted_messages: int = 0
    message: str = "Chat berhasil direset."
