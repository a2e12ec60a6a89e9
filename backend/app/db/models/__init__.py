from app.db.models.user import User
from app.db.models.character import Character
from app.db.models.chat_session import ChatSession
from app.db.models.chat_message import ChatMessage

__all__ = [
    "User",
    "Character",
    "ChatSession",
    "ChatMessage",
]
