"""
Exceptions raised by the chat services and translated to HTTP errors by the
chat routes.
"""


class ChatError(Exception):
    """Base class for chat service errors."""


class SessionNotFoundError(ChatError, LookupError):
    """The chat session does not exist."""


class SessionAccessDeniedError(ChatError, PermissionError):
    """The caller does not own the chat session."""


class CharacterNotFoundError(ChatError, LookupError):
    """The character does not exist."""


class CharacterAccessDeniedError(ChatError, PermissionError):
    """The character is private and owned by someone else."""
