"""
Dependency injection functions for the API.
"""

from fastapi import Depends, HTTPException, Cookie, status
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy.orm import Session
from typing import Optional

from app.db.session import SessionLocal, get_db
from app.db.models import User
from app.core.security import verify_token
from app.services.chat.stream_relay import ChatStreamRelay
from app.services.openrouter.client import OpenRouterClient


# Database dependency
db_dependency = get_db

# OAuth2 scheme for token extraction from Authorization header
oauth2_scheme = OAuth2PasswordBearer(
    tokenUrl="api/auth/login",
    auto_error=False,  # Don't auto-raise errors to allow cookie fallback
)


async def get_token(
    token: Optional[str] = Depends(oauth2_scheme),
    access_token: Optional[str] = Cookie(None),
) -> str:
    """
    Extract token from either Authorization header or cookie.

    Prioritizes the Authorization header token if available.
    """
    if token:
        return token
    if access_token:
        return access_token

    # No token found
    raise HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Not authenticated",
        headers={"WWW-Authenticate": "Bearer"},
    )


async def get_current_user(
    token: str = Depends(get_token), db: Session = Depends(get_db)
) -> User:
    """
    Get the current authenticated user from a JWT token.

    Verifies the token and fetches the corresponding user from the database.
    """
    try:
        payload = verify_token(token)
        user_id = int(payload.get("sub"))
    except (ValueError, TypeError):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid authentication credentials",
            headers={"WWW-Authenticate": "Bearer"},
        )

    user = db.query(User).filter(User.id == user_id).first()
    if not user:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="User not found",
            headers={"WWW-Authenticate": "Bearer"},
        )

    if not user.is_active:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Inactive user",
        )

    return user


def get_completion_client() -> OpenRouterClient:
    """Upstream completion client configured from the environment."""
    return OpenRouterClient.from_env()


def get_session_factory():
    """Session factory the relay uses for writes that outlive the request."""
    return SessionLocal


def get_chat_relay(
    client: OpenRouterClient = Depends(get_completion_client),
    session_factory=Depends(get_session_factory),
) -> ChatStreamRelay:
    """Build the relay for one chat turn."""
    return ChatStreamRelay(session_factory=session_factory, completion_client=client)
