"""
Security utilities for JWT authentication and password hashing.
"""

from datetime import timedelta
from typing import Any, Dict

from jose import jwt
from passlib.context import CryptContext

import os

from app.core.config import is_production
from app.utils.datetime_helper import utc_now

# Security configuration
JWT_SECRET_KEY = os.getenv("JWT_SECRET_KEY")
if not JWT_SECRET_KEY:
    if is_production():
        raise RuntimeError("JWT_SECRET_KEY must be set in production")
    JWT_SECRET_KEY = "dev-secret-key-never-use-in-production"

# JWT settings
ALGORITHM = "HS256"
ACCESS_TOKEN_EXPIRE_MINUTES = 60
REFRESH_TOKEN_EXPIRE_DAYS = 30

# Password hashing context
pwd_context = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")


def _encode(data: Dict[str, Any], expires_in: timedelta, token_type: str) -> str:
    to_encode = data.copy()
    to_encode.update({"exp": utc_now() + expires_in, "type": token_type})
    return jwt.encode(to_encode, JWT_SECRET_KEY, algorithm=ALGORITHM)


def create_access_token(data: Dict[str, Any]) -> str:
    """
    Create a short-lived JWT access token.

    Args:
        data: Payload data to include in the token (``sub`` is the user id)

    Returns:
        Encoded JWT access token
    """
    return _encode(data, timedelta(minutes=ACCESS_TOKEN_EXPIRE_MINUTES), "access")


def create_refresh_token(data: Dict[str, Any]) -> str:
    """
    Create a long-lived JWT refresh token.

    Args:
        data: Payload data to include in the token

    Returns:
        Encoded JWT refresh token
    """
    return _encode(data, timedelta(days=REFRESH_TOKEN_EXPIRE_DAYS), "refresh")


def verify_token(token: str, token_type: str = "access") -> Dict[str, Any]:
    """
    Decode and verify a JWT token.

    Args:
        token: JWT token to verify
        token_type: Type of token ("access" or "refresh")

    Returns:
        Token payload if valid

    Raises:
        ValueError: If token is invalid, expired or has the wrong type
    """
    try:
        payload = jwt.decode(token, JWT_SECRET_KEY, algorithms=[ALGORITHM])
    except jwt.JWTError:
        raise ValueError("Invalid token")

    if payload.get("type") != token_type:
        raise ValueError(f"Token is not a {token_type} token")

    return payload


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Check a plain password against its stored hash."""
    return pwd_context.verify(plain_password, hashed_password)


def get_password_hash(password: str) -> str:
    """Hash a password for storage."""
    return pwd_context.hash(password)
