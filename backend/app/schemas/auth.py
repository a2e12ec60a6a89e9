"""
Authentication schema models using Pydantic.
"""

from pydantic import BaseModel, EmailStr, Field
from typing import Optional


class Token(BaseModel):
    """Schema for JWT token response."""

    access_token: str
    refresh_token: str
    token_type: str = "bearer"


class UserRegister(BaseModel):
    """Schema for account registration."""

    username: str = Field(min_length=3, max_length=50)
    email: EmailStr
    password: str = Field(min_length=8)


class UserLogin(BaseModel):
    """Schema for password login; ``username`` may also be an email."""

    username: str
    password: str


class UserResponse(BaseModel):
    """Schema for user data in responses."""

    id: int
    username: str
    email: str
    role: str
    is_active: bool

    class Config:
        from_attributes = True


class RefreshTokenRequest(BaseModel):
    """Request model for token refresh."""

    refresh_token: Optional[str] = None


class TokenRequest(BaseModel):
    """Request model for token validation."""

    token: Optional[str] = None
