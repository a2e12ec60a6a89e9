"""
Tests for JWT authentication security functions.
"""

import pytest
from datetime import datetime, timedelta, UTC
from jose import jwt

from app.core.security import (
    create_access_token,
    create_refresh_token,
    verify_token,
    get_password_hash,
    verify_password,
    JWT_SECRET_KEY,
    ALGORITHM,
    ACCESS_TOKEN_EXPIRE_MINUTES,
    REFRESH_TOKEN_EXPIRE_DAYS,
)


class TestTokenGeneration:
    """Tests for JWT token generation functions."""

    def test_access_token_generation(self):
        """Test that access tokens are generated correctly with expected claims."""
        token = create_access_token({"sub": "42", "role": "user"})

        assert isinstance(token, str)
        payload = jwt.decode(token, JWT_SECRET_KEY, algorithms=[ALGORITHM])

        assert payload["sub"] == "42"
        assert payload["role"] == "user"
        assert payload["type"] == "access"
        assert "exp" in payload

    def test_refresh_token_generation(self):
        """Test that refresh tokens are generated correctly with expected claims."""
        token = create_refresh_token({"sub": "42"})

        payload = jwt.decode(token, JWT_SECRET_KEY, algorithms=[ALGORITHM])

        assert payload["sub"] == "42"
        assert payload["type"] == "refresh"
        assert "exp" in payload

    def test_token_expiration(self):
        """Test that token expiration dates are set correctly."""
        now = datetime.now(UTC)

        access_payload = jwt.decode(
            create_access_token({"sub": "42"}), JWT_SECRET_KEY, algorithms=[ALGORITHM]
        )
        refresh_payload = jwt.decode(
            create_refresh_token({"sub": "42"}), JWT_SECRET_KEY, algorithms=[ALGORITHM]
        )

        access_exp = datetime.fromtimestamp(access_payload["exp"], UTC)
        refresh_exp = datetime.fromtimestamp(refresh_payload["exp"], UTC)

        expected_access_exp = now + timedelta(minutes=ACCESS_TOKEN_EXPIRE_MINUTES)
        expected_refresh_exp = now + timedelta(days=REFRESH_TOKEN_EXPIRE_DAYS)

        # Allow for a small tolerance (3 seconds) in our test
        assert abs((access_exp - expected_access_exp).total_seconds()) < 3
        assert abs((refresh_exp - expected_refresh_exp).total_seconds()) < 3


class TestTokenValidation:
    """Tests for JWT token validation functions."""

    def test_valid_token_verification(self):
        """Test that valid tokens are verified correctly."""
        access_payload = verify_token(create_access_token({"sub": "42"}), token_type="access")
        refresh_payload = verify_token(create_refresh_token({"sub": "42"}), token_type="refresh")

        assert access_payload["sub"] == "42"
        assert access_payload["type"] == "access"
        assert refresh_payload["type"] == "refresh"

    def test_invalid_token_verification(self):
        """Test that invalid tokens raise appropriate errors."""
        with pytest.raises(ValueError, match="Invalid token"):
            verify_token("invalid-token")

    def test_wrong_token_type(self):
        """Test that tokens with wrong type raise appropriate errors."""
        access_token = create_access_token({"sub": "42"})
        refresh_token = create_refresh_token({"sub": "42"})

        with pytest.raises(ValueError, match="Token is not a refresh token"):
            verify_token(access_token, token_type="refresh")

        with pytest.raises(ValueError, match="Token is not a access token"):
            verify_token(refresh_token, token_type="access")

    def test_expired_token(self):
        """Test that expired tokens raise appropriate errors."""
        payload = {
            "sub": "42",
            "type": "access",
            "exp": datetime.now(UTC) - timedelta(hours=1),
        }
        expired_token = jwt.encode(payload, JWT_SECRET_KEY, algorithm=ALGORITHM)

        with pytest.raises(ValueError, match="Invalid token"):
            verify_token(expired_token)


class TestPasswordHashing:
    """Tests for password hashing functions."""

    def test_password_hashing(self):
        """Test that password hashing produces different hashes for the same password."""
        password = "secure-password"

        hash1 = get_password_hash(password)
        hash2 = get_password_hash(password)

        # Hashes should be different (due to salt)
        assert hash1 != hash2
        assert verify_password(password, hash1)
        assert verify_password(password, hash2)

    def test_password_verification(self):
        """Test password verification against known hashes."""
        password_hash = get_password_hash("another-secure-password")

        assert verify_password("another-secure-password", password_hash)
        assert not verify_password("wrong-password", password_hash)
