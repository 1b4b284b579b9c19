# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Unit tests for JWT token utilities.

Tests the JWTManager class and token operations.
"""

import time
from datetime import timedelta
from unittest.mock import MagicMock

import pytest
from jose import jwt
from pydantic import SecretStr

from src.domains.auth.jwt import (
    AuthenticatedUser,
    InvalidTokenError,
    JWTManager,
    TokenExpiredError,
    TokenPayload,
)


@pytest.fixture
def jwt_settings() -> MagicMock:
    """Create mock JWT settings."""
    settings = MagicMock()
    settings.secret_key = SecretStr("test-secret-key-for-jwt-testing")
    settings.algorithm = "HS256"
    settings.access_token_expire_minutes = 30
    return settings


@pytest.fixture
def jwt_manager(jwt_settings: MagicMock) -> JWTManager:
    """Create JWT manager with test settings."""
    return JWTManager(jwt_settings)


class TestJWTManager:
    """Tests for JWTManager class."""

    def test_create_access_token_returns_valid_token(
        self,
        jwt_manager: JWTManager,
        sample_user: AuthenticatedUser,
    ) -> None:
        """Test that create_access_token returns valid token string."""
        token = jwt_manager.create_access_token(sample_user)

        assert isinstance(token, str)
        assert token.count(".") == 2

    def test_decode_access_token_returns_payload(
        self,
        jwt_manager: JWTManager,
        sample_user: AuthenticatedUser,
    ) -> None:
        """Test that decode_token returns the learner profile claims."""
        token = jwt_manager.create_access_token(sample_user)

        payload = jwt_manager.decode_token(token)

        assert isinstance(payload, TokenPayload)
        assert payload.sub == sample_user.id
        assert payload.type == "access"
        assert payload.language == "es-MX"
        assert payload.cultural_background == "maya"
        assert payload.accessibility_preferences == ["high_contrast"]

    def test_payload_round_trips_to_user(
        self,
        jwt_manager: JWTManager,
        sample_user: AuthenticatedUser,
    ) -> None:
        """Test that to_user rebuilds the authenticated user."""
        token = jwt_manager.create_access_token(sample_user)

        assert jwt_manager.decode_token(token).to_user() == sample_user

    def test_minimal_claims_use_defaults(self, jwt_settings: MagicMock, jwt_manager: JWTManager) -> None:
        """Test that tokens from the identity service may carry only sub."""
        now = int(time.time())
        token = jwt.encode(
            {"sub": "user-9", "exp": now + 60, "iat": now, "jti": "abc"},
            jwt_settings.secret_key.get_secret_value(),
            algorithm="HS256",
        )

        user = jwt_manager.decode_token(token).to_user()

        assert user.id == "user-9"
        assert user.role == "student"
        assert user.language == "es"
        assert user.accessibility_preferences == []

    def test_decode_token_with_wrong_type_raises_error(
        self,
        jwt_settings: MagicMock,
        jwt_manager: JWTManager,
    ) -> None:
        """Test that decode_token rejects non-access tokens."""
        now = int(time.time())
        token = jwt.encode(
            {"sub": "user-9", "type": "refresh", "exp": now + 60, "iat": now, "jti": "abc"},
            jwt_settings.secret_key.get_secret_value(),
            algorithm="HS256",
        )

        with pytest.raises(InvalidTokenError, match="Expected access token"):
            jwt_manager.decode_token(token)

    def test_decode_expired_token_raises_error(
        self,
        jwt_manager: JWTManager,
        sample_user: AuthenticatedUser,
    ) -> None:
        """Test that decode_token raises error for expired token."""
        token = jwt_manager.create_access_token(
            sample_user,
            expires_delta=timedelta(seconds=-10),
        )

        with pytest.raises(TokenExpiredError, match="Token has expired"):
            jwt_manager.decode_token(token)

    def test_decode_invalid_token_raises_error(
        self,
        jwt_manager: JWTManager,
    ) -> None:
        """Test that decode_token raises error for invalid token."""
        with pytest.raises(InvalidTokenError):
            jwt_manager.decode_token("invalid.token.here")

    def test_decode_token_with_wrong_secret_raises_error(
        self,
        jwt_manager: JWTManager,
        jwt_settings: MagicMock,
        sample_user: AuthenticatedUser,
    ) -> None:
        """Test that decode fails when secret doesn't match."""
        token = jwt_manager.create_access_token(sample_user)

        # Create manager with different secret
        jwt_settings.secret_key = SecretStr("different-secret-key")
        other_manager = JWTManager(jwt_settings)

        with pytest.raises(InvalidTokenError):
            other_manager.decode_token(token)

    def test_tokens_contain_unique_jti(
        self,
        jwt_manager: JWTManager,
        sample_user: AuthenticatedUser,
    ) -> None:
        """Test that tokens contain unique JTI claims."""
        payload1 = jwt_manager.decode_token(jwt_manager.create_access_token(sample_user))
        payload2 = jwt_manager.decode_token(jwt_manager.create_access_token(sample_user))

        assert payload1.jti != payload2.jti

    def test_token_payload_timestamps(
        self,
        jwt_manager: JWTManager,
        sample_user: AuthenticatedUser,
    ) -> None:
        """Test that tokens have correct iat and exp timestamps."""
        before = int(time.time())

        token = jwt_manager.create_access_token(sample_user)

        after = int(time.time())
        payload = jwt_manager.decode_token(token)

        # iat should be between before and after
        assert before <= payload.iat <= after

        # exp should be about 30 minutes after iat
        expected_exp = payload.iat + 30 * 60
        assert abs(payload.exp - expected_exp) <= 1
