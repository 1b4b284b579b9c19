# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""JWT token management utilities.

This module provides access token creation and validation using python-jose.
Tokens are issued by the platform's identity service; the sync API only
decodes them, but can also mint tokens for tooling and tests.

Example:
    >>> from src.core.config import get_settings
    >>> jwt_manager = JWTManager(get_settings().jwt)
    >>> token = jwt_manager.create_access_token(user)
    >>> claims = jwt_manager.decode_token(token)
"""

import logging
import secrets
from datetime import datetime, timedelta, timezone
from typing import Any, Literal

from jose import ExpiredSignatureError, jwt
from pydantic import BaseModel, Field

from src.core.config.settings import JWTSettings

logger = logging.getLogger(__name__)


class AuthenticatedUser(BaseModel):
    """The learner on whose behalf a request runs.

    Attributes:
        id: User identifier.
        email: Email address.
        name: Display name.
        role: Platform role (student, teacher, ...).
        language: Preferred language code (e.g., "es-MX").
        cultural_background: Cultural context used to personalize content.
        accessibility_preferences: Accessibility settings (e.g., "high_contrast").
        special_needs: Declared special needs.
    """

    id: str
    email: str = ""
    name: str = ""
    role: str = "student"
    language: str = "es"
    cultural_background: str | None = None
    accessibility_preferences: list[str] = Field(default_factory=list)
    special_needs: list[str] = Field(default_factory=list)


class TokenPayload(BaseModel):
    """JWT token payload structure.

    Attributes:
        sub: Subject (user ID).
        type: Token type.
        email: User email.
        name: User display name.
        role: User role.
        language: Preferred language code.
        cultural_background: Cultural context of the user.
        accessibility_preferences: Accessibility settings.
        special_needs: Declared special needs.
        exp: Expiration timestamp.
        iat: Issued at timestamp.
        jti: JWT ID for token tracking.
    """

    sub: str
    type: Literal["access"] = "access"
    email: str = ""
    name: str = ""
    role: str = "student"
    language: str = "es"
    cultural_background: str | None = None
    accessibility_preferences: list[str] = []
    special_needs: list[str] = []
    exp: int
    iat: int
    jti: str

    def to_user(self) -> AuthenticatedUser:
        """Build the authenticated user described by these claims."""
        return AuthenticatedUser(
            id=self.sub,
            email=self.email,
            name=self.name,
            role=self.role,
            language=self.language,
            cultural_background=self.cultural_background,
            accessibility_preferences=self.accessibility_preferences,
            special_needs=self.special_needs,
        )


class JWTError(Exception):
    """Base exception for JWT operations."""

    pass


class TokenExpiredError(JWTError):
    """Raised when a token has expired."""

    pass


class InvalidTokenError(JWTError):
    """Raised when a token is invalid."""

    pass


class JWTManager:
    """JWT token creation and validation manager.

    Attributes:
        _settings: JWT configuration settings.

    Example:
        >>> jwt_manager = JWTManager(settings)
        >>> token = jwt_manager.create_access_token(
        ...     AuthenticatedUser(id="user-123", language="es-MX")
        ... )
        >>> jwt_manager.decode_token(token).to_user().language
        'es-MX'
    """

    def __init__(self, settings: JWTSettings) -> None:
        """Initialize the JWT manager.

        Args:
            settings: JWT configuration settings.
        """
        self._settings = settings

    def create_access_token(
        self,
        user: AuthenticatedUser,
        expires_delta: timedelta | None = None,
    ) -> str:
        """Create an access token for a user.

        Args:
            user: User whose profile is embedded in the claims.
            expires_delta: Override for the configured lifetime.

        Returns:
            JWT access token string.
        """
        now = datetime.now(timezone.utc)
        if expires_delta is None:
            expires_delta = timedelta(minutes=self._settings.access_token_expire_minutes)
        exp = now + expires_delta

        payload: dict[str, Any] = {
            "sub": user.id,
            "type": "access",
            "email": user.email,
            "name": user.name,
            "role": user.role,
            "language": user.language,
            "cultural_background": user.cultural_background,
            "accessibility_preferences": user.accessibility_preferences,
            "special_needs": user.special_needs,
            "exp": int(exp.timestamp()),
            "iat": int(now.timestamp()),
            "jti": secrets.token_urlsafe(16),
        }

        return jwt.encode(
            payload,
            self._settings.secret_key.get_secret_value(),
            algorithm=self._settings.algorithm,
        )

    def decode_token(self, token: str) -> TokenPayload:
        """Decode and validate an access token.

        Args:
            token: JWT token string.

        Returns:
            TokenPayload with decoded claims.

        Raises:
            TokenExpiredError: If the token has expired.
            InvalidTokenError: If the token is invalid or not an access token.
        """
        try:
            payload = jwt.decode(
                token,
                self._settings.secret_key.get_secret_value(),
                algorithms=[self._settings.algorithm],
            )

            if payload.get("type", "access") != "access":
                raise InvalidTokenError(f"Expected access token, got {payload.get('type')}")

            return TokenPayload.model_validate(payload)

        except ExpiredSignatureError:
            raise TokenExpiredError("Token has expired")
        except InvalidTokenError:
            raise
        except Exception as e:
            logger.warning("Token decode failed: %s", str(e))
            raise InvalidTokenError(f"Invalid token: {str(e)}")
