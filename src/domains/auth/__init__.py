# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Authentication domain.

Learners authenticate against the platform's identity service, which issues
JWT access tokens. The sync API validates those tokens and turns their
claims into an AuthenticatedUser.

Exports:
    AuthenticatedUser: The learner a request runs for.
    JWTManager: JWT token creation and validation.
    TokenPayload: Decoded token claims.
    TokenExpiredError, InvalidTokenError: Token validation failures.
"""

from src.domains.auth.jwt import (
    AuthenticatedUser,
    InvalidTokenError,
    JWTError,
    JWTManager,
    TokenExpiredError,
    TokenPayload,
)

__all__ = [
    "AuthenticatedUser",
    "JWTManager",
    "TokenPayload",
    "JWTError",
    "TokenExpiredError",
    "InvalidTokenError",
]
