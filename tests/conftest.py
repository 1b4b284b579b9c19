# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Pytest configuration and shared fixtures.

This module provides fixtures used across all test types:
- Unit tests
- Integration tests
"""

from collections.abc import Generator
from datetime import datetime, timezone
from typing import Any

import pytest

from src.core.config.settings import clear_settings_cache
from src.domains.auth.jwt import AuthenticatedUser
from src.domains.sync import SyncData, SyncSnapshot, compute_checksum
from src.infrastructure.events import reset_event_bus


# =============================================================================
# Marker Configuration
# =============================================================================


def pytest_configure(config: pytest.Config) -> None:
    """Configure custom pytest markers."""
    config.addinivalue_line(
        "markers", "unit: mark test as a unit test"
    )
    config.addinivalue_line(
        "markers", "integration: mark test as an integration test (requires services)"
    )
    config.addinivalue_line(
        "markers", "slow: mark test as slow running"
    )


# =============================================================================
# Global State
# =============================================================================


@pytest.fixture(autouse=True)
def _isolate_singletons() -> Generator[None, None, None]:
    """Reset the event bus and settings cache around every test."""
    reset_event_bus()
    clear_settings_cache()
    yield
    reset_event_bus()
    clear_settings_cache()


# =============================================================================
# Helper Fixtures
# =============================================================================


def _make_snapshot(
    user_id: str = "user-123",
    timestamp: datetime | None = None,
    checksum: str | None = None,
    **collections: list[Any],
) -> SyncSnapshot:
    """Build a snapshot whose checksum matches its data unless overridden."""
    data = SyncData(**collections)
    return SyncSnapshot(
        user_id=user_id,
        timestamp=timestamp or datetime(2025, 1, 20, 10, 30, tzinfo=timezone.utc),
        version="1.0.0",
        data=data,
        checksum=checksum if checksum is not None else compute_checksum(data.to_payload()),
    )


@pytest.fixture
def sample_user_id() -> str:
    """Provide a sample learner ID for testing."""
    return "user-123"


@pytest.fixture
def sample_user(sample_user_id: str) -> AuthenticatedUser:
    """Provide a sample authenticated learner."""
    return AuthenticatedUser(
        id=sample_user_id,
        email="maria@example.com",
        name="María López",
        language="es-MX",
        cultural_background="maya",
        accessibility_preferences=["high_contrast"],
    )


@pytest.fixture
def sample_lessons() -> list[dict[str, Any]]:
    """Provide sample lesson entries."""
    return [
        {"id": "lesson-1", "title": "Matemáticas Básicas", "progress": 0.6},
        {"id": "lesson-2", "title": "Literatura Maya", "progress": 1.0},
    ]


@pytest.fixture
def make_snapshot() -> Any:
    """Provide a factory of snapshots with consistent checksums.

    Example:
        snapshot = make_snapshot(lessons=[{"id": "lesson-1"}])
    """
    return _make_snapshot
