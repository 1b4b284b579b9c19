# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Unit tests for sync service composition."""

from unittest.mock import MagicMock, patch

import pytest

from src.api.dependencies import (
    build_lock_manager,
    build_server_fetcher,
    build_snapshot_store,
    build_sync_service,
)
from src.core.config.settings import Settings, SyncSettings
from src.domains.sync import RedisUserLockManager, SyncService, UserLockManager
from src.infrastructure.sync import (
    HttpServerSnapshotFetcher,
    InMemorySnapshotStore,
    SqlSnapshotStore,
    StoreServerSnapshotFetcher,
)


def settings_with(**sync: object) -> Settings:
    return Settings(sync=SyncSettings(**sync))


class TestBuilders:
    """Tests for the collaborator factories."""

    def test_memory_backends_by_default(self) -> None:
        """Test that the defaults need no external service."""
        settings = settings_with()

        store = build_snapshot_store(settings)

        assert isinstance(store, InMemorySnapshotStore)
        assert isinstance(build_lock_manager(settings), UserLockManager)
        assert isinstance(build_server_fetcher(settings, store), StoreServerSnapshotFetcher)

    @patch("src.api.dependencies.get_sessionmaker")
    def test_database_store(self, mock_sessionmaker: MagicMock) -> None:
        """Test that the database backend uses the shared sessionmaker."""
        store = build_snapshot_store(settings_with(store_backend="database"))

        assert isinstance(store, SqlSnapshotStore)
        mock_sessionmaker.assert_called_once()

    @patch("src.api.dependencies.get_redis")
    def test_redis_locks(self, mock_get_redis: MagicMock) -> None:
        """Test that the Redis backend uses the shared client."""
        locks = build_lock_manager(settings_with(lock_backend="redis"))

        assert isinstance(locks, RedisUserLockManager)
        mock_get_redis.assert_called_once()

    @pytest.mark.asyncio
    async def test_remote_fetcher(self) -> None:
        """Test that a configured base URL selects the HTTP fetcher."""
        settings = settings_with(
            server_base_url="https://learners.example.org",
            server_api_key="secret",
        )

        fetcher = build_server_fetcher(settings, InMemorySnapshotStore())

        assert isinstance(fetcher, HttpServerSnapshotFetcher)
        await fetcher.close()

    def test_build_sync_service(self) -> None:
        """Test that a service is wired from settings alone."""
        assert isinstance(build_sync_service(settings_with()), SyncService)
