# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Unit tests for server snapshot fetchers and collection sources."""

import httpx
import pytest

from src.domains.auth.jwt import AuthenticatedUser
from src.domains.sync import SnapshotKind, verify_checksum
from src.infrastructure.sync import (
    HttpServerSnapshotFetcher,
    InMemoryCollectionSource,
    InMemorySnapshotStore,
    ServerSnapshotUnavailableError,
    SourceServerSnapshotFetcher,
    StoreServerSnapshotFetcher,
    TemplateOfflineContentPackager,
    demo_sources,
)


class TestInMemoryCollectionSource:
    """Tests for InMemoryCollectionSource."""

    @pytest.mark.asyncio
    async def test_default_entries(self) -> None:
        """Test that users without entries get the defaults."""
        source = InMemoryCollectionSource("lessons", [{"id": "lesson-1"}])

        assert await source.fetch_for_user("anyone") == [{"id": "lesson-1"}]

    @pytest.mark.asyncio
    async def test_user_entries_override_defaults(self) -> None:
        """Test that per-user entries replace the defaults."""
        source = InMemoryCollectionSource("lessons", [{"id": "lesson-1"}])
        source.set_for_user("user-123", [{"id": "lesson-7"}])

        assert await source.fetch_for_user("user-123") == [{"id": "lesson-7"}]
        assert await source.fetch_for_user("other") == [{"id": "lesson-1"}]

    @pytest.mark.asyncio
    async def test_returns_copies(self) -> None:
        """Test that callers cannot mutate stored entries."""
        source = InMemoryCollectionSource("lessons", [{"id": "lesson-1"}])

        entries = await source.fetch_for_user("user-123")
        entries[0]["id"] = "changed"

        assert await source.fetch_for_user("user-123") == [{"id": "lesson-1"}]


class TestTemplateOfflineContentPackager:
    """Tests for TemplateOfflineContentPackager."""

    @pytest.mark.asyncio
    async def test_demo_templates_are_personalized(self) -> None:
        """Test that every template is stamped with the learner profile."""
        user = AuthenticatedUser(id="user-123", language="yua", accessibility_preferences=[])

        content = await TemplateOfflineContentPackager().package_for_user(user)

        assert [c["id"] for c in content] == ["content-1", "content-2"]
        assert all(c["language"] == "yua" for c in content)
        assert all(c["culturalContext"] is None for c in content)


class TestSourceServerSnapshotFetcher:
    """Tests for SourceServerSnapshotFetcher."""

    @pytest.mark.asyncio
    async def test_assembles_server_view(self) -> None:
        """Test that the server view has no offline content and a valid checksum."""
        fetcher = SourceServerSnapshotFetcher(demo_sources())

        snapshot = await fetcher.fetch_snapshot("user-123")

        assert snapshot.user_id == "user-123"
        assert len(snapshot.data.lessons) == 2
        assert len(snapshot.data.progress) == 1
        assert snapshot.data.offline_content == []
        assert verify_checksum(snapshot)


class TestStoreServerSnapshotFetcher:
    """Tests for StoreServerSnapshotFetcher."""

    @pytest.mark.asyncio
    async def test_falls_back_when_never_synced(self) -> None:
        """Test that learners without a sync get the fallback view."""
        fetcher = StoreServerSnapshotFetcher(
            InMemorySnapshotStore(),
            fallback=SourceServerSnapshotFetcher(demo_sources()),
        )

        snapshot = await fetcher.fetch_snapshot("user-123")

        assert len(snapshot.data.lessons) == 2

    @pytest.mark.asyncio
    async def test_returns_last_synced_snapshot(self, make_snapshot) -> None:
        """Test that the latest synced snapshot is the server view."""
        store = InMemorySnapshotStore()
        synced = make_snapshot(lessons=[{"id": "lesson-9"}])
        await store.persist_snapshot(synced, kind=SnapshotKind.SYNCED)
        await store.persist_snapshot(make_snapshot(), kind=SnapshotKind.OFFLINE)
        fetcher = StoreServerSnapshotFetcher(
            store,
            fallback=SourceServerSnapshotFetcher(demo_sources()),
        )

        snapshot = await fetcher.fetch_snapshot("user-123")

        assert snapshot.checksum == synced.checksum
        assert snapshot.data.lessons == [{"id": "lesson-9"}]


class TestHttpServerSnapshotFetcher:
    """Tests for HttpServerSnapshotFetcher."""

    @pytest.mark.asyncio
    async def test_fetches_snapshot(self, make_snapshot) -> None:
        """Test that the wire snapshot is parsed."""
        snapshot = make_snapshot(offline_content=[{"id": "content-1"}])
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json=snapshot.to_json_dict())

        fetcher = HttpServerSnapshotFetcher(
            "https://learners.example.org/api",
            headers={"X-API-Key": "secret"},
            transport=httpx.MockTransport(handler),
        )

        try:
            result = await fetcher.fetch_snapshot("user-123")
        finally:
            await fetcher.close()

        assert result == snapshot
        assert seen[0].url.path == "/api/users/user-123/snapshot"
        assert seen[0].headers["X-API-Key"] == "secret"

    @pytest.mark.asyncio
    async def test_error_status(self) -> None:
        """Test that non-2xx responses are unavailable errors."""
        fetcher = HttpServerSnapshotFetcher(
            "https://learners.example.org",
            transport=httpx.MockTransport(lambda request: httpx.Response(503, text="down")),
        )

        with pytest.raises(ServerSnapshotUnavailableError, match="503"):
            await fetcher.fetch_snapshot("user-123")

    @pytest.mark.asyncio
    async def test_transport_error(self) -> None:
        """Test that connection failures are unavailable errors."""

        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        fetcher = HttpServerSnapshotFetcher(
            "https://learners.example.org",
            transport=httpx.MockTransport(handler),
        )

        with pytest.raises(ServerSnapshotUnavailableError, match="unreachable"):
            await fetcher.fetch_snapshot("user-123")

    @pytest.mark.asyncio
    async def test_malformed_body(self) -> None:
        """Test that bodies that are not snapshots are unavailable errors."""
        fetcher = HttpServerSnapshotFetcher(
            "https://learners.example.org",
            transport=httpx.MockTransport(lambda request: httpx.Response(200, json={"foo": 1})),
        )

        with pytest.raises(ServerSnapshotUnavailableError, match="malformed"):
            await fetcher.fetch_snapshot("user-123")
