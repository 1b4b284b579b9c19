# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Unit tests for snapshot stores.

The SQL store is tested against a mocked session factory; the real table is
covered by the PostgreSQL integration tests.
"""

from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock, MagicMock

import pytest
from sqlalchemy.exc import OperationalError

from src.domains.sync import SnapshotKind, verify_checksum
from src.infrastructure.database import DatabaseError, SyncSnapshotRecord
from src.infrastructure.sync import InMemorySnapshotStore, SqlSnapshotStore


class TestInMemorySnapshotStore:
    """Tests for InMemorySnapshotStore."""

    @pytest.mark.asyncio
    async def test_latest_snapshot_by_kind(self, make_snapshot) -> None:
        """Test that the newest snapshot of the requested kind is returned."""
        store = InMemorySnapshotStore()
        first = make_snapshot(lessons=[{"id": "L1"}])
        second = make_snapshot(lessons=[{"id": "L2"}])
        offline = make_snapshot(lessons=[{"id": "L3"}])

        await store.persist_snapshot(first, conflict_count=1)
        await store.persist_snapshot(second, conflict_count=2)
        await store.persist_snapshot(offline, kind=SnapshotKind.OFFLINE)

        latest = await store.latest_snapshot("user-123")
        assert latest is not None
        assert latest.snapshot.checksum == second.checksum
        assert latest.kind is SnapshotKind.SYNCED
        assert latest.conflict_count == 2

    @pytest.mark.asyncio
    async def test_unknown_user(self) -> None:
        """Test that a user without snapshots has none."""
        store = InMemorySnapshotStore()

        assert await store.latest_snapshot("nobody") is None
        assert await store.count_snapshots_since("nobody", SnapshotKind.OFFLINE, None) == 0

    @pytest.mark.asyncio
    async def test_count_since(self, make_snapshot) -> None:
        """Test that offline writes are counted from the latest synced write."""
        store = InMemorySnapshotStore()
        await store.persist_snapshot(make_snapshot(), kind=SnapshotKind.OFFLINE)
        await store.persist_snapshot(make_snapshot(), kind=SnapshotKind.OFFLINE)

        assert await store.count_snapshots_since("user-123", SnapshotKind.OFFLINE, None) == 2

        await store.persist_snapshot(make_snapshot())
        synced_at = (await store.latest_snapshot("user-123")).persisted_at

        assert await store.count_snapshots_since("user-123", SnapshotKind.OFFLINE, synced_at) == 0

        await store.persist_snapshot(make_snapshot(), kind=SnapshotKind.OFFLINE)

        assert await store.count_snapshots_since(
            "user-123", SnapshotKind.OFFLINE, synced_at - timedelta(seconds=1)
        ) == 1

    @pytest.mark.asyncio
    async def test_cutoff_after_latest_write_counts_nothing(self, make_snapshot) -> None:
        """Test that a cutoff later than every write yields zero."""
        store = InMemorySnapshotStore()
        await store.persist_snapshot(make_snapshot(), kind=SnapshotKind.OFFLINE)
        latest = await store.latest_snapshot("user-123", kind=SnapshotKind.OFFLINE)

        count = await store.count_snapshots_since(
            "user-123", SnapshotKind.OFFLINE, latest.persisted_at + timedelta(seconds=1)
        )

        assert count == 0

    @pytest.mark.asyncio
    async def test_keeps_only_latest_snapshot_per_kind(self, make_snapshot) -> None:
        """Test that repeated writes do not accumulate snapshots."""
        store = InMemorySnapshotStore()
        for index in range(50):
            await store.persist_snapshot(
                make_snapshot(lessons=[{"id": f"L{index}"}]), kind=SnapshotKind.OFFLINE
            )

        assert len(store.snapshots_for("user-123")) == 1
        latest = await store.latest_snapshot("user-123", kind=SnapshotKind.OFFLINE)
        assert latest.snapshot.data.lessons == [{"id": "L49"}]
        assert await store.count_snapshots_since("user-123", SnapshotKind.OFFLINE, None) == 50

        await store.persist_snapshot(make_snapshot(), conflict_count=1)

        assert [s.kind for s in store.snapshots_for("user-123")] == [
            SnapshotKind.OFFLINE,
            SnapshotKind.SYNCED,
        ]

    @pytest.mark.asyncio
    async def test_stored_data_keeps_checksum(self, make_snapshot) -> None:
        """Test that canonicalized data still matches the checksum."""
        store = InMemorySnapshotStore()
        snapshot = make_snapshot(
            lessons=[{"id": "L1", "progress": 1.0, "at": datetime(2025, 1, 20, tzinfo=timezone.utc)}]
        )

        await store.persist_snapshot(snapshot)

        stored = await store.latest_snapshot("user-123")
        assert stored.snapshot.data.lessons == [
            {"id": "L1", "progress": 1, "at": "2025-01-20T00:00:00.000Z"}
        ]
        assert verify_checksum(stored.snapshot)

    @pytest.mark.asyncio
    async def test_snapshots_are_isolated_per_user(self, make_snapshot) -> None:
        """Test that users never see each other's snapshots."""
        store = InMemorySnapshotStore()
        await store.persist_snapshot(make_snapshot(user_id="a"))

        assert await store.latest_snapshot("b") is None
        assert len(store.snapshots_for("a")) == 1


def mock_sessionmaker(session: AsyncMock) -> MagicMock:
    """Create a sessionmaker whose sessions are the given mock."""
    session_cm = MagicMock()
    session_cm.__aenter__ = AsyncMock(return_value=session)
    session_cm.__aexit__ = AsyncMock(return_value=False)

    transaction_cm = MagicMock()
    transaction_cm.__aenter__ = AsyncMock(return_value=None)
    transaction_cm.__aexit__ = AsyncMock(return_value=False)
    session.begin = MagicMock(return_value=transaction_cm)
    session.add = MagicMock()

    return MagicMock(return_value=session_cm)


class TestSqlSnapshotStore:
    """Tests for SqlSnapshotStore."""

    @pytest.mark.asyncio
    async def test_persist_adds_record(self, make_snapshot) -> None:
        """Test that persisting adds one record in a transaction."""
        session = AsyncMock()
        store = SqlSnapshotStore(mock_sessionmaker(session))
        snapshot = make_snapshot(lessons=[{"id": "L1"}])

        await store.persist_snapshot(snapshot, kind=SnapshotKind.OFFLINE, conflict_count=0)

        session.begin.assert_called_once()
        record = session.add.call_args.args[0]
        assert isinstance(record, SyncSnapshotRecord)
        assert record.user_id == "user-123"
        assert record.kind == "offline"
        assert record.checksum == snapshot.checksum
        assert record.data["lessons"] == [{"id": "L1"}]
        assert record.data["offlineContent"] == []

    @pytest.mark.asyncio
    async def test_persist_failure_raises_database_error(self, make_snapshot) -> None:
        """Test that SQLAlchemy errors are wrapped."""
        session = AsyncMock()
        sessionmaker = mock_sessionmaker(session)
        session.add.side_effect = OperationalError("INSERT", {}, Exception("db down"))
        store = SqlSnapshotStore(sessionmaker)

        with pytest.raises(DatabaseError, match="Failed to persist snapshot"):
            await store.persist_snapshot(make_snapshot())

    @pytest.mark.asyncio
    async def test_latest_snapshot_maps_record(self, make_snapshot) -> None:
        """Test that a record is mapped back to a stored snapshot."""
        snapshot = make_snapshot(lessons=[{"id": "L1"}])
        created_at = datetime(2025, 1, 21, 9, 0)
        record = SyncSnapshotRecord(
            id="rec-1",
            user_id="user-123",
            kind="synced",
            version="1.0.0",
            checksum=snapshot.checksum,
            snapshot_timestamp=snapshot.timestamp,
            data=snapshot.data.to_json_dict(),
            conflict_count=2,
            created_at=created_at,
        )
        result = MagicMock()
        result.scalars.return_value.first.return_value = record
        session = AsyncMock()
        session.execute = AsyncMock(return_value=result)
        store = SqlSnapshotStore(mock_sessionmaker(session))

        stored = await store.latest_snapshot("user-123")

        assert stored is not None
        assert stored.snapshot == snapshot
        assert stored.kind is SnapshotKind.SYNCED
        assert stored.conflict_count == 2
        assert stored.persisted_at == created_at.replace(tzinfo=timezone.utc)

    @pytest.mark.asyncio
    async def test_latest_snapshot_none(self) -> None:
        """Test that an empty result maps to None."""
        result = MagicMock()
        result.scalars.return_value.first.return_value = None
        session = AsyncMock()
        session.execute = AsyncMock(return_value=result)
        store = SqlSnapshotStore(mock_sessionmaker(session))

        assert await store.latest_snapshot("user-123") is None

    @pytest.mark.asyncio
    async def test_count_snapshots_since(self) -> None:
        """Test that the count query result is returned."""
        result = MagicMock()
        result.scalar_one.return_value = 3
        session = AsyncMock()
        session.execute = AsyncMock(return_value=result)
        store = SqlSnapshotStore(mock_sessionmaker(session))

        count = await store.count_snapshots_since(
            "user-123",
            SnapshotKind.OFFLINE,
            datetime(2025, 1, 20, tzinfo=timezone.utc),
        )

        assert count == 3
        session.execute.assert_awaited_once()
