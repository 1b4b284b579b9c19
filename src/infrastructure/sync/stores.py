# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Snapshot stores.

- InMemorySnapshotStore: process-local, latest snapshot per kind only.
- SqlSnapshotStore: the ``sync_snapshots`` table through SQLAlchemy async.

Stored data is the canonical JSON form of the collections, so a snapshot
read back has the same checksum it was written with.
"""

import json
import logging
from collections import defaultdict
from datetime import datetime

from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from src.domains.sync.checksum import canonical_json
from src.domains.sync.collaborators import StoredSnapshot
from src.domains.sync.models import SnapshotKind, SyncData, SyncSnapshot
from src.infrastructure.database.connection import DatabaseError
from src.infrastructure.database.models import SyncSnapshotRecord
from src.utils.datetime import ensure_utc, utc_now

logger = logging.getLogger(__name__)


def _canonical_data(snapshot: SyncSnapshot) -> dict:
    return json.loads(canonical_json(snapshot.data.to_payload()))


class InMemorySnapshotStore:
    """Keeps the latest snapshot of each kind per user in memory.

    Older snapshots are dropped. A write counter per kind is kept alongside
    the latest snapshot; a synced write restarts the counters of the other
    kinds.
    """

    def __init__(self) -> None:
        self._latest: dict[tuple[str, SnapshotKind], StoredSnapshot] = {}
        self._counts: dict[tuple[str, SnapshotKind], int] = defaultdict(int)

    async def persist_snapshot(
        self,
        snapshot: SyncSnapshot,
        *,
        kind: SnapshotKind = SnapshotKind.SYNCED,
        conflict_count: int = 0,
    ) -> None:
        stored = StoredSnapshot(
            snapshot=snapshot.model_copy(
                update={"data": SyncData.model_validate(_canonical_data(snapshot))}
            ),
            kind=kind,
            persisted_at=utc_now(),
            conflict_count=conflict_count,
        )
        user_id = snapshot.user_id

        if kind is SnapshotKind.SYNCED:
            for other in SnapshotKind:
                if other is not SnapshotKind.SYNCED:
                    self._counts.pop((user_id, other), None)

        self._latest[(user_id, kind)] = stored
        self._counts[(user_id, kind)] += 1
        logger.debug(
            "Stored %s snapshot for user %s (checksum %s)",
            kind.value,
            user_id,
            snapshot.checksum,
        )

    async def latest_snapshot(
        self,
        user_id: str,
        kind: SnapshotKind = SnapshotKind.SYNCED,
    ) -> StoredSnapshot | None:
        return self._latest.get((user_id, kind))

    async def count_snapshots_since(
        self,
        user_id: str,
        kind: SnapshotKind,
        since: datetime | None,
    ) -> int:
        """Count snapshots of a kind persisted after ``since``.

        Only writes made after the user's latest synced snapshot are
        counted, so a cutoff earlier than that write counts from it.
        """
        latest = self._latest.get((user_id, kind))
        if latest is None:
            return 0
        if since is not None and latest.persisted_at <= since:
            return 0
        return self._counts.get((user_id, kind), 0)

    def snapshots_for(self, user_id: str) -> list[StoredSnapshot]:
        """Snapshots retained for a user, at most one per kind, oldest first."""
        retained = [
            stored
            for (owner, _), stored in self._latest.items()
            if owner == user_id
        ]
        return sorted(retained, key=lambda stored: stored.persisted_at)


class SqlSnapshotStore:
    """Snapshot store backed by the ``sync_snapshots`` table.

    Every write runs in its own transaction.

    Attributes:
        _sessionmaker: Factory of async sessions.

    Example:
        >>> store = SqlSnapshotStore(get_sessionmaker())
        >>> await store.persist_snapshot(snapshot, conflict_count=2)
    """

    def __init__(self, sessionmaker: async_sessionmaker[AsyncSession]) -> None:
        """Initialize the store.

        Args:
            sessionmaker: Factory of async sessions.
        """
        self._sessionmaker = sessionmaker

    async def persist_snapshot(
        self,
        snapshot: SyncSnapshot,
        *,
        kind: SnapshotKind = SnapshotKind.SYNCED,
        conflict_count: int = 0,
    ) -> None:
        """Insert a snapshot.

        Args:
            snapshot: Snapshot to persist.
            kind: Why it is persisted.
            conflict_count: Conflicts resolved to produce it.

        Raises:
            DatabaseError: If the insert fails.
        """
        record = SyncSnapshotRecord(
            user_id=snapshot.user_id,
            kind=kind.value,
            version=snapshot.version,
            checksum=snapshot.checksum,
            snapshot_timestamp=snapshot.timestamp,
            data=_canonical_data(snapshot),
            conflict_count=conflict_count,
            created_at=utc_now(),
        )

        try:
            async with self._sessionmaker() as session:
                async with session.begin():
                    session.add(record)
        except SQLAlchemyError as e:
            raise DatabaseError("Failed to persist snapshot", e) from e

        logger.debug("Persisted %s snapshot for user %s", kind.value, snapshot.user_id)

    async def latest_snapshot(
        self,
        user_id: str,
        kind: SnapshotKind = SnapshotKind.SYNCED,
    ) -> StoredSnapshot | None:
        """Get the most recent snapshot of a kind.

        Raises:
            DatabaseError: If the query fails.
        """
        stmt = (
            select(SyncSnapshotRecord)
            .where(
                SyncSnapshotRecord.user_id == user_id,
                SyncSnapshotRecord.kind == kind.value,
            )
            .order_by(SyncSnapshotRecord.created_at.desc())
            .limit(1)
        )

        try:
            async with self._sessionmaker() as session:
                result = await session.execute(stmt)
                record = result.scalars().first()
        except SQLAlchemyError as e:
            raise DatabaseError("Failed to load latest snapshot", e) from e

        if record is None:
            return None
        return self._to_stored(record)

    async def count_snapshots_since(
        self,
        user_id: str,
        kind: SnapshotKind,
        since: datetime | None,
    ) -> int:
        """Count snapshots of a kind persisted after a point in time.

        Raises:
            DatabaseError: If the query fails.
        """
        stmt = (
            select(func.count())
            .select_from(SyncSnapshotRecord)
            .where(
                SyncSnapshotRecord.user_id == user_id,
                SyncSnapshotRecord.kind == kind.value,
            )
        )
        if since is not None:
            stmt = stmt.where(SyncSnapshotRecord.created_at > since)

        try:
            async with self._sessionmaker() as session:
                result = await session.execute(stmt)
                return int(result.scalar_one())
        except SQLAlchemyError as e:
            raise DatabaseError("Failed to count snapshots", e) from e

    @staticmethod
    def _to_stored(record: SyncSnapshotRecord) -> StoredSnapshot:
        snapshot = SyncSnapshot(
            user_id=record.user_id,
            timestamp=record.snapshot_timestamp,
            version=record.version,
            data=SyncData.model_validate(record.data),
            checksum=record.checksum,
        )
        return StoredSnapshot(
            snapshot=snapshot,
            kind=SnapshotKind(record.kind),
            persisted_at=ensure_utc(record.created_at),
            conflict_count=record.conflict_count,
        )
