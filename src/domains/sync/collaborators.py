# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Interfaces of the services the sync engine depends on.

The engine never talks to a database, HTTP API or audit sink directly; it
receives objects satisfying these protocols from the composition root
(``src.api.dependencies.build_sync_service``). Implementations live in
``src.infrastructure.sync`` and ``src.domains.activity``.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import TYPE_CHECKING, Any, Protocol

from src.domains.sync.models import SnapshotKind, SyncSnapshot

if TYPE_CHECKING:
    from src.domains.activity.tracker import UserActivity
    from src.domains.auth.jwt import AuthenticatedUser


@dataclass(frozen=True)
class StoredSnapshot:
    """A snapshot as recorded by a SnapshotStore.

    Attributes:
        snapshot: The persisted snapshot.
        kind: Why it was persisted.
        persisted_at: When the store accepted it.
        conflict_count: Conflicts resolved to produce it (synced only).
    """

    snapshot: SyncSnapshot
    kind: SnapshotKind
    persisted_at: datetime
    conflict_count: int = 0


class CollectionSource(Protocol):
    """Provides one collection (lessons, progress, ...) for a user.

    Absence of data is an empty list, never an error.
    """

    async def fetch_for_user(self, user_id: str) -> list[Any]: ...


class OfflineContentPackager(Protocol):
    """Packages content a learner can use while offline."""

    async def package_for_user(self, user: "AuthenticatedUser") -> list[Any]: ...


class ServerSnapshotFetcher(Protocol):
    """Retrieves the server-side snapshot of a user.

    Errors propagate; the orchestrator turns them into sync failures.
    """

    async def fetch_snapshot(self, user_id: str) -> SyncSnapshot: ...


class SnapshotStore(Protocol):
    """Persists snapshots."""

    async def persist_snapshot(
        self,
        snapshot: SyncSnapshot,
        *,
        kind: SnapshotKind = SnapshotKind.SYNCED,
        conflict_count: int = 0,
    ) -> None: ...

    async def latest_snapshot(
        self,
        user_id: str,
        kind: SnapshotKind = SnapshotKind.SYNCED,
    ) -> StoredSnapshot | None: ...

    async def count_snapshots_since(
        self,
        user_id: str,
        kind: SnapshotKind,
        since: datetime | None,
    ) -> int: ...


class ActivityRecorder(Protocol):
    """Audit sink. Fire-and-forget: implementations must not raise."""

    async def track(self, activity: "UserActivity") -> None: ...
