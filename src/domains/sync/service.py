# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Sync orchestration service.

Runs one synchronization of a learner's local snapshot against the server:

    validate -> lock -> fetch server -> detect conflicts -> resolve -> apply -> report

Any stage can fail. Failures are logged once here, audited as
``sync_error`` and re-raised as a SyncError subclass carrying a failure
report; nothing is persisted and no ``sync_completed`` audit is emitted
after a failure.

Example:
    >>> service = SyncService(builder, fetcher, store, tracker)
    >>> offline = await service.prepare_offline_data(user)
    >>> report = await service.sync(user, offline)
    >>> report.message
    'Sync completed. 1 conflicts resolved.'
"""

import asyncio
import logging
from typing import TYPE_CHECKING

from src.domains.activity.tracker import UserActivity
from src.domains.sync.checksum import canonical_json, verify_checksum
from src.domains.sync.collaborators import (
    ActivityRecorder,
    ServerSnapshotFetcher,
    SnapshotStore,
)
from src.domains.sync.conflicts import ConflictDetector
from src.domains.sync.exceptions import (
    SnapshotFetchError,
    SnapshotPersistError,
    SyncError,
    SyncTimeoutError,
    SyncValidationError,
)
from src.domains.sync.locks import UserLock, UserLockManager
from src.domains.sync.models import (
    PROTOCOL_VERSION,
    SnapshotKind,
    SyncConflict,
    SyncReport,
    SyncSnapshot,
    SyncStatus,
)
from src.domains.sync.resolver import ConflictResolver
from src.domains.sync.snapshot_builder import LocalSnapshotBuilder
from src.utils.logging import bind_context, clear_context

if TYPE_CHECKING:
    from src.domains.auth.jwt import AuthenticatedUser

logger = logging.getLogger(__name__)

SYNC_PAGE = "/sync"
SYNC_TYPE_FULL = "full"


def _payload_size(snapshot: SyncSnapshot) -> int:
    """Length of the serialized snapshot, 0 when it cannot be serialized."""
    try:
        return len(canonical_json(snapshot))
    except (TypeError, ValueError):
        return 0


class SyncService:
    """Synchronizes learner snapshots between devices and the server.

    The service holds no per-user state; everything a sync produces is
    returned or handed to the store. Concurrent syncs for the same learner
    are serialized by the lock manager.

    Attributes:
        _builder: Builds offline snapshots.
        _fetcher: Provides the server snapshot.
        _store: Persists applied snapshots.
        _tracker: Audit sink.
        _detector: Conflict detection.
        _resolver: Conflict resolution.
        _locks: Per-user lock manager.
        _protocol_version: Protocol version this server speaks.
        _timeout_seconds: Time budget of one sync call.
    """

    def __init__(
        self,
        builder: LocalSnapshotBuilder,
        fetcher: ServerSnapshotFetcher,
        store: SnapshotStore,
        tracker: ActivityRecorder,
        *,
        detector: ConflictDetector | None = None,
        resolver: ConflictResolver | None = None,
        locks: UserLock | None = None,
        protocol_version: str = PROTOCOL_VERSION,
        timeout_seconds: float = 30.0,
    ) -> None:
        """Initialize the sync service.

        Args:
            builder: Builds offline snapshots.
            fetcher: Provides the server snapshot.
            store: Persists applied snapshots.
            tracker: Audit sink.
            detector: Conflict detection, defaults to ConflictDetector().
            resolver: Conflict resolution, defaults to ConflictResolver().
            locks: Per-user locks, defaults to in-process locks.
            protocol_version: Protocol version this server speaks.
            timeout_seconds: Time budget of one sync call.
        """
        self._builder = builder
        self._fetcher = fetcher
        self._store = store
        self._tracker = tracker
        self._detector = detector or ConflictDetector()
        self._resolver = resolver or ConflictResolver()
        self._locks = locks or UserLockManager()
        self._protocol_version = protocol_version
        self._timeout_seconds = timeout_seconds

    async def prepare_offline_data(self, user: "AuthenticatedUser") -> SyncSnapshot:
        """Build the snapshot a device downloads before going offline.

        Args:
            user: Authenticated learner.

        Returns:
            The offline snapshot.
        """
        snapshot = await self._builder.build_offline_snapshot(user)
        logger.info(
            "Offline data ready for user %s, payload size %d",
            user.id,
            _payload_size(snapshot),
        )
        return snapshot

    async def sync(self, user: "AuthenticatedUser", local: SyncSnapshot) -> SyncReport:
        """Synchronize a local snapshot with the server.

        Args:
            user: Authenticated learner.
            local: Snapshot sent by the learner's device.

        Returns:
            Success report with the conflicts in detection order and the
            resolved snapshot.

        Raises:
            SyncValidationError: If the snapshot belongs to another user.
            SyncLockError: If another sync of the user holds the lock.
            SnapshotFetchError: If the server snapshot is unavailable.
            SnapshotPersistError: If the resolved snapshot cannot be applied.
            SyncTimeoutError: If the sync exceeds its time budget.
            SyncError: For any other failure.
        """
        bind_context(user_id=user.id)
        logger.info("Starting sync for user %s", user.id)

        try:
            report = await asyncio.wait_for(
                self._run(user, local),
                timeout=self._timeout_seconds,
            )
        except asyncio.TimeoutError as e:
            error = SyncTimeoutError(
                f"Sync did not complete within {self._timeout_seconds:g} seconds"
            )
            await self._report_failure(user, error)
            raise error from e
        except SyncError as e:
            await self._report_failure(user, e)
            raise
        else:
            # Outside the time budget: the snapshot is already applied.
            await self._report_success(user, report)
        finally:
            clear_context()

        return report

    async def get_sync_status(self, user_id: str) -> SyncStatus:
        """Get the synchronization status of a learner.

        Args:
            user_id: Learner identifier.

        Returns:
            When the last sync was applied, how many offline snapshots were
            prepared since, and how many conflicts the last sync resolved.
        """
        last = await self._store.latest_snapshot(user_id, kind=SnapshotKind.SYNCED)
        pending = await self._store.count_snapshots_since(
            user_id,
            SnapshotKind.OFFLINE,
            last.persisted_at if last else None,
        )

        return SyncStatus(
            last_sync=last.persisted_at if last else None,
            is_online=True,
            pending_changes=pending,
            conflicts=last.conflict_count if last else 0,
        )

    async def _run(self, user: "AuthenticatedUser", local: SyncSnapshot) -> SyncReport:
        """Run the sync pipeline under the user's lock."""
        stage = "validate"
        conflicts: list[SyncConflict] = []

        try:
            self._validate(user, local)

            async with self._locks.hold(user.id):
                stage = "fetch_server"
                server = await self._fetch_server(user.id)

                stage = "detect_conflicts"
                conflicts = self._detector.detect(local, server)

                stage = "resolve"
                resolved = self._resolver.resolve(local, server, conflicts)

                stage = "apply"
                await self._apply(resolved, conflicts)

        except SyncError:
            raise
        except Exception as e:
            logger.error("Unexpected error during %s: %s", stage, str(e), exc_info=True)
            raise SyncError(f"Sync failed: {e}", conflicts=conflicts, stage=stage) from e

        logger.info(
            "Sync completed for user %s: %d conflicts, checksum %s",
            user.id,
            len(conflicts),
            resolved.checksum,
        )

        return SyncReport(
            success=True,
            conflicts=conflicts,
            synced_data=resolved,
            message=f"Sync completed. {len(conflicts)} conflicts resolved.",
        )

    def _validate(self, user: "AuthenticatedUser", local: SyncSnapshot) -> None:
        """Check the local snapshot before it is compared.

        Raises:
            SyncValidationError: If the snapshot belongs to another user.
        """
        if local.user_id != user.id:
            raise SyncValidationError("Snapshot does not belong to the authenticated user")

        if local.version != self._protocol_version:
            logger.warning(
                "Snapshot of user %s uses protocol %s, server speaks %s",
                user.id,
                local.version,
                self._protocol_version,
            )

        if not verify_checksum(local):
            logger.warning(
                "Checksum mismatch in snapshot of user %s (claimed %s)",
                user.id,
                local.checksum,
            )

    async def _fetch_server(self, user_id: str) -> SyncSnapshot:
        """Fetch the server snapshot.

        Raises:
            SnapshotFetchError: If the fetcher fails or returns another
                user's snapshot.
        """
        try:
            server = await self._fetcher.fetch_snapshot(user_id)
        except Exception as e:
            raise SnapshotFetchError(f"Failed to fetch server data: {e}") from e

        if server.user_id != user_id:
            raise SnapshotFetchError("Server returned a snapshot for another user")
        return server

    async def _apply(self, resolved: SyncSnapshot, conflicts: list[SyncConflict]) -> None:
        """Persist the resolved snapshot.

        Raises:
            SnapshotPersistError: If the store fails.
        """
        try:
            await self._store.persist_snapshot(
                resolved,
                kind=SnapshotKind.SYNCED,
                conflict_count=len(conflicts),
            )
        except Exception as e:
            raise SnapshotPersistError(
                f"Failed to apply sync result: {e}",
                conflicts=conflicts,
            ) from e

    async def _report_success(self, user: "AuthenticatedUser", report: SyncReport) -> None:
        """Audit an applied sync."""
        await self._tracker.track(
            UserActivity(
                user_id=user.id,
                action="sync_completed",
                page=SYNC_PAGE,
                metadata={
                    "conflicts_count": len(report.conflicts),
                    "data_size": _payload_size(report.synced_data),
                    "sync_type": SYNC_TYPE_FULL,
                },
            )
        )

    async def _report_failure(self, user: "AuthenticatedUser", error: SyncError) -> None:
        """Log and audit a failed sync."""
        logger.error(
            "Sync failed for user %s at %s: %s",
            user.id,
            error.stage,
            error.message,
        )
        await self._tracker.track(
            UserActivity(
                user_id=user.id,
                action="sync_error",
                page=SYNC_PAGE,
                metadata={"error": error.message, "stage": error.stage},
            )
        )
