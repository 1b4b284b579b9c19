# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Learner data synchronization domain.

Reconciles a snapshot cached on a learner's device with the server's view:
conflicts are detected, resolved deterministically and the checksummed
result is applied.

Exports:
    SyncService: Orchestrates a sync run, offline preparation and status.
    LocalSnapshotBuilder, SnapshotSources: Offline snapshot assembly.
    ConflictDetector, ConflictResolver: Detection and resolution.
    merge_snapshots, merge_entries: Identity-based merging.
    compute_checksum, verify_checksum: Snapshot integrity.
    UserLockManager, RedisUserLockManager: Per-user sync locks.
    SyncSnapshot, SyncData, SyncConflict, SyncReport, SyncStatus: Models.
    SyncError and subclasses: Failures carrying a failure report.
"""

from src.domains.sync.checksum import (
    CHECKSUM_ERROR,
    canonical_json,
    compute_checksum,
    verify_checksum,
)
from src.domains.sync.collaborators import (
    ActivityRecorder,
    CollectionSource,
    OfflineContentPackager,
    ServerSnapshotFetcher,
    SnapshotStore,
    StoredSnapshot,
)
from src.domains.sync.conflicts import ConflictDetector
from src.domains.sync.exceptions import (
    SnapshotFetchError,
    SnapshotPersistError,
    SyncError,
    SyncLockError,
    SyncTimeoutError,
    SyncValidationError,
)
from src.domains.sync.locks import RedisUserLockManager, UserLock, UserLockManager
from src.domains.sync.merge import entry_key, merge_entries, merge_snapshots
from src.domains.sync.models import (
    COLLECTION_NAMES,
    PROTOCOL_VERSION,
    ConflictResolution,
    SnapshotKind,
    SyncConflict,
    SyncData,
    SyncReport,
    SyncSnapshot,
    SyncStatus,
)
from src.domains.sync.resolver import ConflictResolver
from src.domains.sync.service import SyncService
from src.domains.sync.snapshot_builder import LocalSnapshotBuilder, SnapshotSources

__all__ = [
    # Service
    "SyncService",
    "LocalSnapshotBuilder",
    "SnapshotSources",
    "ConflictDetector",
    "ConflictResolver",
    "merge_snapshots",
    "merge_entries",
    "entry_key",
    # Checksum
    "CHECKSUM_ERROR",
    "canonical_json",
    "compute_checksum",
    "verify_checksum",
    # Locks
    "UserLock",
    "UserLockManager",
    "RedisUserLockManager",
    # Collaborators
    "ActivityRecorder",
    "CollectionSource",
    "OfflineContentPackager",
    "ServerSnapshotFetcher",
    "SnapshotStore",
    "StoredSnapshot",
    # Models
    "COLLECTION_NAMES",
    "PROTOCOL_VERSION",
    "ConflictResolution",
    "SnapshotKind",
    "SyncConflict",
    "SyncData",
    "SyncReport",
    "SyncSnapshot",
    "SyncStatus",
    # Exceptions
    "SyncError",
    "SyncValidationError",
    "SnapshotFetchError",
    "SnapshotPersistError",
    "SyncLockError",
    "SyncTimeoutError",
]
