# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Sync domain models.

These models travel over the wire between offline clients and the API, so
their JSON field names are camelCase (``userId``, ``offlineContent``,
``syncedData``) while Python code uses snake_case attributes. Both spellings
are accepted on input.

Snapshots and conflicts are frozen: every stage of a sync returns a new
value instead of mutating the one it received.
"""

from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from src.utils.datetime import ensure_utc

PROTOCOL_VERSION = "1.0.0"

# Order matters: it is the serialization order the checksum is computed over.
COLLECTION_NAMES = ("lessons", "progress", "preferences", "activities", "offline_content")


class SyncModel(BaseModel):
    """Base model with camelCase JSON aliases."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
    )

    def to_json_dict(self) -> dict[str, Any]:
        """Dump to a JSON-compatible dict using wire field names."""
        return self.model_dump(mode="json", by_alias=True)


class ConflictResolution(str, Enum):
    """How a detected conflict is resolved."""

    LOCAL = "local"
    SERVER = "server"
    MERGE = "merge"


class SnapshotKind(str, Enum):
    """Why a snapshot was persisted."""

    OFFLINE = "offline"
    SYNCED = "synced"


class SyncData(SyncModel):
    """The five synchronizable collections of one learner.

    Entries are loosely typed records. They should carry an ``id`` so
    merging can match them by identity; entries without one are matched by
    their full serialized form.
    """

    model_config = ConfigDict(frozen=True)

    lessons: list[Any] = Field(default_factory=list)
    progress: list[Any] = Field(default_factory=list)
    preferences: list[Any] = Field(default_factory=list)
    activities: list[Any] = Field(default_factory=list)
    offline_content: list[Any] = Field(default_factory=list)

    @field_validator(*COLLECTION_NAMES, mode="before")
    @classmethod
    def _none_as_empty(cls, value: Any) -> Any:
        return [] if value is None else value

    def collection(self, name: str) -> list[Any]:
        """Get a collection by its snake_case name."""
        return getattr(self, name)

    def to_payload(self) -> dict[str, Any]:
        """Python-mode dump with wire names, the input of the checksum."""
        return self.model_dump(by_alias=True)

    @property
    def entry_count(self) -> int:
        """Total number of entries across all collections."""
        return sum(len(self.collection(name)) for name in COLLECTION_NAMES)


class SyncSnapshot(SyncModel):
    """Versioned, checksummed bundle of one learner's synchronizable state.

    Attributes:
        user_id: Learner identifier.
        timestamp: When the snapshot was assembled (UTC).
        version: Sync protocol version.
        data: The five collections.
        checksum: Digest of ``data`` (see ``src.domains.sync.checksum``).
    """

    model_config = ConfigDict(frozen=True)

    user_id: str
    timestamp: datetime
    version: str = PROTOCOL_VERSION
    data: SyncData = Field(default_factory=SyncData)
    checksum: str

    @field_validator("timestamp")
    @classmethod
    def _timestamp_utc(cls, value: datetime) -> datetime:
        return ensure_utc(value)


class SyncConflict(SyncModel):
    """A detected disagreement between a local and a server snapshot.

    Attributes:
        field: Top-level field in conflict ("timestamp" or "data").
        local_value: Value on the local side.
        server_value: Value on the server side.
        resolution: Strategy assigned at detection time.
    """

    model_config = ConfigDict(frozen=True)

    field: str
    local_value: Any = None
    server_value: Any = None
    resolution: ConflictResolution


class SyncReport(SyncModel):
    """Outcome of one synchronization run.

    Attributes:
        success: Whether the resolved snapshot was applied.
        conflicts: Conflicts in detection order.
        synced_data: Resolved snapshot, None when the sync failed.
        message: Human-readable summary.
    """

    success: bool
    conflicts: list[SyncConflict] = Field(default_factory=list)
    synced_data: SyncSnapshot | None = None
    message: str


class SyncStatus(SyncModel):
    """Synchronization status of one learner.

    Attributes:
        last_sync: When the last successful sync was applied.
        is_online: Whether the sync service is reachable (always True when
            answered by the server).
        pending_changes: Offline snapshots prepared since the last sync.
        conflicts: Conflicts resolved by the last sync.
    """

    last_sync: datetime | None = None
    is_online: bool = True
    pending_changes: int = 0
    conflicts: int = 0
