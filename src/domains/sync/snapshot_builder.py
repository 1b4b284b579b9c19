# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Local snapshot assembly.

Builds the snapshot a learner's device downloads before going offline. The
five collections come from independent sources; a failing source degrades
its own collection to an empty list and never blocks the others.

Example:
    >>> builder = LocalSnapshotBuilder(sources, store)
    >>> snapshot = await builder.build_offline_snapshot(user)
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Awaitable

from src.domains.sync.checksum import compute_checksum
from src.domains.sync.collaborators import (
    CollectionSource,
    OfflineContentPackager,
    SnapshotStore,
)
from src.domains.sync.models import PROTOCOL_VERSION, SnapshotKind, SyncData, SyncSnapshot
from src.utils.datetime import utc_now

if TYPE_CHECKING:
    from src.domains.auth.jwt import AuthenticatedUser

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SnapshotSources:
    """Collaborators that provide each collection of a snapshot.

    Attributes:
        lessons: Lesson catalog.
        progress: Progress store.
        preferences: Preference store.
        activities: Activity log.
        offline_content: Offline content packager.
    """

    lessons: CollectionSource
    progress: CollectionSource
    preferences: CollectionSource
    activities: CollectionSource
    offline_content: OfflineContentPackager


class LocalSnapshotBuilder:
    """Assembles and persists offline snapshots.

    Attributes:
        _sources: Collection collaborators.
        _store: Snapshot store for the persistence side effect.
        _protocol_version: Version stamped on built snapshots.
    """

    def __init__(
        self,
        sources: SnapshotSources,
        store: SnapshotStore,
        protocol_version: str = PROTOCOL_VERSION,
    ) -> None:
        """Initialize the builder.

        Args:
            sources: Collection collaborators.
            store: Snapshot store.
            protocol_version: Version stamped on built snapshots.
        """
        self._sources = sources
        self._store = store
        self._protocol_version = protocol_version

    async def build_offline_snapshot(self, user: "AuthenticatedUser") -> SyncSnapshot:
        """Build, checksum and persist a snapshot of the user's data.

        Args:
            user: Authenticated learner.

        Returns:
            The new snapshot. Persistence failures are logged, not raised.
        """
        logger.info("Preparing offline data for user %s", user.id)

        lessons, progress, preferences, activities, offline_content = await asyncio.gather(
            self._collect("lessons", user.id, self._sources.lessons.fetch_for_user(user.id)),
            self._collect("progress", user.id, self._sources.progress.fetch_for_user(user.id)),
            self._collect(
                "preferences", user.id, self._sources.preferences.fetch_for_user(user.id)
            ),
            self._collect(
                "activities", user.id, self._sources.activities.fetch_for_user(user.id)
            ),
            self._collect(
                "offline_content",
                user.id,
                self._sources.offline_content.package_for_user(user),
            ),
        )

        data = SyncData(
            lessons=lessons,
            progress=progress,
            preferences=preferences,
            activities=activities,
            offline_content=offline_content,
        )
        snapshot = SyncSnapshot(
            user_id=user.id,
            timestamp=utc_now(),
            version=self._protocol_version,
            data=data,
            checksum=compute_checksum(data.to_payload()),
        )

        try:
            await self._store.persist_snapshot(snapshot, kind=SnapshotKind.OFFLINE)
        except Exception as e:
            logger.error(
                "Failed to save offline snapshot for user %s: %s",
                user.id,
                str(e),
                exc_info=True,
            )

        logger.info(
            "Offline data prepared for user %s: %d entries, checksum %s",
            user.id,
            data.entry_count,
            snapshot.checksum,
        )
        return snapshot

    async def _collect(
        self,
        name: str,
        user_id: str,
        fetch: Awaitable[list[Any]],
    ) -> list[Any]:
        """Await one collection, degrading to an empty list on failure."""
        try:
            return list(await fetch)
        except Exception as e:
            logger.warning(
                "Failed to fetch %s for user %s, using empty collection: %s",
                name,
                user_id,
                str(e),
            )
            return []
