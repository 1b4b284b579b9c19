# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Server snapshot fetchers.

A fetcher answers "what does the server hold for this learner right now".
Three implementations are provided:

- SourceServerSnapshotFetcher: assembles the view from the server-side
  collection sources. Offline content is device-only and always empty.
- StoreServerSnapshotFetcher: the last applied sync result, falling back
  to another fetcher for learners who never synced.
- HttpServerSnapshotFetcher: asks a remote learner-data service.

Fetchers raise on failure; the sync service turns that into a failed sync.
"""

import asyncio
import logging
from typing import Any

import httpx
from pydantic import ValidationError

from src.domains.sync.checksum import compute_checksum
from src.domains.sync.collaborators import ServerSnapshotFetcher, SnapshotStore
from src.domains.sync.models import PROTOCOL_VERSION, SnapshotKind, SyncData, SyncSnapshot
from src.domains.sync.snapshot_builder import SnapshotSources
from src.utils.datetime import utc_now

logger = logging.getLogger(__name__)


class ServerSnapshotUnavailableError(Exception):
    """Raised when the remote learner-data service cannot provide a snapshot."""

    pass


class SourceServerSnapshotFetcher:
    """Builds the server snapshot from collection sources.

    Attributes:
        _sources: Server-side collection sources.
        _protocol_version: Version stamped on the snapshot.
    """

    def __init__(
        self,
        sources: SnapshotSources,
        protocol_version: str = PROTOCOL_VERSION,
    ) -> None:
        self._sources = sources
        self._protocol_version = protocol_version

    async def fetch_snapshot(self, user_id: str) -> SyncSnapshot:
        """Assemble the server view of a learner's data.

        Args:
            user_id: Learner identifier.

        Returns:
            Snapshot timestamped now, with empty offline content.
        """
        lessons, progress, preferences, activities = await asyncio.gather(
            self._sources.lessons.fetch_for_user(user_id),
            self._sources.progress.fetch_for_user(user_id),
            self._sources.preferences.fetch_for_user(user_id),
            self._sources.activities.fetch_for_user(user_id),
        )

        data = SyncData(
            lessons=lessons,
            progress=progress,
            preferences=preferences,
            activities=activities,
            offline_content=[],
        )
        return SyncSnapshot(
            user_id=user_id,
            timestamp=utc_now(),
            version=self._protocol_version,
            data=data,
            checksum=compute_checksum(data.to_payload()),
        )


class StoreServerSnapshotFetcher:
    """Returns the latest applied sync result of a learner.

    Attributes:
        _store: Snapshot store holding synced snapshots.
        _fallback: Fetcher used when the learner has never synced.
    """

    def __init__(self, store: SnapshotStore, fallback: ServerSnapshotFetcher) -> None:
        self._store = store
        self._fallback = fallback

    async def fetch_snapshot(self, user_id: str) -> SyncSnapshot:
        """Get the latest synced snapshot, or the fallback's view.

        Args:
            user_id: Learner identifier.

        Returns:
            The server snapshot.
        """
        stored = await self._store.latest_snapshot(user_id, kind=SnapshotKind.SYNCED)
        if stored is None:
            logger.debug("No synced snapshot for user %s, using fallback", user_id)
            return await self._fallback.fetch_snapshot(user_id)
        return stored.snapshot


class HttpServerSnapshotFetcher:
    """Fetches server snapshots from a remote learner-data service.

    Issues ``GET {base_url}/users/{user_id}/snapshot`` and expects a
    snapshot in wire format.

    Attributes:
        _client: HTTP client bound to the service base URL.

    Example:
        >>> fetcher = HttpServerSnapshotFetcher(
        ...     "https://learners.example.org/api",
        ...     headers={"X-API-Key": "..."},
        ... )
        >>> snapshot = await fetcher.fetch_snapshot("user-123")
        >>> await fetcher.close()
    """

    def __init__(
        self,
        base_url: str,
        timeout: float = 10.0,
        headers: dict[str, str] | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize the fetcher.

        Args:
            base_url: Base URL of the learner-data service.
            timeout: Request timeout in seconds.
            headers: Extra headers (authentication) sent with every request.
            transport: Custom transport, used by tests.
        """
        self._client = httpx.AsyncClient(
            base_url=base_url,
            headers=headers or {},
            timeout=timeout,
            transport=transport,
        )

    async def close(self) -> None:
        """Close the HTTP client."""
        await self._client.aclose()

    async def fetch_snapshot(self, user_id: str) -> SyncSnapshot:
        """Fetch the server snapshot of a learner.

        Args:
            user_id: Learner identifier.

        Returns:
            The server snapshot.

        Raises:
            ServerSnapshotUnavailableError: On transport errors, non-2xx
                responses or malformed bodies.
        """
        try:
            response = await self._client.get(f"/users/{user_id}/snapshot")
            response.raise_for_status()
            payload: Any = response.json()
            return SyncSnapshot.model_validate(payload)

        except httpx.HTTPStatusError as e:
            logger.error(
                "Snapshot request for user %s failed with %d: %s",
                user_id,
                e.response.status_code,
                e.response.text,
            )
            raise ServerSnapshotUnavailableError(
                f"Learner service returned {e.response.status_code}"
            ) from e
        except httpx.HTTPError as e:
            logger.error("Snapshot request for user %s failed: %s", user_id, str(e))
            raise ServerSnapshotUnavailableError(f"Learner service unreachable: {e}") from e
        except (ValueError, ValidationError) as e:
            logger.error("Malformed snapshot for user %s: %s", user_id, str(e))
            raise ServerSnapshotUnavailableError("Learner service sent a malformed snapshot") from e
