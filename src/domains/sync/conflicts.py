# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Conflict detection between a local and a server snapshot."""

import logging

from src.domains.sync.models import ConflictResolution, SyncConflict, SyncSnapshot

logger = logging.getLogger(__name__)


class ConflictDetector:
    """Compares two snapshots field by field.

    Only two fields are compared, always in this order:

    1. ``timestamp``: resolved in favor of the server, whose clock is
       authoritative for ordering.
    2. ``data`` (compared through the checksum): resolved by merging, so
       divergent content is reconciled instead of dropped.

    ``user_id`` and ``version`` are checked by the orchestrator before
    detection runs.

    Example:
        >>> conflicts = ConflictDetector().detect(local, server)
        >>> [c.field for c in conflicts]
        ['timestamp', 'data']
    """

    def detect(self, local: SyncSnapshot, server: SyncSnapshot) -> list[SyncConflict]:
        """Detect conflicts between two snapshots.

        Args:
            local: Snapshot sent by the client.
            server: Snapshot held by the server.

        Returns:
            Conflicts in detection order (timestamp first, then data).
        """
        conflicts: list[SyncConflict] = []

        if local.timestamp != server.timestamp:
            conflicts.append(
                SyncConflict(
                    field="timestamp",
                    local_value=local.timestamp,
                    server_value=server.timestamp,
                    resolution=ConflictResolution.SERVER,
                )
            )

        if local.checksum != server.checksum:
            conflicts.append(
                SyncConflict(
                    field="data",
                    local_value=local.checksum,
                    server_value=server.checksum,
                    resolution=ConflictResolution.MERGE,
                )
            )

        logger.debug(
            "Detected %d conflicts for user %s: %s",
            len(conflicts),
            local.user_id,
            [c.field for c in conflicts],
        )
        return conflicts
