# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Conflict resolution.

Each conflict replaces the whole working result instead of patching only
its own field, so the last conflict in the list decides the outcome. With
the fixed detection order (timestamp, then data) a data conflict's merge
always survives when both fire. Offline clients depend on this, so it is
kept as is.
"""

import logging
from collections.abc import Callable

from src.domains.sync.merge import merge_snapshots
from src.domains.sync.models import ConflictResolution, SyncConflict, SyncSnapshot

logger = logging.getLogger(__name__)

MergeStrategy = Callable[[SyncSnapshot, SyncSnapshot], SyncSnapshot]


class ConflictResolver:
    """Applies each conflict's resolution to produce one snapshot.

    Attributes:
        _merge: Strategy used for ``merge`` resolutions.

    Example:
        >>> resolver = ConflictResolver()
        >>> resolved = resolver.resolve(local, server, conflicts)
    """

    def __init__(self, merge: MergeStrategy = merge_snapshots) -> None:
        """Initialize the resolver.

        Args:
            merge: Merge strategy, defaults to identity-based merging.
        """
        self._merge = merge

    def resolve(
        self,
        local: SyncSnapshot,
        server: SyncSnapshot,
        conflicts: list[SyncConflict],
    ) -> SyncSnapshot:
        """Resolve conflicts between two snapshots.

        Args:
            local: Snapshot sent by the client.
            server: Snapshot held by the server.
            conflicts: Conflicts in detection order.

        Returns:
            Resolved snapshot. A copy of the server snapshot when there are
            no conflicts.
        """
        resolved = server.model_copy(deep=True)

        for conflict in conflicts:
            if conflict.resolution is ConflictResolution.LOCAL:
                resolved = local.model_copy(deep=True)
            elif conflict.resolution is ConflictResolution.SERVER:
                resolved = server.model_copy(deep=True)
            else:
                resolved = self._merge(local, server)
            logger.debug(
                "Applied %s resolution for conflict on %s",
                conflict.resolution.value,
                conflict.field,
            )

        return resolved
