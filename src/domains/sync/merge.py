# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Identity-based merging of snapshot collections.

Each collection is merged as ``local + server`` with duplicates removed by
key, keeping the first occurrence. Local entries therefore shadow server
entries with the same ``id``: work done offline is never lost, at the cost
of discarding server-side edits made to the same entry after the local
snapshot was taken.

Example:
    >>> merge_entries([{"id": "L1", "p": 0.5}], [{"id": "L1", "p": 0.9}, {"id": "L2"}])
    [{'id': 'L1', 'p': 0.5}, {'id': 'L2'}]
"""

import copy
from collections.abc import Hashable, Mapping
from typing import Any

from src.domains.sync.checksum import canonical_json, compute_checksum
from src.domains.sync.models import COLLECTION_NAMES, SyncData, SyncSnapshot
from src.utils.datetime import utc_now


def entry_key(entry: Any) -> Hashable:
    """Compute the identity key of a collection entry.

    Args:
        entry: A collection entry.

    Returns:
        ("id", <serialized id>) when the entry is a mapping with a truthy
        ``id``, otherwise ("entry", <serialized entry>).
    """
    if isinstance(entry, Mapping):
        entry_id = entry.get("id")
        if entry_id:
            return ("id", canonical_json(entry_id))
    return ("entry", canonical_json(entry))


def merge_entries(local: list[Any], server: list[Any]) -> list[Any]:
    """Merge two ordered collections, first occurrence wins.

    Args:
        local: Entries from the local snapshot (take priority).
        server: Entries from the server snapshot.

    Returns:
        De-duplicated copies of the entries, local order first.
    """
    unique: dict[Hashable, Any] = {}
    for entry in [*local, *server]:
        key = entry_key(entry)
        if key not in unique:
            unique[key] = copy.deepcopy(entry)
    return list(unique.values())


def merge_snapshots(local: SyncSnapshot, server: SyncSnapshot) -> SyncSnapshot:
    """Merge two snapshots collection by collection.

    Args:
        local: Local snapshot.
        server: Server snapshot.

    Returns:
        New snapshot stamped with the merge time, the local user id and
        version, and a checksum recomputed over the merged data.
    """
    merged = SyncData(
        **{
            name: merge_entries(local.data.collection(name), server.data.collection(name))
            for name in COLLECTION_NAMES
        }
    )

    return SyncSnapshot(
        user_id=local.user_id,
        timestamp=utc_now(),
        version=local.version,
        data=merged,
        checksum=compute_checksum(merged.to_payload()),
    )
