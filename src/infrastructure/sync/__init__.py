# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Implementations of the sync engine's collaborators.

Exports:
    InMemoryCollectionSource, TemplateOfflineContentPackager, demo_sources:
        Collection sources.
    SourceServerSnapshotFetcher, StoreServerSnapshotFetcher,
    HttpServerSnapshotFetcher: Server snapshot fetchers.
    InMemorySnapshotStore, SqlSnapshotStore: Snapshot stores.
"""

from src.infrastructure.sync.fetchers import (
    HttpServerSnapshotFetcher,
    ServerSnapshotUnavailableError,
    SourceServerSnapshotFetcher,
    StoreServerSnapshotFetcher,
)
from src.infrastructure.sync.sources import (
    InMemoryCollectionSource,
    TemplateOfflineContentPackager,
    demo_sources,
)
from src.infrastructure.sync.stores import InMemorySnapshotStore, SqlSnapshotStore

__all__ = [
    # Sources
    "InMemoryCollectionSource",
    "TemplateOfflineContentPackager",
    "demo_sources",
    # Fetchers
    "HttpServerSnapshotFetcher",
    "ServerSnapshotUnavailableError",
    "SourceServerSnapshotFetcher",
    "StoreServerSnapshotFetcher",
    # Stores
    "InMemorySnapshotStore",
    "SqlSnapshotStore",
]
