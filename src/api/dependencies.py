# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""FastAPI dependency injection definitions.

This module is the composition root of the sync engine: it picks the
collaborator implementations configured in settings and wires them into a
SyncService, which the application keeps on ``app.state``. Endpoints reach
it, and the authenticated user, through the dependencies below.

Example:
    @router.post("/sync")
    async def sync(
        current_user: AuthenticatedUser = Depends(require_auth),
        service: SyncService = Depends(get_sync_service),
    ):
        ...
"""

import logging

from fastapi import HTTPException, Request, status

from src.api.middleware.auth import get_current_user
from src.core.config import Settings
from src.domains.activity import ActivityTracker
from src.domains.auth.jwt import AuthenticatedUser
from src.domains.sync import (
    LocalSnapshotBuilder,
    RedisUserLockManager,
    ServerSnapshotFetcher,
    SnapshotStore,
    SyncService,
    UserLock,
    UserLockManager,
)
from src.infrastructure.cache import get_redis
from src.infrastructure.database import get_sessionmaker
from src.infrastructure.events import EventBus, get_event_bus
from src.infrastructure.sync import (
    HttpServerSnapshotFetcher,
    InMemorySnapshotStore,
    SourceServerSnapshotFetcher,
    SqlSnapshotStore,
    StoreServerSnapshotFetcher,
    demo_sources,
)

logger = logging.getLogger(__name__)


# =========================================================================
# Composition
# =========================================================================


def build_snapshot_store(settings: Settings) -> SnapshotStore:
    """Create the configured snapshot store.

    The database backend requires init_database() to have run.
    """
    if settings.sync.store_backend == "database":
        return SqlSnapshotStore(get_sessionmaker())
    return InMemorySnapshotStore()


def build_server_fetcher(
    settings: Settings,
    store: SnapshotStore,
) -> ServerSnapshotFetcher:
    """Create the configured server snapshot fetcher.

    A remote learner-data service is used when ``SYNC_SERVER_BASE_URL`` is
    set. Otherwise the server view is the last applied sync, or the
    server-side sources for learners who never synced.
    """
    if settings.sync.server_base_url:
        return HttpServerSnapshotFetcher(
            settings.sync.server_base_url,
            timeout=settings.sync.server_timeout,
            headers=settings.sync.auth_headers,
        )
    return StoreServerSnapshotFetcher(
        store,
        fallback=SourceServerSnapshotFetcher(
            demo_sources(),
            protocol_version=settings.sync.protocol_version,
        ),
    )


def build_lock_manager(settings: Settings) -> UserLock:
    """Create the configured per-user lock manager.

    The Redis backend requires init_redis() to have run.
    """
    if settings.sync.lock_backend == "redis":
        return RedisUserLockManager(
            get_redis(),
            timeout=settings.sync.lock_timeout_seconds,
            blocking_timeout=settings.sync.lock_blocking_timeout_seconds,
        )
    return UserLockManager()


def build_sync_service(
    settings: Settings,
    *,
    store: SnapshotStore | None = None,
    fetcher: ServerSnapshotFetcher | None = None,
    locks: UserLock | None = None,
    event_bus: EventBus | None = None,
) -> SyncService:
    """Wire a SyncService from settings.

    Args:
        settings: Application settings.
        store: Snapshot store, built from settings when omitted.
        fetcher: Server snapshot fetcher, built from settings when omitted.
        locks: Lock manager, built from settings when omitted.
        event_bus: Bus activities are published on.

    Returns:
        Ready to use SyncService.
    """
    store = store or build_snapshot_store(settings)
    fetcher = fetcher or build_server_fetcher(settings, store)
    locks = locks or build_lock_manager(settings)

    logger.info(
        "Sync service wired: store=%s fetcher=%s locks=%s",
        type(store).__name__,
        type(fetcher).__name__,
        type(locks).__name__,
    )

    return SyncService(
        builder=LocalSnapshotBuilder(
            demo_sources(),
            store,
            protocol_version=settings.sync.protocol_version,
        ),
        fetcher=fetcher,
        store=store,
        tracker=ActivityTracker(event_bus or get_event_bus()),
        locks=locks,
        protocol_version=settings.sync.protocol_version,
        timeout_seconds=settings.sync.timeout_seconds,
    )


# =========================================================================
# Authentication Dependencies
# =========================================================================


def require_auth(request: Request) -> AuthenticatedUser:
    """Require authenticated user.

    Args:
        request: HTTP request.

    Returns:
        AuthenticatedUser.

    Raises:
        HTTPException: If not authenticated.
    """
    user = get_current_user(request)
    if not user:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return user


# =========================================================================
# Service Dependencies
# =========================================================================


def get_sync_service(request: Request) -> SyncService:
    """Get the application's SyncService.

    Raises:
        HTTPException: If the service was not initialized at startup.
    """
    service: SyncService | None = getattr(request.app.state, "sync_service", None)
    if service is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Sync service not initialized",
        )
    return service
