# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""FastAPI Application Factory.

This module provides the main application factory for the EduBridge Sync API.
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from src import __version__
from src.api.dependencies import (
    build_lock_manager,
    build_server_fetcher,
    build_snapshot_store,
    build_sync_service,
)
from src.api.middleware.auth import AuthMiddleware
from src.api.routes import health
from src.api.v1 import router as v1_router
from src.core.config import get_settings
from src.infrastructure.cache import close_redis, init_redis
from src.infrastructure.database import close_database, init_database
from src.infrastructure.events import get_event_bus
from src.utils.logging import setup_logging

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan manager.

    Initializes the infrastructure the configured sync backends need, wires
    the SyncService onto ``app.state`` and cleans everything up on shutdown.

    Args:
        app: The FastAPI application instance.

    Yields:
        None during application runtime.
    """
    settings = get_settings()
    setup_logging(settings)
    logger.info(
        "Starting EduBridge Sync API (environment=%s, debug=%s)",
        settings.environment,
        settings.debug,
    )

    # =========================================================================
    # Startup
    # =========================================================================

    if settings.sync.store_backend == "database":
        try:
            await init_database(settings)
            logger.info("Database connection initialized")
        except Exception as e:
            logger.error("Failed to initialize database connection: %s", str(e))
            raise

    if settings.sync.lock_backend == "redis":
        try:
            await init_redis(settings)
            logger.info("Redis connection initialized")
        except Exception as e:
            logger.error("Failed to initialize Redis: %s", str(e))
            raise

    if getattr(app.state, "sync_service", None) is None:
        store = build_snapshot_store(settings)
        fetcher = build_server_fetcher(settings, store)
        app.state.sync_fetcher = fetcher
        app.state.sync_service = build_sync_service(
            settings,
            store=store,
            fetcher=fetcher,
            locks=build_lock_manager(settings),
            event_bus=get_event_bus(),
        )

    yield

    # =========================================================================
    # Shutdown
    # =========================================================================

    fetcher = getattr(app.state, "sync_fetcher", None)
    if fetcher is not None and hasattr(fetcher, "close"):
        try:
            await fetcher.close()
        except Exception as e:
            logger.warning("Error closing snapshot fetcher: %s", str(e))

    try:
        await close_redis()
        logger.info("Redis connection closed")
    except Exception as e:
        logger.warning("Error closing Redis: %s", str(e))

    try:
        await close_database()
        logger.info("Database connection closed")
    except Exception as e:
        logger.warning("Error closing database connection: %s", str(e))

    logger.info("Shutting down EduBridge Sync API")


def create_app() -> FastAPI:
    """Create and configure the FastAPI application.

    Returns:
        Configured FastAPI application instance.
    """
    settings = get_settings()

    app = FastAPI(
        title="EduBridge Sync API",
        description="Offline/online learner data synchronization",
        version=__version__,
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
        openapi_url="/openapi.json" if settings.debug else None,
        lifespan=lifespan,
        # Disable automatic redirects from /path to /path/
        # This prevents 307 redirects that lose Authorization headers
        redirect_slashes=False,
    )

    # =========================================================================
    # Middleware (order matters - last added is first executed)
    # =========================================================================

    # Auth middleware - validates JWT tokens
    app.add_middleware(AuthMiddleware)

    # CORS middleware (added last so it executes first)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors.origins_list,
        allow_credentials=settings.cors.allow_credentials,
        allow_methods=settings.cors.allow_methods,
        allow_headers=settings.cors.allow_headers,
    )

    # =========================================================================
    # Routes
    # =========================================================================
    app.include_router(health.router, tags=["Health"])
    app.include_router(v1_router)

    return app
