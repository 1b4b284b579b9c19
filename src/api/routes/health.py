# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Health check endpoints.

This module provides health and readiness endpoints for the API. Database
and Redis are only checked when the sync backends configured in settings
use them.
"""

import logging
import time
from datetime import datetime
from typing import Any

from fastapi import APIRouter
from pydantic import BaseModel, Field

from src import __version__
from src.core.config import get_settings
from src.infrastructure.cache import RedisError, get_redis
from src.infrastructure.database import check_database_connection
from src.utils.datetime import utc_now

logger = logging.getLogger(__name__)

router = APIRouter()

# Track server start time for uptime calculation
_server_start_time = time.time()


class ComponentHealth(BaseModel):
    """Individual component health status."""
    status: str = Field(description="Component status")
    latency_ms: float | None = Field(None, description="Response latency in ms")
    message: str | None = Field(None, description="Additional status message")


class ComponentsHealth(BaseModel):
    """All components health status."""
    database: ComponentHealth | None = None
    redis: ComponentHealth | None = None


class HealthResponse(BaseModel):
    """Health check response model."""
    status: str = Field(description="Overall health status")
    timestamp: datetime = Field(description="Current server timestamp")
    version: str = Field(description="API version")
    environment: str = Field(description="Deployment environment")
    uptime_seconds: int = Field(description="Server uptime in seconds")
    components: ComponentsHealth = Field(default_factory=ComponentsHealth)


class ReadinessResponse(BaseModel):
    """Readiness check response model."""
    ready: bool = Field(description="Whether the service is ready")
    checks: dict[str, Any] = Field(description="Individual check results")


async def check_database() -> ComponentHealth:
    """Check PostgreSQL database connection."""
    start = time.time()
    if not await check_database_connection():
        logger.error("Database health check failed")
        return ComponentHealth(status="unhealthy", message="Database unreachable")

    latency = (time.time() - start) * 1000
    return ComponentHealth(status="healthy", latency_ms=round(latency, 2))


async def check_redis() -> ComponentHealth:
    """Check Redis connection."""
    try:
        client = get_redis()
    except RedisError as e:
        logger.error("Redis health check failed: %s", str(e))
        return ComponentHealth(status="unhealthy", message=str(e))

    start = time.time()
    if not await client.ping():
        logger.error("Redis health check failed: no ping response")
        return ComponentHealth(status="unhealthy", message="Redis unreachable")

    latency = (time.time() - start) * 1000
    return ComponentHealth(status="healthy", latency_ms=round(latency, 2))


async def _check_components() -> ComponentsHealth:
    """Check the components the configured sync backends depend on."""
    settings = get_settings()
    components = ComponentsHealth()

    if settings.sync.store_backend == "database":
        components.database = await check_database()
    if settings.sync.lock_backend == "redis":
        components.redis = await check_redis()

    return components


@router.get("/health", response_model=HealthResponse)
async def health_check() -> HealthResponse:
    """Check if the API is healthy with component details.

    Returns:
        HealthResponse with detailed status.
    """
    settings = get_settings()
    components = await _check_components()

    statuses = [c.status for c in (components.database, components.redis) if c is not None]
    overall_status = "healthy" if all(s == "healthy" for s in statuses) else "unhealthy"

    return HealthResponse(
        status=overall_status,
        timestamp=utc_now(),
        version=__version__,
        environment=settings.environment,
        uptime_seconds=int(time.time() - _server_start_time),
        components=components,
    )


@router.get("/health/ready", response_model=ReadinessResponse)
async def readiness_check() -> ReadinessResponse:
    """Check if the API is ready to accept traffic.

    Returns:
        ReadinessResponse with individual check results.
    """
    components = await _check_components()
    checks: dict[str, Any] = {}
    all_ready = True

    for name in ("database", "redis"):
        health: ComponentHealth | None = getattr(components, name)
        if health is None:
            continue
        checks[name] = {"status": health.status, "latency_ms": health.latency_ms}
        if health.status != "healthy":
            all_ready = False

    return ReadinessResponse(ready=all_ready, checks=checks)
