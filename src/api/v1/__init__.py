# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""API v1 routes package.

Modules:
    sync: Learner data synchronization endpoints.
"""

from fastapi import APIRouter

from src.api.v1 import sync

# Create the main v1 router
router = APIRouter(prefix="/api/v1")

# Include domain routers
router.include_router(sync.router, prefix="/sync", tags=["Sync"])

__all__ = ["router"]
