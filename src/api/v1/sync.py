# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Learner data synchronization endpoints.

- POST /sync: reconcile the snapshot cached on a device with the server
- GET /sync/offline-data: snapshot to download before going offline
- GET /sync/status: when the learner last synced and what is pending

Failed syncs answer ``{"success": false, "error": ..., "retryable": ...}``
with a status code that tells clients whether retrying can help.
"""

import logging

from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse

from src.api.dependencies import get_sync_service, require_auth
from src.domains.auth.jwt import AuthenticatedUser
from src.domains.sync import (
    SnapshotFetchError,
    SnapshotPersistError,
    SyncError,
    SyncLockError,
    SyncReport,
    SyncService,
    SyncSnapshot,
    SyncStatus,
    SyncTimeoutError,
    SyncValidationError,
)

logger = logging.getLogger(__name__)

router = APIRouter()

# Status code and client-facing message per failure. None keeps the
# exception's own message, which is safe to show for validation errors.
_FAILURES: list[tuple[type[SyncError], int, str | None]] = [
    (SyncValidationError, status.HTTP_400_BAD_REQUEST, None),
    (SnapshotFetchError, status.HTTP_502_BAD_GATEWAY, "Server data is temporarily unavailable"),
    (SnapshotPersistError, status.HTTP_500_INTERNAL_SERVER_ERROR, "Sync result could not be saved"),
    (SyncLockError, status.HTTP_409_CONFLICT, "Another sync for this account is in progress"),
    (SyncTimeoutError, status.HTTP_504_GATEWAY_TIMEOUT, "Sync took too long to complete"),
]


def sync_error_response(error: SyncError) -> JSONResponse:
    """Translate a failed sync into its HTTP response.

    Args:
        error: The sync failure.

    Returns:
        JSON failure body with the matching status code.
    """
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    message: str | None = "Sync failed"
    for error_type, code, public_message in _FAILURES:
        if isinstance(error, error_type):
            status_code, message = code, public_message
            break

    return JSONResponse(
        status_code=status_code,
        content={
            "success": False,
            "error": message or error.message,
            "retryable": error.retryable,
        },
    )


@router.post(
    "",
    response_model=SyncReport,
    summary="Synchronize learner data",
    description="Reconcile a device snapshot with the server and return the resolved snapshot.",
    responses={
        400: {"description": "Snapshot does not belong to the authenticated user"},
        409: {"description": "Another sync for the user is running"},
        502: {"description": "Server snapshot unavailable"},
        504: {"description": "Sync timed out"},
    },
)
async def sync_user_data(
    local: SyncSnapshot,
    current_user: AuthenticatedUser = Depends(require_auth),
    service: SyncService = Depends(get_sync_service),
) -> SyncReport | JSONResponse:
    """Synchronize the learner's local snapshot.

    Args:
        local: Snapshot cached on the device.
        current_user: Authenticated learner.
        service: Sync service.

    Returns:
        Sync report, or a failure body.
    """
    try:
        return await service.sync(current_user, local)
    except SyncError as e:
        return sync_error_response(e)


@router.get(
    "/offline-data",
    response_model=SyncSnapshot,
    summary="Prepare offline data",
    description="Build the snapshot a device stores before going offline.",
)
async def get_offline_data(
    current_user: AuthenticatedUser = Depends(require_auth),
    service: SyncService = Depends(get_sync_service),
) -> SyncSnapshot:
    """Build the learner's offline snapshot.

    Args:
        current_user: Authenticated learner.
        service: Sync service.

    Returns:
        Fresh offline snapshot.
    """
    return await service.prepare_offline_data(current_user)


@router.get(
    "/status",
    response_model=SyncStatus,
    summary="Get sync status",
)
async def get_sync_status(
    current_user: AuthenticatedUser = Depends(require_auth),
    service: SyncService = Depends(get_sync_service),
) -> SyncStatus:
    """Get the learner's synchronization status.

    Args:
        current_user: Authenticated learner.
        service: Sync service.

    Returns:
        Sync status.
    """
    return await service.get_sync_status(current_user.id)
