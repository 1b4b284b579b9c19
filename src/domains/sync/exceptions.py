# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Sync domain exceptions.

Every fatal sync error carries the stage it failed in and a failure
SyncReport, so the API layer can answer with a structured body.
"""

from src.domains.sync.models import SyncConflict, SyncReport


class SyncError(Exception):
    """Base exception for a failed synchronization.

    Attributes:
        message: Human-readable error description.
        stage: Sync stage that failed (e.g., "fetch_server", "apply").
        retryable: Whether retrying the same request may succeed.
        report: Failure report (success=False).
    """

    stage = "sync"
    retryable = True

    def __init__(
        self,
        message: str,
        conflicts: list[SyncConflict] | None = None,
        stage: str | None = None,
    ) -> None:
        """Initialize the sync error.

        Args:
            message: Human-readable error description.
            conflicts: Conflicts detected before the failure, if any.
            stage: Override for the failing stage.
        """
        super().__init__(message)
        self.message = message
        if stage is not None:
            self.stage = stage
        self.report = SyncReport(
            success=False,
            conflicts=conflicts or [],
            synced_data=None,
            message=message,
        )


class SyncValidationError(SyncError):
    """Raised when a local snapshot does not belong to the requesting user."""

    stage = "validate"
    retryable = False


class SnapshotFetchError(SyncError):
    """Raised when the server snapshot cannot be retrieved."""

    stage = "fetch_server"


class SnapshotPersistError(SyncError):
    """Raised when the resolved snapshot cannot be applied."""

    stage = "apply"


class SyncLockError(SyncError):
    """Raised when another sync for the same user holds the lock too long."""

    stage = "lock"


class SyncTimeoutError(SyncError):
    """Raised when a whole sync call exceeds its time budget."""

    stage = "timeout"
