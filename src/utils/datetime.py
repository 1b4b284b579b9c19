# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""DateTime utilities for EduBridge Sync.

All snapshot timestamps are timezone-aware UTC. Offline clients send
timestamps as ISO 8601 strings with millisecond precision and a trailing
``Z``, the format produced by JavaScript's ``Date.toISOString``. Checksums
are computed over that same form.

Usage:
------
    from src.utils.datetime import utc_now

    # For current time
    now = utc_now()

    # For Pydantic model defaults
    timestamp: datetime = Field(default_factory=utc_now)
"""

from datetime import datetime, timezone


def utc_now() -> datetime:
    """Get current UTC time as timezone-aware datetime.

    Returns:
        Timezone-aware datetime representing current UTC time.

    Example:
        >>> now = utc_now()
        >>> now.tzinfo
        datetime.timezone.utc
    """
    return datetime.now(timezone.utc)


def ensure_utc(dt: datetime | None) -> datetime | None:
    """Ensure a datetime is timezone-aware UTC.

    Args:
        dt: A datetime object (naive or aware) or None.

    Returns:
        Timezone-aware UTC datetime or None.

    Note:
        - If dt is None, returns None
        - If dt is naive, assumes UTC and adds tzinfo
        - If dt is aware, converts to UTC
    """
    if dt is None:
        return None

    if dt.tzinfo is None:
        # Naive datetime - assume UTC
        return dt.replace(tzinfo=timezone.utc)

    return dt.astimezone(timezone.utc)


def format_iso(dt: datetime | None) -> str | None:
    """Format a datetime as ISO 8601 string.

    Args:
        dt: Datetime to format.

    Returns:
        ISO 8601 formatted string or None.
    """
    if dt is None:
        return None

    dt_utc = ensure_utc(dt)
    return dt_utc.isoformat()


def format_iso_millis(dt: datetime) -> str:
    """Format a datetime the way JavaScript's ``toISOString`` does.

    Args:
        dt: Datetime to format (naive values are treated as UTC).

    Returns:
        String like ``2025-01-20T10:30:00.000Z``.

    Example:
        >>> format_iso_millis(datetime(2025, 1, 20, 10, 30, tzinfo=timezone.utc))
        '2025-01-20T10:30:00.000Z'
    """
    dt_utc = ensure_utc(dt)
    return f"{dt_utc.strftime('%Y-%m-%dT%H:%M:%S')}.{dt_utc.microsecond // 1000:03d}Z"
