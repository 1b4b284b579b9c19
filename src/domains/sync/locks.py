# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Per-user mutual exclusion for sync runs.

Two concurrent syncs for the same learner would both fetch the same server
snapshot and the last one to apply would silently overwrite the other. The
orchestrator therefore holds a per-user lock around fetch, resolve and
apply.

- UserLockManager: asyncio locks, enough for a single API process.
- RedisUserLockManager: Redis locks shared by every API worker.

Example:
    >>> locks = UserLockManager()
    >>> async with locks.hold("user-123"):
    ...     ...
"""

import asyncio
import logging
from collections.abc import AsyncIterator
from contextlib import AbstractAsyncContextManager, asynccontextmanager
from typing import TYPE_CHECKING, Protocol

from redis.exceptions import LockError, RedisError as BaseRedisError

from src.domains.sync.exceptions import SyncLockError

if TYPE_CHECKING:
    from src.infrastructure.cache.redis_client import RedisClient

logger = logging.getLogger(__name__)


class UserLock(Protocol):
    """Lock keyed by user id."""

    def hold(self, user_id: str) -> AbstractAsyncContextManager[None]: ...


class UserLockManager:
    """In-process per-user locks.

    Locks are created on demand and dropped once no task holds or waits
    for them, so the registry does not grow with the number of users.

    Attributes:
        _locks: Active locks by user id.
        _users: Number of tasks holding or waiting for each lock.
    """

    def __init__(self) -> None:
        """Initialize the lock registry."""
        self._locks: dict[str, asyncio.Lock] = {}
        self._users: dict[str, int] = {}

    @asynccontextmanager
    async def hold(self, user_id: str) -> AsyncIterator[None]:
        """Hold the lock of a user for the duration of the block.

        Args:
            user_id: User whose syncs must not overlap.
        """
        lock = self._locks.setdefault(user_id, asyncio.Lock())
        self._users[user_id] = self._users.get(user_id, 0) + 1
        try:
            async with lock:
                yield
        finally:
            self._users[user_id] -= 1
            if self._users[user_id] == 0:
                del self._users[user_id]
                del self._locks[user_id]

    @property
    def active_users(self) -> int:
        """Number of users with a held or awaited lock."""
        return len(self._locks)


class RedisUserLockManager:
    """Per-user locks stored in Redis.

    Attributes:
        _redis: Connected Redis client.
        _timeout: Lock auto-expiry in seconds, guards against crashed holders.
        _blocking_timeout: Seconds to wait for a busy lock.
    """

    KEY_PREFIX = "sync:lock"

    def __init__(
        self,
        redis: "RedisClient",
        timeout: float = 60.0,
        blocking_timeout: float = 10.0,
    ) -> None:
        """Initialize the Redis lock manager.

        Args:
            redis: Connected Redis client.
            timeout: Lock auto-expiry in seconds.
            blocking_timeout: Seconds to wait for a busy lock.
        """
        self._redis = redis
        self._timeout = timeout
        self._blocking_timeout = blocking_timeout

    @asynccontextmanager
    async def hold(self, user_id: str) -> AsyncIterator[None]:
        """Hold the Redis lock of a user for the duration of the block.

        Args:
            user_id: User whose syncs must not overlap.

        Raises:
            SyncLockError: If the lock cannot be acquired in time.
        """
        lock = self._redis.lock(
            f"{self.KEY_PREFIX}:{user_id}",
            timeout=self._timeout,
            blocking_timeout=self._blocking_timeout,
        )
        try:
            acquired = await lock.acquire()
        except BaseRedisError as e:
            raise SyncLockError(f"Failed to acquire sync lock: {e}") from e
        if not acquired:
            raise SyncLockError("Another sync for this user is still running")

        try:
            yield
        finally:
            try:
                await lock.release()
            except LockError as e:
                # Expired while held; the next holder already owns the key.
                logger.warning("Sync lock for user %s was lost: %s", user_id, str(e))
