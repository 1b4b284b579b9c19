# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Centralized event type definitions for EduBridge Sync.

Using constants instead of string literals keeps event names in one place
and lets pattern subscribers (``"sync.*"``) pick up new events without
changes on the publishing side.
"""


class EventTypes:
    """All event types organized by domain."""

    class User:
        """Learner activity events."""

        ACTIVITY_TRACKED = "user.activity.tracked"

    class Sync:
        """Synchronization events."""

        COMPLETED = "sync.completed"
        FAILED = "sync.failed"


class EventPatterns:
    """Wildcard patterns for subscribing to multiple events."""

    ALL_USER = "user.*"
    ALL_SYNC = "sync.*"

    # Global wildcard
    ALL = "*"


class EventRegistry:
    """Maps tracked activity actions to the domain events they imply."""

    _action_map: dict[str, str] = {
        "sync_completed": EventTypes.Sync.COMPLETED,
        "sync_error": EventTypes.Sync.FAILED,
    }

    @classmethod
    def event_for_action(cls, action: str) -> str | None:
        """Get the domain event published for an activity action.

        Args:
            action: Activity action (e.g., "sync_completed").

        Returns:
            Event type string or None if the action has no domain event.
        """
        return cls._action_map.get(action)
