# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Learner activity tracking.

Activities are the audit trail of what a learner did (completed a lesson,
synced their device). The tracker logs every activity and publishes it on
the event bus, where analytics and notification consumers subscribe.

Tracking is fire-and-forget: a failing publish is logged and never
propagates into the operation being audited.

Example:
    >>> tracker = ActivityTracker(get_event_bus())
    >>> await tracker.track(
    ...     UserActivity(user_id="user-123", action="sync_completed", page="/sync")
    ... )
"""

import logging
from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field

from src.infrastructure.events import EventBus, EventRegistry, EventTypes
from src.utils.datetime import format_iso, utc_now

logger = logging.getLogger(__name__)


class UserActivity(BaseModel):
    """A single tracked learner action.

    Attributes:
        user_id: Learner who performed the action.
        action: Action name (e.g., "sync_completed").
        page: Page or surface the action happened on.
        timestamp: When the action happened.
        metadata: Free-form action details.
    """

    user_id: str
    action: str
    page: str
    timestamp: datetime = Field(default_factory=utc_now)
    metadata: dict[str, Any] = Field(default_factory=dict)


class ActivityTracker:
    """Records learner activities on the log and the event bus.

    Attributes:
        _event_bus: Bus to publish activities on, None to only log them.
    """

    def __init__(self, event_bus: EventBus | None = None) -> None:
        """Initialize the tracker.

        Args:
            event_bus: Bus to publish activities on.
        """
        self._event_bus = event_bus

    async def track(self, activity: UserActivity) -> None:
        """Record an activity. Never raises.

        Publishes ``user.activity.tracked`` and, for actions that imply a
        domain event (e.g., ``sync_completed``), that event as well.

        Args:
            activity: The activity to record.
        """
        logger.info(
            "Activity %s by user %s on %s: %s",
            activity.action,
            activity.user_id,
            activity.page,
            activity.metadata,
        )

        if self._event_bus is None:
            return

        payload = {
            "action": activity.action,
            "page": activity.page,
            "timestamp": format_iso(activity.timestamp),
            "metadata": activity.metadata,
        }

        try:
            await self._event_bus.publish(
                EventTypes.User.ACTIVITY_TRACKED,
                payload,
                user_id=activity.user_id,
            )

            domain_event = EventRegistry.event_for_action(activity.action)
            if domain_event:
                await self._event_bus.publish(
                    domain_event,
                    activity.metadata,
                    user_id=activity.user_id,
                )
        except Exception as e:
            logger.error(
                "Failed to publish activity %s for user %s: %s",
                activity.action,
                activity.user_id,
                str(e),
            )
