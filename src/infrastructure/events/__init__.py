# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Event infrastructure module for EduBridge Sync.

An in-memory event bus decouples the audit trail of sync runs from its
consumers (analytics, notifications) which subscribe by event type or
wildcard pattern.

Quick Start:
    from src.infrastructure.events import get_event_bus, EventTypes

    event_bus = get_event_bus()
    event_bus.subscribe(EventTypes.Sync.COMPLETED, my_handler)
"""

from src.infrastructure.events.bus import (
    EventBus,
    EventData,
    EventHandler,
    get_event_bus,
    reset_event_bus,
)
from src.infrastructure.events.types import (
    EventPatterns,
    EventRegistry,
    EventTypes,
)

__all__ = [
    # Event Bus
    "EventBus",
    "EventData",
    "EventHandler",
    "get_event_bus",
    "reset_event_bus",
    # Event Types
    "EventTypes",
    "EventPatterns",
    "EventRegistry",
]
