# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Learner activity domain.

Exports:
    UserActivity: A tracked learner action.
    ActivityTracker: Logs activities and publishes them as events.
"""

from src.domains.activity.tracker import ActivityTracker, UserActivity

__all__ = [
    "ActivityTracker",
    "UserActivity",
]
