"""EduBridge Sync Backend.

Offline/online learner data synchronization service: prepares offline
snapshots of a learner's lessons, progress, preferences and activities, and
reconciles them with server state when the device comes back online.

Copyright (C) 2025 Global Digital Labs (gdlabs.io)
SPDX-License-Identifier: LGPL-3.0-or-later
"""

__version__ = "1.0.0"
