# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Domain services layer for EduBridge Sync.

Domains:
    sync: Snapshot building, conflict detection, resolution and merging.
    activity: Learner activity tracking.
    auth: JWT authentication.
"""
