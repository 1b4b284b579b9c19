# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Infrastructure layer for external service integrations.

This package contains clients and adapters for:
- Database connections (PostgreSQL)
- Cache and distributed locks (Redis)
- In-process events
- Sync collaborators (collection sources, snapshot fetchers and stores)
"""
