# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Unversioned API routes.

Health and readiness probes live outside ``/api/v1`` so load balancers
and orchestrators can reach them without authentication.
"""

from src.api.routes import health

__all__ = ["health"]
