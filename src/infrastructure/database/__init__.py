# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Database infrastructure using SQLAlchemy async.

Example:
    from src.infrastructure.database import init_database, get_session

    await init_database(settings)

    async with get_session() as session:
        ...

    await close_database()
"""

from src.infrastructure.database.connection import (
    DatabaseError,
    check_database_connection,
    close_database,
    get_engine,
    get_session,
    get_sessionmaker,
    init_database,
)
from src.infrastructure.database.models import Base, SyncSnapshotRecord

__all__ = [
    # Connection
    "DatabaseError",
    "check_database_connection",
    "close_database",
    "get_engine",
    "get_session",
    "get_sessionmaker",
    "init_database",
    # Models
    "Base",
    "SyncSnapshotRecord",
]
