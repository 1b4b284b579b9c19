# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""In-memory collection sources.

These back the snapshot builder and the server-side fetcher until the
lesson catalog, progress store, preference store and activity log are
served by their own services. ``demo_sources()`` seeds them with the demo
learner data used in development and tests.

Example:
    >>> sources = demo_sources()
    >>> await sources.lessons.fetch_for_user("user-123")
    [{'id': 'lesson-1', ...}, {'id': 'lesson-2', ...}]
"""

import copy
import logging
from typing import TYPE_CHECKING, Any

from src.domains.sync.snapshot_builder import SnapshotSources

if TYPE_CHECKING:
    from src.domains.auth.jwt import AuthenticatedUser

logger = logging.getLogger(__name__)

# Timestamps are kept in their wire form so entries round-trip through JSON
# unchanged and keep their checksum.
_DEMO_COMPLETED_AT = "2025-01-20T10:30:00.000Z"

DEMO_LESSONS: list[dict[str, Any]] = [
    {
        "id": "lesson-1",
        "title": "Matemáticas Básicas",
        "subject": "mathematics",
        "gradeLevel": 3,
        "difficulty": 2,
        "completed": False,
        "progress": 0.6,
    },
    {
        "id": "lesson-2",
        "title": "Literatura Maya",
        "subject": "literature",
        "gradeLevel": 4,
        "difficulty": 3,
        "completed": True,
        "progress": 1.0,
    },
]

# Progress entries have no id of their own, they are matched by content.
DEMO_PROGRESS: list[dict[str, Any]] = [
    {
        "lessonId": "lesson-1",
        "score": 85,
        "accuracy": 0.87,
        "timeSpent": 1800,
        "completedAt": _DEMO_COMPLETED_AT,
        "errors": ["calculation_error", "timeout"],
    },
]

DEMO_PREFERENCES: list[dict[str, Any]] = [
    {
        "type": "accessibility",
        "key": "high_contrast",
        "value": True,
        "updatedAt": _DEMO_COMPLETED_AT,
    },
    {
        "type": "learning",
        "key": "preferred_language",
        "value": "es-MX",
        "updatedAt": _DEMO_COMPLETED_AT,
    },
]

DEMO_ACTIVITIES: list[dict[str, Any]] = [
    {
        "id": "activity-1",
        "type": "lesson_completed",
        "timestamp": _DEMO_COMPLETED_AT,
        "metadata": {"lessonId": "lesson-1", "score": 85},
    },
]

DEMO_OFFLINE_TEMPLATES: list[dict[str, Any]] = [
    {
        "id": "content-1",
        "type": "lesson",
        "title": "Matemáticas Básicas",
        "content": "Contenido de la lección...",
    },
    {
        "id": "content-2",
        "type": "exercise",
        "title": "Ejercicios de Práctica",
        "content": "Ejercicios interactivos...",
    },
]


class InMemoryCollectionSource:
    """A collection held in memory.

    Users without their own entries get the default entries. Every call
    returns a deep copy, so callers can never mutate the stored data.

    Attributes:
        name: Collection name, used in logs.
        _default: Entries returned for users without their own.
        _by_user: Entries per user id.
    """

    def __init__(self, name: str, default: list[Any] | None = None) -> None:
        """Initialize the source.

        Args:
            name: Collection name.
            default: Entries returned for users without their own.
        """
        self.name = name
        self._default = list(default or [])
        self._by_user: dict[str, list[Any]] = {}

    def set_for_user(self, user_id: str, entries: list[Any]) -> None:
        """Replace the entries of one user."""
        self._by_user[user_id] = list(entries)

    async def fetch_for_user(self, user_id: str) -> list[Any]:
        """Get the entries of a user.

        Args:
            user_id: Learner identifier.

        Returns:
            A copy of the user's entries.
        """
        entries = self._by_user.get(user_id, self._default)
        logger.debug("Fetched %d %s for user %s", len(entries), self.name, user_id)
        return copy.deepcopy(entries)


class TemplateOfflineContentPackager:
    """Personalizes offline content templates for a learner.

    Each template is stamped with the learner's language, cultural context
    and accessibility preferences.
    """

    def __init__(self, templates: list[dict[str, Any]] | None = None) -> None:
        self._templates = list(templates if templates is not None else DEMO_OFFLINE_TEMPLATES)

    async def package_for_user(self, user: "AuthenticatedUser") -> list[dict[str, Any]]:
        """Package offline content for a learner.

        Args:
            user: Authenticated learner.

        Returns:
            Personalized content entries.
        """
        return [
            {
                **copy.deepcopy(template),
                "language": user.language,
                "culturalContext": user.cultural_background,
                "accessibility": list(user.accessibility_preferences),
            }
            for template in self._templates
        ]


def demo_sources() -> SnapshotSources:
    """Build collection sources seeded with the demo learner data."""
    return SnapshotSources(
        lessons=InMemoryCollectionSource("lessons", DEMO_LESSONS),
        progress=InMemoryCollectionSource("progress", DEMO_PROGRESS),
        preferences=InMemoryCollectionSource("preferences", DEMO_PREFERENCES),
        activities=InMemoryCollectionSource("activities", DEMO_ACTIVITIES),
        offline_content=TemplateOfflineContentPackager(),
    )
