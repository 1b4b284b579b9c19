# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Unit tests for conflict resolution."""

from datetime import datetime, timezone
from unittest.mock import MagicMock

from src.domains.sync import (
    ConflictDetector,
    ConflictResolution,
    ConflictResolver,
    SyncConflict,
)

LATER = datetime(2025, 1, 21, 8, 0, tzinfo=timezone.utc)


def conflict(resolution: ConflictResolution, field: str = "data") -> SyncConflict:
    return SyncConflict(field=field, local_value="a", server_value="b", resolution=resolution)


class TestConflictResolver:
    """Tests for ConflictResolver.resolve."""

    def test_no_conflicts_returns_server_copy(self, make_snapshot) -> None:
        """Test that without conflicts the server snapshot is the result."""
        local = make_snapshot(lessons=[{"id": "L1"}])
        server = make_snapshot(lessons=[{"id": "L2"}])

        resolved = ConflictResolver().resolve(local, server, [])

        assert resolved == server
        assert resolved is not server

    def test_server_resolution(self, make_snapshot) -> None:
        """Test that a server resolution yields the server snapshot."""
        local = make_snapshot(lessons=[{"id": "L1"}])
        server = make_snapshot(timestamp=LATER, lessons=[{"id": "L2"}])

        resolved = ConflictResolver().resolve(
            local, server, [conflict(ConflictResolution.SERVER, "timestamp")]
        )

        assert resolved == server

    def test_local_resolution(self, make_snapshot) -> None:
        """Test that a local resolution yields the local snapshot."""
        local = make_snapshot(lessons=[{"id": "L1"}])
        server = make_snapshot(lessons=[{"id": "L2"}])

        resolved = ConflictResolver().resolve(local, server, [conflict(ConflictResolution.LOCAL)])

        assert resolved == local

    def test_merge_resolution_uses_strategy(self, make_snapshot) -> None:
        """Test that a merge resolution delegates to the merge strategy."""
        local = make_snapshot(lessons=[{"id": "L1"}])
        server = make_snapshot(lessons=[{"id": "L2"}])
        merged = make_snapshot(lessons=[{"id": "merged"}])
        strategy = MagicMock(return_value=merged)

        resolved = ConflictResolver(merge=strategy).resolve(
            local, server, [conflict(ConflictResolution.MERGE)]
        )

        strategy.assert_called_once_with(local, server)
        assert resolved is merged

    def test_last_conflict_wins(self, make_snapshot) -> None:
        """Test that each conflict replaces the whole working result."""
        local = make_snapshot(lessons=[{"id": "L1"}])
        server = make_snapshot(lessons=[{"id": "L2"}])

        resolved = ConflictResolver().resolve(
            local,
            server,
            [conflict(ConflictResolution.LOCAL), conflict(ConflictResolution.SERVER)],
        )

        assert resolved == server

    def test_detected_conflicts_end_in_merge(self, make_snapshot) -> None:
        """Test that timestamp plus data conflicts produce the merged data."""
        local = make_snapshot(
            lessons=[{"id": "L1", "progress": 0.8}],
            progress=[{"lessonId": "L1", "score": 85}],
        )
        server = make_snapshot(
            timestamp=LATER,
            lessons=[{"id": "L1", "progress": 0.3}, {"id": "L2", "progress": 0.0}],
        )
        conflicts = ConflictDetector().detect(local, server)

        resolved = ConflictResolver().resolve(local, server, conflicts)

        assert [c.field for c in conflicts] == ["timestamp", "data"]
        assert resolved.data.lessons == [
            {"id": "L1", "progress": 0.8},
            {"id": "L2", "progress": 0.0},
        ]
        assert resolved.data.progress == [{"lessonId": "L1", "score": 85}]
        assert resolved.timestamp not in (local.timestamp, server.timestamp)

    def test_timestamp_only_conflict_discards_local_data(self, make_snapshot) -> None:
        """Test that same-data snapshots resolve to the server copy."""
        local = make_snapshot(lessons=[{"id": "L1"}])
        server = make_snapshot(timestamp=LATER, lessons=[{"id": "L1"}])
        conflicts = ConflictDetector().detect(local, server)

        resolved = ConflictResolver().resolve(local, server, conflicts)

        assert resolved.timestamp == LATER
        assert resolved.checksum == server.checksum
