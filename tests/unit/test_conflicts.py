# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Unit tests for conflict detection."""

from datetime import datetime, timezone

from src.domains.sync import ConflictDetector, ConflictResolution

LATER = datetime(2025, 1, 21, 8, 0, tzinfo=timezone.utc)


class TestConflictDetector:
    """Tests for ConflictDetector.detect."""

    def test_identical_snapshots_have_no_conflicts(self, make_snapshot) -> None:
        """Test that equal timestamps and checksums produce no conflicts."""
        local = make_snapshot(lessons=[{"id": "lesson-1"}])
        server = make_snapshot(lessons=[{"id": "lesson-1"}])

        assert ConflictDetector().detect(local, server) == []

    def test_timestamp_difference_resolves_to_server(self, make_snapshot) -> None:
        """Test that a timestamp mismatch is a server-resolved conflict."""
        local = make_snapshot()
        server = make_snapshot(timestamp=LATER)

        conflicts = ConflictDetector().detect(local, server)

        assert len(conflicts) == 1
        assert conflicts[0].field == "timestamp"
        assert conflicts[0].local_value == local.timestamp
        assert conflicts[0].server_value == LATER
        assert conflicts[0].resolution is ConflictResolution.SERVER

    def test_checksum_difference_resolves_to_merge(self, make_snapshot) -> None:
        """Test that a data mismatch is a merge-resolved conflict."""
        local = make_snapshot(lessons=[{"id": "lesson-1"}])
        server = make_snapshot(lessons=[{"id": "lesson-2"}])

        conflicts = ConflictDetector().detect(local, server)

        assert len(conflicts) == 1
        assert conflicts[0].field == "data"
        assert conflicts[0].local_value == local.checksum
        assert conflicts[0].server_value == server.checksum
        assert conflicts[0].resolution is ConflictResolution.MERGE

    def test_both_conflicts_in_fixed_order(self, make_snapshot) -> None:
        """Test that the timestamp conflict always precedes the data conflict."""
        local = make_snapshot(lessons=[{"id": "lesson-1"}])
        server = make_snapshot(timestamp=LATER, lessons=[{"id": "lesson-2"}])

        conflicts = ConflictDetector().detect(local, server)

        assert [c.field for c in conflicts] == ["timestamp", "data"]

    def test_data_compared_through_checksum_only(self, make_snapshot) -> None:
        """Test that differing data with equal claimed checksums is not a conflict."""
        local = make_snapshot(lessons=[{"id": "lesson-1"}], checksum="abc")
        server = make_snapshot(lessons=[{"id": "lesson-2"}], checksum="abc")

        assert ConflictDetector().detect(local, server) == []

    def test_error_checksums_on_both_sides_do_not_conflict(self, make_snapshot) -> None:
        """Test that two 'error' sentinels compare equal like any string."""
        local = make_snapshot(checksum="error")
        server = make_snapshot(checksum="error")

        assert ConflictDetector().detect(local, server) == []

    def test_equal_instants_in_other_zones_do_not_conflict(self, make_snapshot) -> None:
        """Test that timestamps are compared as instants."""
        local = make_snapshot(timestamp=datetime(2025, 1, 20, 10, 30, tzinfo=timezone.utc))
        server = make_snapshot(timestamp=datetime(2025, 1, 20, 10, 30))

        assert ConflictDetector().detect(local, server) == []
