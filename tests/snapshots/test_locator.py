"""
Unit tests for snapshot and device lookup.
"""

import pytest

from acp_session.snapshots.locator import find_last_device
from acp_session.snapshots.locator import find_latest_snapshot


@pytest.mark.unit
class TestFindLatestSnapshot:
    """Test backward scan for tree snapshots."""

    def test_returns_latest_even_without_archive(self, log_entry) -> None:
        """Test the most recent snapshot wins regardless of its archive."""
        entries = [
            log_entry("_acp/tree_snapshot", {"treeHash": "A"}),
            log_entry("_acp/tree_snapshot", {"treeHash": "B", "archiveUrl": "gs://b"}),
            log_entry("_acp/tree_snapshot", {"treeHash": "A", "interrupted": True}),
        ]

        snapshot = find_latest_snapshot(entries)

        assert snapshot.tree_hash == "A"
        assert snapshot.archive_url is None
        assert snapshot.interrupted is True

    def test_accepts_sdk_prefixed_method(self, log_entry) -> None:
        """Test the SDK-prefixed spelling is recognized."""
        entries = [log_entry("__acp/tree_snapshot", {"treeHash": "C", "archiveUrl": "gs://c"})]

        snapshot = find_latest_snapshot(entries)

        assert snapshot.tree_hash == "C"
        assert snapshot.restorable is True

    def test_skips_snapshots_without_tree_hash(self, log_entry) -> None:
        """Test entries with an empty tree hash are skipped."""
        entries = [
            log_entry("_acp/tree_snapshot", {"treeHash": "A"}),
            log_entry("_acp/tree_snapshot", {"treeHash": ""}),
            log_entry("_acp/tree_snapshot", {}),
        ]

        assert find_latest_snapshot(entries).tree_hash == "A"

    def test_malformed_changes_do_not_hide_latest(self, log_entry) -> None:
        """Test invalid change items are dropped and the newest snapshot still wins."""
        entries = [
            log_entry("_acp/tree_snapshot", {"treeHash": "A"}),
            log_entry(
                "_acp/tree_snapshot",
                {"treeHash": "B", "archiveUrl": "x", "changes": [{"status": "M"}, {"path": "ok.ts", "status": "A"}]},
            ),
        ]

        snapshot = find_latest_snapshot(entries)

        assert snapshot.tree_hash == "B"
        assert snapshot.archive_url == "x"
        assert [change.path for change in snapshot.changes] == ["ok.ts"]

    def test_malformed_optional_fields_are_dropped(self, log_entry) -> None:
        """Test wrongly typed optional fields become None instead of skipping the snapshot."""
        entries = [
            log_entry("_acp/tree_snapshot", {"treeHash": "A"}),
            log_entry(
                "_acp/tree_snapshot",
                {"treeHash": "B", "changes": "not-a-list", "baseCommit": 5, "interrupted": "yes", "device": []},
            ),
        ]

        snapshot = find_latest_snapshot(entries)

        assert snapshot.tree_hash == "B"
        assert snapshot.changes is None
        assert snapshot.base_commit is None
        assert snapshot.interrupted is None
        assert snapshot.device is None

    def test_non_string_tree_hash_is_skipped(self, log_entry) -> None:
        """Test a numeric tree hash does not count as a snapshot."""
        entries = [
            log_entry("_acp/tree_snapshot", {"treeHash": "A"}),
            log_entry("_acp/tree_snapshot", {"treeHash": 123}),
        ]

        assert find_latest_snapshot(entries).tree_hash == "A"

    def test_ignores_other_methods(self, log_entry) -> None:
        """Test unrelated methods carrying a treeHash are ignored."""
        entries = [log_entry("_acp/other", {"treeHash": "A"})]

        assert find_latest_snapshot(entries) is None


@pytest.mark.unit
class TestFindLastDevice:
    """Test backward scan for device information."""

    def test_returns_most_recent_device(self, log_entry) -> None:
        """Test the last entry carrying a device wins."""
        entries = [
            log_entry("_acp/tree_snapshot", {"treeHash": "A", "device": {"type": "local", "name": "laptop"}}),
            log_entry("_acp/status", {"device": {"type": "cloud"}}),
            log_entry("session/update", {"update": {}}),
        ]

        device = find_last_device(entries)

        assert device.type == "cloud"

    def test_no_device(self, log_entry) -> None:
        """Test None when no entry names a device."""
        assert find_last_device([log_entry("session/update", {"update": {}})]) is None
