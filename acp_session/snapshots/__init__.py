"""Working-tree snapshots.

Public Interface:
    - find_latest_snapshot: Most recent tree snapshot in a log
    - find_last_device: Most recent device recorded in a log
    - SnapshotApplier: Restore a snapshot into a local repository
    - TreeTracker: Last applied tree hash of a repository
"""

from .applier import SnapshotApplier
from .applier import TreeTracker
from .locator import find_last_device
from .locator import find_latest_snapshot

__all__ = [
    "SnapshotApplier",
    "TreeTracker",
    "find_last_device",
    "find_latest_snapshot",
]
