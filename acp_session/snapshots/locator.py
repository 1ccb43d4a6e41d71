"""Lookups over persisted log entries for resume."""

import logging
from collections.abc import Sequence
from typing import Any

from pydantic import ValidationError

from ..models.logs import StoredLogEntry
from ..models.snapshots import DeviceInfo
from ..models.snapshots import FileChange
from ..models.snapshots import TreeSnapshotEvent
from ..protocol import methods

logger = logging.getLogger(__name__)

_OPTIONAL_TEXT_FIELDS = {"baseCommit": "base_commit", "archiveUrl": "archive_url", "timestamp": "timestamp"}


def find_latest_snapshot(entries: Sequence[StoredLogEntry]) -> TreeSnapshotEvent | None:
    """Return the most recent tree snapshot in the log, with or without an archive.

    Snapshots without a tree hash are skipped. Malformed optional fields and
    change items of the chosen snapshot are dropped rather than the snapshot.
    """
    for entry in reversed(entries):
        if not methods.is_extension_method(entry.method, methods.TREE_SNAPSHOT):
            continue
        params = entry.params
        tree_hash = params.get("treeHash") if params else None
        if isinstance(tree_hash, str) and tree_hash:
            return _build_snapshot(tree_hash, params)
    return None


def _build_snapshot(tree_hash: str, params: dict[str, Any]) -> TreeSnapshotEvent:
    fields: dict[str, Any] = {"tree_hash": tree_hash}
    for key, name in _OPTIONAL_TEXT_FIELDS.items():
        if isinstance(params.get(key), str):
            fields[name] = params[key]
    if isinstance(params.get("interrupted"), bool):
        fields["interrupted"] = params["interrupted"]

    changes = params.get("changes")
    if isinstance(changes, list):
        fields["changes"] = []
        for item in changes:
            try:
                fields["changes"].append(FileChange.model_validate(item))
            except ValidationError as e:
                logger.debug(f"Dropping invalid change in tree snapshot {tree_hash}: {e}")

    device = params.get("device")
    if isinstance(device, dict):
        try:
            fields["device"] = DeviceInfo.model_validate(device)
        except ValidationError as e:
            logger.debug(f"Dropping invalid device in tree snapshot {tree_hash}: {e}")

    return TreeSnapshotEvent(**fields)


def find_last_device(entries: Sequence[StoredLogEntry]) -> DeviceInfo | None:
    """Return the device named by the most recent entry that carries one."""
    for entry in reversed(entries):
        params = entry.params
        device = params.get("device") if params else None
        if isinstance(device, dict):
            try:
                return DeviceInfo.model_validate(device)
            except ValidationError as e:
                logger.debug(f"Skipping invalid device info: {e}")
    return None
