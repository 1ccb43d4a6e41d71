"""Working-tree snapshot and run models."""

from typing import Any

from pydantic import ConfigDict
from pydantic import Field

from .base import CamelCaseModel
from .conversation import ConversationTurn


class DeviceInfo(CamelCaseModel):
    """Device/environment the agent was running on (e.g. local, cloud)."""

    model_config = ConfigDict(extra="allow")

    type: str | None = None
    name: str | None = None


class FileChange(CamelCaseModel):
    path: str
    status: str = Field(default="M", description="A (added), M (modified), D (deleted) or R (renamed)")


class TreeSnapshotEvent(CamelCaseModel):
    """Recorded working-tree state at a point in the session.

    Attributes:
        tree_hash: Git tree hash identifying the state
        base_commit: Commit the tree was captured on top of
        archive_url: Storage path of the archive of changed files, if uploaded
        changes: Files changed relative to the base
        timestamp: Capture time (ISO-8601)
        interrupted: Whether the capture was taken because the run was interrupted
        device: Device that captured the snapshot
    """

    tree_hash: str
    base_commit: str | None = None
    archive_url: str | None = None
    changes: list[FileChange] | None = None
    timestamp: str | None = None
    interrupted: bool | None = None
    device: DeviceInfo | None = None

    @property
    def restorable(self) -> bool:
        return bool(self.archive_url)


class TaskRun(CamelCaseModel):
    """Run metadata returned by the run service. Unknown fields are ignored."""

    id: str
    task: str | None = None
    status: str | None = None
    log_url: str | None = Field(default=None, alias="log_url")
    environment: str | None = None
    branch: str | None = None
    error_message: str | None = Field(default=None, alias="error_message")
    created_at: str | None = Field(default=None, alias="created_at")
    updated_at: str | None = Field(default=None, alias="updated_at")
    completed_at: str | None = Field(default=None, alias="completed_at")
    state: dict[str, Any] = Field(default_factory=dict)


class ResumeResult(CamelCaseModel):
    """Everything needed to continue a run after a restart."""

    conversation: list[ConversationTurn] = Field(default_factory=list)
    latest_snapshot: TreeSnapshotEvent | None = None
    snapshot_applied: bool = False
    interrupted: bool = False
    last_device: DeviceInfo | None = None
    log_entry_count: int = 0

    @classmethod
    def empty(cls) -> "ResumeResult":
        """Canonical result for "nothing to resume"."""
        return cls()
