"""Persisted log models.

Each line of a persisted session log is a StoredLogEntry. The direction of the
message is not stored and is inferred from its shape when the log is parsed.
"""

from typing import Any
from typing import Literal

from pydantic import Field

from .base import CamelCaseModel

Direction = Literal["client", "agent"]


class StoredLogEntry(CamelCaseModel):
    """Single persisted log record.

    Attributes:
        type: Record type (e.g. "notification")
        timestamp: Optional ISO-8601 timestamp string
        notification: Raw JSON-RPC message with any of id/method/params/result/error
        direction: Inferred direction, None when the shape is not recognized
    """

    type: str = "notification"
    timestamp: str | None = None
    notification: dict[str, Any] | None = None
    direction: Direction | None = None

    @property
    def method(self) -> str | None:
        if not self.notification:
            return None
        method = self.notification.get("method")
        return method if isinstance(method, str) else None

    @property
    def params(self) -> dict[str, Any] | None:
        if not self.notification:
            return None
        params = self.notification.get("params")
        return params if isinstance(params, dict) else None


class ParsedSessionLog(CamelCaseModel):
    """Result of parsing a persisted session log."""

    entries: list[StoredLogEntry] = Field(default_factory=list)
    notifications: list[dict[str, Any]] = Field(default_factory=list, description="session/update params")
    session_id: str | None = Field(default=None, description="Agent-side session id")
    adapter: str | None = Field(default=None, description="Agent adapter (e.g. claude, codex)")
    model: str | None = Field(default=None, description="Last selected model")


class PermissionRequest(CamelCaseModel):
    """Permission request still awaiting an answer at the end of a log."""

    tool_call_id: str
    task_run_id: str | None = None
    received_at: int = Field(description="Milliseconds since epoch")
    params: dict[str, Any] = Field(default_factory=dict, description="Request params without sessionId")
