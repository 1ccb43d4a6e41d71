"""Conversation models produced by the turn builder and the log replayer.

These models are the read-only output handed to the rendering layer. They are
rebuilt in full on every reconstruction pass.
"""

from typing import Any
from typing import Literal

from pydantic import Field

from .base import CamelCaseModel
from .messages import RequestId


class ToolCall(CamelCaseModel):
    """Merged state of one agent tool call.

    The builder keeps the raw fields in a registry keyed by tool_call_id and
    only materializes this model once the fold is finished, so every item that
    refers to the call observes its latest state.
    """

    tool_call_id: str
    title: Any = None
    kind: Any = None
    status: Any = None
    raw_input: Any = None
    raw_output: Any = None
    content: Any = None
    locations: Any = None
    meta: Any = Field(default=None, alias="_meta")
    extra: dict[str, Any] = Field(default_factory=dict, description="Unrecognized wire fields")


class TurnItem(CamelCaseModel):
    """One displayable element inside a turn.

    Attributes:
        id: Stable item id within the conversation
        kind: Session update discriminator (agent_message_chunk, tool_call, plan, console, ...)
        content: Content block for text chunks
        tool_call_id: Registry key for tool-call items
        tool_call: Merged tool call, filled in when the fold completes
        payload: Verbatim update for opaque items, level/message/timestamp for console items
    """

    id: str
    kind: str
    content: dict[str, Any] | None = None
    tool_call_id: str | None = None
    tool_call: ToolCall | None = None
    payload: dict[str, Any] = Field(default_factory=dict)

    @property
    def text(self) -> str | None:
        if self.content and self.content.get("type") == "text":
            text = self.content.get("text")
            return text if isinstance(text, str) else None
        return None


class Turn(CamelCaseModel):
    """One user prompt plus everything the agent produced in response."""

    entry_type: Literal["turn"] = "turn"
    id: str
    prompt_id: RequestId
    user_text: str = ""
    items: list[TurnItem] = Field(default_factory=list)
    is_complete: bool = False
    cancelled: bool = False
    stop_reason: str | None = None
    interrupt_reason: str | None = None
    duration_ms: int = 0


class ShellExecution(CamelCaseModel):
    """User-initiated shell command shown outside of any turn."""

    entry_type: Literal["user_shell_execute"] = "user_shell_execute"
    id: str
    command: str | None = None
    cwd: str | None = None
    result: Any = None


class LastTurnInfo(CamelCaseModel):
    is_complete: bool
    duration_ms: int
    stop_reason: str | None = None


class BuildResult(CamelCaseModel):
    """Output of the live turn builder."""

    entries: list[Turn | ShellExecution] = Field(default_factory=list)
    last_turn: LastTurnInfo | None = None

    @property
    def turns(self) -> list[Turn]:
        return [entry for entry in self.entries if isinstance(entry, Turn)]


class ToolCallInfo(CamelCaseModel):
    """Tool call as recovered from a persisted log."""

    tool_call_id: str
    tool_name: str
    input: Any = None
    result: Any = None


class ConversationTurn(CamelCaseModel):
    """Role-tagged turn rebuilt from a persisted log.

    Boundaries are inferred from user messages only; request/response
    correlation is not available in storage.
    """

    role: Literal["user", "assistant"]
    content: list[Any] = Field(default_factory=list)
    tool_calls: list[ToolCallInfo] | None = None
