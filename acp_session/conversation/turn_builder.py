"""Live turn builder.

Folds the ordered live message stream of a session into turns. The fold is
pure and deterministic: hosts may re-run it over the full history every time a
new event arrives, and the same prefix always yields the same result.

Turn lifecycle:
    - session/prompt request: opens a turn keyed by the request id
    - session/update notifications: add items to the open turn
    - matching session/prompt response: completes the turn
"""

import logging
from collections.abc import Iterable
from collections.abc import Mapping
from dataclasses import dataclass
from dataclasses import field
from datetime import UTC
from datetime import datetime
from typing import Any

from ..models.conversation import BuildResult
from ..models.conversation import LastTurnInfo
from ..models.conversation import ShellExecution
from ..models.conversation import Turn
from ..models.conversation import TurnItem
from ..models.messages import JsonRpcNotification
from ..models.messages import JsonRpcRequest
from ..models.messages import JsonRpcResponse
from ..models.messages import RequestId
from ..models.messages import SessionEvent
from ..protocol import methods
from .registry import ToolCallRegistry
from .registry import without_discriminator

logger = logging.getLogger(__name__)

TEXT_CHUNK_KINDS = frozenset({"agent_message_chunk", "agent_thought_chunk"})
OPAQUE_UPDATE_KINDS = frozenset(
    {"plan", "available_commands_update", "current_mode_update", "status", "error"}
)
VERBATIM_NOTIFICATIONS = (methods.STATUS, methods.COMPACT_BOUNDARY, methods.TASK_NOTIFICATION)


@dataclass
class _TurnState:
    turn: Turn
    registry: ToolCallRegistry = field(default_factory=ToolCallRegistry)


class _ConversationBuilder:
    """Mutable state of one fold. Never shared between passes."""

    def __init__(self) -> None:
        self.entries: list[Turn | ShellExecution] = []
        self.states: list[_TurnState] = []
        self.current: _TurnState | None = None
        self.pending: dict[RequestId, _TurnState] = {}
        self.shell_executions: dict[str, ShellExecution] = {}
        # True when something other than a turn item was appended last
        self.barrier = False
        self._next_id = 0

    def next_item_id(self, turn: Turn) -> str:
        item_id = f"{turn.id}-item-{self._next_id}"
        self._next_id += 1
        return item_id

    def push_item(self, kind: str, **values: Any) -> TurnItem | None:
        if self.current is None:
            return None
        turn = self.current.turn
        item = TurnItem(id=self.next_item_id(turn), kind=kind, **values)
        turn.items.append(item)
        self.barrier = False
        return item

    # --- Requests / responses ---

    def open_turn(self, request: JsonRpcRequest, ts: int) -> None:
        turn = Turn(
            id=f"turn-{ts}-{request.id}",
            prompt_id=request.id,
            user_text=extract_user_text(request.params),
            duration_ms=-ts,
        )
        state = _TurnState(turn=turn)
        self.states.append(state)
        self.entries.append(turn)
        self.current = state
        self.pending[request.id] = state
        self.barrier = True

    def close_turn(self, response: JsonRpcResponse, ts: int) -> None:
        state = self.pending.pop(response.id)
        turn = state.turn
        turn.is_complete = True
        turn.duration_ms += ts

        result = response.result if isinstance(response.result, dict) else {}
        stop_reason = result.get("stopReason")
        turn.stop_reason = stop_reason if isinstance(stop_reason, str) else None
        meta = result.get("_meta")
        if isinstance(meta, dict) and isinstance(meta.get("interruptReason"), str):
            turn.interrupt_reason = meta["interruptReason"]
        turn.cancelled = turn.stop_reason == "cancelled"

    # --- Notifications ---

    def handle_notification(self, message: JsonRpcNotification, ts: int) -> None:
        params = message.params if isinstance(message.params, dict) else {}
        method = message.method

        if methods.is_extension_method(method, methods.USER_SHELL_EXECUTE):
            self.record_shell_execution(params)
        elif method == methods.SESSION_UPDATE:
            update = params.get("update")
            if self.current is not None and isinstance(update, dict):
                self.apply_update(update)
        elif methods.is_extension_method(method, methods.CONSOLE):
            if self.current is not None and params.get("message"):
                self.push_item(
                    "console",
                    payload={
                        "level": params.get("level") or "info",
                        "message": params["message"],
                        "timestamp": datetime.fromtimestamp(ts / 1000, tz=UTC).isoformat(),
                    },
                )
        elif any(methods.is_extension_method(method, name) for name in VERBATIM_NOTIFICATIONS):
            if self.current is not None:
                kind = method.rsplit("/", 1)[-1]
                self.push_item(kind, payload=dict(params))

    def record_shell_execution(self, params: Mapping[str, Any]) -> None:
        exec_id = params.get("id")
        if not isinstance(exec_id, str) or not exec_id:
            return
        existing = self.shell_executions.get(exec_id)
        if existing is not None:
            existing.result = params.get("result")
            return
        item = ShellExecution(
            id=exec_id,
            command=params.get("command"),
            cwd=params.get("cwd"),
            result=params.get("result"),
        )
        self.shell_executions[exec_id] = item
        self.entries.append(item)
        self.barrier = True

    def apply_update(self, update: dict[str, Any]) -> None:
        kind = update.get("sessionUpdate")

        if kind == "user_message_chunk":
            # User text is already captured from the prompt request
            return
        if kind == "agent_message":
            kind = "agent_message_chunk"
        if kind in TEXT_CHUNK_KINDS:
            self.append_text_chunk(kind, update.get("content"))
        elif kind == "tool_call":
            self.upsert_tool_call(update)
        elif kind == "tool_call_update":
            tool_call_id = update.get("toolCallId")
            if isinstance(tool_call_id, str):
                # Unknown ids are dropped; updates never create calls
                self.current.registry.merge(tool_call_id, without_discriminator(update))
        elif kind in OPAQUE_UPDATE_KINDS:
            self.push_item(kind, payload=dict(update))
        else:
            logger.debug(f"Ignoring session update kind: {kind}")

    def append_text_chunk(self, kind: str, content: Any) -> None:
        if not isinstance(content, dict) or content.get("type") != "text":
            return
        text = content.get("text")
        if not isinstance(text, str):
            return

        items = self.current.turn.items
        last = items[-1] if items else None
        if not self.barrier and last is not None and last.kind == kind and last.text is not None:
            # Replace rather than mutate; earlier passes may still hold the old item
            items[-1] = last.model_copy(update={"content": {**last.content, "text": last.text + text}})
            return
        self.push_item(kind, content=dict(content))

    def upsert_tool_call(self, update: dict[str, Any]) -> None:
        tool_call_id = update.get("toolCallId")
        if not isinstance(tool_call_id, str) or not tool_call_id:
            return
        if self.current.registry.upsert(tool_call_id, update):
            self.push_item("tool_call", tool_call_id=tool_call_id)

    # --- Result ---

    def finish(self, is_prompt_pending: bool) -> BuildResult:
        if not is_prompt_pending:
            for state in self.pending.values():
                state.turn.is_complete = True
                state.turn.stop_reason = "cancelled"
                state.turn.cancelled = True

        for state in self.states:
            state.turn.items = [
                item.model_copy(update={"tool_call": state.registry.materialize(item.tool_call_id)})
                if item.tool_call_id is not None
                else item
                for item in state.turn.items
            ]

        last_turn = None
        if self.current is not None:
            turn = self.current.turn
            last_turn = LastTurnInfo(
                is_complete=turn.is_complete,
                duration_ms=turn.duration_ms,
                stop_reason=turn.stop_reason,
            )
        return BuildResult(entries=self.entries, last_turn=last_turn)


def extract_user_text(params: Any) -> str:
    """Return the first visible text block of a prompt.

    Blocks marked hidden (`_meta.ui.hidden`) carry injected system context and
    are never shown as the user's message.
    """
    if not isinstance(params, dict):
        return ""
    prompt = params.get("prompt")
    if not isinstance(prompt, list):
        return ""

    for block in prompt:
        if not isinstance(block, dict) or block.get("type") != "text":
            continue
        meta = block.get("_meta")
        ui = meta.get("ui") if isinstance(meta, dict) else None
        if isinstance(ui, dict) and ui.get("hidden"):
            continue
        text = block.get("text")
        if isinstance(text, str):
            return text
    return ""


def build_conversation(events: Iterable[SessionEvent], is_prompt_pending: bool = True) -> BuildResult:
    """Fold live session events into turns.

    Args:
        events: Ordered session events (full history or any prefix of it)
        is_prompt_pending: Whether the host still waits on a prompt response.
            When False, turns left without a response are marked cancelled.

    Returns:
        BuildResult with turns and standalone entries in arrival order

    Example:
        >>> result = build_conversation(events)
        >>> [item.text for item in result.turns[0].items]
        ['Hello']
    """
    builder = _ConversationBuilder()

    for event in events:
        message = event.message

        if isinstance(message, JsonRpcNotification):
            builder.handle_notification(message, event.ts)
        elif isinstance(message, JsonRpcRequest) and message.method == methods.SESSION_PROMPT:
            builder.open_turn(message, event.ts)
        elif isinstance(message, JsonRpcResponse) and message.id in builder.pending:
            builder.close_turn(message, event.ts)

    return builder.finish(is_prompt_pending)
