"""Log replayer.

Rebuilds a role-tagged conversation from an already-persisted batch of log
entries. Persisted entries do not reliably keep request/response correlation,
so turn boundaries are inferred: a turn ends whenever a user message arrives
or the batch ends.
"""

import logging
from collections.abc import Iterable
from collections.abc import Mapping
from typing import Any

from ..models.conversation import ConversationTurn
from ..models.conversation import ToolCallInfo
from ..models.logs import StoredLogEntry
from ..protocol import methods
from .registry import ToolCallRegistry

logger = logging.getLogger(__name__)

DEFAULT_TOOL_META_KEY = "claudeCode"

USER_MESSAGE_KINDS = frozenset({"user_message", "user_message_chunk"})


def tool_meta(update: Mapping[str, Any], meta_key: str = DEFAULT_TOOL_META_KEY) -> dict[str, Any] | None:
    """Return the agent implementation metadata attached to a tool update.

    Prefers `_meta[meta_key]`; falls back to the first nested mapping that
    carries a toolCallId.
    """
    meta = update.get("_meta")
    if not isinstance(meta, dict):
        return None
    preferred = meta.get(meta_key)
    if isinstance(preferred, dict):
        return preferred
    for value in meta.values():
        if isinstance(value, dict) and "toolCallId" in value:
            return value
    return None


def _is_name(value: Any) -> bool:
    return isinstance(value, str) and bool(value)


class _Accumulator:
    """Assistant content and tool calls collected since the last user message."""

    def __init__(self) -> None:
        self.content: list[Any] = []
        self.tool_calls = ToolCallRegistry()

    def __bool__(self) -> bool:
        return bool(self.content) or len(self.tool_calls) > 0

    def append_chunk(self, block: Any) -> None:
        last = self.content[-1] if self.content else None
        if (
            isinstance(block, dict)
            and block.get("type") == "text"
            and isinstance(last, dict)
            and last.get("type") == "text"
        ):
            self.content[-1] = {**last, "text": f"{last.get('text', '')}{block.get('text', '')}"}
        else:
            self.content.append(block)

    def to_turn(self) -> ConversationTurn:
        tool_calls = [
            ToolCallInfo(
                tool_call_id=tool_call_id,
                tool_name=fields["toolName"],
                input=fields.get("input"),
                result=fields.get("result"),
            )
            for tool_call_id in self.tool_calls
            if (fields := self.tool_calls.fields(tool_call_id)) is not None
        ]
        return ConversationTurn(role="assistant", content=self.content, tool_calls=tool_calls or None)


def rebuild_conversation(
    entries: Iterable[StoredLogEntry],
    meta_key: str = DEFAULT_TOOL_META_KEY,
) -> list[ConversationTurn]:
    """Fold persisted log entries into user/assistant turns.

    Args:
        entries: Persisted entries in log order
        meta_key: Key under `_meta` holding tool implementation metadata

    Returns:
        Ordered list of conversation turns

    Event types handled:
        - user_message / user_message_chunk: flush assistant turn, push user turn
        - agent_message_chunk: append or concatenate assistant content
        - tool_call / tool_call_update: create or update a tool call by id
        - tool_result: attach a result to a known tool call
    """
    turns: list[ConversationTurn] = []
    current = _Accumulator()

    for entry in entries:
        if entry.method != methods.SESSION_UPDATE:
            continue
        params = entry.params
        update = params.get("update") if params else None
        if not isinstance(update, dict):
            continue

        kind = update.get("sessionUpdate")

        if kind in USER_MESSAGE_KINDS:
            if current:
                turns.append(current.to_turn())
                current = _Accumulator()
            content = update.get("content")
            turns.append(ConversationTurn(role="user", content=content if isinstance(content, list) else [content]))

        elif kind == "agent_message_chunk":
            content = update.get("content")
            if content:
                current.append_chunk(content)

        elif kind in ("tool_call", "tool_call_update"):
            meta = tool_meta(update, meta_key)
            if meta is None:
                continue
            tool_call_id = meta.get("toolCallId")
            tool_name = meta.get("toolName")
            if not _is_name(tool_call_id) or not _is_name(tool_name):
                logger.debug(f"Skipping {kind} without a usable toolCallId/toolName: {tool_call_id!r}, {tool_name!r}")
                continue
            if tool_call_id not in current.tool_calls:
                current.tool_calls.upsert(tool_call_id, {"toolName": tool_name, "input": meta.get("toolInput")})
            if "toolResponse" in meta and meta["toolResponse"] is not None:
                current.tool_calls.merge(tool_call_id, {"result": meta["toolResponse"]})

        elif kind == "tool_result":
            meta = tool_meta(update, meta_key)
            if meta is None:
                continue
            tool_call_id = meta.get("toolCallId")
            if not _is_name(tool_call_id):
                logger.debug(f"Skipping tool_result without a usable toolCallId: {tool_call_id!r}")
                continue
            if meta.get("toolResponse") is not None:
                if not current.tool_calls.merge(tool_call_id, {"result": meta["toolResponse"]}):
                    logger.debug(f"Dropping tool result for unknown tool call {tool_call_id}")

    if current:
        turns.append(current.to_turn())

    return turns
