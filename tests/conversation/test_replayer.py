"""
Unit tests for the log replayer.

Tests turn boundaries, chunk concatenation and tool call recovery from
persisted entries.
"""

import pytest

from acp_session.conversation.replayer import rebuild_conversation
from acp_session.conversation.replayer import tool_meta


def _update(log_entry, kind: str, **fields):
    return log_entry("session/update", {"sessionId": "s-1", "update": {"sessionUpdate": kind, **fields}})


def _text(text: str) -> dict:
    return {"type": "text", "text": text}


def _tool_meta(tool_call_id: str, **fields) -> dict:
    return {"claudeCode": {"toolCallId": tool_call_id, **fields}}


@pytest.mark.unit
class TestRebuildConversation:
    """Test folding persisted entries into role-tagged turns."""

    def test_user_then_assistant(self, log_entry) -> None:
        """Test a user message followed by chunks yields two turns."""
        entries = [
            _update(log_entry, "user_message", content=_text("hi")),
            _update(log_entry, "agent_message_chunk", content=_text("Hel")),
            _update(log_entry, "agent_message_chunk", content=_text("lo")),
        ]

        turns = rebuild_conversation(entries)

        assert [turn.role for turn in turns] == ["user", "assistant"]
        assert turns[0].content == [_text("hi")]
        assert turns[1].content == [_text("Hello")]
        assert turns[1].tool_calls is None

    def test_user_message_with_block_list(self, log_entry) -> None:
        """Test user content given as a list is kept as is."""
        entries = [_update(log_entry, "user_message_chunk", content=[_text("a"), _text("b")])]

        assert rebuild_conversation(entries)[0].content == [_text("a"), _text("b")]

    def test_each_user_message_flushes_assistant(self, log_entry) -> None:
        """Test assistant content is flushed at every user message."""
        entries = [
            _update(log_entry, "user_message", content=_text("one")),
            _update(log_entry, "agent_message_chunk", content=_text("a")),
            _update(log_entry, "user_message", content=_text("two")),
            _update(log_entry, "agent_message_chunk", content=_text("b")),
        ]

        turns = rebuild_conversation(entries)

        assert [turn.role for turn in turns] == ["user", "assistant", "user", "assistant"]
        assert turns[3].content == [_text("b")]

    def test_non_text_chunk_is_separate_block(self, log_entry) -> None:
        """Test non-text blocks are appended without concatenation."""
        image = {"type": "image", "data": "AAAA", "mimeType": "image/png"}
        entries = [
            _update(log_entry, "agent_message_chunk", content=_text("a")),
            _update(log_entry, "agent_message_chunk", content=image),
            _update(log_entry, "agent_message_chunk", content=_text("b")),
        ]

        assert rebuild_conversation(entries)[0].content == [_text("a"), image, _text("b")]

    def test_tool_calls_from_meta(self, log_entry) -> None:
        """Test tool calls are recovered from agent metadata."""
        entries = [
            _update(log_entry, "user_message", content=_text("go")),
            _update(
                log_entry,
                "tool_call",
                toolCallId="t1",
                _meta=_tool_meta("t1", toolName="Read", toolInput={"path": "a.py"}),
            ),
            _update(
                log_entry,
                "tool_call_update",
                toolCallId="t1",
                _meta=_tool_meta("t1", toolName="Read", toolResponse="contents"),
            ),
        ]

        turns = rebuild_conversation(entries)

        tool_calls = turns[1].tool_calls
        assert len(tool_calls) == 1
        assert tool_calls[0].tool_name == "Read"
        assert tool_calls[0].input == {"path": "a.py"}
        assert tool_calls[0].result == "contents"

    def test_tool_call_without_name_is_skipped(self, log_entry) -> None:
        """Test metadata without a tool name creates nothing."""
        entries = [_update(log_entry, "tool_call", _meta=_tool_meta("t1"))]

        assert rebuild_conversation(entries) == []

    def test_non_string_tool_ids_are_skipped(self, log_entry) -> None:
        """Test metadata with a numeric id or name is ignored instead of failing."""
        entries = [
            _update(log_entry, "user_message", content=_text("run it")),
            _update(log_entry, "tool_call", _meta=_tool_meta(42, toolName="Bash")),
            _update(log_entry, "tool_call", _meta=_tool_meta("t1", toolName=7)),
            _update(log_entry, "tool_result", _meta=_tool_meta(42, toolResponse="out")),
            _update(log_entry, "agent_message_chunk", content=_text("done")),
        ]

        turns = rebuild_conversation(entries)

        assert [turn.role for turn in turns] == ["user", "assistant"]
        assert turns[1].content == [_text("done")]
        assert turns[1].tool_calls is None

    def test_tool_result_only_attaches_to_known_call(self, log_entry) -> None:
        """Test tool results for unknown ids are dropped."""
        entries = [
            _update(log_entry, "tool_call", _meta=_tool_meta("t1", toolName="Bash")),
            _update(log_entry, "tool_result", _meta=_tool_meta("t1", toolResponse={"exit": 0})),
            _update(log_entry, "tool_result", _meta=_tool_meta("t2", toolResponse="lost")),
        ]

        turns = rebuild_conversation(entries)

        assert [call.tool_call_id for call in turns[0].tool_calls] == ["t1"]
        assert turns[0].tool_calls[0].result == {"exit": 0}

    def test_custom_meta_key(self, log_entry) -> None:
        """Test the metadata key is configurable."""
        entries = [
            _update(log_entry, "tool_call", _meta={"otherAgent": {"toolCallId": "t1", "toolName": "Grep"}}),
        ]

        turns = rebuild_conversation(entries, meta_key="otherAgent")

        assert turns[0].tool_calls[0].tool_name == "Grep"

    def test_other_methods_are_ignored(self, log_entry) -> None:
        """Test non session/update entries do not affect the conversation."""
        entries = [
            log_entry("_acp/tree_snapshot", {"treeHash": "abc"}),
            log_entry("_acp/console", {"message": "x"}),
        ]

        assert rebuild_conversation(entries) == []


@pytest.mark.unit
class TestToolMeta:
    """Test metadata lookup."""

    def test_prefers_configured_key(self) -> None:
        """Test the configured key wins over other entries."""
        update = {"_meta": {"a": {"toolCallId": "x"}, "claudeCode": {"toolCallId": "y"}}}

        assert tool_meta(update)["toolCallId"] == "y"

    def test_falls_back_to_first_mapping_with_tool_call_id(self) -> None:
        """Test the first mapping carrying a toolCallId is used as a fallback."""
        update = {"_meta": {"other": {"foo": 1}, "agent": {"toolCallId": "z"}}}

        assert tool_meta(update)["toolCallId"] == "z"

    def test_missing_meta(self) -> None:
        """Test updates without metadata yield None."""
        assert tool_meta({}) is None
