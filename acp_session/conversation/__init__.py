"""Conversation reconstruction.

Public Interface:
    - build_conversation: Live path, folds session events into turns
    - rebuild_conversation: Resume path, folds persisted entries into role-tagged turns
    - ToolCallRegistry: Create-or-merge table of tool calls keyed by id
"""

from .registry import ToolCallRegistry
from .replayer import rebuild_conversation
from .turn_builder import build_conversation

__all__ = [
    "ToolCallRegistry",
    "build_conversation",
    "rebuild_conversation",
]
