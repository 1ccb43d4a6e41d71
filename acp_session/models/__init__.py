"""Models for acp_session."""

from .base import CamelCaseModel
from .conversation import BuildResult
from .conversation import ConversationTurn
from .conversation import LastTurnInfo
from .conversation import ShellExecution
from .conversation import ToolCall
from .conversation import ToolCallInfo
from .conversation import Turn
from .conversation import TurnItem
from .logs import ParsedSessionLog
from .logs import PermissionRequest
from .logs import StoredLogEntry
from .messages import ClassifiedMessage
from .messages import JsonRpcNotification
from .messages import JsonRpcRequest
from .messages import JsonRpcResponse
from .messages import MessageKind
from .messages import SessionEvent
from .messages import UnknownMessage
from .messages import WireMessage
from .snapshots import DeviceInfo
from .snapshots import FileChange
from .snapshots import ResumeResult
from .snapshots import TaskRun
from .snapshots import TreeSnapshotEvent

__all__ = [
    "CamelCaseModel",
    "BuildResult",
    "ClassifiedMessage",
    "ConversationTurn",
    "DeviceInfo",
    "FileChange",
    "JsonRpcNotification",
    "JsonRpcRequest",
    "JsonRpcResponse",
    "LastTurnInfo",
    "MessageKind",
    "ParsedSessionLog",
    "PermissionRequest",
    "ResumeResult",
    "SessionEvent",
    "ShellExecution",
    "StoredLogEntry",
    "TaskRun",
    "ToolCall",
    "ToolCallInfo",
    "TreeSnapshotEvent",
    "Turn",
    "TurnItem",
    "UnknownMessage",
    "WireMessage",
]
