"""Protocol handling: message classification and persisted log parsing."""

from .classifier import classify
from .classifier import infer_direction
from .classifier import parse_wire_message
from .classifier import to_session_event
from .log_parser import find_pending_permissions
from .log_parser import parse_log_entries
from .log_parser import parse_session_log

__all__ = [
    "classify",
    "infer_direction",
    "parse_wire_message",
    "to_session_event",
    "find_pending_permissions",
    "parse_log_entries",
    "parse_session_log",
]
