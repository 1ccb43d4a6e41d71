"""Persisted session log parsing.

Parses the newline-delimited log written for each run into StoredLogEntry
records. Malformed lines are skipped individually and never abort the batch.

Contract:
- Inputs: Raw NDJSON text
- Outputs: ParsedSessionLog, pending permission requests
- Side Effects: None
"""

import json
import logging
from collections.abc import Iterable
from datetime import datetime
from typing import Any

from pydantic import ValidationError

from ..models.logs import ParsedSessionLog
from ..models.logs import PermissionRequest
from ..models.logs import StoredLogEntry
from .classifier import infer_direction
from .methods import SDK_SESSION
from .methods import SESSION_REQUEST_PERMISSION
from .methods import SESSION_UPDATE
from .methods import is_extension_method

logger = logging.getLogger(__name__)

_TERMINAL_TOOL_STATUSES = frozenset({"in_progress", "completed", "failed"})
_AGENT_MESSAGE_KINDS = frozenset({"assistant_message", "agent_message", "agent_message_chunk"})


def parse_timestamp(ts: str | None) -> int | None:
    """Parse an ISO timestamp to milliseconds since epoch, None if invalid."""
    if not ts:
        return None
    try:
        return int(datetime.fromisoformat(ts.replace("Z", "+00:00")).timestamp() * 1000)
    except (ValueError, TypeError):
        return None


def parse_log_line(line: str) -> StoredLogEntry | None:
    """Parse one persisted line, returning None if it is not a valid record."""
    try:
        data = json.loads(line)
    except json.JSONDecodeError:
        return None
    if not isinstance(data, dict):
        return None
    if data.get("timestamp") is not None and not isinstance(data["timestamp"], str):
        data["timestamp"] = None
    try:
        entry = StoredLogEntry.model_validate(data)
    except ValidationError:
        return None

    if entry.notification is not None:
        entry.direction = infer_direction(entry.notification)
    return entry


def parse_log_entries(content: str) -> list[StoredLogEntry]:
    """Parse NDJSON content into entries, skipping invalid lines."""
    entries: list[StoredLogEntry] = []
    for line_num, line in enumerate(content.splitlines(), 1):
        line = line.strip()
        if not line:
            continue
        entry = parse_log_line(line)
        if entry is None:
            logger.debug(f"Skipping malformed log line {line_num}")
            continue
        entries.append(entry)
    return entries


def parse_session_log(content: str | None) -> ParsedSessionLog:
    """Parse a persisted log and pull out session-level metadata.

    Besides the entries themselves this collects the `session/update` params,
    the agent-side session id and adapter announced by the SDK session
    notification, and the model last selected through a config option update.

    Args:
        content: Raw NDJSON log text (None or blank means no log)

    Returns:
        ParsedSessionLog (empty when there is no content)
    """
    if not content or not content.strip():
        return ParsedSessionLog()

    result = ParsedSessionLog(entries=parse_log_entries(content))

    for entry in result.entries:
        if entry.type != "notification":
            continue
        params = entry.params
        if params is None:
            continue
        method = entry.method or ""

        if method == SESSION_UPDATE:
            result.notifications.append(params)
            update = params.get("update")
            if isinstance(update, dict) and update.get("sessionUpdate") == "config_option_update":
                model = _selected_model(update.get("configOptions"))
                if model:
                    result.model = model

        elif is_extension_method(method, SDK_SESSION):
            session_id = params.get("sessionId") or params.get("sdkSessionId")
            if session_id:
                result.session_id = session_id
            if params.get("adapter"):
                result.adapter = params["adapter"]
            elif result.session_id:
                result.adapter = "claude"

    return result


def _selected_model(options: Any) -> str | None:
    if not isinstance(options, list):
        return None
    for option in options:
        if isinstance(option, dict) and option.get("id") == "model" and option.get("currentValue"):
            return option["currentValue"]
    return None


def find_pending_permissions(entries: Iterable[StoredLogEntry]) -> dict[str, PermissionRequest]:
    """Find permission requests that were never answered.

    A request is pending when its tool call never reached a terminal status
    afterwards and no assistant message arrived after it (the conversation has
    not moved on).

    Args:
        entries: Parsed log entries in order

    Returns:
        Map of tool call id to pending request
    """
    requests: dict[str, tuple[StoredLogEntry, int]] = {}
    resolved: set[str] = set()
    last_assistant_index = -1

    for index, entry in enumerate(entries):
        params = entry.params
        if params is None:
            continue

        if entry.method == SESSION_REQUEST_PERMISSION:
            tool_call = params.get("toolCall")
            if isinstance(tool_call, dict) and tool_call.get("toolCallId"):
                requests[tool_call["toolCallId"]] = (entry, index)
            continue

        if entry.method != SESSION_UPDATE:
            continue
        update = params.get("update")
        if not isinstance(update, dict):
            continue

        kind = update.get("sessionUpdate")
        if (
            kind == "tool_call_update"
            and update.get("toolCallId")
            and update.get("status") in _TERMINAL_TOOL_STATUSES
        ):
            resolved.add(update["toolCallId"])
        elif kind in _AGENT_MESSAGE_KINDS:
            last_assistant_index = index

    pending: dict[str, PermissionRequest] = {}
    for tool_call_id, (entry, index) in requests.items():
        if tool_call_id in resolved or last_assistant_index > index:
            continue
        params = dict(entry.params or {})
        session_id = params.pop("sessionId", None)
        received_at = parse_timestamp(entry.timestamp)
        if received_at is None:
            received_at = int(datetime.now().timestamp() * 1000)
        pending[tool_call_id] = PermissionRequest(
            tool_call_id=tool_call_id,
            task_run_id=session_id,
            received_at=received_at,
            params=params,
        )
    return pending
