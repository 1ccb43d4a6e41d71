"""Tool-call registry.

Owned table of tool-call fields keyed by id. Item lists keep the id and read
the table when they are materialized, so an update applied later is visible
at the position where the call first appeared.
"""

from collections.abc import Iterator
from collections.abc import Mapping
from typing import Any

from ..models.conversation import ToolCall

DISCRIMINATOR = "sessionUpdate"

_WIRE_TO_FIELD = {
    "toolCallId": "tool_call_id",
    "title": "title",
    "kind": "kind",
    "status": "status",
    "rawInput": "raw_input",
    "rawOutput": "raw_output",
    "content": "content",
    "locations": "locations",
    "_meta": "meta",
}


class ToolCallRegistry:
    """Create-or-merge table of tool-call fields.

    Later writes win per field. Insertion order is preserved.
    """

    def __init__(self) -> None:
        self._fields: dict[str, dict[str, Any]] = {}

    def __contains__(self, tool_call_id: object) -> bool:
        return tool_call_id in self._fields

    def __len__(self) -> int:
        return len(self._fields)

    def __iter__(self) -> Iterator[str]:
        return iter(self._fields)

    def upsert(self, tool_call_id: str, fields: Mapping[str, Any]) -> bool:
        """Merge fields into an existing entry, or create it.

        Returns:
            True if a new entry was created
        """
        existing = self._fields.get(tool_call_id)
        if existing is not None:
            existing.update(fields)
            return False
        self._fields[tool_call_id] = dict(fields)
        return True

    def merge(self, tool_call_id: str, fields: Mapping[str, Any]) -> bool:
        """Merge fields into an existing entry only.

        Returns:
            False if the id is unknown (nothing is created)
        """
        existing = self._fields.get(tool_call_id)
        if existing is None:
            return False
        existing.update(fields)
        return True

    def fields(self, tool_call_id: str) -> dict[str, Any] | None:
        """Copy of the raw fields for an id."""
        existing = self._fields.get(tool_call_id)
        return dict(existing) if existing is not None else None

    def materialize(self, tool_call_id: str) -> ToolCall | None:
        """Build a ToolCall from the current fields of an id."""
        raw = self._fields.get(tool_call_id)
        if raw is None:
            return None

        values: dict[str, Any] = {"tool_call_id": tool_call_id}
        extra: dict[str, Any] = {}
        for key, value in raw.items():
            if key == DISCRIMINATOR:
                continue
            name = _WIRE_TO_FIELD.get(key)
            if name is None:
                extra[key] = value
            elif name != "tool_call_id":
                values[name] = value
        values["extra"] = extra
        # Wire data is untrusted; construct without validation so this never raises.
        return ToolCall.model_construct(**values)


def without_discriminator(update: Mapping[str, Any]) -> dict[str, Any]:
    """Copy of a session update minus its sessionUpdate tag."""
    return {key: value for key, value in update.items() if key != DISCRIMINATOR}
