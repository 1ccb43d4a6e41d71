"""Wire message and session event models.

Contract:
- Inputs: Decoded JSON-RPC messages as received from transport or storage
- Outputs: Immutable tagged message variants
- Side Effects: None (pure data structures)
"""

from enum import Enum
from typing import Annotated
from typing import Any
from typing import Literal

from pydantic import Field

from .base import CamelCaseModel
from .base import FrozenModel

RequestId = int | str


class MessageKind(str, Enum):
    """Kind of a JSON-RPC message, decided from its shape."""

    REQUEST = "request"
    NOTIFICATION = "notification"
    RESPONSE = "response"
    UNKNOWN = "unknown"


class JsonRpcRequest(FrozenModel):
    """Request from the client (carries both an id and a method)."""

    kind: Literal[MessageKind.REQUEST] = MessageKind.REQUEST
    id: RequestId
    method: str
    params: Any = None


class JsonRpcNotification(FrozenModel):
    """Notification (method without id), normally sent by the agent."""

    kind: Literal[MessageKind.NOTIFICATION] = MessageKind.NOTIFICATION
    method: str
    params: Any = None


class JsonRpcResponse(FrozenModel):
    """Response to an earlier request (id plus result or error)."""

    kind: Literal[MessageKind.RESPONSE] = MessageKind.RESPONSE
    id: RequestId
    result: Any = None
    error: Any = None


class UnknownMessage(FrozenModel):
    """Anything that does not have a recognizable JSON-RPC shape."""

    kind: Literal[MessageKind.UNKNOWN] = MessageKind.UNKNOWN
    raw: Any = None


WireMessage = Annotated[
    JsonRpcRequest | JsonRpcNotification | JsonRpcResponse | UnknownMessage,
    Field(discriminator="kind"),
]


class ClassifiedMessage(FrozenModel):
    """Result of classifying one wire message."""

    kind: MessageKind
    id: RequestId | None = None
    method: str | None = None


class SessionEvent(CamelCaseModel):
    """One message of the live session stream plus its arrival timestamp.

    Attributes:
        ts: Monotonic arrival time in milliseconds
        message: The message as received
    """

    ts: int
    message: WireMessage

    @property
    def session_update(self) -> dict[str, Any] | None:
        """Parsed `session/update` payload, when this event carries one."""
        msg = self.message
        if not isinstance(msg, JsonRpcNotification) or msg.method != "session/update":
            return None
        if not isinstance(msg.params, dict):
            return None
        update = msg.params.get("update")
        return update if isinstance(update, dict) else None
