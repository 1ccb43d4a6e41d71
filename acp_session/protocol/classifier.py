"""Message classification.

Single place that decides whether a raw JSON-RPC message is a request, a
notification or a response. Every other module consumes the result instead of
re-checking shapes itself.

Contract:
- Inputs: Raw decoded messages (any object) or WireMessage instances
- Outputs: ClassifiedMessage, WireMessage variants, inferred direction
- Side Effects: None (pure, never raises)
"""

from collections.abc import Mapping
from typing import Any

from ..models.logs import Direction
from ..models.messages import ClassifiedMessage
from ..models.messages import JsonRpcNotification
from ..models.messages import JsonRpcRequest
from ..models.messages import JsonRpcResponse
from ..models.messages import MessageKind
from ..models.messages import SessionEvent
from ..models.messages import UnknownMessage
from ..models.messages import WireMessage

_UNKNOWN = ClassifiedMessage(kind=MessageKind.UNKNOWN)


def _valid_id(value: Any) -> bool:
    # bool is an int subclass but never a valid request id
    return isinstance(value, (int, str)) and not isinstance(value, bool)


def classify(message: Any) -> ClassifiedMessage:
    """Classify a message by shape.

    Rules:
        - id and method: request
        - id and result or error: response
        - method without id: notification
        - anything else: unknown

    Args:
        message: Raw mapping or already-parsed WireMessage

    Returns:
        ClassifiedMessage with kind, id and method
    """
    if isinstance(message, JsonRpcRequest):
        return ClassifiedMessage(kind=MessageKind.REQUEST, id=message.id, method=message.method)
    if isinstance(message, JsonRpcNotification):
        return ClassifiedMessage(kind=MessageKind.NOTIFICATION, method=message.method)
    if isinstance(message, JsonRpcResponse):
        return ClassifiedMessage(kind=MessageKind.RESPONSE, id=message.id)
    if not isinstance(message, Mapping):
        return _UNKNOWN

    msg_id = message.get("id")
    method = message.get("method")
    has_id = _valid_id(msg_id)
    has_method = isinstance(method, str)
    has_result = "result" in message or "error" in message

    if has_id and has_method:
        return ClassifiedMessage(kind=MessageKind.REQUEST, id=msg_id, method=method)
    if has_id and has_result:
        return ClassifiedMessage(kind=MessageKind.RESPONSE, id=msg_id)
    if has_method and msg_id is None:
        return ClassifiedMessage(kind=MessageKind.NOTIFICATION, method=method)
    return _UNKNOWN


def parse_wire_message(raw: Any) -> WireMessage:
    """Build the tagged WireMessage variant for a raw message.

    Messages that already are a WireMessage variant are returned unchanged.
    """
    if isinstance(raw, (JsonRpcRequest, JsonRpcNotification, JsonRpcResponse, UnknownMessage)):
        return raw
    classified = classify(raw)

    if classified.kind == MessageKind.REQUEST:
        return JsonRpcRequest(id=classified.id, method=classified.method, params=raw.get("params"))
    if classified.kind == MessageKind.NOTIFICATION:
        return JsonRpcNotification(method=classified.method, params=raw.get("params"))
    if classified.kind == MessageKind.RESPONSE:
        return JsonRpcResponse(id=classified.id, result=raw.get("result"), error=raw.get("error"))
    return UnknownMessage(raw=raw)


def to_session_event(raw: Any, ts: int) -> SessionEvent:
    """Wrap a raw message received at ts (milliseconds) into a SessionEvent."""
    return SessionEvent(ts=ts, message=parse_wire_message(raw))


def infer_direction(raw: Any) -> Direction | None:
    """Infer who sent a persisted message.

    Requests come from the client; responses and notifications from the agent.
    """
    kind = classify(raw).kind
    if kind == MessageKind.REQUEST:
        return "client"
    if kind in (MessageKind.RESPONSE, MessageKind.NOTIFICATION):
        return "agent"
    return None
