"""Relay event and outcome models."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from enum import Enum
from typing import Any, Literal

MESSAGE_CREATED = "message_created"


class MessageType(str, Enum):
    INCOMING = "incoming"
    OUTGOING = "outgoing"
    ACTIVITY = "activity"
    TEMPLATE = "template"


# Chatwoot serializes message_type as an integer on nested message objects.
_MESSAGE_TYPE_CODES = {
    0: MessageType.INCOMING,
    1: MessageType.OUTGOING,
    2: MessageType.ACTIVITY,
    3: MessageType.TEMPLATE,
}


@dataclass(frozen=True)
class MessageCreatedEvent:
    """A recognized Chatwoot ``message_created`` webhook."""

    conversation_id: int
    message_type: MessageType | None
    is_private: bool
    content: str
    sender_name: str | None = None
    sender_type: str | None = None
    account_id: int | None = None
    message_id: int | None = None
    kind: Literal["message_created"] = MESSAGE_CREATED


@dataclass(frozen=True)
class UnrecognizedEvent:
    """Payload that carries nothing to relay."""

    reason: str
    event_name: str | None = None
    kind: Literal["unrecognized"] = "unrecognized"


InboundEvent = MessageCreatedEvent | UnrecognizedEvent


@dataclass(frozen=True)
class Skipped:
    reason: str
    detail: str | None = None
    status: Literal["skipped"] = "skipped"


@dataclass(frozen=True)
class Relayed:
    conversation_id: int
    message_id: int | None
    status: Literal["relayed"] = "relayed"


@dataclass(frozen=True)
class Failed:
    stage: Literal["model", "reply"]
    cause: str
    conversation_id: int | None = None
    status: Literal["failed"] = "failed"


RelayOutcome = Skipped | Relayed | Failed


def parse_event(payload: Any) -> InboundEvent:
    """Map a raw webhook body onto the tagged event variant.

    Top-level fields follow Chatwoot's webhook shape; when one is absent the
    nested ``message`` object is consulted instead.
    """
    if not isinstance(payload, Mapping):
        return UnrecognizedEvent(reason="not_an_object")

    event_name = payload.get("event")
    event_name = event_name if isinstance(event_name, str) else None

    conversation = payload.get("conversation")
    if not isinstance(conversation, Mapping):
        return UnrecognizedEvent(reason="no_conversation", event_name=event_name)

    if event_name != MESSAGE_CREATED:
        return UnrecognizedEvent(reason="unsupported_event", event_name=event_name)

    conversation_id = _as_int(conversation.get("id"))
    if conversation_id is None:
        return UnrecognizedEvent(reason="invalid_conversation_id", event_name=event_name)

    message = payload.get("message")
    if not isinstance(message, Mapping):
        message = {}

    sender = _field(payload, message, "sender")
    if not isinstance(sender, Mapping):
        sender = {}
    sender_name = sender.get("name")
    sender_type = sender.get("type")

    content = _field(payload, message, "content")
    account = payload.get("account")

    return MessageCreatedEvent(
        conversation_id=conversation_id,
        message_type=_message_type(_field(payload, message, "message_type")),
        is_private=_field(payload, message, "private") is True,
        content=content if isinstance(content, str) else "",
        sender_name=sender_name if isinstance(sender_name, str) else None,
        sender_type=sender_type if isinstance(sender_type, str) else None,
        account_id=_as_int(account.get("id")) if isinstance(account, Mapping) else None,
        message_id=_as_int(payload.get("id", message.get("id"))),
    )


def _field(payload: Mapping[str, Any], message: Mapping[str, Any], key: str) -> Any:
    if payload.get(key) is not None:
        return payload[key]
    return message.get(key)


def _message_type(value: Any) -> MessageType | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return _MESSAGE_TYPE_CODES.get(value)
    if isinstance(value, str):
        try:
            return MessageType(value.strip().lower())
        except ValueError:
            return None
    return None


def _as_int(value: Any) -> int | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, str) and value.strip().isdigit():
        return int(value.strip())
    return None
