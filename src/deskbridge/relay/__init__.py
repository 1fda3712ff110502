"""Chatwoot → model → Chatwoot relay."""

from deskbridge.relay.filters import filter_event, should_reply, skip_reason
from deskbridge.relay.models import (
    Failed,
    MessageCreatedEvent,
    MessageType,
    Relayed,
    RelayOutcome,
    Skipped,
    UnrecognizedEvent,
    parse_event,
)
from deskbridge.relay.service import RelayService, log_outcome

__all__ = [
    "Failed",
    "MessageCreatedEvent",
    "MessageType",
    "RelayOutcome",
    "RelayService",
    "Relayed",
    "Skipped",
    "UnrecognizedEvent",
    "filter_event",
    "log_outcome",
    "parse_event",
    "should_reply",
    "skip_reason",
]
