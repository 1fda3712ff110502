"""Reply-loop prevention: decide which messages deserve an answer."""

from __future__ import annotations

from collections.abc import Iterable

import structlog

from deskbridge.logging import preview
from deskbridge.relay.models import MessageCreatedEvent, MessageType

logger = structlog.get_logger()

DEFAULT_BANNED_SENDER_SUBSTRINGS: tuple[str, ...] = ("bot", "ai", "assistant")


def skip_reason(
    event: MessageCreatedEvent,
    banned_sender_substrings: Iterable[str] = DEFAULT_BANNED_SENDER_SUBSTRINGS,
) -> str | None:
    """Return the first rule the event fails, or None if it should be answered."""
    # Outgoing messages come from agents, the API, or this relay itself.
    if event.message_type is not MessageType.INCOMING:
        return "not_incoming"

    # Internal notes never get a public reply.
    if event.is_private is True:
        return "private"

    if not (event.content or "").strip():
        return "empty_content"

    sender_name = (event.sender_name or "").lower()
    if sender_name and any(banned.lower() in sender_name for banned in banned_sender_substrings):
        return "bot_sender"

    return None


def filter_event(
    event: MessageCreatedEvent,
    banned_sender_substrings: Iterable[str] = DEFAULT_BANNED_SENDER_SUBSTRINGS,
) -> str | None:
    """Like skip_reason, but an error while checking counts as a reason to skip."""
    try:
        reason = skip_reason(event, banned_sender_substrings)
    except Exception as exc:
        logger.warning("relay.filter.error", error=str(exc))
        return "filter_error"

    logger.debug(
        "relay.filter.checked",
        message_type=getattr(event.message_type, "value", None),
        private=event.is_private,
        sender_name=event.sender_name,
        sender_type=event.sender_type,
        content=preview(event.content, 50),
        reason=reason,
    )
    return reason


def should_reply(
    event: MessageCreatedEvent,
    banned_sender_substrings: Iterable[str] = DEFAULT_BANNED_SENDER_SUBSTRINGS,
) -> bool:
    """True when the event is a public, non-empty customer message from a human."""
    return filter_event(event, banned_sender_substrings) is None
