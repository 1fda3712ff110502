"""Relay pipeline: webhook payload in, model reply posted back to Chatwoot."""

from __future__ import annotations

from collections.abc import Iterable
from typing import Any, Protocol

import structlog

from deskbridge.config import DEFAULT_SYSTEM_PROMPT
from deskbridge.logging import preview
from deskbridge.relay.filters import DEFAULT_BANNED_SENDER_SUBSTRINGS, filter_event
from deskbridge.relay.models import (
    Failed,
    MessageCreatedEvent,
    Relayed,
    RelayOutcome,
    Skipped,
    UnrecognizedEvent,
    parse_event,
)

logger = structlog.get_logger()


class ModelClient(Protocol):
    async def invoke(self, system_prompt: str, user_message: str) -> str: ...


class ReplyClient(Protocol):
    async def post_reply(
        self,
        conversation_id: int,
        content: str,
        *,
        outgoing: bool = True,
        private: bool = False,
    ) -> int | None: ...


class RelayService:
    """Runs receive → filter → answer → reply for one webhook at a time.

    Holds no per-request state, so one instance serves concurrent requests.
    """

    def __init__(
        self,
        *,
        model_client: ModelClient,
        reply_client: ReplyClient,
        system_prompt: str = DEFAULT_SYSTEM_PROMPT,
        banned_sender_substrings: Iterable[str] = DEFAULT_BANNED_SENDER_SUBSTRINGS,
    ) -> None:
        self.model_client = model_client
        self.reply_client = reply_client
        self.system_prompt = system_prompt
        self.banned_sender_substrings = tuple(item.lower() for item in banned_sender_substrings)

    async def handle_payload(self, payload: Any) -> RelayOutcome:
        """Process one raw webhook body; never raises for relay failures."""
        event = parse_event(payload)
        if isinstance(event, UnrecognizedEvent):
            return Skipped(reason=event.reason, detail=event.event_name)
        return await self.handle_event(event)

    async def handle_event(self, event: MessageCreatedEvent) -> RelayOutcome:
        reason = filter_event(event, self.banned_sender_substrings)
        if reason is not None:
            return Skipped(reason=reason, detail=event.sender_name)

        log = logger.bind(conversation_id=event.conversation_id, message_id=event.message_id)
        log.info("relay.message.accepted", content=preview(event.content))

        try:
            reply = await self.model_client.invoke(self.system_prompt, event.content)
        except Exception as exc:
            log.exception("relay.model.failed")
            return Failed(
                stage="model",
                cause=str(exc) or type(exc).__name__,
                conversation_id=event.conversation_id,
            )

        try:
            message_id = await self.reply_client.post_reply(
                event.conversation_id,
                reply,
                outgoing=True,
                private=False,
            )
        except Exception as exc:
            log.exception("relay.reply.failed")
            return Failed(
                stage="reply",
                cause=str(exc) or type(exc).__name__,
                conversation_id=event.conversation_id,
            )

        return Relayed(conversation_id=event.conversation_id, message_id=message_id)


def log_outcome(outcome: RelayOutcome) -> None:
    """Emit one structured log line describing how a webhook was handled."""
    if isinstance(outcome, Relayed):
        logger.info(
            "relay.relayed",
            conversation_id=outcome.conversation_id,
            message_id=outcome.message_id,
        )
    elif isinstance(outcome, Failed):
        logger.error(
            "relay.failed",
            stage=outcome.stage,
            cause=outcome.cause,
            conversation_id=outcome.conversation_id,
        )
    else:
        logger.info("relay.skipped", reason=outcome.reason, detail=outcome.detail)
