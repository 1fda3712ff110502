from __future__ import annotations

from typing import Any

import pytest

from deskbridge.config import DEFAULT_SYSTEM_PROMPT
from deskbridge.errors import HelpdeskError
from deskbridge.relay import Failed, Relayed, RelayService, Skipped


def _payload(**overrides: Any) -> dict[str, Any]:
    payload: dict[str, Any] = {
        "event": "message_created",
        "content": "what about the session management",
        "message_type": "incoming",
        "private": False,
        "conversation": {"id": 12345},
        "sender": {"name": "Customer", "type": "contact"},
    }
    payload.update(overrides)
    return payload


class _FakeModel:
    def __init__(self, reply: str = "Sessions expire after 30 minutes.", error: Exception | None = None) -> None:
        self.reply = reply
        self.error = error
        self.calls: list[tuple[str, str]] = []

    async def invoke(self, system_prompt: str, user_message: str) -> str:
        self.calls.append((system_prompt, user_message))
        if self.error is not None:
            raise self.error
        return self.reply


class _FakeReplies:
    def __init__(self, error: Exception | None = None) -> None:
        self.error = error
        self.calls: list[dict[str, Any]] = []

    async def post_reply(
        self,
        conversation_id: int,
        content: str,
        *,
        outgoing: bool = True,
        private: bool = False,
    ) -> int | None:
        self.calls.append(
            {
                "conversation_id": conversation_id,
                "content": content,
                "outgoing": outgoing,
                "private": private,
            }
        )
        if self.error is not None:
            raise self.error
        return 555


def _service(model: _FakeModel, replies: _FakeReplies) -> RelayService:
    return RelayService(model_client=model, reply_client=replies)


@pytest.mark.asyncio
async def test_qualifying_event_is_answered_and_posted_back() -> None:
    model = _FakeModel()
    replies = _FakeReplies()

    outcome = await _service(model, replies).handle_payload(_payload())

    assert outcome == Relayed(conversation_id=12345, message_id=555)
    assert model.calls == [(DEFAULT_SYSTEM_PROMPT, "what about the session management")]
    assert replies.calls == [
        {
            "conversation_id": 12345,
            "content": "Sessions expire after 30 minutes.",
            "outgoing": True,
            "private": False,
        }
    ]


@pytest.mark.asyncio
async def test_model_failure_skips_reply() -> None:
    model = _FakeModel(error=RuntimeError("quota exceeded"))
    replies = _FakeReplies()

    outcome = await _service(model, replies).handle_payload(_payload())

    assert isinstance(outcome, Failed)
    assert outcome.stage == "model"
    assert "quota exceeded" in outcome.cause
    assert outcome.conversation_id == 12345
    assert replies.calls == []


@pytest.mark.asyncio
async def test_reply_failure_is_reported_not_raised() -> None:
    model = _FakeModel()
    replies = _FakeReplies(error=HelpdeskError("Chatwoot rejected reply with HTTP 401", status_code=401))

    outcome = await _service(model, replies).handle_payload(_payload())

    assert isinstance(outcome, Failed)
    assert outcome.stage == "reply"
    assert "401" in outcome.cause
    assert len(model.calls) == 1
    assert len(replies.calls) == 1


@pytest.mark.asyncio
async def test_payload_without_conversation_makes_no_calls() -> None:
    model = _FakeModel()
    replies = _FakeReplies()
    payload = _payload()
    del payload["conversation"]

    outcome = await _service(model, replies).handle_payload(payload)

    assert outcome == Skipped(reason="no_conversation", detail="message_created")
    assert model.calls == []
    assert replies.calls == []


@pytest.mark.asyncio
async def test_non_message_event_makes_no_calls() -> None:
    model = _FakeModel()
    replies = _FakeReplies()

    outcome = await _service(model, replies).handle_payload(_payload(event="conversation_updated"))

    assert isinstance(outcome, Skipped)
    assert outcome.reason == "unsupported_event"
    assert model.calls == []
    assert replies.calls == []


@pytest.mark.asyncio
@pytest.mark.parametrize(
    ("overrides", "reason"),
    [
        ({"message_type": "outgoing"}, "not_incoming"),
        ({"private": True}, "private"),
        ({"content": "   "}, "empty_content"),
        ({"sender": {"name": "Support Bot"}}, "bot_sender"),
    ],
)
async def test_filtered_events_make_no_calls(overrides: dict[str, Any], reason: str) -> None:
    model = _FakeModel()
    replies = _FakeReplies()

    outcome = await _service(model, replies).handle_payload(_payload(**overrides))

    assert isinstance(outcome, Skipped)
    assert outcome.reason == reason
    assert model.calls == []
    assert replies.calls == []


@pytest.mark.asyncio
async def test_custom_system_prompt_is_used() -> None:
    model = _FakeModel()
    service = RelayService(
        model_client=model,
        reply_client=_FakeReplies(),
        system_prompt="Answer as the ACME support desk.",
    )

    await service.handle_payload(_payload())

    assert model.calls[0][0] == "Answer as the ACME support desk."


@pytest.mark.asyncio
async def test_resubmitted_event_is_answered_again() -> None:
    model = _FakeModel()
    replies = _FakeReplies()
    service = _service(model, replies)

    await service.handle_payload(_payload())
    await service.handle_payload(_payload())

    assert len(model.calls) == 2
    assert len(replies.calls) == 2


@pytest.mark.asyncio
async def test_uppercase_banned_substrings_still_block_senders() -> None:
    model = _FakeModel()
    service = RelayService(
        model_client=model,
        reply_client=_FakeReplies(),
        banned_sender_substrings=["HELPER"],
    )

    outcome = await service.handle_payload(_payload(sender={"name": "Billing Helper"}))

    assert service.banned_sender_substrings == ("helper",)
    assert isinstance(outcome, Skipped)
    assert outcome.reason == "bot_sender"
    assert model.calls == []
