from __future__ import annotations

from deskbridge.cli.main import _sample_event
from deskbridge.relay import MessageCreatedEvent, MessageType, UnrecognizedEvent, parse_event


def test_parses_top_level_chatwoot_fields() -> None:
    event = parse_event(
        {
            "event": "message_created",
            "id": 99,
            "account": {"id": 7},
            "content": "Hi there",
            "message_type": "incoming",
            "private": False,
            "conversation": {"id": 12345},
            "sender": {"name": "Jane", "type": "contact"},
        }
    )

    assert isinstance(event, MessageCreatedEvent)
    assert event.kind == "message_created"
    assert event.conversation_id == 12345
    assert event.message_type is MessageType.INCOMING
    assert event.is_private is False
    assert event.content == "Hi there"
    assert event.sender_name == "Jane"
    assert event.account_id == 7
    assert event.message_id == 99


def test_falls_back_to_nested_message_with_integer_type() -> None:
    payload = {
        "event": "message_created",
        "conversation": {"id": 12345},
        "message": {
            "id": 67890,
            "content": "from nested",
            "private": True,
            "message_type": 1,
            "sender": {"name": "Agent Smith"},
        },
    }

    event = parse_event(payload)

    assert isinstance(event, MessageCreatedEvent)
    assert event.message_type is MessageType.OUTGOING
    assert event.is_private is True
    assert event.content == "from nested"
    assert event.sender_name == "Agent Smith"
    assert event.message_id == 67890


def test_non_object_payload_is_unrecognized() -> None:
    assert parse_event(["not", "a", "dict"]) == UnrecognizedEvent(reason="not_an_object")
    assert parse_event(None) == UnrecognizedEvent(reason="not_an_object")


def test_payload_without_conversation_is_unrecognized() -> None:
    event = parse_event({"event": "message_created", "content": "hello"})
    assert isinstance(event, UnrecognizedEvent)
    assert event.reason == "no_conversation"


def test_other_event_types_are_unrecognized() -> None:
    event = parse_event({"event": "conversation_status_changed", "conversation": {"id": 1}})
    assert isinstance(event, UnrecognizedEvent)
    assert event.reason == "unsupported_event"
    assert event.event_name == "conversation_status_changed"


def test_bad_conversation_id_is_unrecognized() -> None:
    event = parse_event({"event": "message_created", "conversation": {"id": "abc"}})
    assert isinstance(event, UnrecognizedEvent)
    assert event.reason == "invalid_conversation_id"

    event = parse_event({"event": "message_created", "conversation": {"id": True}})
    assert isinstance(event, UnrecognizedEvent)


def test_numeric_string_conversation_id_is_accepted() -> None:
    event = parse_event({"event": "message_created", "conversation": {"id": "42"}})
    assert isinstance(event, MessageCreatedEvent)
    assert event.conversation_id == 42


def test_missing_sender_and_content_default_safely() -> None:
    event = parse_event(
        {"event": "message_created", "conversation": {"id": 1}, "message_type": "incoming", "content": None}
    )
    assert isinstance(event, MessageCreatedEvent)
    assert event.sender_name is None
    assert event.content == ""
    assert event.is_private is False


def test_unknown_message_type_is_none() -> None:
    event = parse_event({"event": "message_created", "conversation": {"id": 1}, "message_type": "weird"})
    assert isinstance(event, MessageCreatedEvent)
    assert event.message_type is None


def test_cli_sample_event_parses_as_qualifying_message() -> None:
    event = parse_event(_sample_event("what about the session management", 12345, "Test User"))
    assert isinstance(event, MessageCreatedEvent)
    assert event.conversation_id == 12345
    assert event.message_type is MessageType.INCOMING
    assert event.sender_name == "Test User"
