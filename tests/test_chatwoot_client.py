from __future__ import annotations

import json

import httpx
import pytest

from deskbridge.config import HelpdeskConfig
from deskbridge.errors import ConfigError, HelpdeskError
from deskbridge.helpdesk import ChatwootClient, ReplyRequest


def _config(**overrides) -> HelpdeskConfig:
    values = {"base_url": "https://chatwoot.test/", "api_token": "secret-token", "account_id": 42}
    values.update(overrides)
    return HelpdeskConfig(**values)


@pytest.mark.asyncio
async def test_post_reply_sends_outgoing_public_message() -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json={"id": 9001, "content": "ok"})

    client = ChatwootClient(_config(), transport=httpx.MockTransport(handler))
    message_id = await client.post_reply(12345, "Here you go")
    await client.aclose()

    assert message_id == 9001
    request = seen[0]
    assert request.method == "POST"
    assert str(request.url) == "https://chatwoot.test/api/v1/accounts/42/conversations/12345/messages"
    assert request.headers["api_access_token"] == "secret-token"
    assert request.headers["Authorization"] == "Bearer secret-token"
    assert json.loads(request.content) == {
        "content": "Here you go",
        "message_type": "outgoing",
        "private": False,
    }


@pytest.mark.asyncio
async def test_error_status_raises_helpdesk_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(401, json={"error": "You need to sign in"})

    client = ChatwootClient(_config(), transport=httpx.MockTransport(handler))
    with pytest.raises(HelpdeskError) as excinfo:
        await client.post_reply(1, "hello")
    await client.aclose()

    assert excinfo.value.status_code == 401
    assert "sign in" in excinfo.value.body


@pytest.mark.asyncio
async def test_transport_error_raises_helpdesk_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    client = ChatwootClient(_config(), transport=httpx.MockTransport(handler))
    with pytest.raises(HelpdeskError):
        await client.post_reply(1, "hello")
    await client.aclose()


@pytest.mark.asyncio
async def test_empty_response_body_yields_no_message_id() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(204)

    client = ChatwootClient(_config(), transport=httpx.MockTransport(handler))
    assert await client.post_reply(1, "hello") is None
    await client.aclose()


@pytest.mark.asyncio
async def test_missing_token_sends_no_auth_headers() -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json={"id": 1})

    client = ChatwootClient(_config(api_token=""), transport=httpx.MockTransport(handler))
    await client.post_reply(1, "hello")
    await client.aclose()

    assert "api_access_token" not in seen[0].headers
    assert "Authorization" not in seen[0].headers


def test_blank_base_url_is_a_config_error() -> None:
    with pytest.raises(ConfigError):
        ChatwootClient(_config(base_url="  "))


def test_reply_request_payload() -> None:
    request = ReplyRequest(conversation_id=7, content="hi")
    assert request.to_payload() == {"content": "hi", "message_type": "outgoing", "private": False}
