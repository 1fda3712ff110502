"""Chatwoot conversation-reply client."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

import httpx
import structlog

from deskbridge.config import HelpdeskConfig
from deskbridge.errors import ConfigError, HelpdeskError
from deskbridge.logging import preview

logger = structlog.get_logger()


@dataclass(frozen=True)
class ReplyRequest:
    """One message to append to a Chatwoot conversation."""

    conversation_id: int
    content: str
    message_type: str = "outgoing"
    private: bool = False

    def to_payload(self) -> dict[str, Any]:
        return {
            "content": self.content,
            "message_type": self.message_type,
            "private": self.private,
        }


class ChatwootClient:
    """Posts replies through the Chatwoot application API."""

    def __init__(
        self,
        config: HelpdeskConfig,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        if not config.base_url.strip():
            raise ConfigError("Chatwoot base URL is not configured")
        if not config.account_id:
            logger.warning("helpdesk.account_missing", base_url=config.base_url)
        self.config = config
        headers = {"Content-Type": "application/json"}
        token = config.api_token.strip()
        if token:
            headers["api_access_token"] = token
            headers["Authorization"] = f"Bearer {token}"
        else:
            logger.warning("helpdesk.token_missing", base_url=config.base_url)
        self._client = httpx.AsyncClient(
            base_url=config.base_url.rstrip("/"),
            headers=headers,
            timeout=httpx.Timeout(config.timeout_s),
            transport=transport,
        )

    def messages_path(self, conversation_id: int) -> str:
        return (
            f"/api/v1/accounts/{self.config.account_id}"
            f"/conversations/{conversation_id}/messages"
        )

    async def post_reply(
        self,
        conversation_id: int,
        content: str,
        *,
        outgoing: bool = True,
        private: bool = False,
    ) -> int | None:
        """Append a message to the conversation and return the new message id."""
        request = ReplyRequest(
            conversation_id=conversation_id,
            content=content,
            message_type="outgoing" if outgoing else "incoming",
            private=private,
        )
        return await self.send(request)

    async def send(self, request: ReplyRequest) -> int | None:
        path = self.messages_path(request.conversation_id)
        try:
            response = await self._client.post(path, json=request.to_payload())
        except httpx.HTTPError as exc:
            raise HelpdeskError(f"Chatwoot request failed: {exc}") from exc

        if response.status_code >= 400:
            raise HelpdeskError(
                f"Chatwoot rejected reply with HTTP {response.status_code}",
                status_code=response.status_code,
                body=response.text[:300],
            )

        message_id = _message_id(response)
        logger.info(
            "helpdesk.reply.sent",
            conversation_id=request.conversation_id,
            message_id=message_id,
            preview=preview(request.content),
        )
        return message_id

    async def aclose(self) -> None:
        await self._client.aclose()


def _message_id(response: httpx.Response) -> int | None:
    if not response.content:
        return None
    try:
        payload = response.json()
    except ValueError:
        return None
    if not isinstance(payload, dict):
        return None
    value = payload.get("id")
    return value if isinstance(value, int) else None
