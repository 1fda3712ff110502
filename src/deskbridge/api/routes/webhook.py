"""Chatwoot webhook ingress."""

from __future__ import annotations

from typing import Any

import structlog
from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from deskbridge.relay import log_outcome

logger = structlog.get_logger()

router = APIRouter()


async def _read_payload(request: Request) -> Any:
    """Decoded JSON body, or None when the body is empty or not JSON."""
    try:
        return await request.json()
    except ValueError:
        logger.info("webhook.unreadable_body", content_type=request.headers.get("content-type"))
        return None


@router.post("/webhook")
async def chatwoot_webhook(request: Request) -> JSONResponse:
    """Always acknowledge with 200 so Chatwoot does not redeliver; 500 only on handler errors."""
    try:
        payload = await _read_payload(request)
        event_name = payload.get("event") if isinstance(payload, dict) else None
        logger.debug("webhook.received", event=event_name)

        outcome = await request.app.state.relay.handle_payload(payload)
        log_outcome(outcome)
        return JSONResponse(status_code=200, content={"status": "success"})
    except Exception:
        logger.exception("webhook.error")
        return JSONResponse(status_code=500, content={"error": "Internal server error"})
