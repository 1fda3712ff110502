"""Deskbridge — FastAPI application entrypoint."""

from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import structlog
import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from deskbridge.config import DeskbridgeConfig
from deskbridge.helpdesk import ChatwootClient
from deskbridge.llm.gateway import LLMGateway
from deskbridge.logging import setup_logging
from deskbridge.relay import RelayService
from deskbridge.relay.service import ModelClient, ReplyClient

logger = structlog.get_logger()


def create_app(
    config: DeskbridgeConfig | None = None,
    *,
    model_client: ModelClient | None = None,
    reply_client: ReplyClient | None = None,
) -> FastAPI:
    """Create the relay application.

    The model and reply clients are built once here (unless injected) and
    handed to a single RelayService shared by every request.
    """
    config = config or DeskbridgeConfig.load()

    owned_chatwoot: ChatwootClient | None = None
    if model_client is None:
        model_client = LLMGateway(config.llm)
    if reply_client is None:
        owned_chatwoot = ChatwootClient(config.helpdesk)
        reply_client = owned_chatwoot

    relay = RelayService(
        model_client=model_client,
        reply_client=reply_client,
        system_prompt=config.llm.system_prompt,
        banned_sender_substrings=config.relay.banned_sender_substrings,
    )

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        """Application startup/shutdown lifecycle."""
        logger.info(
            "deskbridge.ready",
            model=config.llm.model,
            helpdesk=config.helpdesk.base_url,
            account_id=config.helpdesk.account_id,
            port=config.port,
        )
        yield
        logger.info("deskbridge.shutting_down")
        if owned_chatwoot is not None:
            await owned_chatwoot.aclose()
        logger.info("deskbridge.stopped")

    app = FastAPI(
        title="Deskbridge — Chatwoot AI relay",
        version="1.0.0",
        description="Answers Chatwoot customer messages with a hosted language model.",
        lifespan=lifespan,
    )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.cors_origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.state.config = config
    app.state.model_client = model_client
    app.state.reply_client = reply_client
    app.state.relay = relay

    from deskbridge.api.routes.health import router as health_router
    from deskbridge.api.routes.webhook import router as webhook_router

    app.include_router(health_router, tags=["health"])
    app.include_router(webhook_router, tags=["webhook"])

    return app


def run(config: DeskbridgeConfig, *, host: str | None = None, port: int | None = None) -> None:
    """Serve the relay with uvicorn."""
    setup_logging(level=config.log_level, fmt=config.log_format, service=config.service_name)
    app = create_app(config)
    uvicorn.run(
        app,
        host=host or config.host,
        port=port or config.port,
        log_level="warning",
    )


def main() -> None:
    """Run the server directly."""
    run(DeskbridgeConfig.load())


if __name__ == "__main__":
    main()
