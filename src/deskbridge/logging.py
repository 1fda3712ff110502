"""Structured logging for the relay and the widget page.

Every line carries the service it came from. Chatwoot tokens and provider
keys are redacted before rendering, and chatty HTTP/model client loggers are
held at WARNING so one webhook produces a handful of lines.
"""

from __future__ import annotations

import logging
import sys
from collections.abc import Iterable, MutableMapping
from typing import Any

import structlog

THIRD_PARTY_LOGGERS = ("uvicorn.access", "httpcore", "httpx", "litellm", "LiteLLM")
SECRET_KEYS = frozenset({"api_key", "api_token", "api_access_token", "authorization", "token"})
REDACTED = "***"


def redact_secrets(
    _logger: Any, _method: str, event_dict: MutableMapping[str, Any]
) -> MutableMapping[str, Any]:
    for key in event_dict.keys() & SECRET_KEYS:
        if event_dict[key]:
            event_dict[key] = REDACTED
    return event_dict


def _processors(service: str) -> list[structlog.types.Processor]:
    def add_service(
        _logger: Any, _method: str, event_dict: MutableMapping[str, Any]
    ) -> MutableMapping[str, Any]:
        event_dict.setdefault("service", service)
        return event_dict

    return [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        add_service,
        redact_secrets,
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]


def _renderer(fmt: str) -> structlog.types.Processor:
    if fmt == "console":
        return structlog.dev.ConsoleRenderer(colors=sys.stdout.isatty())
    return structlog.processors.JSONRenderer()


def quiet_third_party(names: Iterable[str] = THIRD_PARTY_LOGGERS, level: int = logging.WARNING) -> None:
    for name in names:
        logging.getLogger(name).setLevel(level)


def setup_logging(level: str = "INFO", fmt: str = "json", *, service: str = "deskbridge") -> None:
    """Route structlog and stdlib records through one stdout handler."""
    processors = _processors(service)

    structlog.configure(
        processors=[*processors, structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            processors=[
                structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                structlog.processors.format_exc_info,
                _renderer(fmt),
            ],
            foreign_pre_chain=processors,
        )
    )

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(getattr(logging, level.upper(), logging.INFO))

    quiet_third_party()


def preview(text: str | None, limit: int = 80) -> str:
    """Shorten message content for log lines."""
    value = (text or "").replace("\n", " ")
    if len(value) <= limit:
        return value
    return value[:limit] + "..."
