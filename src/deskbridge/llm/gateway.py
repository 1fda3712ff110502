"""LiteLLM gateway — async wrapper for hosted model access."""

from __future__ import annotations

import time
from typing import Any

import litellm
import structlog

from deskbridge.config import LLMConfig
from deskbridge.errors import ModelError

logger = structlog.get_logger()

# Suppress litellm's noisy logging
litellm.suppress_debug_info = True
litellm.drop_params = True


class LLMGateway:
    """Async wrapper around LiteLLM used to answer customer messages."""

    def __init__(self, config: LLMConfig) -> None:
        self.config = config
        self.total_tokens_used = 0
        self.total_cost = 0.0
        self.request_count = 0
        self.error_count = 0

    async def invoke(self, system_prompt: str, user_message: str) -> str:
        """Answer one user turn preceded by a system instruction."""
        response = await self.completion(
            [
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": user_message},
            ]
        )
        content = response.choices[0].message.content
        if not isinstance(content, str) or not content.strip():
            raise ModelError("Model returned an empty reply")
        return content

    async def completion(self, messages: list[dict[str, Any]]) -> Any:
        """Send a completion request through LiteLLM."""
        model = self.config.model
        kwargs: dict[str, Any] = {
            "model": model,
            "messages": messages,
            "temperature": self.config.temperature,
            "max_tokens": self.config.max_tokens,
            "timeout": self.config.timeout_s,
        }
        if self.config.api_key:
            kwargs["api_key"] = self.config.api_key
        if self.config.api_base:
            kwargs["api_base"] = self.config.api_base

        start = time.monotonic()
        self.request_count += 1
        request_id = self.request_count

        logger.info(
            "llm.request",
            request_id=request_id,
            model=model,
            message_count=len(messages),
        )

        try:
            response = await litellm.acompletion(**kwargs)
        except Exception as e:
            self.error_count += 1
            logger.error("llm.error", request_id=request_id, error=str(e), model=model)
            raise

        usage = getattr(response, "usage", None)
        if usage:
            tokens = getattr(usage, "total_tokens", 0) or 0
            self.total_tokens_used += tokens
            try:
                cost = litellm.completion_cost(completion_response=response)
            except Exception:
                cost = 0.0  # Unknown or self-hosted models have no price
            self.total_cost += cost
            logger.info(
                "llm.response",
                request_id=request_id,
                tokens=tokens,
                cost=f"${cost:.6f}",
                duration=f"{time.monotonic() - start:.2f}s",
            )
        return response

    @property
    def stats(self) -> dict[str, Any]:
        """Return usage statistics."""
        return {
            "total_tokens": self.total_tokens_used,
            "total_cost": f"${self.total_cost:.6f}",
            "request_count": self.request_count,
            "error_count": self.error_count,
            "model": self.config.model,
        }
