"""Enhancement rewrites through the Anthropic Messages API."""

from __future__ import annotations

import logging
import time

from promptcraft.core.llm.provider import ProviderResponse

logger = logging.getLogger(__name__)

_TRUNCATED_STOP_REASONS = frozenset({"max_tokens"})


class AnthropicProvider:
    def __init__(
        self,
        api_key: str,
        model: str = "claude-sonnet-4-5-20250929",
        *,
        request_timeout_s: float | None = None,
    ) -> None:
        import anthropic

        client_options: dict = {"api_key": api_key, "max_retries": 0}
        if request_timeout_s is not None:
            client_options["timeout"] = request_timeout_s
        self.client = anthropic.AsyncAnthropic(**client_options)
        self.model = model

    async def generate(
        self,
        system_message: str,
        user_message: str,
        max_tokens: int = 2048,
        temperature: float = 0.3,
    ) -> ProviderResponse:
        started = time.monotonic()
        message = await self.client.messages.create(
            model=self.model,
            system=system_message,
            messages=[{"role": "user", "content": user_message}],
            max_tokens=max_tokens,
            temperature=temperature,
        )
        latency_ms = (time.monotonic() - started) * 1000

        # Only text blocks carry the rewritten prompt.
        rewritten = "".join(
            block.text for block in message.content if getattr(block, "type", "") == "text"
        )
        stop_reason = getattr(message, "stop_reason", None)
        logger.debug("Anthropic rewrite finished: stop_reason=%s, %d chars", stop_reason, len(rewritten))

        usage = getattr(message, "usage", None)
        return ProviderResponse(
            content=rewritten,
            input_tokens=getattr(usage, "input_tokens", 0) or 0,
            output_tokens=getattr(usage, "output_tokens", 0) or 0,
            model=getattr(message, "model", None) or self.model,
            latency_ms=latency_ms,
            truncated=stop_reason in _TRUNCATED_STOP_REASONS,
        )
