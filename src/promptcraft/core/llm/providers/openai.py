"""Enhancement rewrites through the OpenAI Chat Completions API."""

from __future__ import annotations

import logging
import time

from promptcraft.core.llm.provider import ProviderResponse

logger = logging.getLogger(__name__)


class OpenAIProvider:
    """Sends the rewrite instructions as the system turn and the draft request as the user turn."""

    def __init__(
        self,
        api_key: str,
        model: str = "gpt-4o",
        *,
        request_timeout_s: float | None = None,
    ) -> None:
        import openai

        client_options: dict = {"api_key": api_key, "max_retries": 0}
        if request_timeout_s is not None:
            client_options["timeout"] = request_timeout_s
        self.client = openai.AsyncOpenAI(**client_options)
        self.model = model

    async def generate(
        self,
        system_message: str,
        user_message: str,
        max_tokens: int = 2048,
        temperature: float = 0.3,
    ) -> ProviderResponse:
        started = time.monotonic()
        completion = await self.client.chat.completions.create(
            model=self.model,
            messages=[
                {"role": "system", "content": system_message},
                {"role": "user", "content": user_message},
            ],
            max_tokens=max_tokens,
            temperature=temperature,
        )
        latency_ms = (time.monotonic() - started) * 1000

        if not completion.choices:
            logger.warning("OpenAI returned no choices for model %s", self.model)
            rewritten, finish_reason = "", None
        else:
            choice = completion.choices[0]
            rewritten = choice.message.content or ""
            finish_reason = choice.finish_reason
        logger.debug("OpenAI rewrite finished: finish_reason=%s, %d chars", finish_reason, len(rewritten))

        usage = completion.usage
        return ProviderResponse(
            content=rewritten,
            input_tokens=usage.prompt_tokens if usage else 0,
            output_tokens=usage.completion_tokens if usage else 0,
            model=completion.model or self.model,
            latency_ms=latency_ms,
            truncated=finish_reason == "length",
        )
