"""Mock LLM provider for testing and keyless local runs."""

from __future__ import annotations

import asyncio
from typing import Callable

from promptcraft.core.llm.provider import ProviderResponse


class MockProvider:
    """Returns a canned (or computed) response and records what it was sent.

    ``responder`` maps the user message to the reply and wins over
    ``response_content``. ``error`` is raised on every call, after ``delay_s``.
    ``truncated`` marks every reply as cut off at the token limit.
    """

    def __init__(
        self,
        response_content: str = "Mock LLM response.",
        *,
        responder: Callable[[str], str] | None = None,
        delay_s: float = 0.0,
        error: Exception | None = None,
        truncated: bool = False,
    ) -> None:
        self.response_content = response_content
        self.responder = responder
        self.delay_s = delay_s
        self.error = error
        self.truncated = truncated
        self.last_system_message: str = ""
        self.last_user_message: str = ""
        self.call_count: int = 0

    async def generate(
        self,
        system_message: str,
        user_message: str,
        max_tokens: int = 2048,
        temperature: float = 0.3,
    ) -> ProviderResponse:
        self.last_system_message = system_message
        self.last_user_message = user_message
        self.call_count += 1
        if self.delay_s:
            await asyncio.sleep(self.delay_s)
        if self.error is not None:
            raise self.error

        content = self.responder(user_message) if self.responder else self.response_content
        return ProviderResponse(
            content=content,
            input_tokens=len(system_message.split()) + len(user_message.split()),
            output_tokens=len(content.split()),
            model="mock",
            latency_ms=self.delay_s * 1000,
            truncated=self.truncated,
        )
