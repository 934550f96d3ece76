"""Provider seam for the enhancement rewrite.

The enhancer needs exactly one capability from an LLM: take the rewrite
instructions and a draft, hand back the rewritten text. Each provider module
under ``promptcraft.core.llm.providers`` adapts one SDK to that shape.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol, runtime_checkable

DEFAULT_MODELS = {
    "anthropic": "claude-sonnet-4-5-20250929",
    "openai": "gpt-4o",
    "mock": "mock",
}


@dataclass
class ProviderResponse:
    """One completed rewrite call.

    ``truncated`` is set when the model stopped on the token limit rather
    than finishing; a cut-off rewrite is never a usable prompt.
    """

    content: str
    input_tokens: int
    output_tokens: int
    model: str
    latency_ms: float
    truncated: bool = False


@runtime_checkable
class LLMProvider(Protocol):
    """Text in, text out. Implementations may raise on any transport error."""

    async def generate(
        self,
        system_message: str,
        user_message: str,
        max_tokens: int = 2048,
        temperature: float = 0.3,
    ) -> ProviderResponse: ...


def create_provider(
    provider_name: str,
    api_key: str = "",
    model: str = "",
    *,
    request_timeout_s: float | None = None,
) -> LLMProvider:
    """Build the enhancement provider named by configuration.

    SDK clients are created with retries off: the enhancer bounds the whole
    call with its own timeout and falls back to the draft on any failure.

    Args:
        provider_name: "anthropic", "openai", or "mock"
        api_key: API key for the provider.
        model: Model identifier; empty selects the provider default.
        request_timeout_s: Transport timeout handed to the SDK client.
    """
    if provider_name not in DEFAULT_MODELS:
        raise ValueError(f"Unknown LLM provider: {provider_name}")
    model = model or DEFAULT_MODELS[provider_name]

    if provider_name == "anthropic":
        from promptcraft.core.llm.providers.anthropic import AnthropicProvider

        return AnthropicProvider(api_key=api_key, model=model, request_timeout_s=request_timeout_s)
    if provider_name == "openai":
        from promptcraft.core.llm.providers.openai import OpenAIProvider

        return OpenAIProvider(api_key=api_key, model=model, request_timeout_s=request_timeout_s)

    from promptcraft.core.llm.providers.mock import MockProvider

    return MockProvider()
