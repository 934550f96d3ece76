"""Enhancement client — one best-effort LLM rewrite of the composed draft."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field

from promptcraft.core.errors import EnhancementSkipped
from promptcraft.core.llm.provider import LLMProvider
from promptcraft.core.llm.response import check_enhanced_text, clean_enhanced_text
from promptcraft.core.llm.system_prompt import (
    ENHANCEMENT_SYSTEM_PROMPT,
    build_enhancement_request,
)
from promptcraft.core.profiles.models import ToolProfile

logger = logging.getLogger(__name__)

# Confidence attached to an accepted rewrite. The provider gives no signal of
# its own, so this is fixed.
APPLIED_CONFIDENCE = 0.8


@dataclass
class EnhancementOutcome:
    """What the enhancement stage did for one request."""

    applied: bool
    confidence: float = 0.0
    sources: list[str] = field(default_factory=list)
    reason: str = ""
    model: str = ""

    def to_dict(self) -> dict:
        return {
            "applied": self.applied,
            "confidence": round(self.confidence, 3),
            "sources": list(self.sources),
            "reason": self.reason,
            "model": self.model,
        }


class PromptEnhancer:
    """Wraps an LLMProvider with a timeout and output checks.

    ``enhance`` never raises (except CancelledError): every failure yields the
    original draft and an outcome with ``applied=False``.
    """

    def __init__(
        self,
        provider: LLMProvider | None,
        *,
        enabled: bool = True,
        timeout_s: float = 8.0,
        max_tokens: int = 2048,
        temperature: float = 0.3,
    ) -> None:
        self.provider = provider
        self.enabled = enabled and provider is not None
        self.timeout_s = timeout_s
        self.max_tokens = max_tokens
        self.temperature = temperature

    async def enhance(
        self,
        draft: str,
        profile: ToolProfile,
        project_name: str = "",
        sources: list[str] | None = None,
    ) -> tuple[str, EnhancementOutcome]:
        """Return (text, outcome). ``text`` is ``draft`` unless applied."""
        sources = list(sources or [])
        try:
            text, model = await self._attempt(draft, profile, project_name)
        except EnhancementSkipped as exc:
            logger.info("Enhancement skipped for %s: %s", profile.id, exc)
            return draft, EnhancementOutcome(applied=False, sources=sources, reason=str(exc))

        return text, EnhancementOutcome(
            applied=True,
            confidence=APPLIED_CONFIDENCE,
            sources=sources,
            reason="enhanced",
            model=model,
        )

    async def _attempt(self, draft: str, profile: ToolProfile, project_name: str) -> tuple[str, str]:
        if not self.enabled:
            raise EnhancementSkipped("disabled")

        request = build_enhancement_request(
            draft, profile.display_name, profile.tone, profile.output_format
        )
        try:
            response = await asyncio.wait_for(
                self.provider.generate(
                    system_message=ENHANCEMENT_SYSTEM_PROMPT,
                    user_message=request,
                    max_tokens=self.max_tokens,
                    temperature=self.temperature,
                ),
                timeout=self.timeout_s,
            )
        except asyncio.TimeoutError:
            raise EnhancementSkipped(f"timed out after {self.timeout_s:.1f}s") from None
        except Exception as exc:
            logger.exception("Enhancement provider call failed")
            raise EnhancementSkipped(f"provider error ({type(exc).__name__})") from exc

        logger.info(
            "Enhancement call: tool=%s, model=%s, tokens=%d+%d, latency=%.0fms",
            profile.id,
            response.model,
            response.input_tokens,
            response.output_tokens,
            response.latency_ms,
        )

        if response.truncated:
            raise EnhancementSkipped("malformed output: response truncated at the token limit")

        text = clean_enhanced_text(response.content)
        problems = check_enhanced_text(text, draft, project_name)
        if problems:
            raise EnhancementSkipped("malformed output: " + "; ".join(problems))
        return text, response.model
