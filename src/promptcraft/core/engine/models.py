"""Result records returned by the generation service."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from promptcraft.core.llm.enhancer import EnhancementOutcome
from promptcraft.core.scoring.validator import ValidationResult


@dataclass
class GeneratedPrompt:
    """A generation-ready prompt plus everything known about how it was made."""

    text: str
    tool_id: str
    stage: str
    confidence_score: float
    enhancement: EnhancementOutcome
    validation: ValidationResult
    strategy_kind: str = ""
    enhancement_suggestions: list[str] = field(default_factory=list)
    tool_optimizations: list[str] = field(default_factory=list)
    knowledge_sources: list[str] = field(default_factory=list)
    next_suggested_stage: str | None = None
    degradations: list[str] = field(default_factory=list)
    latency_ms: float = 0.0

    def to_dict(self) -> dict[str, Any]:
        return {
            "prompt": self.text,
            "tool_id": self.tool_id,
            "stage": self.stage,
            "confidence_score": round(self.confidence_score, 3),
            "strategy": self.strategy_kind,
            "enhancement_suggestions": list(self.enhancement_suggestions),
            "tool_optimizations": list(self.tool_optimizations),
            "knowledge_sources": list(self.knowledge_sources),
            "next_suggested_stage": self.next_suggested_stage,
            "enhancement": self.enhancement.to_dict(),
            "validation": self.validation.to_dict(),
            "degradations": list(self.degradations),
            "latency_ms": round(self.latency_ms, 1),
        }
