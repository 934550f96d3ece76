"""Structural prompt validator.

Blocking checks cost a fixed penalty each; advisory suggestions never touch
the score.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field

from promptcraft.core.profiles.models import ToolProfile

logger = logging.getLogger(__name__)

MIN_PROMPT_LENGTH = 200
LONG_PROMPT_LENGTH = 2000
PENALTY_PER_ISSUE = 20

ACTIONABLE_MARKERS = re.compile(
    r"\b(build|create|implement|generate|design|add|ensure|include|use|provide|follow|set up)\b",
    re.IGNORECASE,
)
EXPECTED_SECTIONS = ("context", "requirements", "technical", "ui")
VAGUE_WORDS = ("nice", "good", "better", "improve", "enhance")
VAGUE_WORD_LIMIT = 3


@dataclass
class ValidationResult:
    """Outcome of structural validation."""

    is_valid: bool
    score: int
    issues: list[str] = field(default_factory=list)
    suggestions: list[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "is_valid": self.is_valid,
            "score": self.score,
            "issues": list(self.issues),
            "suggestions": list(self.suggestions),
        }


def validate_prompt(
    text: str,
    profile: ToolProfile | None = None,
    project_name: str | None = None,
) -> ValidationResult:
    """Run the structural checks against ``text``."""
    text = text or ""
    lowered = text.lower()
    issues: list[str] = []

    if len(text.strip()) < MIN_PROMPT_LENGTH:
        issues.append(
            f"Prompt is too short ({len(text.strip())} chars, minimum {MIN_PROMPT_LENGTH})"
        )

    if project_name and project_name.strip().lower() not in lowered:
        issues.append(f"Prompt does not mention the project name '{project_name.strip()}'")

    if not ACTIONABLE_MARKERS.search(text):
        issues.append("Prompt has no actionable instruction (build, create, implement, ...)")

    if profile is not None:
        for pitfall in profile.common_pitfalls:
            hit = next((p for p in pitfall.forbidden_patterns if p.lower() in lowered), None)
            if hit is not None:
                issues.append(f"{profile.display_name} pitfall '{pitfall.name}': contains '{hit}'")

    score = max(0, 100 - PENALTY_PER_ISSUE * len(issues))
    result = ValidationResult(
        is_valid=not issues,
        score=min(100, score),
        issues=issues,
        suggestions=_advisory(text, lowered),
    )
    if issues:
        logger.debug("Prompt validation found %d issue(s)", len(issues))
    return result


def _advisory(text: str, lowered: str) -> list[str]:
    suggestions: list[str] = []
    for section in EXPECTED_SECTIONS:
        if section not in lowered:
            suggestions.append(f"Consider adding a {section} section")

    vague = sum(len(re.findall(rf"\b{word}\b", lowered)) for word in VAGUE_WORDS)
    if vague > VAGUE_WORD_LIMIT:
        suggestions.append("Replace vague wording (nice, good, better, ...) with specific criteria")

    if len(text) > LONG_PROMPT_LENGTH:
        suggestions.append("Prompt is long; consider splitting it into incremental prompts")
    return suggestions
