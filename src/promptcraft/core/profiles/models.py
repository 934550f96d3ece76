"""Data models for target-tool profiles."""

from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Mapping

TOOL_CATEGORIES = ("editor", "ui_generator", "assistant", "ide")
COMPLEXITY_TIERS = ("beginner", "intermediate", "advanced")


@dataclass(frozen=True)
class PromptingStrategy:
    """One way of prompting a tool: a skeleton plus when it works best."""

    kind: str
    template: str
    use_cases: tuple[str, ...] = ()
    effectiveness: float = 0.5

    def applies_to(self, task_type: str) -> bool:
        return task_type in self.use_cases


@dataclass(frozen=True)
class Pitfall:
    """A known way prompts go wrong for a tool.

    ``forbidden_patterns`` are case-insensitive phrases; a prompt containing
    any of them trips the pitfall. A pitfall with no patterns is advisory.
    """

    name: str
    description: str = ""
    forbidden_patterns: tuple[str, ...] = ()


@dataclass(frozen=True)
class ToolProfile:
    """Conventions and prompting strategies for one target AI dev tool."""

    id: str
    display_name: str
    description: str
    category: str
    complexity: str
    output_format: str
    tone: str
    strategies: tuple[PromptingStrategy, ...]
    version: str = "1.0"
    constraints: tuple[str, ...] = ()
    optimization_tips: tuple[str, ...] = ()
    common_pitfalls: tuple[Pitfall, ...] = ()
    guidelines: tuple[str, ...] = ()
    default_tech_stack: tuple[str, ...] = ()
    stage_templates: Mapping[str, str] = field(default_factory=lambda: MappingProxyType({}))

    def stage_template(self, stage: str) -> str | None:
        """Skeleton override for a stage, if the profile declares one."""
        return self.stage_templates.get(stage)
