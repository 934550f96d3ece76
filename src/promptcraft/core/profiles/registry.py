"""Tool profile registry — in-memory index of loaded profiles."""

from __future__ import annotations

import logging

from promptcraft.core.errors import UnsupportedToolError
from promptcraft.core.profiles.models import PromptingStrategy, ToolProfile
from promptcraft.core.stages import PromptStage, parse_stage, stage_task_type

logger = logging.getLogger(__name__)


def rank_strategies(
    strategies: tuple[PromptingStrategy, ...] | list[PromptingStrategy],
    task_type: str,
) -> list[PromptingStrategy]:
    """Order strategies for a task type.

    Strategies whose use-cases include the task type come back sorted by
    descending effectiveness (stable, so ties keep declaration order). When
    none apply, every strategy is returned in that same order.
    """
    applicable = [s for s in strategies if s.applies_to(task_type)]
    pool = applicable or list(strategies)
    return sorted(pool, key=lambda s: -s.effectiveness)


class ToolProfileRegistry:
    """Read-only (after startup) registry of tool profiles."""

    def __init__(self) -> None:
        self._profiles: dict[str, ToolProfile] = {}
        self._by_category: dict[str, list[str]] = {}

    def register(self, profile: ToolProfile) -> None:
        """Add a profile to all indexes."""
        if profile.id in self._profiles:
            raise ValueError(f"Duplicate tool profile id registered: {profile.id!r}")
        self._profiles[profile.id] = profile
        self._by_category.setdefault(profile.category, []).append(profile.id)

    def get_profile(self, tool_id: str) -> ToolProfile:
        """Look up a profile, raising UnsupportedToolError for unknown ids."""
        profile = self._profiles.get(tool_id)
        if profile is None:
            raise UnsupportedToolError(tool_id, self.list_tools())
        return profile

    def get(self, tool_id: str) -> ToolProfile | None:
        return self._profiles.get(tool_id)

    def list_tools(self) -> list[str]:
        """Tool ids in registration order."""
        return list(self._profiles)

    def find_by_category(self, category: str) -> list[ToolProfile]:
        return [self._profiles[tid] for tid in self._by_category.get(category, [])]

    def list_strategies_for(
        self, tool_id: str, stage: str | PromptStage
    ) -> list[PromptingStrategy]:
        """Strategies for a tool at a stage, best first."""
        profile = self.get_profile(tool_id)
        return rank_strategies(profile.strategies, stage_task_type(parse_stage(stage)))

    def all(self) -> list[ToolProfile]:
        return list(self._profiles.values())

    def __contains__(self, tool_id: object) -> bool:
        return tool_id in self._profiles

    def __len__(self) -> int:
        return len(self._profiles)
