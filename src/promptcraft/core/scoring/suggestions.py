"""Enhancement suggestions shown alongside a generated prompt."""

from __future__ import annotations

from promptcraft.core.context.models import TaskContext
from promptcraft.core.knowledge.models import RetrievalStats
from promptcraft.core.llm.enhancer import EnhancementOutcome
from promptcraft.core.profiles.models import ToolProfile
from promptcraft.core.stages import PromptStage

# (tool id, stage or None for every stage) -> suggestion
TOOL_SUGGESTIONS: dict[tuple[str, PromptStage | None], str] = {
    ("lovable", PromptStage.SKELETON): (
        "Consider setting up Knowledge Base with project requirements"
    ),
    ("bolt", None): "Use the enhance prompt feature for more detailed specifications",
    ("v0", PromptStage.PAGE_UI): "Generate one component at a time and iterate on each",
}

# Cursor works best with small diffs.
INCREMENTAL_TOOLS = frozenset({"cursor"})
INCREMENTAL_REQUIREMENT_LIMIT = 3


def suggest_enhancements(
    task_context: TaskContext,
    profile: ToolProfile,
    stats: RetrievalStats,
    enhancement: EnhancementOutcome,
    stage: PromptStage = PromptStage.SKELETON,
) -> list[str]:
    suggestions: list[str] = []

    if not task_context.technical_requirements:
        suggestions.append("Add specific technical requirements for better results")
    if not task_context.ui_requirements:
        suggestions.append("Describe the intended look and feel to get consistent UI output")
    if not task_context.constraints:
        suggestions.append("Define constraints to avoid scope creep")

    if stats.used == 0:
        suggestions.append(
            "No reference knowledge matched; a more detailed description improves retrieval"
        )
    if not enhancement.applied and enhancement.reason != "disabled":
        suggestions.append("AI enhancement was unavailable; review the draft before use")

    if (
        profile.id in INCREMENTAL_TOOLS
        and len(task_context.technical_requirements) > INCREMENTAL_REQUIREMENT_LIMIT
    ):
        suggestions.append("Break this into smaller, incremental changes for better results")

    for (tool_id, tool_stage), text in TOOL_SUGGESTIONS.items():
        if tool_id == profile.id and tool_stage in (None, stage):
            suggestions.append(text)

    return suggestions
