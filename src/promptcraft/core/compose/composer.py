"""Strategy & template composer — builds the deterministic draft prompt.

``compose`` is pure: identical inputs give byte-identical text. Nothing here
reads the clock, the environment, or any random source.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Sequence

from promptcraft.core.compose.renderer import (
    collapse_blank_lines,
    fill_known,
    fill_template,
    render_list_section,
)
from promptcraft.core.context.models import ProjectInfo, TaskContext
from promptcraft.core.errors import CompositionFailure
from promptcraft.core.knowledge.models import RetrievalResult
from promptcraft.core.profiles.models import PromptingStrategy, ToolProfile
from promptcraft.core.profiles.registry import rank_strategies
from promptcraft.core.stages import PromptStage, parse_stage

logger = logging.getLogger(__name__)

DEFAULT_EXCERPT_LIMIT = 3


@dataclass(frozen=True)
class ComposedDraft:
    """The filled skeleton plus what went into it."""

    text: str
    strategy: PromptingStrategy
    template_id: str | None = None
    document_ids: tuple[str, ...] = ()

    @property
    def sources(self) -> list[str]:
        """Ids of retrieved records quoted in the draft, documents first."""
        ids = list(self.document_ids)
        if self.template_id:
            ids.append(self.template_id)
        return ids


def select_strategy(profile: ToolProfile, task_type: str) -> PromptingStrategy:
    """Highest-effectiveness applicable strategy; first declared wins ties."""
    ranked = rank_strategies(profile.strategies, task_type)
    if not ranked:
        raise CompositionFailure(f"Profile {profile.id!r} has no prompting strategies")
    return ranked[0]


def compose(
    task_context: TaskContext,
    project_info: ProjectInfo,
    profile: ToolProfile,
    documents: Sequence[RetrievalResult],
    templates: Sequence[RetrievalResult],
    stage: str | PromptStage,
    excerpt_limit: int = DEFAULT_EXCERPT_LIMIT,
) -> ComposedDraft:
    """Fill the selected skeleton for this request.

    Raises CompositionFailure when the skeleton is malformed or uses a
    placeholder we cannot fill.
    """
    stage = parse_stage(stage)
    strategy = select_strategy(profile, task_context.task_type)
    skeleton = profile.stage_template(stage.value) or strategy.template

    values = _base_values(task_context, project_info, profile, stage)

    top_documents = _top(documents, max(0, excerpt_limit))
    best_template = _top(templates, 1)
    values["knowledge"] = _knowledge_section(top_documents, best_template, values)

    text = collapse_blank_lines(fill_template(skeleton, values))
    if not text:
        raise CompositionFailure(f"Skeleton for {profile.id!r} rendered to empty text")

    logger.debug(
        "Composed %s draft for %s with strategy %s (%d chars)",
        stage.value,
        profile.id,
        strategy.kind,
        len(text),
    )
    return ComposedDraft(
        text=text,
        strategy=strategy,
        template_id=best_template[0].id if best_template else None,
        document_ids=tuple(r.id for r in top_documents),
    )


# ---------------------------------------------------------------------------
# Placeholder values
# ---------------------------------------------------------------------------

def _base_values(
    task: TaskContext,
    project: ProjectInfo,
    profile: ToolProfile,
    stage: PromptStage,
) -> dict[str, str]:
    guidance = list(dict.fromkeys([*profile.guidelines, *profile.optimization_tips]))
    return {
        "tool_name": profile.display_name,
        "tone": profile.tone,
        "output_format": profile.output_format,
        "project_name": project.name,
        "project_description": project.description,
        "task_type": task.task_type.replace("_", " "),
        "description": task.description,
        "tech_stack": ", ".join(project.tech_stack),
        "target_audience": project.target_audience,
        "technical_requirements": render_list_section(
            "Technical Requirements", task.technical_requirements
        ),
        "ui_requirements": render_list_section("UI Requirements", task.ui_requirements),
        "constraints": render_list_section("Constraints", task.constraints),
        "guidelines": render_list_section(f"{profile.display_name} Guidelines", guidance),
        "stage": stage.value.replace("_", " "),
    }


def _top(results: Sequence[RetrievalResult], k: int) -> list[RetrievalResult]:
    # sorted() is stable, so equal scores keep retrieval order.
    return sorted(results, key=lambda r: -r.similarity_score)[:k]


def _knowledge_section(
    documents: list[RetrievalResult],
    templates: list[RetrievalResult],
    values: dict[str, str],
) -> str:
    parts: list[str] = []
    for result in documents:
        parts.append(f"#### {result.title}\n{result.content.strip()}")
    for result in templates:
        filled = fill_known(result.content, values)
        parts.append(f"#### Template: {result.title}\n{filled.strip()}")
    if not parts:
        return ""
    return "### Reference Knowledge\n" + "\n\n".join(parts)
