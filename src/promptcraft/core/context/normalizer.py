"""Context normalizer — maps loosely-typed wizard input to TaskContext/ProjectInfo.

The wizard sends camelCase keys, API callers tend to send snake_case; both are
accepted. Apart from the project name and description nothing is required:
unknown or missing values simply contribute no derived requirements.
"""

from __future__ import annotations

import logging
from typing import Any, Iterable, Mapping, Sequence

from promptcraft.core.context import tables
from promptcraft.core.context.models import ProjectInfo, TaskContext
from promptcraft.core.errors import MissingRequiredFieldError
from promptcraft.core.stages import PromptStage, parse_stage, stage_task_type

logger = logging.getLogger(__name__)

_NAME_KEYS = ("appName", "app_name", "projectName", "project_name", "name")
_DESCRIPTION_KEYS = (
    "ideaDescription", "idea_description", "appDescription", "app_description", "description",
)
_PLATFORM_KEYS = ("platforms", "platform")
_STYLE_KEYS = ("designStyle", "design_style", "style")
_STYLE_DESCRIPTION_KEYS = ("styleDescription", "style_description")
_AUDIENCE_KEYS = ("targetAudience", "target_audience")
_REQUIREMENT_KEYS = ("requirements", "features")
_COMPLEXITY_KEYS = ("projectComplexity", "project_complexity", "complexity")
_EXPERIENCE_KEYS = ("technicalExperience", "technical_experience", "experience")
_PREFERRED_TOOL_KEYS = ("preferredAITool", "preferred_ai_tool", "preferredTool", "preferred_tool")


def normalize(
    raw_app_idea: Mapping[str, Any] | None,
    raw_validation_answers: Mapping[str, Any] | None = None,
    tool_id: str | None = None,
    *,
    stage: str | PromptStage | None = None,
    default_stack: Sequence[str] | None = None,
) -> tuple[TaskContext, ProjectInfo]:
    """Derive the canonical request records.

    ``default_stack`` (a profile's declared stack) takes precedence over the
    built-in per-tool table. Raises MissingRequiredFieldError when the project
    name or description is absent or blank; otherwise never raises.
    """
    idea = raw_app_idea or {}
    answers = raw_validation_answers or {}

    name = _text(_pick(idea, _NAME_KEYS))
    if not name:
        raise MissingRequiredFieldError("project_name")
    description = _text(_pick(idea, _DESCRIPTION_KEYS))
    if not description:
        raise MissingRequiredFieldError("description")

    platforms = _platforms(_pick(idea, _PLATFORM_KEYS))
    style = _key(_pick(idea, _STYLE_KEYS))
    style_description = _text(_pick(idea, _STYLE_DESCRIPTION_KEYS))
    # Only an explicit complexity answer adds complexity constraints; the
    # default shapes requirements alone.
    stated_complexity = _key(_pick(answers, _COMPLEXITY_KEYS)) or _key(_pick(idea, _COMPLEXITY_KEYS))
    complexity = (
        stated_complexity
        if stated_complexity in tables.COMPLEXITY_REQUIREMENTS
        else tables.DEFAULT_COMPLEXITY
    )
    experience = _key(_pick(answers, _EXPERIENCE_KEYS)) or _key(_pick(idea, _EXPERIENCE_KEYS))

    task = TaskContext(
        task_type=stage_task_type(parse_stage(stage)),
        project_name=name,
        description=description,
        technical_requirements=technical_requirements(platforms, complexity, experience),
        ui_requirements=ui_requirements(platforms, style, style_description),
        constraints=derive_constraints(platforms, stated_complexity, experience),
    )
    project = ProjectInfo(
        name=name,
        description=description,
        tech_stack=tech_stack(tool_id, platforms, default_stack),
        target_audience=_text(_pick(idea, _AUDIENCE_KEYS)) or tables.DEFAULT_TARGET_AUDIENCE,
        requirements=_dedupe(_text_list(_pick(idea, _REQUIREMENT_KEYS))),
        complexity=complexity,
        platforms=platforms,
        design_style=style,
    )
    logger.debug(
        "Normalized %r: %d technical, %d ui, %d constraints",
        name,
        len(task.technical_requirements),
        len(task.ui_requirements),
        len(task.constraints),
    )
    return task, project


def preferred_tool(raw_validation_answers: Mapping[str, Any] | None) -> str:
    """Tool the user picked in the validation step, or ``""``."""
    return _key(_pick(raw_validation_answers or {}, _PREFERRED_TOOL_KEYS))


# ---------------------------------------------------------------------------
# Derivations
# ---------------------------------------------------------------------------

def technical_requirements(platforms: list[str], complexity: str, experience: str) -> list[str]:
    items: list[str] = []
    for platform in platforms:
        items.extend(tables.PLATFORM_REQUIREMENTS.get(platform, ()))
    items.extend(tables.COMPLEXITY_REQUIREMENTS.get(complexity, ()))
    items.extend(tables.EXPERIENCE_REQUIREMENTS.get(experience, ()))
    return _dedupe(items)


def ui_requirements(platforms: list[str], style: str, style_description: str) -> list[str]:
    items: list[str] = list(tables.DESIGN_STYLE_REQUIREMENTS.get(style, ()))
    if style_description:
        items.append(tables.STYLE_DESCRIPTION_FORMAT.format(style_description))
    if "mobile" in platforms:
        items.extend(tables.MOBILE_UI_REQUIREMENTS)
    items.extend(tables.BASELINE_UI_REQUIREMENTS)
    return _dedupe(items)


def derive_constraints(platforms: list[str], complexity: str, experience: str) -> list[str]:
    items: list[str] = []
    if platforms == ["web"]:
        items.extend(tables.WEB_ONLY_CONSTRAINTS)
    items.extend(tables.EXPERIENCE_CONSTRAINTS.get(experience, ()))
    items.extend(tables.COMPLEXITY_CONSTRAINTS.get(complexity, ()))
    items.extend(tables.BASELINE_CONSTRAINTS)
    return _dedupe(items)


def tech_stack(
    tool_id: str | None,
    platforms: list[str],
    default_stack: Sequence[str] | None = None,
) -> list[str]:
    if default_stack:
        stack = list(default_stack)
    else:
        stack = list(tables.TOOL_TECH_STACKS.get((tool_id or "").lower(), tables.DEFAULT_TECH_STACK))
    if "web" in platforms:
        stack.extend(tables.WEB_TECH_FALLBACKS)
    return _dedupe(stack)


# ---------------------------------------------------------------------------
# Input coercion
# ---------------------------------------------------------------------------

def _pick(raw: Mapping[str, Any], keys: Iterable[str]) -> Any:
    for key in keys:
        value = raw.get(key)
        if value is not None:
            return value
    return None


def _text(value: Any) -> str:
    if value is None:
        return ""
    return str(value).strip()


def _key(value: Any) -> str:
    return _text(value).lower().replace("-", "_").replace(" ", "_")


def _text_list(value: Any) -> list[str]:
    if value is None:
        return []
    if isinstance(value, str):
        value = value.split(",")
    try:
        return [t for t in (_text(v) for v in value) if t]
    except TypeError:
        return [_text(value)] if _text(value) else []


def _platforms(value: Any) -> list[str]:
    return _dedupe([_key(p) for p in _text_list(value)])


def _dedupe(items: Iterable[str]) -> list[str]:
    seen: set[str] = set()
    out: list[str] = []
    for item in items:
        if item not in seen:
            seen.add(item)
            out.append(item)
    return out
