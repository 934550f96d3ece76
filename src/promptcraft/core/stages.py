"""Pipeline stages and the fixed tables keyed by them."""

from __future__ import annotations

from enum import Enum

from promptcraft.core.errors import UnsupportedStageError


class PromptStage(str, Enum):
    """Where in the build sequence the requested prompt sits."""

    SKELETON = "skeleton"
    PAGE_UI = "page_ui"
    FLOW_CONNECTIONS = "flow_connections"
    FEATURE = "feature"
    DEBUGGING = "debugging"
    OPTIMIZATION = "optimization"


# Names used by the wizard for the same stages.
STAGE_ALIASES: dict[str, PromptStage] = {
    "app_skeleton": PromptStage.SKELETON,
    "blueprint": PromptStage.SKELETON,
    "screen_prompts": PromptStage.PAGE_UI,
    "app_flow": PromptStage.FLOW_CONNECTIONS,
    "flow": PromptStage.FLOW_CONNECTIONS,
    "feature_specific": PromptStage.FEATURE,
}

NEXT_STAGE: dict[PromptStage, PromptStage] = {
    PromptStage.SKELETON: PromptStage.PAGE_UI,
    PromptStage.PAGE_UI: PromptStage.FLOW_CONNECTIONS,
    PromptStage.FLOW_CONNECTIONS: PromptStage.FEATURE,
    PromptStage.FEATURE: PromptStage.OPTIMIZATION,
    PromptStage.DEBUGGING: PromptStage.OPTIMIZATION,
    PromptStage.OPTIMIZATION: PromptStage.OPTIMIZATION,
}

TASK_TYPES: dict[PromptStage, str] = {
    PromptStage.SKELETON: "app_architecture",
    PromptStage.PAGE_UI: "ui_development",
    PromptStage.FLOW_CONNECTIONS: "navigation_flow",
    PromptStage.FEATURE: "feature_development",
    PromptStage.DEBUGGING: "debugging",
    PromptStage.OPTIMIZATION: "optimization",
}

# Which template corpus slice serves each stage.
TEMPLATE_TYPES: dict[PromptStage, str] = {
    PromptStage.SKELETON: "skeleton",
    PromptStage.PAGE_UI: "feature",
    PromptStage.FLOW_CONNECTIONS: "feature",
    PromptStage.FEATURE: "feature",
    PromptStage.DEBUGGING: "debugging",
    PromptStage.OPTIMIZATION: "optimization",
}

# Knowledge categories searched for each stage.
STAGE_CATEGORIES: dict[PromptStage, tuple[str, ...]] = {
    PromptStage.SKELETON: (
        "architecture", "data_modeling", "screen_design", "user_flows",
        "backend", "database", "authentication", "api_design",
    ),
    PromptStage.PAGE_UI: (
        "ui_design", "component_patterns", "responsive_design", "accessibility",
        "design_systems", "frontend", "styling",
    ),
    PromptStage.FLOW_CONNECTIONS: (
        "navigation", "user_flows", "routing", "state_management",
    ),
    PromptStage.FEATURE: (
        "frontend", "backend", "api_design", "component_patterns", "testing",
    ),
    PromptStage.DEBUGGING: ("debugging", "testing", "error_handling"),
    PromptStage.OPTIMIZATION: ("performance", "deployment", "prompt_engineering"),
}


def parse_stage(value: str | PromptStage | None) -> PromptStage:
    """Resolve a stage id or alias. ``None``/blank means the first stage."""
    if isinstance(value, PromptStage):
        return value
    if value is None or not str(value).strip():
        return PromptStage.SKELETON
    key = str(value).strip().lower()
    if key in STAGE_ALIASES:
        return STAGE_ALIASES[key]
    try:
        return PromptStage(key)
    except ValueError:
        raise UnsupportedStageError(str(value)) from None


def stage_task_type(stage: PromptStage) -> str:
    return TASK_TYPES[stage]


def next_stage(stage: PromptStage) -> PromptStage:
    return NEXT_STAGE[stage]
