"""Canonical per-request records produced by the context normalizer."""

from __future__ import annotations

from dataclasses import dataclass, field

PROJECT_COMPLEXITIES = ("simple", "medium", "complex")
EXPERIENCE_LEVELS = ("beginner", "intermediate", "advanced")


@dataclass
class TaskContext:
    """What is being asked for, with derived requirement lists."""

    task_type: str
    project_name: str
    description: str
    technical_requirements: list[str] = field(default_factory=list)
    ui_requirements: list[str] = field(default_factory=list)
    constraints: list[str] = field(default_factory=list)

    def is_complete(self) -> bool:
        return bool(self.technical_requirements and self.ui_requirements and self.constraints)


@dataclass
class ProjectInfo:
    """The project the prompt is for."""

    name: str
    description: str
    tech_stack: list[str] = field(default_factory=list)
    target_audience: str = "General users"
    requirements: list[str] = field(default_factory=list)
    complexity: str = "simple"
    platforms: list[str] = field(default_factory=list)
    design_style: str = ""
