"""Tool profile validator — ensures profile definitions are well-formed."""

from __future__ import annotations

import logging
from pathlib import Path

from promptcraft.core.compose.renderer import unknown_fields
from promptcraft.core.errors import ProfileConfigError, UnsupportedStageError
from promptcraft.core.profiles.loader import load_profile_file
from promptcraft.core.profiles.models import COMPLEXITY_TIERS, TOOL_CATEGORIES, ToolProfile
from promptcraft.core.stages import parse_stage

logger = logging.getLogger(__name__)

REQUIRED_FIELDS = ["id", "version", "display_name", "category", "complexity", "output_format", "tone"]


def check_profile(profile: ToolProfile) -> list[str]:
    """Structural checks on an already-parsed profile. Returns error strings."""
    errors: list[str] = []

    for field_name in REQUIRED_FIELDS:
        if not getattr(profile, field_name, None):
            errors.append(f"Missing or empty required field '{field_name}'")

    if profile.category and profile.category not in TOOL_CATEGORIES:
        errors.append(
            f"Category '{profile.category}' must be one of {', '.join(TOOL_CATEGORIES)}"
        )
    if profile.complexity and profile.complexity not in COMPLEXITY_TIERS:
        errors.append(
            f"Complexity '{profile.complexity}' must be one of {', '.join(COMPLEXITY_TIERS)}"
        )

    # Version format check (semver-ish).
    if profile.version and not all(c.isdigit() or c == "." for c in profile.version):
        errors.append(f"Version '{profile.version}' doesn't look like a version number")

    if not profile.strategies:
        errors.append("No prompting strategies defined")

    for i, strategy in enumerate(profile.strategies):
        label = f"Strategy #{i + 1} ({strategy.kind or '?'})"
        if not strategy.kind:
            errors.append(f"{label}: missing kind")
        if not 0.0 <= strategy.effectiveness <= 1.0:
            errors.append(f"{label}: effectiveness {strategy.effectiveness} outside [0, 1]")
        errors.extend(f"{label}: {e}" for e in _check_template(strategy.template))

    for stage_key, template in profile.stage_templates.items():
        try:
            parse_stage(stage_key)
        except UnsupportedStageError:
            errors.append(f"Stage template for unknown stage '{stage_key}'")
        errors.extend(f"Stage template '{stage_key}': {e}" for e in _check_template(template))

    for pitfall in profile.common_pitfalls:
        if not pitfall.name:
            errors.append("Pitfall with empty name")

    return errors


def _check_template(template: str) -> list[str]:
    if not template or not template.strip():
        return ["empty template"]
    try:
        unknown = unknown_fields(template)
    except ValueError as exc:
        return [f"malformed template ({exc})"]
    if unknown:
        return [f"unknown placeholder(s): {', '.join(unknown)}"]
    return []


def validate_profile_file(
    path: Path, *, project_root: Path | None = None
) -> tuple[ToolProfile | None, list[str]]:
    """Validate a single tool profile YAML file.

    Returns: (profile_or_none, errors)
    """
    display_path = _display(path, project_root)

    try:
        profile = load_profile_file(path)
    except ProfileConfigError as exc:
        return None, [f"{display_path}: {e}" for e in exc.errors]

    errors = [f"{display_path}: {e}" for e in check_profile(profile)]

    # Filename should start with the profile id (supports suffixes like `.v1.yaml`).
    name = path.name
    if not (name == f"{profile.id}.yaml" or name.startswith(f"{profile.id}.")):
        errors.append(
            f"{display_path}: Filename '{name}' should match profile id '{profile.id}'"
        )

    return profile, errors


def validate_profile_directory(
    directory: str | Path, *, project_root: Path | None = None
) -> tuple[list[ToolProfile], list[str]]:
    """Validate all tool profile YAML files in a directory (recursively).

    Returns: (valid_profiles, errors)
    """
    directory = Path(directory)
    if not directory.is_dir():
        return [], [f"Profile directory not found: {directory}"]

    yaml_files = sorted(p for p in directory.rglob("*.yaml") if not p.name.startswith("_"))
    if not yaml_files:
        return [], [f"No tool profile YAML files found in {directory}"]

    errors: list[str] = []
    seen_ids: dict[str, Path] = {}
    profiles: list[ToolProfile] = []

    for path in yaml_files:
        profile, file_errors = validate_profile_file(path, project_root=project_root)
        if file_errors:
            errors.extend(file_errors)
            continue

        assert profile is not None  # for type checkers

        if profile.id in seen_ids:
            errors.append(
                f"{_display(path, project_root)}: Duplicate ID '{profile.id}' — "
                f"already defined in {_display(seen_ids[profile.id], project_root)}"
            )
            continue
        seen_ids[profile.id] = path
        profiles.append(profile)

    return profiles, errors


def _display(path: Path, project_root: Path | None) -> str:
    if project_root:
        try:
            return str(path.relative_to(project_root))
        except ValueError:
            return str(path)
    return str(path)
