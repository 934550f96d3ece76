"""Tool profile loader — reads YAML definitions from disk."""

from __future__ import annotations

import logging
from pathlib import Path
from types import MappingProxyType
from typing import Any

import yaml

from promptcraft.core.errors import ProfileConfigError
from promptcraft.core.profiles.models import Pitfall, PromptingStrategy, ToolProfile
from promptcraft.core.profiles.registry import ToolProfileRegistry

logger = logging.getLogger(__name__)


def load_profile_directory(directory: str | Path, registry: ToolProfileRegistry) -> int:
    """Load every YAML tool profile in a directory (recursively).

    Returns the number of profiles loaded. Files starting with an underscore
    (like ``_schema.yaml``) are skipped. Any malformed profile aborts the
    whole load with ProfileConfigError; there is no partial registry.
    """
    from promptcraft.core.profiles.validator import validate_profile_directory

    loaded, errors = validate_profile_directory(directory)
    if errors:
        for err in errors:
            logger.error("%s", err)
        raise ProfileConfigError(errors)

    for profile in loaded:
        try:
            registry.register(profile)
        except ValueError as exc:
            raise ProfileConfigError([str(exc)]) from exc
        logger.info("Loaded tool profile: %s (v%s)", profile.id, profile.version)
    return len(loaded)


def load_profile_file(path: Path) -> ToolProfile:
    """Parse a YAML file into a ToolProfile."""
    try:
        with open(path, encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except (OSError, yaml.YAMLError) as exc:
        raise ProfileConfigError([f"Failed to read — {exc}"]) from exc

    if not isinstance(data, dict):
        raise ProfileConfigError(["Top level must be a mapping"])
    try:
        return parse_profile(data)
    except (KeyError, TypeError, ValueError) as exc:
        raise ProfileConfigError([f"Failed to parse — {exc!r}"]) from exc


def parse_profile(data: dict[str, Any]) -> ToolProfile:
    """Build a ToolProfile from an already-decoded mapping."""
    return ToolProfile(
        id=str(data["id"]),
        version=str(data.get("version", "1.0")),
        display_name=data["display_name"],
        description=str(data.get("description", "")).strip(),
        category=data["category"],
        complexity=data["complexity"],
        output_format=data["output_format"],
        tone=data["tone"],
        strategies=tuple(_parse_strategy(s) for s in data.get("strategies") or []),
        constraints=_str_tuple(data.get("constraints")),
        optimization_tips=_str_tuple(data.get("optimization_tips")),
        common_pitfalls=tuple(_parse_pitfall(p) for p in data.get("common_pitfalls") or []),
        guidelines=_str_tuple(data.get("guidelines")),
        default_tech_stack=_str_tuple(data.get("default_tech_stack")),
        stage_templates=MappingProxyType(
            {str(k): str(v) for k, v in (data.get("stage_templates") or {}).items()}
        ),
    )


def _parse_strategy(raw: dict[str, Any]) -> PromptingStrategy:
    return PromptingStrategy(
        kind=raw["kind"],
        template=raw["template"],
        use_cases=_str_tuple(raw.get("use_cases")),
        effectiveness=float(raw.get("effectiveness", 0.5)),
    )


def _parse_pitfall(raw: str | dict[str, Any]) -> Pitfall:
    if isinstance(raw, str):
        return Pitfall(name=raw)
    return Pitfall(
        name=raw["name"],
        description=str(raw.get("description", "")).strip(),
        forbidden_patterns=_str_tuple(raw.get("forbidden_patterns")),
    )


def _str_tuple(value: Any) -> tuple[str, ...]:
    if value is None:
        return ()
    if isinstance(value, str):
        raise TypeError(f"expected a list, got string {value!r}")
    return tuple(str(v) for v in value)
