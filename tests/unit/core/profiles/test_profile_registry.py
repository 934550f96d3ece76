"""Tests for the tool profile registry, loader and validator."""

from __future__ import annotations

from pathlib import Path

import pytest
import yaml

from conftest import BUNDLED_PROFILE_DIR, TEST_SKELETON, make_test_profile
from promptcraft.core.errors import ProfileConfigError, UnsupportedToolError
from promptcraft.core.profiles.loader import load_profile_directory, load_profile_file
from promptcraft.core.profiles.models import PromptingStrategy
from promptcraft.core.profiles.registry import ToolProfileRegistry, rank_strategies
from promptcraft.core.profiles.validator import (
    check_profile,
    validate_profile_directory,
    validate_profile_file,
)


def _profile_data(id: str = "toolA", **overrides) -> dict:
    data = {
        "id": id,
        "version": "1.0",
        "display_name": f"Tool {id}",
        "description": "A test tool",
        "category": "editor",
        "complexity": "beginner",
        "output_format": "structured_sections",
        "tone": "expert_casual",
        "strategies": [
            {
                "kind": "structured",
                "template": TEST_SKELETON,
                "use_cases": ["app_architecture"],
                "effectiveness": 0.9,
            }
        ],
        "common_pitfalls": [
            "insufficient_context",
            {"name": "too_big", "forbidden_patterns": ["all at once"]},
        ],
    }
    data.update(overrides)
    return data


def _write(directory: Path, name: str, data: dict) -> Path:
    path = directory / name
    path.write_text(yaml.safe_dump(data), encoding="utf-8")
    return path


# ---------------------------------------------------------------------------
# Registry
# ---------------------------------------------------------------------------

class TestRegistry:
    def test_get_profile(self, registry):
        assert registry.get_profile("toolA").display_name == "Tool toolA"

    def test_unknown_tool_raises(self, registry):
        with pytest.raises(UnsupportedToolError) as exc_info:
            registry.get_profile("nonexistent")
        assert exc_info.value.tool_id == "nonexistent"
        assert "toolA" in str(exc_info.value)

    def test_unknown_tool_is_value_error(self, registry):
        with pytest.raises(ValueError):
            registry.get_profile("nonexistent")

    def test_duplicate_id_rejected(self, registry):
        with pytest.raises(ValueError, match="Duplicate"):
            registry.register(make_test_profile("toolA"))

    def test_list_tools_in_registration_order(self):
        reg = ToolProfileRegistry()
        for tool_id in ("zeta", "alpha", "mid"):
            reg.register(make_test_profile(tool_id))
        assert reg.list_tools() == ["zeta", "alpha", "mid"]

    def test_contains_and_len(self, registry):
        assert "toolA" in registry
        assert "toolB" not in registry
        assert len(registry) == 1

    def test_find_by_category(self, registry):
        assert [p.id for p in registry.find_by_category("editor")] == ["toolA"]
        assert registry.find_by_category("ide") == []


class TestStrategyOrdering:
    def _strategies(self) -> list[PromptingStrategy]:
        return [
            PromptingStrategy("first", "x {project_name}", ("feature_development",), 0.7),
            PromptingStrategy("second", "x {project_name}", ("feature_development",), 0.9),
            PromptingStrategy("third", "x {project_name}", ("feature_development",), 0.9),
            PromptingStrategy("other", "x {project_name}", ("debugging",), 0.95),
        ]

    def test_applicable_sorted_by_effectiveness(self):
        ranked = rank_strategies(self._strategies(), "feature_development")
        assert [s.kind for s in ranked] == ["second", "third", "first"]

    def test_ties_keep_declaration_order(self):
        ranked = rank_strategies(self._strategies(), "feature_development")
        assert ranked.index(self._strategies()[1]) < ranked.index(self._strategies()[2])

    def test_falls_back_to_all_when_none_apply(self):
        ranked = rank_strategies(self._strategies(), "optimization")
        assert [s.kind for s in ranked] == ["other", "second", "third", "first"]

    def test_list_strategies_for_stage(self):
        reg = ToolProfileRegistry()
        reg.register(make_test_profile("toolA", strategies=self._strategies()))
        assert [s.kind for s in reg.list_strategies_for("toolA", "feature")] == [
            "second", "third", "first",
        ]
        assert reg.list_strategies_for("toolA", "debugging")[0].kind == "other"

    def test_list_strategies_for_unknown_tool(self, registry):
        with pytest.raises(UnsupportedToolError):
            registry.list_strategies_for("nope", "skeleton")


# ---------------------------------------------------------------------------
# Loader
# ---------------------------------------------------------------------------

class TestLoader:
    def test_load_file(self, tmp_path):
        path = _write(tmp_path, "toolA.yaml", _profile_data())
        profile = load_profile_file(path)
        assert profile.id == "toolA"
        assert profile.strategies[0].use_cases == ("app_architecture",)
        assert [p.name for p in profile.common_pitfalls] == ["insufficient_context", "too_big"]
        assert profile.common_pitfalls[1].forbidden_patterns == ("all at once",)

    def test_stage_templates_are_read_only(self, tmp_path):
        data = _profile_data(stage_templates={"page_ui": "Design {project_name}"})
        profile = load_profile_file(_write(tmp_path, "toolA.yaml", data))
        assert profile.stage_template("page_ui") == "Design {project_name}"
        assert profile.stage_template("skeleton") is None
        with pytest.raises(TypeError):
            profile.stage_templates["skeleton"] = "x"  # type: ignore[index]

    def test_missing_key_is_config_error(self, tmp_path):
        data = _profile_data()
        del data["display_name"]
        with pytest.raises(ProfileConfigError):
            load_profile_file(_write(tmp_path, "toolA.yaml", data))

    def test_non_mapping_is_config_error(self, tmp_path):
        path = tmp_path / "toolA.yaml"
        path.write_text("- just\n- a list\n", encoding="utf-8")
        with pytest.raises(ProfileConfigError, match="mapping"):
            load_profile_file(path)

    def test_string_where_list_expected(self, tmp_path):
        data = _profile_data(constraints="React only")
        with pytest.raises(ProfileConfigError):
            load_profile_file(_write(tmp_path, "toolA.yaml", data))

    def test_load_directory(self, tmp_path):
        _write(tmp_path, "toolA.yaml", _profile_data("toolA"))
        _write(tmp_path, "toolB.yaml", _profile_data("toolB"))
        (tmp_path / "_schema.yaml").write_text("# docs only\n", encoding="utf-8")
        reg = ToolProfileRegistry()
        assert load_profile_directory(tmp_path, reg) == 2
        assert reg.list_tools() == ["toolA", "toolB"]

    def test_one_bad_file_aborts_whole_load(self, tmp_path):
        _write(tmp_path, "toolA.yaml", _profile_data("toolA"))
        _write(tmp_path, "toolB.yaml", _profile_data("toolB", category="spaceship"))
        reg = ToolProfileRegistry()
        with pytest.raises(ProfileConfigError) as exc_info:
            load_profile_directory(tmp_path, reg)
        assert any("spaceship" in e for e in exc_info.value.errors)
        assert len(reg) == 0


# ---------------------------------------------------------------------------
# Validator
# ---------------------------------------------------------------------------

class TestValidator:
    def test_valid_profile_has_no_errors(self):
        assert check_profile(make_test_profile()) == []

    def test_unknown_placeholder(self, tmp_path):
        data = _profile_data()
        data["strategies"][0]["template"] = "Build {project_name} for {favourite_colour}"
        _, errors = validate_profile_file(_write(tmp_path, "toolA.yaml", data))
        assert any("favourite_colour" in e for e in errors)

    def test_malformed_template(self, tmp_path):
        data = _profile_data()
        data["strategies"][0]["template"] = "Build {project_name"
        _, errors = validate_profile_file(_write(tmp_path, "toolA.yaml", data))
        assert any("malformed" in e for e in errors)

    def test_effectiveness_out_of_range(self, tmp_path):
        data = _profile_data()
        data["strategies"][0]["effectiveness"] = 1.5
        _, errors = validate_profile_file(_write(tmp_path, "toolA.yaml", data))
        assert any("effectiveness" in e for e in errors)

    def test_no_strategies(self, tmp_path):
        _, errors = validate_profile_file(_write(tmp_path, "toolA.yaml", _profile_data(strategies=[])))
        assert any("No prompting strategies" in e for e in errors)

    def test_unknown_stage_override(self, tmp_path):
        data = _profile_data(stage_templates={"launch_party": "Build {project_name}"})
        _, errors = validate_profile_file(_write(tmp_path, "toolA.yaml", data))
        assert any("launch_party" in e for e in errors)

    def test_filename_must_match_id(self, tmp_path):
        _, errors = validate_profile_file(_write(tmp_path, "other.yaml", _profile_data("toolA")))
        assert any("should match profile id" in e for e in errors)

    def test_duplicate_ids_in_directory(self, tmp_path):
        _write(tmp_path, "toolA.yaml", _profile_data("toolA"))
        (tmp_path / "nested").mkdir()
        _write(tmp_path / "nested", "toolA.v2.yaml", _profile_data("toolA"))
        profiles, errors = validate_profile_directory(tmp_path)
        assert len(profiles) == 1
        assert any("Duplicate ID" in e for e in errors)

    def test_missing_directory(self, tmp_path):
        _, errors = validate_profile_directory(tmp_path / "missing")
        assert errors and "not found" in errors[0]

    def test_empty_directory(self, tmp_path):
        _, errors = validate_profile_directory(tmp_path)
        assert errors and "No tool profile" in errors[0]

    def test_errors_use_relative_paths(self, tmp_path):
        _write(tmp_path, "toolA.yaml", _profile_data("toolA", tone=""))
        _, errors = validate_profile_directory(tmp_path, project_root=tmp_path)
        assert errors[0].startswith("toolA.yaml:")


# ---------------------------------------------------------------------------
# Bundled profiles
# ---------------------------------------------------------------------------

class TestBundledProfiles:
    def test_all_bundled_profiles_valid(self):
        profiles, errors = validate_profile_directory(BUNDLED_PROFILE_DIR)
        assert errors == []
        assert {p.id for p in profiles} == {"lovable", "bolt", "cursor", "v0", "claude", "chatgpt"}

    def test_original_strategy_effectiveness(self, bundled_registry):
        lovable = bundled_registry.get_profile("lovable")
        assert lovable.strategies[0].kind == "structured"
        assert lovable.strategies[0].effectiveness == 0.9
        assert bundled_registry.get_profile("bolt").strategies[0].effectiveness == 0.95

    def test_every_stage_has_a_strategy(self, bundled_registry):
        for tool_id in bundled_registry.list_tools():
            for stage in ("skeleton", "page_ui", "flow_connections", "feature", "debugging", "optimization"):
                assert bundled_registry.list_strategies_for(tool_id, stage)
