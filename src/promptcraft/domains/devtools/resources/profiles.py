"""MCP Resources for tool profile discovery."""

from __future__ import annotations

import json
from typing import TYPE_CHECKING

from fastmcp import FastMCP

if TYPE_CHECKING:
    from promptcraft.core.profiles.registry import ToolProfileRegistry


def register_profile_resources(mcp: FastMCP, registry: ToolProfileRegistry) -> None:
    """Register tool profile discovery resources on the MCP server."""

    @mcp.resource("profiles://registry")
    def tool_profile_registry_resource() -> str:
        """Discover every supported target tool and how it is prompted."""
        profiles = registry.all()
        return json.dumps(
            {
                "profile_count": len(profiles),
                "profiles": [
                    {
                        "id": p.id,
                        "display_name": p.display_name,
                        "description": p.description,
                        "category": p.category,
                        "complexity": p.complexity,
                        "output_format": p.output_format,
                        "tone": p.tone,
                        "strategies": [
                            {
                                "kind": s.kind,
                                "use_cases": list(s.use_cases),
                                "effectiveness": s.effectiveness,
                            }
                            for s in p.strategies
                        ],
                        "stage_overrides": sorted(p.stage_templates),
                        "default_tech_stack": list(p.default_tech_stack),
                        "version": p.version,
                    }
                    for p in profiles
                ],
            },
            indent=2,
        )
