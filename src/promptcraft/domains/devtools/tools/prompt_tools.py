"""MCP tools for prompt generation, validation and discovery."""

from __future__ import annotations

import json
import logging
from typing import TYPE_CHECKING, Any

from fastmcp import Context, FastMCP

from promptcraft.core.errors import CallerInputError, GenerationFailedError

if TYPE_CHECKING:
    from promptcraft.core.engine.orchestrator import PromptGenerationService

logger = logging.getLogger(__name__)


def _error(exc: Exception) -> str:
    return json.dumps({
        "status": "error",
        "error_type": type(exc).__name__,
        "message": str(exc),
    })


def register_prompt_tools(mcp: FastMCP, service: PromptGenerationService) -> None:
    """Register the generation tools on the MCP server."""

    @mcp.tool
    async def generate_prompt(
        ctx: Context,
        app_idea: dict[str, Any],
        validation_answers: dict[str, Any] | None = None,
        target_tool: str | None = None,
        stage: str | None = None,
    ) -> str:
        """Generate a build prompt tailored to an AI development tool.

        Args:
            app_idea: The app idea. Needs a name (appName) and a description
                (ideaDescription); platforms, designStyle, styleDescription and
                targetAudience are optional.
            validation_answers: Optional wizard answers (projectComplexity,
                technicalExperience, preferredAITool).
            target_tool: Tool id (e.g. 'lovable', 'cursor'). Defaults to the
                preferred tool from the answers, then 'lovable'.
            stage: Pipeline stage (skeleton, page_ui, flow_connections, feature,
                debugging, optimization). Defaults to 'skeleton'.
        """
        try:
            result = await service.generate(app_idea, validation_answers, target_tool, stage)
        except (CallerInputError, GenerationFailedError) as exc:
            logger.info("generate_prompt rejected: %s", exc)
            return _error(exc)

        await ctx.info(
            f"Generated {result.stage} prompt for {result.tool_id} "
            f"(confidence {result.confidence_score:.2f}, {len(result.knowledge_sources)} sources)"
        )
        if result.degradations:
            await ctx.warning(f"Degraded stages: {', '.join(result.degradations)}")
        return json.dumps({"status": "ok", **result.to_dict()}, indent=2)

    @mcp.tool
    def validate_prompt(
        text: str,
        target_tool: str | None = None,
        project_name: str | None = None,
    ) -> str:
        """Check a prompt's structure and score it from 0 to 100.

        Args:
            text: The prompt to check.
            target_tool: Optional tool id; adds that tool's pitfall checks.
            project_name: Optional project name the prompt must mention.
        """
        try:
            validation = service.validate(text, target_tool, project_name)
        except CallerInputError as exc:
            return _error(exc)
        return json.dumps({"status": "ok", **validation.to_dict()}, indent=2)

    @mcp.tool
    def list_tools() -> str:
        """List the supported target tools."""
        profiles = [service.registry.get_profile(t) for t in service.list_tools()]
        return json.dumps({
            "status": "ok",
            "tools": [
                {"id": p.id, "display_name": p.display_name, "category": p.category}
                for p in profiles
            ],
        }, indent=2)

    @mcp.tool
    def list_strategies(tool_id: str, stage: str | None = None) -> str:
        """List a tool's prompting strategies, best first.

        Args:
            tool_id: Tool id from list_tools.
            stage: Optional stage; restricts to strategies suited to it.
        """
        try:
            strategies = service.list_strategies(tool_id, stage)
        except CallerInputError as exc:
            return _error(exc)
        return json.dumps({
            "status": "ok",
            "tool_id": tool_id,
            "stage": stage,
            "strategies": [
                {
                    "kind": s.kind,
                    "use_cases": list(s.use_cases),
                    "effectiveness": s.effectiveness,
                }
                for s in strategies
            ],
        }, indent=2)
