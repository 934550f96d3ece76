"""Generation orchestrator — runs one request through the whole pipeline.

normalize -> resolve profile -> retrieve (documents || templates) -> compose
-> enhance -> score + validate -> assemble -> analytics.

Only caller input errors and a failed composition reach the caller; every
other stage degrades and the pipeline continues.
"""

from __future__ import annotations

import asyncio
import logging
import time
from typing import Any, Mapping

from promptcraft.core.analytics.sink import AnalyticsDispatcher, AnalyticsEvent, hash_input
from promptcraft.core.compose.composer import DEFAULT_EXCERPT_LIMIT, ComposedDraft, compose
from promptcraft.core.context.models import ProjectInfo, TaskContext
from promptcraft.core.context.normalizer import normalize, preferred_tool
from promptcraft.core.engine.models import GeneratedPrompt
from promptcraft.core.errors import CompositionFailure, GenerationFailedError, RetrievalDegraded
from promptcraft.core.knowledge.keys import document_query, template_query
from promptcraft.core.knowledge.models import (
    Corpus,
    RetrievalResult,
    RetrievalStats,
    SearchFilters,
)
from promptcraft.core.knowledge.retrieval import KnowledgeRetrievalClient
from promptcraft.core.llm.enhancer import PromptEnhancer
from promptcraft.core.profiles.models import PromptingStrategy, ToolProfile
from promptcraft.core.profiles.registry import ToolProfileRegistry, rank_strategies
from promptcraft.core.scoring.confidence import score_confidence
from promptcraft.core.scoring.suggestions import suggest_enhancements
from promptcraft.core.scoring.validator import ValidationResult, validate_prompt
from promptcraft.core.stages import (
    STAGE_CATEGORIES,
    TEMPLATE_TYPES,
    PromptStage,
    next_stage,
    parse_stage,
)

logger = logging.getLogger(__name__)

DEFAULT_TOOL = "lovable"

RETRIEVAL_DEGRADED = "RetrievalDegraded"
ENHANCEMENT_SKIPPED = "EnhancementSkipped"


class PromptGenerationService:
    """Public entry point of the engine.

    Holds no per-request state; concurrent ``generate`` calls are independent.
    """

    def __init__(
        self,
        registry: ToolProfileRegistry,
        retrieval: KnowledgeRetrievalClient | None,
        enhancer: PromptEnhancer,
        analytics: AnalyticsDispatcher | None = None,
        *,
        retrieval_timeout_s: float = 3.0,
        excerpt_limit: int = DEFAULT_EXCERPT_LIMIT,
        default_tool: str = DEFAULT_TOOL,
    ) -> None:
        self.registry = registry
        self.retrieval = retrieval
        self.enhancer = enhancer
        self.analytics = analytics or AnalyticsDispatcher(None, enabled=False)
        self.retrieval_timeout_s = retrieval_timeout_s
        self.excerpt_limit = excerpt_limit
        self.default_tool = default_tool

    # ------------------------------------------------------------------
    # Generation
    # ------------------------------------------------------------------

    async def generate(
        self,
        app_idea: Mapping[str, Any],
        validation_answers: Mapping[str, Any] | None = None,
        target_tool: str | None = None,
        stage: str | PromptStage | None = None,
    ) -> GeneratedPrompt:
        """Produce a prompt for ``target_tool`` at ``stage``.

        Raises:
            MissingRequiredFieldError: project name or description missing.
            UnsupportedToolError: no profile for the target tool.
            UnsupportedStageError: unknown stage id.
            GenerationFailedError: the profile skeleton could not be filled.
        """
        start = time.monotonic()
        prompt_stage = parse_stage(stage)
        tool_id = self._resolve_tool_id(target_tool, validation_answers)

        known = self.registry.get(tool_id)
        task, project = normalize(
            app_idea,
            validation_answers,
            tool_id,
            stage=prompt_stage,
            default_stack=known.default_tech_stack if known else None,
        )
        profile = self.registry.get_profile(tool_id)

        degradations: list[str] = []
        documents, templates = await self._retrieve(task, project, profile, prompt_stage, degradations)

        try:
            draft = compose(
                task, project, profile, documents, templates, prompt_stage, self.excerpt_limit
            )
        except CompositionFailure as exc:
            logger.exception("Composition failed for tool %s", profile.id)
            raise GenerationFailedError(f"Could not compose a prompt for {profile.id}: {exc}") from exc

        text, enhancement = await self.enhancer.enhance(
            draft.text, profile, project.name, draft.sources
        )
        if not enhancement.applied:
            degradations.append(ENHANCEMENT_SKIPPED)

        stats = self._retrieval_stats(draft, documents, templates)
        confidence = score_confidence(task, stats, enhancement.applied)
        validation = validate_prompt(text, profile, project.name)

        result = GeneratedPrompt(
            text=text,
            tool_id=profile.id,
            stage=prompt_stage.value,
            confidence_score=confidence,
            enhancement=enhancement,
            validation=validation,
            strategy_kind=draft.strategy.kind,
            enhancement_suggestions=suggest_enhancements(
                task, profile, stats, enhancement, prompt_stage
            ),
            tool_optimizations=list(profile.optimization_tips),
            knowledge_sources=draft.sources,
            next_suggested_stage=next_stage(prompt_stage).value,
            degradations=list(dict.fromkeys(degradations)),
            latency_ms=(time.monotonic() - start) * 1000,
        )

        logger.info(
            "Generated %s prompt for %s: confidence=%.2f, validation=%d, sources=%d, %.0fms",
            result.stage,
            result.tool_id,
            result.confidence_score,
            validation.score,
            len(result.knowledge_sources),
            result.latency_ms,
        )
        self._emit(result, app_idea, validation_answers)
        return result

    # ------------------------------------------------------------------
    # Companions
    # ------------------------------------------------------------------

    def validate(
        self,
        text: str,
        target_tool: str | None = None,
        project_name: str | None = None,
    ) -> ValidationResult:
        """Structural validation of any prompt text, optionally tool-aware."""
        profile = self.registry.get_profile(target_tool) if target_tool else None
        return validate_prompt(text, profile, project_name)

    def list_tools(self) -> list[str]:
        return self.registry.list_tools()

    def list_strategies(
        self, tool_id: str, stage: str | PromptStage | None = None
    ) -> list[PromptingStrategy]:
        """Strategies for a tool, best first; for a stage if one is given."""
        if stage is None:
            profile = self.registry.get_profile(tool_id)
            return rank_strategies(profile.strategies, "")
        return self.registry.list_strategies_for(tool_id, stage)

    async def drain(self) -> None:
        """Wait for scheduled analytics deliveries."""
        await self.analytics.drain()

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _resolve_tool_id(
        self, target_tool: str | None, validation_answers: Mapping[str, Any] | None
    ) -> str:
        tool_id = (target_tool or "").strip() or preferred_tool(validation_answers)
        if tool_id:
            # Wizard input arrives in display case ("Cursor").
            if tool_id not in self.registry and tool_id.lower() in self.registry:
                return tool_id.lower()
            return tool_id
        if self.default_tool in self.registry:
            return self.default_tool
        tools = self.registry.list_tools()
        return tools[0] if tools else self.default_tool

    async def _retrieve(
        self,
        task: TaskContext,
        project: ProjectInfo,
        profile: ToolProfile,
        stage: PromptStage,
        degradations: list[str],
    ) -> tuple[list[RetrievalResult], list[RetrievalResult]]:
        """Run both corpus searches concurrently under one timeout.

        A corpus that fails or does not answer in time contributes nothing.
        """
        if self.retrieval is None:
            degradations.append(RETRIEVAL_DEGRADED)
            return [], []

        text = _query_text(task, project)
        searches = {
            Corpus.DOCUMENTS: (
                document_query(profile.id, STAGE_CATEGORIES[stage], text),
                SearchFilters(
                    target_tools=frozenset([profile.id]),
                    categories=frozenset(STAGE_CATEGORIES[stage]),
                ),
            ),
            Corpus.TEMPLATES: (
                template_query(profile.id, TEMPLATE_TYPES[stage], text),
                SearchFilters(
                    target_tools=frozenset([profile.id]),
                    template_type=TEMPLATE_TYPES[stage],
                ),
            ),
        }

        loop = asyncio.get_running_loop()
        tasks = {
            corpus: loop.create_task(self._search(corpus, query, filters, degradations))
            for corpus, (query, filters) in searches.items()
        }
        try:
            done, pending = await asyncio.wait(
                set(tasks.values()), timeout=self.retrieval_timeout_s
            )
        finally:
            # Also reached when the caller cancels us mid-wait.
            for t in tasks.values():
                if not t.done():
                    t.cancel()

        if pending:
            await asyncio.gather(*pending, return_exceptions=True)
            logger.warning(
                "Retrieval timed out after %.1fs for %d corpus search(es)",
                self.retrieval_timeout_s,
                len(pending),
            )
            degradations.append(RETRIEVAL_DEGRADED)

        results: dict[Corpus, list[RetrievalResult]] = {}
        for corpus, t in tasks.items():
            results[corpus] = t.result() if t in done else []
        return results[Corpus.DOCUMENTS], results[Corpus.TEMPLATES]

    async def _search(
        self,
        corpus: Corpus,
        query: str,
        filters: SearchFilters,
        degradations: list[str],
    ) -> list[RetrievalResult]:
        try:
            return await self.retrieval.search_strict(corpus, query, filters)
        except RetrievalDegraded as exc:
            logger.warning("Retrieval from %s degraded: %s", corpus.value, exc)
            degradations.append(RETRIEVAL_DEGRADED)
            return []
        except Exception:
            logger.exception("Unexpected failure searching %s", corpus.value)
            degradations.append(RETRIEVAL_DEGRADED)
            return []

    def _retrieval_stats(
        self,
        draft: ComposedDraft,
        documents: list[RetrievalResult],
        templates: list[RetrievalResult],
    ) -> RetrievalStats:
        used = set(draft.sources)
        similarities = [r.similarity_score for r in (*documents, *templates) if r.id in used]
        return RetrievalStats(
            documents_used=len(draft.document_ids),
            templates_used=1 if draft.template_id else 0,
            expected=self.excerpt_limit + 1,
            similarities=similarities,
        )

    def _emit(
        self,
        result: GeneratedPrompt,
        app_idea: Mapping[str, Any],
        validation_answers: Mapping[str, Any] | None,
    ) -> None:
        event = AnalyticsEvent(
            tool_id=result.tool_id,
            stage=result.stage,
            confidence_score=result.confidence_score,
            prompt_length=len(result.text),
            success=result.validation.is_valid,
            latency_ms=result.latency_ms,
            input_hash=hash_input(
                {"app_idea": dict(app_idea), "validation": dict(validation_answers or {})}
            ),
            metadata={
                "strategy": result.strategy_kind,
                "enhanced": result.enhancement.applied,
                "knowledge_sources": len(result.knowledge_sources),
                "degradations": result.degradations,
            },
        )
        try:
            self.analytics.emit(event)
        except Exception:
            logger.exception("Failed to schedule analytics event")


def _query_text(task: TaskContext, project: ProjectInfo) -> str:
    parts = [
        project.name,
        project.description,
        task.task_type.replace("_", " "),
        *task.technical_requirements,
        *task.ui_requirements,
    ]
    return "\n".join(p for p in parts if p)
