"""PromptCraft MCP Server — application factory.

This module provides:
- create_app() for testability (integration tests create fresh server instances)
- Module-level `mcp` variable for FastMCP discovery
"""

from __future__ import annotations

import logging
import sqlite3
from pathlib import Path

from fastmcp import FastMCP

from promptcraft.core.analytics.sink import (
    AnalyticsDispatcher,
    AnalyticsSink,
    GenerationEventLog,
    LoggingAnalyticsSink,
)
from promptcraft.core.config.settings import Settings, get_settings
from promptcraft.core.engine.orchestrator import PromptGenerationService
from promptcraft.core.knowledge.embedding import Embedder, HashingEmbedder, OpenAIEmbedder
from promptcraft.core.knowledge.ingest import seed_knowledge_store
from promptcraft.core.knowledge.models import Corpus
from promptcraft.core.knowledge.retrieval import KnowledgeRetrievalClient, KnowledgeStore
from promptcraft.core.llm.enhancer import PromptEnhancer
from promptcraft.core.llm.provider import LLMProvider, create_provider
from promptcraft.core.profiles.loader import load_profile_directory
from promptcraft.core.profiles.registry import ToolProfileRegistry
from promptcraft.core.storage.database import DatabaseError, KnowledgeDatabase
from promptcraft.core.storage.repository import KnowledgeRepository
from promptcraft.domains.devtools.resources.profiles import register_profile_resources
from promptcraft.domains.devtools.tools.prompt_tools import register_prompt_tools

logger = logging.getLogger(__name__)

_DEVTOOLS_DIR = Path(__file__).resolve().parent.parent.parent / "domains" / "devtools"
# Tool profile YAML definitions live under src/promptcraft/domains/devtools/profiles/
_PROFILE_DIR = _DEVTOOLS_DIR / "profiles"
_KNOWLEDGE_SEED_DIR = _DEVTOOLS_DIR / "knowledge"


def _build_provider(settings: Settings) -> tuple[LLMProvider, str]:
    if settings.llm_provider == "mock":
        provider_name = "mock"
        api_key = ""
        model = ""
    elif settings.llm_provider == "anthropic":
        api_key = settings.anthropic_api_key
        model = settings.anthropic_model
        provider_name = "anthropic" if api_key else "mock"
    elif settings.llm_provider == "openai":
        api_key = settings.openai_api_key
        model = settings.openai_model
        provider_name = "openai" if api_key else "mock"
    else:  # pragma: no cover
        raise ValueError(f"Unknown LLM provider: {settings.llm_provider!r}")

    if provider_name == "mock" and settings.llm_provider != "mock":
        logger.warning(
            "No API key configured for provider '%s'; falling back to mock provider",
            settings.llm_provider,
        )

    provider = create_provider(
        provider_name=provider_name,
        api_key=api_key,
        model=model,
        request_timeout_s=settings.enhancement_timeout_s,
    )
    return provider, provider_name


def _build_embedder(settings: Settings) -> tuple[Embedder, str]:
    if settings.embedding_provider == "openai" and not settings.openai_api_key:
        logger.warning("No OpenAI API key configured for embeddings; falling back to hashing embedder")
    if settings.embedding_provider != "hashing" and settings.openai_api_key:
        embedder = OpenAIEmbedder(
            api_key=settings.openai_api_key,
            model=settings.openai_embedding_model,
            dimensions=settings.embedding_dimensions,
            request_timeout_s=settings.retrieval_timeout_s,
        )
        return embedder, "openai"
    return HashingEmbedder(settings.embedding_dimensions), "hashing"


def create_app(
    *,
    provider_override: LLMProvider | None = None,
    knowledge_store_override: KnowledgeStore | None = None,
    embedder_override: Embedder | None = None,
    analytics_sink_override: AnalyticsSink | None = None,
    registry_override: ToolProfileRegistry | None = None,
) -> FastMCP:
    """Create and configure the PromptCraft MCP server.

    This is the main application factory. It:
    1. Loads and validates the tool profiles (fatal on any malformed file)
    2. Opens the knowledge store and seeds it if empty
    3. Creates the enhancement provider
    4. Wires the generation service and analytics sink
    5. Registers all tools and resources
    """
    settings = get_settings()

    server = FastMCP(
        "PromptCraft",
        instructions=(
            "Tool-adaptive prompt composition server. Turns a structured app idea "
            "into a generation-ready prompt for a chosen AI development tool "
            "(Lovable, Bolt, Cursor, v0, Claude, ChatGPT), backed by retrieved "
            "reference material, with a confidence score and validation report."
        ),
    )

    # --- Tool profiles ---
    if registry_override is not None:
        registry = registry_override
    else:
        registry = ToolProfileRegistry()
        profile_dir = Path(settings.profile_dir).expanduser() if settings.profile_dir else _PROFILE_DIR
        load_profile_directory(profile_dir, registry)
    logger.info("Loaded %d tool profiles", len(registry))

    # --- Knowledge store ---
    if embedder_override is not None:
        embedder, embedder_name = embedder_override, "override"
    else:
        embedder, embedder_name = _build_embedder(settings)
    logger.info("Embedding with %s (%d dimensions)", embedder_name, embedder.dimensions)
    database: KnowledgeDatabase | None = None
    repository: KnowledgeRepository | None = None
    store: KnowledgeStore | None = knowledge_store_override
    if store is None:
        try:
            database = KnowledgeDatabase(settings.knowledge_db_path)
            database.initialize()
            repository = KnowledgeRepository(database)
            seed_dir = (
                Path(settings.knowledge_seed_dir).expanduser()
                if settings.knowledge_seed_dir
                else _KNOWLEDGE_SEED_DIR
            )
            try:
                seed_knowledge_store(seed_dir, repository, embedder)
            except (DatabaseError, sqlite3.Error, OSError):
                raise
            except Exception:
                # Embedding API failures leave the store usable with what it holds.
                logger.exception("Failed to seed knowledge store from %s", seed_dir)
            store = repository
            logger.info(
                "Knowledge store ready: %s (schema v%d)",
                settings.knowledge_db_path,
                database.get_schema_version(),
            )
        except (DatabaseError, sqlite3.Error, OSError) as exc:
            logger.error("Failed to initialize knowledge store: %s", exc)
            logger.warning("Continuing without retrieval; prompts will carry no references")
            database = repository = None

    retrieval = (
        KnowledgeRetrievalClient(
            store,
            embedder,
            document_threshold=settings.document_similarity_threshold,
            template_threshold=settings.template_similarity_threshold,
            max_documents=settings.max_document_results,
            max_templates=settings.max_template_results,
        )
        if store is not None
        else None
    )

    # --- Enhancement LLM ---
    if provider_override is not None:
        provider, provider_name = provider_override, "override"
    else:
        provider, provider_name = _build_provider(settings)
    enhancer = PromptEnhancer(
        provider,
        # The keyless mock only echoes a canned line, so it never enhances.
        enabled=settings.enhancement_enabled and provider_name != "mock",
        timeout_s=settings.enhancement_timeout_s,
        max_tokens=settings.enhancement_max_tokens,
    )

    # --- Analytics ---
    event_log: GenerationEventLog | None = None
    if analytics_sink_override is not None:
        sink: AnalyticsSink = analytics_sink_override
    elif database is not None:
        event_log = GenerationEventLog(database)
        sink = event_log
    else:
        sink = LoggingAnalyticsSink()
    analytics = AnalyticsDispatcher(sink, enabled=settings.analytics_enabled)

    service = PromptGenerationService(
        registry,
        retrieval,
        enhancer,
        analytics,
        retrieval_timeout_s=settings.retrieval_timeout_s,
        excerpt_limit=settings.knowledge_excerpt_limit,
    )

    # --- Register tools ---
    @server.tool
    def health_check() -> dict:
        """Check server health and return basic status information."""
        status = {
            "status": "ok",
            "server": "PromptCraft",
            "version": "0.1.0",
            "tools_loaded": len(registry),
            "llm_provider": provider_name,
            "enhancement_enabled": enhancer.enabled,
            "retrieval_enabled": retrieval is not None,
            "embedder": embedder_name,
        }
        if repository is not None:
            status["documents_stored"] = repository.count(Corpus.DOCUMENTS, active_only=True)
            status["templates_stored"] = repository.count(Corpus.TEMPLATES, active_only=True)
        if event_log is not None:
            status["generations_logged"] = event_log.count_events()
        return status

    register_prompt_tools(server, service)
    logger.info("Prompt generation tools registered")

    # --- Register resources ---
    register_profile_resources(server, registry)

    return server


# Module-level instance for FastMCP discovery.
# Lazy: only created when this module is loaded directly (not when tests import create_app).
def __getattr__(name: str):
    if name == "mcp":
        global mcp  # noqa: PLW0603
        mcp = create_app()
        return mcp
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
