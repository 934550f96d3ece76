"""Shared test fixtures for PromptCraft tests."""

from __future__ import annotations

import sys
from pathlib import Path
from types import MappingProxyType

import pytest

# ---------------------------------------------------------------------------
# Test hermeticity
# ---------------------------------------------------------------------------

@pytest.fixture(autouse=True)
def _force_hermetic_test_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("LLM_PROVIDER", "mock")
    monkeypatch.setenv("ANTHROPIC_API_KEY", "")
    monkeypatch.setenv("OPENAI_API_KEY", "")
    monkeypatch.setenv("KNOWLEDGE_DB_PATH", ":memory:")
    monkeypatch.setenv("PROFILE_DIR", "")
    monkeypatch.setenv("KNOWLEDGE_SEED_DIR", "")
    for name in ("PROMPTCRAFT_HOST", "PROMPTCRAFT_PORT", "PROMPTCRAFT_TRANSPORT", "EMBEDDING_PROVIDER"):
        monkeypatch.delenv(name, raising=False)

# Allow running tests without `pip install -e .` by making `src/` importable.
_PROJECT_ROOT = Path(__file__).resolve().parent.parent
_SRC_DIR = _PROJECT_ROOT / "src"
if str(_SRC_DIR) not in sys.path:
    sys.path.insert(0, str(_SRC_DIR))

from promptcraft.core.knowledge.embedding import HashingEmbedder  # noqa: E402
from promptcraft.core.knowledge.models import (  # noqa: E402
    Corpus,
    KnowledgeDocument,
    KnowledgeRecord,
    PromptTemplate,
)
from promptcraft.core.profiles.models import (  # noqa: E402
    Pitfall,
    PromptingStrategy,
    ToolProfile,
)
from promptcraft.core.profiles.registry import ToolProfileRegistry  # noqa: E402

BUNDLED_PROFILE_DIR = _SRC_DIR / "promptcraft" / "domains" / "devtools" / "profiles"
BUNDLED_KNOWLEDGE_DIR = _SRC_DIR / "promptcraft" / "domains" / "devtools" / "knowledge"

TEST_SKELETON = (
    "Build {project_name} with {tool_name} for {target_audience}.\n\n"
    "Task: {description}\n\n"
    "Stack: {tech_stack}\n\n"
    "{technical_requirements}\n\n"
    "{ui_requirements}\n\n"
    "{constraints}\n\n"
    "{guidelines}\n\n"
    "{knowledge}\n\n"
    "Implement the {task_type} step by step."
)


def make_test_profile(
    id: str = "toolA",
    strategies: list[PromptingStrategy] | None = None,
    pitfalls: list[Pitfall] | None = None,
    stage_templates: dict[str, str] | None = None,
    default_tech_stack: tuple[str, ...] = ("React", "TypeScript"),
) -> ToolProfile:
    """Create a test tool profile with sensible defaults."""
    return ToolProfile(
        id=id,
        display_name=f"Tool {id}",
        description=f"Test profile {id}",
        category="editor",
        complexity="beginner",
        output_format="structured_sections",
        tone="expert_casual",
        strategies=tuple(strategies or [
            PromptingStrategy(
                kind="structured",
                template=TEST_SKELETON,
                use_cases=("app_architecture", "ui_development"),
                effectiveness=0.9,
            ),
            PromptingStrategy(
                kind="conversational",
                template="Let's work on {project_name}: {description}\n\n{knowledge}",
                use_cases=("debugging",),
                effectiveness=0.8,
            ),
        ]),
        constraints=("React only",),
        optimization_tips=("Use the Knowledge Base",),
        common_pitfalls=tuple(pitfalls or [
            Pitfall(
                name="too_much_at_once",
                description="Everything in one prompt",
                forbidden_patterns=("all at once",),
            ),
        ]),
        guidelines=("Use modern React patterns",),
        default_tech_stack=default_tech_stack,
        stage_templates=MappingProxyType(dict(stage_templates or {})),
    )


def make_document(
    id: str,
    title: str = "",
    content: str = "",
    *,
    target_tools: tuple[str, ...] = ("toolA",),
    categories: tuple[str, ...] = ("architecture",),
    embedding: list[float] | None = None,
    quality_score: float = 0.5,
    is_active: bool = True,
) -> KnowledgeDocument:
    return KnowledgeDocument(
        id=id,
        title=title or f"Document {id}",
        content=content or f"Reference content for {id}.",
        target_tools=frozenset(target_tools),
        categories=frozenset(categories),
        embedding=embedding if embedding is not None else [1.0, 0.0],
        content_hash=id,
        quality_score=quality_score,
        is_active=is_active,
    )


def make_template(
    id: str,
    content: str = "",
    *,
    target_tool: str = "toolA",
    template_type: str = "skeleton",
    embedding: list[float] | None = None,
    success_rate: float = 0.5,
) -> PromptTemplate:
    return PromptTemplate(
        id=id,
        name=f"Template {id}",
        content=content or f"Start {{project_name}} the {id} way.",
        template_type=template_type,
        target_tool=target_tool,
        embedding=embedding if embedding is not None else [1.0, 0.0],
        success_rate=success_rate,
    )


class FakeKnowledgeStore:
    """In-memory KnowledgeStore with failure and latency switches."""

    def __init__(
        self,
        documents: list[KnowledgeDocument] | None = None,
        templates: list[PromptTemplate] | None = None,
    ) -> None:
        self.records: dict[Corpus, list[KnowledgeRecord]] = {
            Corpus.DOCUMENTS: list(documents or []),
            Corpus.TEMPLATES: list(templates or []),
        }
        self.usage: list[tuple[Corpus, list[str]]] = []
        self.fail: set[Corpus] = set()
        self.fail_usage = False
        self.delay_s: dict[Corpus, float] = {}

    async def list_active(self, corpus: Corpus) -> list[KnowledgeRecord]:
        import asyncio

        if self.delay_s.get(corpus):
            await asyncio.sleep(self.delay_s[corpus])
        if corpus in self.fail:
            raise ConnectionError(f"{corpus.value} store unavailable")
        return list(self.records[corpus])

    async def record_usage(self, corpus: Corpus, record_ids: list[str]) -> None:
        if self.fail_usage:
            raise ConnectionError("usage write failed")
        self.usage.append((corpus, list(record_ids)))


class FixedEmbedder:
    """Embeds every text to the same vector (or raises)."""

    def __init__(self, vector: list[float] | None = None, error: Exception | None = None) -> None:
        self.vector = vector or [1.0, 0.0]
        self.error = error
        self.calls = 0

    @property
    def dimensions(self) -> int:
        return len(self.vector)

    def embed_sync(self, text: str) -> list[float]:
        self.calls += 1
        if self.error is not None:
            raise self.error
        return list(self.vector)

    async def embed(self, text: str) -> list[float]:
        return self.embed_sync(text)


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def test_profile() -> ToolProfile:
    return make_test_profile()


@pytest.fixture
def registry(test_profile: ToolProfile) -> ToolProfileRegistry:
    """Registry holding the single toolA test profile."""
    reg = ToolProfileRegistry()
    reg.register(test_profile)
    return reg


@pytest.fixture
def bundled_registry() -> ToolProfileRegistry:
    """Registry loaded from the packaged profile YAML files."""
    from promptcraft.core.profiles.loader import load_profile_directory

    reg = ToolProfileRegistry()
    load_profile_directory(BUNDLED_PROFILE_DIR, reg)
    return reg


@pytest.fixture
def fake_store() -> FakeKnowledgeStore:
    return FakeKnowledgeStore()


@pytest.fixture
def embedder() -> HashingEmbedder:
    return HashingEmbedder(64)


@pytest.fixture
def sample_idea() -> dict:
    return {
        "appName": "TaskFlow",
        "ideaDescription": "A to-do app with shared lists for small teams",
        "platforms": ["web"],
        "designStyle": "minimal",
        "targetAudience": "Small remote teams",
    }


@pytest.fixture
def sample_answers() -> dict:
    return {"projectComplexity": "simple", "technicalExperience": "beginner"}


# ---------------------------------------------------------------------------
# In-memory storage fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def knowledge_db():
    """Create an in-memory KnowledgeDatabase for testing."""
    from promptcraft.core.storage.database import KnowledgeDatabase

    db = KnowledgeDatabase(":memory:")
    db.initialize()
    yield db
    db.close()


@pytest.fixture
def knowledge_repository(knowledge_db):
    """Create a KnowledgeRepository backed by in-memory SQLite."""
    from promptcraft.core.storage.repository import KnowledgeRepository

    return KnowledgeRepository(knowledge_db)


@pytest.fixture
def event_log(knowledge_db):
    """Create a GenerationEventLog backed by in-memory SQLite."""
    from promptcraft.core.analytics.sink import GenerationEventLog

    return GenerationEventLog(knowledge_db)
