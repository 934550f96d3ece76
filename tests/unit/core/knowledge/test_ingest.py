"""Tests for knowledge ingestion and the bundled seed corpus."""

from __future__ import annotations

import asyncio

import pytest

from conftest import BUNDLED_KNOWLEDGE_DIR, FixedEmbedder
from promptcraft.core.knowledge.embedding import HashingEmbedder
from promptcraft.core.knowledge.ingest import (
    KnowledgeIngestor,
    content_hash,
    refresh_embeddings,
    seed_knowledge_store,
)
from promptcraft.core.knowledge.keys import document_query, template_query
from promptcraft.core.knowledge.models import Corpus, SearchFilters
from promptcraft.core.knowledge.retrieval import KnowledgeRetrievalClient
from promptcraft.core.stages import STAGE_CATEGORIES, TEMPLATE_TYPES, PromptStage


def _run(coro):
    """Run an async coroutine synchronously (no pytest-asyncio required)."""
    loop = asyncio.new_event_loop()
    try:
        return loop.run_until_complete(coro)
    finally:
        loop.close()


@pytest.fixture
def ingestor(knowledge_repository, embedder):
    return KnowledgeIngestor(knowledge_repository, embedder)


class TestContentHash:
    def test_sha256_hex(self):
        assert len(content_hash("abc")) == 64

    def test_whitespace_insensitive(self):
        assert content_hash("use  tailwind\nbreakpoints ") == content_hash("use tailwind breakpoints")

    def test_different_content_differs(self):
        assert content_hash("a") != content_hash("b")


class TestIngestor:
    def test_add_document_embeds_and_stores(self, ingestor, knowledge_repository):
        doc_id = ingestor.add_document(
            "Tailwind", "Use breakpoints.", target_tools=["lovable"], categories=["styling"],
        )
        doc = knowledge_repository.get_document(doc_id)
        assert doc.title == "Tailwind"
        assert len(doc.embedding) == 64
        assert doc.target_tools == frozenset({"lovable"})
        assert doc.content_hash == content_hash("Use breakpoints.")

    def test_duplicate_content_returns_existing_id(self, ingestor, knowledge_repository):
        first = ingestor.add_document("A", "Same content")
        second = ingestor.add_document("B", "Same   content")
        assert first == second
        assert knowledge_repository.count(Corpus.DOCUMENTS) == 1

    def test_quality_score_clamped(self, ingestor, knowledge_repository):
        doc_id = ingestor.add_document("A", "content", quality_score=3.0)
        assert knowledge_repository.get_document(doc_id).quality_score == 1.0

    def test_rejects_empty_and_unknown_type(self, ingestor):
        with pytest.raises(ValueError):
            ingestor.add_document("A", "   ")
        with pytest.raises(ValueError):
            ingestor.add_document("A", "content", document_type="rumour")

    def test_template_variables_split(self, ingestor, knowledge_repository):
        template_id = ingestor.add_template(
            "Skeleton",
            "Build {project_name} for {target_audience} using {tech_stack}",
            template_type="skeleton",
            optional_variables=["target_audience"],
            template_id="tpl-1",
        )
        template = knowledge_repository.get_template(template_id)
        assert template_id == "tpl-1"
        assert template.required_variables == ("project_name", "tech_stack")
        assert template.optional_variables == ("target_audience",)

    def test_template_rejects_unknown_kind(self, ingestor):
        with pytest.raises(ValueError):
            ingestor.add_template("X", "content", template_type="poem")


class TestSeed:
    def test_seeds_empty_store(self, knowledge_repository, embedder):
        documents, templates = seed_knowledge_store(
            BUNDLED_KNOWLEDGE_DIR, knowledge_repository, embedder
        )
        assert documents > 0 and templates > 0
        assert knowledge_repository.count(Corpus.DOCUMENTS) == documents
        assert knowledge_repository.count(Corpus.TEMPLATES) == templates

    def test_skips_populated_store(self, knowledge_repository, embedder):
        seed_knowledge_store(BUNDLED_KNOWLEDGE_DIR, knowledge_repository, embedder)
        assert seed_knowledge_store(BUNDLED_KNOWLEDGE_DIR, knowledge_repository, embedder) == (0, 0)

    def test_missing_directory(self, knowledge_repository, embedder, tmp_path):
        assert seed_knowledge_store(tmp_path / "missing", knowledge_repository, embedder) == (0, 0)

    def test_seeded_records_are_retrievable(self, knowledge_repository, embedder):
        seed_knowledge_store(BUNDLED_KNOWLEDGE_DIR, knowledge_repository, embedder)
        client = KnowledgeRetrievalClient(knowledge_repository, embedder)
        results = _run(client.search_documents(None, target_tools=["lovable"]))
        assert results
        assert all("lovable" in r.record.target_tools for r in results)

    def test_seeding_embeds_each_stored_record_once(self, knowledge_repository):
        embedder = FixedEmbedder([0.0, 1.0])
        seed_knowledge_store(BUNDLED_KNOWLEDGE_DIR, knowledge_repository, embedder)
        assert embedder.calls == (
            knowledge_repository.count(Corpus.DOCUMENTS)
            + knowledge_repository.count(Corpus.TEMPLATES)
        )


class TestRefreshEmbeddings:
    def test_reembeds_mismatched_vectors(self, knowledge_repository, embedder):
        seed_knowledge_store(BUNDLED_KNOWLEDGE_DIR, knowledge_repository, embedder)
        total = knowledge_repository.count(Corpus.DOCUMENTS) + knowledge_repository.count(
            Corpus.TEMPLATES
        )
        smaller = HashingEmbedder(32)
        assert refresh_embeddings(knowledge_repository, smaller) == total
        for corpus in (Corpus.DOCUMENTS, Corpus.TEMPLATES):
            assert all(
                len(r.embedding) == 32 for r in knowledge_repository.list_active_sync(corpus)
            )

    def test_matching_vectors_are_left_alone(self, knowledge_repository, embedder):
        seed_knowledge_store(BUNDLED_KNOWLEDGE_DIR, knowledge_repository, embedder)
        assert refresh_embeddings(knowledge_repository, embedder) == 0

    def test_reseed_with_new_embedder_refreshes(self, knowledge_repository, embedder):
        seed_knowledge_store(BUNDLED_KNOWLEDGE_DIR, knowledge_repository, embedder)
        replacement = HashingEmbedder(128)
        assert seed_knowledge_store(BUNDLED_KNOWLEDGE_DIR, knowledge_repository, replacement) == (0, 0)
        template = knowledge_repository.get_template("lovable-skeleton")
        assert len(template.embedding) == 128


class TestBundledCorpusRanking:
    """The bundled corpus, default embedder and default thresholds work together."""

    QUERY_TEXT = "TaskMaster Pro\nTeam task manager with shared boards\napp architecture"

    @pytest.fixture
    def client(self, knowledge_repository):
        embedder = HashingEmbedder()
        seed_knowledge_store(BUNDLED_KNOWLEDGE_DIR, knowledge_repository, embedder)
        return KnowledgeRetrievalClient(knowledge_repository, embedder)

    def test_lovable_skeleton_documents_pass_threshold(self, client):
        stage = PromptStage.SKELETON
        results = _run(client.search_strict(
            Corpus.DOCUMENTS,
            document_query("lovable", STAGE_CATEGORIES[stage], self.QUERY_TEXT),
            SearchFilters(
                target_tools=frozenset({"lovable"}),
                categories=frozenset(STAGE_CATEGORIES[stage]),
            ),
        ))
        titles = [r.record.title for r in results]
        assert "Supabase data modeling for Lovable apps" in titles
        assert all(r.similarity_score >= 0.6 for r in results)
        assert len(results) <= client.max_results(Corpus.DOCUMENTS)

    def test_lovable_skeleton_template_passes_threshold(self, client):
        stage = PromptStage.SKELETON
        results = _run(client.search_strict(
            Corpus.TEMPLATES,
            template_query("lovable", TEMPLATE_TYPES[stage], self.QUERY_TEXT),
            SearchFilters(target_tools=frozenset({"lovable"}), template_type=TEMPLATE_TYPES[stage]),
        ))
        assert [r.id for r in results] == ["lovable-skeleton"]
        assert results[0].similarity_score >= 0.5

    def test_flow_stage_finds_shared_guide(self, client):
        stage = PromptStage.FLOW_CONNECTIONS
        results = _run(client.search_strict(
            Corpus.DOCUMENTS,
            document_query("lovable", STAGE_CATEGORIES[stage], self.QUERY_TEXT),
            SearchFilters(
                target_tools=frozenset({"lovable"}),
                categories=frozenset(STAGE_CATEGORIES[stage]),
            ),
        ))
        assert "Routing and navigation flows" in [r.record.title for r in results]
