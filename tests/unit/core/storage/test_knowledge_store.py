"""Tests for the SQLite knowledge database and repository."""

from __future__ import annotations

import asyncio
from dataclasses import replace

import pytest

from conftest import make_document, make_template
from promptcraft.core.knowledge.models import Corpus, KnowledgeDocument, PromptTemplate
from promptcraft.core.storage.database import SCHEMA_VERSION, DatabaseError, KnowledgeDatabase
from promptcraft.core.storage.repository import RepositoryError


def _run(coro):
    """Run an async coroutine synchronously (no pytest-asyncio required)."""
    loop = asyncio.new_event_loop()
    try:
        return loop.run_until_complete(coro)
    finally:
        loop.close()


class TestDatabase:
    def test_initialize_creates_tables(self, knowledge_db):
        tables = {
            row[0]
            for row in knowledge_db.connection.execute(
                "SELECT name FROM sqlite_master WHERE type='table'"
            ).fetchall()
        }
        assert {"knowledge_documents", "prompt_templates", "generation_events", "schema_version"} <= tables

    def test_schema_version(self, knowledge_db):
        assert knowledge_db.get_schema_version() == SCHEMA_VERSION

    def test_initialize_idempotent(self, knowledge_db):
        knowledge_db.initialize()
        assert knowledge_db.get_schema_version() == SCHEMA_VERSION

    def test_connection_before_initialize(self):
        with pytest.raises(DatabaseError):
            KnowledgeDatabase(":memory:").connection

    def test_context_manager(self):
        with KnowledgeDatabase(":memory:") as db:
            assert db.get_schema_version() == SCHEMA_VERSION
        with pytest.raises(DatabaseError):
            db.connection

    def test_file_database_reopens(self, tmp_path):
        path = tmp_path / "nested" / "knowledge.db"
        with KnowledgeDatabase(str(path)) as db:
            assert db.get_schema_version() == SCHEMA_VERSION
        with KnowledgeDatabase(str(path)) as db:
            assert db.get_schema_version() == SCHEMA_VERSION
            rows = db.connection.execute("SELECT version FROM schema_version").fetchall()
            assert sorted(r[0] for r in rows) == list(range(1, SCHEMA_VERSION + 1))


class TestDocuments:
    def test_round_trip(self, knowledge_repository):
        doc = make_document("", title="Routing", categories=("routing", "navigation"))
        doc = replace(doc, content_hash="h1")
        doc_id = knowledge_repository.add_document(doc)
        stored = knowledge_repository.get_document(doc_id)
        assert stored.title == "Routing"
        assert stored.categories == frozenset({"routing", "navigation"})
        assert stored.embedding == [1.0, 0.0]
        assert stored.retrieval_count == 0

    def test_requires_content_hash(self, knowledge_repository):
        doc = KnowledgeDocument(id="", title="t", content="c")
        with pytest.raises(RepositoryError):
            knowledge_repository.add_document(doc)

    def test_duplicate_hash_returns_existing(self, knowledge_repository):
        first = knowledge_repository.add_document(make_document("a"))
        again = knowledge_repository.add_document(
            KnowledgeDocument(id="b", title="other", content="other", content_hash="a")
        )
        assert again == first
        assert knowledge_repository.count(Corpus.DOCUMENTS) == 1

    def test_missing_document(self, knowledge_repository):
        assert knowledge_repository.get_document("nope") is None


class TestTemplates:
    def test_round_trip(self, knowledge_repository):
        template = PromptTemplate(
            id="t1",
            name="Skeleton",
            content="Build {project_name}",
            template_type="skeleton",
            required_variables=("project_name",),
        )
        knowledge_repository.add_template(template)
        stored = knowledge_repository.get_template("t1")
        assert stored.required_variables == ("project_name",)
        assert stored.usage_count == 0

    def test_duplicate_id_rejected(self, knowledge_repository):
        knowledge_repository.add_template(make_template("t1"))
        with pytest.raises(RepositoryError):
            knowledge_repository.add_template(make_template("t1"))


class TestStoreInterface:
    def test_list_active_excludes_deactivated(self, knowledge_repository):
        knowledge_repository.add_document(make_document("a"))
        knowledge_repository.add_document(make_document("b"))
        assert knowledge_repository.deactivate(Corpus.DOCUMENTS, "a") is True
        active = _run(knowledge_repository.list_active(Corpus.DOCUMENTS))
        assert [r.id for r in active] == ["b"]
        assert knowledge_repository.count(Corpus.DOCUMENTS) == 2
        assert knowledge_repository.count(Corpus.DOCUMENTS, active_only=True) == 1

    def test_deactivate_missing(self, knowledge_repository):
        assert knowledge_repository.deactivate(Corpus.TEMPLATES, "nope") is False

    def test_update_embedding(self, knowledge_repository):
        knowledge_repository.add_document(make_document("a"))
        assert knowledge_repository.update_embedding(Corpus.DOCUMENTS, "a", [0.0, 0.5, 0.5])
        assert knowledge_repository.get_document("a").embedding == [0.0, 0.5, 0.5]
        assert knowledge_repository.update_embedding(Corpus.TEMPLATES, "nope", [1.0]) is False

    def test_record_usage_once_per_distinct_id(self, knowledge_repository):
        knowledge_repository.add_document(make_document("a"))
        _run(knowledge_repository.record_usage(Corpus.DOCUMENTS, ["a", "a"]))
        doc = knowledge_repository.get_document("a")
        assert doc.retrieval_count == 1
        assert doc.last_retrieved_at is not None

    def test_template_usage(self, knowledge_repository):
        knowledge_repository.add_template(make_template("t1"))
        assert knowledge_repository.increment_usage(Corpus.TEMPLATES, ["t1", "missing"]) == 1
        assert knowledge_repository.get_template("t1").usage_count == 1
