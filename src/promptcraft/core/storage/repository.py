"""Knowledge repository — CRUD operations over the two retrieval corpora.

The repository mediates between the knowledge models and SQLite. It also
implements the async ``KnowledgeStore`` interface the retrieval client reads
through.
"""

from __future__ import annotations

import json
import logging
import sqlite3
import uuid
from datetime import datetime, timezone
from typing import Any, Iterable

from promptcraft.core.knowledge.models import (
    Corpus,
    KnowledgeDocument,
    KnowledgeRecord,
    PromptTemplate,
)
from promptcraft.core.storage.database import KnowledgeDatabase

logger = logging.getLogger(__name__)


class RepositoryError(Exception):
    """Raised when repository operations fail."""


_TABLES = {
    Corpus.DOCUMENTS: "knowledge_documents",
    Corpus.TEMPLATES: "prompt_templates",
}


class KnowledgeRepository:
    """CRUD repository for knowledge documents and prompt templates.

    Usage::

        db = KnowledgeDatabase(":memory:")
        db.initialize()
        repo = KnowledgeRepository(db)

        doc_id = repo.add_document(document)
        active = await repo.list_active(Corpus.DOCUMENTS)
    """

    def __init__(self, database: KnowledgeDatabase) -> None:
        self._db = database

    @staticmethod
    def _new_id() -> str:
        return str(uuid.uuid4())

    @staticmethod
    def _now_iso() -> str:
        return datetime.now(timezone.utc).isoformat()

    # ------------------------------------------------------------------
    # Documents
    # ------------------------------------------------------------------

    def add_document(self, document: KnowledgeDocument) -> str:
        """Persist a document.

        A document whose ``content_hash`` is already stored is not inserted
        again; the existing id is returned instead.
        """
        if not document.content_hash:
            raise RepositoryError("Document has no content hash")

        existing = self.find_document_by_hash(document.content_hash)
        if existing is not None:
            logger.debug("Duplicate document content, keeping %s", existing)
            return existing

        conn = self._db.connection
        doc_id = document.id or self._new_id()
        conn.execute(
            """INSERT INTO knowledge_documents (
                id, title, content, document_type, target_tools_json, categories_json,
                complexity_level, embedding_json, content_hash, quality_score,
                retrieval_count, last_retrieved_at, is_active
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)""",
            (
                doc_id,
                document.title,
                document.content,
                document.document_type,
                _dump_list(sorted(document.target_tools)),
                _dump_list(sorted(document.categories)),
                document.complexity_level,
                _dump_list(document.embedding),
                document.content_hash,
                document.quality_score,
                document.retrieval_count,
                document.last_retrieved_at,
                int(document.is_active),
            ),
        )
        conn.commit()
        logger.info("Stored knowledge document %s (%s)", doc_id, document.title)
        return doc_id

    def find_document_by_hash(self, content_hash: str) -> str | None:
        row = self._db.connection.execute(
            "SELECT id FROM knowledge_documents WHERE content_hash = ?", (content_hash,)
        ).fetchone()
        return row["id"] if row else None

    def get_document(self, doc_id: str) -> KnowledgeDocument | None:
        row = self._db.connection.execute(
            "SELECT * FROM knowledge_documents WHERE id = ?", (doc_id,)
        ).fetchone()
        return _row_to_document(row) if row else None

    # ------------------------------------------------------------------
    # Templates
    # ------------------------------------------------------------------

    def add_template(self, template: PromptTemplate) -> str:
        """Persist a prompt template. Returns its id."""
        conn = self._db.connection
        template_id = template.id or self._new_id()
        try:
            conn.execute(
                """INSERT INTO prompt_templates (
                    id, name, content, template_type, target_tool, use_case,
                    project_complexity, embedding_json, required_variables_json,
                    optional_variables_json, usage_count, success_rate, is_active
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)""",
                (
                    template_id,
                    template.name,
                    template.content,
                    template.template_type,
                    template.target_tool,
                    template.use_case,
                    template.project_complexity,
                    _dump_list(template.embedding),
                    _dump_list(list(template.required_variables)),
                    _dump_list(list(template.optional_variables)),
                    template.usage_count,
                    template.success_rate,
                    int(template.is_active),
                ),
            )
        except sqlite3.IntegrityError as exc:
            raise RepositoryError(f"Template {template_id!r} already exists") from exc
        conn.commit()
        logger.info("Stored prompt template %s (%s)", template_id, template.name)
        return template_id

    def get_template(self, template_id: str) -> PromptTemplate | None:
        row = self._db.connection.execute(
            "SELECT * FROM prompt_templates WHERE id = ?", (template_id,)
        ).fetchone()
        return _row_to_template(row) if row else None

    # ------------------------------------------------------------------
    # Shared
    # ------------------------------------------------------------------

    def deactivate(self, corpus: Corpus, record_id: str) -> bool:
        """Hide a record from retrieval. Returns False if it does not exist."""
        cursor = self._db.connection.execute(
            f"UPDATE {_TABLES[corpus]} SET is_active = 0 WHERE id = ?", (record_id,)
        )
        self._db.connection.commit()
        return cursor.rowcount > 0

    def update_embedding(self, corpus: Corpus, record_id: str, embedding: list[float]) -> bool:
        cursor = self._db.connection.execute(
            f"UPDATE {_TABLES[corpus]} SET embedding_json = ? WHERE id = ?",
            (_dump_list(embedding), record_id),
        )
        self._db.connection.commit()
        return cursor.rowcount > 0

    def count(self, corpus: Corpus, *, active_only: bool = False) -> int:
        sql = f"SELECT COUNT(*) FROM {_TABLES[corpus]}"
        if active_only:
            sql += " WHERE is_active = 1"
        return self._db.connection.execute(sql).fetchone()[0]

    def list_active_sync(self, corpus: Corpus) -> list[KnowledgeRecord]:
        rows = self._db.connection.execute(
            f"SELECT * FROM {_TABLES[corpus]} WHERE is_active = 1 ORDER BY rowid"
        ).fetchall()
        convert = _row_to_document if corpus is Corpus.DOCUMENTS else _row_to_template
        return [convert(r) for r in rows]

    def increment_usage(self, corpus: Corpus, record_ids: Iterable[str]) -> int:
        """Bump usage counters once per distinct id. Returns rows updated."""
        ids = list(dict.fromkeys(record_ids))
        if not ids:
            return 0
        conn = self._db.connection
        updated = 0
        if corpus is Corpus.DOCUMENTS:
            now = self._now_iso()
            for record_id in ids:
                updated += conn.execute(
                    """UPDATE knowledge_documents
                       SET retrieval_count = retrieval_count + 1, last_retrieved_at = ?
                       WHERE id = ?""",
                    (now, record_id),
                ).rowcount
        else:
            for record_id in ids:
                updated += conn.execute(
                    "UPDATE prompt_templates SET usage_count = usage_count + 1 WHERE id = ?",
                    (record_id,),
                ).rowcount
        conn.commit()
        return updated

    # KnowledgeStore interface

    async def list_active(self, corpus: Corpus) -> list[KnowledgeRecord]:
        return self.list_active_sync(corpus)

    async def record_usage(self, corpus: Corpus, record_ids: list[str]) -> None:
        self.increment_usage(corpus, record_ids)


# ---------------------------------------------------------------------------
# Row conversion
# ---------------------------------------------------------------------------

def _dump_list(values: Iterable[Any]) -> str:
    return json.dumps(list(values), separators=(",", ":"))


def _load_list(raw: str | None) -> list[Any]:
    if not raw:
        return []
    return json.loads(raw)


def _row_to_document(row: sqlite3.Row) -> KnowledgeDocument:
    return KnowledgeDocument(
        id=row["id"],
        title=row["title"],
        content=row["content"],
        document_type=row["document_type"],
        target_tools=frozenset(_load_list(row["target_tools_json"])),
        categories=frozenset(_load_list(row["categories_json"])),
        complexity_level=row["complexity_level"],
        embedding=[float(v) for v in _load_list(row["embedding_json"])],
        content_hash=row["content_hash"],
        quality_score=row["quality_score"],
        retrieval_count=row["retrieval_count"],
        last_retrieved_at=row["last_retrieved_at"],
        is_active=bool(row["is_active"]),
    )


def _row_to_template(row: sqlite3.Row) -> PromptTemplate:
    return PromptTemplate(
        id=row["id"],
        name=row["name"],
        content=row["content"],
        template_type=row["template_type"],
        target_tool=row["target_tool"],
        use_case=row["use_case"],
        project_complexity=row["project_complexity"],
        embedding=[float(v) for v in _load_list(row["embedding_json"])],
        required_variables=tuple(_load_list(row["required_variables_json"])),
        optional_variables=tuple(_load_list(row["optional_variables_json"])),
        usage_count=row["usage_count"],
        success_rate=row["success_rate"],
        is_active=bool(row["is_active"]),
    )
