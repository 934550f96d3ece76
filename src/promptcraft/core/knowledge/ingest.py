"""Knowledge ingestion — embeds and stores documents and templates.

Also loads the bundled seed corpus (YAML) into an empty store at startup.
"""

from __future__ import annotations

import hashlib
import logging
from pathlib import Path
from typing import Any, Iterable

import yaml

from promptcraft.core.compose.renderer import template_fields
from promptcraft.core.knowledge.embedding import Embedder
from promptcraft.core.knowledge.keys import document_text, template_text
from promptcraft.core.knowledge.models import (
    DOCUMENT_TYPES,
    TEMPLATE_KINDS,
    Corpus,
    KnowledgeDocument,
    PromptTemplate,
)
from promptcraft.core.storage.repository import KnowledgeRepository

logger = logging.getLogger(__name__)


def content_hash(content: str) -> str:
    """SHA-256 of whitespace-normalised content; the document uniqueness key."""
    normalised = " ".join(content.split())
    return hashlib.sha256(normalised.encode("utf-8")).hexdigest()


class KnowledgeIngestor:
    """Adds records to the repository with embeddings and content hashes."""

    def __init__(self, repository: KnowledgeRepository, embedder: Embedder) -> None:
        self._repo = repository
        self._embedder = embedder

    def add_document(
        self,
        title: str,
        content: str,
        *,
        document_type: str = "best_practice",
        target_tools: Iterable[str] = (),
        categories: Iterable[str] = (),
        complexity_level: str = "",
        quality_score: float = 0.5,
    ) -> str:
        """Store a document; re-ingesting identical content returns the existing id."""
        if not content.strip():
            raise ValueError("Document content is empty")
        if document_type not in DOCUMENT_TYPES:
            raise ValueError(f"Unknown document type: {document_type!r}")

        digest = content_hash(content)
        existing = self._repo.find_document_by_hash(digest)
        if existing is not None:
            return existing

        target_tools = frozenset(target_tools)
        categories = frozenset(categories)
        embedding = self._embedder.embed_sync(
            document_text(title, content, target_tools, categories)
        )
        return self._repo.add_document(
            KnowledgeDocument(
                id="",
                title=title,
                content=content.strip(),
                document_type=document_type,
                target_tools=target_tools,
                categories=categories,
                complexity_level=complexity_level,
                embedding=embedding,
                content_hash=digest,
                quality_score=max(0.0, min(1.0, quality_score)),
            )
        )

    def add_template(
        self,
        name: str,
        content: str,
        *,
        template_type: str = "feature",
        target_tool: str = "",
        use_case: str = "",
        project_complexity: str = "",
        optional_variables: Iterable[str] = (),
        success_rate: float = 0.0,
        template_id: str = "",
    ) -> str:
        """Store a template. Variables not listed as optional are required."""
        if not content.strip():
            raise ValueError("Template content is empty")
        if template_type not in TEMPLATE_KINDS:
            raise ValueError(f"Unknown template type: {template_type!r}")

        optional = tuple(optional_variables)
        variables = list(dict.fromkeys(template_fields(content)))
        embedding = self._embedder.embed_sync(
            template_text(name, use_case, content, target_tool, template_type)
        )
        return self._repo.add_template(
            PromptTemplate(
                id=template_id,
                name=name,
                content=content.strip(),
                template_type=template_type,
                target_tool=target_tool,
                use_case=use_case,
                project_complexity=project_complexity,
                embedding=embedding,
                required_variables=tuple(v for v in variables if v not in optional),
                optional_variables=tuple(v for v in variables if v in optional),
                success_rate=max(0.0, min(1.0, success_rate)),
            )
        )


def refresh_embeddings(repository: KnowledgeRepository, embedder: Embedder) -> int:
    """Re-embed active records whose vectors do not match the embedder's dimensions.

    Returns the number of records updated.
    """
    updated = 0
    for corpus in (Corpus.DOCUMENTS, Corpus.TEMPLATES):
        for record in repository.list_active_sync(corpus):
            if len(record.embedding) == embedder.dimensions:
                continue
            if isinstance(record, KnowledgeDocument):
                text = document_text(
                    record.title, record.content, record.target_tools, record.categories
                )
            else:
                text = template_text(
                    record.name,
                    record.use_case,
                    record.content,
                    record.target_tool,
                    record.template_type,
                )
            repository.update_embedding(corpus, record.id, embedder.embed_sync(text))
            updated += 1
    if updated:
        logger.info("Re-embedded %d knowledge records at %d dimensions", updated, embedder.dimensions)
    return updated


# ---------------------------------------------------------------------------
# Seed corpus
# ---------------------------------------------------------------------------

def seed_knowledge_store(
    directory: str | Path,
    repository: KnowledgeRepository,
    embedder: Embedder,
) -> tuple[int, int]:
    """Load seed YAML into the store if it holds no records yet.

    A populated store is not reseeded; its vectors are refreshed if they were
    written by a different embedder. Returns (documents_added, templates_added).
    """
    if repository.count(Corpus.DOCUMENTS) or repository.count(Corpus.TEMPLATES):
        logger.info("Knowledge store already populated; skipping seed")
        refresh_embeddings(repository, embedder)
        return 0, 0

    directory = Path(directory)
    if not directory.is_dir():
        logger.warning("Knowledge seed directory does not exist: %s", directory)
        return 0, 0

    ingestor = KnowledgeIngestor(repository, embedder)
    documents = templates = 0
    for path in sorted(directory.rglob("*.yaml")):
        if path.name.startswith("_"):
            continue
        with open(path, encoding="utf-8") as f:
            data: dict[str, Any] = yaml.safe_load(f) or {}

        for entry in data.get("documents", []):
            ingestor.add_document(
                entry["title"],
                entry["content"],
                document_type=entry.get("document_type", "best_practice"),
                target_tools=entry.get("target_tools", []),
                categories=entry.get("categories", []),
                complexity_level=entry.get("complexity_level", ""),
                quality_score=float(entry.get("quality_score", 0.5)),
            )
            documents += 1

        for entry in data.get("templates", []):
            ingestor.add_template(
                entry["name"],
                entry["content"],
                template_type=entry.get("template_type", "feature"),
                target_tool=entry.get("target_tool", ""),
                use_case=entry.get("use_case", ""),
                project_complexity=entry.get("project_complexity", ""),
                optional_variables=entry.get("optional_variables", []),
                success_rate=float(entry.get("success_rate", 0.0)),
                template_id=entry.get("id", ""),
            )
            templates += 1

    logger.info("Seeded knowledge store: %d documents, %d templates", documents, templates)
    return documents, templates
