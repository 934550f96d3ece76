"""Knowledge retrieval client — similarity search over documents and templates.

Both corpora go through one ranking path parameterised by ``Corpus``. Store
and embedding failures never escape ``search``: they are logged and turn into
an empty result list.
"""

from __future__ import annotations

import logging
from typing import Iterable, Protocol, runtime_checkable

from promptcraft.core.errors import RetrievalDegraded
from promptcraft.core.knowledge.embedding import Embedder, cosine_similarity
from promptcraft.core.knowledge.models import (
    Corpus,
    KnowledgeRecord,
    RetrievalResult,
    SearchFilters,
)

logger = logging.getLogger(__name__)

DEFAULT_DOCUMENT_THRESHOLD = 0.6
DEFAULT_TEMPLATE_THRESHOLD = 0.5


@runtime_checkable
class KnowledgeStore(Protocol):
    """Backing store for the two corpora."""

    async def list_active(self, corpus: Corpus) -> list[KnowledgeRecord]: ...

    async def record_usage(self, corpus: Corpus, record_ids: list[str]) -> None: ...


class KnowledgeRetrievalClient:
    """Ranks stored records against a query text."""

    def __init__(
        self,
        store: KnowledgeStore,
        embedder: Embedder,
        *,
        document_threshold: float = DEFAULT_DOCUMENT_THRESHOLD,
        template_threshold: float = DEFAULT_TEMPLATE_THRESHOLD,
        max_documents: int = 8,
        max_templates: int = 5,
    ) -> None:
        self._store = store
        self._embedder = embedder
        self._thresholds = {
            Corpus.DOCUMENTS: _check_threshold(document_threshold),
            Corpus.TEMPLATES: _check_threshold(template_threshold),
        }
        self._caps = {
            Corpus.DOCUMENTS: _check_cap(max_documents),
            Corpus.TEMPLATES: _check_cap(max_templates),
        }

    @property
    def embedder(self) -> Embedder:
        return self._embedder

    def max_results(self, corpus: Corpus) -> int:
        return self._caps[corpus]

    async def search(
        self,
        corpus: Corpus,
        query_text: str | None,
        filters: SearchFilters | None = None,
        threshold: float | None = None,
        max_results: int | None = None,
    ) -> list[RetrievalResult]:
        """Ranked matches, best first. Empty on any store/embedding failure."""
        try:
            return await self.search_strict(corpus, query_text, filters, threshold, max_results)
        except RetrievalDegraded as exc:
            logger.warning("Retrieval from %s degraded: %s", corpus.value, exc)
            return []

    async def search_strict(
        self,
        corpus: Corpus,
        query_text: str | None,
        filters: SearchFilters | None = None,
        threshold: float | None = None,
        max_results: int | None = None,
    ) -> list[RetrievalResult]:
        """Like ``search`` but raises RetrievalDegraded instead of returning []."""
        corpus = Corpus(corpus)
        filters = filters or SearchFilters()
        threshold = self._thresholds[corpus] if threshold is None else _check_threshold(threshold)
        limit = self._caps[corpus] if max_results is None else _check_cap(max_results)

        try:
            records = await self._store.list_active(corpus)
        except Exception as exc:
            raise RetrievalDegraded(f"store unavailable ({exc!r})") from exc

        candidates = [r for r in records if r.is_active and filters.matches(r)]

        if query_text and query_text.strip():
            results = await self._rank_by_similarity(candidates, query_text, threshold)
        else:
            # Degraded mode: no query to embed, so rank by stored quality.
            logger.info("No query text for %s search; ranking by stored quality", corpus.value)
            results = [
                RetrievalResult(record=r, similarity_score=0.0)
                for r in sorted(candidates, key=lambda r: -r.rank_score)
            ]

        results = results[:limit]
        if results:
            await self._record_usage(corpus, (r.id for r in results))
        return results

    async def search_documents(
        self,
        query_text: str | None,
        *,
        target_tools: Iterable[str] = (),
        categories: Iterable[str] = (),
        complexity: str = "",
        threshold: float | None = None,
        max_results: int | None = None,
    ) -> list[RetrievalResult]:
        filters = SearchFilters(
            target_tools=frozenset(target_tools),
            categories=frozenset(categories),
            complexity=complexity,
        )
        return await self.search(Corpus.DOCUMENTS, query_text, filters, threshold, max_results)

    async def search_templates(
        self,
        query_text: str | None,
        *,
        target_tool: str = "",
        template_type: str = "",
        complexity: str = "",
        threshold: float | None = None,
        max_results: int | None = None,
    ) -> list[RetrievalResult]:
        filters = SearchFilters(
            target_tools=frozenset([target_tool]) if target_tool else frozenset(),
            template_type=template_type,
            complexity=complexity,
        )
        return await self.search(Corpus.TEMPLATES, query_text, filters, threshold, max_results)

    # ------------------------------------------------------------------

    async def _rank_by_similarity(
        self, candidates: list[KnowledgeRecord], query_text: str, threshold: float
    ) -> list[RetrievalResult]:
        try:
            query_vector = await self._embedder.embed(query_text)
        except Exception as exc:
            raise RetrievalDegraded(f"embedding failed ({exc!r})") from exc

        scored: list[RetrievalResult] = []
        for record in candidates:
            if not record.embedding:
                continue
            try:
                similarity = cosine_similarity(query_vector, record.embedding)
            except ValueError:
                logger.warning("Skipping %s: embedding dimension mismatch", record.id)
                continue
            if similarity >= threshold:
                scored.append(RetrievalResult(record=record, similarity_score=similarity))
        scored.sort(key=lambda r: -r.similarity_score)
        return scored

    async def _record_usage(self, corpus: Corpus, record_ids: Iterable[str]) -> None:
        ids = list(dict.fromkeys(record_ids))
        try:
            await self._store.record_usage(corpus, ids)
        except Exception:
            logger.warning("Failed to record usage for %d %s", len(ids), corpus.value)


def _check_threshold(value: float) -> float:
    if not 0.0 <= value <= 1.0:
        raise ValueError(f"similarity threshold must be within [0, 1], got {value}")
    return value


def _check_cap(value: int) -> int:
    if value < 0:
        raise ValueError(f"max_results must be >= 0, got {value}")
    return value
