"""Data models for the retrieval corpora."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Union

DOCUMENT_TYPES = ("best_practice", "example", "template", "guide", "reference")
TEMPLATE_KINDS = ("skeleton", "feature", "optimization", "debugging")


class Corpus(str, Enum):
    """Which corpus a search runs against."""

    DOCUMENTS = "documents"
    TEMPLATES = "templates"


@dataclass
class KnowledgeDocument:
    """A reference document: best practice, example, guide, ..."""

    id: str
    title: str
    content: str
    document_type: str = "best_practice"
    target_tools: frozenset[str] = frozenset()
    categories: frozenset[str] = frozenset()
    complexity_level: str = ""
    embedding: list[float] = field(default_factory=list)
    content_hash: str = ""
    quality_score: float = 0.5
    retrieval_count: int = 0
    last_retrieved_at: str | None = None
    is_active: bool = True

    @property
    def rank_score(self) -> float:
        return self.quality_score


@dataclass
class PromptTemplate:
    """A reusable prompt template with ``{named}`` variables."""

    id: str
    name: str
    content: str
    template_type: str = "feature"
    target_tool: str = ""
    use_case: str = ""
    project_complexity: str = ""
    embedding: list[float] = field(default_factory=list)
    required_variables: tuple[str, ...] = ()
    optional_variables: tuple[str, ...] = ()
    usage_count: int = 0
    success_rate: float = 0.0
    is_active: bool = True

    @property
    def title(self) -> str:
        return self.name

    @property
    def rank_score(self) -> float:
        return self.success_rate


KnowledgeRecord = Union[KnowledgeDocument, PromptTemplate]


@dataclass(frozen=True)
class SearchFilters:
    """Categorical filters. Empty fields do not filter.

    ``target_tools``/``categories`` match on overlap with the record's sets;
    for templates ``target_tools`` matches the single ``target_tool``.
    """

    target_tools: frozenset[str] = frozenset()
    categories: frozenset[str] = frozenset()
    complexity: str = ""
    template_type: str = ""

    def matches(self, record: KnowledgeRecord) -> bool:
        if isinstance(record, KnowledgeDocument):
            if self.target_tools and not (self.target_tools & record.target_tools):
                return False
            if self.categories and not (self.categories & record.categories):
                return False
            if self.complexity and record.complexity_level != self.complexity:
                return False
            return True

        if self.target_tools and record.target_tool not in self.target_tools:
            return False
        if self.template_type and record.template_type != self.template_type:
            return False
        if self.complexity and record.project_complexity != self.complexity:
            return False
        return True


@dataclass(frozen=True)
class RetrievalResult:
    """A matched record and its similarity to the query, in [0, 1]."""

    record: KnowledgeRecord
    similarity_score: float

    @property
    def id(self) -> str:
        return self.record.id

    @property
    def title(self) -> str:
        return self.record.title

    @property
    def content(self) -> str:
        return self.record.content


@dataclass
class RetrievalStats:
    """What retrieval contributed to a request, for confidence scoring."""

    documents_used: int = 0
    templates_used: int = 0
    expected: int = 4
    similarities: list[float] = field(default_factory=list)

    @property
    def used(self) -> int:
        return self.documents_used + self.templates_used

    @property
    def mean_similarity(self) -> float:
        if not self.similarities:
            return 0.0
        return sum(self.similarities) / len(self.similarities)
