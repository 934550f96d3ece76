"""Text embedding interface, the bundled local embedder, and the OpenAI adapter."""

from __future__ import annotations

import hashlib
import logging
import math
import re
from collections import Counter
from typing import Protocol, Sequence, runtime_checkable

logger = logging.getLogger(__name__)

_WORD_PATTERN = re.compile(r"[A-Za-z0-9_]+")

# Words too common to say anything about a document.
_STOPWORDS = frozenset(
    "a an and are as at be by for from has have in is it its of on or that the "
    "this to was were will with you your".split()
)

DEFAULT_BODY_WEIGHT = 0.2


@runtime_checkable
class Embedder(Protocol):
    """Turns text into a fixed-dimension vector."""

    @property
    def dimensions(self) -> int: ...

    def embed_sync(self, text: str) -> list[float]: ...

    async def embed(self, text: str) -> list[float]: ...


# ---------------------------------------------------------------------------
# Local hashing embedder
# ---------------------------------------------------------------------------

class HashingEmbedder:
    """Bag-of-words embedding using the hashing trick.

    Deterministic across processes (blake2b, not ``hash()``), so vectors
    stored at ingest time stay comparable with query vectors later.

    The first line of a multi-line text is its head: the tool and category
    keys written by ``promptcraft.core.knowledge.keys``. Head and body are
    embedded separately and the body is blended in at ``body_weight``, so two
    texts with matching keys stay close however their prose differs.
    """

    def __init__(self, dimensions: int = 1024, *, body_weight: float = DEFAULT_BODY_WEIGHT) -> None:
        if dimensions <= 0:
            raise ValueError("dimensions must be positive")
        if body_weight < 0:
            raise ValueError("body_weight must be >= 0")
        self._dimensions = dimensions
        self._body_weight = body_weight

    @property
    def dimensions(self) -> int:
        return self._dimensions

    def embed_sync(self, text: str) -> list[float]:
        head, _, body = (text or "").partition("\n")
        vector = self._bag(head)
        if body.strip():
            for i, value in enumerate(self._bag(body)):
                vector[i] += self._body_weight * value
        return _normalize(vector)

    async def embed(self, text: str) -> list[float]:
        return self.embed_sync(text)

    def _bag(self, text: str) -> list[float]:
        vector = [0.0] * self._dimensions
        tokens = [t.lower() for t in _WORD_PATTERN.findall(text)]
        counts = Counter(t for t in tokens if t not in _STOPWORDS and len(t) > 1)
        for token, count in counts.items():
            vector[self._bucket(token)] += 1.0 + math.log(count)
        return _normalize(vector)

    def _bucket(self, token: str) -> int:
        digest = hashlib.blake2b(token.encode("utf-8"), digest_size=8).digest()
        return int.from_bytes(digest, "big") % self._dimensions


# ---------------------------------------------------------------------------
# OpenAI embeddings
# ---------------------------------------------------------------------------

class OpenAIEmbedder:
    """Embeddings from the OpenAI embeddings endpoint.

    Holds a sync client for seeding and an async client for queries.
    """

    def __init__(
        self,
        api_key: str,
        model: str = "text-embedding-3-small",
        dimensions: int = 1024,
        *,
        request_timeout_s: float | None = None,
    ) -> None:
        import openai

        client_options: dict = {"api_key": api_key, "max_retries": 1}
        if request_timeout_s is not None:
            client_options["timeout"] = request_timeout_s
        self.client = openai.OpenAI(**client_options)
        self.async_client = openai.AsyncOpenAI(**client_options)
        self.model = model
        self._dimensions = dimensions

    @property
    def dimensions(self) -> int:
        return self._dimensions

    def embed_sync(self, text: str) -> list[float]:
        response = self.client.embeddings.create(
            input=text, model=self.model, dimensions=self._dimensions
        )
        return self._vector(response)

    async def embed(self, text: str) -> list[float]:
        response = await self.async_client.embeddings.create(
            input=text, model=self.model, dimensions=self._dimensions
        )
        return self._vector(response)

    def _vector(self, response) -> list[float]:
        if not response.data:
            raise ValueError(f"OpenAI returned no embedding for model {self.model}")
        vector = [float(v) for v in response.data[0].embedding]
        if len(vector) != self._dimensions:
            logger.warning(
                "Embedding model %s returned %d dimensions, expected %d",
                self.model,
                len(vector),
                self._dimensions,
            )
        return vector


def cosine_similarity(a: Sequence[float], b: Sequence[float]) -> float:
    """Cosine similarity clamped to [0, 1]. Empty or zero vectors score 0."""
    if not a or not b:
        return 0.0
    if len(a) != len(b):
        raise ValueError(f"Embedding dimension mismatch: {len(a)} != {len(b)}")
    dot = sum(x * y for x, y in zip(a, b))
    norm_a = math.sqrt(sum(x * x for x in a))
    norm_b = math.sqrt(sum(y * y for y in b))
    if norm_a == 0.0 or norm_b == 0.0:
        return 0.0
    return max(0.0, min(1.0, dot / (norm_a * norm_b)))


def _normalize(vector: list[float]) -> list[float]:
    norm = math.sqrt(sum(v * v for v in vector))
    if norm == 0.0:
        return vector
    return [v / norm for v in vector]
