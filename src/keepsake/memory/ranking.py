"""
Memory retrieval ranking.

Three modes over an in-memory list of Memory objects:
- keyword: fraction of query tokens found as substrings of the memory text
- semantic: cosine similarity between query and memory embeddings
- hybrid: weighted blend of the two
"""

import math
from collections.abc import Sequence
from dataclasses import dataclass
from enum import Enum

from keepsake.core.errors import ConfigurationError, DependencyError, ValidationError
from keepsake.core.logging import get_logger
from keepsake.llm.base import EmbeddingProvider
from keepsake.memory.base import Memory
from keepsake.memory.embedding_cache import EmbeddingCache

logger = get_logger("memory.ranking")


class SearchMode(Enum):
    KEYWORD = "keyword"
    SEMANTIC = "semantic"
    HYBRID = "hybrid"


@dataclass
class ScoredMemory:
    memory: Memory
    score: float


def cosine_similarity(a: Sequence[float], b: Sequence[float]) -> float:
    """Cosine similarity in [-1, 1]; 0.0 for empty, mismatched or zero vectors."""
    if not a or not b or len(a) != len(b):
        return 0.0

    dot_product = sum(x * y for x, y in zip(a, b))
    norm_a = math.sqrt(sum(x * x for x in a))
    norm_b = math.sqrt(sum(y * y for y in b))

    if norm_a == 0 or norm_b == 0:
        return 0.0

    similarity = dot_product / (norm_a * norm_b)
    return max(-1.0, min(1.0, similarity))


def keyword_score(query: str, text: str) -> float:
    """Matched query tokens / total query tokens (substring match, case-insensitive)."""
    tokens = query.lower().split()
    if not tokens:
        return 0.0
    haystack = text.lower()
    matched = sum(1 for token in tokens if token in haystack)
    return matched / len(tokens)


def apply_limit(results: list, limit: int) -> list:
    if limit <= 0 or limit >= len(results):
        return results
    return results[:limit]


class MemoryRanker:
    """Scores and orders memories against a query."""

    def __init__(
        self,
        embedder: EmbeddingProvider | None = None,
        cache: EmbeddingCache | None = None,
    ):
        self.embedder = embedder
        self.cache = cache if cache is not None else EmbeddingCache()

    async def score(
        self,
        mode: SearchMode,
        query: str,
        memories: list[Memory],
        semantic_weight: float = 0.5,
    ) -> list[ScoredMemory]:
        """Score memories, best first. Ties keep input order."""
        if not query.strip():
            raise ValidationError("search query must not be empty")

        if mode == SearchMode.HYBRID and self.embedder is None:
            logger.debug("No embedder configured, hybrid search falls back to keyword")
            mode = SearchMode.KEYWORD

        if mode == SearchMode.KEYWORD:
            scored = self._score_keyword(query, memories)
        elif mode == SearchMode.SEMANTIC:
            scored = await self._score_semantic(query, memories)
        else:
            scored = await self._score_hybrid(query, memories, semantic_weight)

        # list.sort is stable: equal scores stay in input order
        scored.sort(key=lambda s: s.score, reverse=True)
        return scored

    async def search(
        self,
        mode: SearchMode,
        query: str,
        memories: list[Memory],
        limit: int = 0,
        semantic_weight: float = 0.5,
    ) -> list[Memory]:
        """Return the top `limit` memories (all of them when limit <= 0)."""
        scored = await self.score(mode, query, memories, semantic_weight)
        results = [s.memory for s in apply_limit(scored, limit)]
        logger.debug(
            f"{mode.value} search over {len(memories)} memories -> {len(results)} results"
        )
        return results

    def _score_keyword(self, query: str, memories: list[Memory]) -> list[ScoredMemory]:
        scored = []
        for memory in memories:
            value = keyword_score(query, memory.text)
            if value > 0:
                scored.append(ScoredMemory(memory, value))
        return scored

    async def _embed_query(self, query: str) -> list[float]:
        if self.embedder is None:
            raise ConfigurationError("semantic search requires an embedding provider")
        try:
            return await self.embedder.embed(query)
        except Exception as e:
            raise DependencyError("embed query", e) from e

    async def _embed_memory(self, memory: Memory) -> list[float] | None:
        """Embedding for a memory, or None if the provider failed."""
        try:
            return await self.cache.get_or_embed(memory, self.embedder)
        except Exception as e:
            logger.warning(f"Skipping embedding for memory {memory.id}: {e}")
            return None

    async def _score_semantic(self, query: str, memories: list[Memory]) -> list[ScoredMemory]:
        query_vector = await self._embed_query(query)
        scored = []
        for memory in memories:
            vector = await self._embed_memory(memory)
            if vector is None:
                continue
            scored.append(ScoredMemory(memory, cosine_similarity(query_vector, vector)))
        return scored

    async def _score_hybrid(
        self,
        query: str,
        memories: list[Memory],
        semantic_weight: float,
    ) -> list[ScoredMemory]:
        weight = max(0.0, min(1.0, semantic_weight))
        query_vector = await self._embed_query(query)
        scored = []
        for memory in memories:
            vector = await self._embed_memory(memory)
            semantic = cosine_similarity(query_vector, vector) if vector is not None else 0.0
            keyword = keyword_score(query, memory.text)
            scored.append(ScoredMemory(memory, weight * semantic + (1 - weight) * keyword))
        return scored
