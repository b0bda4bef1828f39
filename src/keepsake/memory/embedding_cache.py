"""
In-process embedding cache keyed by memory id.

Each entry remembers the text it was computed from, so a memory whose
text changed since the last lookup is treated as a miss and re-embedded.
"""

from keepsake.core.logging import get_logger
from keepsake.core.typing import Vector
from keepsake.llm.base import EmbeddingProvider
from keepsake.memory.base import Memory

logger = get_logger("memory.embedding_cache")


class EmbeddingCache:
    """
    Memory-id -> (text, vector) cache.

    Usage:
        >>> cache = EmbeddingCache()
        >>> vector = await cache.get_or_embed(memory, embedder)
        >>> # Second call hits cache while memory.text is unchanged
        >>> vector = await cache.get_or_embed(memory, embedder)
    """

    def __init__(self):
        self._entries: dict[str, tuple[str, Vector]] = {}

        # Track cache hits/misses
        self.hits = 0
        self.misses = 0

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, memory_id: str) -> bool:
        return memory_id in self._entries

    def get(self, memory: Memory) -> Vector | None:
        """Cached vector for the memory's current text, or None."""
        entry = self._entries.get(memory.id)
        if entry is None or entry[0] != memory.text:
            return None
        return entry[1]

    def put(self, memory: Memory, vector: Vector) -> None:
        self._entries[memory.id] = (memory.text, vector)

    async def get_or_embed(self, memory: Memory, embedder: EmbeddingProvider) -> Vector:
        """Return the cached vector or embed and store it.

        Embedder errors propagate; nothing is cached on failure.
        """
        vector = self.get(memory)
        if vector is not None:
            self.hits += 1
            return vector

        self.misses += 1
        vector = await embedder.embed(memory.text)
        # Memories without an id (not yet stored) are embedded but not cached
        if memory.id:
            self.put(memory, vector)
        return vector

    def invalidate(self, memory_id: str) -> bool:
        """Drop one entry. Returns True if it was cached."""
        return self._entries.pop(memory_id, None) is not None

    def invalidate_many(self, memory_ids: list[str]) -> int:
        return sum(1 for memory_id in memory_ids if self.invalidate(memory_id))

    def clear(self) -> None:
        count = len(self._entries)
        self._entries.clear()
        logger.debug(f"Embedding cache cleared ({count} entries)")

    def stats(self) -> dict:
        """Get cache statistics."""
        total = self.hits + self.misses
        hit_rate = self.hits / total if total > 0 else 0.0

        return {
            "entries": len(self._entries),
            "hits": self.hits,
            "misses": self.misses,
            "total": total,
            "hit_rate": hit_rate,
        }
