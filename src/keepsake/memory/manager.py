"""
Memory manager - the public entry point of the memory subsystem.

Wires the classifier, extractor, summarizer, ranker and compaction
strategies around a MemoryDatabase. Writes for one user are serialized
with a per-user asyncio.Lock; reads always go back to the store.
"""

import asyncio
import weakref
from typing import Any

from keepsake.core.config import Settings, get_settings
from keepsake.core.errors import NotFoundError, ValidationError
from keepsake.core.logging import get_logger, preview, setup_logging
from keepsake.llm.base import EmbeddingProvider, LLMProvider
from keepsake.llm.litellm_adapter import LiteLLMProvider
from keepsake.memory.base import (
    Memory,
    MemoryDatabase,
    SessionSummary,
    TurnPair,
    pair_messages,
)
from keepsake.memory.classifier import MemoryClassifier
from keepsake.memory.embedding_cache import EmbeddingCache
from keepsake.memory.extractor import MemoryExtractor
from keepsake.memory.optimization import CompactionResult, StrategyFactory, StrategyType
from keepsake.memory.ranking import MemoryRanker, SearchMode
from keepsake.memory.store import SQLiteMemoryStore
from keepsake.memory.summarizer import SessionSummarizer

logger = get_logger("memory.manager")

CONTEXT_HEADER = "What I know about this user:\n"


class MemoryManager:
    """Creates, retrieves, ranks and compacts user memories."""

    def __init__(
        self,
        store: MemoryDatabase,
        llm: LLMProvider,
        embedder: EmbeddingProvider | None = None,
        settings: Settings | None = None,
    ):
        self.store = store
        self.llm = llm
        self.settings = settings or get_settings()

        self.classifier = MemoryClassifier(llm, temperature=self.settings.classifier_temperature)
        self.extractor = MemoryExtractor(
            llm,
            temperature=self.settings.extraction_temperature,
            use_structured_output=self.settings.structured_extraction,
        )
        self.summarizer = SessionSummarizer(
            llm,
            temperature=self.settings.summary_temperature,
            max_tokens=self.settings.max_tokens,
        )
        self.cache = EmbeddingCache()
        self.ranker = MemoryRanker(embedder, self.cache)
        self.strategies = StrategyFactory(llm, default_keep=self.settings.recent_only_keep)

        # Entries vanish once no coroutine holds or waits on the lock
        self._locks: weakref.WeakValueDictionary[str, asyncio.Lock] = (
            weakref.WeakValueDictionary()
        )

    def get_lock(self, user_id: str) -> asyncio.Lock:
        """Get the write lock for a user."""
        lock = self._locks.get(user_id)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[user_id] = lock
        return lock

    # Creation

    async def create_memory(
        self,
        user_id: str,
        turn_text: str,
        response_text: str,
        agent_id: str | None = None,
        team_id: str | None = None,
        topics: list[str] | None = None,
    ) -> Memory | None:
        """Extract a fact from one exchange and store it.

        Returns None (and writes nothing) when there is nothing to remember.
        """
        text = await self.extractor.extract(turn_text, response_text)
        if not text:
            return None

        memory = Memory(
            user_id=user_id,
            text=text,
            agent_id=agent_id,
            team_id=team_id,
            source_input=turn_text,
            topics=topics or [],
        )
        async with self.get_lock(user_id):
            memory = await self.store.create_memory(memory)
        logger.info(f"Stored memory {memory.id} for {user_id}: {preview(memory.text)}")
        return memory

    async def add_memory(
        self,
        user_id: str,
        text: str,
        source_input: str | None = None,
        topics: list[str] | None = None,
        agent_id: str | None = None,
        team_id: str | None = None,
    ) -> Memory:
        """Store a memory as given, without consulting the oracle."""
        if not text.strip():
            raise ValidationError("memory text must not be empty")

        memory = Memory(
            user_id=user_id,
            text=text.strip(),
            agent_id=agent_id,
            team_id=team_id,
            source_input=source_input,
            topics=topics or [],
        )
        async with self.get_lock(user_id):
            memory = await self.store.create_memory(memory)
        logger.info(f"Added memory {memory.id} for {user_id}")
        return memory

    async def remember_turn(
        self,
        user_id: str,
        turn_text: str,
        response_text: str = "",
    ) -> Memory | None:
        """Full pipeline: classify, extract, persist."""
        existing = await self.store.list_memories(user_id)
        if not await self.classifier.should_remember(turn_text, existing):
            logger.debug(f"Turn not worth remembering for {user_id}")
            return None
        return await self.create_memory(user_id, turn_text, response_text)

    # CRUD

    async def get_memory(self, memory_id: str) -> Memory:
        memory = await self.store.get_memory(memory_id)
        if memory is None:
            raise NotFoundError(f"memory not found: {memory_id}")
        return memory

    async def list_memories(self, user_id: str) -> list[Memory]:
        """All memories for a user, oldest first."""
        return await self.store.list_memories(user_id)

    async def update_memory(self, memory_id: str, new_text: str) -> Memory:
        if not new_text.strip():
            raise ValidationError("memory text must not be empty")

        memory = await self.get_memory(memory_id)
        async with self.get_lock(memory.user_id):
            memory.text = new_text.strip()
            memory.touch()
            if not await self.store.update_memory(memory):
                raise NotFoundError(f"memory not found: {memory_id}")
            self.cache.invalidate(memory_id)
        logger.info(f"Updated memory {memory_id}")
        return memory

    async def delete_memory(self, memory_id: str) -> None:
        memory = await self.get_memory(memory_id)
        async with self.get_lock(memory.user_id):
            if not await self.store.delete_memory(memory_id):
                raise NotFoundError(f"memory not found: {memory_id}")
            self.cache.invalidate(memory_id)
        logger.info(f"Deleted memory {memory_id}")

    async def clear_memories(self, user_id: str) -> int:
        """Delete every memory of a user. Returns the number removed."""
        async with self.get_lock(user_id):
            memories = await self.store.list_memories(user_id)
            count = await self.store.clear_memories(user_id)
            self.cache.invalidate_many([m.id for m in memories])
        logger.info(f"Cleared {count} memories for {user_id}")
        return count

    async def as_context_block(self, user_id: str) -> str:
        """Render the user's memories for inclusion in a system prompt."""
        memories = await self.store.list_memories(user_id)
        if not memories:
            return ""
        return CONTEXT_HEADER + "".join(f"- {m.text}\n" for m in memories)

    # Retrieval

    async def search(
        self,
        user_id: str,
        query: str,
        mode: SearchMode = SearchMode.KEYWORD,
        limit: int | None = None,
        weight: float | None = None,
    ) -> list[Memory]:
        memories = await self.store.list_memories(user_id)
        return await self.ranker.search(
            mode,
            query,
            memories,
            limit=self.settings.search_limit if limit is None else limit,
            semantic_weight=self.settings.hybrid_semantic_weight if weight is None else weight,
        )

    async def search_keyword(
        self, user_id: str, query: str, limit: int | None = None
    ) -> list[Memory]:
        return await self.search(user_id, query, SearchMode.KEYWORD, limit)

    async def search_semantic(
        self, user_id: str, query: str, limit: int | None = None
    ) -> list[Memory]:
        return await self.search(user_id, query, SearchMode.SEMANTIC, limit)

    async def search_hybrid(
        self,
        user_id: str,
        query: str,
        limit: int | None = None,
        weight: float | None = None,
    ) -> list[Memory]:
        return await self.search(user_id, query, SearchMode.HYBRID, limit, weight)

    # Session summaries

    async def create_session_summary(
        self,
        user_id: str,
        session_id: str,
        turn_pairs: list[TurnPair] | list[dict[str, Any]],
    ) -> SessionSummary:
        """Summarize a session and upsert it.

        Accepts TurnPair objects or raw role-tagged message dicts, not a mix.
        """
        if all(isinstance(p, TurnPair) for p in turn_pairs):
            pairs = list(turn_pairs)
        elif all(isinstance(m, dict) for m in turn_pairs):
            pairs = pair_messages(turn_pairs)
        else:
            raise ValidationError("turn_pairs must be all TurnPair objects or all message dicts")

        summary = await self.summarizer.summarize(user_id, session_id, pairs)
        async with self.get_lock(user_id):
            summary = await self.store.create_session_summary(summary)
        logger.info(f"Saved summary for session {session_id} ({user_id})")
        return summary

    async def get_session_summary(self, user_id: str, session_id: str) -> SessionSummary:
        summary = await self.store.get_session_summary(user_id, session_id)
        if summary is None:
            raise NotFoundError(f"no summary for session {session_id} of user {user_id}")
        return summary

    async def update_session_summary(
        self, user_id: str, session_id: str, text: str
    ) -> SessionSummary:
        if not text.strip():
            raise ValidationError("summary text must not be empty")

        async with self.get_lock(user_id):
            summary = await self.get_session_summary(user_id, session_id)
            summary.summary_text = text.strip()
            summary.touch()
            await self.store.update_session_summary(summary)
        return summary

    async def delete_session_summary(self, user_id: str, session_id: str) -> bool:
        """Delete a summary. Returns False if there was none."""
        async with self.get_lock(user_id):
            deleted = await self.store.delete_session_summary(user_id, session_id)
        if deleted:
            logger.info(f"Deleted summary for session {session_id} ({user_id})")
        return deleted

    # Compaction

    async def optimize(
        self,
        strategy_type: StrategyType | str,
        memories: list[Memory],
        keep_count: int | None = None,
    ) -> CompactionResult:
        """Run a strategy over the given memories. The store is not touched."""
        strategy = self.strategies.create(strategy_type, keep_count)
        optimized = await strategy.optimize(memories)
        return CompactionResult(
            original_count=len(memories),
            optimized_count=len(optimized),
            strategy_type=strategy.type,
            memories=optimized,
        )

    async def compact(
        self,
        user_id: str,
        strategy_type: StrategyType | str,
        keep_count: int | None = None,
        replace_originals: bool = False,
    ) -> CompactionResult:
        """Compact a user's stored memories.

        New memories produced by the strategy are persisted. With
        replace_originals, inputs missing from the result are deleted.
        """
        async with self.get_lock(user_id):
            memories = await self.store.list_memories(user_id)
            result = await self.optimize(strategy_type, memories, keep_count)

            original_ids = {m.id for m in memories}
            new_memories = []
            for memory in result.memories:
                if memory.id in original_ids:
                    continue
                if not memory.user_id:
                    memory.user_id = user_id
                new_memories.append(memory)

            delete_ids = []
            if replace_originals:
                kept_ids = {m.id for m in result.memories}
                delete_ids = [m.id for m in memories if m.id not in kept_ids]

            # Inserts and deletes commit together or not at all
            try:
                result.removed_ids = await self.store.replace_memories(new_memories, delete_ids)
            finally:
                self.cache.invalidate_many(delete_ids)

        logger.info(
            f"Compacted {user_id} with {result.strategy_type.value}: "
            f"{result.original_count} -> {result.optimized_count}, "
            f"removed {len(result.removed_ids)}"
        )
        return result


async def create_manager(
    settings: Settings | None = None,
    llm: LLMProvider | None = None,
    embedder: EmbeddingProvider | None = None,
    configure_logging: bool = True,
) -> MemoryManager:
    """Build a MemoryManager over a connected SQLite store.

    Logging is configured from settings.log_level / settings.log_file
    unless configure_logging is False. Without an explicit llm, a
    LiteLLMProvider is built from settings. The caller closes
    manager.store when done.
    """
    settings = settings or get_settings()
    if configure_logging:
        setup_logging(settings.log_level, settings.log_file)

    store = SQLiteMemoryStore(settings.db_path, settings.table_name)
    await store.connect()
    return MemoryManager(
        store,
        llm or LiteLLMProvider.from_settings(settings),
        embedder=embedder,
        settings=settings,
    )
