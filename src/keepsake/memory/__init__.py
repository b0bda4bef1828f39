"""
Memory module - long-term user memory.

Components:
- base: Memory / SessionSummary data model and MemoryDatabase contract
- store: SQLite implementation of the contract
- classifier / extractor: decide whether and what to remember
- summarizer: condense a conversation session
- ranking: keyword, semantic and hybrid retrieval
- optimization: compaction strategies
- manager: orchestration entry point

Storage: SQLite
"""

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
from keepsake.memory.manager import MemoryManager, create_manager
from keepsake.memory.ranking import (
    MemoryRanker,
    ScoredMemory,
    SearchMode,
    cosine_similarity,
    keyword_score,
)
from keepsake.memory.store import SQLiteMemoryStore
from keepsake.memory.summarizer import SessionSummarizer

__all__ = [
    "EmbeddingCache",
    "Memory",
    "MemoryClassifier",
    "MemoryDatabase",
    "MemoryExtractor",
    "MemoryManager",
    "MemoryRanker",
    "SQLiteMemoryStore",
    "ScoredMemory",
    "SearchMode",
    "SessionSummarizer",
    "SessionSummary",
    "TurnPair",
    "cosine_similarity",
    "create_manager",
    "keyword_score",
    "pair_messages",
]
