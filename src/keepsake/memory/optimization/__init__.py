"""
Memory compaction strategies.

Strategies:
- summarize: merge all memories into one (needs an LLM)
- recent_only: keep the trailing N memories
"""

from keepsake.memory.optimization.factory import StrategyFactory
from keepsake.memory.optimization.recent_only import RecentOnlyStrategy
from keepsake.memory.optimization.summarize import SummarizeStrategy
from keepsake.memory.optimization.types import (
    CompactionResult,
    CompactionStrategy,
    StrategyType,
)

__all__ = [
    "CompactionResult",
    "CompactionStrategy",
    "RecentOnlyStrategy",
    "StrategyFactory",
    "StrategyType",
    "SummarizeStrategy",
]
