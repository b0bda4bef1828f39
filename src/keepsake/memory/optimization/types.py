"""Compaction strategy interface and result type."""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum

from keepsake.memory.base import Memory


class StrategyType(Enum):
    SUMMARIZE = "summarize"
    RECENT_ONLY = "recent_only"
    KEYWORD = "keyword"
    HIERARCHICAL = "hierarchical"


@dataclass
class CompactionResult:
    """Outcome of running a strategy over a user's memories."""

    original_count: int
    optimized_count: int
    strategy_type: StrategyType
    memories: list[Memory] = field(default_factory=list)
    removed_ids: list[str] = field(default_factory=list)

    @property
    def reduction(self) -> float:
        """Fraction of memories removed (0.0 when there was nothing to start with)."""
        if self.original_count == 0:
            return 0.0
        return max(0.0, (self.original_count - self.optimized_count) / self.original_count)


class CompactionStrategy(ABC):
    """Turns a list of memories into a smaller list of memories."""

    type: StrategyType

    @property
    @abstractmethod
    def name(self) -> str:
        """Human-readable strategy name."""
        ...

    @property
    @abstractmethod
    def description(self) -> str:
        ...

    @abstractmethod
    async def optimize(self, memories: list[Memory]) -> list[Memory]:
        """
        Compact memories.

        Args:
            memories: Input memories, oldest first

        Returns:
            Resulting memories (may reuse input objects)

        Raises:
            EmptyInputError: when memories is empty
        """
        ...
