"""Keep only the most recent N memories."""

from keepsake.core.errors import EmptyInputError
from keepsake.memory.base import Memory
from keepsake.memory.optimization.types import CompactionStrategy, StrategyType

DEFAULT_KEEP_COUNT = 5


class RecentOnlyStrategy(CompactionStrategy):
    """Drops everything but the trailing `keep_count` memories.

    Input is assumed to be ordered oldest -> newest.
    """

    type = StrategyType.RECENT_ONLY

    def __init__(self, keep_count: int = DEFAULT_KEEP_COUNT):
        self.keep_count = keep_count if keep_count > 0 else DEFAULT_KEEP_COUNT

    @property
    def name(self) -> str:
        return f"Recent Only (Keep {self.keep_count})"

    @property
    def description(self) -> str:
        return (
            f"Keeps only the {self.keep_count} most recent memories, "
            "discarding older ones to focus on recent interactions"
        )

    async def optimize(self, memories: list[Memory]) -> list[Memory]:
        if not memories:
            raise EmptyInputError("no memories to optimize")
        if len(memories) <= self.keep_count:
            return list(memories)
        return list(memories[-self.keep_count:])
