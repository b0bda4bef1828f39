"""Strategy lookup by type or by loose name."""

from keepsake.core.errors import ConfigurationError, StrategyNotImplementedError
from keepsake.llm.base import LLMProvider
from keepsake.memory.optimization.recent_only import DEFAULT_KEEP_COUNT, RecentOnlyStrategy
from keepsake.memory.optimization.summarize import SummarizeStrategy
from keepsake.memory.optimization.types import CompactionStrategy, StrategyType

_NOT_IMPLEMENTED = {StrategyType.KEYWORD, StrategyType.HIERARCHICAL}


def normalize_name(name: str) -> str:
    """'Recent-Only', 'recent_only', 'RecentOnly' -> 'recentonly'."""
    return "".join(ch for ch in name.lower() if ch not in "_- ")


_BY_NAME = {normalize_name(t.value): t for t in StrategyType}


class StrategyFactory:
    """Builds CompactionStrategy instances."""

    def __init__(self, llm: LLMProvider | None = None, default_keep: int = DEFAULT_KEEP_COUNT):
        self.llm = llm
        self.default_keep = default_keep

    def create(
        self,
        strategy_type: StrategyType | str,
        keep_count: int | None = None,
    ) -> CompactionStrategy:
        if isinstance(strategy_type, str):
            try:
                strategy_type = StrategyType(strategy_type)
            except ValueError:
                raise ConfigurationError(f"unknown strategy type: {strategy_type}") from None

        if strategy_type == StrategyType.SUMMARIZE:
            if self.llm is None:
                raise ConfigurationError("summarize strategy requires an LLM provider")
            return SummarizeStrategy(self.llm)

        if strategy_type == StrategyType.RECENT_ONLY:
            return RecentOnlyStrategy(keep_count if keep_count is not None else self.default_keep)

        if strategy_type in _NOT_IMPLEMENTED:
            raise StrategyNotImplementedError(
                f"{strategy_type.value} strategy not yet implemented"
            )

        raise ConfigurationError(f"unknown strategy type: {strategy_type}")

    def create_by_name(self, name: str, keep_count: int | None = None) -> CompactionStrategy:
        """Create a strategy from a loosely formatted name."""
        strategy_type = _BY_NAME.get(normalize_name(name))
        if strategy_type is None:
            raise ConfigurationError(f"unknown strategy name: {name}")
        return self.create(strategy_type, keep_count)

    def list_available(self) -> dict[str, str]:
        """Implemented strategy names mapped to their descriptions."""
        return {
            StrategyType.SUMMARIZE.value: "Combine all memories into a single comprehensive summary",
            StrategyType.RECENT_ONLY.value: "Keep only the N most recent memories",
        }
