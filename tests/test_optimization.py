"""Tests for memory compaction strategies."""

import pytest

from conftest import ScriptedLLM
from keepsake.core.errors import (
    ConfigurationError,
    DependencyError,
    EmptyInputError,
    EmptyResponseError,
    StrategyNotImplementedError,
    ValidationError,
)
from keepsake.memory.base import Memory
from keepsake.memory.optimization import (
    CompactionResult,
    RecentOnlyStrategy,
    StrategyFactory,
    StrategyType,
    SummarizeStrategy,
)


def _memories(n: int, **kwargs) -> list[Memory]:
    return [Memory(user_id="u1", text=f"fact number {i}", id=f"m{i}", **kwargs) for i in range(n)]


# RecentOnly


@pytest.mark.asyncio
async def test_recent_only_keeps_tail_in_order():
    memories = _memories(8)
    result = await RecentOnlyStrategy(3).optimize(memories)
    assert [m.id for m in result] == ["m5", "m6", "m7"]


@pytest.mark.asyncio
async def test_recent_only_short_input_unchanged():
    memories = _memories(2)
    assert await RecentOnlyStrategy(5).optimize(memories) == memories


@pytest.mark.parametrize("keep", [0, -3])
def test_recent_only_non_positive_keep_defaults(keep):
    strategy = RecentOnlyStrategy(keep)
    assert strategy.keep_count == 5
    assert strategy.name == "Recent Only (Keep 5)"


# Summarize


@pytest.mark.asyncio
async def test_summarize_merges_into_one():
    llm = ScriptedLLM("  User is a nurse in Porto who hikes and keeps bees.  ")
    memories = [
        Memory(user_id="u1", text="User is a nurse", id="a", topics=["work"]),
        Memory(user_id="u1", text="", id="b", agent_id="agent-7", topics=["hobby", "work"]),
        Memory(user_id="u1", text="User hikes and keeps bees", id="c", team_id="t1", topics=["hobby", "nature"]),
    ]

    result = await SummarizeStrategy(llm).optimize(memories)

    assert len(result) == 1
    merged = result[0]
    assert merged.text == "User is a nurse in Porto who hikes and keeps bees."
    assert merged.topics == ["work", "hobby", "nature"]
    assert merged.user_id == "u1"
    assert merged.agent_id == "agent-7"
    assert merged.team_id == "t1"
    assert merged.id and merged.id not in {"a", "b", "c"}

    messages, _ = llm.calls[0]
    assert messages[0]["role"] == "system"
    assert "User is a nurse\n\nUser hikes and keeps bees" in messages[1]["content"]


@pytest.mark.asyncio
async def test_summarize_no_content():
    memories = [Memory(user_id="u1", text="", id="a")]
    with pytest.raises(EmptyInputError, match="no memory content"):
        await SummarizeStrategy(ScriptedLLM()).optimize(memories)


@pytest.mark.asyncio
@pytest.mark.parametrize("reply", ["", "   \n"])
async def test_summarize_blank_reply(reply):
    """A blank merge never becomes an empty memory."""
    memories = [Memory(user_id="u1", text="User likes tea", id="a")]
    with pytest.raises(EmptyResponseError):
        await SummarizeStrategy(ScriptedLLM(reply)).optimize(memories)


@pytest.mark.asyncio
async def test_summarize_oracle_failure():
    with pytest.raises(DependencyError) as exc_info:
        await SummarizeStrategy(ScriptedLLM(RuntimeError("boom"))).optimize(_memories(2))
    assert exc_info.value.operation == "summarize memories"


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "strategy",
    [RecentOnlyStrategy(3), SummarizeStrategy(ScriptedLLM())],
    ids=["recent_only", "summarize"],
)
async def test_empty_input_rejected(strategy):
    with pytest.raises(ValidationError):
        await strategy.optimize([])


# Factory


def test_factory_create_by_type_and_value():
    factory = StrategyFactory(ScriptedLLM(), default_keep=7)

    assert isinstance(factory.create(StrategyType.SUMMARIZE), SummarizeStrategy)
    recent = factory.create("recent_only")
    assert isinstance(recent, RecentOnlyStrategy)
    assert recent.keep_count == 7
    assert factory.create(StrategyType.RECENT_ONLY, keep_count=2).keep_count == 2


@pytest.mark.parametrize(
    "name,expected",
    [
        ("summarize", SummarizeStrategy),
        ("Summarize", SummarizeStrategy),
        ("RecentOnly", RecentOnlyStrategy),
        ("recent_only", RecentOnlyStrategy),
        ("recent-only", RecentOnlyStrategy),
        ("Recent Only", RecentOnlyStrategy),
    ],
)
def test_factory_create_by_name(name, expected):
    assert isinstance(StrategyFactory(ScriptedLLM()).create_by_name(name), expected)


@pytest.mark.parametrize("strategy_type", [StrategyType.KEYWORD, StrategyType.HIERARCHICAL, "keyword"])
def test_factory_reserved_types(strategy_type):
    with pytest.raises(StrategyNotImplementedError):
        StrategyFactory(ScriptedLLM()).create(strategy_type)


@pytest.mark.parametrize("name", ["compress", ""])
def test_factory_unknown(name):
    factory = StrategyFactory(ScriptedLLM())
    with pytest.raises(ConfigurationError):
        factory.create(name)
    with pytest.raises(ConfigurationError):
        factory.create_by_name(name)


def test_factory_summarize_needs_llm():
    with pytest.raises(ConfigurationError):
        StrategyFactory().create(StrategyType.SUMMARIZE)


def test_list_available():
    available = StrategyFactory().list_available()
    assert set(available) == {"summarize", "recent_only"}


def test_compaction_result_reduction():
    result = CompactionResult(original_count=8, optimized_count=2, strategy_type=StrategyType.RECENT_ONLY)
    assert result.reduction == pytest.approx(0.75)
    assert result.removed_ids == []
    assert CompactionResult(0, 0, StrategyType.SUMMARIZE).reduction == 0.0
