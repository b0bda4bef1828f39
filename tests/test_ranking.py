"""Tests for keyword, semantic and hybrid ranking."""

import math

import pytest

from conftest import FixedEmbedder
from keepsake.core.errors import ConfigurationError, DependencyError, ValidationError
from keepsake.llm.hashing import HashEmbedder
from keepsake.memory.base import Memory
from keepsake.memory.ranking import (
    MemoryRanker,
    SearchMode,
    cosine_similarity,
    keyword_score,
)


def _memories(*texts: str) -> list[Memory]:
    return [Memory(user_id="u1", text=text, id=f"m{i}") for i, text in enumerate(texts)]


# Cosine


def test_cosine_identical_and_opposite():
    assert cosine_similarity([1.0, 2.0], [1.0, 2.0]) == pytest.approx(1.0)
    assert cosine_similarity([1.0, 0.0], [-1.0, 0.0]) == pytest.approx(-1.0)
    assert cosine_similarity([1.0, 0.0], [0.0, 1.0]) == pytest.approx(0.0)


@pytest.mark.parametrize(
    "a,b",
    [
        ([1.0, 2.0], [1.0]),
        ([], []),
        ([0.0, 0.0], [1.0, 1.0]),
        ([1.0, 1.0], [0.0, 0.0]),
    ],
)
def test_cosine_degenerate_inputs(a, b):
    """Mismatched, empty or zero vectors give 0 without raising."""
    assert cosine_similarity(a, b) == 0.0


def test_cosine_symmetric_and_bounded():
    a = [0.3, -1.2, 4.5, 0.01]
    b = [2.2, 0.4, -0.7, 9.0]
    assert cosine_similarity(a, b) == cosine_similarity(b, a)
    assert -1.0 <= cosine_similarity(a, b) <= 1.0
    # Float drift on near-parallel vectors stays clamped
    c = [1e-8, 1e8, 3.3]
    assert cosine_similarity(c, c) <= 1.0


# Keyword


def test_keyword_score_fraction():
    assert keyword_score("coffee morning", "User drinks Coffee every morning") == 1.0
    assert keyword_score("coffee tea", "User drinks coffee") == 0.5
    assert keyword_score("tea", "User drinks coffee") == 0.0


def test_keyword_score_substring_match():
    """Tokens match as substrings, so 'cat' matches 'cats'."""
    assert keyword_score("cat", "User has two cats") == 1.0


def test_keyword_score_empty_query():
    assert keyword_score("", "anything") == 0.0
    assert keyword_score("   ", "anything") == 0.0


@pytest.mark.asyncio
async def test_keyword_search_order_and_exclusion():
    memories = _memories(
        "User likes green tea",
        "User plays chess",
        "User drinks green tea every morning",
    )
    ranker = MemoryRanker()

    results = await ranker.search(SearchMode.KEYWORD, "green tea morning", memories)

    assert [m.id for m in results] == ["m2", "m0"]


@pytest.mark.asyncio
async def test_ties_keep_input_order():
    """Equal scores keep the order memories were given in."""
    memories = _memories("User likes jazz", "User plays jazz piano", "User hums jazz")
    ranker = MemoryRanker()

    results = await ranker.search(SearchMode.KEYWORD, "jazz", memories)

    assert [m.id for m in results] == ["m0", "m1", "m2"]


@pytest.mark.asyncio
@pytest.mark.parametrize("limit,expected", [(0, 3), (-1, 3), (2, 2), (10, 3)])
async def test_limit(limit, expected):
    memories = _memories("tea one", "tea two", "tea three")
    results = await MemoryRanker().search(SearchMode.KEYWORD, "tea", memories, limit=limit)
    assert len(results) == expected


@pytest.mark.asyncio
@pytest.mark.parametrize("mode", list(SearchMode))
async def test_blank_query_rejected(mode):
    ranker = MemoryRanker(HashEmbedder())
    with pytest.raises(ValidationError):
        await ranker.search(mode, "  ", _memories("User likes tea"))


# Semantic


@pytest.fixture
def embedder() -> FixedEmbedder:
    return FixedEmbedder(
        {
            "pets": [1.0, 0.0, 0.0],
            "User has a dog": [0.9, 0.1, 0.0],
            "User has a cat": [0.8, 0.3, 0.0],
            "User likes opera": [0.0, 0.0, 1.0],
        }
    )


@pytest.mark.asyncio
async def test_semantic_search(embedder):
    memories = _memories("User likes opera", "User has a cat", "User has a dog")
    ranker = MemoryRanker(embedder)

    results = await ranker.search(SearchMode.SEMANTIC, "pets", memories, limit=2)

    assert [m.text for m in results] == ["User has a dog", "User has a cat"]


@pytest.mark.asyncio
async def test_semantic_requires_embedder():
    with pytest.raises(ConfigurationError):
        await MemoryRanker().search(SearchMode.SEMANTIC, "pets", _memories("User has a dog"))


@pytest.mark.asyncio
async def test_semantic_query_embedding_failure(embedder):
    with pytest.raises(DependencyError) as exc_info:
        await MemoryRanker(embedder).search(
            SearchMode.SEMANTIC, "unknown query", _memories("User has a dog")
        )
    assert exc_info.value.operation == "embed query"


@pytest.mark.asyncio
async def test_semantic_skips_memories_that_fail_to_embed(embedder):
    memories = _memories("User has a dog", "Memory without a vector")
    results = await MemoryRanker(embedder).search(SearchMode.SEMANTIC, "pets", memories)
    assert [m.text for m in results] == ["User has a dog"]


@pytest.mark.asyncio
async def test_semantic_uses_cache(embedder):
    memories = _memories("User has a dog", "User has a cat")
    ranker = MemoryRanker(embedder)

    await ranker.search(SearchMode.SEMANTIC, "pets", memories)
    await ranker.search(SearchMode.SEMANTIC, "pets", memories)

    # Query embedded twice, each memory once
    assert embedder.calls.count("pets") == 2
    assert embedder.calls.count("User has a dog") == 1
    assert ranker.cache.hits == 2


# Hybrid


@pytest.mark.asyncio
async def test_hybrid_weight_one_matches_semantic(embedder):
    memories = _memories("User likes opera", "User has a cat", "User has a dog")
    ranker = MemoryRanker(embedder)

    hybrid = await ranker.score(SearchMode.HYBRID, "pets", memories, semantic_weight=1.0)
    semantic = await ranker.score(SearchMode.SEMANTIC, "pets", memories)

    assert [(s.memory.id, s.score) for s in hybrid] == [
        (s.memory.id, pytest.approx(s.score)) for s in semantic
    ]


@pytest.mark.asyncio
async def test_hybrid_weight_zero_is_keyword_scores():
    memories = _memories("User drinks green tea", "User drinks coffee")
    ranker = MemoryRanker(HashEmbedder())

    scored = await ranker.score(SearchMode.HYBRID, "green tea", memories, semantic_weight=0.0)

    assert {s.memory.id: s.score for s in scored} == {"m0": 1.0, "m1": 0.0}


@pytest.mark.asyncio
async def test_hybrid_weight_clamped(embedder):
    memories = _memories("User has a dog", "User has a cat")
    ranker = MemoryRanker(embedder)

    above = await ranker.score(SearchMode.HYBRID, "pets", memories, semantic_weight=3.0)
    one = await ranker.score(SearchMode.HYBRID, "pets", memories, semantic_weight=1.0)
    below = await ranker.score(SearchMode.HYBRID, "pets", memories, semantic_weight=-2.0)
    zero = await ranker.score(SearchMode.HYBRID, "pets", memories, semantic_weight=0.0)

    assert [s.score for s in above] == [s.score for s in one]
    assert [s.score for s in below] == [s.score for s in zero]


@pytest.mark.asyncio
async def test_hybrid_blend(embedder):
    memories = _memories("User has a dog")
    scored = await MemoryRanker(embedder).score(
        SearchMode.HYBRID, "pets", memories, semantic_weight=0.7
    )
    semantic = 0.9 / math.sqrt(0.82)
    assert scored[0].score == pytest.approx(0.7 * semantic + 0.3 * 0.0)


@pytest.mark.asyncio
async def test_hybrid_keeps_memories_that_fail_to_embed():
    embedder = FixedEmbedder({"tea": [1.0, 0.0], "User drinks tea": [1.0, 0.0]})
    memories = _memories("User drinks tea", "Tea ceremony in Kyoto")

    scored = await MemoryRanker(embedder).score(
        SearchMode.HYBRID, "tea", memories, semantic_weight=0.5
    )

    assert [(s.memory.id, s.score) for s in scored] == [
        ("m0", pytest.approx(1.0)),
        ("m1", pytest.approx(0.5)),
    ]


@pytest.mark.asyncio
async def test_hybrid_without_embedder_falls_back_to_keyword():
    memories = _memories("User drinks tea", "User plays chess")
    results = await MemoryRanker().search(SearchMode.HYBRID, "tea", memories)
    assert [m.id for m in results] == ["m0"]
