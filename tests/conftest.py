"""Shared fixtures: scripted oracle, fixed-vector embedder, temp store."""

from pathlib import Path

import pytest

from keepsake.core.config import Settings
from keepsake.llm.base import (
    EmbeddingProvider,
    LLMConfig,
    LLMProvider,
    LLMResponse,
    ProviderType,
)
from keepsake.memory.store import SQLiteMemoryStore


class ScriptedLLM(LLMProvider):
    """Oracle returning queued replies; an Exception in the queue is raised."""

    provider_type = ProviderType.LOCAL

    def __init__(self, *replies, structured: bool = False):
        self.replies = list(replies)
        self.calls: list[tuple[list[dict], LLMConfig]] = []
        self.supports_structured_output = structured

    async def complete(self, messages, config):
        self.calls.append((messages, config))
        if not self.replies:
            raise AssertionError("ScriptedLLM ran out of replies")
        reply = self.replies.pop(0)
        if isinstance(reply, Exception):
            raise reply
        return LLMResponse(content=reply, model="scripted", provider=self.provider_type)


class FixedEmbedder(EmbeddingProvider):
    """Embedder with hand-picked vectors; unknown texts raise."""

    provider_type = ProviderType.HASH
    model_id = "fixed"

    def __init__(self, vectors: dict[str, list[float]]):
        self.vectors = vectors
        self.dimensions = len(next(iter(vectors.values()))) if vectors else 0
        self.calls: list[str] = []

    async def embed(self, text):
        self.calls.append(text)
        if text not in self.vectors:
            raise RuntimeError(f"no vector for {text!r}")
        return self.vectors[text]


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    """Settings isolated from the environment."""
    return Settings(data_dir=tmp_path, _env_file=None)


@pytest.fixture
async def store(tmp_path: Path):
    """Create a temporary memory store."""
    store = SQLiteMemoryStore(tmp_path / "test.db")
    await store.connect()
    yield store
    await store.close()
