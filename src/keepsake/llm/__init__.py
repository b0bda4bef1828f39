"""
LLM module - oracle and embedding provider abstraction.

Providers:
- litellm: Any hosted model LiteLLM can reach (chat + embeddings)
- local: Local models via OpenAI-compatible API (chat + embeddings)
- hash: Deterministic offline embedder for tests and demos
"""

from keepsake.llm.base import (
    EmbeddingProvider,
    LLMConfig,
    LLMProvider,
    LLMResponse,
    ProviderType,
    ResponseFormat,
)

__all__ = [
    "EmbeddingProvider",
    "LLMConfig",
    "LLMProvider",
    "LLMResponse",
    "ProviderType",
    "ResponseFormat",
]
