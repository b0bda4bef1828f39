"""
LLM provider interface.

The memory subsystem talks to a chat model ("oracle") only through
LLMProvider.complete and to an embedding model only through
EmbeddingProvider.embed.
"""

from abc import ABC, abstractmethod
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum

from keepsake.core.typing import MessageDict, Vector


class ProviderType(Enum):
    LITELLM = "litellm"
    LOCAL = "local"
    HASH = "hash"


class ResponseFormat(Enum):
    TEXT = "text"
    JSON_OBJECT = "json_object"


@dataclass
class LLMResponse:
    """Response from LLM provider."""

    content: str
    model: str
    provider: ProviderType
    input_tokens: int = 0
    output_tokens: int = 0
    metadata: dict | None = None


@dataclass
class LLMConfig:
    """Configuration for LLM call."""

    model: str | None = None
    max_tokens: int = 1024
    temperature: float = 0.7
    system_prompt: str | None = None
    response_format: ResponseFormat = ResponseFormat.TEXT
    stream_callback: Callable[[str], None] | None = None  # accepted, never invoked


class LLMProvider(ABC):
    """Abstract LLM provider."""

    provider_type: ProviderType
    # Providers that enforce JSON output natively skip the inline JSON instructions
    supports_structured_output: bool = False

    @abstractmethod
    async def complete(
        self,
        messages: list[MessageDict],
        config: LLMConfig,
    ) -> LLMResponse:
        """
        Generate completion from messages.

        Args:
            messages: Ordered role-tagged messages (system/user/assistant)
            config: LLM configuration

        Returns:
            LLMResponse with content
        """
        ...


class EmbeddingProvider(ABC):
    """Abstract embedding provider."""

    provider_type: ProviderType
    model_id: str = ""
    dimensions: int = 0

    @abstractmethod
    async def embed(self, text: str) -> Vector:
        """Embed a single text into a vector."""
        ...
