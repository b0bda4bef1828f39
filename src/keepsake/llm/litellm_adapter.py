"""LiteLLM adapter - unified interface for hosted chat and embedding models."""

from typing import Any

import litellm
from litellm import acompletion, aembedding

from keepsake.core.config import Settings
from keepsake.core.logging import get_logger
from keepsake.core.typing import MessageDict, Vector
from keepsake.llm.base import (
    EmbeddingProvider,
    LLMConfig,
    LLMProvider,
    LLMResponse,
    ProviderType,
    ResponseFormat,
)

logger = get_logger("llm.litellm_adapter")

# Disable LiteLLM's verbose logging
litellm.suppress_debug_info = True


class LiteLLMProvider(LLMProvider):
    """Chat completion through LiteLLM."""

    provider_type = ProviderType.LITELLM

    def __init__(
        self,
        model: str,
        api_key: str | None = None,
        api_base: str | None = None,
        structured_output: bool = True,
    ):
        self.model = model
        self.api_key = api_key or None
        self.api_base = api_base or None
        self.supports_structured_output = structured_output

    @classmethod
    def from_settings(cls, settings: Settings) -> "LiteLLMProvider":
        return cls(settings.model, settings.api_key, settings.api_base)

    async def complete(
        self,
        messages: list[MessageDict],
        config: LLMConfig,
    ) -> LLMResponse:
        """Call LiteLLM completion.

        Args:
            messages: OpenAI-format messages
            config: LLM configuration

        Returns:
            LLMResponse with standardized format
        """
        if config.system_prompt:
            messages = [{"role": "system", "content": config.system_prompt}, *messages]

        params: dict[str, Any] = {
            "model": config.model or self.model,
            "messages": messages,
            "max_tokens": config.max_tokens,
            "temperature": config.temperature,
        }

        if config.response_format is ResponseFormat.JSON_OBJECT:
            params["response_format"] = {"type": "json_object"}

        # Add API key / base URL if configured
        if self.api_key:
            params["api_key"] = self.api_key
        if self.api_base:
            params["api_base"] = self.api_base

        logger.debug(
            f"LiteLLM request: model={params['model']}, messages={len(messages)}, "
            f"format={config.response_format.value}"
        )

        try:
            response = await acompletion(**params)
        except Exception as e:
            logger.error(f"LiteLLM error for {params['model']}: {e}")
            raise

        message = response.choices[0].message
        content = message.content or ""

        usage = getattr(response, "usage", None)
        input_tokens = usage.prompt_tokens if usage else 0
        output_tokens = usage.completion_tokens if usage else 0

        logger.debug(
            f"LiteLLM response: model={response.model}, "
            f"tokens={input_tokens}+{output_tokens}"
        )

        return LLMResponse(
            content=content,
            model=response.model,
            provider=self.provider_type,
            input_tokens=input_tokens,
            output_tokens=output_tokens,
        )


class LiteLLMEmbedder(EmbeddingProvider):
    """Embeddings through LiteLLM."""

    provider_type = ProviderType.LITELLM

    def __init__(
        self,
        model: str,
        dimensions: int = 0,
        api_key: str | None = None,
        api_base: str | None = None,
    ):
        self.model_id = model
        self.dimensions = dimensions
        self.api_key = api_key or None
        self.api_base = api_base or None

    @classmethod
    def from_settings(cls, settings: Settings) -> "LiteLLMEmbedder":
        return cls(
            settings.embedding_model,
            settings.embedding_dimensions,
            settings.api_key,
            settings.api_base,
        )

    async def embed(self, text: str) -> Vector:
        if not text.strip():
            raise ValueError("text cannot be empty")

        params: dict[str, Any] = {"model": self.model_id, "input": [text]}
        if self.api_key:
            params["api_key"] = self.api_key
        if self.api_base:
            params["api_base"] = self.api_base

        try:
            response = await aembedding(**params)
        except Exception as e:
            logger.error(f"LiteLLM embedding error for {self.model_id}: {e}")
            raise

        item = response.data[0]
        vector = item["embedding"] if isinstance(item, dict) else item.embedding
        return [float(x) for x in vector]
