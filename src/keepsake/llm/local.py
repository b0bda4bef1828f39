"""Local LLM provider - OpenAI-compatible API for Ollama, LM Studio, etc."""

from typing import Any

import httpx

from keepsake.core.config import get_settings
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

logger = get_logger("llm.local")


class _LocalClient:
    """Shared lazy httpx client handling."""

    def __init__(self, base_url: str | None, client: httpx.AsyncClient | None):
        self.base_url = base_url or get_settings().local_llm_url
        self._client = client

    @property
    def client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                timeout=300.0,  # Local models can be slow
            )
        return self._client

    async def close(self) -> None:
        """Close HTTP client."""
        if self._client:
            await self._client.aclose()
            self._client = None


class LocalProvider(_LocalClient, LLMProvider):
    """Local LLM via OpenAI-compatible API (Ollama, LM Studio, vLLM, etc.)."""

    provider_type = ProviderType.LOCAL

    def __init__(
        self,
        base_url: str | None = None,
        model: str = "local",
        client: httpx.AsyncClient | None = None,
    ):
        super().__init__(base_url, client)
        self.default_model = model  # Model name varies by backend

    async def complete(
        self,
        messages: list[MessageDict],
        config: LLMConfig,
    ) -> LLMResponse:
        """Generate completion via local OpenAI-compatible API."""
        model = config.model or self.default_model

        if config.system_prompt:
            messages = [{"role": "system", "content": config.system_prompt}, *messages]

        payload: dict[str, Any] = {
            "model": model,
            "messages": messages,
            "max_tokens": config.max_tokens,
            "temperature": config.temperature,
            "stream": False,
        }
        if config.response_format is ResponseFormat.JSON_OBJECT:
            payload["response_format"] = {"type": "json_object"}

        logger.debug(f"Local request: model={model}, url={self.base_url}")

        try:
            response = await self.client.post("/chat/completions", json=payload)
            response.raise_for_status()
        except httpx.ConnectError as e:
            logger.warning(f"Local LLM not reachable at {self.base_url}: {e}")
            raise
        except httpx.HTTPStatusError as e:
            logger.error(f"Local LLM error: {e.response.status_code}")
            raise

        data = response.json()
        content = data["choices"][0]["message"].get("content") or ""
        usage = data.get("usage", {})
        input_tokens = usage.get("prompt_tokens", 0)
        output_tokens = usage.get("completion_tokens", 0)

        logger.debug(f"Local usage: {input_tokens} in, {output_tokens} out")

        return LLMResponse(
            content=content,
            model=data.get("model", model),
            provider=self.provider_type,
            input_tokens=input_tokens,
            output_tokens=output_tokens,
        )

    async def health_check(self) -> bool:
        """Check if local LLM server is running."""
        try:
            response = await self.client.get("/models")
            return response.status_code == 200
        except httpx.HTTPError as e:
            logger.debug(f"Local LLM health check failed: {e}")
            return False


class LocalEmbedder(_LocalClient, EmbeddingProvider):
    """Embeddings via OpenAI-compatible /embeddings endpoint."""

    provider_type = ProviderType.LOCAL

    def __init__(
        self,
        base_url: str | None = None,
        model: str = "local",
        dimensions: int = 0,
        client: httpx.AsyncClient | None = None,
    ):
        super().__init__(base_url, client)
        self.model_id = model
        self.dimensions = dimensions

    async def embed(self, text: str) -> Vector:
        if not text.strip():
            raise ValueError("text cannot be empty")

        try:
            response = await self.client.post(
                "/embeddings", json={"model": self.model_id, "input": text}
            )
            response.raise_for_status()
        except httpx.HTTPError as e:
            logger.warning(f"Local embedding failed at {self.base_url}: {e}")
            raise

        data = response.json()
        vector = [float(x) for x in data["data"][0]["embedding"]]
        if not self.dimensions:
            self.dimensions = len(vector)
        return vector
