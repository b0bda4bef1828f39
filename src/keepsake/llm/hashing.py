"""
Deterministic offline embedder.

Hashes lowercase word tokens into a fixed number of buckets and
L2-normalizes the result. Texts sharing words get positive cosine
similarity, which is enough for tests, demos and air-gapped setups.
"""

import hashlib
import math
import re

from keepsake.core.typing import Vector
from keepsake.llm.base import EmbeddingProvider, ProviderType

_TOKEN_RE = re.compile(r"\w+")


class HashEmbedder(EmbeddingProvider):
    """Feature-hashing embedder (no model, no network)."""

    provider_type = ProviderType.HASH

    def __init__(self, dimensions: int = 256):
        if dimensions <= 0:
            raise ValueError("dimensions must be positive")
        self.dimensions = dimensions
        self.model_id = f"hash-{dimensions}"

    def _bucket(self, token: str) -> tuple[int, float]:
        digest = hashlib.blake2b(token.encode("utf-8"), digest_size=8).digest()
        value = int.from_bytes(digest, "big")
        sign = 1.0 if value & 1 else -1.0
        return (value >> 1) % self.dimensions, sign

    async def embed(self, text: str) -> Vector:
        if not text.strip():
            raise ValueError("text cannot be empty")

        vector = [0.0] * self.dimensions
        for token in _TOKEN_RE.findall(text.lower()):
            index, sign = self._bucket(token)
            vector[index] += sign

        norm = math.sqrt(sum(x * x for x in vector))
        if norm > 0:
            vector = [x / norm for x in vector]
        return vector
