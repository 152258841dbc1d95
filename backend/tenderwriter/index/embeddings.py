"""Embedding clients - OpenAI embeddings with a deterministic hashing fallback."""

import hashlib
import logging
import re
from typing import Protocol

import numpy as np
from openai import AsyncOpenAI, OpenAIError

from backend.tenderwriter.config import Settings
from backend.tenderwriter.errors import EmbeddingFailedError

logger = logging.getLogger(__name__)

_TOKEN = re.compile(r"\w+")


class EmbeddingClient(Protocol):
    """Protocol for embedding client implementations."""

    dimension: int

    async def embed(self, text: str) -> list[float]:
        """Embed one text.

        Raises:
            EmbeddingFailedError: If the provider call fails
        """
        ...


class DeterministicEmbeddingClient:
    """Feature-hashing embedder for tests and offline use (no API key required).

    Each lowercase word token is hashed into one of `dimension` buckets with a
    sign bit; the result is L2-normalized. Texts sharing words score higher
    under cosine similarity, which is enough for retrieval tests.
    """

    def __init__(self, dimension: int = 768) -> None:
        self.dimension = dimension

    async def embed(self, text: str) -> list[float]:
        vec = np.zeros(self.dimension, dtype=np.float64)
        for token in _TOKEN.findall(text.lower()):
            digest = hashlib.sha256(token.encode("utf-8")).digest()
            bucket = int.from_bytes(digest[:4], "big") % self.dimension
            sign = 1.0 if digest[4] & 1 else -1.0
            vec[bucket] += sign
        norm = np.linalg.norm(vec)
        if norm > 0:
            vec /= norm
        return vec.tolist()


class OpenAIEmbeddingClient:
    """OpenAI-backed embedding client."""

    def __init__(
        self, api_key: str, model: str = "text-embedding-3-small", dimension: int = 768
    ) -> None:
        self.client = AsyncOpenAI(api_key=api_key)
        self.model = model
        self.dimension = dimension

    async def embed(self, text: str) -> list[float]:
        """Embed text using the OpenAI embeddings API."""
        try:
            response = await self.client.embeddings.create(
                model=self.model, input=text, dimensions=self.dimension
            )
        except OpenAIError as e:
            raise EmbeddingFailedError(f"{type(e).__name__}: {e}") from e
        return list(response.data[0].embedding)


def get_embedding_client(settings: Settings) -> EmbeddingClient:
    """Factory function to get appropriate embedding client based on config.

    Returns:
        OpenAIEmbeddingClient if API key is configured, DeterministicEmbeddingClient otherwise
    """
    api_key = settings.openai_api_key

    if api_key and api_key.get_secret_value():
        logger.info(f"Using OpenAI embedding client ({settings.embedding_model})")
        return OpenAIEmbeddingClient(
            api_key=api_key.get_secret_value(),
            model=settings.embedding_model,
            dimension=settings.embedding_dimension,
        )
    else:
        logger.warning("No OpenAI API key configured, using deterministic embedding client")
        return DeterministicEmbeddingClient(dimension=settings.embedding_dimension)
