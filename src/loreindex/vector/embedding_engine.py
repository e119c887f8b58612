"""
Embedding Engine

Generates embeddings through a pluggable provider:
- Fail-fast when no provider is configured (service disabled)
- Filtering of non-string and blank texts before any provider call
- Fixed-size chunks processed sequentially to respect provider limits
- Per-call timeout on every provider request
"""

import asyncio
import logging
import time
from dataclasses import dataclass, field
from typing import Any, List, Optional, Sequence

from ..models.exceptions import EmbeddingProviderError, EmbeddingServiceDisabledError
from .embedding_client import EmbeddingProvider

logger = logging.getLogger(__name__)

DEFAULT_BATCH_SIZE = 100


@dataclass
class EmbeddingBatch:
    """
    Result of a batch embedding call.

    Attributes:
        embeddings: One vector per accepted text, in input order
        indices: Position in the input of each accepted text
        skipped: Number of inputs rejected before embedding
    """

    embeddings: List[List[float]] = field(default_factory=list)
    indices: List[int] = field(default_factory=list)
    skipped: int = 0

    @property
    def count(self) -> int:
        return len(self.embeddings)


class EmbeddingEngine:
    """Batch-aware front end to an embedding provider."""

    def __init__(
        self,
        provider: Optional[EmbeddingProvider],
        batch_size: int = DEFAULT_BATCH_SIZE,
        timeout: Optional[float] = 30.0,
    ):
        """
        Initialize the engine.

        Args:
            provider: Embedding provider, or None when credentials are missing
            batch_size: Maximum texts per provider call
            timeout: Per-call timeout in seconds (None disables it)
        """
        self.provider = provider
        self.batch_size = batch_size
        self.timeout = timeout

    @property
    def enabled(self) -> bool:
        return self.provider is not None

    @property
    def model(self) -> str:
        return self.provider.model if self.provider else ""

    @property
    def dimensions(self) -> int:
        return self.provider.dimensions if self.provider else 0

    def _require_provider(self) -> EmbeddingProvider:
        if self.provider is None:
            raise EmbeddingServiceDisabledError()
        return self.provider

    async def _call(self, coro: Any) -> Any:
        try:
            return await asyncio.wait_for(coro, timeout=self.timeout)
        except asyncio.TimeoutError as e:
            raise EmbeddingProviderError(
                f"Embedding provider timed out after {self.timeout}s", cause=e
            ) from e

    async def generate_embedding(self, text: str) -> List[float]:
        """
        Generate the embedding for a single text.

        Raises:
            EmbeddingServiceDisabledError: If no provider is configured
            EmbeddingProviderError: If the provider fails or times out
        """
        provider = self._require_provider()
        start_time = time.time()

        embedding = await self._call(provider.embed(text))

        duration_ms = (time.time() - start_time) * 1000
        logger.debug(f"Generated embedding for {len(text)} chars ({duration_ms:.0f}ms)")
        return embedding

    async def generate_embeddings(self, texts: Sequence[Any]) -> EmbeddingBatch:
        """
        Generate embeddings for many texts.

        Non-string and empty or whitespace-only entries are skipped and
        counted. Remaining texts are sent in chunks of ``batch_size``, one
        chunk at a time.

        Args:
            texts: Candidate texts

        Returns:
            Embeddings with the input index of each accepted text
        """
        provider = self._require_provider()
        result = EmbeddingBatch()

        valid_texts: List[str] = []
        for index, text in enumerate(texts):
            if not isinstance(text, str):
                logger.warning(f"Skipping non-string value in batch: {type(text).__name__}")
                result.skipped += 1
                continue
            if not text.strip():
                result.skipped += 1
                continue
            valid_texts.append(text)
            result.indices.append(index)

        if result.skipped:
            logger.warning(f"Skipped {result.skipped} empty or invalid texts in batch")

        if not valid_texts:
            return result

        start_time = time.time()
        for offset in range(0, len(valid_texts), self.batch_size):
            chunk = valid_texts[offset:offset + self.batch_size]
            logger.debug(f"Generating embeddings for chunk of {len(chunk)} texts")

            embeddings = await self._call(provider.embed_batch(chunk))
            if len(embeddings) != len(chunk):
                raise EmbeddingProviderError(
                    f"Provider returned {len(embeddings)} embeddings for {len(chunk)} texts"
                )
            result.embeddings.extend(embeddings)

        duration_ms = (time.time() - start_time) * 1000
        logger.info(f"Generated {result.count} embeddings ({duration_ms:.0f}ms)")
        return result

    async def close(self) -> None:
        if self.provider is not None:
            await self.provider.close()
