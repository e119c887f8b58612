"""
Embedding Provider HTTP Client

Async client for OpenAI-compatible embedding endpoints (OpenAI directly or an
AI gateway), with retry on transient failures and concurrency limits.
"""

import asyncio
import logging
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

import httpx
from tenacity import (
    AsyncRetrying,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential,
)

from ..core.config_manager import EmbeddingConfig
from ..models.exceptions import EmbeddingProviderError, EmbeddingServiceDisabledError

logger = logging.getLogger(__name__)


class EmbeddingProvider(ABC):
    """
    Interface of an embedding provider.

    ``embed_batch`` must preserve order and return exactly one vector per
    input text.
    """

    model: str
    dimensions: int

    @abstractmethod
    async def embed(self, text: str) -> List[float]:
        """Embed a single text."""
        ...

    @abstractmethod
    async def embed_batch(self, texts: List[str]) -> List[List[float]]:
        """Embed several texts in one provider call."""
        ...

    async def close(self) -> None:
        """Release provider resources."""


@dataclass
class EmbeddingClientConfig:
    """Connection settings for the embedding HTTP client."""

    api_key: str
    model: str = "text-embedding-3-small"
    dimensions: int = 1536
    base_url: str = "https://api.openai.com/v1"
    timeout: float = 30.0
    max_retries: int = 3
    max_concurrent_requests: int = 10

    @classmethod
    def from_settings(cls, settings: EmbeddingConfig) -> "EmbeddingClientConfig":
        if not settings.api_key:
            raise EmbeddingServiceDisabledError()
        return cls(
            api_key=settings.api_key,
            model=settings.model,
            dimensions=settings.dimensions,
            base_url=settings.base_url,
            timeout=settings.timeout,
            max_retries=settings.max_retries,
            max_concurrent_requests=settings.max_concurrent_requests,
        )


def _is_transient(error: BaseException) -> bool:
    """Transport failures and 5xx responses are worth retrying."""
    if isinstance(error, EmbeddingProviderError):
        return error.status_code is None or error.status_code >= 500
    return False


class OpenAIEmbeddingClient(EmbeddingProvider):
    """Embedding provider backed by the ``/embeddings`` endpoint."""

    def __init__(
        self,
        config: EmbeddingClientConfig,
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        self.config = config
        self.model = config.model
        self.dimensions = config.dimensions
        self._client = http_client
        self._owns_client = http_client is None
        self.semaphore = asyncio.Semaphore(config.max_concurrent_requests)

        # Metrics
        self.total_api_calls = 0
        self.total_texts = 0
        self.failed_calls = 0

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                headers={
                    "Authorization": f"Bearer {self.config.api_key}",
                    "Content-Type": "application/json",
                    "User-Agent": "loreindex/1.0",
                },
                timeout=httpx.Timeout(self.config.timeout),
                limits=httpx.Limits(max_keepalive_connections=20, max_connections=100),
            )
            logger.info(f"Embedding client initialized ({self.model}, {self.dimensions}d)")
        return self._client

    async def close(self) -> None:
        """Close the HTTP client."""
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            logger.info("Embedding client closed")
        self._client = None

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()

    async def embed(self, text: str) -> List[float]:
        embeddings = await self.embed_batch([text])
        return embeddings[0]

    async def embed_batch(self, texts: List[str]) -> List[List[float]]:
        if not texts:
            return []

        async with self.semaphore:
            async for attempt in AsyncRetrying(
                wait=wait_exponential(multiplier=1, min=1, max=30),
                stop=stop_after_attempt(self.config.max_retries),
                retry=retry_if_exception(_is_transient),
                reraise=True,
            ):
                with attempt:
                    return await self._request_embeddings(texts)

        return []  # unreachable, AsyncRetrying reraises

    async def _request_embeddings(self, texts: List[str]) -> List[List[float]]:
        """Make one embeddings API request."""
        start_time = time.time()
        payload: Dict[str, Any] = {"input": texts, "model": self._wire_model()}
        if self.model.startswith("text-embedding-3"):
            payload["dimensions"] = self.dimensions

        self.total_api_calls += 1
        try:
            response = await self._get_client().post(
                f"{self.config.base_url.rstrip('/')}/embeddings",
                json=payload,
            )
        except httpx.RequestError as e:
            self.failed_calls += 1
            raise EmbeddingProviderError(f"Embedding request failed: {e}", cause=e) from e

        if response.status_code >= 400:
            self.failed_calls += 1
            raise EmbeddingProviderError(
                f"Embedding provider returned HTTP {response.status_code}: "
                f"{self._error_message(response)}",
                status_code=response.status_code,
            )

        data = response.json()
        items = sorted(data.get("data", []), key=lambda item: item.get("index", 0))
        embeddings = [item["embedding"] for item in items]

        if len(embeddings) != len(texts):
            raise EmbeddingProviderError(
                f"Expected {len(texts)} embeddings, got {len(embeddings)}"
            )

        self.total_texts += len(texts)
        logger.debug(
            f"Generated {len(embeddings)} embeddings in {time.time() - start_time:.2f}s"
        )
        return embeddings

    def _wire_model(self) -> str:
        """Gateways address models as ``provider/model``."""
        if "gateway" in self.config.base_url and "/" not in self.model:
            return f"openai/{self.model}"
        if "gateway" not in self.config.base_url and self.model.startswith("openai/"):
            return self.model[len("openai/"):]
        return self.model

    @staticmethod
    def _error_message(response: httpx.Response) -> str:
        try:
            body = response.json()
        except ValueError:
            return response.text[:500]
        error = body.get("error") if isinstance(body, dict) else None
        if isinstance(error, dict):
            return str(error.get("message", error))
        return str(error or body)[:500]

    def get_metrics(self) -> Dict[str, Any]:
        """Get client call counters."""
        return {
            "total_api_calls": self.total_api_calls,
            "total_texts": self.total_texts,
            "failed_calls": self.failed_calls,
        }
