"""
Shared fixtures: in-memory Qdrant, a deterministic embedding provider and
sample rows for every content kind.
"""

import hashlib
from typing import Dict, List, Optional, Sequence

import numpy as np
import pytest
import pytest_asyncio
from qdrant_client import AsyncQdrantClient

from loreindex.core.config_manager import EmbeddingConfig, LoreIndexConfig, QdrantConfig
from loreindex.models.content_models import ContentKind
from loreindex.vector.content_embedder import ContentEmbedderService
from loreindex.vector.embedding_client import EmbeddingProvider
from loreindex.vector.qdrant_vector_store import QdrantVectorStore

DIMENSIONS = 8


def unit_vector(values: Sequence[float]) -> List[float]:
    vector = np.asarray(values, dtype=float)
    return (vector / np.linalg.norm(vector)).tolist()


class FakeEmbeddingProvider(EmbeddingProvider):
    """Deterministic provider: fixed vectors for known texts, seeded noise otherwise."""

    def __init__(self, dimensions: int = DIMENSIONS, vectors: Optional[Dict[str, List[float]]] = None):
        self.model = "fake-embedding"
        self.dimensions = dimensions
        self.vectors = dict(vectors or {})
        self.calls: List[List[str]] = []

    def vector_for(self, text: str) -> List[float]:
        if text in self.vectors:
            return list(self.vectors[text])
        seed = int(hashlib.sha256(text.encode("utf-8")).hexdigest()[:8], 16)
        return unit_vector(np.random.default_rng(seed).normal(size=self.dimensions))

    async def embed(self, text: str) -> List[float]:
        self.calls.append([text])
        return self.vector_for(text)

    async def embed_batch(self, texts: List[str]) -> List[List[float]]:
        self.calls.append(list(texts))
        return [self.vector_for(text) for text in texts]


SAMPLE_ROWS = {
    ContentKind.LORE: {
        "title": "The Sundering",
        "category": "history",
        "content": "The old empire split in two after the dragon war.",
    },
    ContentKind.QUEST: {
        "title": "The Lost Hammer",
        "description": "Recover the smith's hammer from the goblin caves.",
        "questGiver": "Brenna",
        "rewards": {"gold": 100, "xp": 50},
    },
    ContentKind.NPC: {
        "name": "Brenna",
        "role": "blacksmith",
        "personality": "Gruff but kind",
        "faction": "Ironhold",
    },
    ContentKind.ITEM: {
        "name": "Ember Blade",
        "type": "weapon",
        "description": "A sword that glows with an inner fire.",
        "stats": {"attack": 12},
    },
    ContentKind.CHARACTER: {
        "name": "Aldric",
        "race": "human",
        "class": "paladin",
        "backstory": "Sworn to the silver order since childhood.",
    },
    ContentKind.MANIFEST: {
        "name": "Starter Gear",
        "category": "equipment",
        "items": [{"name": "Sword"}, {"name": "Shield"}],
    },
}


@pytest.fixture
def config() -> LoreIndexConfig:
    return LoreIndexConfig(
        embedding=EmbeddingConfig(dimensions=DIMENSIONS, batch_size=4, timeout=5.0),
        qdrant=QdrantConfig(location=":memory:", timeout=5.0),
    )


@pytest.fixture
def provider() -> FakeEmbeddingProvider:
    return FakeEmbeddingProvider()


@pytest_asyncio.fixture
async def qdrant_client():
    client = AsyncQdrantClient(location=":memory:")
    yield client
    await client.close()


@pytest_asyncio.fixture
async def vector_store(config, qdrant_client) -> QdrantVectorStore:
    return QdrantVectorStore(config.qdrant, client=qdrant_client)


@pytest_asyncio.fixture
async def service(config, vector_store, provider):
    service = ContentEmbedderService(config, vector_store, provider)
    await service.initialize()
    yield service
    await service.shutdown()
