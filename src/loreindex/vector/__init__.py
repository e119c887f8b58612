"""
Vector layer for the content index.

This module provides embedding, storage and retrieval on Qdrant:
- Embedding provider client and batch engine
- One collection per content kind with payload indexes
- Idempotent upserts under deterministic point ids
- Fan-out similarity search and context assembly
- Collection statistics and health checks
"""

from .qdrant_vector_store import QdrantVectorStore
from .collection_manager import CollectionManager, PAYLOAD_INDEXES
from .point_ids import get_point_id_generator, legacy_point_id, uuid_point_id
from .embedding_client import EmbeddingClientConfig, EmbeddingProvider, OpenAIEmbeddingClient
from .embedding_engine import EmbeddingBatch, EmbeddingEngine
from .upsert_pipeline import UpsertPipeline
from .vector_search_engine import VectorSearchEngine
from .context_assembler import ContextAssembler, format_context
from .health_monitor import VectorHealthMonitor
from .content_embedder import (
    ContentEmbedderService, create_content_embedder, create_embedding_provider
)

__all__ = [
    # Store
    "QdrantVectorStore",
    "CollectionManager",
    "PAYLOAD_INDEXES",

    # Point ids
    "get_point_id_generator",
    "legacy_point_id",
    "uuid_point_id",

    # Embeddings
    "EmbeddingProvider",
    "EmbeddingClientConfig",
    "OpenAIEmbeddingClient",
    "EmbeddingEngine",
    "EmbeddingBatch",

    # Write and read paths
    "UpsertPipeline",
    "VectorSearchEngine",
    "ContextAssembler",
    "format_context",
    "VectorHealthMonitor",

    # Service
    "ContentEmbedderService",
    "create_content_embedder",
    "create_embedding_provider",
]
