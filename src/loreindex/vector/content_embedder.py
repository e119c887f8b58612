"""
Content Embedder Service

Explicitly constructed facade over the index. It holds the embedding
provider and vector store it was given and wires them through the
collection manager, upsert pipeline, search engine, context assembler and
health monitor. Lifecycle is explicit: ``initialize()`` provisions the
collections and ``shutdown()`` closes both clients.
"""

import logging
import time
from typing import Any, Dict, List, Mapping, Optional, Sequence, Union

from pydantic import ValidationError

from ..core.config_manager import ConfigManager, LoreIndexConfig
from ..extraction import extract_metadata, extract_text, is_embeddable
from ..models.content_models import ContentKind, ContentRecord, parse_record
from ..models.exceptions import ContentValidationError, EmbeddingServiceDisabledError
from ..models.vector_models import (
    BatchEmbedItem,
    BatchEmbedResult,
    BatchPoint,
    CollectionStats,
    ContextResult,
    EmbedResult,
    SearchHit,
    SimilarContent,
)
from .collection_manager import CollectionManager
from .context_assembler import ContextAssembler
from .embedding_client import EmbeddingClientConfig, EmbeddingProvider, OpenAIEmbeddingClient
from .embedding_engine import EmbeddingEngine
from .health_monitor import VectorHealthMonitor
from .qdrant_vector_store import QdrantVectorStore
from .upsert_pipeline import UpsertPipeline
from .vector_search_engine import VectorSearchEngine

logger = logging.getLogger(__name__)

RawContent = Union[ContentRecord, Mapping[str, Any]]


def to_content_kind(value: Union[ContentKind, str]) -> ContentKind:
    """Coerce a kind name, rejecting unknown kinds as invalid content."""
    try:
        return ContentKind(value)
    except ValueError as e:
        raise ContentValidationError(f"Unknown content type: {value}", cause=e) from e


class ContentEmbedderService:
    """
    Embeds game content and serves similarity search over it.

    Embedding operations raise ``EmbeddingServiceDisabledError`` when no
    provider was supplied. Store-only operations (stats, health, delete)
    work either way.
    """

    def __init__(
        self,
        config: LoreIndexConfig,
        vector_store: QdrantVectorStore,
        provider: Optional[EmbeddingProvider] = None,
    ):
        """
        Initialize the service.

        Args:
            config: Complete configuration
            vector_store: Store adapter, shared by every component
            provider: Embedding provider; None disables embedding operations
        """
        self.config = config
        self.vector_store = vector_store
        self.provider = provider

        vector_size = provider.dimensions if provider else config.embedding.dimensions

        self.embedding_engine = EmbeddingEngine(
            provider,
            batch_size=config.embedding.batch_size,
            timeout=config.embedding.timeout,
        )
        self.collections = CollectionManager(vector_store, vector_size, config.qdrant)
        self.pipeline = UpsertPipeline(
            vector_store,
            self.collections,
            vector_size,
            point_id_scheme=config.point_id_scheme,
        )
        self.search_engine = VectorSearchEngine(vector_store, self.collections)
        self.context_assembler = ContextAssembler(
            self.embedding_engine,
            self.search_engine,
            default_limit=config.search.context_limit,
            default_threshold=config.search.context_threshold,
        )
        self.health_monitor = VectorHealthMonitor(vector_store, self.collections, vector_size)

        if provider is None:
            logger.warning("Embedding service disabled - API key not configured")

    @property
    def enabled(self) -> bool:
        return self.embedding_engine.enabled

    async def initialize(self) -> None:
        """Provision every collection; safe to call on each start."""
        if not self.enabled:
            logger.warning("Skipping collection initialization: embedding service disabled")
            return
        await self.collections.initialize_collections()
        logger.info("Content embedder initialized")

    async def shutdown(self) -> None:
        """Close the embedding provider and the vector store."""
        await self.embedding_engine.close()
        await self.vector_store.close()
        logger.info("Content embedder shut down")

    async def __aenter__(self):
        await self.initialize()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.shutdown()

    def _require_enabled(self) -> None:
        if not self.enabled:
            raise EmbeddingServiceDisabledError()

    def _to_record(self, kind: ContentKind, content: RawContent) -> ContentRecord:
        if isinstance(content, Mapping):
            return parse_record(kind, dict(content))
        if ContentKind(content.kind) is not kind:
            raise ContentValidationError(
                f"Record of kind {content.kind} submitted as {kind.value}"
            )
        return content

    async def embed_text(
        self,
        content_type: Union[ContentKind, str],
        content_id: str,
        text: str,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> EmbedResult:
        """
        Embed canonical text and store it under the content id.

        Raises:
            EmbeddingServiceDisabledError: If no provider is configured
            ContentValidationError: If the text is too short to embed
        """
        self._require_enabled()
        kind = to_content_kind(content_type)
        collection = self.collections.collection_name(kind)

        min_length = self.config.search.min_text_length
        if not is_embeddable(text, min_length):
            raise ContentValidationError(
                f"Text must be at least {min_length} characters",
                collection=collection,
                content_id=content_id,
            )

        start_time = time.time()
        embedding = await self.embedding_engine.generate_embedding(text)
        point_id = await self.pipeline.upsert(
            kind,
            content_id,
            embedding,
            text,
            self.embedding_engine.model,
            metadata,
        )

        duration_ms = (time.time() - start_time) * 1000
        logger.info(f"Embedded {kind.value}:{content_id} ({len(text)} chars, {duration_ms:.0f}ms)")
        return EmbedResult(success=True, id=content_id, point_id=point_id)

    async def embed_content(
        self,
        content_type: Union[ContentKind, str],
        content_id: str,
        content: RawContent,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> EmbedResult:
        """
        Embed a content record (typed or raw row) of the given kind.

        Extracted metadata is stored with the point; entries in ``metadata``
        take precedence over extracted ones.
        """
        self._require_enabled()
        kind = to_content_kind(content_type)
        record = self._to_record(kind, content)

        merged = {**extract_metadata(record), **(metadata or {})}
        return await self.embed_text(kind, content_id, extract_text(record), merged)

    async def embed_lore(self, content_id: str, lore: RawContent) -> EmbedResult:
        return await self.embed_content(ContentKind.LORE, content_id, lore)

    async def embed_quest(self, content_id: str, quest: RawContent) -> EmbedResult:
        return await self.embed_content(ContentKind.QUEST, content_id, quest)

    async def embed_item(self, content_id: str, item: RawContent) -> EmbedResult:
        return await self.embed_content(ContentKind.ITEM, content_id, item)

    async def embed_character(self, content_id: str, character: RawContent) -> EmbedResult:
        return await self.embed_content(ContentKind.CHARACTER, content_id, character)

    async def embed_npc(self, content_id: str, npc: RawContent) -> EmbedResult:
        return await self.embed_content(ContentKind.NPC, content_id, npc)

    async def embed_manifest(self, content_id: str, manifest: RawContent) -> EmbedResult:
        return await self.embed_content(ContentKind.MANIFEST, content_id, manifest)

    async def embed_batch(
        self,
        content_type: Union[ContentKind, str],
        items: Sequence[Union[BatchEmbedItem, Mapping[str, Any]]],
    ) -> BatchEmbedResult:
        """
        Embed many rows of one kind with one store write.

        Rows that fail validation or whose text is too short are skipped and
        counted. A batch with nothing left to embed succeeds with count 0.
        """
        self._require_enabled()
        kind = to_content_kind(content_type)
        min_length = self.config.search.min_text_length

        accepted: List[BatchEmbedItem] = []
        texts: List[str] = []
        metadata: List[Dict[str, Any]] = []
        skipped = 0

        for raw in items:
            try:
                item = raw if isinstance(raw, BatchEmbedItem) else BatchEmbedItem.model_validate(raw)
                record = parse_record(kind, item.data)
            except (ValidationError, ContentValidationError) as e:
                logger.warning(f"Skipping invalid {kind.value} row: {e}")
                skipped += 1
                continue

            text = extract_text(record)
            if not is_embeddable(text, min_length):
                skipped += 1
                continue

            accepted.append(item)
            texts.append(text)
            metadata.append({**extract_metadata(record), **(item.metadata or {})})

        if skipped:
            logger.warning(f"Skipped {skipped} of {len(items)} {kind.value} rows in batch")

        if not texts:
            return BatchEmbedResult(success=True, count=0, skipped=skipped)

        batch = await self.embedding_engine.generate_embeddings(texts)
        points = [
            BatchPoint(
                content_id=accepted[index].id,
                embedding=embedding,
                source_text=texts[index],
                metadata=metadata[index],
            )
            for index, embedding in zip(batch.indices, batch.embeddings)
        ]

        count = await self.pipeline.batch_upsert(kind, points, self.embedding_engine.model)
        return BatchEmbedResult(success=True, count=count, skipped=skipped + batch.skipped)

    async def search(
        self,
        query_text: str,
        content_type: Optional[Union[ContentKind, str]] = None,
        limit: Optional[int] = None,
        threshold: Optional[float] = None,
        filter: Optional[Dict[str, Any]] = None,
    ) -> List[SearchHit]:
        """Embed a query and return raw search hits."""
        self._require_enabled()
        query_vector = await self.embedding_engine.generate_embedding(query_text)
        return await self.search_engine.search(
            query_vector,
            content_type=to_content_kind(content_type) if content_type else None,
            limit=self.config.search.default_limit if limit is None else limit,
            score_threshold=self.config.search.default_threshold if threshold is None else threshold,
            filter=filter,
        )

    async def find_similar(
        self,
        query_text: str,
        content_type: Optional[Union[ContentKind, str]] = None,
        limit: Optional[int] = None,
        threshold: Optional[float] = None,
        filter: Optional[Dict[str, Any]] = None,
    ) -> List[SimilarContent]:
        """Content similar to a query, flattened for display."""
        hits = await self.search(query_text, content_type, limit, threshold, filter)
        return [
            SimilarContent(
                id=hit.id,
                content_type=hit.payload.content_type,
                content_id=hit.payload.content_id,
                content=hit.payload.source_text,
                similarity=hit.score,
                created_at=hit.payload.created_at,
            )
            for hit in hits
        ]

    async def build_context(
        self,
        query_text: str,
        content_type: Optional[Union[ContentKind, str]] = None,
        limit: Optional[int] = None,
        threshold: Optional[float] = None,
        filter: Optional[Dict[str, Any]] = None,
    ) -> ContextResult:
        """Attributed context block for retrieval-augmented generation."""
        self._require_enabled()
        return await self.context_assembler.build_context(
            query_text,
            limit=limit,
            threshold=threshold,
            content_type=to_content_kind(content_type) if content_type else None,
            filter=filter,
        )

    async def delete_embedding(self, content_type: Union[ContentKind, str], content_id: str) -> bool:
        """Remove a content record's embedding."""
        kind = to_content_kind(content_type)
        await self.pipeline.delete(kind, content_id)
        logger.info(f"Deleted embedding for {kind.value}:{content_id}")
        return True

    async def get_stats(self) -> List[CollectionStats]:
        return await self.health_monitor.get_stats()

    async def get_all_stats(self) -> Dict[ContentKind, Dict[str, Any]]:
        return await self.health_monitor.get_all_stats()

    async def health_check(self) -> bool:
        return await self.health_monitor.health_check()


def create_embedding_provider(config: LoreIndexConfig) -> Optional[EmbeddingProvider]:
    """OpenAI-compatible provider for the configuration, or None without an API key."""
    try:
        client_config = EmbeddingClientConfig.from_settings(config.embedding)
    except EmbeddingServiceDisabledError:
        return None
    return OpenAIEmbeddingClient(client_config)


async def create_content_embedder(
    config: Optional[LoreIndexConfig] = None,
    initialize: bool = True,
) -> ContentEmbedderService:
    """
    Create and optionally initialize a content embedder.

    Args:
        config: Configuration; loaded from file and environment when omitted
        initialize: Whether to provision the collections

    Returns:
        Ready-to-use service
    """
    config = config or ConfigManager().load_config()

    service = ContentEmbedderService(
        config,
        QdrantVectorStore(config.qdrant),
        create_embedding_provider(config),
    )
    if initialize:
        await service.initialize()
    return service
