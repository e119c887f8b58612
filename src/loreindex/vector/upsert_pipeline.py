"""
Upsert Pipeline - Writes embeddings under deterministic point ids.

A content record's point id is derived from its content id alone, so
re-embedding the same record replaces its point instead of adding one.
Each write carries the full payload (content id, kind, model, source text,
metadata, timestamps) and waits for the store to acknowledge it, which
makes the write visible to the next search.
"""

import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Sequence

from qdrant_client.models import PointStruct

from ..models.content_models import ContentKind
from ..models.exceptions import DimensionMismatchError, PointIdCollisionError
from ..models.vector_models import BatchPoint, PointId, VectorPayload
from .collection_manager import CollectionManager
from .point_ids import get_point_id_generator
from .qdrant_vector_store import QdrantVectorStore

logger = logging.getLogger(__name__)


def utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


class UpsertPipeline:
    """Idempotent writer for the per-kind collections."""

    def __init__(
        self,
        store: QdrantVectorStore,
        collections: CollectionManager,
        vector_size: int,
        point_id_scheme: str = "uuid5",
        detect_collisions: Optional[bool] = None,
    ):
        """
        Initialize the pipeline.

        Args:
            store: Vector store adapter
            collections: Collection naming
            vector_size: Required embedding length
            point_id_scheme: ``uuid5`` or ``legacy32``
            detect_collisions: Check the stored content id before overwriting;
                defaults to on for the 32-bit scheme only
        """
        self.store = store
        self.collections = collections
        self.vector_size = vector_size
        self.point_id_scheme = point_id_scheme
        self._point_id = get_point_id_generator(point_id_scheme)
        self.detect_collisions = (
            point_id_scheme == "legacy32" if detect_collisions is None else detect_collisions
        )

    def point_id(self, content_id: str) -> PointId:
        return self._point_id(content_id)

    def _validate_dimensions(self, embedding: Sequence[float], collection: str, content_id: str) -> None:
        if len(embedding) != self.vector_size:
            raise DimensionMismatchError(
                f"Embedding has {len(embedding)} dimensions, collection expects {self.vector_size}",
                collection=collection,
                content_id=content_id,
            )

    def _build_point(
        self,
        kind: ContentKind,
        content_id: str,
        embedding: Sequence[float],
        source_text: str,
        embedding_model: str,
        metadata: Optional[Dict[str, Any]],
        timestamp: str,
    ) -> PointStruct:
        payload = VectorPayload(
            content_id=content_id,
            content_type=kind,
            embedding_model=embedding_model,
            embedding_dimensions=len(embedding),
            source_text=source_text,
            metadata=metadata or {},
            created_at=timestamp,
            updated_at=timestamp,
        )
        return PointStruct(
            id=self.point_id(content_id),
            vector=list(embedding),
            payload=payload.to_store(),
        )

    async def _check_collision(self, collection: str, point_id: PointId, content_id: str) -> None:
        existing = await self.store.retrieve(collection, [point_id])
        for record in existing:
            stored_id = (record.payload or {}).get("contentId")
            if stored_id is not None and stored_id != content_id:
                raise PointIdCollisionError(
                    f"Point id {point_id} already holds content {stored_id!r}",
                    collection=collection,
                    content_id=content_id,
                )

    async def upsert(
        self,
        kind: ContentKind,
        content_id: str,
        embedding: Sequence[float],
        source_text: str,
        embedding_model: str,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> PointId:
        """
        Write one embedding, replacing any previous point for the content id.

        Returns:
            The point id written

        Raises:
            DimensionMismatchError: If the embedding length is wrong
            PointIdCollisionError: If the point id belongs to another content id
            VectorStoreError: If the store rejects the write
        """
        kind = ContentKind(kind)
        collection = self.collections.collection_name(kind)
        self._validate_dimensions(embedding, collection, content_id)

        point = self._build_point(
            kind, content_id, embedding, source_text, embedding_model, metadata, utc_now_iso()
        )

        if self.detect_collisions:
            await self._check_collision(collection, point.id, content_id)

        await self.store.upsert(collection, [point], wait=True, content_id=content_id)
        logger.debug(f"Stored embedding for {kind.value}:{content_id} as point {point.id}")
        return point.id

    async def batch_upsert(
        self,
        kind: ContentKind,
        points: Sequence[BatchPoint],
        embedding_model: str,
    ) -> int:
        """
        Write many embeddings of one kind in a single request.

        All points share one timestamp. Returns the number of points written.
        """
        kind = ContentKind(kind)
        if not points:
            return 0

        collection = self.collections.collection_name(kind)
        timestamp = utc_now_iso()

        structs: List[PointStruct] = []
        owners: Dict[PointId, str] = {}
        for entry in points:
            self._validate_dimensions(entry.embedding, collection, entry.content_id)
            point = self._build_point(
                kind,
                entry.content_id,
                entry.embedding,
                entry.source_text,
                embedding_model,
                entry.metadata,
                timestamp,
            )
            owner = owners.setdefault(point.id, entry.content_id)
            if owner != entry.content_id:
                raise PointIdCollisionError(
                    f"Point id {point.id} shared by {owner!r} in the same batch",
                    collection=collection,
                    content_id=entry.content_id,
                )
            structs.append(point)

        await self.store.upsert(collection, structs, wait=True)
        logger.info(f"Batch stored {len(structs)} {kind.value} embeddings")
        return len(structs)

    async def delete(self, kind: ContentKind, content_id: str) -> PointId:
        """Remove a content record's point. Deleting an absent point is not an error."""
        kind = ContentKind(kind)
        collection = self.collections.collection_name(kind)
        point_id = self.point_id(content_id)

        await self.store.delete(collection, [point_id], wait=True, content_id=content_id)
        logger.debug(f"Deleted embedding for {kind.value}:{content_id}")
        return point_id
