"""
Collection Manager - Provisions one Qdrant collection per content kind.

Collections are named ``<prefix><kind>`` and created with the configured
vector size, distance metric, HNSW and optimizer settings. Every collection
gets keyword indexes on ``contentId``, ``contentType`` and ``embeddingModel``
and datetime indexes on ``createdAt`` and ``updatedAt``.

Provisioning is idempotent: a collection or index that already exists is
left as is, and only other failures are reported.
"""

import logging
from typing import Dict, List, Optional, Tuple

from qdrant_client.http.exceptions import UnexpectedResponse
from qdrant_client.models import CollectionInfo, PayloadSchemaType

from ..core.config_manager import QdrantConfig
from ..models.content_models import ContentKind
from ..models.exceptions import CollectionError, VectorStoreError
from .qdrant_vector_store import QdrantVectorStore

logger = logging.getLogger(__name__)

PAYLOAD_INDEXES: List[Tuple[str, PayloadSchemaType]] = [
    ("contentId", PayloadSchemaType.KEYWORD),
    ("contentType", PayloadSchemaType.KEYWORD),
    ("embeddingModel", PayloadSchemaType.KEYWORD),
    ("createdAt", PayloadSchemaType.DATETIME),
    ("updatedAt", PayloadSchemaType.DATETIME),
]


def is_already_exists_error(error: BaseException) -> bool:
    """True if the error (or anything in its cause chain) is an 'already exists' conflict."""
    current: Optional[BaseException] = error
    seen = set()
    while current is not None and id(current) not in seen:
        seen.add(id(current))
        if isinstance(current, UnexpectedResponse) and current.status_code == 409:
            return True
        if "already exists" in str(current).lower():
            return True
        current = getattr(current, "cause", None) or current.__cause__
    return False


def get_vector_size(info: CollectionInfo) -> Optional[int]:
    """Vector size of a collection's unnamed vector, if it has one."""
    vectors = info.config.params.vectors
    size = getattr(vectors, "size", None)
    if size is None and isinstance(vectors, dict) and len(vectors) == 1:
        size = getattr(next(iter(vectors.values())), "size", None)
    return size


class CollectionManager:
    """Creates and names the per-kind collections."""

    def __init__(self, store: QdrantVectorStore, vector_size: int, config: QdrantConfig):
        """
        Initialize the manager.

        Args:
            store: Vector store adapter
            vector_size: Dimensionality of the configured embedding model
            config: Qdrant configuration (prefix, distance, HNSW settings)
        """
        self.store = store
        self.vector_size = vector_size
        self.config = config

    def collection_name(self, kind: ContentKind) -> str:
        return f"{self.config.collection_prefix}{ContentKind(kind).value}"

    def collection_names(self) -> Dict[ContentKind, str]:
        return {kind: self.collection_name(kind) for kind in ContentKind}

    async def initialize_collections(self) -> List[str]:
        """
        Ensure every kind's collection and payload indexes exist.

        Returns:
            Names of the collections created by this call

        Raises:
            CollectionError: On any failure other than 'already exists'
        """
        created = []
        for kind in ContentKind:
            if await self.ensure_collection(kind):
                created.append(self.collection_name(kind))

        logger.info(
            f"Initialized {len(ContentKind)} collections ({len(created)} created)"
        )
        return created

    async def ensure_collection(self, kind: ContentKind) -> bool:
        """Create one kind's collection if missing; returns True if it was created."""
        name = self.collection_name(kind)

        try:
            exists = await self.store.collection_exists(name)
        except VectorStoreError as e:
            raise CollectionError(
                "Failed to check collection", collection=name, cause=e
            ) from e

        if exists:
            logger.debug(f"Collection {name} already exists")
            await self._verify_vector_size(name)
            return False

        created = False
        try:
            await self.store.create_collection(
                name,
                vector_size=self.vector_size,
                distance=self.config.distance,
                hnsw_m=self.config.hnsw_m,
                hnsw_ef_construct=self.config.hnsw_ef_construct,
                default_segment_number=self.config.default_segment_number,
            )
            created = True
            logger.info(f"Created collection: {name}")
        except VectorStoreError as e:
            if not is_already_exists_error(e):
                raise CollectionError(
                    "Failed to create collection", collection=name, cause=e
                ) from e
            logger.debug(f"Collection {name} was created concurrently")

        await self._create_payload_indexes(name)
        return created

    async def _create_payload_indexes(self, name: str) -> None:
        for field_name, schema in PAYLOAD_INDEXES:
            try:
                await self.store.create_payload_index(name, field_name, schema)
            except VectorStoreError as e:
                if not is_already_exists_error(e):
                    raise CollectionError(
                        f"Failed to create payload index {field_name}",
                        collection=name,
                        cause=e,
                    ) from e
                logger.debug(f"Payload index {field_name} already exists on {name}")

    async def _verify_vector_size(self, name: str) -> None:
        try:
            info = await self.store.get_collection(name)
        except VectorStoreError as e:
            logger.warning(f"Could not read configuration of {name}: {e}")
            return

        size = get_vector_size(info)
        if size is not None and size != self.vector_size:
            logger.warning(
                f"Collection {name} has vector size {size}, "
                f"configured model produces {self.vector_size}"
            )
