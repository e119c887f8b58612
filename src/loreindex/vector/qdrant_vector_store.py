"""
Qdrant Vector Store - Async adapter over the Qdrant client.

Exposes the store operations the index needs (collection CRUD, payload
indexes, upsert, search, retrieve, delete) with:
- A per-call timeout on every request
- Failures raised as VectorStoreError naming the collection and content id
- Equality-conjunction payload filters
"""

import asyncio
import logging
import math
import time
from typing import Any, Awaitable, Dict, List, Optional, Sequence, TypeVar

from pydantic import ValidationError
from qdrant_client import AsyncQdrantClient
from qdrant_client.models import (
    CollectionInfo,
    Distance,
    FieldCondition,
    Filter,
    HnswConfigDiff,
    MatchValue,
    OptimizersConfigDiff,
    PayloadSchemaType,
    PointIdsList,
    PointStruct,
    Record,
    VectorParams,
)
from tenacity import retry, stop_after_attempt, wait_exponential

from ..core.config_manager import QdrantConfig
from ..models.exceptions import VectorStoreError
from ..models.vector_models import PointId, SearchHit, VectorPayload

logger = logging.getLogger(__name__)

T = TypeVar("T")


class QdrantVectorStore:
    """
    Async Qdrant store adapter.

    The underlying client is shared by all callers; no locking is done here
    because every mutation is keyed by a deterministic point id.
    """

    def __init__(self, config: QdrantConfig, client: Optional[AsyncQdrantClient] = None):
        """
        Initialize the store.

        Args:
            config: Qdrant configuration
            client: Pre-built client (tests, shared clients); created lazily otherwise
        """
        self.config = config
        self.client: Optional[AsyncQdrantClient] = client
        self._owns_client = client is None

        self._metrics = {
            "operations_count": 0,
            "error_count": 0,
            "last_search_latency": 0.0,
        }

    def _get_client(self) -> AsyncQdrantClient:
        if self.client is None:
            if self.config.location:
                self.client = AsyncQdrantClient(location=self.config.location)
                logger.info(f"Initialized local Qdrant store at {self.config.location}")
            else:
                self.client = AsyncQdrantClient(
                    url=self.config.url,
                    api_key=self.config.api_key or None,
                    timeout=math.ceil(self.config.timeout),
                )
                logger.info(f"Initialized Qdrant store on {self.config.url}")
        return self.client

    async def close(self) -> None:
        """Close the client connection if this store created it."""
        if self.client is not None and self._owns_client:
            await self.client.close()
            logger.info("Qdrant vector store closed")
            self.client = None

    async def __aenter__(self):
        self._get_client()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()

    async def _call(
        self,
        operation: str,
        coro: Awaitable[T],
        collection: Optional[str] = None,
        content_id: Optional[str] = None,
    ) -> T:
        """Await a client call under the configured timeout."""
        self._metrics["operations_count"] += 1
        try:
            return await asyncio.wait_for(coro, timeout=self.config.timeout)
        except asyncio.TimeoutError as e:
            self._metrics["error_count"] += 1
            raise VectorStoreError(
                f"{operation} timed out after {self.config.timeout}s",
                collection=collection,
                content_id=content_id,
                cause=e,
            ) from e
        except VectorStoreError:
            self._metrics["error_count"] += 1
            raise
        except Exception as e:
            self._metrics["error_count"] += 1
            raise VectorStoreError(
                f"{operation} failed",
                collection=collection,
                content_id=content_id,
                cause=e,
            ) from e

    @retry(stop=stop_after_attempt(3), wait=wait_exponential(multiplier=1, min=1, max=10), reraise=True)
    async def verify_connection(self) -> int:
        """Verify the store is reachable; returns the number of collections."""
        names = await self.list_collections()
        logger.debug(f"Connected to Qdrant. Found {len(names)} collections")
        return len(names)

    async def list_collections(self) -> List[str]:
        """Names of all collections in the store."""
        response = await self._call("list collections", self._get_client().get_collections())
        return [c.name for c in response.collections]

    async def collection_exists(self, name: str) -> bool:
        return await self._call(
            "collection exists check", self._get_client().collection_exists(name), collection=name
        )

    async def get_collection(self, name: str) -> CollectionInfo:
        return await self._call(
            "get collection", self._get_client().get_collection(name), collection=name
        )

    async def create_collection(
        self,
        name: str,
        vector_size: int,
        distance: str = "Cosine",
        hnsw_m: int = 16,
        hnsw_ef_construct: int = 100,
        default_segment_number: int = 2,
    ) -> bool:
        """Create a collection with HNSW and optimizer settings."""
        return await self._call(
            "create collection",
            self._get_client().create_collection(
                collection_name=name,
                vectors_config=VectorParams(size=vector_size, distance=Distance(distance)),
                hnsw_config=HnswConfigDiff(m=hnsw_m, ef_construct=hnsw_ef_construct),
                optimizers_config=OptimizersConfigDiff(
                    default_segment_number=default_segment_number
                ),
            ),
            collection=name,
        )

    async def create_payload_index(
        self, name: str, field_name: str, field_schema: PayloadSchemaType
    ) -> None:
        await self._call(
            f"create payload index {field_name}",
            self._get_client().create_payload_index(
                collection_name=name,
                field_name=field_name,
                field_schema=field_schema,
                wait=True,
            ),
            collection=name,
        )

    async def upsert(
        self,
        name: str,
        points: List[PointStruct],
        wait: bool = True,
        content_id: Optional[str] = None,
    ) -> None:
        """Write points in a single request."""
        await self._call(
            "upsert",
            self._get_client().upsert(collection_name=name, points=points, wait=wait),
            collection=name,
            content_id=content_id,
        )

    async def search(
        self,
        name: str,
        query_vector: List[float],
        limit: int = 10,
        score_threshold: Optional[float] = None,
        filters: Optional[Dict[str, Any]] = None,
    ) -> List[SearchHit]:
        """
        Search one collection for similar vectors.

        Args:
            name: Collection name
            query_vector: Query embedding
            limit: Maximum number of hits
            score_threshold: Minimum similarity score
            filters: Payload equality conditions, all required

        Returns:
            Hits sorted by descending score
        """
        start_time = time.time()

        response = await self._call(
            "search",
            self._get_client().query_points(
                collection_name=name,
                query=query_vector,
                limit=limit,
                score_threshold=score_threshold,
                query_filter=self.build_filter(filters),
                with_payload=True,
                with_vectors=False,
            ),
            collection=name,
        )

        hits = []
        for point in response.points:
            try:
                payload = VectorPayload.model_validate(point.payload or {})
            except ValidationError:
                logger.warning(f"Skipping point {point.id} in {name}: unrecognized payload")
                continue
            hits.append(SearchHit(id=str(point.id), score=point.score, payload=payload))

        self._metrics["last_search_latency"] = time.time() - start_time
        logger.debug(f"Search in {name}: {len(hits)} results in {time.time() - start_time:.3f}s")
        return hits

    async def retrieve(self, name: str, ids: Sequence[PointId]) -> List[Record]:
        return await self._call(
            "retrieve",
            self._get_client().retrieve(
                collection_name=name, ids=list(ids), with_payload=True, with_vectors=False
            ),
            collection=name,
        )

    async def delete(
        self,
        name: str,
        ids: Sequence[PointId],
        wait: bool = True,
        content_id: Optional[str] = None,
    ) -> None:
        await self._call(
            "delete",
            self._get_client().delete(
                collection_name=name,
                points_selector=PointIdsList(points=list(ids)),
                wait=wait,
            ),
            collection=name,
            content_id=content_id,
        )

    @staticmethod
    def build_filter(filters: Optional[Dict[str, Any]]) -> Optional[Filter]:
        """Build a Qdrant filter requiring every key to equal its value."""
        if not filters:
            return None

        conditions = [
            FieldCondition(key=key, match=MatchValue(value=value))
            for key, value in filters.items()
        ]
        return Filter(must=conditions)

    def get_metrics(self) -> Dict[str, Any]:
        return self._metrics.copy()
