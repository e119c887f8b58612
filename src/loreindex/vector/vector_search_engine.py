"""
Vector Search Engine - Similarity search over the per-kind collections.

Provides:
- Single-collection search when a content kind is given
- Concurrent fan-out across every collection otherwise, merged by score
- Partial results when individual collections fail or time out
- Equality filters over payload fields
"""

import asyncio
import logging
import time
from datetime import datetime
from typing import Any, Dict, List, Optional

from ..models.content_models import ContentKind
from ..models.vector_models import SearchHit
from .collection_manager import CollectionManager
from .qdrant_vector_store import QdrantVectorStore

logger = logging.getLogger(__name__)


class VectorSearchEngine:
    """
    Similarity search engine with multi-collection fan-out.

    Scores from different collections are comparable because every
    collection uses the same distance metric and embedding model.
    """

    def __init__(self, vector_store: QdrantVectorStore, collections: CollectionManager):
        """
        Initialize the search engine.

        Args:
            vector_store: Qdrant vector store instance
            collections: Collection naming
        """
        self.vector_store = vector_store
        self.collections = collections

        self._metrics = {
            "total_searches": 0,
            "fan_out_searches": 0,
            "failed_collection_queries": 0,
            "avg_search_time": 0.0,
            "avg_results_per_search": 0.0,
            "last_search_time": None,
        }

    async def search(
        self,
        query_vector: List[float],
        content_type: Optional[ContentKind] = None,
        limit: int = 10,
        score_threshold: float = 0.0,
        filter: Optional[Dict[str, Any]] = None,
    ) -> List[SearchHit]:
        """
        Search for points similar to a query vector.

        Args:
            query_vector: Query embedding
            content_type: Kind to search, or None for every kind
            limit: Maximum number of hits returned
            score_threshold: Minimum similarity score
            filter: Payload equality conditions, all required

        Returns:
            Hits sorted by descending score, at most ``limit`` of them

        Raises:
            VectorStoreError: If a single-collection search fails
        """
        start_time = time.time()
        self._metrics["total_searches"] += 1

        if content_type is not None:
            hits = await self.vector_store.search(
                self.collections.collection_name(ContentKind(content_type)),
                query_vector,
                limit=limit,
                score_threshold=score_threshold,
                filters=filter,
            )
        else:
            hits = await self._fan_out(query_vector, limit, score_threshold, filter)

        search_time = time.time() - start_time
        self._update_search_metrics(search_time, len(hits))
        logger.debug(f"Search completed: {len(hits)} results in {search_time:.3f}s")
        return hits

    async def _fan_out(
        self,
        query_vector: List[float],
        limit: int,
        score_threshold: float,
        filter: Optional[Dict[str, Any]],
    ) -> List[SearchHit]:
        """Query every collection concurrently and merge the results."""
        self._metrics["fan_out_searches"] += 1
        kinds = list(ContentKind)

        results = await asyncio.gather(
            *[
                self.vector_store.search(
                    self.collections.collection_name(kind),
                    query_vector,
                    limit=limit,
                    score_threshold=score_threshold,
                    filters=filter,
                )
                for kind in kinds
            ],
            return_exceptions=True,
        )

        merged: List[SearchHit] = []
        for kind, result in zip(kinds, results):
            if isinstance(result, Exception):
                self._metrics["failed_collection_queries"] += 1
                logger.warning(f"Search in {kind.value} collection failed, skipping: {result}")
                continue
            if isinstance(result, BaseException):
                raise result
            merged.extend(result)

        # list.sort is stable, so equal scores keep collection order
        merged.sort(key=lambda hit: hit.score, reverse=True)
        return merged[:limit]

    def _update_search_metrics(self, search_time: float, result_count: int) -> None:
        total_searches = self._metrics["total_searches"]
        current_avg = self._metrics["avg_search_time"]
        self._metrics["avg_search_time"] = (
            (current_avg * (total_searches - 1) + search_time) / total_searches
        )

        current_avg_results = self._metrics["avg_results_per_search"]
        self._metrics["avg_results_per_search"] = (
            (current_avg_results * (total_searches - 1) + result_count) / total_searches
        )

        self._metrics["last_search_time"] = datetime.now().isoformat()

    def get_search_metrics(self) -> Dict[str, Any]:
        """Get search performance metrics."""
        return self._metrics.copy()
