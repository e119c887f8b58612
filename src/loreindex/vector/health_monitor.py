"""
Vector Health Monitor - Per-collection statistics and connectivity checks.

Stats are gathered for every content kind concurrently. A collection that
cannot be read is reported with an error entry instead of failing the whole
report, and the health check never raises.
"""

import asyncio
import logging
from typing import Any, Dict, List

from ..models.content_models import ContentKind
from ..models.vector_models import CollectionStats
from .collection_manager import CollectionManager, get_vector_size
from .qdrant_vector_store import QdrantVectorStore

logger = logging.getLogger(__name__)

STATS_ERROR = "not found or inaccessible"


class VectorHealthMonitor:
    """Statistics and health reporting for the per-kind collections."""

    def __init__(
        self,
        vector_store: QdrantVectorStore,
        collections: CollectionManager,
        default_vector_size: int,
    ):
        """
        Initialize the health monitor.

        Args:
            vector_store: Qdrant vector store instance
            collections: Collection naming
            default_vector_size: Vector size reported when the store omits it
        """
        self.vector_store = vector_store
        self.collections = collections
        self.default_vector_size = default_vector_size

        self._metrics = {
            "health_checks": 0,
            "failed_health_checks": 0,
            "last_error": None,
        }

    async def get_collection_stats(self, kind: ContentKind) -> Dict[str, Any]:
        """Raw statistics for one collection; store errors propagate."""
        name = self.collections.collection_name(kind)
        info = await self.vector_store.get_collection(name)

        status = info.status
        return {
            "collection": name,
            "points_count": info.points_count or 0,
            "indexed_vectors_count": info.indexed_vectors_count or 0,
            "vector_size": get_vector_size(info),
            "status": getattr(status, "value", status),
        }

    async def _safe_collection_stats(self, kind: ContentKind) -> Dict[str, Any]:
        try:
            return await self.get_collection_stats(kind)
        except Exception as e:
            logger.warning(f"Stats unavailable for {kind.value}: {e}")
            return {"error": STATS_ERROR}

    async def get_all_stats(self) -> Dict[ContentKind, Dict[str, Any]]:
        """Statistics for every kind; unreadable collections get an error entry."""
        kinds = list(ContentKind)
        results = await asyncio.gather(*[self._safe_collection_stats(kind) for kind in kinds])
        return dict(zip(kinds, results))

    async def get_stats(self) -> List[CollectionStats]:
        """One report row per content kind, in kind order."""
        all_stats = await self.get_all_stats()

        rows = []
        for kind, stats in all_stats.items():
            if "error" in stats:
                rows.append(
                    CollectionStats(
                        content_type=kind,
                        vector_size=self.default_vector_size,
                        status="error",
                        error=stats["error"],
                    )
                )
                continue

            rows.append(
                CollectionStats(
                    content_type=kind,
                    total_embeddings=stats["points_count"],
                    vector_size=stats["vector_size"] or self.default_vector_size,
                    status=stats["status"] or "unknown",
                )
            )
        return rows

    async def health_check(self) -> bool:
        """True if the store answers a collection listing. Never raises."""
        self._metrics["health_checks"] += 1
        try:
            await self.vector_store.list_collections()
            return True
        except Exception as e:
            self._metrics["failed_health_checks"] += 1
            self._metrics["last_error"] = str(e)
            logger.error(f"Vector store health check failed: {e}")
            return False

    def get_health_metrics(self) -> Dict[str, Any]:
        return self._metrics.copy()
