"""
Tests for collection statistics and health checks.
"""

from unittest.mock import AsyncMock

import pytest
import pytest_asyncio

from conftest import DIMENSIONS
from loreindex.core.config_manager import QdrantConfig
from loreindex.models.content_models import ContentKind
from loreindex.models.exceptions import VectorStoreError
from loreindex.models.vector_models import BatchPoint
from loreindex.vector.collection_manager import CollectionManager
from loreindex.vector.health_monitor import STATS_ERROR, VectorHealthMonitor
from loreindex.vector.upsert_pipeline import UpsertPipeline


@pytest.mark.asyncio
class TestVectorHealthMonitor:
    """Test suite for stats and health against an in-memory store."""

    @pytest_asyncio.fixture
    async def collections(self, vector_store, config):
        return CollectionManager(vector_store, DIMENSIONS, config.qdrant)

    @pytest_asyncio.fixture
    async def monitor(self, vector_store, collections):
        return VectorHealthMonitor(vector_store, collections, DIMENSIONS)

    async def test_stats_for_initialized_collections(self, monitor, collections, vector_store):
        await collections.initialize_collections()
        pipeline = UpsertPipeline(vector_store, collections, DIMENSIONS)
        points = [
            BatchPoint(content_id=f"lore-{i}", embedding=[1.0] + [0.0] * (DIMENSIONS - 1), source_text="t")
            for i in range(3)
        ]
        await pipeline.batch_upsert(ContentKind.LORE, points, "m")

        rows = await monitor.get_stats()

        assert [row.content_type for row in rows] == list(ContentKind)
        by_kind = {row.content_type: row for row in rows}
        assert by_kind[ContentKind.LORE].total_embeddings == 3
        assert by_kind[ContentKind.QUEST].total_embeddings == 0
        assert all(row.vector_size == DIMENSIONS for row in rows)
        assert all(row.error is None for row in rows)
        assert all(row.status != "unknown" for row in rows)

    async def test_missing_collections_reported_not_raised(self, monitor, vector_store, collections):
        await collections.ensure_collection(ContentKind.QUEST)

        all_stats = await monitor.get_all_stats()

        assert all_stats[ContentKind.LORE] == {"error": STATS_ERROR}
        assert all_stats[ContentKind.QUEST]["points_count"] == 0

        rows = await monitor.get_stats()
        lore_row = next(row for row in rows if row.content_type is ContentKind.LORE)
        assert lore_row.error == "not found or inaccessible"
        assert lore_row.vector_size == DIMENSIONS

    async def test_health_check_true_when_reachable(self, monitor):
        assert await monitor.health_check() is True


@pytest.mark.asyncio
class TestHealthCheckFailures:
    async def test_health_check_never_raises(self):
        store = AsyncMock()
        store.list_collections.side_effect = VectorStoreError("connection refused")
        monitor = VectorHealthMonitor(store, CollectionManager(store, DIMENSIONS, QdrantConfig()), DIMENSIONS)

        assert await monitor.health_check() is False
        metrics = monitor.get_health_metrics()
        assert metrics["failed_health_checks"] == 1
        assert "connection refused" in metrics["last_error"]

    async def test_unexpected_errors_are_contained(self):
        store = AsyncMock()
        store.list_collections.side_effect = RuntimeError("boom")
        store.get_collection.side_effect = RuntimeError("boom")
        monitor = VectorHealthMonitor(store, CollectionManager(store, DIMENSIONS, QdrantConfig()), DIMENSIONS)

        assert await monitor.health_check() is False
        rows = await monitor.get_stats()
        assert all(row.error == STATS_ERROR for row in rows)
