"""
Tests for single-collection and fan-out similarity search.
"""

import asyncio
from unittest.mock import AsyncMock

import numpy as np
import pytest
import pytest_asyncio

from conftest import DIMENSIONS, unit_vector
from loreindex.core.config_manager import QdrantConfig
from loreindex.models.content_models import ContentKind
from loreindex.models.exceptions import VectorStoreError
from loreindex.models.vector_models import BatchPoint, SearchHit, VectorPayload
from loreindex.vector.collection_manager import CollectionManager
from loreindex.vector.upsert_pipeline import UpsertPipeline
from loreindex.vector.vector_search_engine import VectorSearchEngine

QUERY = unit_vector([1, 0, 0, 0, 0, 0, 0, 0])


def vector_with_score(score: float):
    """Unit vector whose cosine similarity with QUERY is ``score``."""
    return unit_vector([score, np.sqrt(1 - score ** 2), 0, 0, 0, 0, 0, 0])


def hit(kind: ContentKind, content_id: str, score: float) -> SearchHit:
    return SearchHit(
        id=content_id,
        score=score,
        payload=VectorPayload(content_id=content_id, content_type=kind, source_text=content_id),
    )


@pytest.mark.asyncio
class TestVectorSearchEngine:
    """Test suite for search against an in-memory store."""

    @pytest_asyncio.fixture
    async def collections(self, vector_store, config):
        manager = CollectionManager(vector_store, DIMENSIONS, config.qdrant)
        await manager.initialize_collections()
        return manager

    @pytest_asyncio.fixture
    async def pipeline(self, vector_store, collections):
        return UpsertPipeline(vector_store, collections, DIMENSIONS)

    @pytest_asyncio.fixture
    async def engine(self, vector_store, collections):
        return VectorSearchEngine(vector_store, collections)

    async def test_single_collection_search(self, engine, pipeline):
        await pipeline.upsert(ContentKind.LORE, "lore-1", vector_with_score(0.9), "Lore", "m")
        await pipeline.upsert(ContentKind.QUEST, "quest-1", vector_with_score(0.95), "Quest", "m")

        hits = await engine.search(QUERY, content_type=ContentKind.LORE, limit=10)

        assert [h.payload.content_id for h in hits] == ["lore-1"]
        assert hits[0].score == pytest.approx(0.9, abs=1e-4)

    @pytest.mark.parametrize("top_kind", [ContentKind.LORE, ContentKind.NPC, ContentKind.MANIFEST])
    async def test_fan_out_puts_best_hit_first(self, top_kind, engine, pipeline):
        scores = {ContentKind.LORE: 0.6, ContentKind.NPC: 0.7, ContentKind.MANIFEST: 0.8}
        scores[top_kind] = 0.99
        for kind, score in scores.items():
            await pipeline.upsert(kind, f"{kind.value}-1", vector_with_score(score), kind.value, "m")

        hits = await engine.search(QUERY, limit=10)

        assert hits[0].payload.content_type is top_kind
        assert [h.score for h in hits] == sorted((h.score for h in hits), reverse=True)
        assert len(hits) == 3

    async def test_fan_out_truncates_to_limit(self, engine, pipeline):
        for i, kind in enumerate(ContentKind):
            await pipeline.upsert(kind, f"{kind.value}-1", vector_with_score(0.5 + i * 0.05), "t", "m")

        hits = await engine.search(QUERY, limit=2)

        assert len(hits) == 2
        assert hits[0].payload.content_type is ContentKind.MANIFEST

    async def test_higher_threshold_returns_subset(self, engine, pipeline):
        rng = np.random.default_rng(7)
        for kind in ContentKind:
            points = [
                BatchPoint(
                    content_id=f"{kind.value}-{i}",
                    embedding=unit_vector(rng.normal(size=DIMENSIONS) + np.eye(DIMENSIONS)[0] * 2),
                    source_text=f"{kind.value} {i}",
                )
                for i in range(20)
            ]
            await pipeline.batch_upsert(kind, points, "m")

        strict = await engine.search(QUERY, limit=100, score_threshold=0.9)
        loose = await engine.search(QUERY, limit=100, score_threshold=0.5)

        strict_ids = {h.id for h in strict}
        loose_ids = {h.id for h in loose}
        assert strict_ids <= loose_ids
        assert all(h.score >= 0.9 for h in strict)
        assert len(loose_ids) > 0

    async def test_filter_requires_all_conditions(self, engine, pipeline):
        await pipeline.upsert(
            ContentKind.ITEM, "item-1", vector_with_score(0.9), "Sword", "m", {"rarity": "rare"}
        )
        await pipeline.upsert(
            ContentKind.ITEM, "item-2", vector_with_score(0.8), "Shield", "m", {"rarity": "common"}
        )

        hits = await engine.search(
            QUERY,
            content_type=ContentKind.ITEM,
            filter={"metadata.rarity": "rare", "contentType": "item"},
        )
        assert [h.payload.content_id for h in hits] == ["item-1"]

        hits = await engine.search(
            QUERY,
            content_type=ContentKind.ITEM,
            filter={"metadata.rarity": "rare", "contentId": "item-2"},
        )
        assert hits == []

    async def test_missing_collection_degrades_in_fan_out(self, vector_store, pipeline, collections):
        await pipeline.upsert(ContentKind.QUEST, "quest-1", vector_with_score(0.9), "Quest", "m")
        await vector_store.client.delete_collection("content_lore")

        engine = VectorSearchEngine(vector_store, collections)
        hits = await engine.search(QUERY, limit=5)

        assert [h.payload.content_id for h in hits] == ["quest-1"]
        assert engine.get_search_metrics()["failed_collection_queries"] == 1

    async def test_missing_collection_propagates_for_single_kind(self, vector_store, collections):
        await vector_store.client.delete_collection("content_lore")
        engine = VectorSearchEngine(vector_store, collections)

        with pytest.raises(VectorStoreError) as exc_info:
            await engine.search(QUERY, content_type=ContentKind.LORE)
        assert exc_info.value.collection == "content_lore"


@pytest.mark.asyncio
class TestFanOutMerge:
    """Merge behavior with a mocked store."""

    def make_engine(self, results):
        async def search(name, vector, limit=10, score_threshold=None, filters=None):
            outcome = results.get(name, [])
            if isinstance(outcome, BaseException):
                raise outcome
            return outcome

        store = AsyncMock()
        store.search.side_effect = search
        collections = CollectionManager(store, DIMENSIONS, QdrantConfig())
        return VectorSearchEngine(store, collections)

    async def test_partial_failure_keeps_other_results(self):
        engine = self.make_engine({
            "content_lore": [hit(ContentKind.LORE, "lore-1", 0.8)],
            "content_quest": VectorStoreError("unreachable", collection="content_quest"),
            "content_npc": [hit(ContentKind.NPC, "npc-1", 0.9)],
        })

        hits = await engine.search(QUERY, limit=10)
        assert [h.id for h in hits] == ["npc-1", "lore-1"]

    async def test_timeout_in_one_collection_is_empty_result(self):
        engine = self.make_engine({
            "content_item": asyncio.TimeoutError(),
            "content_character": [hit(ContentKind.CHARACTER, "char-1", 0.75)],
        })

        hits = await engine.search(QUERY, limit=10)
        assert [h.id for h in hits] == ["char-1"]

    async def test_all_collections_failing_gives_empty_result(self):
        engine = self.make_engine({
            f"content_{kind.value}": VectorStoreError("down") for kind in ContentKind
        })
        assert await engine.search(QUERY) == []

    async def test_equal_scores_keep_collection_order(self):
        engine = self.make_engine({
            "content_lore": [hit(ContentKind.LORE, "lore-1", 0.8)],
            "content_npc": [hit(ContentKind.NPC, "npc-1", 0.8)],
            "content_manifest": [hit(ContentKind.MANIFEST, "manifest-1", 0.8)],
        })

        first = await engine.search(QUERY, limit=10)
        second = await engine.search(QUERY, limit=10)

        assert [h.id for h in first] == ["lore-1", "npc-1", "manifest-1"]
        assert [h.id for h in second] == [h.id for h in first]

    async def test_each_collection_queried_with_same_bounds(self):
        engine = self.make_engine({})
        await engine.search(QUERY, limit=3, score_threshold=0.4, filter={"contentType": "npc"})

        calls = engine.vector_store.search.await_args_list
        assert len(calls) == len(ContentKind)
        for call in calls:
            assert call.kwargs == {"limit": 3, "score_threshold": 0.4, "filters": {"contentType": "npc"}}
