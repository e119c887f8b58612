"""
End-to-end tests for the content embedder service on an in-memory store.
"""

import pytest

from conftest import SAMPLE_ROWS, FakeEmbeddingProvider
from loreindex.extraction import extract_text
from loreindex.models.content_models import ContentKind, LoreRecord, QuestRecord, parse_record
from loreindex.models.exceptions import ContentValidationError, EmbeddingServiceDisabledError
from loreindex.models.vector_models import BatchEmbedItem
from loreindex.vector.content_embedder import (
    ContentEmbedderService,
    create_content_embedder,
    create_embedding_provider,
)
from loreindex.vector.point_ids import uuid_point_id


@pytest.mark.asyncio
class TestContentEmbedderService:
    """Test suite for the service facade."""

    @pytest.mark.parametrize("kind", list(ContentKind))
    async def test_embed_content_per_kind(self, kind, service):
        result = await service.embed_content(kind, f"{kind.value}-1", SAMPLE_ROWS[kind])

        assert result.success is True
        assert result.id == f"{kind.value}-1"
        assert result.point_id == uuid_point_id(f"{kind.value}-1")

    @pytest.mark.parametrize("kind", list(ContentKind))
    async def test_reembedding_keeps_one_point(self, kind, service, vector_store):
        first = SAMPLE_ROWS[kind]
        second = {**first, "description": "Completely rewritten description for this record."}

        await service.embed_content(kind, "same-id", first)
        await service.embed_content(kind, "same-id", second)

        new_text = extract_text(parse_record(kind, second))
        hits = await service.search(new_text, content_type=kind, limit=10, threshold=0.0)
        assert [hit.payload.content_id for hit in hits] == ["same-id"]
        assert hits[0].payload.source_text == new_text

        old_text = extract_text(parse_record(kind, first))
        old_hits = await service.search(old_text, content_type=kind, limit=10, threshold=0.0)
        assert [hit.payload.content_id for hit in old_hits] in ([], ["same-id"])

        records = await vector_store.retrieve(f"content_{kind.value}", [uuid_point_id("same-id")])
        assert len(records) == 1
        assert records[0].payload["sourceText"] == new_text

        rows = await service.get_stats()
        assert next(r for r in rows if r.content_type is kind).total_embeddings == 1

    async def test_metadata_is_extracted_and_merged(self, service, vector_store):
        await service.embed_quest(
            "quest-9",
            {"title": "Goblin Trouble", "difficulty": "hard", "description": "Clear the caves."},
        )
        await service.embed_content(
            "npc", "npc-9", {"name": "Brenna", "faction": "Ironhold"}, metadata={"faction": "Exiles"}
        )

        quest = await vector_store.retrieve("content_quest", [uuid_point_id("quest-9")])
        assert quest[0].payload["metadata"]["difficulty"] == "hard"
        npc = await vector_store.retrieve("content_npc", [uuid_point_id("npc-9")])
        assert npc[0].payload["metadata"]["faction"] == "Exiles"
        assert npc[0].payload["metadata"]["type"] == "npc"

    async def test_typed_record_accepted(self, service):
        result = await service.embed_lore("lore-typed", LoreRecord(title="Typed", content="A typed record."))
        assert result.success

    async def test_record_of_wrong_kind_rejected(self, service):
        with pytest.raises(ContentValidationError):
            await service.embed_content("lore", "x", QuestRecord(title="Not lore"))

    async def test_unknown_kind_rejected(self, service):
        with pytest.raises(ContentValidationError):
            await service.embed_content("spell", "x", {"name": "Fireball"})

    async def test_too_short_text_rejected_before_embedding(self, service, provider):
        with pytest.raises(ContentValidationError) as exc_info:
            await service.embed_text("lore", "lore-short", "ab")

        assert exc_info.value.content_id == "lore-short"
        assert provider.calls == []

    async def test_embed_batch_skips_invalid_rows(self, service, provider):
        items = [
            BatchEmbedItem(id="lore-a", data={"title": "First Age", "content": "Dragons ruled."}),
            {"id": "lore-b", "data": {"title": "Second Age", "content": "Men rose."}},
            {"id": "lore-c", "data": {"title": "ok"}},
            {"id": "lore-d", "data": {"tags": "not-a-list"}},
            {"data": {"title": "No id"}},
        ]

        result = await service.embed_batch("lore", items)

        assert result.success is True
        assert result.count == 2
        assert result.skipped == 3
        assert len(provider.calls) == 1

        similar = await service.find_similar("First Age\n\nDragons ruled.", content_type="lore", threshold=0.99)
        assert [s.content_id for s in similar] == ["lore-a"]

    async def test_empty_batch_is_success_with_zero_count(self, service, provider):
        result = await service.embed_batch("item", [{"id": "i-1", "data": {}}])

        assert result.success is True
        assert result.count == 0
        assert provider.calls == []

    async def test_find_similar_shape(self, service):
        await service.embed_item("item-1", SAMPLE_ROWS[ContentKind.ITEM])
        text = extract_text(parse_record("item", SAMPLE_ROWS[ContentKind.ITEM]))

        similar = await service.find_similar(text)

        assert len(similar) == 1
        assert similar[0].content_type is ContentKind.ITEM
        assert similar[0].content_id == "item-1"
        assert similar[0].content == text
        assert similar[0].similarity == pytest.approx(1.0, abs=1e-4)
        assert similar[0].created_at is not None

    async def test_build_context_across_kinds(self, service, provider):
        provider.vectors["query"] = [1.0] + [0.0] * 7
        provider.vectors["Lore text about the war."] = [0.9, 0.43588989, 0, 0, 0, 0, 0, 0]
        provider.vectors["Quest text about the war."] = [0.8, 0.6, 0, 0, 0, 0, 0, 0]

        await service.embed_text("lore", "lore-1", "Lore text about the war.")
        await service.embed_text("quest", "quest-1", "Quest text about the war.")

        result = await service.build_context("query", threshold=0.7)

        assert result.has_context
        assert result.context_text.startswith("[LORE 1] (90% relevant)\nLore text about the war.")
        assert "[QUEST 2] (80% relevant)" in result.context_text
        assert [s.id for s in result.sources] == ["lore-1", "quest-1"]

    async def test_build_context_without_hits(self, service):
        result = await service.build_context("nothing indexed yet")
        assert result.has_context is False
        assert result.context_text == ""
        assert result.sources == []

    async def test_delete_embedding(self, service):
        await service.embed_npc("npc-1", SAMPLE_ROWS[ContentKind.NPC])
        assert await service.delete_embedding("npc", "npc-1") is True

        rows = await service.get_stats()
        assert next(r for r in rows if r.content_type is ContentKind.NPC).total_embeddings == 0

    async def test_health_check(self, service):
        assert await service.health_check() is True


@pytest.mark.asyncio
class TestDisabledService:
    """Without a provider every embedding operation fails fast."""

    async def test_embedding_operations_raise(self, config, vector_store):
        service = ContentEmbedderService(config, vector_store, provider=None)
        assert service.enabled is False

        with pytest.raises(EmbeddingServiceDisabledError):
            await service.embed_content("lore", "l-1", SAMPLE_ROWS[ContentKind.LORE])
        with pytest.raises(EmbeddingServiceDisabledError):
            await service.embed_batch("lore", [])
        with pytest.raises(EmbeddingServiceDisabledError):
            await service.find_similar("query")
        with pytest.raises(EmbeddingServiceDisabledError):
            await service.build_context("query")

    async def test_store_operations_still_work(self, config, vector_store):
        service = ContentEmbedderService(config, vector_store, provider=None)
        await service.initialize()

        assert await service.health_check() is True
        assert await vector_store.list_collections() == []

    async def test_factory_without_api_key(self, config):
        service = await create_content_embedder(config, initialize=False)
        try:
            assert service.enabled is False
            assert create_embedding_provider(config) is None
        finally:
            await service.shutdown()

    async def test_factory_with_api_key(self, config):
        config.embedding.api_key = "sk-test"
        provider = create_embedding_provider(config)
        try:
            assert provider is not None
            assert provider.dimensions == config.embedding.dimensions
        finally:
            await provider.close()


@pytest.mark.asyncio
class TestServiceLifecycle:
    async def test_async_context_manager_initializes(self, config, vector_store):
        async with ContentEmbedderService(config, vector_store, FakeEmbeddingProvider()) as service:
            assert service.enabled
            assert len(await vector_store.list_collections()) == len(ContentKind)
