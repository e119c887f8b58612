"""
Tests for the OpenAI-compatible embedding client.

HTTP traffic is served by ``httpx.MockTransport``.
"""

import json

import httpx
import pytest

from loreindex.core.config_manager import EmbeddingConfig
from loreindex.models.exceptions import EmbeddingProviderError, EmbeddingServiceDisabledError
from loreindex.vector.embedding_client import EmbeddingClientConfig, OpenAIEmbeddingClient


def make_client(handler, **overrides) -> OpenAIEmbeddingClient:
    settings = {"api_key": "sk-test", "dimensions": 4, "max_retries": 2}
    settings.update(overrides)
    config = EmbeddingClientConfig(**settings)
    http_client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return OpenAIEmbeddingClient(config, http_client=http_client)


def embeddings_response(vectors, reverse=False):
    data = [{"index": i, "embedding": v} for i, v in enumerate(vectors)]
    if reverse:
        data.reverse()
    return httpx.Response(200, json={"data": data, "model": "text-embedding-3-small"})


@pytest.mark.asyncio
class TestOpenAIEmbeddingClient:
    """Test suite for the embedding HTTP client."""

    async def test_embed_batch_preserves_input_order(self):
        requests = []

        def handler(request: httpx.Request) -> httpx.Response:
            requests.append(json.loads(request.content))
            return embeddings_response([[0.1] * 4, [0.2] * 4], reverse=True)

        client = make_client(handler)
        embeddings = await client.embed_batch(["first", "second"])

        assert embeddings == [[0.1] * 4, [0.2] * 4]
        assert requests[0]["input"] == ["first", "second"]
        assert requests[0]["model"] == "text-embedding-3-small"
        assert requests[0]["dimensions"] == 4

    async def test_embed_single(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return embeddings_response([[0.5, 0.5, 0.5, 0.5]])

        client = make_client(handler)
        assert await client.embed("hello") == [0.5, 0.5, 0.5, 0.5]

    async def test_request_targets_embeddings_endpoint(self):
        seen = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(str(request.url))
            return embeddings_response([[0.0] * 4])

        client = make_client(handler, base_url="https://api.example.com/v1/")
        await client.embed("x")
        assert seen == ["https://api.example.com/v1/embeddings"]

    async def test_gateway_uses_provider_prefixed_model(self):
        models = []

        def handler(request: httpx.Request) -> httpx.Response:
            models.append(json.loads(request.content)["model"])
            return embeddings_response([[0.0] * 4])

        client = make_client(handler, base_url="https://ai-gateway.vercel.sh/v1")
        await client.embed("x")
        assert models == ["openai/text-embedding-3-small"]

    async def test_auth_error_is_not_retried(self):
        calls = []

        def handler(request: httpx.Request) -> httpx.Response:
            calls.append(request)
            return httpx.Response(401, json={"error": {"message": "Invalid API key"}})

        client = make_client(handler)
        with pytest.raises(EmbeddingProviderError) as exc_info:
            await client.embed_batch(["text"])

        assert exc_info.value.status_code == 401
        assert "Invalid API key" in str(exc_info.value)
        assert len(calls) == 1

    async def test_server_error_is_retried(self):
        calls = []

        def handler(request: httpx.Request) -> httpx.Response:
            calls.append(request)
            if len(calls) == 1:
                return httpx.Response(503, text="unavailable")
            return embeddings_response([[0.3] * 4])

        client = make_client(handler)
        assert await client.embed_batch(["text"]) == [[0.3] * 4]
        assert len(calls) == 2

    async def test_count_mismatch_raises(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return embeddings_response([[0.1] * 4])

        client = make_client(handler, max_retries=1)
        with pytest.raises(EmbeddingProviderError):
            await client.embed_batch(["one", "two"])

    async def test_empty_batch_makes_no_request(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise AssertionError("unexpected request")

        client = make_client(handler)
        assert await client.embed_batch([]) == []

    async def test_metrics_count_calls(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return embeddings_response([[0.1] * 4, [0.1] * 4])

        client = make_client(handler)
        await client.embed_batch(["a", "b"])
        metrics = client.get_metrics()
        assert metrics["total_api_calls"] == 1
        assert metrics["total_texts"] == 2
        assert metrics["failed_calls"] == 0


class TestEmbeddingClientConfig:
    def test_missing_key_disables_service(self):
        with pytest.raises(EmbeddingServiceDisabledError):
            EmbeddingClientConfig.from_settings(EmbeddingConfig())

    def test_from_settings_copies_values(self):
        config = EmbeddingClientConfig.from_settings(
            EmbeddingConfig(api_key="sk", model="text-embedding-3-large", dimensions=3072)
        )
        assert config.api_key == "sk"
        assert config.model == "text-embedding-3-large"
        assert config.dimensions == 3072
