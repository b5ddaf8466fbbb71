"""Tests for hellowords.embeddings: fail-soft client for /embeddings."""

import json

import httpx
import pytest

from hellowords.config import load_config
from hellowords.embeddings import DEFAULT_MODEL, EmbeddingClient


def _client(handler, api_key="test-key"):
    return EmbeddingClient(
        "https://embeddings.example.com/v1/",
        api_key=api_key,
        transport=httpx.MockTransport(handler),
    )


@pytest.mark.asyncio
async def test_embed_success_sends_single_request():
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json={"data": [{"embedding": [0.25, -0.5, 1]}]})

    vector = await _client(handler).embed("Hello world")

    assert vector == [0.25, -0.5, 1.0]
    assert len(seen) == 1
    request = seen[0]
    assert str(request.url) == "https://embeddings.example.com/v1/embeddings"
    assert request.headers["Authorization"] == "Bearer test-key"
    assert json.loads(request.content) == {"model": DEFAULT_MODEL, "input": "Hello world"}


@pytest.mark.asyncio
async def test_provider_error_returns_empty_without_retry():
    calls = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        return httpx.Response(500, json={"error": "boom"})

    assert await _client(handler).embed("text") == []
    assert len(calls) == 1


@pytest.mark.asyncio
async def test_network_error_returns_empty():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("unreachable", request=request)

    assert await _client(handler).embed("text") == []


@pytest.mark.asyncio
@pytest.mark.parametrize("body", [
    {"data": []},
    {"data": [{"embedding": "nope"}]},
    {"unexpected": True},
    ["not", "a", "dict"],
])
async def test_malformed_body_returns_empty(body):
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json=body)

    assert await _client(handler).embed("text") == []


@pytest.mark.asyncio
async def test_missing_api_key_skips_request():
    def handler(request: httpx.Request) -> httpx.Response:
        raise AssertionError("no request expected")

    assert await _client(handler, api_key="").embed("text") == []


def test_from_config_reads_env_key(monkeypatch):
    monkeypatch.setenv("OPENAI_API_KEY", "sk-env")
    client = EmbeddingClient.from_config(load_config())
    assert client.api_key == "sk-env"
    assert client.api_base == "https://api.openai.com/v1"
    assert client.model == "text-embedding-3-small"
