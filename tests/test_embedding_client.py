"""Tests for batched embedding clients."""

from __future__ import annotations

import asyncio
import io
import json
from typing import Any
from urllib import error as urllib_error

import pytest

import skill_graph.embedding_client as embedding_client
from skill_graph.embedding_client import (
    OpenAIEmbeddingClient,
    build_embeddings_payload,
    embed_texts,
    parse_embeddings_response,
    split_batches,
)
from skill_graph.errors import EmbeddingRequestError


class RecordingClient:
    """Fake client recording batches and in-flight concurrency."""

    def __init__(self, *, fail_on_call: int | None = None, drop_last: bool = False) -> None:
        self.batches: list[list[str]] = []
        self.in_flight = 0
        self.max_in_flight = 0
        self.fail_on_call = fail_on_call
        self.drop_last = drop_last

    async def embed_batch(self, *, model: str, texts: list[str]) -> list[list[float]]:
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        await asyncio.sleep(0)
        self.in_flight -= 1
        self.batches.append(list(texts))
        if self.fail_on_call is not None and len(self.batches) == self.fail_on_call:
            raise EmbeddingRequestError("server said no")
        vectors = [[float(len(text)), 1.0] for text in texts]
        return vectors[:-1] if self.drop_last else vectors


class FakeResponse:
    """Context-managed stand-in for an `urlopen` response."""

    def __init__(self, body: dict[str, Any]) -> None:
        self.body = json.dumps(body).encode("utf-8")

    def __enter__(self) -> FakeResponse:
        return self

    def __exit__(self, *exc_info: object) -> None:
        return None

    def read(self) -> bytes:
        return self.body


def test_split_batches_uses_fixed_chunk_size() -> None:
    """130 texts with batch size 64 should split 64/64/2."""

    texts = [f"t{index}" for index in range(130)]
    batches = split_batches(texts=texts, batch_size=64)
    assert [len(batch) for batch in batches] == [64, 64, 2]
    assert [text for batch in batches for text in batch] == texts


def test_embed_texts_is_sequential_and_order_preserving() -> None:
    """Batches should be awaited one at a time and vectors kept in input order."""

    client = RecordingClient()
    texts = ["a" * (index + 1) for index in range(5)]
    matrix = asyncio.run(embed_texts(client=client, texts=texts, model="m", batch_size=2))
    assert matrix.shape == (5, 2)
    assert matrix[:, 0].tolist() == [1.0, 2.0, 3.0, 4.0, 5.0]
    assert [len(batch) for batch in client.batches] == [2, 2, 1]
    assert client.max_in_flight == 1


def test_embed_texts_empty_input_makes_no_calls() -> None:
    """Empty input should short-circuit."""

    client = RecordingClient()
    matrix = asyncio.run(embed_texts(client=client, texts=[], model="m"))
    assert matrix.shape == (0, 0)
    assert client.batches == []


def test_embed_texts_aborts_on_failed_batch() -> None:
    """A failing batch should abort the pass without further calls."""

    client = RecordingClient(fail_on_call=1)
    with pytest.raises(EmbeddingRequestError, match="server said no"):
        asyncio.run(embed_texts(client=client, texts=["a", "b", "c"], model="m", batch_size=1))
    assert len(client.batches) == 1


def test_embed_texts_rejects_count_mismatch() -> None:
    """A batch returning fewer vectors than inputs is a service error."""

    client = RecordingClient(drop_last=True)
    with pytest.raises(EmbeddingRequestError):
        asyncio.run(embed_texts(client=client, texts=["a", "b"], model="m"))


def test_parse_embeddings_response_orders_by_index() -> None:
    """Rows should be reordered by their `index` field."""

    payload = {
        "data": [
            {"index": 1, "embedding": [0.0, 1.0]},
            {"index": 0, "embedding": [1.0, 0.0]},
        ]
    }
    assert parse_embeddings_response(response_payload=payload) == [[1.0, 0.0], [0.0, 1.0]]
    with pytest.raises(EmbeddingRequestError):
        parse_embeddings_response(response_payload={"error": "x"})


def test_build_embeddings_payload() -> None:
    """Payload should carry the model and the input batch."""

    assert build_embeddings_payload(model="m", texts=["a", "b"]) == {
        "model": "m",
        "input": ["a", "b"],
    }


def test_openai_client_posts_with_bearer_token(monkeypatch: pytest.MonkeyPatch) -> None:
    """The HTTP client should authenticate and parse vectors."""

    captured: dict[str, Any] = {}

    def fake_urlopen(request: Any, timeout: float) -> FakeResponse:
        captured["url"] = request.full_url
        captured["auth"] = request.get_header("Authorization")
        captured["body"] = json.loads(request.data.decode("utf-8"))
        captured["timeout"] = timeout
        return FakeResponse({"data": [{"index": 0, "embedding": [0.5, 0.25]}]})

    monkeypatch.setattr(embedding_client.urllib_request, "urlopen", fake_urlopen)
    client = OpenAIEmbeddingClient(
        api_key="sk-test", base_url="https://example.test/v1/", timeout_seconds=5.0
    )
    vectors = asyncio.run(client.embed_batch(model="text-embedding-3-small", texts=["SQL"]))
    assert vectors == [[0.5, 0.25]]
    assert captured["url"] == "https://example.test/v1/embeddings"
    assert captured["auth"] == "Bearer sk-test"
    assert captured["body"] == {"model": "text-embedding-3-small", "input": ["SQL"]}
    assert captured["timeout"] == 5.0


def test_openai_client_surfaces_error_body(monkeypatch: pytest.MonkeyPatch) -> None:
    """Non-success responses should raise with the response body."""

    def fake_urlopen(request: Any, timeout: float) -> FakeResponse:
        raise urllib_error.HTTPError(
            url=request.full_url,
            code=401,
            msg="Unauthorized",
            hdrs=None,
            fp=io.BytesIO(b'{"error": "invalid api key"}'),
        )

    monkeypatch.setattr(embedding_client.urllib_request, "urlopen", fake_urlopen)
    client = OpenAIEmbeddingClient(api_key="bad", base_url="https://example.test/v1")
    with pytest.raises(EmbeddingRequestError, match="invalid api key"):
        asyncio.run(client.embed_batch(model="m", texts=["SQL"]))


class FakeGeminiEmbedding:
    """Mock Gemini embedding item."""

    def __init__(self, values: list[float]) -> None:
        self.values = values


class FakeGeminiModels:
    """Mock `client.aio.models` exposing `embed_content`."""

    def __init__(self) -> None:
        self.calls: list[tuple[str, list[str]]] = []

    async def embed_content(self, *, model: str, contents: list[str]) -> Any:
        self.calls.append((model, list(contents)))
        embeddings = [FakeGeminiEmbedding([float(len(text)), 0.0]) for text in contents]
        return type("FakeEmbedResponse", (), {"embeddings": embeddings})()


def test_gemini_client_reads_embedding_values() -> None:
    """Gemini responses should map `embeddings[*].values` to vectors."""

    models = FakeGeminiModels()
    fake_sdk_client = type("FakeSdk", (), {"aio": type("FakeAio", (), {"models": models})()})()
    client = embedding_client.GeminiEmbeddingClient(client=fake_sdk_client)
    vectors = asyncio.run(client.embed_batch(model="gemini-embedding-001", texts=["ab", "c"]))
    assert vectors == [[2.0, 0.0], [1.0, 0.0]]
    assert models.calls == [("gemini-embedding-001", ["ab", "c"])]


class StalledResponse(FakeResponse):
    """Response whose body read times out."""

    def __init__(self) -> None:
        super().__init__(body={})

    def read(self) -> bytes:
        raise TimeoutError("The read operation timed out")


class HtmlResponse(FakeResponse):
    """Response carrying a gateway HTML page instead of JSON."""

    def __init__(self) -> None:
        super().__init__(body={})
        self.body = b"<html>bad gateway</html>"


def test_openai_client_wraps_read_timeout(monkeypatch: pytest.MonkeyPatch) -> None:
    """A timed-out body read should surface as an embedding failure."""

    monkeypatch.setattr(
        embedding_client.urllib_request,
        "urlopen",
        lambda request, timeout: StalledResponse(),
    )
    client = OpenAIEmbeddingClient(api_key="sk-test", base_url="https://example.test/v1")
    with pytest.raises(EmbeddingRequestError, match="timed out"):
        asyncio.run(client.embed_batch(model="m", texts=["SQL"]))


def test_openai_client_rejects_non_json_body(monkeypatch: pytest.MonkeyPatch) -> None:
    """A 200 response with an HTML body should raise with the body prefix."""

    monkeypatch.setattr(
        embedding_client.urllib_request,
        "urlopen",
        lambda request, timeout: HtmlResponse(),
    )
    client = OpenAIEmbeddingClient(api_key="sk-test", base_url="https://example.test/v1")
    with pytest.raises(EmbeddingRequestError, match="bad gateway"):
        asyncio.run(client.embed_batch(model="m", texts=["SQL"]))


class BrokenGeminiModels:
    """Mock `client.aio.models` whose transport fails below the SDK error types."""

    async def embed_content(self, *, model: str, contents: list[str]) -> Any:
        raise ConnectionResetError("connection reset by peer")


def test_gemini_client_wraps_transport_errors() -> None:
    """Non-API SDK failures should still surface as embedding failures."""

    models = BrokenGeminiModels()
    fake_sdk_client = type("FakeSdk", (), {"aio": type("FakeAio", (), {"models": models})()})()
    client = embedding_client.GeminiEmbeddingClient(client=fake_sdk_client)
    with pytest.raises(EmbeddingRequestError, match="connection reset"):
        asyncio.run(client.embed_batch(model="gemini-embedding-001", texts=["ab"]))
