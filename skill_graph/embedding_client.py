"""Batched text-embedding clients for OpenAI-compatible and Gemini services."""

from __future__ import annotations

import asyncio
import json
import logging
from typing import Any, Protocol
from urllib import error as urllib_error
from urllib import request as urllib_request

import numpy as np
from google import genai
from google.genai import errors as genai_errors
from tqdm import tqdm

from skill_graph.config_types import SkillGraphConfig
from skill_graph.errors import EmbeddingRequestError

DEFAULT_BATCH_SIZE = 64
LOGGER = logging.getLogger(__name__)


class EmbeddingClient(Protocol):
    """Protocol for one-batch embedding calls.

    Args:
        model: Embedding model id.
        texts: Ordered input strings for one request.

    Returns:
        One vector per input string, in input order.
    """

    async def embed_batch(
        self, *, model: str, texts: list[str]
    ) -> list[list[float]]: ...


class OpenAIEmbeddingClient:
    """HTTP client for OpenAI-compatible `/v1/embeddings`.

    Args:
        api_key: Bearer token.
        base_url: Base URL ending in `/v1`.
        timeout_seconds: HTTP request timeout seconds.

    Example:
        >>> client = OpenAIEmbeddingClient(api_key="k", base_url="https://api.openai.com/v1/")
        >>> client.base_url
        'https://api.openai.com/v1'
    """

    def __init__(
        self, *, api_key: str, base_url: str, timeout_seconds: float = 120.0
    ) -> None:
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.timeout_seconds = timeout_seconds

    async def embed_batch(self, *, model: str, texts: list[str]) -> list[list[float]]:
        """Embed one batch without blocking the event loop.

        Args:
            model: Embedding model id.
            texts: Batch input strings.

        Returns:
            Vectors ordered like `texts`.
        """

        payload = build_embeddings_payload(model=model, texts=texts)
        response_payload = await asyncio.to_thread(
            self._post, path="/embeddings", payload=payload
        )
        return parse_embeddings_response(response_payload=response_payload)

    def _post(self, *, path: str, payload: dict[str, Any]) -> dict[str, Any]:
        """Execute an authenticated JSON POST and parse the response.

        Args:
            path: API path relative to base URL.
            payload: JSON payload.

        Returns:
            Parsed JSON payload.
        """

        body = json.dumps(payload).encode("utf-8")
        request = urllib_request.Request(
            url=self.base_url + path,
            data=body,
            headers={
                "Authorization": f"Bearer {self.api_key}",
                "Content-Type": "application/json",
            },
        )
        try:
            with urllib_request.urlopen(
                request, timeout=self.timeout_seconds
            ) as response:
                response_text = response.read().decode("utf-8", errors="replace")
        except urllib_error.HTTPError as http_error:
            error_text = http_error.read().decode("utf-8", errors="replace")
            raise EmbeddingRequestError(
                f"Embedding request failed ({http_error.code}): {error_text}"
            ) from http_error
        except urllib_error.URLError as url_error:
            raise EmbeddingRequestError(str(url_error)) from url_error
        except OSError as os_error:
            raise EmbeddingRequestError(
                f"Embedding request failed: {os_error!r}"
            ) from os_error
        try:
            payload_obj = json.loads(response_text)
        except json.JSONDecodeError as decode_error:
            raise EmbeddingRequestError(
                f"Embedding response is not JSON: {response_text[:200]}"
            ) from decode_error
        if not isinstance(payload_obj, dict):
            raise EmbeddingRequestError("embedding response must be a JSON object")
        return payload_obj


class GeminiEmbeddingClient:
    """Gemini `embed_content` client.

    Args:
        client: Initialized `google.genai` client.
    """

    def __init__(self, *, client: Any) -> None:
        self.client = client

    async def embed_batch(self, *, model: str, texts: list[str]) -> list[list[float]]:
        try:
            response = await self.client.aio.models.embed_content(
                model=model, contents=texts
            )
        except genai_errors.APIError as api_error:
            raise EmbeddingRequestError(
                f"Embedding request failed ({api_error.code}): {api_error.message}"
            ) from api_error
        except Exception as error:  # noqa: BLE001
            raise EmbeddingRequestError(
                f"Embedding request failed: {error!r}"
            ) from error
        vectors: list[list[float]] = []
        for embedding in response.embeddings or []:
            vectors.append([float(value) for value in embedding.values or []])
        return vectors


def build_embeddings_payload(*, model: str, texts: list[str]) -> dict[str, Any]:
    """Build payload for `/v1/embeddings`."""

    return {"model": model, "input": list(texts)}


def parse_embeddings_response(
    *, response_payload: dict[str, Any]
) -> list[list[float]]:
    """Parse `data[*].embedding`, honoring each row's `index` when present.

    Args:
        response_payload: JSON payload from `/v1/embeddings`.

    Returns:
        Vectors in request order.
    """

    rows = response_payload.get("data")
    if not isinstance(rows, list):
        raise EmbeddingRequestError(
            f"embedding response missing data: {json.dumps(response_payload)[:500]}"
        )
    indexed = [
        (int(row.get("index", position)), row.get("embedding"))
        for position, row in enumerate(rows)
        if isinstance(row, dict)
    ]
    indexed.sort(key=lambda item: item[0])
    vectors: list[list[float]] = []
    for _, embedding in indexed:
        if not isinstance(embedding, list):
            raise EmbeddingRequestError("embedding row is not a list of numbers")
        vectors.append([float(value) for value in embedding])
    return vectors


def split_batches(*, texts: list[str], batch_size: int) -> list[list[str]]:
    """Split texts into request-sized chunks.

    Example:
        >>> split_batches(texts=["a", "b", "c"], batch_size=2)
        [['a', 'b'], ['c']]
    """

    effective_batch_size = max(1, batch_size)
    return [
        texts[index : index + effective_batch_size]
        for index in range(0, len(texts), effective_batch_size)
    ]


async def embed_texts(
    *,
    client: EmbeddingClient,
    texts: list[str],
    model: str,
    batch_size: int = DEFAULT_BATCH_SIZE,
    progress_desc: str = "embed",
) -> np.ndarray:
    """Embed texts with one outstanding request at a time.

    Args:
        client: Embedding client.
        texts: Ordered input strings.
        model: Embedding model id.
        batch_size: Number of texts per request.
        progress_desc: Progress bar label.

    Returns:
        `(len(texts), D)` float matrix aligned with `texts`.

    Raises:
        EmbeddingRequestError: On any failed or malformed batch.
    """

    if not texts:
        return np.zeros((0, 0), dtype=np.float64)
    batches = split_batches(texts=texts, batch_size=batch_size)
    LOGGER.info(
        "%s: texts=%d batches=%d model=%s", progress_desc, len(texts), len(batches), model
    )
    vectors: list[list[float]] = []
    dimension: int | None = None
    with tqdm(total=len(texts), desc=progress_desc, unit="text", dynamic_ncols=True) as bar:
        for batch_index, batch in enumerate(batches):
            batch_vectors = await client.embed_batch(model=model, texts=batch)
            if len(batch_vectors) != len(batch):
                raise EmbeddingRequestError(
                    f"batch {batch_index} returned {len(batch_vectors)} vectors "
                    f"for {len(batch)} inputs"
                )
            for vector in batch_vectors:
                if not vector:
                    raise EmbeddingRequestError(f"batch {batch_index} returned an empty vector")
                if dimension is None:
                    dimension = len(vector)
                if len(vector) != dimension:
                    raise EmbeddingRequestError(
                        f"inconsistent embedding dimension {len(vector)} != {dimension}"
                    )
            vectors.extend(batch_vectors)
            bar.update(len(batch))
    return np.asarray(vectors, dtype=np.float64)


def build_embedding_client(*, config: SkillGraphConfig) -> EmbeddingClient:
    """Create the configured provider client.

    Args:
        config: Run configuration with a resolved credential.

    Returns:
        Embedding client instance.
    """

    assert config.api_key, "api_key must be resolved before building a client"
    if config.provider == "gemini":
        return GeminiEmbeddingClient(client=genai.Client(api_key=config.api_key))
    return OpenAIEmbeddingClient(
        api_key=config.api_key,
        base_url=config.base_url,
        timeout_seconds=config.timeout_seconds,
    )
