"""Embedding clients turning text into fixed-dimension vectors."""
from __future__ import annotations

import hashlib
import logging
import random
import time
from abc import ABC, abstractmethod
from functools import lru_cache
from typing import Any, List, Optional, Sequence

from openai import APIStatusError, OpenAI, OpenAIError

from lawton.config import DEFAULT_EMBEDDING_MODEL, get_settings
from lawton.errors import UpstreamServiceError
from lawton.telemetry import emit_embeddings_event

LOGGER = logging.getLogger(__name__)


class EmbeddingClient(ABC):
    """Batch-capable embedding interface.

    Implementations receive a sequence of texts so that batching can be
    introduced without changing callers; the current clients issue one
    request per text.
    """

    model_name: str = "unknown"

    def __init__(self, *, expected_dimension: Optional[int] = None) -> None:
        self.expected_dimension = expected_dimension

    @abstractmethod
    def _embed_batch(self, texts: Sequence[str]) -> List[List[float]]:
        """Return one vector per text."""

    def embed_texts(self, texts: Sequence[str]) -> List[List[float]]:
        if not texts:
            return []
        started = time.perf_counter()
        try:
            vectors = self._embed_batch(texts)
            for vector in vectors:
                self._check_dimension(vector)
        except Exception as error:
            emit_embeddings_event(
                model=self.model_name,
                count=len(texts),
                duration_ms=(time.perf_counter() - started) * 1000.0,
                errors=[str(error)],
            )
            raise

        emit_embeddings_event(
            model=self.model_name,
            count=len(texts),
            duration_ms=(time.perf_counter() - started) * 1000.0,
        )
        return vectors

    def embed(self, text: str) -> List[float]:
        """Embed a single text."""

        return self.embed_texts([text])[0]

    def _check_dimension(self, vector: Sequence[float]) -> None:
        if self.expected_dimension is None:
            return
        if len(vector) != self.expected_dimension:
            raise UpstreamServiceError(
                f"Embedding service returned {len(vector)} dimensions, "
                f"expected {self.expected_dimension}"
            )


class OpenAIEmbeddingClient(EmbeddingClient):
    """Remote embeddings from the OpenAI embeddings API."""

    def __init__(
        self,
        *,
        api_key: str | None = None,
        model: str = DEFAULT_EMBEDDING_MODEL,
        base_url: str | None = None,
        expected_dimension: Optional[int] = None,
        client: Any | None = None,
    ) -> None:
        super().__init__(expected_dimension=expected_dimension)
        self.model_name = model
        if client is None:
            if not api_key:
                raise UpstreamServiceError("OPENAI_API_KEY is not configured")
            # Retries are disabled: a failed call aborts the request.
            client = OpenAI(api_key=api_key, base_url=base_url, max_retries=0)
        self._client = client

    def _embed_batch(self, texts: Sequence[str]) -> List[List[float]]:
        return [self._embed_one(text) for text in texts]

    def _embed_one(self, text: str) -> List[float]:
        try:
            response = self._client.embeddings.create(model=self.model_name, input=text)
        except APIStatusError as exc:
            body = exc.response.text
            raise UpstreamServiceError(f"OpenAI error: {body}", body=body, cause=exc) from exc
        except OpenAIError as exc:
            body = str(exc)
            raise UpstreamServiceError(f"OpenAI error: {body}", body=body, cause=exc) from exc
        return [float(value) for value in response.data[0].embedding]


class SentenceTransformerEmbeddingClient(EmbeddingClient):
    """Local embeddings computed with a SentenceTransformer model."""

    def __init__(
        self,
        model_name_or_path: str,
        *,
        device: str | None = None,
        expected_dimension: Optional[int] = None,
    ) -> None:
        super().__init__(expected_dimension=expected_dimension)
        try:
            from sentence_transformers import SentenceTransformer  # type: ignore import-not-found
        except ImportError as exc:
            raise UpstreamServiceError(
                "EMBEDDING_PROVIDER=sentence-transformers requires the "
                "'sentence-transformers' package to be installed",
                cause=exc,
            ) from exc

        self.model_name = model_name_or_path
        try:
            self._model = SentenceTransformer(model_name_or_path, device=device)
        except Exception as exc:  # pragma: no cover - depends on model availability
            raise UpstreamServiceError(
                f"Failed to load sentence-transformers model '{model_name_or_path}': {exc}",
                cause=exc,
            ) from exc

    def _embed_batch(self, texts: Sequence[str]) -> List[List[float]]:
        vectors: List[List[float]] = []
        for text in texts:
            encoded = self._model.encode(
                [text],
                convert_to_numpy=True,
                show_progress_bar=False,
                normalize_embeddings=False,
            )
            vectors.append([float(value) for value in encoded[0]])
        return vectors


class DeterministicEmbeddingClient(EmbeddingClient):
    """Hash-seeded pseudo embeddings for offline development and tests."""

    model_name = "deterministic"

    def __init__(self, dimension: int = 1536) -> None:
        if dimension <= 0:
            raise ValueError("dimension must be a positive integer")
        super().__init__(expected_dimension=dimension)
        self.dimension = dimension

    def _embed_batch(self, texts: Sequence[str]) -> List[List[float]]:
        return [self._deterministic_embedding(str(text)) for text in texts]

    def _deterministic_embedding(self, text: str) -> List[float]:
        seed = int.from_bytes(hashlib.sha256(text.encode("utf-8")).digest(), "big")
        rng = random.Random(seed)
        return [rng.uniform(-1.0, 1.0) for _ in range(self.dimension)]


def build_embedding_client(provider: str | None = None) -> EmbeddingClient:
    """Construct the embedding client selected by configuration."""

    settings = get_settings()
    backend = (provider or settings.embedding_provider).strip().lower()

    if backend == "openai":
        return OpenAIEmbeddingClient(
            api_key=settings.openai_api_key,
            model=settings.embedding_model,
            base_url=settings.openai_base_url,
            expected_dimension=settings.embedding_dimension,
        )
    if backend in {"sentence-transformers", "sentence_transformers"}:
        return SentenceTransformerEmbeddingClient(
            settings.embedding_model,
            expected_dimension=settings.embedding_dimension,
        )
    if backend == "deterministic":
        return DeterministicEmbeddingClient(dimension=settings.embedding_dimension)

    raise ValueError(f"Unsupported EMBEDDING_PROVIDER: {backend!r}")


@lru_cache()
def get_embedding_client() -> EmbeddingClient:
    """Return a cached embedding client instance."""

    client = build_embedding_client()
    LOGGER.info("Embedding client initialised: %s", client.model_name)
    return client


def reset_embedding_client_cache() -> None:
    """Clear the cached embedding client (primarily for testing)."""

    get_embedding_client.cache_clear()  # type: ignore[attr-defined]


__all__ = [
    "DeterministicEmbeddingClient",
    "EmbeddingClient",
    "OpenAIEmbeddingClient",
    "SentenceTransformerEmbeddingClient",
    "build_embedding_client",
    "get_embedding_client",
    "reset_embedding_client_cache",
]
