"""Shared fixtures wiring the services to in-memory collaborators."""
from __future__ import annotations

import re
from typing import Iterator, List, Sequence

import pytest
from fastapi.testclient import TestClient

from lawton.config import Settings, get_settings, reset_settings_cache
from lawton.embeddings import DeterministicEmbeddingClient, EmbeddingClient, reset_embedding_client_cache
from lawton.services.knowledge import KnowledgeService, get_knowledge_service
from lawton.store import InMemoryChunkStore, reset_chunk_store_cache

SERVICE_KEY = "test-service-key"

_WORD_RE = re.compile(r"[a-z]+")


class VocabularyEmbedder(EmbeddingClient):
    """Bag-of-words vectors over a fixed vocabulary, handy for ranking tests."""

    model_name = "vocabulary"

    def __init__(self, vocabulary: Sequence[str]) -> None:
        super().__init__(expected_dimension=len(vocabulary) + 1)
        self.vocabulary = tuple(vocabulary)
        self.calls: List[str] = []

    def _embed_batch(self, texts: Sequence[str]) -> List[List[float]]:
        vectors = []
        for text in texts:
            self.calls.append(text)
            words = _WORD_RE.findall(text.lower())
            vector = [float(words.count(term)) for term in self.vocabulary]
            vector.append(0.01)
            vectors.append(vector)
        return vectors


class CountingChunkStore(InMemoryChunkStore):
    """In-memory store that can report how many chunks it holds."""

    def count_chunks(self, doc_id: str | None = None) -> int:
        with self._lock:
            return sum(1 for record in self._chunks if doc_id is None or record.doc_id == doc_id)


@pytest.fixture(autouse=True)
def _isolated_environment(monkeypatch: pytest.MonkeyPatch) -> Iterator[None]:
    monkeypatch.setenv("EMBEDDING_PROVIDER", "deterministic")
    monkeypatch.setenv("VECTOR_STORE", "memory")
    monkeypatch.delenv("LAWTON_SERVICE_KEY", raising=False)
    reset_settings_cache()
    reset_embedding_client_cache()
    reset_chunk_store_cache()
    get_knowledge_service.cache_clear()
    yield
    reset_settings_cache()
    reset_embedding_client_cache()
    reset_chunk_store_cache()
    get_knowledge_service.cache_clear()


@pytest.fixture
def settings() -> Settings:
    return Settings(service_key=SERVICE_KEY, embedding_provider="deterministic", embedding_dimension=16)


@pytest.fixture
def store() -> CountingChunkStore:
    return CountingChunkStore()


@pytest.fixture
def embedder() -> DeterministicEmbeddingClient:
    return DeterministicEmbeddingClient(dimension=16)


@pytest.fixture
def vocabulary_embedder() -> VocabularyEmbedder:
    return VocabularyEmbedder(["past", "tense", "future", "vocabulary", "pronunciation"])


@pytest.fixture
def service(store: CountingChunkStore, vocabulary_embedder: VocabularyEmbedder, settings: Settings) -> KnowledgeService:
    return KnowledgeService(store=store, embedder=vocabulary_embedder, settings=settings)


@pytest.fixture
def client(service: KnowledgeService, settings: Settings) -> Iterator[TestClient]:
    from lawton.main import app

    app.dependency_overrides[get_knowledge_service] = lambda: service
    app.dependency_overrides[get_settings] = lambda: settings
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


@pytest.fixture
def auth_headers() -> dict[str, str]:
    return {"x-lawton-service-key": SERVICE_KEY}
