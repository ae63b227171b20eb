from __future__ import annotations

import logging
from functools import lru_cache
from typing import List, Optional

from lawton.candidates import CandidateFilter, ChunkFilters
from lawton.config import Settings, get_settings
from lawton.embeddings import EmbeddingClient, get_embedding_client
from lawton.errors import ValidationError
from lawton.ingest.models import IngestRequest, IngestResult, ScoredChunk
from lawton.ingest.pipeline import IngestPipeline
from lawton.reranker import DEFAULT_LIMIT
from lawton.retriever import Retriever, ScanRetriever
from lawton.store import ChunkStore, get_chunk_store

LOGGER = logging.getLogger(__name__)


class KnowledgeService:
    """High level orchestration of ingestion and retrieval.

    Collaborators are resolved lazily so that configuration problems surface
    as request errors rather than at import time.
    """

    def __init__(
        self,
        *,
        store: ChunkStore | None = None,
        embedder: EmbeddingClient | None = None,
        retriever: Retriever | None = None,
        settings: Settings | None = None,
    ) -> None:
        self._store = store
        self._embedder = embedder
        self._retriever = retriever
        self._settings = settings

    @property
    def settings(self) -> Settings:
        if self._settings is None:
            self._settings = get_settings()
        return self._settings

    @property
    def store(self) -> ChunkStore:
        if self._store is None:
            self._store = get_chunk_store()
        return self._store

    @property
    def embedder(self) -> EmbeddingClient:
        if self._embedder is None:
            self._embedder = get_embedding_client()
        return self._embedder

    @property
    def retriever(self) -> Retriever:
        if self._retriever is None:
            candidates = CandidateFilter(self.store, limit=self.settings.candidate_limit)
            self._retriever = ScanRetriever(self.embedder, candidates)
        return self._retriever

    def ingest(self, request: IngestRequest) -> IngestResult:
        pipeline = IngestPipeline(
            self.store,
            self.embedder,
            max_chunk_chars=self.settings.chunk_max_chars,
        )
        result = pipeline.ingest(request)
        LOGGER.info(
            "Ingested %s as %s (%d chunks)", request.path, result.doc_id, result.chunks_inserted
        )
        return result

    def retrieve(
        self,
        query: Optional[str],
        filters: ChunkFilters | None = None,
        limit: int = DEFAULT_LIMIT,
    ) -> List[ScoredChunk]:
        if not query:
            raise ValidationError("Missing 'query'")
        return self.retriever.rank(query, filters, limit)


@lru_cache()
def get_knowledge_service() -> KnowledgeService:
    """FastAPI dependency returning the shared :class:`KnowledgeService` instance."""

    return KnowledgeService()
