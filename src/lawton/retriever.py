"""Query-time retrieval: embed, filter, then rerank."""
from __future__ import annotations

import logging
import time
from typing import List, Protocol

from lawton.candidates import ChunkFilters
from lawton.ingest.models import ChunkRecord, ScoredChunk
from lawton.reranker import DEFAULT_LIMIT, clamp_limit, rank
from lawton.telemetry import emit_retriever_event

LOGGER = logging.getLogger(__name__)


class EmbeddingProvider(Protocol):
    """Protocol describing the embedding contract used by the retriever."""

    def embed(self, text: str) -> List[float]:
        """Return the embedding for *text*."""


class CandidateSource(Protocol):
    """Protocol describing the filtered candidate scan."""

    def scan(self, filters: ChunkFilters | None = None) -> List[ChunkRecord]:
        """Return chunks matching the filters."""


class Retriever(Protocol):
    """Anything that can answer ``rank(query, filters, limit)``."""

    def rank(self, query: str, filters: ChunkFilters | None = None, limit: int = DEFAULT_LIMIT) -> List[ScoredChunk]:
        """Return the best matching chunks for *query*."""


class ScanRetriever:
    """Brute-force retriever over a capped, metadata-filtered candidate set."""

    def __init__(self, embedding_provider: EmbeddingProvider, candidates: CandidateSource) -> None:
        self._embedding_provider = embedding_provider
        self._candidates = candidates

    def rank(self, query: str, filters: ChunkFilters | None = None, limit: int = DEFAULT_LIMIT) -> List[ScoredChunk]:
        started = time.perf_counter()
        query_vector = self._embedding_provider.embed(query)
        pool = self._candidates.scan(filters)
        results = rank(query_vector, pool, limit)

        emit_retriever_event(
            query=query,
            limit=clamp_limit(limit),
            candidates=len(pool),
            results=[{"chunk_id": item.chunk_id, "score": round(item.score, 6)} for item in results],
            duration_ms=(time.perf_counter() - started) * 1000.0,
        )
        return results


__all__ = ["CandidateSource", "EmbeddingProvider", "Retriever", "ScanRetriever"]
