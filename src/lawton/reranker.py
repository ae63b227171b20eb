"""Cosine-similarity reranking of candidate chunks."""
from __future__ import annotations

import logging
import math
from typing import List, Sequence

from lawton.ingest.models import ChunkRecord, ScoredChunk
from lawton.similarity import cosine_similarity, has_usable_norm

LOGGER = logging.getLogger(__name__)

DEFAULT_LIMIT = 8
MAX_LIMIT = 50


def clamp_limit(limit: int | None) -> int:
    """Clamp a requested result count into ``[1, MAX_LIMIT]``."""

    if limit is None:
        return DEFAULT_LIMIT
    return max(1, min(MAX_LIMIT, int(limit)))


def _usable_embedding(record: ChunkRecord, dimension: int) -> bool:
    embedding = record.embedding
    if not isinstance(embedding, (list, tuple)):
        return False
    if len(embedding) != dimension:
        return False
    return has_usable_norm(embedding)


def rank(
    query_vector: Sequence[float],
    candidates: Sequence[ChunkRecord],
    limit: int | None = DEFAULT_LIMIT,
) -> List[ScoredChunk]:
    """Score *candidates* against *query_vector* and return the best ones.

    Results are ordered by descending score, ties keep input order, and the
    embedding is never part of the returned objects.
    """

    if not has_usable_norm(query_vector):
        LOGGER.warning("Query vector has no usable norm; nothing to rank")
        return []

    dimension = len(query_vector)
    scored: List[tuple[float, ChunkRecord]] = []
    skipped = 0
    for record in candidates:
        if not _usable_embedding(record, dimension):
            skipped += 1
            continue
        score = cosine_similarity(query_vector, record.embedding)  # type: ignore[arg-type]
        if math.isnan(score):
            skipped += 1
            continue
        scored.append((score, record))

    if skipped:
        LOGGER.debug("Skipped %d candidates without a usable embedding", skipped)

    scored.sort(key=lambda item: item[0], reverse=True)
    return [ScoredChunk.from_record(record, score) for score, record in scored[: clamp_limit(limit)]]


__all__ = ["DEFAULT_LIMIT", "MAX_LIMIT", "clamp_limit", "rank"]
