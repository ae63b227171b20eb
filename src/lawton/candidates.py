"""Metadata-filtered candidate selection ahead of similarity ranking."""
from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Any, List, Mapping, Optional

from lawton.errors import StorageError
from lawton.ingest.models import ChunkRecord
from lawton.store import ChunkStore, EqualityPredicate, FILTERABLE_FIELDS
from lawton.telemetry import emit_store_event

LOGGER = logging.getLogger(__name__)

DEFAULT_CANDIDATE_LIMIT = 200


@dataclass(frozen=True, slots=True)
class ChunkFilters:
    """Optional exact-match constraints; empty values are unconstrained."""

    topic: Optional[str] = None
    cefr: Optional[str] = None
    skill: Optional[str] = None
    format: Optional[str] = None

    @classmethod
    def from_mapping(cls, values: Mapping[str, Any] | None) -> "ChunkFilters":
        values = values or {}
        return cls(**{field: values.get(field) for field in FILTERABLE_FIELDS})

    def predicates(self) -> List[EqualityPredicate]:
        predicates: List[EqualityPredicate] = []
        for field in FILTERABLE_FIELDS:
            value = getattr(self, field)
            if value:
                predicates.append(EqualityPredicate(field=field, value=value))
        return predicates


class CandidateFilter:
    """Fetch at most ``limit`` chunks whose metadata equals every filter."""

    def __init__(self, store: ChunkStore, *, limit: int = DEFAULT_CANDIDATE_LIMIT) -> None:
        if limit <= 0:
            raise ValueError("limit must be a positive integer")
        self._store = store
        self.limit = limit

    def scan(self, filters: ChunkFilters | None = None) -> List[ChunkRecord]:
        predicates = (filters or ChunkFilters()).predicates()
        started = time.perf_counter()
        try:
            candidates = self._store.scan_chunks(predicates, self.limit)
        except StorageError as error:
            emit_store_event(
                "store.scan",
                backend=self._store.backend_name,
                count=0,
                predicates=[predicate.as_dict() for predicate in predicates],
                error=error,
            )
            raise
        except Exception as error:
            raise StorageError("Chunk scan failed", cause=error) from error

        emit_store_event(
            "store.scan",
            backend=self._store.backend_name,
            count=len(candidates),
            predicates=[predicate.as_dict() for predicate in predicates],
            duration_ms=(time.perf_counter() - started) * 1000.0,
        )
        return candidates[: self.limit]


__all__ = ["CandidateFilter", "ChunkFilters", "DEFAULT_CANDIDATE_LIMIT"]
