"""Store contracts shared by every backend."""
from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence

from lawton.ingest.models import ChunkRecord, Document

FILTERABLE_FIELDS: tuple[str, ...] = ("topic", "cefr", "skill", "format")


@dataclass(frozen=True, slots=True)
class EqualityPredicate:
    """Exact-match constraint on one filterable chunk column."""

    field: str
    value: str

    def __post_init__(self) -> None:
        if self.field not in FILTERABLE_FIELDS:
            raise ValueError(f"Unsupported filter field: {self.field!r}")

    def as_dict(self) -> Dict[str, Any]:
        return {"field": self.field, "value": self.value}


class ChunkStore(ABC):
    """Persistence for documents and their chunks."""

    backend_name = "unknown"

    @abstractmethod
    def upsert_document(self, document: Document) -> str:
        """Insert or replace the document keyed by ``path`` and return its id."""

    @abstractmethod
    def get_document(self, path: str) -> Optional[Document]:
        """Return the registered document for *path*, if any."""

    @abstractmethod
    def insert_chunk(self, chunk: ChunkRecord) -> str:
        """Persist one chunk and return its store-assigned id."""

    @abstractmethod
    def scan_chunks(self, predicates: Sequence[EqualityPredicate], limit: int) -> List[ChunkRecord]:
        """Return up to *limit* chunks matching every predicate."""


def matches_all(record: ChunkRecord, predicates: Sequence[EqualityPredicate]) -> bool:
    return all(getattr(record, predicate.field) == predicate.value for predicate in predicates)


__all__ = ["ChunkStore", "EqualityPredicate", "FILTERABLE_FIELDS", "matches_all"]
