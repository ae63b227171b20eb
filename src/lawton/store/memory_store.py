"""In-process store used for local development and tests."""
from __future__ import annotations

import logging
import threading
import uuid
from dataclasses import replace
from typing import Dict, List, Optional, Sequence

from lawton.ingest.models import ChunkRecord, Document

from .base import ChunkStore, EqualityPredicate, matches_all

LOGGER = logging.getLogger(__name__)


class InMemoryChunkStore(ChunkStore):
    """Keep documents keyed by path and chunks in insertion order."""

    backend_name = "memory"

    def __init__(self) -> None:
        self._documents: Dict[str, Document] = {}
        self._chunks: List[ChunkRecord] = []
        self._lock = threading.Lock()

    def upsert_document(self, document: Document) -> str:
        with self._lock:
            existing = self._documents.get(document.path)
            doc_id = existing.doc_id if existing is not None else uuid.uuid4().hex
            self._documents[document.path] = replace(document, doc_id=doc_id)
        return str(doc_id)

    def get_document(self, path: str) -> Optional[Document]:
        with self._lock:
            document = self._documents.get(path)
            return replace(document) if document is not None else None

    def insert_chunk(self, chunk: ChunkRecord) -> str:
        chunk_id = uuid.uuid4().hex
        stored = replace(
            chunk,
            chunk_id=chunk_id,
            embedding=list(chunk.embedding) if chunk.embedding is not None else None,
        )
        with self._lock:
            self._chunks.append(stored)
        return chunk_id

    def scan_chunks(self, predicates: Sequence[EqualityPredicate], limit: int) -> List[ChunkRecord]:
        if limit <= 0:
            return []
        matched: List[ChunkRecord] = []
        with self._lock:
            for record in self._chunks:
                if not matches_all(record, predicates):
                    continue
                matched.append(replace(record))
                if len(matched) >= limit:
                    break
        return matched


__all__ = ["InMemoryChunkStore"]
