"""Ingestion pipeline: register, chunk, embed and store a document."""
from __future__ import annotations

import logging
import time
from typing import List, Protocol, Sequence

from lawton.errors import StorageError, ValidationError
from lawton.logging_config import AUDIT_LOGGER_NAME
from lawton.registry import DocumentRegistry
from lawton.store import ChunkStore
from lawton.telemetry import emit_exception, emit_ingest_event, emit_store_event

from .chunking import DEFAULT_MAX_CHARS, chunk_text
from .models import ChunkRecord, IngestRequest, IngestResult

LOGGER = logging.getLogger(__name__)
AUDIT_LOGGER = logging.getLogger(AUDIT_LOGGER_NAME)

REQUIRED_FIELDS: tuple[str, ...] = ("text", "sharepoint_url", "path")


class BatchEmbedder(Protocol):
    """Embedding contract used by the pipeline."""

    def embed_texts(self, texts: Sequence[str]) -> List[List[float]]:
        """Return one vector per text."""


def validate_request(request: IngestRequest) -> None:
    """Raise :class:`ValidationError` when a required field is missing."""

    if any(not getattr(request, field) for field in REQUIRED_FIELDS):
        raise ValidationError("Missing required fields: " + ", ".join(REQUIRED_FIELDS))


class IngestPipeline:
    """Sequentially embed and insert every chunk of a document.

    Chunks are embedded and inserted one at a time; a failure aborts the run
    and leaves the chunks already inserted in place.
    """

    def __init__(
        self,
        store: ChunkStore,
        embedder: BatchEmbedder,
        *,
        max_chunk_chars: int = DEFAULT_MAX_CHARS,
    ) -> None:
        self._store = store
        self._embedder = embedder
        self._registry = DocumentRegistry(store)
        self.max_chunk_chars = max_chunk_chars

    def ingest(self, request: IngestRequest) -> IngestResult:
        validate_request(request)

        started = time.perf_counter()
        emit_ingest_event("ingest.document.start", path=request.path, text_chars=len(request.text))

        doc_id = self._registry.upsert(
            request.path,
            sharepoint_url=request.sharepoint_url,
            title=request.title,
            mime_type=request.mime_type,
        )

        chunks = chunk_text(request.text, self.max_chunk_chars)
        LOGGER.info("Generated %d chunks for %s", len(chunks), request.path)

        inserted = 0
        for chunk in chunks:
            embedding = self._embedder.embed_texts([chunk.text])[0]
            record = ChunkRecord.from_chunk(
                chunk,
                doc_id=doc_id,
                embedding=embedding,
                metadata=request.metadata,
                sharepoint_url=request.sharepoint_url,
            )
            self._insert(record, inserted_so_far=inserted)
            inserted += 1

        duration = time.perf_counter() - started
        emit_store_event("store.insert", backend=self._store.backend_name, count=inserted)
        emit_ingest_event(
            "ingest.document.complete",
            path=request.path,
            doc_id=doc_id,
            text_chars=len(request.text),
            chunks=len(chunks),
            inserted=inserted,
            duration_ms=duration * 1000.0,
        )
        AUDIT_LOGGER.info(
            {
                "event": "ingest",
                "path": request.path,
                "doc_id": doc_id,
                "chunk_count": inserted,
            }
        )
        return IngestResult(doc_id=doc_id, chunks_inserted=inserted, duration_seconds=duration)

    def _insert(self, record: ChunkRecord, *, inserted_so_far: int) -> str:
        try:
            return self._store.insert_chunk(record)
        except Exception as error:
            emit_exception(
                module=f"{__name__}.store",
                error=error,
                suggestion=f"{inserted_so_far} chunks of doc {record.doc_id} were already stored",
            )
            if isinstance(error, StorageError):
                raise
            raise StorageError("Failed to insert chunk", cause=error) from error


__all__ = ["IngestPipeline", "REQUIRED_FIELDS", "validate_request"]
