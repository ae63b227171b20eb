"""ChromaDB-backed document and chunk store."""
from __future__ import annotations

import json
import logging
import uuid
from pathlib import Path
from typing import TYPE_CHECKING, Any, Dict, List, Optional, Sequence

import chromadb

from lawton.errors import StorageError
from lawton.ingest.models import ChunkRecord, Document

from .base import ChunkStore, EqualityPredicate

if TYPE_CHECKING:  # pragma: no cover - import for typing only
    from chromadb.api import ClientAPI

LOGGER = logging.getLogger(__name__)

DOCUMENTS_COLLECTION = "documents"
CHUNKS_COLLECTION = "chunks"

# Registry rows need a vector; they are never searched by similarity.
_DOCUMENT_PLACEHOLDER_VECTOR = [1.0]

_CHUNK_STRING_FIELDS = (
    "doc_id",
    "section",
    "sharepoint_url",
    "topic",
    "cefr",
    "skill",
    "format",
    "difficulty",
)
_CHUNK_LIST_FIELDS = ("tags", "error_patterns")


def build_where(predicates: Sequence[EqualityPredicate]) -> Optional[Dict[str, Any]]:
    """Translate equality predicates into a Chroma ``where`` clause."""

    clauses = [{predicate.field: predicate.value} for predicate in predicates]
    if not clauses:
        return None
    if len(clauses) == 1:
        return clauses[0]
    return {"$and": clauses}


def _drop_none(values: Dict[str, Any]) -> Dict[str, Any]:
    return {key: value for key, value in values.items() if value is not None}


def _chunk_to_metadata(chunk: ChunkRecord) -> Dict[str, Any]:
    metadata: Dict[str, Any] = {field: getattr(chunk, field) for field in _CHUNK_STRING_FIELDS}
    metadata["order_in_doc"] = int(chunk.order_in_doc)
    for field in _CHUNK_LIST_FIELDS:
        value = getattr(chunk, field)
        metadata[field] = json.dumps(value) if value is not None else None
    return _drop_none(metadata)


def _metadata_to_chunk(
    chunk_id: str,
    text: str | None,
    metadata: Dict[str, Any] | None,
    embedding: Any,
) -> ChunkRecord:
    metadata = dict(metadata or {})
    list_values: Dict[str, Optional[List[str]]] = {}
    for field in _CHUNK_LIST_FIELDS:
        raw = metadata.get(field)
        list_values[field] = json.loads(raw) if isinstance(raw, str) else None
    return ChunkRecord(
        chunk_id=chunk_id,
        doc_id=str(metadata.get("doc_id", "")),
        text=text or "",
        embedding=[float(value) for value in embedding] if embedding is not None else None,
        section=str(metadata.get("section", "")),
        order_in_doc=int(metadata.get("order_in_doc", 0)),
        sharepoint_url=metadata.get("sharepoint_url"),
        topic=metadata.get("topic"),
        cefr=metadata.get("cefr"),
        skill=metadata.get("skill"),
        format=metadata.get("format"),
        difficulty=metadata.get("difficulty"),
        tags=list_values["tags"],
        error_patterns=list_values["error_patterns"],
    )


class ChromaChunkStore(ChunkStore):
    """Persist documents and chunks in two Chroma collections."""

    backend_name = "chroma"

    def __init__(
        self,
        persist_dir: str | Path | None = None,
        *,
        client: Optional["ClientAPI"] = None,
        collection_prefix: str = "",
    ) -> None:
        try:
            if client is None:
                if persist_dir is None:
                    raise StorageError("A persist directory or Chroma client must be provided")
                self.persist_dir: Path | None = Path(persist_dir)
                self.persist_dir.mkdir(parents=True, exist_ok=True)
                client = chromadb.PersistentClient(path=str(self.persist_dir))
            else:
                self.persist_dir = Path(persist_dir) if persist_dir is not None else None
            self._client = client
            self._documents = client.get_or_create_collection(
                name=f"{collection_prefix}{DOCUMENTS_COLLECTION}",
                embedding_function=None,
            )
            self._chunks = client.get_or_create_collection(
                name=f"{collection_prefix}{CHUNKS_COLLECTION}",
                metadata={"hnsw:space": "cosine"},
                embedding_function=None,
            )
        except StorageError:
            raise
        except Exception as exc:
            raise StorageError("Failed to initialise Chroma store", cause=exc) from exc

    def upsert_document(self, document: Document) -> str:
        try:
            existing = self._documents.get(where={"path": document.path}, limit=1)
            ids = existing.get("ids") or []
            doc_id = str(ids[0]) if ids else uuid.uuid4().hex
            metadata = _drop_none(
                {
                    "path": document.path,
                    "sharepoint_url": document.sharepoint_url,
                    "title": document.title,
                    "mime_type": document.mime_type,
                }
            )
            # Chroma merges metadata on upsert; replace the row so omitted fields are cleared.
            if ids:
                self._documents.delete(ids=[doc_id])
            self._documents.add(
                ids=[doc_id],
                embeddings=[list(_DOCUMENT_PLACEHOLDER_VECTOR)],
                documents=[document.title or document.path],
                metadatas=[metadata],
            )
        except Exception as exc:
            raise StorageError(f"Failed to upsert document {document.path!r}", cause=exc) from exc
        return doc_id

    def get_document(self, path: str) -> Optional[Document]:
        try:
            result = self._documents.get(where={"path": path}, limit=1, include=["metadatas"])
        except Exception as exc:
            raise StorageError(f"Failed to load document {path!r}", cause=exc) from exc
        ids = result.get("ids") or []
        if not ids:
            return None
        metadata = (result.get("metadatas") or [{}])[0] or {}
        return Document(
            doc_id=str(ids[0]),
            path=str(metadata.get("path", path)),
            sharepoint_url=str(metadata.get("sharepoint_url", "")),
            title=metadata.get("title"),
            mime_type=metadata.get("mime_type"),
        )

    def insert_chunk(self, chunk: ChunkRecord) -> str:
        if chunk.embedding is None:
            raise StorageError("Chunks must carry an embedding to be stored in Chroma")
        chunk_id = uuid.uuid4().hex
        try:
            self._chunks.add(
                ids=[chunk_id],
                embeddings=[[float(value) for value in chunk.embedding]],
                documents=[chunk.text],
                metadatas=[_chunk_to_metadata(chunk)],
            )
        except Exception as exc:
            raise StorageError("Failed to insert chunk", cause=exc) from exc
        return chunk_id

    def scan_chunks(self, predicates: Sequence[EqualityPredicate], limit: int) -> List[ChunkRecord]:
        if limit <= 0:
            return []
        try:
            result = self._chunks.get(
                where=build_where(predicates),
                limit=limit,
                include=["documents", "metadatas", "embeddings"],
            )
        except Exception as exc:
            raise StorageError("Chunk scan failed", cause=exc) from exc

        ids = list(result.get("ids") or [])
        documents = result.get("documents")
        metadatas = result.get("metadatas")
        embeddings = result.get("embeddings")
        if documents is None:
            documents = [None] * len(ids)
        if metadatas is None:
            metadatas = [None] * len(ids)
        if embeddings is None:
            embeddings = [None] * len(ids)

        return [
            _metadata_to_chunk(str(chunk_id), text, metadata, embedding)
            for chunk_id, text, metadata, embedding in zip(ids, documents, metadatas, embeddings)
        ]


__all__ = ["ChromaChunkStore", "build_where"]
