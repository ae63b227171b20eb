"""Data models shared by the ingestion and retrieval pipelines."""
from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List, Optional

AUTO_SECTION = "auto"


def _copy_list(values: Optional[List[str]]) -> Optional[List[str]]:
    return list(values) if values is not None else None


@dataclass(slots=True)
class TextChunk:
    """A bounded slice of source text produced by the chunker."""

    text: str
    section: str
    order_in_doc: int


@dataclass(slots=True)
class Document:
    """Registry entry describing a source document, keyed by ``path``."""

    path: str
    sharepoint_url: str
    title: Optional[str] = None
    mime_type: Optional[str] = None
    doc_id: Optional[str] = None


@dataclass(slots=True)
class ChunkMetadata:
    """Pedagogical metadata applied uniformly to every chunk of an ingestion."""

    topic: Optional[str] = None
    cefr: Optional[str] = None
    skill: Optional[str] = None
    format: Optional[str] = None
    difficulty: Optional[str] = None
    tags: Optional[List[str]] = None
    error_patterns: Optional[List[str]] = None


@dataclass(slots=True)
class ChunkRecord:
    """A persisted chunk row, including its embedding vector."""

    doc_id: str
    text: str
    embedding: Optional[List[float]]
    section: str
    order_in_doc: int
    sharepoint_url: Optional[str] = None
    topic: Optional[str] = None
    cefr: Optional[str] = None
    skill: Optional[str] = None
    format: Optional[str] = None
    difficulty: Optional[str] = None
    tags: Optional[List[str]] = None
    error_patterns: Optional[List[str]] = None
    chunk_id: Optional[str] = None

    @classmethod
    def from_chunk(
        cls,
        chunk: TextChunk,
        *,
        doc_id: str,
        embedding: List[float],
        metadata: ChunkMetadata,
        sharepoint_url: str,
    ) -> "ChunkRecord":
        return cls(
            doc_id=doc_id,
            text=chunk.text,
            embedding=embedding,
            section=chunk.section,
            order_in_doc=chunk.order_in_doc,
            sharepoint_url=sharepoint_url,
            topic=metadata.topic,
            cefr=metadata.cefr,
            skill=metadata.skill,
            format=metadata.format,
            difficulty=metadata.difficulty,
            tags=_copy_list(metadata.tags),
            error_patterns=_copy_list(metadata.error_patterns),
        )


@dataclass(slots=True)
class ScoredChunk:
    """Retrieval result: chunk columns plus similarity score, without the vector."""

    chunk_id: Optional[str]
    doc_id: str
    text: str
    section: str
    order_in_doc: int
    score: float
    sharepoint_url: Optional[str] = None
    topic: Optional[str] = None
    cefr: Optional[str] = None
    skill: Optional[str] = None
    format: Optional[str] = None
    difficulty: Optional[str] = None
    tags: Optional[List[str]] = None
    error_patterns: Optional[List[str]] = None

    @classmethod
    def from_record(cls, record: ChunkRecord, score: float) -> "ScoredChunk":
        return cls(
            chunk_id=record.chunk_id,
            doc_id=record.doc_id,
            text=record.text,
            section=record.section,
            order_in_doc=record.order_in_doc,
            score=score,
            sharepoint_url=record.sharepoint_url,
            topic=record.topic,
            cefr=record.cefr,
            skill=record.skill,
            format=record.format,
            difficulty=record.difficulty,
            tags=_copy_list(record.tags),
            error_patterns=_copy_list(record.error_patterns),
        )

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(slots=True)
class IngestRequest:
    """Everything needed to ingest one document."""

    sharepoint_url: Optional[str]
    path: Optional[str]
    text: Optional[str]
    title: Optional[str] = None
    mime_type: Optional[str] = None
    metadata: ChunkMetadata = field(default_factory=ChunkMetadata)


@dataclass(slots=True)
class IngestResult:
    """Structured result returned from an ingestion run."""

    doc_id: str
    chunks_inserted: int
    duration_seconds: float
