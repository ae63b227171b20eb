"""Ingestion package: chunking, data models and the ingest pipeline."""

from .chunking import chunk_text
from .models import ChunkMetadata, ChunkRecord, Document, IngestRequest, IngestResult, TextChunk

__all__ = [
    "ChunkMetadata",
    "ChunkRecord",
    "Document",
    "IngestRequest",
    "IngestResult",
    "TextChunk",
    "chunk_text",
]
