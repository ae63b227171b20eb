"""API router exposing the ingestion and retrieval endpoints."""
from __future__ import annotations

import logging
import secrets
from typing import Any

from fastapi import APIRouter, Body, Depends, Header
from pydantic import BaseModel, Field

from lawton.candidates import ChunkFilters
from lawton.config import Settings, get_settings
from lawton.errors import AuthError, LawtonError
from lawton.ingest.models import ChunkMetadata, IngestRequest, ScoredChunk
from lawton.reranker import DEFAULT_LIMIT
from lawton.services.knowledge import KnowledgeService, get_knowledge_service
from lawton.telemetry import emit_exception

LOGGER = logging.getLogger(__name__)

SERVICE_KEY_HEADER = "x-lawton-service-key"

router = APIRouter(prefix="/api", tags=["content"])


class IngestBody(BaseModel):
    """Request body accepted by the ingestion endpoint."""

    sharepoint_url: str | None = None
    path: str | None = Field(None, description="Unique document identity.")
    title: str | None = None
    mime_type: str | None = None
    text: str | None = Field(None, description="Source content to chunk and embed.")
    topic: str | None = None
    cefr: str | None = None
    skill: str | None = None
    format: str | None = None
    difficulty: str | None = None
    tags: list[str] | None = None
    error_patterns: list[str] | None = None

    def to_request(self) -> IngestRequest:
        return IngestRequest(
            sharepoint_url=self.sharepoint_url,
            path=self.path,
            text=self.text,
            title=self.title,
            mime_type=self.mime_type,
            metadata=ChunkMetadata(
                topic=self.topic,
                cefr=self.cefr,
                skill=self.skill,
                format=self.format,
                difficulty=self.difficulty,
                tags=self.tags,
                error_patterns=self.error_patterns,
            ),
        )


class IngestResponse(BaseModel):
    ok: bool
    doc_id: str
    chunks_inserted: int


class FiltersBody(BaseModel):
    topic: str | None = None
    cefr: str | None = None
    skill: str | None = None
    format: str | None = None


class RetrieveBody(BaseModel):
    """Request body accepted by the retrieval endpoint."""

    query: str | None = None
    filters: FiltersBody | None = None
    limit: int | None = Field(DEFAULT_LIMIT, description="Clamped to [1, 50].")


class RetrievedChunk(BaseModel):
    chunk_id: str | None
    doc_id: str
    text: str
    section: str
    order_in_doc: int
    score: float
    sharepoint_url: str | None = None
    topic: str | None = None
    cefr: str | None = None
    skill: str | None = None
    format: str | None = None
    difficulty: str | None = None
    tags: list[str] | None = None
    error_patterns: list[str] | None = None


class RetrieveResponse(BaseModel):
    results: list[RetrievedChunk]


def require_service_key(
    service_key: str | None = Header(None, alias=SERVICE_KEY_HEADER),
    settings: Settings = Depends(get_settings),
) -> None:
    """Reject the request unless the service key equals the configured secret."""

    expected = settings.service_key
    if not expected or not service_key:
        raise AuthError("Unauthorized")
    if not secrets.compare_digest(service_key.encode("utf-8"), expected.encode("utf-8")):
        raise AuthError("Unauthorized")


def _wrap_unexpected(error: Exception, module: str) -> LawtonError:
    LOGGER.exception("Unexpected failure in %s", module)
    emit_exception(module=module, error=error)
    return LawtonError(str(error) or error.__class__.__name__, cause=error)


def _serialise(results: list[ScoredChunk]) -> list[RetrievedChunk]:
    return [RetrievedChunk(**item.to_dict()) for item in results]


@router.post("/index", response_model=IngestResponse)
def index_document(
    _: None = Depends(require_service_key),
    body: IngestBody | None = Body(None),
    service: KnowledgeService = Depends(get_knowledge_service),
) -> IngestResponse:
    """Chunk, embed and store one document."""

    request = (body or IngestBody()).to_request()
    try:
        result = service.ingest(request)
    except LawtonError:
        raise
    except Exception as error:
        raise _wrap_unexpected(error, f"{__name__}.index") from error
    return IngestResponse(ok=True, doc_id=result.doc_id, chunks_inserted=result.chunks_inserted)


@router.post("/retrieve", response_model=RetrieveResponse)
def retrieve_chunks(
    body: RetrieveBody | None = Body(None),
    service: KnowledgeService = Depends(get_knowledge_service),
) -> RetrieveResponse:
    """Return the chunks most similar to the query, filtered by metadata."""

    body = body or RetrieveBody()
    filters: dict[str, Any] = body.filters.model_dump() if body.filters else {}
    try:
        results = service.retrieve(
            body.query,
            ChunkFilters.from_mapping(filters),
            body.limit if body.limit is not None else DEFAULT_LIMIT,
        )
    except LawtonError:
        raise
    except Exception as error:
        raise _wrap_unexpected(error, f"{__name__}.retrieve") from error
    return RetrieveResponse(results=_serialise(results))
