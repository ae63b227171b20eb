"""Document and chunk stores backed by pluggable backends."""

from __future__ import annotations

import logging
from functools import lru_cache

from lawton.config import get_settings
from lawton.errors import StorageError

from .base import ChunkStore, EqualityPredicate, FILTERABLE_FIELDS
from .memory_store import InMemoryChunkStore

LOGGER = logging.getLogger(__name__)


def build_chunk_store(backend: str | None = None) -> ChunkStore:
    """Construct the store selected by ``VECTOR_STORE``."""

    settings = get_settings()
    name = (backend or settings.vector_store).strip().lower()

    if name in {"memory", "mock"}:
        return InMemoryChunkStore()

    if name == "chroma":
        try:
            from .chroma_store import ChromaChunkStore
        except ImportError as exc:  # pragma: no cover - depends on installed extras
            raise StorageError(
                "VECTOR_STORE=chroma requires the 'chromadb' package to be installed",
                cause=exc,
            ) from exc
        return ChromaChunkStore(settings.chroma_persist_dir)

    raise ValueError(f"Unsupported VECTOR_STORE backend: {name!r}")


@lru_cache()
def get_chunk_store() -> ChunkStore:
    """Return a lazily initialised store instance based on configuration."""

    store = build_chunk_store()
    LOGGER.info("Chunk store initialised: %s", store.backend_name)
    return store


def reset_chunk_store_cache() -> None:
    """Clear the cached store (primarily for testing)."""

    get_chunk_store.cache_clear()  # type: ignore[attr-defined]


__all__ = [
    "ChunkStore",
    "EqualityPredicate",
    "FILTERABLE_FIELDS",
    "InMemoryChunkStore",
    "build_chunk_store",
    "get_chunk_store",
    "reset_chunk_store_cache",
]
