"""Runtime settings resolved from environment variables."""
from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from functools import lru_cache
from typing import Optional

LOGGER = logging.getLogger(__name__)

DEFAULT_EMBEDDING_MODEL = "text-embedding-3-small"
DEFAULT_EMBEDDING_DIMENSION = 1536
DEFAULT_CHUNK_MAX_CHARS = 1000
DEFAULT_CANDIDATE_LIMIT = 200


def _str_from_env(name: str, default: str) -> str:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip()


def _int_from_env(name: str, default: int) -> int:
    value = os.getenv(name)
    if value is None:
        return default
    try:
        parsed = int(value)
    except ValueError:
        LOGGER.warning("Invalid integer for %s: %s; using default %s", name, value, default)
        return default
    if parsed <= 0:
        LOGGER.warning("Non-positive value for %s: %s; using default %s", name, value, default)
        return default
    return parsed


@dataclass(frozen=True, slots=True)
class Settings:
    """Configuration for the ingestion and retrieval services."""

    service_key: str = ""
    openai_api_key: str = ""
    openai_base_url: Optional[str] = None
    embedding_provider: str = "openai"
    embedding_model: str = DEFAULT_EMBEDDING_MODEL
    embedding_dimension: int = DEFAULT_EMBEDDING_DIMENSION
    vector_store: str = "memory"
    chroma_persist_dir: str = "chroma_db"
    chunk_max_chars: int = DEFAULT_CHUNK_MAX_CHARS
    candidate_limit: int = DEFAULT_CANDIDATE_LIMIT
    log_dir: str = "logs"
    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> "Settings":
        return cls(
            service_key=_str_from_env("LAWTON_SERVICE_KEY", ""),
            openai_api_key=_str_from_env("OPENAI_API_KEY", ""),
            openai_base_url=os.getenv("OPENAI_BASE_URL") or None,
            embedding_provider=_str_from_env("EMBEDDING_PROVIDER", "openai").lower(),
            embedding_model=_str_from_env("EMBEDDING_MODEL", DEFAULT_EMBEDDING_MODEL),
            embedding_dimension=_int_from_env("EMBEDDING_DIMENSION", DEFAULT_EMBEDDING_DIMENSION),
            vector_store=_str_from_env("VECTOR_STORE", "memory").lower(),
            chroma_persist_dir=_str_from_env("CHROMA_PERSIST_DIR", "chroma_db"),
            chunk_max_chars=_int_from_env("CHUNK_MAX_CHARS", DEFAULT_CHUNK_MAX_CHARS),
            candidate_limit=_int_from_env("CANDIDATE_LIMIT", DEFAULT_CANDIDATE_LIMIT),
            log_dir=_str_from_env("LOG_DIR", "logs"),
            log_level=_str_from_env("LOG_LEVEL", "INFO").upper(),
        )


@lru_cache()
def get_settings() -> Settings:
    """Return the cached settings instance."""

    return Settings.from_env()


def reset_settings_cache() -> None:
    """Clear the cached settings (primarily for testing)."""

    get_settings.cache_clear()  # type: ignore[attr-defined]
