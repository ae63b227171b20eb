"""Structured lifecycle events emitted through the standard logging stack."""

from __future__ import annotations

import logging
import os
import platform
import socket
import sys
import traceback
from pathlib import Path
from typing import Any, Optional

LOGGER = logging.getLogger("lawton.telemetry")

_ENV_KEYS_TO_LOG: tuple[str, ...] = (
    "EMBEDDING_PROVIDER",
    "EMBEDDING_MODEL",
    "EMBEDDING_DIMENSION",
    "VECTOR_STORE",
    "CHROMA_PERSIST_DIR",
    "CHUNK_MAX_CHARS",
    "CANDIDATE_LIMIT",
    "OPENAI_BASE_URL",
)


def _format_exception(error: BaseException) -> str:
    return "".join(traceback.format_exception(error.__class__, error, error.__traceback__))


def log_event(
    logger: Optional[logging.Logger],
    step: str,
    *,
    level: str = "info",
    duration_ms: float | None = None,
    exc: BaseException | str | None = None,
    details: dict[str, Any] | None = None,
    extra: dict[str, Any] | None = None,
    **payload: Any,
) -> None:
    """Emit a structured log event with the agreed-upon schema."""

    logger = logger or LOGGER
    event: dict[str, Any] = {"step": step, "module": logger.name}
    if duration_ms is not None:
        event["duration_ms"] = round(duration_ms, 3)
    if details is not None:
        event["details"] = details
    if extra:
        event.update(extra)
    event.update(payload)

    exc_info = None
    if exc is not None:
        if isinstance(exc, BaseException):
            event["exc"] = _format_exception(exc)
            exc_info = (exc.__class__, exc, exc.__traceback__)
        else:
            event["exc"] = str(exc)

    log_method = getattr(logger, level.lower(), logger.info)
    log_method(event, exc_info=exc_info)


def emit_app_startup_event() -> None:
    env_values = {key: os.getenv(key) for key in _ENV_KEYS_TO_LOG if os.getenv(key) is not None}
    details = {
        "env": env_values,
        "python": sys.version.split()[0],
        "platform": platform.platform(),
    }
    payload = {
        "pid": os.getpid(),
        "hostname": socket.gethostname(),
        "cwd": str(Path.cwd()),
    }
    log_event(LOGGER, "app.startup", details=details, extra=payload)


def emit_embeddings_event(
    *, model: str, count: int, duration_ms: float, errors: list[str] | None = None
) -> None:
    details = {
        "model": model,
        "count": count,
        "errors": errors or [],
        "per_item_ms": round(duration_ms / count, 3) if count else None,
    }
    level = "error" if errors else "info"
    log_event(LOGGER, "embeddings.compute", level=level, duration_ms=duration_ms, details=details)


def emit_store_event(
    step: str,
    *,
    backend: str,
    count: int,
    predicates: list[dict[str, Any]] | None = None,
    duration_ms: float | None = None,
    error: BaseException | None = None,
) -> None:
    details: dict[str, Any] = {"backend": backend, "count": count}
    if predicates is not None:
        details["predicates"] = predicates
    level = "error" if error else "info"
    log_event(LOGGER, step, level=level, duration_ms=duration_ms, details=details, exc=error)


def emit_retriever_event(
    *,
    query: str,
    limit: int,
    candidates: int,
    results: list[dict[str, Any]],
    duration_ms: float,
) -> None:
    details = {
        "query_preview": query[:120],
        "limit": limit,
        "candidates": candidates,
        "results": results,
    }
    log_event(LOGGER, "retriever.search", duration_ms=duration_ms, details=details)


def emit_ingest_event(
    step: str,
    *,
    path: str,
    doc_id: str | None = None,
    text_chars: int | None = None,
    chunks: int | None = None,
    inserted: int | None = None,
    duration_ms: float | None = None,
) -> None:
    details = {
        "path": path,
        "doc_id": doc_id,
        "text_chars": text_chars,
        "chunks": chunks,
        "inserted": inserted,
    }
    log_event(LOGGER, step, duration_ms=duration_ms, details=details)


def emit_exception(
    *,
    module: str,
    error: BaseException,
    suggestion: str | None = None,
) -> None:
    details = {"module": module}
    if suggestion:
        details["suggestion"] = suggestion
    log_event(
        LOGGER,
        "exception",
        level="error",
        details=details,
        exc=error,
    )


__all__ = [
    "emit_app_startup_event",
    "emit_embeddings_event",
    "emit_exception",
    "emit_ingest_event",
    "emit_retriever_event",
    "emit_store_event",
    "log_event",
]
