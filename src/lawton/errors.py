"""Exception taxonomy shared by the pipelines and the HTTP layer."""
from __future__ import annotations


class LawtonError(RuntimeError):
    """Base class for errors reported to API callers as ``{"error": message}``."""

    status_code = 500

    def __init__(self, message: str, *, cause: Exception | None = None) -> None:
        super().__init__(message)
        self.__cause__ = cause


class MethodNotAllowedError(LawtonError):
    """Raised for any request method other than ``POST``."""

    status_code = 405

    def __init__(self, message: str = "Method not allowed", *, allow: str = "POST") -> None:
        super().__init__(message)
        self.headers = {"Allow": allow}


class AuthError(LawtonError):
    """Raised when the ingestion service key is missing or does not match."""

    status_code = 401


class ValidationError(LawtonError):
    """Raised when required request fields are missing."""

    status_code = 400


class UpstreamServiceError(LawtonError):
    """Raised when the embedding service call does not complete successfully."""

    def __init__(self, message: str, *, body: str | None = None, cause: Exception | None = None) -> None:
        super().__init__(message, cause=cause)
        self.body = body


class StorageError(LawtonError):
    """Raised when a document or chunk store operation fails."""


__all__ = [
    "AuthError",
    "LawtonError",
    "MethodNotAllowedError",
    "StorageError",
    "UpstreamServiceError",
    "ValidationError",
]
