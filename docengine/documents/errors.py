"""Document engine exceptions. Each carries a stable code callers can switch on."""
from __future__ import annotations

from contextlib import contextmanager
from typing import Iterator

from sqlalchemy.exc import SQLAlchemyError


class DocumentError(Exception):
    """Base exception for document engine failures."""

    def __init__(self, message: str, *, code: str = "DOCUMENT_ERROR") -> None:
        super().__init__(message)
        self.code = code


class NotFoundError(DocumentError):
    """Entity missing or not accessible to the caller. The two cases are not distinguished."""

    def __init__(self, message: str = "Not found") -> None:
        super().__init__(message, code="NOT_FOUND")


class InvalidStateError(DocumentError):
    """Transition attempted from an incompatible state."""

    def __init__(self, message: str) -> None:
        super().__init__(message, code="INVALID_STATE")


class ValidationError(DocumentError):
    def __init__(self, message: str) -> None:
        super().__init__(message, code="VALIDATION_ERROR")


class NoValidSourceError(DocumentError):
    """Generation requested with no resolvable source content."""

    def __init__(self, message: str = "No valid source documents", *, requested_ids: list[str] | None = None) -> None:
        super().__init__(message, code="NO_VALID_SOURCE")
        self.requested_ids = list(requested_ids or [])


class GenerationServiceError(DocumentError):
    """Completion stream failed or was rejected. llm_code is the LLM layer's error code."""

    def __init__(self, message: str, *, llm_code: str = "UNKNOWN", retryable: bool = False) -> None:
        super().__init__(message, code="GENERATION_FAILED")
        self.llm_code = llm_code
        self.retryable = retryable


class GenerationCancelled(DocumentError):
    """Stream was cancelled and nothing was persisted."""

    def __init__(self, message: str = "Generation cancelled", *, chars_discarded: int = 0) -> None:
        super().__init__(message, code="CANCELLED")
        self.chars_discarded = chars_discarded


class PersistenceError(DocumentError):
    """Underlying store transaction failed; nothing from it was committed."""

    def __init__(self, message: str, *, operation: str = "") -> None:
        super().__init__(message, code="PERSISTENCE_ERROR")
        self.operation = operation


@contextmanager
def store_boundary(operation: str) -> Iterator[None]:
    """Re-raise SQLAlchemy failures as PersistenceError."""
    try:
        yield
    except SQLAlchemyError as e:
        raise PersistenceError(f"{operation} failed: {type(e).__name__}", operation=operation) from e
