"""Structured log events for document operations. Content is never logged."""
from __future__ import annotations

import logging
from typing import Any

logger = logging.getLogger(__name__)


def log_document_event(event: str, **fields: Any) -> None:
    """One INFO record named event; None-valued fields are dropped."""
    extra = {k: v for k, v in fields.items() if v is not None}
    logger.info(event, extra=extra)


def log_generation(
    *,
    status: str,
    document_id: str | None,
    version_id: str | None,
    workspace_id: str,
    owner_id: str | None,
    source_count: int,
    chars: int,
    latency_ms: int,
    error_code: str | None = None,
) -> None:
    extra: dict[str, Any] = {
        "status": status,
        "workspace_id": workspace_id,
        "source_count": source_count,
        "chars": chars,
        "latency_ms": latency_ms,
    }
    if document_id is not None:
        extra["document_id"] = document_id
    if version_id is not None:
        extra["version_id"] = version_id
    if owner_id is not None:
        extra["owner_id"] = owner_id
    if error_code is not None:
        extra["error_code"] = error_code
    if status == "SUCCEEDED":
        logger.info("document_generation", extra=extra)
    else:
        logger.warning("document_generation", extra=extra)
