"""Observability: redaction, structured logging, metric hooks. Never logs prompt text or keys."""
from __future__ import annotations

import logging
import re
from typing import Any

logger = logging.getLogger(__name__)

_SECRET_PATTERNS = [
    re.compile(r"\b(?:sk-[a-zA-Z0-9]{20,})\b", re.IGNORECASE),  # OpenAI-style
    re.compile(r"\b(?:AIza[a-zA-Z0-9_-]{35})\b"),  # Google API key style
    re.compile(r"\bBearer\s+[a-zA-Z0-9_.-]+\b", re.IGNORECASE),
]
_PII_PATTERN = re.compile(r"\b[A-Za-z0-9._%+-]+@[A-Za-z0-9.-]+\.[A-Z|a-z]{2,}\b")
_PREVIEW_MAX_CHARS = 200


def redact_preview(text: str, max_chars: int = _PREVIEW_MAX_CHARS) -> str:
    """Redact secrets and emails, then truncate."""
    if not text:
        return ""
    out = text
    for pat in _SECRET_PATTERNS:
        out = pat.sub("[REDACTED]", out)
    out = _PII_PATTERN.sub("[EMAIL]", out)
    if len(out) > max_chars:
        out = out[:max_chars] + "..."
    return out


def log_llm_stream(
    *,
    provider: str,
    model: str,
    profile: str,
    status: str,
    latency_ms: int,
    chunks: int = 0,
    chars: int = 0,
    first_chunk_ms: int | None = None,
    error_code: str | None = None,
    stage: str | None = None,
) -> None:
    """One structured record per provider attempt."""
    extra: dict[str, Any] = {
        "provider": provider,
        "model": model,
        "profile": profile,
        "status": status,
        "latency_ms": latency_ms,
        "chunks": chunks,
        "chars": chars,
    }
    if first_chunk_ms is not None:
        extra["first_chunk_ms"] = first_chunk_ms
    if error_code is not None:
        extra["error_code"] = error_code
    if stage is not None:
        extra["stage"] = stage
    if status == "SUCCEEDED":
        logger.info("llm_stream", extra=extra)
    else:
        logger.warning("llm_stream", extra=extra)


# Metric hooks log at DEBUG; a process with a metrics registry can wrap these.
def emit_open_latency_metric(provider: str, model: str, latency_ms: float) -> None:
    logger.debug("metric llm_stream_open_ms %s %s %s", provider, model, latency_ms)


def emit_chunks_metric(provider: str, model: str, count: int) -> None:
    logger.debug("metric llm_stream_chunks %s %s %s", provider, model, count)


def emit_error_metric(provider: str, code: str) -> None:
    logger.debug("metric llm_errors %s %s", provider, code)
