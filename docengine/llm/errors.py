"""Error taxonomy for the LLM module. Codes are stable; generation errors carry them upward."""
from __future__ import annotations

from docengine.llm.types import LLMProvider


class LLMError(Exception):
    """Base for all LLM errors. details must not leak secrets."""

    def __init__(
        self,
        message: str,
        *,
        code: str = "UNKNOWN",
        retryable: bool = False,
        provider: LLMProvider | None = None,
        details: str | None = None,
    ) -> None:
        super().__init__(message)
        self.code = code
        self.retryable = retryable
        self.provider = provider
        self.details = details or ""


class LLMTimeout(LLMError):
    def __init__(self, message: str = "LLM request timed out", **kwargs: object) -> None:
        super().__init__(message, code="TIMEOUT", retryable=True, **kwargs)


class LLMRateLimited(LLMError):
    """Rate limit (429) or quota exceeded."""

    def __init__(self, message: str = "LLM rate limited", **kwargs: object) -> None:
        super().__init__(message, code="RATE_LIMITED", retryable=True, **kwargs)


class LLMBadRequest(LLMError):
    def __init__(self, message: str = "LLM bad request", **kwargs: object) -> None:
        super().__init__(message, code="BAD_REQUEST", retryable=False, **kwargs)


class LLMAuthError(LLMError):
    def __init__(self, message: str = "LLM auth error", **kwargs: object) -> None:
        super().__init__(message, code="AUTH_ERROR", retryable=False, **kwargs)


class LLMUnavailable(LLMError):
    """Service unavailable (5xx, connection refused, provider disabled)."""

    def __init__(self, message: str = "LLM unavailable", **kwargs: object) -> None:
        kwargs.setdefault("retryable", True)
        super().__init__(message, code="UNAVAILABLE", **kwargs)


class LLMStreamInterrupted(LLMError):
    """Stream broke after text was already delivered; never retried or re-routed."""

    def __init__(self, message: str = "LLM stream interrupted", **kwargs: object) -> None:
        super().__init__(message, code="STREAM_INTERRUPTED", retryable=False, **kwargs)
