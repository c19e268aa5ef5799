"""
Streaming LiteLLM client: open a completion stream, yield text deltas, map failures.
Exception mapping (LiteLLM -> LLMError), by class name:
  - APITimeoutError / Timeout -> LLMTimeout
  - RateLimitError -> LLMRateLimited
  - AuthenticationError / PermissionDeniedError -> LLMAuthError
  - BadRequestError / InvalidRequestError / ContextWindowExceededError -> LLMBadRequest
  - ServiceUnavailableError / APIConnectionError / APIError / InternalServerError -> LLMUnavailable
  - anything else -> LLMError(UNKNOWN)
Retries apply only while opening the stream. Once a delta has been yielded a
failure surfaces as LLMStreamInterrupted.
"""
from __future__ import annotations

import asyncio
import time
from typing import Any, AsyncIterator

from litellm import acompletion

from docengine.llm.errors import (
    LLMAuthError,
    LLMBadRequest,
    LLMError,
    LLMRateLimited,
    LLMStreamInterrupted,
    LLMTimeout,
    LLMUnavailable,
)
from docengine.llm.telemetry import emit_error_metric, emit_open_latency_metric
from docengine.llm.types import LLMProvider, LLMRequest


def _map_exception(e: Exception, provider: LLMProvider) -> LLMError:
    """Map LiteLLM/provider exceptions to LLMError by class name (robust to import layout)."""
    if isinstance(e, LLMError):
        return e
    exc_name = type(e).__name__
    if exc_name in ("APITimeoutError", "Timeout") or isinstance(e, asyncio.TimeoutError):
        return LLMTimeout(details=exc_name, provider=provider)
    if exc_name == "RateLimitError":
        return LLMRateLimited(details=exc_name, provider=provider)
    if exc_name in ("AuthenticationError", "PermissionDeniedError"):
        return LLMAuthError(details=exc_name, provider=provider)
    if exc_name in ("BadRequestError", "InvalidRequestError", "ContextWindowExceededError"):
        return LLMBadRequest(details=exc_name, provider=provider)
    if exc_name in ("ServiceUnavailableError", "APIConnectionError", "APIError", "InternalServerError"):
        return LLMUnavailable(str(e), details=exc_name, provider=provider)
    if getattr(e, "status_code", None) in (500, 502, 503, 504):
        return LLMUnavailable(str(e), details=exc_name, provider=provider)
    return LLMError(str(e), code="UNKNOWN", retryable=False, provider=provider, details=exc_name)


def _request_to_kwargs(req: LLMRequest, model: str, timeout_s: float) -> dict[str, Any]:
    kwargs: dict[str, Any] = {
        "model": model,
        "messages": [m.model_dump() for m in req.messages],
        "timeout": timeout_s,
        "stream": True,
    }
    if req.temperature is not None:
        kwargs["temperature"] = req.temperature
    if req.max_output_tokens is not None:
        kwargs["max_tokens"] = req.max_output_tokens
    return kwargs


def _delta_text(chunk: Any) -> str:
    """Text of one streamed chunk (choices[0].delta.content), '' if none."""
    choices = getattr(chunk, "choices", None)
    if not choices and isinstance(chunk, dict):
        choices = chunk.get("choices")
    if not choices:
        return ""
    c0 = choices[0]
    delta = c0.get("delta") if isinstance(c0, dict) else getattr(c0, "delta", None)
    if delta is None:
        return ""
    content = delta.get("content") if isinstance(delta, dict) else getattr(delta, "content", None)
    return content or ""


class LiteLLMStreamClient:
    """Async streaming wrapper: semaphore, timeout, retries on open, delta extraction."""

    def __init__(
        self,
        *,
        concurrency_limit: int = 8,
        max_retries: int = 2,
        drop_params: bool = True,
        backoff_base_s: float = 0.5,
        backoff_max_s: float = 8.0,
    ) -> None:
        self._sem = asyncio.Semaphore(concurrency_limit)
        self._max_retries = max_retries
        self._drop_params = drop_params
        self._backoff_base_s = backoff_base_s
        self._backoff_max_s = backoff_max_s

    async def _open(self, provider: LLMProvider, kwargs: dict[str, Any]) -> Any:
        for attempt in range(self._max_retries + 1):
            t0 = time.perf_counter()
            try:
                stream = await acompletion(**kwargs)
            except Exception as e:  # noqa: BLE001
                err = _map_exception(e, provider)
                emit_error_metric(provider.value, err.code)
                if not err.retryable or attempt == self._max_retries:
                    if err is e:
                        raise
                    raise err from e
                delay = min(self._backoff_base_s * (2**attempt), self._backoff_max_s)
                await asyncio.sleep(delay)
                continue
            emit_open_latency_metric(provider.value, kwargs["model"], (time.perf_counter() - t0) * 1000)
            return stream
        raise LLMUnavailable("Max retries exceeded", provider=provider)

    async def astream(
        self,
        provider: LLMProvider,
        model: str,
        req: LLMRequest,
        *,
        timeout_s: float | None = None,
        api_base: str | None = None,
        api_key: str | None = None,
        extra: dict[str, Any] | None = None,
    ) -> AsyncIterator[str]:
        """Yield non-empty text deltas in arrival order. Raises LLMError on failure."""
        timeout = timeout_s if timeout_s is not None else req.timeout_s or 120.0
        kwargs = _request_to_kwargs(req, model, timeout)
        if self._drop_params:
            kwargs["drop_params"] = True
        if api_base is not None:
            kwargs["api_base"] = api_base
        if api_key is not None:
            kwargs["api_key"] = api_key
        if extra:
            kwargs.update(extra)

        async with self._sem:
            stream = await self._open(provider, kwargs)
            delivered = False
            try:
                async for chunk in stream:
                    text = _delta_text(chunk)
                    if text:
                        delivered = True
                        yield text
            except Exception as e:  # noqa: BLE001
                err = _map_exception(e, provider)
                emit_error_metric(provider.value, err.code)
                if delivered:
                    raise LLMStreamInterrupted(str(err), provider=provider, details=err.code) from e
                if err is e:
                    raise
                raise err from e
