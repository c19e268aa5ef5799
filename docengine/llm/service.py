"""
LLMService: the single entrypoint other modules use for completions.
Routes to a provider, falls back while no text has been delivered, and logs one
llm_stream record per attempt.
"""
from __future__ import annotations

import time
from contextlib import aclosing
from typing import AsyncIterator

from docengine.llm.client_litellm import LiteLLMStreamClient
from docengine.llm.errors import LLMError, LLMUnavailable
from docengine.llm.providers import provider_kwargs
from docengine.llm.router import LLMRouter
from docengine.llm.settings import LLMSettings
from docengine.llm.telemetry import emit_chunks_metric, log_llm_stream
from docengine.llm.types import LLMMessage, LLMProfile, LLMProvider, LLMRequest, LLMStreamStats


class LLMService:
    def __init__(
        self,
        settings: LLMSettings,
        *,
        client: LiteLLMStreamClient | None = None,
        router: LLMRouter | None = None,
    ) -> None:
        self._settings = settings
        self._client = client or LiteLLMStreamClient(
            concurrency_limit=settings.concurrency_limit,
            max_retries=settings.max_retries,
            drop_params=settings.drop_unsupported_params,
            backoff_base_s=settings.retry_backoff_base_s,
            backoff_max_s=settings.retry_backoff_max_s,
        )
        self._router = router or LLMRouter(settings)
        self.last_stats: LLMStreamStats | None = None

    async def stream_completion(
        self,
        system_instruction: str,
        prompt: str,
        max_tokens: int | None = None,
        *,
        profile: LLMProfile | None = None,
        stage: str | None = None,
    ) -> AsyncIterator[str]:
        """Stream the completion for one system + user prompt pair."""
        req = LLMRequest(
            messages=[
                LLMMessage(role="system", content=system_instruction),
                LLMMessage(role="user", content=prompt),
            ],
            profile=profile or self._settings.default_profile,
            max_output_tokens=max_tokens,
            timeout_s=self._settings.default_timeout_s,
            metadata={"stage": stage} if stage else {},
        )
        async with aclosing(self.stream(req)) as pieces:
            async for piece in pieces:
                yield piece

    async def stream(self, req: LLMRequest) -> AsyncIterator[str]:
        """Yield text deltas for req. Falls back to the next provider only before the first delta."""
        stage = req.metadata.get("stage")
        last_error: LLMError | None = None
        for provider in self._router.attempt_order(req):
            model = self._router.get_model_for_provider(provider)
            k = provider_kwargs(self._settings, provider)
            extra = {"safety_settings": k["safety_settings"]} if "safety_settings" in k else None
            stats = LLMStreamStats(provider=provider, model=k.get("model", model))
            t0 = time.perf_counter()
            try:
                async with aclosing(
                    self._client.astream(
                        provider,
                        k.get("model", model),
                        req,
                        timeout_s=req.timeout_s or self._settings.default_timeout_s,
                        api_base=k.get("api_base"),
                        api_key=k.get("api_key"),
                        extra=extra,
                    )
                ) as pieces:
                    async for piece in pieces:
                        if stats.chunks == 0:
                            stats.first_chunk_ms = int((time.perf_counter() - t0) * 1000)
                        stats.chunks += 1
                        stats.chars += len(piece)
                        yield piece
            except LLMError as e:
                last_error = e
                self._log(stats, req, t0, "FAILED", error_code=e.code, stage=stage)
                if stats.chunks > 0 or not e.retryable:
                    raise
                continue
            self._log(stats, req, t0, "SUCCEEDED", stage=stage)
            emit_chunks_metric(provider.value, stats.model, stats.chunks)
            self.last_stats = stats
            return
        if last_error is not None:
            raise last_error
        raise LLMUnavailable("No provider attempted", retryable=False)

    def _log(
        self,
        stats: LLMStreamStats,
        req: LLMRequest,
        t0: float,
        status: str,
        *,
        error_code: str | None = None,
        stage: str | None = None,
    ) -> None:
        stats.latency_ms = int((time.perf_counter() - t0) * 1000)
        log_llm_stream(
            provider=stats.provider.value,
            model=stats.model,
            profile=req.profile.value,
            status=status,
            latency_ms=stats.latency_ms,
            chunks=stats.chunks,
            chars=stats.chars,
            first_chunk_ms=stats.first_chunk_ms,
            error_code=error_code,
            stage=stage,
        )
