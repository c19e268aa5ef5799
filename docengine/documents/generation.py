"""
Generation pipeline: resolve sources, compose one prompt, stream the completion
through a TokenChannel, then persist the accumulated text as a new version.
Store calls are synchronous and run in a worker thread; the stream stays on the loop.
"""
from __future__ import annotations

import asyncio
import logging
import time
from typing import Any, AsyncIterator, Awaitable, Protocol, runtime_checkable

from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from docengine.db.repositories import DocumentRepo, VersionRepo
from docengine.db.session import session_scope
from docengine.documents.errors import (
    GenerationCancelled,
    GenerationServiceError,
    NoValidSourceError,
    NotFoundError,
    store_boundary,
)
from docengine.documents.invalidation import ViewInvalidatorPort, notify
from docengine.documents.lifecycle import DocumentLifecycle
from docengine.documents.prompts import compose_generation_prompt, compose_revision_system
from docengine.documents.settings import DocumentSettings
from docengine.documents.sources import KnowledgeSourceResolver, SourceResolverPort
from docengine.documents.streaming import CancellationToken, TokenChannel
from docengine.documents.telemetry import log_generation
from docengine.documents.version_store import VersionStore
from docengine.llm.errors import LLMError

logger = logging.getLogger(__name__)


@runtime_checkable
class CompletionStreamPort(Protocol):
    def stream_completion(
        self,
        system_instruction: str,
        prompt: str,
        max_tokens: int | None = None,
    ) -> AsyncIterator[str]:
        ...


class GenerationRequest(BaseModel):
    title: str
    owner_id: str
    workspace_id: str
    author_id: str
    source_document_ids: list[str] = Field(default_factory=list)
    primary_source_id: str | None = None
    parameters: dict[str, Any] = Field(default_factory=dict)
    system_instruction: str | None = None
    transcript: str | None = None
    allow_inline_transcript: bool = False
    max_output_tokens: int | None = None
    document_type: str | None = None
    partial_save: bool | None = None


class GenerationResult(BaseModel):
    version_id: str
    document_id: str
    content: str
    is_first_version: bool
    partial: bool = False


class _StreamOutcome(BaseModel):
    content: str
    cancelled: bool


class GenerationPipeline:
    def __init__(
        self,
        completion: CompletionStreamPort,
        resolver: SourceResolverPort | None = None,
        *,
        store: VersionStore | None = None,
        lifecycle: DocumentLifecycle | None = None,
        invalidator: ViewInvalidatorPort | None = None,
        settings: DocumentSettings | None = None,
    ) -> None:
        self._settings = settings or DocumentSettings()
        self._completion = completion
        self._resolver = resolver or KnowledgeSourceResolver()
        self._store = store or VersionStore(self._settings)
        self._lifecycle = lifecycle or DocumentLifecycle(self._store, invalidator)
        self._invalidator = invalidator
        self._documents = DocumentRepo()
        self._versions = VersionRepo()

    async def generate(
        self,
        req: GenerationRequest,
        *,
        channel: TokenChannel | None = None,
        cancel: CancellationToken | None = None,
    ) -> GenerationResult:
        """Run one generation pass for req.owner_id and return the persisted version.

        The channel ends cleanly only once the version is committed; otherwise
        it is closed with the same error raised here.
        """
        return await self._closing(channel, self._generate(req, channel, cancel))

    async def revise(
        self,
        document_id: str,
        author_id: str,
        instruction: str,
        system_instruction: str | None = None,
        *,
        max_output_tokens: int | None = None,
        partial_save: bool | None = None,
        channel: TokenChannel | None = None,
        cancel: CancellationToken | None = None,
    ) -> GenerationResult:
        """Stream a revision of the document's latest content and persist it as a new version."""
        return await self._closing(
            channel,
            self._revise(
                document_id,
                author_id,
                instruction,
                system_instruction,
                max_output_tokens,
                partial_save,
                channel,
                cancel,
            ),
        )

    @staticmethod
    async def _closing(channel: TokenChannel | None, work: Awaitable[GenerationResult]) -> GenerationResult:
        try:
            result = await work
        except asyncio.CancelledError:
            if channel is not None:
                await channel.close(GenerationCancelled())
            raise
        except Exception as e:
            if channel is not None:
                await channel.close(e)
            raise
        if channel is not None:
            await channel.close()
        return result

    async def _generate(
        self,
        req: GenerationRequest,
        channel: TokenChannel | None,
        cancel: CancellationToken | None,
    ) -> GenerationResult:
        t0 = time.perf_counter()
        # Fail before spending tokens if the owner is not in this workspace.
        await asyncio.to_thread(self._check_owner, req.owner_id, req.workspace_id)
        sources = []
        if req.source_document_ids:
            sources = await asyncio.to_thread(
                self._resolver.resolve, req.source_document_ids, req.workspace_id
            )
        transcript = None
        if req.allow_inline_transcript and req.transcript and req.transcript.strip():
            transcript = req.transcript
        if not sources and transcript is None:
            raise NoValidSourceError(requested_ids=req.source_document_ids)

        prompt = compose_generation_prompt(
            req.title,
            sources,
            req.parameters,
            transcript=transcript,
            primary_source_id=req.primary_source_id,
        )
        metadata: dict[str, Any] = {
            "source_document_ids": [s.id for s in sources],
            "parameters": req.parameters,
        }
        if req.document_type is not None:
            metadata["document_type"] = req.document_type
        if transcript is not None:
            metadata["inline_transcript"] = True

        outcome = await self._run_stream(
            req.system_instruction or self._settings.default_system_instruction,
            prompt,
            req.max_output_tokens or self._settings.default_max_output_tokens,
            channel,
            cancel,
            log_ctx={"workspace_id": req.workspace_id, "owner_id": req.owner_id, "source_count": len(sources)},
            t0=t0,
        )
        partial = self._check_cancelled(outcome, req.partial_save, req.workspace_id, req.owner_id, len(sources), t0)
        if partial:
            metadata["partial"] = True

        result = await asyncio.to_thread(
            self._store.transact,
            "generate",
            lambda session: self._persist_for_owner(session, req, outcome.content, metadata),
        )
        result.partial = partial
        log_generation(
            status="SUCCEEDED",
            document_id=result.document_id,
            version_id=result.version_id,
            workspace_id=req.workspace_id,
            owner_id=req.owner_id,
            source_count=len(sources),
            chars=len(outcome.content),
            latency_ms=int((time.perf_counter() - t0) * 1000),
        )
        notify(self._invalidator, req.workspace_id, req.owner_id)
        return result

    async def _revise(
        self,
        document_id: str,
        author_id: str,
        instruction: str,
        system_instruction: str | None,
        max_output_tokens: int | None,
        partial_save: bool | None,
        channel: TokenChannel | None,
        cancel: CancellationToken | None,
    ) -> GenerationResult:
        t0 = time.perf_counter()
        document, latest = await asyncio.to_thread(self._load_latest, document_id)
        outcome = await self._run_stream(
            compose_revision_system(
                system_instruction or self._settings.default_system_instruction,
                latest.content if latest else "",
            ),
            instruction,
            max_output_tokens or self._settings.default_max_output_tokens,
            channel,
            cancel,
            log_ctx={"workspace_id": document.workspace_id, "owner_id": None, "source_count": 0},
            t0=t0,
        )
        partial = self._check_cancelled(outcome, partial_save, document.workspace_id, None, 0, t0)
        metadata: dict[str, Any] = {"revision_of": latest.id if latest else None}
        if partial:
            metadata["partial"] = True
        version = await asyncio.to_thread(
            self._store.create_version, document_id, author_id, outcome.content, metadata=metadata
        )
        log_generation(
            status="SUCCEEDED",
            document_id=document_id,
            version_id=version.id,
            workspace_id=document.workspace_id,
            owner_id=None,
            source_count=0,
            chars=len(outcome.content),
            latency_ms=int((time.perf_counter() - t0) * 1000),
        )
        notify(self._invalidator, document.workspace_id)
        return GenerationResult(
            version_id=version.id,
            document_id=document_id,
            content=outcome.content,
            is_first_version=False,
            partial=partial,
        )

    async def _run_stream(
        self,
        system_instruction: str,
        prompt: str,
        max_tokens: int,
        channel: TokenChannel | None,
        cancel: CancellationToken | None,
        *,
        log_ctx: dict[str, Any],
        t0: float,
    ) -> _StreamOutcome:
        """Accumulate increments and forward each one unchanged to the channel.

        The channel is left open for the caller to close once the outcome is known,
        except on task cancellation where it is closed here with the discarded length.
        """
        parts: list[str] = []
        cancelled = cancel is not None and cancel.cancelled
        stream = self._completion.stream_completion(system_instruction, prompt, max_tokens)
        try:
            if not cancelled:
                async for piece in stream:
                    if cancel is not None and cancel.cancelled:
                        cancelled = True
                        break
                    parts.append(piece)
                    if channel is not None:
                        await channel.send(piece)
        except Exception as e:  # noqa: BLE001
            code = e.code if isinstance(e, LLMError) else "UNKNOWN"
            retryable = e.retryable if isinstance(e, LLMError) else False
            err = GenerationServiceError(f"Completion stream failed: {e}", llm_code=code, retryable=retryable)
            log_generation(
                status="FAILED",
                document_id=None,
                version_id=None,
                chars=sum(len(p) for p in parts),
                latency_ms=int((time.perf_counter() - t0) * 1000),
                error_code=code,
                **log_ctx,
            )
            raise err from e
        except asyncio.CancelledError:
            if channel is not None:
                await channel.close(GenerationCancelled(chars_discarded=sum(len(p) for p in parts)))
            raise
        finally:
            aclose = getattr(stream, "aclose", None)
            if aclose is not None:
                await aclose()
        return _StreamOutcome(content="".join(parts), cancelled=cancelled)

    def _check_cancelled(
        self,
        outcome: _StreamOutcome,
        partial_save: bool | None,
        workspace_id: str,
        owner_id: str | None,
        source_count: int,
        t0: float,
    ) -> bool:
        """True when a cancelled stream should be saved as partial; raises when it should not."""
        if not outcome.cancelled:
            return False
        save = self._settings.partial_save_default if partial_save is None else partial_save
        if save:
            return True
        log_generation(
            status="CANCELLED",
            document_id=None,
            version_id=None,
            workspace_id=workspace_id,
            owner_id=owner_id,
            source_count=source_count,
            chars=len(outcome.content),
            latency_ms=int((time.perf_counter() - t0) * 1000),
        )
        raise GenerationCancelled(chars_discarded=len(outcome.content))

    def _check_owner(self, owner_id: str, workspace_id: str) -> None:
        with store_boundary("generate"), session_scope() as session:
            self._lifecycle.owner_in_workspace(session, owner_id, workspace_id)

    def _load_latest(self, document_id: str):
        with store_boundary("revise"), session_scope() as session:
            document = self._documents.get(session, document_id)
            if document is None:
                raise NotFoundError(f"Document not found: {document_id}")
            return document, self._versions.get_latest(session, document_id)

    def _persist_for_owner(
        self,
        session: Session,
        req: GenerationRequest,
        content: str,
        metadata: dict[str, Any],
    ) -> GenerationResult:
        objective = self._lifecycle.owner_in_workspace(session, req.owner_id, req.workspace_id)
        if objective.document_id is None:
            document, version = self._lifecycle.create_in_session(
                session,
                req.owner_id,
                req.workspace_id,
                req.author_id,
                req.title,
                content,
                metadata,
                document_type=req.document_type,
            )
            return GenerationResult(
                version_id=version.id,
                document_id=document.id,
                content=content,
                is_first_version=True,
            )
        version = self._store.append(session, objective.document_id, req.author_id, content, metadata=metadata)
        return GenerationResult(
            version_id=version.id,
            document_id=objective.document_id,
            content=content,
            is_first_version=False,
        )
