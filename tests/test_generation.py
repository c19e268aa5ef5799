"""Generation pipeline: sources -> streamed completion -> new version, with cancellation."""
import asyncio

import pytest
from sqlalchemy.exc import OperationalError

from docengine.db.repositories import WorkspaceRepo
from docengine.db.session import session_scope
from docengine.documents import (
    CancellationToken,
    DocumentLifecycle,
    GenerationCancelled,
    GenerationPipeline,
    GenerationRequest,
    GenerationServiceError,
    KnowledgeSourceResolver,
    NoValidSourceError,
    NotFoundError,
    PersistenceError,
    TokenChannel,
    VersionStore,
)
from docengine.llm.errors import LLMRateLimited
from fakes import USER, FakeCompletion, RecordingInvalidator, StaticResolver


@pytest.fixture
def invalidator():
    return RecordingInvalidator()


@pytest.fixture
def make_pipeline(settings, invalidator):
    def _make(completion, resolver=None):
        store = VersionStore(settings)
        return GenerationPipeline(
            completion,
            resolver or KnowledgeSourceResolver(),
            store=store,
            lifecycle=DocumentLifecycle(store, invalidator),
            invalidator=invalidator,
            settings=settings,
        )
    return _make


@pytest.fixture
def request_for(workspace, objective):
    def _req(*ids, **overrides):
        fields = dict(
            title="Weekly sync",
            owner_id=objective.id,
            workspace_id=workspace.id,
            author_id=USER,
            source_document_ids=list(ids),
        )
        fields.update(overrides)
        return GenerationRequest(**fields)
    return _req


async def _run(pipeline, req, **kwargs):
    """Run generate() while a subscriber drains the channel; returns (result or error, pieces)."""
    channel = TokenChannel()
    received: list[str] = []

    async def consume():
        try:
            async for piece in channel:
                received.append(piece)
        except Exception as e:  # noqa: BLE001
            return e
        return None

    consumer = asyncio.create_task(consume())
    try:
        result = await pipeline.generate(req, channel=channel, **kwargs)
    except Exception as e:  # noqa: BLE001
        result = e
    channel_error = await consumer
    # The subscriber sees exactly what the caller sees.
    if isinstance(result, Exception):
        assert channel_error is result
    else:
        assert channel_error is None
    return result, received


@pytest.mark.asyncio
async def test_first_then_second_generation(make_pipeline, request_for, make_knowledge, invalidator, workspace, objective):
    source = make_knowledge("Notes", "Ana agreed to the budget.")
    completion = FakeCompletion(["# Summary", "\n", "Budget approved."])
    pipeline = make_pipeline(completion)

    first, pieces = await _run(pipeline, request_for(source.id))
    assert pieces == ["# Summary", "\n", "Budget approved."]
    assert first.is_first_version is True
    assert first.content == "# Summary\nBudget approved."
    assert first.partial is False

    second, _ = await _run(pipeline, request_for(source.id))
    assert second.is_first_version is False
    assert second.document_id == first.document_id

    versions = pipeline._store.list_versions(first.document_id)
    assert [v.version_number for v in versions] == [2, 1]
    assert versions[1].metadata["source_document_ids"] == [source.id]
    assert (workspace.id, objective.id) in invalidator.calls

    system, prompt, max_tokens = completion.calls[0]
    assert "--- Notes ---\nAna agreed to the budget." in prompt
    assert max_tokens == 4096


@pytest.mark.asyncio
async def test_only_resolved_sources_are_recorded(make_pipeline, request_for, make_knowledge):
    good = make_knowledge("Notes", "text")
    empty = make_knowledge("Blank", "   ")
    pipeline = make_pipeline(FakeCompletion(["ok"]))

    result, _ = await _run(pipeline, request_for(good.id, empty.id, "missing"))
    version = pipeline._store.get_version(result.version_id)
    assert version.metadata["source_document_ids"] == [good.id]


@pytest.mark.asyncio
async def test_sources_from_other_workspace_do_not_resolve(make_pipeline, request_for, make_knowledge):
    with session_scope() as s:
        other = WorkspaceRepo().create(s, "Other", USER)
    foreign = make_knowledge("Foreign", "text", workspace_id=other.id)
    completion = FakeCompletion(["never"])
    pipeline = make_pipeline(completion)

    error, pieces = await _run(pipeline, request_for(foreign.id))
    assert isinstance(error, NoValidSourceError)
    assert pieces == []
    assert completion.calls == []


@pytest.mark.asyncio
async def test_no_valid_source_persists_nothing(make_pipeline, request_for, objective):
    pipeline = make_pipeline(FakeCompletion(["x"]))
    error, _ = await _run(pipeline, request_for("missing"))
    assert isinstance(error, NoValidSourceError)
    assert error.code == "NO_VALID_SOURCE"
    assert pipeline._lifecycle.get_document_by_owner(objective.id) is None


@pytest.mark.asyncio
async def test_inline_transcript_stands_in_for_sources(make_pipeline, request_for):
    completion = FakeCompletion(["notes"])
    pipeline = make_pipeline(completion, StaticResolver({}))
    req = request_for(transcript="Ana: hello", allow_inline_transcript=True, parameters={"participants": ["Ana"]})

    result, _ = await _run(pipeline, req)
    version = pipeline._store.get_version(result.version_id)
    assert version.metadata["inline_transcript"] is True
    assert version.metadata["source_document_ids"] == []
    assert "Transcript:\nAna: hello" in completion.calls[0][1]
    assert "Participants: Ana" in completion.calls[0][1]


@pytest.mark.asyncio
async def test_transcript_ignored_unless_allowed(make_pipeline, request_for):
    pipeline = make_pipeline(FakeCompletion(["x"]), StaticResolver({}))
    error, _ = await _run(pipeline, request_for(transcript="Ana: hello"))
    assert isinstance(error, NoValidSourceError)


@pytest.mark.asyncio
async def test_unknown_owner_is_not_found(make_pipeline, request_for):
    pipeline = make_pipeline(FakeCompletion(["x"]), StaticResolver({"s": ("S", "c")}))
    error, _ = await _run(pipeline, request_for("s", owner_id="missing"))
    assert isinstance(error, NotFoundError)


@pytest.mark.asyncio
async def test_service_failure_persists_nothing(make_pipeline, request_for, objective):
    completion = FakeCompletion(["partial "], fail_with=LLMRateLimited())
    pipeline = make_pipeline(completion, StaticResolver({"s": ("S", "c")}))

    error, pieces = await _run(pipeline, request_for("s"))
    assert isinstance(error, GenerationServiceError)
    assert error.llm_code == "RATE_LIMITED"
    assert error.retryable is True
    assert pieces == ["partial "]
    assert pipeline._lifecycle.get_document_by_owner(objective.id) is None


@pytest.mark.asyncio
async def test_cancel_discards_by_default(make_pipeline, request_for, objective):
    token = CancellationToken()
    completion = FakeCompletion(["a", "b", "c", "d"], on_piece=lambda i: i == 2 and token.cancel("user"))
    pipeline = make_pipeline(completion, StaticResolver({"s": ("S", "c")}))

    error, pieces = await _run(pipeline, request_for("s"), cancel=token)
    assert isinstance(error, GenerationCancelled)
    assert error.chars_discarded == 2
    assert pieces == ["a", "b"]
    assert pipeline._lifecycle.get_document_by_owner(objective.id) is None


@pytest.mark.asyncio
async def test_cancel_with_partial_save(make_pipeline, request_for):
    token = CancellationToken()
    completion = FakeCompletion(["a", "b", "c"], on_piece=lambda i: i == 1 and token.cancel())
    pipeline = make_pipeline(completion, StaticResolver({"s": ("S", "c")}))

    result, _ = await _run(pipeline, request_for("s", partial_save=True), cancel=token)
    assert result.partial is True
    assert result.content == "a"
    assert pipeline._store.get_version(result.version_id).metadata["partial"] is True


@pytest.mark.asyncio
async def test_cancelled_before_start_calls_nothing(make_pipeline, request_for, objective):
    token = CancellationToken()
    token.cancel()
    pipeline = make_pipeline(FakeCompletion(["a"]), StaticResolver({"s": ("S", "c")}))
    error, pieces = await _run(pipeline, request_for("s"), cancel=token)
    assert isinstance(error, GenerationCancelled)
    assert pieces == []


@pytest.mark.asyncio
async def test_revise_appends_version(make_pipeline, request_for):
    pipeline = make_pipeline(FakeCompletion(["draft"]), StaticResolver({"s": ("S", "c")}))
    first, _ = await _run(pipeline, request_for("s"))

    reviser = FakeCompletion(["shorter"])
    pipeline._completion = reviser
    channel = TokenChannel()
    result = await pipeline.revise(first.document_id, USER, "Make it shorter", "Be terse.", channel=channel)
    assert [p async for p in channel] == ["shorter"]

    assert result.content == "shorter"
    assert result.is_first_version is False
    system, prompt, _ = reviser.calls[0]
    assert system == "Be terse.\n\nCurrent content:\ndraft"
    assert prompt == "Make it shorter"
    latest = pipeline._store.get_latest_version(first.document_id)
    assert latest.version_number == 2
    assert latest.metadata == {"revision_of": first.version_id}


@pytest.mark.asyncio
async def test_revise_missing_document(make_pipeline, db):
    pipeline = make_pipeline(FakeCompletion(["x"]))
    with pytest.raises(NotFoundError):
        await pipeline.revise("missing", USER, "edit")


@pytest.mark.asyncio
async def test_subscriber_receives_cancellation_error(make_pipeline, request_for):
    token = CancellationToken()
    completion = FakeCompletion(["a", "b", "c"], on_piece=lambda i: i == 2 and token.cancel())
    pipeline = make_pipeline(completion, StaticResolver({"s": ("S", "c")}))
    channel = TokenChannel()

    with pytest.raises(GenerationCancelled) as raised:
        await pipeline.generate(request_for("s"), channel=channel, cancel=token)

    received = []
    with pytest.raises(GenerationCancelled) as seen:
        async for piece in channel:
            received.append(piece)
    assert seen.value is raised.value
    assert received == ["a", "b"]


@pytest.mark.asyncio
async def test_persist_failure_reaches_subscriber(make_pipeline, request_for, objective, monkeypatch):
    pipeline = make_pipeline(FakeCompletion(["all ", "text"]), StaticResolver({"s": ("S", "c")}))

    def broken(*args, **kwargs):
        raise OperationalError("INSERT INTO documents", {}, Exception("disk I/O error"))

    monkeypatch.setattr(pipeline._lifecycle, "create_in_session", broken)
    error, pieces = await _run(pipeline, request_for("s"))
    assert isinstance(error, PersistenceError)
    assert pieces == ["all ", "text"]
    assert pipeline._lifecycle.get_document_by_owner(objective.id) is None


@pytest.mark.asyncio
async def test_revise_persist_failure_reaches_subscriber(make_pipeline, request_for, monkeypatch):
    pipeline = make_pipeline(FakeCompletion(["draft"]), StaticResolver({"s": ("S", "c")}))
    first, _ = await _run(pipeline, request_for("s"))

    def broken(*args, **kwargs):
        raise PersistenceError("create_version failed: OperationalError", operation="create_version")

    monkeypatch.setattr(pipeline._store, "create_version", broken)
    channel = TokenChannel()
    with pytest.raises(PersistenceError) as raised:
        await pipeline.revise(first.document_id, USER, "edit", channel=channel)
    with pytest.raises(PersistenceError) as seen:
        async for _ in channel:
            pass
    assert seen.value is raised.value
    assert pipeline._store.get_latest_version(first.document_id).version_number == 1
