"""Streaming client and service behaviour with a patched acompletion (no network)."""
from types import SimpleNamespace

import pytest

from docengine.llm import client_litellm
from docengine.llm.client_litellm import LiteLLMStreamClient
from docengine.llm.errors import LLMAuthError, LLMStreamInterrupted
from docengine.llm.service import LLMService
from docengine.llm.settings import LLMSettings
from docengine.llm.types import LLMMessage, LLMProvider, LLMRequest


class APIConnectionError(Exception):
    pass


class AuthenticationError(Exception):
    pass


def _chunk(text: str | None) -> SimpleNamespace:
    return SimpleNamespace(choices=[SimpleNamespace(delta=SimpleNamespace(content=text))])


def _stream(*texts: str | None, fail_after: Exception | None = None):
    async def gen():
        for t in texts:
            yield _chunk(t)
        if fail_after is not None:
            raise fail_after
    return gen()


def _req() -> LLMRequest:
    return LLMRequest(messages=[LLMMessage(role="user", content="Hi")])


async def _collect(it) -> list[str]:
    return [piece async for piece in it]


@pytest.mark.asyncio
async def test_client_yields_non_empty_deltas_in_order(monkeypatch) -> None:
    captured: dict = {}

    async def fake_acompletion(**kwargs):
        captured.update(kwargs)
        return _stream("Hel", None, "lo", "")

    monkeypatch.setattr(client_litellm, "acompletion", fake_acompletion)
    client = LiteLLMStreamClient()
    out = await _collect(client.astream(LLMProvider.OLLAMA, "ollama/x", _req(), api_base="http://h"))
    assert out == ["Hel", "lo"]
    assert captured["stream"] is True
    assert captured["api_base"] == "http://h"


@pytest.mark.asyncio
async def test_client_retries_retryable_open_errors(monkeypatch) -> None:
    calls = {"n": 0}

    async def fake_acompletion(**kwargs):
        calls["n"] += 1
        if calls["n"] == 1:
            raise APIConnectionError("refused")
        return _stream("ok")

    monkeypatch.setattr(client_litellm, "acompletion", fake_acompletion)
    client = LiteLLMStreamClient(max_retries=1, backoff_base_s=0.001)
    assert await _collect(client.astream(LLMProvider.OLLAMA, "m", _req())) == ["ok"]
    assert calls["n"] == 2


@pytest.mark.asyncio
async def test_client_does_not_retry_auth_errors(monkeypatch) -> None:
    calls = {"n": 0}

    async def fake_acompletion(**kwargs):
        calls["n"] += 1
        raise AuthenticationError("bad key")

    monkeypatch.setattr(client_litellm, "acompletion", fake_acompletion)
    client = LiteLLMStreamClient(max_retries=3, backoff_base_s=0.001)
    with pytest.raises(LLMAuthError):
        await _collect(client.astream(LLMProvider.GEMINI, "m", _req()))
    assert calls["n"] == 1


@pytest.mark.asyncio
async def test_client_mid_stream_failure_is_interrupted(monkeypatch) -> None:
    async def fake_acompletion(**kwargs):
        return _stream("partial", fail_after=APIConnectionError("reset"))

    monkeypatch.setattr(client_litellm, "acompletion", fake_acompletion)
    client = LiteLLMStreamClient()
    seen: list[str] = []
    with pytest.raises(LLMStreamInterrupted):
        async for piece in client.astream(LLMProvider.OLLAMA, "m", _req()):
            seen.append(piece)
    assert seen == ["partial"]


@pytest.mark.asyncio
async def test_service_falls_back_before_first_delta(monkeypatch) -> None:
    models: list[str] = []

    async def fake_acompletion(**kwargs):
        models.append(kwargs["model"])
        if kwargs["model"].startswith("ollama"):
            raise APIConnectionError("ollama down")
        return _stream("from ", "gemini")

    monkeypatch.setattr(client_litellm, "acompletion", fake_acompletion)
    settings = LLMSettings(gemini_api_key="k", max_retries=0)
    service = LLMService(settings)
    out = await _collect(service.stream_completion("system", "prompt", 100))
    assert "".join(out) == "from gemini"
    assert models[0].startswith("ollama")
    assert models[-1] == settings.gemini_model
    assert service.last_stats is not None
    assert service.last_stats.provider == LLMProvider.GEMINI
    assert service.last_stats.chunks == 2


@pytest.mark.asyncio
async def test_service_passes_messages_and_max_tokens(monkeypatch) -> None:
    captured: dict = {}

    async def fake_acompletion(**kwargs):
        captured.update(kwargs)
        return _stream("x")

    monkeypatch.setattr(client_litellm, "acompletion", fake_acompletion)
    service = LLMService(LLMSettings(gemini_enabled=False))
    await _collect(service.stream_completion("be brief", "write it", 42))
    assert captured["messages"] == [
        {"role": "system", "content": "be brief"},
        {"role": "user", "content": "write it"},
    ]
    assert captured["max_tokens"] == 42
