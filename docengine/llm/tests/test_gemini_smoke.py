"""Gemini smoke test. Skipped if no API key."""
import os

import pytest

from docengine.llm.service import LLMService
from docengine.llm.settings import LLMSettings


@pytest.mark.integration
@pytest.mark.skipif(
    not os.environ.get("LLM_GEMINI_API_KEY"),
    reason="LLM_GEMINI_API_KEY not set",
)
@pytest.mark.asyncio
async def test_gemini_stream_smoke() -> None:
    settings = LLMSettings(ollama_enabled=False, gemini_enabled=True)
    service = LLMService(settings)
    pieces = [p async for p in service.stream_completion("Reply tersely.", "Reply with one word: OK", 16)]
    assert "".join(pieces).strip()
    assert service.last_stats is not None
    assert service.last_stats.provider.value == "gemini"
