"""Typed request and routing models for the LLM module (Pydantic v2)."""
from __future__ import annotations

from enum import Enum
from typing import Literal

from pydantic import BaseModel, Field


class LLMProvider(str, Enum):
    """Supported LLM providers."""

    OLLAMA = "ollama"
    GEMINI = "gemini"


class LLMProfile(str, Enum):
    """Routing profile: local-fast, cloud-quality, or auto."""

    LOCAL_FAST = "local_fast"
    CLOUD_QUALITY = "cloud_quality"
    AUTO = "auto"


class LLMMessage(BaseModel):
    """Single message in OpenAI-style format."""

    role: Literal["system", "user", "assistant"]
    content: str


class LLMRequest(BaseModel):
    """One streaming completion request."""

    messages: list[LLMMessage]
    profile: LLMProfile = LLMProfile.AUTO
    temperature: float | None = None
    max_output_tokens: int | None = None
    metadata: dict[str, str] = Field(default_factory=dict)
    timeout_s: float | None = None


class LLMStreamStats(BaseModel):
    """Summary of a finished stream, used for the llm_stream log event."""

    provider: LLMProvider
    model: str
    chunks: int = 0
    chars: int = 0
    latency_ms: int = 0
    first_chunk_ms: int | None = None
