"""LLM module configuration. Env prefix: LLM_. Gemini key: LLM_GEMINI_API_KEY."""
from __future__ import annotations

from typing import Literal

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from docengine.llm.types import LLMProfile, LLMProvider


class LLMSettings(BaseSettings):
    """Settings for the router and the streaming client. All overridable via LLM_* env vars."""

    model_config = SettingsConfigDict(
        env_prefix="LLM_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    default_profile: LLMProfile = Field(default=LLMProfile.AUTO, description="Default routing profile")
    concurrency_limit: int = Field(default=8, ge=1, description="Max concurrent open streams per process")
    default_timeout_s: float = Field(default=120.0, gt=0, description="Per-request timeout (stream open + read)")
    max_retries: int = Field(default=2, ge=0, description="Retries for retryable errors before the first chunk")
    retry_backoff_base_s: float = Field(default=0.5, gt=0, description="Base delay for exponential backoff")
    retry_backoff_max_s: float = Field(default=8.0, gt=0, description="Max backoff delay")
    drop_unsupported_params: bool = Field(
        default=True,
        description="Drop OpenAI params not supported by provider (multi-provider safety)",
    )

    ollama_enabled: bool = Field(default=True, description="Enable Ollama provider")
    ollama_api_base: str = Field(default="http://localhost:11434", description="Ollama server URL")
    ollama_model: str = Field(default="ollama/llama3.2", description="Ollama model (ollama/ prefix)")
    ollama_force_chat: bool = Field(default=True, description="Route ollama/ models to the chat endpoint")

    gemini_enabled: bool = Field(default=True, description="Enable Gemini (Google AI Studio)")
    gemini_api_key: str | None = Field(default=None, description="API key (env: LLM_GEMINI_API_KEY)")
    gemini_model: str = Field(default="gemini/gemini-2.0-flash", description="Gemini model (gemini/ prefix)")
    gemini_safety_settings: list[dict] | None = Field(default=None, description="Optional safety settings")

    router_policy: Literal["prefer_local", "prefer_cloud", "auto"] = Field(
        default="auto",
        description="Default routing policy",
    )
    fallback_order: list[LLMProvider] = Field(
        default=[LLMProvider.OLLAMA, LLMProvider.GEMINI],
        description="Provider order tried when a stream fails to open",
    )
    allow_fallbacks: bool = Field(default=True, description="Try the next provider on retryable open errors")

    @model_validator(mode="after")
    def validate_providers(self) -> "LLMSettings":
        if self.gemini_enabled and not self.gemini_api_key:
            raise ValueError("gemini_enabled=True requires gemini_api_key (set LLM_GEMINI_API_KEY)")
        if self.ollama_enabled and not (self.ollama_model or "").strip():
            raise ValueError("ollama_enabled=True requires non-empty ollama_model")
        if self.gemini_enabled and not (self.gemini_model or "").strip():
            raise ValueError("gemini_enabled=True requires non-empty gemini_model")
        return self
