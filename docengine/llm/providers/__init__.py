"""Provider adapters: build LiteLLM kwargs for Ollama and Gemini from settings."""
from typing import Any

from docengine.llm.providers.gemini import gemini_kwargs
from docengine.llm.providers.ollama import ollama_kwargs
from docengine.llm.settings import LLMSettings
from docengine.llm.types import LLMProvider


def provider_kwargs(settings: LLMSettings, provider: LLMProvider) -> dict[str, Any]:
    if provider == LLMProvider.OLLAMA:
        return ollama_kwargs(settings)
    if provider == LLMProvider.GEMINI:
        return gemini_kwargs(settings)
    raise ValueError(f"Unknown provider: {provider}")


__all__ = ["ollama_kwargs", "gemini_kwargs", "provider_kwargs"]
