"""Ollama provider: LiteLLM kwargs from settings. Best-effort local."""
from __future__ import annotations

from typing import Any

from docengine.llm.settings import LLMSettings


def ollama_kwargs(settings: LLMSettings) -> dict[str, Any]:
    model = settings.ollama_model
    # ollama_chat/ hits /api/chat, which keeps system and user roles apart.
    if settings.ollama_force_chat and model.startswith("ollama/"):
        model = "ollama_chat/" + model[len("ollama/"):]
    return {
        "model": model,
        "api_base": settings.ollama_api_base,
    }
