"""Gemini (Google AI Studio) provider. API key passed explicitly, never read from os.environ here."""
from __future__ import annotations

from typing import Any

from docengine.llm.settings import LLMSettings


def gemini_kwargs(settings: LLMSettings) -> dict[str, Any]:
    out: dict[str, Any] = {"model": settings.gemini_model}
    if settings.gemini_api_key:
        out["api_key"] = settings.gemini_api_key
    if settings.gemini_safety_settings is not None:
        out["safety_settings"] = settings.gemini_safety_settings
    return out
