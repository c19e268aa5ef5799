"""LLMRouter: pick a provider from profile + policy, with a deterministic fallback list."""
from __future__ import annotations

from docengine.llm.settings import LLMSettings
from docengine.llm.types import LLMProfile, LLMProvider, LLMRequest


class LLMRouter:
    def __init__(self, settings: LLMSettings) -> None:
        self._settings = settings

    def _enabled(self, provider: LLMProvider) -> bool:
        if provider == LLMProvider.OLLAMA:
            return self._settings.ollama_enabled
        if provider == LLMProvider.GEMINI:
            return self._settings.gemini_enabled
        return False

    def select_provider(self, req: LLMRequest) -> LLMProvider:
        """Choose the provider for this request. Does not perform the call."""
        profile = req.profile
        if profile == LLMProfile.AUTO:
            profile = self._settings.default_profile
        policy = self._settings.router_policy
        if policy == "prefer_cloud" or profile == LLMProfile.CLOUD_QUALITY:
            preference = [LLMProvider.GEMINI, LLMProvider.OLLAMA]
        else:
            # prefer_local, local_fast and auto all try the local model first
            preference = [LLMProvider.OLLAMA, LLMProvider.GEMINI]
        for provider in preference:
            if self._enabled(provider):
                return provider
        raise ValueError("No LLM provider enabled (ollama_enabled and gemini_enabled are false)")

    def get_model_for_provider(self, provider: LLMProvider) -> str:
        if provider == LLMProvider.OLLAMA:
            return self._settings.ollama_model
        if provider == LLMProvider.GEMINI:
            return self._settings.gemini_model
        raise ValueError(f"Unknown provider: {provider}")

    def get_fallback_order(self) -> list[LLMProvider]:
        """Configured fallback order, enabled providers only."""
        return [p for p in self._settings.fallback_order if self._enabled(p)]

    def attempt_order(self, req: LLMRequest) -> list[LLMProvider]:
        """Selected provider first, then the rest of the fallback list."""
        first = self.select_provider(req)
        if not self._settings.allow_fallbacks:
            return [first]
        return [first] + [p for p in self.get_fallback_order() if p != first]
