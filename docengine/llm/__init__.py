"""
LLM module: single typed async streaming interface for completion calls.
Public API: LLMService, LLMSettings, LLMRequest, LLMProfile, LLMProvider, errors.
Other modules must not call LiteLLM or provider SDKs directly.
"""
from docengine.llm.errors import (
    LLMAuthError,
    LLMBadRequest,
    LLMError,
    LLMRateLimited,
    LLMStreamInterrupted,
    LLMTimeout,
    LLMUnavailable,
)
from docengine.llm.service import LLMService
from docengine.llm.settings import LLMSettings
from docengine.llm.types import (
    LLMMessage,
    LLMProfile,
    LLMProvider,
    LLMRequest,
    LLMStreamStats,
)

__all__ = [
    "LLMService",
    "LLMSettings",
    "LLMRequest",
    "LLMMessage",
    "LLMProfile",
    "LLMProvider",
    "LLMStreamStats",
    "LLMError",
    "LLMTimeout",
    "LLMRateLimited",
    "LLMBadRequest",
    "LLMAuthError",
    "LLMUnavailable",
    "LLMStreamInterrupted",
]
