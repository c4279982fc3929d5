"""LLM module - generation engines, engine pool and settings."""

from llm.client import (
    GeminiEngine,
    GenerationEngine,
    LLMError,
    OpenAIEngine,
    PermanentLLMError,
    TransientLLMError,
)
from llm.pool import DEFAULT_ENGINE, ENGINE_PRIORITY, EnginePool, UnknownEngineError
from llm.settings import EngineSettings, get_engine_settings, reset_engine_settings_cache

__all__ = [
    "DEFAULT_ENGINE",
    "ENGINE_PRIORITY",
    "EnginePool",
    "EngineSettings",
    "GeminiEngine",
    "GenerationEngine",
    "LLMError",
    "OpenAIEngine",
    "PermanentLLMError",
    "TransientLLMError",
    "UnknownEngineError",
    "get_engine_settings",
    "reset_engine_settings_cache",
]
