"""Generation engine clients."""

from llm.client.base import GenerationEngine, LLMError, PermanentLLMError, TransientLLMError
from llm.client.gemini_client import GeminiEngine
from llm.client.openai_client import OpenAIEngine, ProviderFn

__all__ = [
    "GeminiEngine",
    "GenerationEngine",
    "LLMError",
    "OpenAIEngine",
    "PermanentLLMError",
    "ProviderFn",
    "TransientLLMError",
]
