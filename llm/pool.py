"""Generation engine pool and the active-engine selection policy."""

from __future__ import annotations

from typing import Dict, Iterable, Mapping, Optional, Sequence

from ingestion.models.domain import CandidateSource, GeneratedArticle
from ingestion.utils.logging import get_logger
from llm.client.base import GenerationEngine
from llm.client.gemini_client import GeminiEngine
from llm.client.gemini_client import ProviderFn as GeminiProviderFn
from llm.client.openai_client import OpenAIEngine
from llm.client.openai_client import ProviderFn as OpenAIProviderFn
from llm.settings import EngineSettings

# auto-detection order when no preference applies
ENGINE_PRIORITY: Sequence[str] = ("gemini", "openai")
DEFAULT_ENGINE = "openai"


class UnknownEngineError(ValueError):
    """Engine identifier not present in the pool."""


class EnginePool:
    """Named generation engines behind one selection policy.

    Selection, in order: explicit override; preferred engine when it has a
    credential; first credentialed engine in priority order; the hard-coded
    default, which then fails at its own credential check.
    """

    def __init__(
        self,
        engines: Iterable[GenerationEngine],
        *,
        preferred: Optional[str] = None,
        priority: Sequence[str] = ENGINE_PRIORITY,
        default: str = DEFAULT_ENGINE,
    ) -> None:
        self._engines: Dict[str, GenerationEngine] = {engine.name: engine for engine in engines}
        self._preferred = preferred
        self._priority = tuple(priority)
        self._default = default

    @classmethod
    def from_settings(
        cls,
        settings: EngineSettings,
        *,
        openai_provider: Optional[OpenAIProviderFn] = None,
        gemini_provider: Optional[GeminiProviderFn] = None,
    ) -> "EnginePool":
        engines = [
            OpenAIEngine(settings, provider=openai_provider),
            GeminiEngine(settings, provider=gemini_provider),
        ]
        return cls(engines, preferred=settings.ai_engine)

    @property
    def names(self) -> list[str]:
        return list(self._engines)

    def availability(self) -> Mapping[str, bool]:
        return {name: engine.has_credential() for name, engine in self._engines.items()}

    def validate(self, engine: str) -> str:
        name = engine.strip().lower()
        if name not in self._engines:
            raise UnknownEngineError(f"unknown engine: {engine}")
        return name

    def select(self, override: Optional[str] = None) -> str:
        if override:
            return self.validate(override)
        if self._preferred and self._usable(self._preferred):
            return self._preferred
        for name in self._priority:
            if self._usable(name):
                return name
        return self._default

    def generate(
        self,
        source: CandidateSource,
        voice: str,
        category: str,
        engine: Optional[str] = None,
    ) -> Optional[GeneratedArticle]:
        """Rewrite ``source`` with exactly one engine; no cascade on failure."""
        name = self.select(engine)
        logger = get_logger(__name__)
        logger.info("engine.selected", extra={"engine": name, "source_url": source.url})
        selected = self._engines.get(name)
        if selected is None:
            logger.warning("engine.unavailable", extra={"engine": name})
            return None
        return selected.try_generate(source, voice, category)

    def _usable(self, name: str) -> bool:
        engine = self._engines.get(name)
        return engine is not None and engine.has_credential()
