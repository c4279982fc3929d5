"""Generation engine interface and error taxonomy."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Optional

from ingestion.models.domain import CandidateSource, GeneratedArticle
from ingestion.utils.logging import get_logger
from llm.parsing import extract_structured_object, parse_article_payload
from llm.prompts import build_article_prompt


class LLMError(Exception):
    """Base error for engine calls."""


class TransientLLMError(LLMError):
    """Transport failure, timeout, non-success status or empty answer."""


class PermanentLLMError(LLMError):
    """Missing credential or unusable configuration."""


class GenerationEngine(ABC):
    """One interchangeable text-generation backend.

    Subclasses only implement the transport (``complete``); the directive and
    payload recovery are shared so every engine is held to the same contract.
    """

    name: str

    @abstractmethod
    def has_credential(self) -> bool:
        """Whether a usable API credential is configured."""

    @abstractmethod
    def complete(self, prompt: str) -> str:
        """Send one instruction, return the raw text answer. Raises LLMError."""

    def try_generate(self, source: CandidateSource, voice: str, category: str) -> Optional[GeneratedArticle]:
        """One call, one parse attempt. None on any failure, never raises LLMError."""
        logger = get_logger(__name__)
        prompt = build_article_prompt(source, voice, category)
        extra = {"engine": self.name, "source_url": source.url}
        try:
            text = self.complete(prompt)
        except LLMError as exc:
            logger.warning("engine.call_failed", extra={**extra, "error": str(exc)})
            return None
        raw = extract_structured_object(text)
        if raw is None:
            logger.warning("engine.unparseable_response", extra=extra)
            return None
        article = parse_article_payload(raw, engine=self.name)
        if article is None:
            logger.warning("engine.incomplete_payload", extra={**extra, "fields": sorted(raw.keys())})
        return article
