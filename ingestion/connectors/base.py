"""Search connector abstraction, errors, and helpers."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Dict, Iterable, List

from pydantic import ValidationError

from ingestion.models.domain import CandidateSource
from ingestion.utils.logging import get_logger


class ConnectorError(Exception):
    """Base connector error."""


class TransientError(ConnectorError):
    """Upstream hiccup (network error, timeout, 429/5xx)."""


class PermanentError(ConnectorError):
    """Non-retryable error (missing credential, 4xx semantics)."""


class BaseSearchConnector(ABC):
    """Freshness-bounded keyword search that fails soft.

    ``search`` never raises for upstream trouble: connector errors are logged
    and turned into an empty candidate list, which callers read as
    "nothing new this attempt".
    """

    source: str

    def search(self, query: str, count: int) -> List[CandidateSource]:
        if not query.strip():
            raise ValueError("query must not be blank")
        if count < 1:
            raise ValueError("count must be positive")
        logger = get_logger(__name__)
        try:
            raw = self._search_raw(query.strip(), count)
        except PermanentError as exc:
            logger.warning("search.permanent_error", extra={"source": self.source, "query": query, "error": str(exc)})
            return []
        except TransientError as exc:
            logger.warning("search.transient_error", extra={"source": self.source, "query": query, "error": str(exc)})
            return []
        return self._normalize(raw)[:count]

    @abstractmethod
    def _search_raw(self, query: str, count: int) -> List[Dict[str, Any]]:
        """Return raw result dicts from the upstream."""

    def _normalize(self, items: Iterable[Dict[str, Any]]) -> List[CandidateSource]:
        seen: set[str] = set()
        normalized: List[CandidateSource] = []
        for item in items:
            if not isinstance(item, dict):
                continue
            try:
                candidate = CandidateSource(
                    title=str(item.get("title") or ""),
                    url=str(item.get("url") or ""),
                    description=str(item.get("description") or "").strip(),
                    age=item.get("age"),
                )
            except ValidationError:
                continue
            if candidate.url in seen:
                continue
            seen.add(candidate.url)
            normalized.append(candidate)
        return normalized
