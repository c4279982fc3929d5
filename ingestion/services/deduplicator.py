"""Source-URL deduplication against the content repository."""

from __future__ import annotations

from typing import Iterable, List, Protocol, Sequence

from ingestion.models.domain import CandidateSource
from ingestion.utils.logging import get_logger


class SourceIndex(Protocol):
    def existing_source_urls(self, urls: Sequence[str]) -> set[str]: ...  # noqa: D401


class SourceDeduplicator:
    """Drops candidates whose URL was already ingested.

    One batched lookup per call. Repository errors propagate: an unreachable
    index must never be read as "everything is new".
    """

    def __init__(self, index: SourceIndex) -> None:
        self._index = index

    def filter(self, candidates: Iterable[CandidateSource], brand: str) -> List[CandidateSource]:
        items = list(candidates)
        if not items:
            return []
        urls = list(dict.fromkeys(c.url for c in items))
        seen = self._index.existing_source_urls(urls)
        fresh = [c for c in items if c.url not in seen]
        get_logger(__name__).debug(
            "dedupe.filtered",
            extra={"brand": brand, "candidates": len(items), "duplicates": len(items) - len(fresh)},
        )
        return fresh
