"""Per-brand content ingestion: search, dedupe, rewrite, slug, insert, notify."""

from __future__ import annotations

import math
import random
import time
import uuid
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional, Protocol, Sequence

from sqlalchemy.exc import SQLAlchemyError

from ingestion.brands import BrandProfile
from ingestion.models.domain import (
    ArticleRef,
    ArticleStatus,
    CandidateSource,
    ContentItemDraft,
    GeneratedArticle,
    OutcomeStatus,
    PipelineOutcome,
    PipelineRun,
)
from ingestion.services.deduplicator import SourceDeduplicator
from ingestion.services.slugs import SlugAllocator
from ingestion.settings import Settings
from ingestion.utils.logging import get_logger
from llm.pool import EnginePool
from publish.notifier import ArticleEvent

WORDS_PER_MINUTE = 200


class SearchProvider(Protocol):
    def search(self, query: str, count: int) -> List[CandidateSource]: ...  # noqa: D401


class ContentRepository(Protocol):
    def existing_source_urls(self, urls: Sequence[str]) -> set[str]: ...  # noqa: D401
    def slug_exists(self, slug: str) -> bool: ...  # noqa: D401
    def insert(self, draft: ContentItemDraft) -> ArticleRef: ...  # noqa: D401
    def generated_summary(self, brand: str, limit: int = 5) -> tuple[int, List[dict[str, Any]]]: ...  # noqa: D401


class NotificationWriter(Protocol):
    def article_created(self, event: ArticleEvent) -> Any: ...  # noqa: D401


def estimate_reading_time(text: str) -> int:
    words = len(text.split())
    return max(1, math.ceil(words / WORDS_PER_MINUTE))


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _error_message(exc: Exception) -> str:
    orig = getattr(exc, "orig", None)
    return str(orig) if orig is not None else str(exc)


class ContentPipeline:
    """Drives one ingestion attempt per enabled brand, strictly in order.

    Every per-brand failure ends in an outcome tag. Only a failed dedup read
    escapes, aborting the whole run.
    """

    def __init__(
        self,
        settings: Settings,
        *,
        search: SearchProvider,
        repository: ContentRepository,
        engines: EnginePool,
        notifier: NotificationWriter,
        rng: Optional[random.Random] = None,
        clock: Optional[Callable[[], datetime]] = None,
        slug_clock: Optional[Callable[[], int]] = None,
    ) -> None:
        self._settings = settings
        self._search = search
        self._repository = repository
        self._engines = engines
        self._notifier = notifier
        self._deduplicator = SourceDeduplicator(repository)
        self._slugs = SlugAllocator(repository, clock=slug_clock)
        self._rng = rng or random.Random()
        self._clock = clock or _utcnow

    @property
    def engines(self) -> EnginePool:
        return self._engines

    def run(self, engine: Optional[str] = None, brands: Optional[Sequence[str]] = None) -> PipelineRun:
        started = time.monotonic()
        trace_id = str(uuid.uuid4())
        logger = get_logger(__name__)
        active = self._engines.select(engine)
        targets = [b.strip().lower() for b in brands] if brands is not None else list(self._settings.enabled_brands)
        logger.info("pipeline.start", extra={"trace_id": trace_id, "engine": active, "brands": targets})

        results: List[PipelineOutcome] = []
        for brand in targets:
            profile = self._settings.profile_for(brand)
            if profile is None:
                logger.warning("pipeline.brand.no_profile", extra={"trace_id": trace_id, "brand": brand})
                continue
            outcome = self.run_brand(brand, profile, engine=active, trace_id=trace_id)
            results.append(outcome)

        elapsed_ms = int((time.monotonic() - started) * 1000)
        run = PipelineRun(engine=active, elapsed_ms=elapsed_ms, results=results, timestamp=self._clock())
        logger.info(
            "pipeline.finished",
            extra={"trace_id": trace_id, "created_count": run.created_count, "elapsed_ms": elapsed_ms},
        )
        return run

    def run_brand(
        self,
        brand: str,
        profile: BrandProfile,
        *,
        engine: str,
        trace_id: Optional[str] = None,
    ) -> PipelineOutcome:
        logger = get_logger(__name__)
        query = self._rng.choice(profile.queries)
        category = self._rng.choice(profile.categories)
        extra: Dict[str, Any] = {"trace_id": trace_id, "brand": brand, "query": query, "engine": engine}
        logger.info("pipeline.brand.searching", extra=extra)

        candidates = self._search.search(query, int(self._settings.search_result_count))
        if not candidates:
            logger.info("pipeline.brand.no_results", extra=extra)
            return PipelineOutcome(brand=brand, status=OutcomeStatus.NO_RESULTS, query=query)

        fresh = self._deduplicator.filter(candidates, brand)
        if not fresh:
            logger.info("pipeline.brand.all_duplicates", extra={**extra, "candidates": len(candidates)})
            return PipelineOutcome(brand=brand, status=OutcomeStatus.ALL_DUPLICATES, query=query)

        source = fresh[0]
        article = self._engines.generate(source, profile.voice, category, engine=engine)
        if article is None:
            logger.warning("pipeline.brand.rewrite_failed", extra={**extra, "source_url": source.url})
            return PipelineOutcome(
                brand=brand,
                status=OutcomeStatus.REWRITE_FAILED,
                query=query,
                source=source.title,
                engine=engine,
            )

        try:
            slug = self._slugs.allocate_unique(article.title)
            draft = self._build_draft(brand, category, query, source, article, slug)
            ref = self._repository.insert(draft)
        except SQLAlchemyError as exc:
            message = _error_message(exc)
            logger.warning("pipeline.brand.insert_failed", extra={**extra, "error": message})
            return PipelineOutcome(
                brand=brand,
                status=OutcomeStatus.INSERT_FAILED,
                query=query,
                source=source.title,
                engine=article.engine,
                error=message,
            )

        self._notify(ArticleEvent(brand=brand, engine=article.engine, article=ref, source_title=source.title), extra)
        logger.info("pipeline.brand.created", extra={**extra, "slug": ref.slug, "article_id": ref.id})
        return PipelineOutcome(
            brand=brand,
            status=OutcomeStatus.CREATED,
            query=query,
            source=source.title,
            engine=article.engine,
            article=ref,
        )

    def status(self, recent_limit: int = 5) -> Dict[str, Any]:
        """Credential availability and recent generated items per enabled brand."""
        availability = self._engines.availability()
        brands: Dict[str, Any] = {}
        for brand in self._settings.enabled_brands:
            total, recent = self._repository.generated_summary(brand, limit=recent_limit)
            brands[brand] = {"total_generated": total, "recent": recent}
        has_search = self._settings.has_search_credential
        return {
            "enabled": has_search and any(availability.values()),
            "has_openai": bool(availability.get("openai")),
            "has_gemini": bool(availability.get("gemini")),
            "has_brave_search": has_search,
            "active_engine": self._engines.select(),
            "brands": brands,
        }

    def _build_draft(
        self,
        brand: str,
        category: str,
        query: str,
        source: CandidateSource,
        article: GeneratedArticle,
        slug: str,
    ) -> ContentItemDraft:
        return ContentItemDraft(
            title=article.title,
            slug=slug,
            body=article.body,
            excerpt=article.excerpt,
            brand=brand,
            category=category,
            tags=list(article.tags),
            status=ArticleStatus.PENDING_REVIEW,
            is_ai_generated=True,
            source_url=source.url,
            reading_time_minutes=estimate_reading_time(article.body),
            metadata={
                "ai_pipeline": True,
                "ai_engine": article.engine,
                "search_query": query,
                "source_title": source.title,
                "generated_at": self._clock().isoformat(),
            },
        )

    def _notify(self, event: ArticleEvent, extra: Dict[str, Any]) -> None:
        # best-effort: the inserted article is the result of record
        try:
            self._notifier.article_created(event)
        except Exception as exc:  # noqa: BLE001
            get_logger(__name__).warning("notify.failed", extra={**extra, "error": str(exc)})
