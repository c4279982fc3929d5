"""Content repository: source/slug lookups, inserts, and run records."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Iterable, List, Sequence, Tuple

from sqlalchemy import func, select
from sqlalchemy.orm import Session, sessionmaker

from ingestion.db.models import Article, JobRun, JobStage, JobStatus
from ingestion.models.domain import ArticleRef, ContentItemDraft


def get_existing_source_urls(session: Session, urls: Iterable[str]) -> set[str]:
    stmt = select(Article.source_url).where(Article.source_url.in_(list(urls)))
    return {row[0] for row in session.execute(stmt)}


def slug_taken(session: Session, slug: str) -> bool:
    stmt = select(Article.id).where(Article.slug == slug).limit(1)
    return session.execute(stmt).first() is not None


def save_article(session: Session, draft: ContentItemDraft) -> Article:
    entity = Article(
        title=draft.title,
        slug=draft.slug,
        body=draft.body,
        excerpt=draft.excerpt,
        brand=draft.brand,
        category=draft.category,
        tags=list(draft.tags),
        status=draft.status,
        is_ai_generated=draft.is_ai_generated,
        source_url=draft.source_url,
        reading_time_minutes=draft.reading_time_minutes,
        meta=dict(draft.metadata),
    )
    session.add(entity)
    session.flush()
    return entity


class ArticleRepository:
    """Content repository backed by a SQLAlchemy sessionmaker.

    Each method runs in its own short transaction; nothing spans pipeline steps.
    """

    def __init__(self, session_factory: sessionmaker[Session]) -> None:
        self._session_factory = session_factory

    def existing_source_urls(self, urls: Sequence[str]) -> set[str]:
        if not urls:
            return set()
        with self._session_factory() as session:
            return get_existing_source_urls(session, urls)

    def slug_exists(self, slug: str) -> bool:
        with self._session_factory() as session:
            return slug_taken(session, slug)

    def insert(self, draft: ContentItemDraft) -> ArticleRef:
        """Insert and commit; constraint violations propagate to the caller."""
        with self._session_factory() as session:
            try:
                entity = save_article(session, draft)
                session.commit()
            except Exception:
                session.rollback()
                raise
            return ArticleRef(id=str(entity.id), title=entity.title, slug=entity.slug)

    def generated_summary(self, brand: str, limit: int = 5) -> Tuple[int, List[dict[str, Any]]]:
        """Count of generated items for a brand plus the most recent ones."""
        with self._session_factory() as session:
            total = session.scalar(
                select(func.count(Article.id)).where(Article.brand == brand, Article.is_ai_generated.is_(True))
            )
            rows = session.execute(
                select(Article)
                .where(Article.brand == brand, Article.is_ai_generated.is_(True))
                .order_by(Article.created_at.desc())
                .limit(limit)
            ).scalars()
            recent = [
                {
                    "id": str(row.id),
                    "title": row.title,
                    "status": row.status.value,
                    "created_at": row.created_at,
                }
                for row in rows
            ]
        return int(total or 0), recent


class JobRunRecorder:
    """Context manager recording one pipeline run's lifecycle."""

    def __init__(
        self,
        session: Session,
        *,
        stage: JobStage = JobStage.INGEST,
        task_name: str,
        engine: str | None = None,
        trace_id: str | None = None,
    ) -> None:
        self._session = session
        self._job = JobRun(
            stage=stage,
            status=JobStatus.RUNNING,
            task_name=task_name,
            engine=engine,
            trace_id=trace_id,
            started_at=datetime.now(timezone.utc),
        )

    def __enter__(self) -> JobRun:
        self._session.add(self._job)
        # durable RUNNING record even if the run later fails
        self._session.commit()
        return self._job

    def __exit__(self, exc_type, exc, tb) -> None:  # noqa: ANN001
        if exc is None:
            self._job.status = JobStatus.SUCCEEDED
        else:
            self._job.status = JobStatus.FAILED
            self._job.error_message = str(exc)[:512]
        self._job.finished_at = datetime.now(timezone.utc)
        self._session.add(self._job)
        try:
            self._session.commit()
        except Exception:  # pragma: no cover - never mask the original error
            self._session.rollback()
