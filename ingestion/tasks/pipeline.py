"""Celery task and wiring for the content pipeline."""

from __future__ import annotations

import random
import uuid
from typing import Callable, Optional, Sequence

from celery import shared_task

from ingestion.connectors.brave import BraveSearchConnector
from ingestion.connectors.brave import ProviderFn as SearchProviderFn
from ingestion.db.session import ensure_schema, get_sessionmaker, session_scope
from ingestion.models.domain import PipelineRun
from ingestion.repositories.articles import ArticleRepository, JobRunRecorder
from ingestion.services.orchestrator import ContentPipeline
from ingestion.settings import Settings, get_settings
from ingestion.utils.logging import get_logger
from llm.client.gemini_client import ProviderFn as GeminiProviderFn
from llm.client.openai_client import ProviderFn as OpenAIProviderFn
from llm.pool import EnginePool
from llm.settings import EngineSettings, get_engine_settings
from publish.notifier import NotificationSink


# Injection points for tests/offline runs; None means the real upstream.
SEARCH_PROVIDER: SearchProviderFn | None = None
OPENAI_PROVIDER: OpenAIProviderFn | None = None
GEMINI_PROVIDER: GeminiProviderFn | None = None
RNG_FACTORY: Callable[[], random.Random] | None = None


def build_pipeline(
    settings: Optional[Settings] = None,
    engine_settings: Optional[EngineSettings] = None,
) -> ContentPipeline:
    """Assemble a pipeline from configuration built once at startup."""
    config = settings or get_settings()
    engine_config = engine_settings or get_engine_settings()
    session_factory = get_sessionmaker(config)
    return ContentPipeline(
        config,
        search=BraveSearchConnector(config, provider=SEARCH_PROVIDER),
        repository=ArticleRepository(session_factory),
        engines=EnginePool.from_settings(
            engine_config,
            openai_provider=OPENAI_PROVIDER,
            gemini_provider=GEMINI_PROVIDER,
        ),
        notifier=NotificationSink(session_factory),
        rng=RNG_FACTORY() if RNG_FACTORY else None,
    )


def run_pipeline_core(
    engine: Optional[str] = None,
    brands: Optional[Sequence[str]] = None,
    *,
    pipeline: Optional[ContentPipeline] = None,
    task_name: str = "run_content_pipeline",
) -> PipelineRun:
    """Run the pipeline once and record the run; test-friendly."""
    settings = get_settings()
    ensure_schema(settings)
    pipeline = pipeline or build_pipeline(settings)
    trace_id = str(uuid.uuid4())
    logger = get_logger(__name__)
    active = pipeline.engines.select(engine)
    with session_scope(settings) as session, JobRunRecorder(
        session, task_name=task_name, engine=active, trace_id=trace_id
    ) as job:
        try:
            run = pipeline.run(engine=active, brands=brands)
        except Exception:
            logger.exception("pipeline.aborted", extra={"trace_id": trace_id, "engine": active})
            raise
        job.created_count = run.created_count
        return run


@shared_task(name="ingestion.tasks.pipeline.run_content_pipeline")
def run_content_pipeline(engine: Optional[str] = None) -> dict:  # pragma: no cover - thin Celery wrapper
    return run_pipeline_core(engine).model_dump(mode="json")
