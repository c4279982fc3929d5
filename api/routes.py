from __future__ import annotations

from typing import Annotated, Any, Callable, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.responses import JSONResponse

from ingestion.db.session import ensure_schema
from ingestion.models.domain import PipelineRun
from ingestion.services.orchestrator import ContentPipeline
from ingestion.tasks.pipeline import build_pipeline, run_pipeline_core
from ingestion.utils.logging import get_logger
from llm.pool import UnknownEngineError

from .models import ErrorResponse, ManualRunRequest, PipelineStatus

router = APIRouter(prefix="/api")

_ERROR_RESPONSES = {500: {"model": ErrorResponse}}

PipelineFactory = Callable[[], ContentPipeline]


def pipeline_factory() -> PipelineFactory:
    return build_pipeline


FactoryDep = Annotated[PipelineFactory, Depends(pipeline_factory)]


def _run(factory: PipelineFactory, engine: Optional[str], brands: Optional[list[str]] = None) -> PipelineRun | JSONResponse:
    logger = get_logger(__name__)
    try:
        pipeline = factory()
        if engine:
            engine = pipeline.engines.validate(engine)
    except UnknownEngineError as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc
    except Exception as exc:  # noqa: BLE001 - reported to the operator as a run error
        logger.exception("api.pipeline_setup_failed")
        return JSONResponse({"error": str(exc)}, status_code=500)
    try:
        return run_pipeline_core(engine, brands, pipeline=pipeline)
    except Exception as exc:  # noqa: BLE001 - reported to the operator as a run error
        logger.exception("api.pipeline_failed")
        return JSONResponse({"error": str(exc)}, status_code=500)


def _render(run: PipelineRun) -> dict[str, Any]:
    return run.model_dump(mode="json", exclude_none=True)


@router.get("/cron/ai-pipeline", responses=_ERROR_RESPONSES)
def cron_pipeline_route(
    factory: FactoryDep,
    engine: str | None = Query(default=None),
) -> Any:
    result = _run(factory, engine)
    if isinstance(result, JSONResponse):
        return result
    return _render(result)


@router.post("/ai-pipeline", responses=_ERROR_RESPONSES)
def manual_pipeline_route(
    factory: FactoryDep,
    payload: Optional[ManualRunRequest] = None,
) -> Any:
    payload = payload or ManualRunRequest()
    result = _run(factory, payload.engine)
    if isinstance(result, JSONResponse):
        return result
    body = _render(result)
    if payload.brand:
        body["results"] = [r for r in body["results"] if r["brand"] == payload.brand]
    return body


@router.get("/ai-pipeline", response_model=PipelineStatus, responses=_ERROR_RESPONSES)
def pipeline_status_route(factory: FactoryDep) -> Any:
    try:
        ensure_schema()
        return factory().status()
    except Exception as exc:  # noqa: BLE001 - reported to the operator as a status error
        get_logger(__name__).exception("api.status_failed")
        return JSONResponse({"error": str(exc)}, status_code=500)
