from __future__ import annotations

from contextlib import asynccontextmanager
from pathlib import Path

from dotenv import load_dotenv

# load the project-root .env before any settings are read
project_root = Path(__file__).parent.parent
env_path = project_root / ".env"
if env_path.exists():
    load_dotenv(env_path)

from fastapi import FastAPI

from ingestion.db.session import ensure_schema
from ingestion.settings import get_settings
from ingestion.utils.logging import configure_logging, get_logger

from .routes import router


@asynccontextmanager
async def lifespan(_: FastAPI):
    settings = get_settings()
    configure_logging(settings.structlog_level, json_enabled=settings.log_json)
    ensure_schema(settings)
    get_logger(__name__).info("api.startup", extra={"brands": settings.enabled_brands})
    yield


app = FastAPI(title="Brand Content Pipeline API", version="0.1.0", lifespan=lifespan)
app.include_router(router)


@app.get("/healthz", tags=["system"])
async def healthcheck() -> dict[str, str]:
    return {"status": "ok"}
