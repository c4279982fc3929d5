from __future__ import annotations

import sys
from pathlib import Path
from typing import Any, Dict

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker

ROOT = Path(__file__).resolve().parents[1]

if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from ingestion.db.models import Base  # noqa: E402
from ingestion.settings import Settings  # noqa: E402

_ENV_KEYS = (
    "OPENAI_API_KEY",
    "GEMINI_API_KEY",
    "AI_ENGINE",
    "BRAVE_SEARCH_API_KEY",
    "ENABLED_BRANDS",
    "BRAND_PROFILES",
    "POSTGRES_DSN",
)


@pytest.fixture(autouse=True)
def _isolate_env(monkeypatch):
    for key in _ENV_KEYS:
        monkeypatch.delenv(key, raising=False)
    yield


@pytest.fixture()
def session_factory(tmp_path: Path) -> sessionmaker[Session]:
    engine = create_engine(f"sqlite:///{tmp_path / 'content.db'}", future=True)
    Base.metadata.create_all(bind=engine)
    return sessionmaker(bind=engine, expire_on_commit=False, future=True)


@pytest.fixture()
def make_settings(tmp_path: Path):
    def _make(**overrides: Any) -> Settings:
        values: Dict[str, Any] = {
            "postgres_dsn": f"sqlite:///{tmp_path / 'content.db'}",
            "brave_search_api_key": "brave-test",
            "enabled_brands": ["saucewire"],
        }
        values.update(overrides)
        return Settings(**values)

    return _make


@pytest.fixture()
def pipeline_env(tmp_path: Path, monkeypatch):
    """Environment-driven wiring with offline providers for search and OpenAI."""
    from ingestion.settings import reset_settings_cache
    from ingestion.tasks import pipeline as pipeline_module
    from llm.settings import reset_engine_settings_cache

    monkeypatch.setenv("POSTGRES_DSN", f"sqlite:///{tmp_path / 'pipeline.db'}")
    monkeypatch.setenv("BRAVE_SEARCH_API_KEY", "brave-test")
    monkeypatch.setenv("OPENAI_API_KEY", "sk-test")
    monkeypatch.setenv("ENABLED_BRANDS", '["saucewire", "trapglow"]')
    reset_settings_cache()
    reset_engine_settings_cache()

    calls: Dict[str, list] = {"search": [], "openai": []}

    def search(query: str, count: int):
        calls["search"].append((query, count))
        slot = len(calls["search"])
        return [{"title": f"Story {slot}", "url": f"https://ex.com/{slot}", "description": "d"}]

    def openai(payload: Dict[str, Any]):
        calls["openai"].append(payload)
        slot = len(calls["openai"])
        content = (
            '{"title": "Generated story %d", "body": "Some body text here.", '
            '"excerpt": "Short.", "tags": ["news"]}' % slot
        )
        return {"choices": [{"message": {"content": content}}]}

    monkeypatch.setattr(pipeline_module, "SEARCH_PROVIDER", search)
    monkeypatch.setattr(pipeline_module, "OPENAI_PROVIDER", openai)
    yield calls
    reset_settings_cache()
    reset_engine_settings_cache()
