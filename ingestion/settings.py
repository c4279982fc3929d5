"""Configuration models for the content ingestion service."""

from __future__ import annotations

import json
from functools import lru_cache
from typing import Annotated, Any, Dict, List, Optional

from pydantic import (
    Field,
    PositiveInt,
    SecretStr,
    ValidationError,
    field_validator,
)
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict, SettingsError

from .brands import DEFAULT_BRAND_PROFILES, DEFAULT_ENABLED_BRANDS, BrandProfile

MAX_SEARCH_RESULT_COUNT = 10


class Settings(BaseSettings):
    """Environment-driven configuration for the ingestion pipeline."""

    model_config = SettingsConfigDict(
        case_sensitive=False,
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        frozen=True,
        populate_by_name=True,
    )

    postgres_dsn: str = Field(..., alias="POSTGRES_DSN", description="Content repository connection string.")
    redis_url: str = Field(
        "redis://localhost:6379/0",
        alias="INGESTION_REDIS_URL",
        description="Celery broker/backend Redis DSN.",
    )
    brave_search_api_key: Optional[SecretStr] = Field(
        None, alias="BRAVE_SEARCH_API_KEY", description="Brave Search subscription token."
    )
    brave_search_endpoint: str = Field(
        "https://api.search.brave.com/res/v1/web/search",
        alias="BRAVE_SEARCH_ENDPOINT",
        description="Brave web search endpoint.",
    )
    brave_search_timeout_seconds: PositiveInt = Field(
        10, alias="BRAVE_SEARCH_TIMEOUT_SECONDS", description="Search request timeout (seconds)."
    )
    brave_search_freshness: str = Field(
        "pd", alias="BRAVE_SEARCH_FRESHNESS", description="Recency window (pd = past day, pw = past week)."
    )
    search_result_count: PositiveInt = Field(
        5, alias="SEARCH_RESULT_COUNT", description="Candidates requested per search (<= 10)."
    )
    enabled_brands: Annotated[List[str], NoDecode] = Field(
        default_factory=lambda: list(DEFAULT_ENABLED_BRANDS),
        alias="ENABLED_BRANDS",
        description="JSON array of brands processed per run, in order.",
    )
    brand_profiles_override: Annotated[Dict[str, BrandProfile], NoDecode] = Field(
        default_factory=dict,
        alias="BRAND_PROFILES",
        description="JSON object of brand profiles merged over the built-in ones.",
    )
    pipeline_interval_minutes: PositiveInt = Field(
        360, alias="PIPELINE_INTERVAL_MINUTES", description="Celery beat cadence for the pipeline (minutes)."
    )
    pipeline_schedule_enabled: bool = Field(
        True, alias="PIPELINE_SCHEDULE_ENABLED", description="Whether Celery beat schedules the pipeline."
    )
    structlog_level: str = Field("INFO", alias="STRUCTLOG_LEVEL", description="Log level.")
    log_json: bool = Field(False, alias="LOG_JSON", description="Emit logs as JSON lines.")
    celery_worker_concurrency: PositiveInt = Field(
        1,
        alias="CELERY_WORKER_CONCURRENCY",
        description="Celery worker concurrency.",
    )
    celery_task_soft_time_limit: PositiveInt = Field(
        600,
        alias="CELERY_TASK_SOFT_TIME_LIMIT",
        description="Celery task soft time limit (seconds).",
    )

    @field_validator("brave_search_api_key", mode="before")
    @classmethod
    def _blank_key_is_absent(cls, value: Any) -> Any:
        if isinstance(value, str) and not value.strip():
            return None
        return value

    @field_validator("enabled_brands", mode="before")
    @classmethod
    def _parse_enabled_brands(cls, value: Any) -> List[Any]:
        if value in (None, ""):
            return []
        if isinstance(value, str):
            try:
                parsed = json.loads(value)
            except json.JSONDecodeError as exc:
                raise ValueError("ENABLED_BRANDS must be a JSON array.") from exc
            return parsed
        if isinstance(value, (list, tuple)):
            return list(value)
        raise ValueError("ENABLED_BRANDS must be a list.")

    @field_validator("enabled_brands")
    @classmethod
    def _normalize_brands(cls, value: List[str]) -> List[str]:
        brands: List[str] = []
        for raw in value:
            brand = raw.strip().lower()
            if not brand:
                raise ValueError("brand identifiers must not be blank.")
            if brand in brands:
                raise ValueError(f"duplicate brand in ENABLED_BRANDS: {brand}")
            brands.append(brand)
        return brands

    @field_validator("brand_profiles_override", mode="before")
    @classmethod
    def _parse_brand_profiles(cls, value: Any) -> Dict[str, Any]:
        if value in (None, "", {}):
            return {}
        if isinstance(value, str):
            try:
                value = json.loads(value)
            except json.JSONDecodeError as exc:
                raise ValueError("BRAND_PROFILES must be a JSON object.") from exc
        if not isinstance(value, dict):
            raise ValueError("BRAND_PROFILES must be an object keyed by brand.")
        return {str(key).strip().lower(): profile for key, profile in value.items()}

    @field_validator("postgres_dsn")
    @classmethod
    def _validate_postgres_dsn(cls, value: str) -> str:
        if "://" not in value:
            raise ValueError("POSTGRES_DSN must be a valid DSN string.")
        return value

    @field_validator("search_result_count")
    @classmethod
    def _validate_result_count(cls, value: int) -> int:
        if value > MAX_SEARCH_RESULT_COUNT:
            raise ValueError(f"SEARCH_RESULT_COUNT must be <= {MAX_SEARCH_RESULT_COUNT}.")
        return value

    def brand_profiles(self) -> Dict[str, BrandProfile]:
        """Built-in profiles with configured overrides applied."""
        profiles = dict(DEFAULT_BRAND_PROFILES)
        profiles.update(self.brand_profiles_override)
        return profiles

    def profile_for(self, brand: str) -> Optional[BrandProfile]:
        return self.brand_profiles().get(brand.lower())

    @property
    def has_search_credential(self) -> bool:
        return self.brave_search_api_key is not None and bool(self.brave_search_api_key.get_secret_value())


@lru_cache()
def get_settings() -> Settings:
    """Return the Settings instance built from the environment."""
    try:
        return Settings()
    except (ValidationError, SettingsError) as exc:
        raise RuntimeError(f"Environment validation failed: {exc}") from exc


def reset_settings_cache() -> None:
    """Clear the Settings LRU cache (for tests)."""
    get_settings.cache_clear()  # type: ignore[attr-defined]
