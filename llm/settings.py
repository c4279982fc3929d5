"""Settings for the article generation engines."""

from __future__ import annotations

from functools import lru_cache
from typing import Any, Optional

from pydantic import Field, PositiveFloat, PositiveInt, SecretStr, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

ENGINE_IDS = ("openai", "gemini")


class EngineSettings(BaseSettings):
    """Environment-driven configuration for generation engines.

    Every credential is optional; an engine without one is simply unavailable.
    """

    model_config = SettingsConfigDict(
        case_sensitive=False,
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        frozen=True,
        populate_by_name=True,
    )

    openai_api_key: Optional[SecretStr] = Field(None, alias="OPENAI_API_KEY", description="OpenAI API key")
    gemini_api_key: Optional[SecretStr] = Field(None, alias="GEMINI_API_KEY", description="Google Gemini API key")
    ai_engine: Optional[str] = Field(None, alias="AI_ENGINE", description="Preferred engine (openai|gemini)")
    openai_model: str = Field("gpt-4o-mini", alias="OPENAI_MODEL", description="OpenAI model name")
    gemini_model: str = Field("gemini-2.0-flash", alias="GEMINI_MODEL", description="Gemini model name")
    generation_temperature: PositiveFloat = Field(0.8, alias="GENERATION_TEMPERATURE", description="Sampling temperature")
    generation_max_tokens: PositiveInt = Field(1000, alias="GENERATION_MAX_TOKENS", description="Max output tokens")
    generation_timeout_seconds: PositiveInt = Field(
        30,
        alias="GENERATION_TIMEOUT_SECONDS",
        description="Per-call timeout in seconds",
    )

    @field_validator("openai_api_key", "gemini_api_key", mode="before")
    @classmethod
    def _blank_key_is_absent(cls, v: Any) -> Any:
        if isinstance(v, str) and not v.strip():
            return None
        return v

    @field_validator("ai_engine", mode="before")
    @classmethod
    def _normalize_engine(cls, v: Any) -> Any:
        if v is None:
            return None
        s = str(v).strip().lower()
        if not s:
            return None
        if s not in ENGINE_IDS:
            raise ValueError(f"AI_ENGINE must be one of {', '.join(ENGINE_IDS)}")
        return s

    def api_key_for(self, engine: str) -> Optional[str]:
        secret = {"openai": self.openai_api_key, "gemini": self.gemini_api_key}.get(engine)
        if secret is None:
            return None
        value = secret.get_secret_value().strip()
        return value or None


@lru_cache()
def get_engine_settings() -> EngineSettings:
    try:
        return EngineSettings()
    except ValidationError as exc:
        raise RuntimeError(f"Engine settings validation failed: {exc}") from exc


def reset_engine_settings_cache() -> None:
    get_engine_settings.cache_clear()  # type: ignore[attr-defined]
