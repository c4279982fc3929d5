from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field, field_validator


class ManualRunRequest(BaseModel):
    brand: Optional[str] = Field(default=None, description="Only report this brand's outcome.")
    engine: Optional[str] = Field(default=None, description="Engine override for the whole run.")

    @field_validator("brand", "engine")
    @classmethod
    def _normalize(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return None
        s = value.strip().lower()
        return s or None


class RecentArticle(BaseModel):
    id: str
    title: str
    status: str
    created_at: datetime


class BrandStats(BaseModel):
    total_generated: int = 0
    recent: list[RecentArticle] = Field(default_factory=list)


class PipelineStatus(BaseModel):
    enabled: bool
    has_openai: bool
    has_gemini: bool
    has_brave_search: bool
    active_engine: str
    brands: dict[str, BrandStats] = Field(default_factory=dict)


class ErrorResponse(BaseModel):
    error: str
