"""Domain DTOs for the content ingestion pipeline."""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field, field_validator

MAX_EXCERPT_CHARS = 160


class CandidateSource(BaseModel):
    """One search result eligible for rewriting."""

    title: str
    url: str = Field(..., description="Canonical URL as returned by the search provider.")
    description: str = ""
    age: Optional[str] = None

    @field_validator("title", "url")
    @classmethod
    def _strip_required(cls, value: str) -> str:
        stripped = value.strip()
        if not stripped:
            raise ValueError("must not be blank")
        return stripped


class GeneratedArticle(BaseModel):
    """Structured article payload produced by a generation engine."""

    title: str
    body: str
    excerpt: str
    tags: List[str] = Field(..., min_length=1)
    engine: str = Field(..., description="Identifier of the engine that produced the payload.")

    @field_validator("title", "body", "excerpt", mode="before")
    @classmethod
    def _strip_text(cls, value: Any) -> Any:
        if isinstance(value, str):
            stripped = value.strip()
            if not stripped:
                raise ValueError("must not be blank")
            return stripped
        return value

    @field_validator("excerpt")
    @classmethod
    def _clamp_excerpt(cls, value: str) -> str:
        if len(value) <= MAX_EXCERPT_CHARS:
            return value
        return value[: MAX_EXCERPT_CHARS - 3].rstrip() + "..."

    @field_validator("tags")
    @classmethod
    def _clean_tags(cls, value: List[str]) -> List[str]:
        cleaned: List[str] = []
        seen: set[str] = set()
        for tag in value:
            s = (tag or "").strip()
            if not s or s.lower() in seen:
                continue
            cleaned.append(s)
            seen.add(s.lower())
        if not cleaned:
            raise ValueError("at least one tag is required")
        return cleaned


class ArticleStatus(str, Enum):
    DRAFT = "draft"
    PENDING_REVIEW = "pending_review"
    PUBLISHED = "published"
    ARCHIVED = "archived"


class ContentItemDraft(BaseModel):
    """Fully-resolved content item ready for insertion."""

    title: str
    slug: str
    body: str
    excerpt: str
    brand: str
    category: str
    tags: List[str]
    status: ArticleStatus = ArticleStatus.PENDING_REVIEW
    is_ai_generated: bool = True
    source_url: str
    reading_time_minutes: int = Field(..., ge=1)
    metadata: Dict[str, Any] = Field(default_factory=dict)


class ArticleRef(BaseModel):
    id: str
    title: str
    slug: str


class OutcomeStatus(str, Enum):
    CREATED = "created"
    NO_RESULTS = "no_results"
    ALL_DUPLICATES = "all_duplicates"
    REWRITE_FAILED = "rewrite_failed"
    INSERT_FAILED = "insert_failed"


class PipelineOutcome(BaseModel):
    """Terminal result of one brand's attempt."""

    brand: str
    status: OutcomeStatus
    query: Optional[str] = None
    source: Optional[str] = None
    engine: Optional[str] = None
    article: Optional[ArticleRef] = None
    error: Optional[str] = None


class PipelineRun(BaseModel):
    """Ordered per-brand outcomes of a whole run."""

    success: bool = True
    engine: str
    elapsed_ms: int = Field(..., ge=0)
    results: List[PipelineOutcome] = Field(default_factory=list)
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def created_count(self) -> int:
        return sum(1 for r in self.results if r.status is OutcomeStatus.CREATED)
