"""Payload recovery from free-text model output."""

from __future__ import annotations

import json
from typing import Any, Dict, Optional

from pydantic import ValidationError

from ingestion.models.domain import GeneratedArticle


def extract_structured_object(text: Optional[str]) -> Optional[Dict[str, Any]]:
    """Parse the outermost ``{...}`` span of ``text``.

    Handles surrounding prose and markdown code fences. Returns None when no
    object delimiters exist, the span is not valid JSON, or it is not an object.
    """
    if not text:
        return None
    start = text.find("{")
    end = text.rfind("}")
    if start == -1 or end <= start:
        return None
    try:
        data = json.loads(text[start : end + 1])
    except json.JSONDecodeError:
        return None
    return data if isinstance(data, dict) else None


def parse_article_payload(raw: Dict[str, Any], *, engine: str) -> Optional[GeneratedArticle]:
    """Validate a recovered object as a complete article; None if anything is missing."""
    fields = {key: raw.get(key) for key in ("title", "body", "excerpt", "tags")}
    if any(value is None for value in fields.values()):
        return None
    try:
        return GeneratedArticle(**fields, engine=engine)
    except ValidationError:
        return None
