"""Slug derivation and uniqueness against the content repository."""

from __future__ import annotations

import re
import time
from typing import Callable, Optional, Protocol

MAX_SLUG_LENGTH = 80

_NON_ALNUM = re.compile(r"[^a-z0-9]+")
_BASE36 = "0123456789abcdefghijklmnopqrstuvwxyz"


class SlugIndex(Protocol):
    def slug_exists(self, slug: str) -> bool: ...  # noqa: D401


def slugify(title: str, max_length: int = MAX_SLUG_LENGTH) -> str:
    """Lowercase, collapse non-alphanumeric runs to '-', trim, truncate."""
    slug = _NON_ALNUM.sub("-", title.lower()).strip("-")
    return slug[:max_length].rstrip("-")


def to_base36(value: int) -> str:
    if value < 0:
        raise ValueError("value must be non-negative")
    if value == 0:
        return "0"
    digits = []
    while value:
        value, rem = divmod(value, 36)
        digits.append(_BASE36[rem])
    return "".join(reversed(digits))


def _millis() -> int:
    return int(time.time() * 1000)


class SlugAllocator:
    """Derives a slug from a title and guarantees it is free in the repository."""

    def __init__(self, index: SlugIndex, *, clock: Optional[Callable[[], int]] = None) -> None:
        self._index = index
        self._clock = clock or _millis

    def allocate(self, title: str) -> str:
        return slugify(title)

    def ensure_unique(self, candidate: str) -> str:
        # the timestamp suffix is unique per call at millisecond granularity
        suffix = to_base36(self._clock())
        if not candidate:
            return suffix
        if self._index.slug_exists(candidate):
            return f"{candidate}-{suffix}"
        return candidate

    def allocate_unique(self, title: str) -> str:
        return self.ensure_unique(self.allocate(title))
