"""Brave web search connector (provider-injected for tests/offline)."""

from __future__ import annotations

from typing import Any, Callable, Dict, List, Optional

import httpx

from ingestion.settings import Settings, get_settings

from .base import BaseSearchConnector, PermanentError, TransientError


ProviderFn = Callable[[str, int], List[Dict[str, Any]]]


class BraveSearchConnector(BaseSearchConnector):
    """Connector for the Brave web search API.

    - provider injected: offline mode, the callable supplies raw results
    - no provider: real HTTP call, restricted to the configured freshness window
    """

    source = "brave"

    def __init__(self, settings: Optional[Settings] = None, provider: Optional[ProviderFn] = None):
        self._settings = settings
        self._provider = provider

    def _search_raw(self, query: str, count: int) -> List[Dict[str, Any]]:
        if self._provider is not None:
            return self._provider(query, count)

        cfg = self._settings or get_settings()
        if not cfg.has_search_credential:
            raise PermanentError("BRAVE_SEARCH_API_KEY is not set.")

        headers = {
            "X-Subscription-Token": cfg.brave_search_api_key.get_secret_value(),  # type: ignore[union-attr]
            "Accept": "application/json",
        }
        params = {
            "q": query,
            "count": count,
            "freshness": cfg.brave_search_freshness,
            "text_decorations": "false",
        }
        try:
            resp = httpx.get(
                cfg.brave_search_endpoint,
                headers=headers,
                params=params,
                timeout=float(cfg.brave_search_timeout_seconds),
            )
        except httpx.TimeoutException as exc:
            raise TransientError("Brave search timed out") from exc
        except httpx.HTTPError as exc:
            raise TransientError(f"Brave search transport error: {exc}") from exc

        if resp.status_code == 429 or resp.status_code >= 500:
            raise TransientError(f"Brave search temporary failure: {resp.status_code}")
        if resp.status_code >= 400:
            raise PermanentError(f"Brave search failed: {resp.status_code}")

        try:
            data = resp.json()
        except ValueError as exc:
            raise TransientError("Brave search returned a non-JSON body") from exc
        if not isinstance(data, dict):
            raise TransientError("Brave search returned an unexpected payload")
        web = data.get("web") or {}
        if not isinstance(web, dict):
            raise TransientError("Brave search returned an unexpected web block")
        results = web.get("results") or []
        if not isinstance(results, list):
            raise TransientError("Brave search returned unexpected results")
        return results
