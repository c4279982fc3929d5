"""Google Gemini engine via the google-genai SDK."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional

from llm.client.base import GenerationEngine, PermanentLLMError, TransientLLMError
from llm.settings import EngineSettings, get_engine_settings


ProviderFn = Callable[[Dict[str, Any]], Dict[str, Any]]


@dataclass(frozen=True)
class GeminiEngine(GenerationEngine):
    settings: EngineSettings
    provider: Optional[ProviderFn] = None

    name = "gemini"

    @classmethod
    def from_env(cls, provider: Optional[ProviderFn] = None) -> "GeminiEngine":
        return cls(get_engine_settings(), provider=provider)

    def has_credential(self) -> bool:
        return self.settings.api_key_for(self.name) is not None

    def _get_provider(self, api_key: str) -> ProviderFn:
        if self.provider is not None:
            return self.provider
        try:
            from google import genai  # type: ignore
            from google.genai import types  # type: ignore
        except ImportError as exc:  # pragma: no cover - tests inject a provider
            raise PermanentLLMError("google-genai library is not installed.") from exc

        client = genai.Client(
            api_key=api_key,
            http_options=types.HttpOptions(timeout=int(self.settings.generation_timeout_seconds) * 1000),
        )

        def _call(payload: Dict[str, Any]) -> Dict[str, Any]:  # pragma: no cover - network
            resp = client.models.generate_content(
                model=payload["model"],
                contents=payload["contents"],
                config=types.GenerateContentConfig(**payload["config"]),
            )
            return {"text": resp.text}

        return _call

    def _build_payload(self, prompt: str) -> Dict[str, Any]:
        return {
            "model": self.settings.gemini_model,
            "contents": prompt,
            "config": {
                "temperature": float(self.settings.generation_temperature),
                "max_output_tokens": int(self.settings.generation_max_tokens),
            },
        }

    def complete(self, prompt: str) -> str:
        api_key = self.settings.api_key_for(self.name)
        if api_key is None:
            raise PermanentLLMError("GEMINI_API_KEY is not set.")
        provider = self._get_provider(api_key)
        try:
            resp = provider(self._build_payload(prompt))
        except PermanentLLMError:
            raise
        except Exception as exc:
            raise TransientLLMError(f"Gemini call failed: {exc}") from exc

        text = (resp.get("text") or "").strip()
        if not text:
            raise TransientLLMError("Gemini returned an empty response.")
        return text
