"""OpenAI chat-completions engine.

Provider injection replaces the SDK transport in tests; the credential check
and response handling stay identical either way.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional

from llm.client.base import GenerationEngine, PermanentLLMError, TransientLLMError
from llm.settings import EngineSettings, get_engine_settings


ProviderFn = Callable[[Dict[str, Any]], Dict[str, Any]]


@dataclass(frozen=True)
class OpenAIEngine(GenerationEngine):
    settings: EngineSettings
    provider: Optional[ProviderFn] = None

    name = "openai"

    @classmethod
    def from_env(cls, provider: Optional[ProviderFn] = None) -> "OpenAIEngine":
        return cls(get_engine_settings(), provider=provider)

    def has_credential(self) -> bool:
        return self.settings.api_key_for(self.name) is not None

    def _get_provider(self, api_key: str) -> ProviderFn:
        if self.provider is not None:
            return self.provider
        try:
            from openai import OpenAI  # type: ignore
        except ImportError as exc:  # pragma: no cover - tests inject a provider
            raise PermanentLLMError("openai library is not installed.") from exc

        client = OpenAI(
            api_key=api_key,
            timeout=float(self.settings.generation_timeout_seconds),
            max_retries=0,
        )

        def _call(payload: Dict[str, Any]) -> Dict[str, Any]:  # pragma: no cover - network
            resp = client.chat.completions.create(**payload)
            return {
                "choices": [{"message": {"content": resp.choices[0].message.content}}],
                "model": resp.model,
            }

        return _call

    def _build_payload(self, prompt: str) -> Dict[str, Any]:
        return {
            "model": self.settings.openai_model,
            "messages": [{"role": "user", "content": prompt}],
            "temperature": float(self.settings.generation_temperature),
            "max_tokens": int(self.settings.generation_max_tokens),
        }

    def complete(self, prompt: str) -> str:
        api_key = self.settings.api_key_for(self.name)
        if api_key is None:
            raise PermanentLLMError("OPENAI_API_KEY is not set.")
        provider = self._get_provider(api_key)
        try:
            resp = provider(self._build_payload(prompt))
        except PermanentLLMError:
            raise
        except Exception as exc:
            raise TransientLLMError(f"OpenAI call failed: {exc}") from exc

        choices = resp.get("choices") or [{}]
        content = (choices[0].get("message") or {}).get("content") or ""
        content = content.strip()
        if not content:
            raise TransientLLMError("OpenAI returned an empty response.")
        return content
