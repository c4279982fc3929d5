from __future__ import annotations

from typing import Any, Dict

import pytest

from ingestion.models.domain import CandidateSource
from llm.client.base import PermanentLLMError, TransientLLMError
from llm.client.gemini_client import GeminiEngine
from llm.client.openai_client import OpenAIEngine
from llm.settings import EngineSettings

SOURCE = CandidateSource(title="Producer drops free drum kit", url="https://ex.com/kit", description="Free kit")
ARTICLE = '{"title": "Free Kit Alert", "body": "Body", "excerpt": "Grab it.", "tags": ["samples"]}'


def _openai_response(content: str) -> Dict[str, Any]:
    return {"choices": [{"message": {"content": content}}]}


def test_openai_payload_and_success():
    seen: Dict[str, Any] = {}

    def provider(payload: Dict[str, Any]) -> Dict[str, Any]:
        seen.update(payload)
        return _openai_response(f"```json\n{ARTICLE}\n```")

    engine = OpenAIEngine(EngineSettings(openai_api_key="sk-test", openai_model="gpt-test"), provider=provider)

    article = engine.try_generate(SOURCE, "Technical but accessible.", "Samples")

    assert article is not None
    assert article.title == "Free Kit Alert"
    assert article.engine == "openai"
    assert seen["model"] == "gpt-test"
    assert seen["max_tokens"] == 1000
    prompt = seen["messages"][0]["content"]
    assert "Technical but accessible." in prompt
    assert "https://ex.com/kit" in prompt
    assert "Category: Samples" in prompt


def test_openai_without_key_raises_permanent():
    engine = OpenAIEngine(EngineSettings(), provider=lambda payload: _openai_response(ARTICLE))

    assert engine.has_credential() is False
    with pytest.raises(PermanentLLMError):
        engine.complete("prompt")


def test_openai_empty_answer_is_transient():
    engine = OpenAIEngine(EngineSettings(openai_api_key="sk-test"), provider=lambda payload: _openai_response("  "))

    with pytest.raises(TransientLLMError):
        engine.complete("prompt")


def test_openai_provider_exception_becomes_none():
    def provider(payload):
        raise ConnectionError("reset by peer")

    engine = OpenAIEngine(EngineSettings(openai_api_key="sk-test"), provider=provider)

    with pytest.raises(TransientLLMError):
        engine.complete("prompt")
    assert engine.try_generate(SOURCE, "voice", "News") is None


def test_gemini_payload_and_success():
    seen: Dict[str, Any] = {}

    def provider(payload: Dict[str, Any]) -> Dict[str, Any]:
        seen.update(payload)
        return {"text": f"Sure! {ARTICLE}"}

    engine = GeminiEngine(EngineSettings(gemini_api_key="g-test"), provider=provider)

    article = engine.try_generate(SOURCE, "voice", "Gear")

    assert article is not None
    assert article.engine == "gemini"
    assert seen["model"] == "gemini-2.0-flash"
    assert seen["config"] == {"temperature": 0.8, "max_output_tokens": 1000}


def test_gemini_incomplete_payload_is_none():
    engine = GeminiEngine(
        EngineSettings(gemini_api_key="g-test"),
        provider=lambda payload: {"text": '{"title": "Only a title"}'},
    )

    assert engine.try_generate(SOURCE, "voice", "Gear") is None


def test_gemini_without_key_is_none():
    engine = GeminiEngine(EngineSettings(), provider=lambda payload: {"text": ARTICLE})

    assert engine.try_generate(SOURCE, "voice", "Gear") is None


def test_from_env_reads_engine_settings(monkeypatch):
    from llm.settings import reset_engine_settings_cache

    monkeypatch.setenv("GEMINI_API_KEY", "g-env")
    reset_engine_settings_cache()

    assert GeminiEngine.from_env().has_credential() is True
    assert OpenAIEngine.from_env().has_credential() is False
    reset_engine_settings_cache()
