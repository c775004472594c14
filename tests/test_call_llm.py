import json

import pytest
import requests

import importlib

call_llm_module = importlib.import_module("tutorial_gen.utils.call_llm")
from tutorial_gen.utils.call_llm import (
    AnthropicProvider,
    GenericProvider,
    LLMProvider,
    OpenRouterProvider,
    create_llm_provider,
    detect_llm_provider,
    load_cache,
    normalize_provider_tag,
)

PROVIDER_ENV_VARS = [
    "LLM_PROVIDER", "OPENAI_API_KEY", "GEMINI_API_KEY", "GEMINI_PROJECT_ID",
    "ANTHROPIC_API_KEY", "OPENROUTER_API_KEY", "LLM_API_BASE_URL",
]


@pytest.fixture(autouse=True)
def clean_provider_env(monkeypatch):
    for name in PROVIDER_ENV_VARS:
        monkeypatch.delenv(name, raising=False)


class ScriptedProvider(LLMProvider):
    provider_type = "scripted"
    default_model = "scripted-1"

    def __init__(self, outcomes, **kwargs):
        super().__init__(**kwargs)
        self.outcomes = list(outcomes)
        self.calls = 0

    def _generate(self, prompt, options):
        self.calls += 1
        outcome = self.outcomes.pop(0)
        if isinstance(outcome, Exception):
            raise outcome
        return outcome


class FakeResponse:
    def __init__(self, status_code=200, content="hello"):
        self.status_code = status_code
        self._content = content

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.exceptions.HTTPError(f"{self.status_code} error", response=self)

    def json(self):
        return {"choices": [{"message": {"content": self._content}}]}


@pytest.mark.parametrize("tag, expected", [
    ("openai", "openai"),
    ("OpenAI", "openai"),
    ("chatgpt", "openai"),
    ("claude", "anthropic"),
    ("ollama", "generic"),
    ("vertex", "gemini"),
    (" Gemini ", "gemini"),
])
def test_normalize_provider_tag(tag, expected):
    assert normalize_provider_tag(tag) == expected


def test_unknown_provider_tag():
    with pytest.raises(ValueError, match="Unsupported LLM provider"):
        create_llm_provider("mystery")


def test_factory_builds_generic_provider(monkeypatch):
    monkeypatch.setenv("LLM_API_BASE_URL", "http://llm.local:8080")
    provider = create_llm_provider("ollama", model="tiny")
    assert isinstance(provider, GenericProvider)
    assert provider.model == "tiny"
    assert provider.base_url == "http://llm.local:8080"


def test_factory_requires_credentials():
    with pytest.raises(ValueError, match="ANTHROPIC_API_KEY"):
        create_llm_provider("claude")


def test_factory_builds_anthropic_provider(monkeypatch):
    monkeypatch.setenv("ANTHROPIC_API_KEY", "sk-test")
    provider = create_llm_provider("anthropic")
    assert isinstance(provider, AnthropicProvider)


def test_detect_priority(monkeypatch):
    monkeypatch.setenv("OPENROUTER_API_KEY", "or")
    monkeypatch.setenv("ANTHROPIC_API_KEY", "an")
    assert detect_llm_provider() == "anthropic"


def test_explicit_provider_env_wins(monkeypatch):
    monkeypatch.setenv("ANTHROPIC_API_KEY", "an")
    monkeypatch.setenv("LLM_PROVIDER", "openrouter")
    assert detect_llm_provider() == "openrouter"


def test_detect_without_configuration():
    with pytest.raises(ValueError, match="No LLM provider configured"):
        detect_llm_provider()


def test_generic_provider_posts_chat_completion(monkeypatch):
    captured = {}

    def fake_post(url, headers=None, json=None, timeout=None):
        captured.update(url=url, headers=headers, payload=json)
        return FakeResponse(content="Hi there")

    monkeypatch.setattr(call_llm_module.requests, "post", fake_post)
    provider = GenericProvider(model="llama", base_url="http://localhost:11434/", api_key="k")

    text = provider.generate_content("Say hi", {"use_cache": False, "temperature": 0.1})

    assert text == "Hi there"
    assert captured["url"] == "http://localhost:11434/v1/chat/completions"
    assert captured["headers"]["Authorization"] == "Bearer k"
    assert captured["payload"]["model"] == "llama"
    assert captured["payload"]["temperature"] == 0.1
    assert captured["payload"]["messages"] == [{"role": "user", "content": "Say hi"}]


def test_openrouter_headers(monkeypatch):
    captured = {}

    def fake_post(url, headers=None, json=None, timeout=None):
        captured.update(url=url, headers=headers)
        return FakeResponse()

    monkeypatch.setattr(call_llm_module.requests, "post", fake_post)
    provider = OpenRouterProvider(api_key="or-key")
    provider.generate_content("p", {"use_cache": False})
    assert captured["headers"]["Authorization"] == "Bearer or-key"
    assert "X-Title" in captured["headers"]


def test_cache_hit_skips_the_vendor(tmp_path):
    cache_file = str(tmp_path / "cache.json")
    provider = ScriptedProvider(["first answer"], cache_file=cache_file, retry_wait=0)

    assert provider.generate_content("prompt") == "first answer"
    assert provider.generate_content("prompt") == "first answer"
    assert provider.calls == 1
    assert load_cache(cache_file) == {"prompt": "first answer"}


def test_use_cache_false_bypasses_cache(tmp_path):
    cache_file = tmp_path / "cache.json"
    cache_file.write_text(json.dumps({"prompt": "stale"}), encoding="utf-8")
    provider = ScriptedProvider(["fresh"], cache_file=str(cache_file), retry_wait=0)

    assert provider.generate_content("prompt", {"use_cache": False}) == "fresh"
    assert load_cache(str(cache_file)) == {"prompt": "stale"}


def test_corrupt_cache_is_treated_as_empty(tmp_path):
    cache_file = tmp_path / "cache.json"
    cache_file.write_text("{not json", encoding="utf-8")
    assert load_cache(str(cache_file)) == {}


def test_transient_errors_are_retried():
    provider = ScriptedProvider(
        [ConnectionError("reset"), TimeoutError("slow"), "ok"], max_retries=3, retry_wait=0
    )
    assert provider.generate_content("p", {"use_cache": False}) == "ok"
    assert provider.calls == 3


def test_retries_are_bounded():
    provider = ScriptedProvider([ConnectionError("a"), ConnectionError("b")], max_retries=2, retry_wait=0)
    with pytest.raises(ConnectionError, match="b"):
        provider.generate_content("p", {"use_cache": False})
    assert provider.calls == 2


def test_non_transient_errors_are_not_retried():
    provider = ScriptedProvider([KeyError("bad"), "never"], max_retries=3, retry_wait=0)
    with pytest.raises(KeyError):
        provider.generate_content("p", {"use_cache": False})
    assert provider.calls == 1


def test_http_4xx_is_not_retried_but_5xx_is(monkeypatch):
    responses = [FakeResponse(status_code=503), FakeResponse(status_code=401)]
    calls = []

    def fake_post(url, headers=None, json=None, timeout=None):
        calls.append(url)
        return responses.pop(0)

    monkeypatch.setattr(call_llm_module.requests, "post", fake_post)
    provider = GenericProvider(model="m", base_url="http://x", max_retries=5, retry_wait=0)

    with pytest.raises(requests.exceptions.HTTPError, match="401"):
        provider.generate_content("p", {"use_cache": False})
    assert len(calls) == 2


def test_none_response_is_an_error():
    provider = ScriptedProvider([None], retry_wait=0)
    with pytest.raises(ValueError, match="empty response"):
        provider.generate_content("p", {"use_cache": False})


def test_retry_settings_from_environment(monkeypatch):
    monkeypatch.setenv("LLM_MAX_RETRIES", "7")
    monkeypatch.setenv("LLM_RETRY_WAIT", "0.5")
    provider = ScriptedProvider([])
    assert provider.max_retries == 7
    assert provider.retry_wait == 0.5
