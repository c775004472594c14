import pytest


class FakeLLM:
    """
    Stands in for an LLMProvider: replays canned responses in order and
    records every prompt and options dict it receives.

    A response may be an Exception instance, which is raised instead.
    """

    provider_type = "fake"
    model = "fake-model"

    def __init__(self, responses=None):
        self.responses = list(responses or [])
        self.prompts = []
        self.options = []

    @property
    def call_count(self):
        return len(self.prompts)

    def generate_content(self, prompt, options=None):
        self.prompts.append(prompt)
        self.options.append(dict(options or {}))
        if not self.responses:
            raise AssertionError("FakeLLM ran out of canned responses")
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response


@pytest.fixture
def fake_llm():
    return FakeLLM


@pytest.fixture
def files_data():
    return [
        ("src/app.py", "from engine import Engine\n\nEngine().run()\n"),
        ("src/engine.py", "class Engine:\n    def run(self):\n        return 42\n"),
        ("src/config.py", "DEBUG = True\n"),
    ]


@pytest.fixture
def abstractions():
    return [
        {"name": "Application", "description": "The entry point.", "file_indices": [0]},
        {"name": "Engine", "description": "Does the work.", "file_indices": [1]},
        {"name": "Config", "description": "Settings.", "file_indices": [2]},
    ]


@pytest.fixture(autouse=True)
def isolated_llm_files(tmp_path, monkeypatch):
    """Keep the transcript log and response cache out of the working tree."""
    monkeypatch.setenv("LOG_DIR", str(tmp_path / "logs"))
    monkeypatch.setenv("LLM_CACHE_FILE", str(tmp_path / "llm_cache.json"))
