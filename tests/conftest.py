import os
import threading
from types import SimpleNamespace
from typing import Generator
from unittest.mock import patch

import pytest
from pydantic import BaseModel

from notebook_studio.app import NotebookApp
from notebook_studio.config.settings import Settings, get_settings
from notebook_studio.services.generation import GenerationClient
from notebook_studio.services.storage import DurableStore


@pytest.fixture(scope="session", autouse=True)
def mock_env() -> Generator[None, None, None]:
    """
    Mock environment variables for the entire test session.

    Tests never depend on a local .env file or a real backend.
    """
    env_vars = {
        "API_KEY": "sk-test-key",
        "BASE_URL": "https://llm.test/v1/",
        "LLM_MODEL": "test-model",
        "SCRAPER_USE_BROWSER": "false",
        "LOG_LEVEL": "DEBUG",
    }
    with patch.dict(os.environ, env_vars):
        get_settings.cache_clear()
        yield
        get_settings.cache_clear()


class FakeCompletions:
    """
    Stand-in for an Instructor-patched ``client.chat.completions``

    Queued payloads are consumed one per call:
    - an exception instance is raised
    - a callable is invoked and its return value used (lets tests block a call)
    - with ``response_model=None`` the payload is returned as message content
    - with ``response_model`` the payload is validated like Instructor does
    """

    def __init__(self):
        self.responses = []
        self.calls = []

    def queue(self, *payloads):
        self.responses.extend(payloads)

    def create(self, *, model, messages, response_model, **kwargs):
        self.calls.append({"model": model, "messages": messages, "response_model": response_model, **kwargs})
        payload = self.responses.pop(0)
        if isinstance(payload, BaseException):
            raise payload
        if callable(payload):
            payload = payload()
        if response_model is None:
            return SimpleNamespace(choices=[SimpleNamespace(message=SimpleNamespace(content=payload))])
        if isinstance(payload, str):
            return response_model.model_validate_json(payload)
        if isinstance(payload, BaseModel):
            return payload
        return response_model.model_validate(payload)

    def prompt(self, index: int = -1) -> str:
        return self.calls[index]["messages"][-1]["content"]


class FakeInstructorClient:
    def __init__(self):
        self.completions = FakeCompletions()
        self.chat = SimpleNamespace(completions=self.completions)


@pytest.fixture
def settings(tmp_path, monkeypatch) -> Settings:
    monkeypatch.setenv("DATA_DIR", str(tmp_path / "data"))
    return Settings()


@pytest.fixture
def backend() -> FakeInstructorClient:
    return FakeInstructorClient()


@pytest.fixture
def generator(settings, backend) -> GenerationClient:
    return GenerationClient(settings, client=backend)


@pytest.fixture
def store(settings) -> DurableStore:
    store = DurableStore(settings.data_dir, settings.storage_namespace)
    store.load()
    return store


@pytest.fixture
def app(settings, store, generator) -> Generator[NotebookApp, None, None]:
    app = NotebookApp(settings, store, generator, scraper=None)
    yield app
    app.close()


@pytest.fixture
def notebook_with_source(app):
    notebook = app.notebooks.create_notebook("Geography")
    app.sources.add_source(notebook.id, "Doc", "Paris is the capital of France.")
    return app.notebooks.get_notebook(notebook.id)


@pytest.fixture
def gate() -> threading.Event:
    return threading.Event()
