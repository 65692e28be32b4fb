"""Shared fixtures: a scripted text-generation backend and fresh singletons per test."""
from __future__ import annotations

from typing import Callable, Iterable

import httpx
import pytest

from pagechat.adapters.llm.base import LLM
from pagechat.adapters.prefs.sqlite_store import PreferenceStore
from pagechat.services import llm_factory, model_service, page_service
from pagechat.services.gateway_service import ModelGateway
from pagechat.services.model_service import ModelSelection


class ScriptedLLM(LLM):
    """Backend double that records every call.

    `responder` maps a prompt to the completion text; returning an exception
    instance makes the call fail with it.
    """

    def __init__(
        self,
        responder: Callable[[str], object] | None = None,
        models: Iterable[str] = (),
    ) -> None:
        self.responder = responder or (lambda prompt: f"summary #{len(self.prompts)}")
        self.models = list(models)
        self.prompts: list[str] = []
        self.model_ids: list[str] = []
        self.list_calls = 0

    async def generate(self, prompt: str, model: str, timeout: float | None = None) -> str:
        self.prompts.append(prompt)
        self.model_ids.append(model)
        result = self.responder(prompt)
        if isinstance(result, Exception):
            raise result
        return str(result)

    async def list_models(self) -> list[str]:
        self.list_calls += 1
        return sorted(self.models)


def connect_error() -> httpx.ConnectError:
    return httpx.ConnectError("connection refused", request=httpx.Request("POST", "http://localhost:11434/api/generate"))


@pytest.fixture
def scripted_llm() -> Callable[..., ScriptedLLM]:
    return ScriptedLLM


@pytest.fixture
def make_gateway() -> Callable[[ScriptedLLM], ModelGateway]:
    return lambda llm: ModelGateway(llm)


@pytest.fixture
def failing_call() -> Callable[[], httpx.ConnectError]:
    return connect_error


@pytest.fixture
def prefs_path(tmp_path) -> str:
    return str(tmp_path / "prefs.sqlite3")


@pytest.fixture
def prefs_store(prefs_path) -> PreferenceStore:
    store = PreferenceStore(prefs_path)
    store.init_db()
    return store


@pytest.fixture(autouse=True)
def _fresh_singletons(monkeypatch):
    monkeypatch.setattr(llm_factory, "_gateway", None)
    monkeypatch.setattr(model_service, "_selection", None)
    monkeypatch.setattr(page_service, "_registry", None)


@pytest.fixture
def wire_app(monkeypatch, prefs_store):
    """Install a scripted gateway and a selection on `model_id` for API tests."""

    def _wire(llm: ScriptedLLM, model_id: str | None = "llama3") -> ModelSelection:
        llm_factory.set_gateway(ModelGateway(llm))
        selection = ModelSelection(prefs_store, namespace="local", default_model="mistral-nemo")
        if model_id:
            prefs_store.set("local", model_service.SELECTED_MODEL_KEY, model_id)
            selection.handle_external_change(model_id)
        model_service.set_selection(selection)
        return selection

    return _wire
