"""Which model the pipeline talks to.

`ModelSelection` owns the persisted `selectedModel` preference. A write only
becomes effective once it is persisted. Changes written by other instances
arrive through the preference store and win unless this instance is in the
middle of writing a different value itself (last writer wins).
"""

from __future__ import annotations

import asyncio
import logging
from typing import Callable

from pagechat.adapters.prefs.sqlite_store import PreferenceStore
from pagechat.core.config import settings
from pagechat.core.models import PreferenceChange
from pagechat.services.gateway_service import ModelGateway

logger = logging.getLogger(__name__)

SELECTED_MODEL_KEY = "selectedModel"
NO_MODELS_MESSAGE = "No models found. Pull a model into the local Ollama service and reload."

ChangeHandler = Callable[[str], None]


class ModelSelection:
    def __init__(
        self,
        store: PreferenceStore,
        namespace: str | None = None,
        default_model: str | None = None,
    ):
        self._store = store
        self.namespace = namespace or settings.PREFS_NAMESPACE
        self.default_model = default_model if default_model is not None else settings.OLLAMA_DEFAULT_MODEL
        self._current: str | None = None
        self._pending: str | None = None
        self._handlers: list[ChangeHandler] = []
        self._unsubscribe = store.subscribe(self.namespace, self._on_store_change)

    @property
    def store(self) -> PreferenceStore:
        return self._store

    def get(self) -> str | None:
        return self._current

    @property
    def available(self) -> bool:
        return bool(self._current)

    async def initialize(self, gateway: ModelGateway) -> str | None:
        """Load the persisted choice, or pick one from what the service has installed."""
        saved = await asyncio.to_thread(self._store.get, self.namespace, SELECTED_MODEL_KEY)
        if saved:
            self._current = saved
            logger.info("Using saved model: %s", saved)
            return saved

        models = await gateway.list_models()
        if not models:
            # Leave the selection disabled until the user or the service changes something.
            self._current = None
            logger.warning("No local models available; model selection disabled")
            return None

        models = sorted(models)
        choice = self.default_model if self.default_model in models else models[0]
        await self.set(choice)
        return choice

    async def set(self, model_id: str) -> None:
        if not model_id:
            raise ValueError("model_id is required")
        self._pending = model_id
        try:
            await asyncio.to_thread(self._store.set, self.namespace, SELECTED_MODEL_KEY, model_id)
        finally:
            if self._pending == model_id:
                self._pending = None
        self._current = model_id
        logger.info("Model switched to: %s", model_id)

    def on_external_change(self, handler: ChangeHandler) -> Callable[[], None]:
        self._handlers.append(handler)

        def remove() -> None:
            if handler in self._handlers:
                self._handlers.remove(handler)

        return remove

    def handle_external_change(self, new_value: str | None) -> bool:
        """Reconcile a value written by another instance. Returns True if it was adopted."""
        if not new_value or new_value == self._current:
            return False
        if self._pending is not None and self._pending != new_value:
            # Our own write lands after this one, so it wins.
            logger.debug("Ignoring external model %s while %s is being saved", new_value, self._pending)
            return False
        logger.info("Model changed in another instance to: %s", new_value)
        self._current = new_value
        for handler in list(self._handlers):
            handler(new_value)
        return True

    def _on_store_change(self, change: PreferenceChange) -> None:
        if change.key == SELECTED_MODEL_KEY:
            self.handle_external_change(change.new_value)

    def close(self) -> None:
        self._unsubscribe()


_selection: ModelSelection | None = None

def get_selection() -> ModelSelection:
    global _selection
    if _selection is None:
        store = PreferenceStore(settings.PREFS_DB_PATH)
        store.init_db()
        _selection = ModelSelection(store)
    return _selection

def set_selection(selection: ModelSelection | None) -> None:
    global _selection
    _selection = selection
