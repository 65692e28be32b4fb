import asyncio

import pytest

from pagechat.adapters.prefs.sqlite_store import PreferenceStore
from pagechat.services.model_service import SELECTED_MODEL_KEY, ModelSelection


def _selection(store, default="mistral-nemo"):
    return ModelSelection(store, namespace="local", default_model=default)


def test_set_persists_and_survives_restart(prefs_path, scripted_llm, make_gateway):
    store = PreferenceStore(prefs_path)
    store.init_db()
    selection = _selection(store)
    asyncio.run(selection.set("modelA"))
    assert selection.get() == "modelA"

    restarted_store = PreferenceStore(prefs_path)
    restarted_store.init_db()
    restarted = _selection(restarted_store)
    llm = scripted_llm(models=["other"])

    assert asyncio.run(restarted.initialize(make_gateway(llm))) == "modelA"
    assert restarted.get() == "modelA"
    assert llm.list_calls == 0


def test_initialize_picks_first_sorted_model_and_persists_it(prefs_store, scripted_llm, make_gateway):
    selection = _selection(prefs_store)
    llm = scripted_llm(models=["qwen3", "gemma3", "llama3"])

    chosen = asyncio.run(selection.initialize(make_gateway(llm)))

    assert chosen == "gemma3"
    assert prefs_store.get("local", SELECTED_MODEL_KEY) == "gemma3"


def test_initialize_prefers_installed_default(prefs_store, scripted_llm, make_gateway):
    selection = _selection(prefs_store, default="llama3")
    llm = scripted_llm(models=["qwen3", "gemma3", "llama3"])

    assert asyncio.run(selection.initialize(make_gateway(llm))) == "llama3"


def test_no_models_leaves_selection_disabled(prefs_store, scripted_llm, make_gateway):
    selection = _selection(prefs_store)

    assert asyncio.run(selection.initialize(make_gateway(scripted_llm(models=[])))) is None
    assert selection.get() is None
    assert selection.available is False
    assert prefs_store.get("local", SELECTED_MODEL_KEY) is None


def test_external_change_is_adopted_and_fanned_out(prefs_store):
    selection = _selection(prefs_store)
    asyncio.run(selection.set("modelA"))
    heard = []
    selection.on_external_change(heard.append)

    assert selection.handle_external_change("modelB") is True
    assert selection.get() == "modelB"
    assert heard == ["modelB"]


def test_external_change_matching_current_value_is_ignored(prefs_store):
    selection = _selection(prefs_store)
    asyncio.run(selection.set("modelA"))
    heard = []
    selection.on_external_change(heard.append)

    assert selection.handle_external_change("modelA") is False
    assert heard == []


def test_local_write_in_flight_wins_over_external_change(prefs_path):
    class InterleavingStore(PreferenceStore):
        selection = None

        def set(self, namespace, key, value):
            # another instance's notification lands while our write is underway
            self.selection.handle_external_change("modelB")
            super().set(namespace, key, value)

    store = InterleavingStore(prefs_path)
    store.init_db()
    selection = _selection(store)
    store.selection = selection

    asyncio.run(selection.set("modelA"))

    assert selection.get() == "modelA"
    assert store.get("local", SELECTED_MODEL_KEY) == "modelA"


def test_change_written_by_another_instance_reaches_selection(prefs_path):
    mine = PreferenceStore(prefs_path)
    mine.init_db()
    theirs = PreferenceStore(prefs_path)
    theirs.init_db()
    selection = _selection(mine)
    asyncio.run(selection.set("modelA"))

    theirs.set("local", SELECTED_MODEL_KEY, "modelB")
    mine.poll_changes()

    assert selection.get() == "modelB"


def test_set_rejects_empty_identifier(prefs_store):
    with pytest.raises(ValueError):
        asyncio.run(_selection(prefs_store).set(""))
