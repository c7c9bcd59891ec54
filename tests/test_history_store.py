"""Tests for HistoryStore persistence"""
import logging
from itertools import count

import pytest
import ujson

from app import engine
from app.database import build_engine, init_db
from app.schemas import HistoryEntry
from app.services import HistoryStore, StoreState, deserialize_history, serialize_history
from app.storage import KeyValueStorage
from app.utils.error_handler import PersistenceError


@pytest.mark.asyncio
async def test_load_empty_storage(make_store):
    store = make_store()
    assert store.state is StoreState.UNINITIALIZED

    entries = await store.load()

    assert entries == []
    assert store.state is StoreState.LOADED


@pytest.mark.asyncio
async def test_append_then_load_after_restart(make_store):
    """Запись переживает перезапуск и оказывается первой"""
    store = make_store()
    await store.load()
    await store.append(engine.calculate("180", "90"))
    entry = await store.append(engine.calculate("170", "65"))

    assert entry.bmi == 22.5
    assert entry.category == "Normal Weight"
    assert entry.color == "#4ade80"
    assert entry.date == "19 Oct"
    assert entry.unit == "metric"

    restarted = make_store()
    entries = await restarted.load()

    assert entries[0] == entry
    assert len(entries) == 2
    assert [e.id for e in entries] == [e.id for e in store.entries]


@pytest.mark.asyncio
async def test_append_prepends_most_recent_first(make_store):
    store = make_store()
    await store.load()
    first = await store.append(engine.calculate("170", "50"))
    second = await store.append(engine.calculate("170", "80"))
    third = await store.append(engine.calculate("170", "100"))

    assert store.entries == (third, second, first)


@pytest.mark.asyncio
async def test_ids_are_unique_even_on_collision(make_store):
    ids = iter(["dup", "dup", "dup", "other"])
    store = make_store(id_factory=lambda: next(ids))
    await store.load()

    first = await store.append(engine.calculate("170", "65"))
    second = await store.append(engine.calculate("170", "65"))

    assert first.id == "dup"
    assert second.id == "other"


@pytest.mark.asyncio
async def test_remove_entry(make_store):
    store = make_store()
    await store.load()
    keep = await store.append(engine.calculate("170", "65"))
    gone = await store.append(engine.calculate("160", "90"))

    remaining = await store.remove(gone.id)

    assert remaining == [keep]
    assert await make_store().load() == [keep]


@pytest.mark.asyncio
async def test_remove_missing_id_is_noop(make_store):
    store = make_store()
    await store.load()
    for weight in ("55", "65", "75"):
        await store.append(engine.calculate("170", weight))
    before = store.entries

    await store.remove("no-such-id")

    assert store.entries == before
    assert tuple(await make_store().load()) == before


@pytest.mark.asyncio
async def test_clear_then_load_is_empty(make_store, storage):
    store = make_store()
    await store.load()
    await store.append(engine.calculate("170", "65"))

    await store.clear()

    assert store.entries == ()
    assert await storage.get_item(store.key) is None
    assert await make_store().load() == []


@pytest.mark.asyncio
async def test_mutation_before_load_keeps_persisted_history(make_store):
    store = make_store()
    await store.load()
    old = await store.append(engine.calculate("170", "65"))

    fresh = make_store()
    new = await fresh.append(engine.calculate("180", "80"))

    assert fresh.state is StoreState.LOADED
    assert await make_store().load() == [new, old]


@pytest.mark.asyncio
async def test_corrupt_payload_falls_back_to_empty(make_store, storage, caplog):
    store = make_store()
    await storage.set_item(store.key, "{not json")

    with caplog.at_level(logging.ERROR):
        entries = await store.load()

    assert entries == []
    assert store.state is StoreState.LOADED
    assert "Stored history is not valid JSON" in caplog.text


@pytest.mark.asyncio
async def test_wrong_shape_payload_falls_back_to_empty(make_store, storage):
    store = make_store()
    await storage.set_item(store.key, ujson.dumps({"id": "x"}))
    assert await store.load() == []

    await storage.set_item(store.key, ujson.dumps([{"id": "x", "bmi": "high"}]))
    assert await store.load() == []


@pytest.mark.asyncio
async def test_loads_legacy_string_bmi_payload(make_store, storage):
    legacy = [{
        "id": "item_1760866200000_42",
        "bmi": "22.9",
        "category": "Normal Weight",
        "date": "19 Oct",
        "color": "#4ade80",
    }]
    store = make_store()
    await storage.set_item(store.key, ujson.dumps(legacy))

    entries = await store.load()

    assert entries[0].bmi == 22.9
    assert entries[0].bmi_display == "22.9"
    assert entries[0].unit is None


@pytest.mark.asyncio
async def test_storage_failure_on_load(broken_storage):
    store = HistoryStore(broken_storage, key="@k")

    assert await store.load() == []
    assert store.state is StoreState.LOADED


@pytest.mark.asyncio
async def test_storage_failure_on_save_keeps_memory(broken_storage, caplog):
    store = HistoryStore(broken_storage, key="@k")
    await store.load()

    with caplog.at_level(logging.ERROR):
        entry = await store.append(engine.calculate("170", "65"))

    assert store.entries == (entry,)
    assert ("set_item", "@k") in broken_storage.calls
    assert "Persistence error" in caplog.text

    await store.clear()
    assert store.entries == ()
    assert ("remove_item", "@k") in broken_storage.calls


def test_serialized_layout():
    ids = count(1)
    entries = [
        HistoryEntry(id=f"id-{next(ids)}", bmi=31.2, category="Obese", date="01 Jan", color="#f87171", unit="imperial"),
        HistoryEntry(id=f"id-{next(ids)}", bmi=17.0, category="Underweight", date="02 Jan", color="#38bdf8"),
    ]

    raw = ujson.loads(serialize_history(entries))

    assert raw == [
        {"id": "id-1", "bmi": 31.2, "category": "Obese", "date": "01 Jan", "color": "#f87171", "unit": "imperial"},
        {"id": "id-2", "bmi": 17.0, "category": "Underweight", "date": "02 Jan", "color": "#38bdf8"},
    ]
    assert deserialize_history(serialize_history(entries)) == entries


def test_deserialize_rejects_non_list():
    with pytest.raises(PersistenceError):
        deserialize_history('"just a string"')


@pytest.mark.asyncio
@pytest.mark.parametrize("bad_bmi", ["NaN", "Infinity"])
async def test_non_finite_legacy_bmi_is_corrupt(make_store, storage, bad_bmi):
    """Старый payload с bmi "NaN" считается битым, и следующая запись остается валидным JSON"""
    store = make_store()
    await storage.set_item(store.key, ujson.dumps([
        {"id": "item_1_1", "bmi": bad_bmi, "category": "Obese", "date": "19 Oct", "color": "#f87171"},
    ]))

    assert await store.load() == []

    entry = await store.append(engine.calculate("170", "65"))
    raw = ujson.loads(await storage.get_item(store.key))
    assert raw == [entry.model_dump(mode="json", exclude_none=True)]


@pytest.mark.asyncio
async def test_history_survives_reopening_database(db_url, fixed_clock):
    first_engine, first_maker = build_engine(db_url)
    await init_db(first_engine)
    store = HistoryStore(KeyValueStorage(first_maker), key="@k", clock=fixed_clock)
    entry = await store.append(engine.calculate("175", "70"))
    await first_engine.dispose()

    second_engine, second_maker = build_engine(db_url)
    try:
        entries = await HistoryStore(KeyValueStorage(second_maker), key="@k").load()
    finally:
        await second_engine.dispose()

    assert entries == [entry]
