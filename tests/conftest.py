from datetime import datetime

import pytest
import pytest_asyncio

from app.database import build_engine, init_db
from app.services import HistoryStore
from app.storage import KeyValueStorage
from app.utils.error_handler import PersistenceError


@pytest.fixture
def db_url(tmp_path):
    """Отдельный файл SQLite на каждый тест"""
    return f"sqlite+aiosqlite:///{tmp_path / 'test_bmi_history.db'}"


@pytest_asyncio.fixture
async def session_maker(db_url):
    db_engine, maker = build_engine(db_url)
    await init_db(db_engine)
    yield maker
    await db_engine.dispose()


@pytest.fixture
def storage(session_maker) -> KeyValueStorage:
    return KeyValueStorage(session_maker)


@pytest.fixture
def fixed_clock():
    return lambda: datetime(2026, 10, 19, 9, 30)


@pytest.fixture
def make_store(storage, fixed_clock):
    """Фабрика: новый HistoryStore на том же хранилище (имитация перезапуска)"""
    def factory(**kwargs) -> HistoryStore:
        kwargs.setdefault("clock", fixed_clock)
        kwargs.setdefault("key", "@bmi_history_test")
        return HistoryStore(storage, **kwargs)

    return factory


class BrokenStorage:
    """Хранилище, у которого падает каждая операция"""

    def __init__(self):
        self.calls = []

    async def get_item(self, key):
        self.calls.append(("get_item", key))
        raise PersistenceError("disk unavailable")

    async def set_item(self, key, value):
        self.calls.append(("set_item", key))
        raise PersistenceError("disk unavailable")

    async def remove_item(self, key):
        self.calls.append(("remove_item", key))
        raise PersistenceError("disk unavailable")


@pytest.fixture
def broken_storage() -> BrokenStorage:
    return BrokenStorage()
