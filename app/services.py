"""История расчетов BMI: загрузка, добавление, удаление, очистка"""
import logging
from datetime import datetime
from enum import Enum
from typing import Callable, List, Optional, Tuple
from uuid import uuid4

import ujson
from pydantic import TypeAdapter, ValidationError as PydanticValidationError

from app.schemas import BMIResult, HistoryEntry
from app.storage import KeyValueStorage
from app.utils.error_handler import PersistenceError, handle_persistence_errors
from settings.config import AppConfig

logger = logging.getLogger(__name__)

_entries_adapter = TypeAdapter(List[HistoryEntry])


class StoreState(str, Enum):
    UNINITIALIZED = "uninitialized"
    LOADED = "loaded"


def serialize_history(entries) -> str:
    """Сериализует список записей в JSON-массив"""
    return ujson.dumps(
        [entry.model_dump(mode="json", exclude_none=True) for entry in entries],
        ensure_ascii=False,
    )


def deserialize_history(payload: str) -> List[HistoryEntry]:
    """Разбирает JSON-массив записей. Битый payload -> PersistenceError"""
    try:
        raw = ujson.loads(payload)
    except ValueError as e:
        raise PersistenceError("Stored history is not valid JSON") from e

    if not isinstance(raw, list):
        raise PersistenceError("Stored history is not a list", details={"type": type(raw).__name__})

    try:
        return _entries_adapter.validate_python(raw)
    except PydanticValidationError as e:
        raise PersistenceError("Stored history has invalid entries") from e


class HistoryStore:
    """
    Ordered, most-recent-first list of past calculations.

    The in-memory list is the source of truth for rendering; every mutation
    writes the whole list back under a single storage key. Write failures are
    logged and the in-memory list is kept as mutated.
    """

    def __init__(
        self,
        storage: KeyValueStorage,
        key: Optional[str] = None,
        clock: Callable[[], datetime] = datetime.now,
        id_factory: Callable[[], str] = lambda: str(uuid4()),
        date_format: Optional[str] = None,
    ):
        self._storage = storage
        self.key = key or AppConfig.HISTORY_STORAGE_KEY
        self._clock = clock
        self._id_factory = id_factory
        self._date_format = date_format or AppConfig.HISTORY_DATE_FORMAT
        self._entries: List[HistoryEntry] = []
        self.state = StoreState.UNINITIALIZED

    @property
    def entries(self) -> Tuple[HistoryEntry, ...]:
        """Read-only snapshot for the presentation layer"""
        return tuple(self._entries)

    async def load(self) -> List[HistoryEntry]:
        """Читает историю из хранилища. Пусто или ошибка -> пустой список"""
        self._entries = await self._read()
        self.state = StoreState.LOADED
        logger.info("Loaded %d history entries", len(self._entries))
        return list(self._entries)

    async def append(self, result: BMIResult) -> HistoryEntry:
        """Добавляет результат в начало истории и сохраняет весь список"""
        await self._ensure_loaded()

        entry = HistoryEntry(
            id=self._new_id(),
            bmi=result.bmi,
            category=result.category,
            date=self._clock().strftime(self._date_format),
            color=result.color,
            unit=result.unit,
        )
        self._entries = [entry, *self._entries]
        await self._write()

        logger.info("Appended history entry %s (bmi=%s)", entry.id, entry.bmi_display)
        return entry

    async def remove(self, entry_id: str) -> List[HistoryEntry]:
        """Удаляет запись по id. Отсутствующий id не является ошибкой"""
        await self._ensure_loaded()

        remaining = [entry for entry in self._entries if entry.id != entry_id]
        if len(remaining) == len(self._entries):
            logger.debug("History entry %s not found, nothing to remove", entry_id)
        self._entries = remaining
        await self._write()
        return list(self._entries)

    async def clear(self) -> None:
        """Очищает историю и удаляет сохраненную запись целиком"""
        self._entries = []
        self.state = StoreState.LOADED
        await self._delete()
        logger.info("History cleared")

    async def _ensure_loaded(self) -> None:
        # Never overwrite a persisted history with a list that was not read yet
        if self.state is StoreState.UNINITIALIZED:
            await self.load()

    def _new_id(self) -> str:
        existing = {entry.id for entry in self._entries}
        entry_id = self._id_factory()
        while entry_id in existing:
            entry_id = self._id_factory()
        return entry_id

    @handle_persistence_errors(fallback=list)
    async def _read(self) -> List[HistoryEntry]:
        payload = await self._storage.get_item(self.key)
        if payload is None:
            return []
        return deserialize_history(payload)

    @handle_persistence_errors()
    async def _write(self) -> None:
        await self._storage.set_item(self.key, serialize_history(self._entries))

    @handle_persistence_errors()
    async def _delete(self) -> None:
        await self._storage.remove_item(self.key)
