"""Async key-value storage on top of the local SQLite database"""
import logging
from typing import Optional

from sqlalchemy import delete
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import async_sessionmaker

from app.database import async_session_maker
from app.models import StorageItem
from app.utils.error_handler import PersistenceError

logger = logging.getLogger(__name__)


class KeyValueStorage:
    """String values under string keys. Every failure is raised as PersistenceError."""

    def __init__(self, session_maker: async_sessionmaker = async_session_maker):
        self._session_maker = session_maker

    async def get_item(self, key: str) -> Optional[str]:
        """Возвращает значение по ключу или None"""
        try:
            async with self._session_maker() as session:
                item = await session.get(StorageItem, key)
                return item.value if item is not None else None
        except (SQLAlchemyError, OSError) as e:
            raise PersistenceError(f"Could not read {key!r}", details={"key": key}) from e

    async def set_item(self, key: str, value: str) -> None:
        """Создает или перезаписывает значение по ключу"""
        try:
            async with self._session_maker() as session:
                item = await session.get(StorageItem, key)
                if item is None:
                    session.add(StorageItem(key=key, value=value))
                else:
                    item.value = value
                await session.commit()
        except (SQLAlchemyError, OSError) as e:
            raise PersistenceError(f"Could not write {key!r}", details={"key": key}) from e

        logger.debug("Stored %d chars under %s", len(value), key)

    async def remove_item(self, key: str) -> None:
        """Удаляет ключ. Отсутствующий ключ не является ошибкой"""
        try:
            async with self._session_maker() as session:
                result = await session.execute(delete(StorageItem).where(StorageItem.key == key))
                await session.commit()
        except (SQLAlchemyError, OSError) as e:
            raise PersistenceError(f"Could not remove {key!r}", details={"key": key}) from e

        logger.debug("Removed %d rows under %s", result.rowcount, key)
