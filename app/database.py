"""Async database connection и session management"""
from typing import Tuple

from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, create_async_engine, async_sessionmaker
from sqlalchemy.pool import NullPool

from app.models.base import meta
from settings.config import AppConfig


def build_engine(db_url: str) -> Tuple[AsyncEngine, async_sessionmaker]:
    """Создает engine и фабрику сессий для заданного URL"""
    db_engine = create_async_engine(
        db_url,
        echo=AppConfig.DEBUG,
        future=True,
        poolclass=NullPool,  # SQLite file on the device, one connection per session
    )
    session_maker = async_sessionmaker(
        db_engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autocommit=False,
        autoflush=False,
    )
    return db_engine, session_maker


# Default engine for the configured database
engine, async_session_maker = build_engine(AppConfig.DB_URL)


async def init_db(db_engine: AsyncEngine = engine) -> None:
    """Создает таблицы, если их еще нет"""
    async with db_engine.begin() as conn:
        await conn.run_sync(meta.create_all)

