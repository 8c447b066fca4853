"""Конфигурация и фикстуры для тестов Pytest."""

from collections.abc import AsyncGenerator

import pytest
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker
from sqlmodel import SQLModel

from stock_bot.db import models  # noqa: F401
from stock_bot.db.session import create_engine, create_session_factory
from stock_bot.services.inventory import InventoryState

# Используем асинхронный драйвер для SQLite для тестов
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


@pytest.fixture
async def engine() -> AsyncGenerator[AsyncEngine, None]:
    """
    Фикстура для создания асинхронного движка БД со всеми таблицами.

    Каждый тест получает собственную базу в памяти.
    """
    async_engine = create_engine(TEST_DATABASE_URL)
    async with async_engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)

    yield async_engine

    await async_engine.dispose()


@pytest.fixture
def session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """
    Фикстура, создающая фабрику сессий для тестов.
    """
    return create_session_factory(engine)


@pytest.fixture
async def session(
    session_factory: async_sessionmaker[AsyncSession],
) -> AsyncGenerator[AsyncSession, None]:
    """
    Фикстура, предоставляющая сессию БД для проверок внутри теста.
    """
    async with session_factory() as db_session:
        yield db_session


@pytest.fixture
async def inventory(
    session_factory: async_sessionmaker[AsyncSession],
) -> InventoryState:
    """
    Фикстура с загруженным (пустым) состоянием склада.
    """
    state = InventoryState(session_factory)
    await state.load()
    return state
