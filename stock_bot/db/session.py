"""Настройка сессии базы данных."""

from typing import Any

from sqlalchemy import event
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from stock_bot.services.errors import StoreConfigurationError


def _enable_sqlite_foreign_keys(dbapi_connection: Any, _connection_record: Any) -> None:
    # Без этого SQLite не выполняет ON DELETE CASCADE для product_history
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def create_engine(database_url: str | None) -> AsyncEngine:
    """
    Создает асинхронный "движок" SQLAlchemy.

    Args:
        database_url: Строка подключения.

    Returns:
        Асинхронный движок.

    Raises:
        StoreConfigurationError: Если строка подключения не задана.
    """
    if not database_url:
        raise StoreConfigurationError("Database URL is not configured.")

    if database_url.startswith("sqlite"):
        async_engine = create_async_engine(database_url, echo=False)
        event.listen(async_engine.sync_engine, "connect", _enable_sqlite_foreign_keys)
        return async_engine

    return create_async_engine(
        database_url,
        echo=False,
        pool_pre_ping=True,  # Проверяет "живо" ли соединение перед использованием
    )


def create_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """
    Создает фабрику асинхронных сессий.

    Args:
        engine: Асинхронный движок.

    Returns:
        Фабрика, создающая новые сессии по запросу.
    """
    return async_sessionmaker(
        engine,
        autoflush=False,
        expire_on_commit=False,
        class_=AsyncSession,
    )
