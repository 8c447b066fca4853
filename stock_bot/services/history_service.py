"""Журнал изменений остатков товаров."""

from collections.abc import Sequence

from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from stock_bot.db.models import ChangeType, StockLog


async def log_stock_change(
    session: AsyncSession,
    product_id: int,
    old_quantity: int,
    new_quantity: int,
    change_type: ChangeType,
) -> StockLog:
    """
    Добавляет запись об изменении остатка.

    Записывается отдельным коммитом, уже после сохранения самого товара.

    Args:
        session: Сессия базы данных.
        product_id: ID товара.
        old_quantity: Остаток до изменения.
        new_quantity: Остаток после изменения.
        change_type: Тип изменения.

    Returns:
        Созданная запись журнала.
    """
    entry = StockLog(
        product_id=product_id,
        old_quantity=old_quantity,
        new_quantity=new_quantity,
        change_type=change_type,
    )
    session.add(entry)
    await session.commit()
    await session.refresh(entry)
    return entry


async def get_product_history(
    session: AsyncSession, product_id: int
) -> Sequence[StockLog]:
    """
    Возвращает журнал остатков товара, новые записи первыми.

    Args:
        session: Сессия базы данных.
        product_id: ID товара.

    Returns:
        Последовательность записей StockLog.
    """
    statement = (
        select(StockLog)
        .where(StockLog.product_id == product_id)
        .order_by(StockLog.created_at.desc(), StockLog.id.desc())  # type: ignore[attr-defined, union-attr]
    )
    result = await session.execute(statement)
    return result.scalars().all()
