"""Сервисный слой доступа к таблицам товаров и категорий."""

from collections.abc import Sequence

from sqlalchemy import delete
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from stock_bot.db.models import Category, Product, ProductDraft
from stock_bot.services.errors import ProductNotFoundError

# Поля, которые заменяются при полном редактировании товара
EDITABLE_FIELDS = (
    "name",
    "company",
    "category",
    "quantity",
    "purchase_price",
    "selling_price",
    "barcode",
    "image",
)


async def create_product(session: AsyncSession, draft: ProductDraft) -> Product:
    """
    Создает новый товар в базе данных.

    Args:
        session: Сессия базы данных.
        draft: Данные нового товара без ID.

    Returns:
        Созданный объект товара с присвоенным ID.
    """
    db_product = Product.model_validate(draft)
    session.add(db_product)
    await session.commit()
    await session.refresh(db_product)
    return db_product


async def get_all_products(session: AsyncSession) -> Sequence[Product]:
    """
    Возвращает список всех товаров, новые первыми.

    Args:
        session: Сессия базы данных.

    Returns:
        Последовательность объектов Product.
    """
    statement = select(Product).order_by(Product.id.desc())  # type: ignore[union-attr]
    result = await session.execute(statement)
    return result.scalars().all()


async def get_product(session: AsyncSession, product_id: int) -> Product | None:
    """
    Находит товар по ID.

    Args:
        session: Сессия базы данных.
        product_id: ID товара.

    Returns:
        Объект Product или None, если товар не найден.
    """
    return await session.get(Product, product_id)


async def update_product(session: AsyncSession, product: Product) -> Product:
    """
    Полностью заменяет редактируемые поля товара.

    ID и дата создания не изменяются.

    Args:
        session: Сессия базы данных.
        product: Товар с новыми значениями полей.

    Returns:
        Обновленный объект Product.

    Raises:
        ProductNotFoundError: Если товара с таким ID нет.
    """
    if product.id is None:
        raise ValueError("Product id is required for an update.")

    db_product = await get_product(session, product.id)
    if not db_product:
        raise ProductNotFoundError(product.id)

    for field in EDITABLE_FIELDS:
        setattr(db_product, field, getattr(product, field))
    session.add(db_product)
    await session.commit()
    await session.refresh(db_product)
    return db_product


async def set_product_quantity(
    session: AsyncSession, product_id: int, quantity: int
) -> Product:
    """
    Устанавливает новый остаток товара.

    Args:
        session: Сессия базы данных.
        product_id: ID товара для обновления.
        quantity: Новый остаток.

    Returns:
        Обновленный объект Product.

    Raises:
        ProductNotFoundError: Если товар не найден.
        ValueError: Если остаток отрицательный.
    """
    if quantity < 0:
        raise ValueError("Quantity cannot be negative.")

    db_product = await get_product(session, product_id)
    if not db_product:
        raise ProductNotFoundError(product_id)

    db_product.quantity = quantity
    session.add(db_product)
    await session.commit()
    await session.refresh(db_product)
    return db_product


async def delete_product(session: AsyncSession, product_id: int) -> bool:
    """
    Удаляет товар. Журнал остатков удаляется каскадно на стороне базы.

    Args:
        session: Сессия базы данных.
        product_id: ID товара.

    Returns:
        True, если строка была удалена.
    """
    result = await session.execute(delete(Product).where(Product.id == product_id))  # type: ignore[arg-type]
    await session.commit()
    return bool(result.rowcount)


async def get_all_categories(session: AsyncSession) -> Sequence[Category]:
    """
    Возвращает список всех категорий по алфавиту.

    Args:
        session: Сессия базы данных.

    Returns:
        Последовательность объектов Category.
    """
    statement = select(Category).order_by(Category.name)
    result = await session.execute(statement)
    return result.scalars().all()


async def create_category(session: AsyncSession, name: str) -> Category | None:
    """
    Создает категорию.

    Args:
        session: Сессия базы данных.
        name: Уникальное имя категории.

    Returns:
        Созданная категория или None, если такое имя уже существует.
    """
    db_category = Category(name=name)
    session.add(db_category)
    try:
        await session.commit()
    except IntegrityError:
        await session.rollback()
        return None
    await session.refresh(db_category)
    return db_category
