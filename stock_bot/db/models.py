"""Модели базы данных проекта."""

import datetime
from decimal import Decimal
from enum import StrEnum

from sqlalchemy import CheckConstraint, Column, DateTime, ForeignKey, Integer, String
from sqlalchemy.dialects import postgresql
from sqlalchemy.schema import CreateTable
from sqlmodel import Field, SQLModel


def _utcnow() -> datetime.datetime:
    return datetime.datetime.now(datetime.UTC)


class ChangeType(StrEnum):
    """Тип изменения остатка в журнале."""

    INITIAL = "INITIAL"
    UPDATE = "UPDATE"
    SALE = "SALE"


class ProductBase(SQLModel):
    """Поля товара, которые заполняет оператор."""

    name: str = Field(max_length=200)
    company: str = Field(max_length=200)
    category: str | None = Field(default=None, max_length=100)
    quantity: int = Field(default=0, ge=0)
    purchase_price: Decimal = Field(
        default=Decimal("0"),
        max_digits=10,
        decimal_places=2,
        sa_column_kwargs={"name": "purchasePrice"},
    )
    selling_price: Decimal = Field(
        default=Decimal("0"),
        max_digits=10,
        decimal_places=2,
        sa_column_kwargs={"name": "sellingPrice"},
    )
    barcode: str = Field(index=True, max_length=64)
    # Изображение хранится как data URL в base64
    image: str | None = Field(default=None)


class ProductDraft(ProductBase):
    """Новый товар до сохранения: без id и служебных полей."""


class Product(ProductBase, table=True):
    """Модель товара в магазине."""

    __tablename__ = "products"
    __table_args__ = (CheckConstraint("quantity >= 0", name="products_quantity_check"),)

    id: int | None = Field(default=None, primary_key=True)
    created_at: datetime.datetime = Field(
        default_factory=_utcnow, sa_type=DateTime(timezone=True)
    )


class Category(SQLModel, table=True):
    """Категория товаров. Товары ссылаются на нее по имени."""

    __tablename__ = "categories"

    id: int | None = Field(default=None, primary_key=True)
    name: str = Field(unique=True, max_length=100)
    created_at: datetime.datetime = Field(
        default_factory=_utcnow, sa_type=DateTime(timezone=True)
    )


class StockLog(SQLModel, table=True):
    """Запись журнала изменения остатка. Только добавляется."""

    __tablename__ = "product_history"

    id: int | None = Field(default=None, primary_key=True)
    product_id: int = Field(
        sa_column=Column(
            Integer,
            ForeignKey("products.id", ondelete="CASCADE"),
            nullable=False,
            index=True,
        )
    )
    old_quantity: int
    new_quantity: int
    change_type: ChangeType = Field(sa_column=Column(String(16), nullable=False))
    created_at: datetime.datetime = Field(
        default_factory=_utcnow, sa_type=DateTime(timezone=True)
    )


def render_schema_sql() -> str:
    """
    Формирует DDL всех таблиц для PostgreSQL.

    Returns:
        SQL-скрипт создания таблиц products, categories и product_history.
    """
    dialect = postgresql.dialect()
    statements = [
        str(CreateTable(table).compile(dialect=dialect)).strip() + ";"
        for table in (Product.__table__, Category.__table__, StockLog.__table__)  # type: ignore[attr-defined]
    ]
    return "\n\n".join(statements)
