"""Таблицы товаров, категорий и журнала остатков.

Revision ID: 0001
Revises:
Create Date: 2026-10-18
"""

from collections.abc import Sequence

import sqlalchemy as sa

from alembic import op

revision: str = "0001"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    op.create_table(
        "products",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("name", sa.String(length=200), nullable=False),
        sa.Column("company", sa.String(length=200), nullable=False),
        sa.Column("category", sa.String(length=100), nullable=True),
        sa.Column("quantity", sa.Integer(), nullable=False),
        sa.Column("purchasePrice", sa.Numeric(10, 2), nullable=False),
        sa.Column("sellingPrice", sa.Numeric(10, 2), nullable=False),
        sa.Column("barcode", sa.String(length=64), nullable=False),
        sa.Column("image", sa.String(), nullable=True),
        sa.CheckConstraint("quantity >= 0", name="products_quantity_check"),
    )
    op.create_index("ix_products_barcode", "products", ["barcode"])

    op.create_table(
        "categories",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("name", sa.String(length=100), nullable=False, unique=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
    )

    op.create_table(
        "product_history",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column(
            "product_id",
            sa.Integer(),
            sa.ForeignKey("products.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("old_quantity", sa.Integer(), nullable=False),
        sa.Column("new_quantity", sa.Integer(), nullable=False),
        sa.Column("change_type", sa.String(length=16), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index("ix_product_history_product_id", "product_history", ["product_id"])


def downgrade() -> None:
    op.drop_index("ix_product_history_product_id", table_name="product_history")
    op.drop_table("product_history")
    op.drop_table("categories")
    op.drop_index("ix_products_barcode", table_name="products")
    op.drop_table("products")
