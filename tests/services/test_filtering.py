"""Тесты поиска и фильтрации товаров."""

from decimal import Decimal

import pytest

from stock_bot.db.models import Product
from stock_bot.services.filtering import filter_products


def make_product(
    product_id: int,
    name: str,
    company: str = "Sütaş",
    barcode: str = "0000",
    category: str | None = None,
) -> Product:
    return Product(
        id=product_id,
        name=name,
        company=company,
        quantity=1,
        purchase_price=Decimal("1.00"),
        selling_price=Decimal("2.00"),
        barcode=barcode,
        category=category,
    )


@pytest.fixture
def products() -> list[Product]:
    return [
        make_product(1, "Süt 1L", barcode="8690", category="Süt & Kahvaltılık"),
        make_product(2, "Maden Suyu", company="Beypazarı", barcode="8691AB", category="İçecek"),
        make_product(3, "Çay 1kg", company="Çaykur", barcode="8692", category="içecek"),
        make_product(4, "Pirinç", company="Yayla", barcode="8693"),
    ]


def test_search_is_case_insensitive_on_name() -> None:
    items = [make_product(1, "Süt 1L", barcode="8690")]

    assert filter_products(items, "süt") == items
    assert filter_products(items, "SÜT") == items


def test_search_matches_barcode_substring() -> None:
    items = [make_product(1, "Süt 1L", barcode="8690")]

    assert filter_products(items, "8690") == items
    assert filter_products(items, "869") == items
    assert filter_products(items, "8691") == []


def test_barcode_search_is_case_sensitive(products: list[Product]) -> None:
    assert [p.id for p in filter_products(products, "8691AB")] == [2]
    assert filter_products(products, "8691ab") == []


def test_search_matches_company(products: list[Product]) -> None:
    assert [p.id for p in filter_products(products, "çaykur")] == [3]


def test_empty_search_and_category_return_everything(products: list[Product]) -> None:
    assert filter_products(products) == products
    assert filter_products(products, "", "") == products


def test_category_filter_is_exact(products: list[Product]) -> None:
    result = filter_products(products, "", "İçecek")

    assert [p.id for p in result] == [2]


def test_search_and_category_are_intersected(products: list[Product]) -> None:
    assert filter_products(products, "çay", "İçecek") == []
    assert [p.id for p in filter_products(products, "suyu", "İçecek")] == [2]


def test_filter_preserves_order_and_is_idempotent(products: list[Product]) -> None:
    once = filter_products(products, "86", None)
    twice = filter_products(once, "86", None)

    assert [p.id for p in once] == [1, 2, 3, 4]
    assert twice == once
