"""Поиск и фильтрация товаров по категории."""

from collections.abc import Iterable

from stock_bot.db.models import Product


def matches_search(product: Product, search_term: str) -> bool:
    """
    Проверяет, подходит ли товар под поисковую строку.

    Название и фирма сравниваются без учета регистра,
    штрихкод сравнивается как есть.
    """
    term = search_term.lower()
    return (
        term in product.name.lower()
        or term in product.company.lower()
        or search_term in product.barcode
    )


def matches_category(product: Product, selected_category: str | None) -> bool:
    """Пустая категория означает "все категории"."""
    if not selected_category:
        return True
    return product.category == selected_category


def filter_products(
    products: Iterable[Product],
    search_term: str = "",
    selected_category: str | None = None,
) -> list[Product]:
    """
    Возвращает товары, подходящие под поиск и категорию, в исходном порядке.

    Args:
        products: Список товаров.
        search_term: Строка поиска, пустая строка подходит под любой товар.
        selected_category: Имя категории или пустое значение.

    Returns:
        Отфильтрованный список товаров.
    """
    return [
        product
        for product in products
        if matches_search(product, search_term)
        and matches_category(product, selected_category)
    ]
