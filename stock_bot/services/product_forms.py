"""Разбор и проверка данных форм добавления и редактирования товара."""

from collections.abc import Mapping
from decimal import Decimal, InvalidOperation
from typing import Any

from stock_bot.db.models import Product, ProductDraft
from stock_bot.services.errors import FormValidationError

# Обязательные поля формы и их подписи для пользователя
REQUIRED_FIELDS: dict[str, str] = {
    "name": "Ürün Adı",
    "company": "Firma",
    "quantity": "Stok Adedi",
    "purchase_price": "Alış Fiyatı",
    "selling_price": "Satış Fiyatı",
    "barcode": "Barkod",
}

FIELD_LABELS: dict[str, str] = {
    **REQUIRED_FIELDS,
    "category": "Kategori",
    "image": "Görsel",
}


# Границы колонок products: quantity INTEGER, цены NUMERIC(10, 2)
MAX_QUANTITY = 2**31 - 1
MAX_PRICE = Decimal("99999999.99")


def parse_quantity(value: Any) -> int:
    """
    Переводит ввод в неотрицательное целое.

    Нечисловой, отрицательный или не помещающийся в колонку ввод
    превращается в 0.
    """
    if isinstance(value, int):
        quantity = value
    else:
        try:
            quantity = int(str(value).strip())
        except (TypeError, ValueError):
            return 0
    if quantity < 0 or quantity > MAX_QUANTITY:
        return 0
    return quantity


def parse_price(value: Any) -> Decimal:
    """
    Переводит ввод в неотрицательную цену с двумя знаками.

    Запятая допускается как десятичный разделитель.
    Нечисловой, отрицательный или слишком большой ввод превращается в 0.
    """
    try:
        if isinstance(value, Decimal):
            price = value
        else:
            price = Decimal(str(value).strip().replace(",", "."))
        if not price.is_finite() or price < 0:
            return Decimal("0.00")
        price = price.quantize(Decimal("0.01"))
    except (InvalidOperation, TypeError, ValueError):
        return Decimal("0.00")
    if price > MAX_PRICE:
        return Decimal("0.00")
    return price


def _is_empty(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def missing_required_fields(form_data: Mapping[str, Any]) -> list[str]:
    """Возвращает подписи незаполненных обязательных полей."""
    return [
        label
        for field, label in REQUIRED_FIELDS.items()
        if _is_empty(form_data.get(field))
    ]


def build_product_draft(form_data: Mapping[str, Any]) -> ProductDraft:
    """
    Собирает новый товар из данных формы.

    Args:
        form_data: Значения полей формы (строки или уже разобранные числа).

    Returns:
        Нормализованный черновик товара.

    Raises:
        FormValidationError: Если не заполнено хотя бы одно обязательное поле.
    """
    missing = missing_required_fields(form_data)
    if missing:
        raise FormValidationError(missing)

    category = form_data.get("category")
    image = form_data.get("image")
    return ProductDraft(
        name=str(form_data["name"]).strip(),
        company=str(form_data["company"]).strip(),
        category=None if _is_empty(category) else str(category).strip(),
        quantity=parse_quantity(form_data["quantity"]),
        purchase_price=parse_price(form_data["purchase_price"]),
        selling_price=parse_price(form_data["selling_price"]),
        barcode=str(form_data["barcode"]).strip(),
        image=None if _is_empty(image) else image,
    )


def build_replacement(product: Product, changes: Mapping[str, Any]) -> Product:
    """
    Собирает полную замену существующего товара.

    ID и дата создания переносятся без изменений, числа разбираются
    так же, как в форме добавления.

    Args:
        product: Текущая версия товара.
        changes: Новые значения полей формы редактирования.

    Returns:
        Новый объект Product с тем же ID.

    Raises:
        FormValidationError: Если обязательное поле стало пустым.
    """
    form_data = {
        "name": product.name,
        "company": product.company,
        "category": product.category,
        "quantity": product.quantity,
        "purchase_price": product.purchase_price,
        "selling_price": product.selling_price,
        "barcode": product.barcode,
        "image": product.image,
    }
    form_data.update(changes)
    draft = build_product_draft(form_data)
    return Product(
        id=product.id,
        created_at=product.created_at,
        **draft.model_dump(),
    )


def profit_margin(product: Product) -> Decimal | None:
    """Наценка в процентах относительно цены закупки."""
    if not product.purchase_price:
        return None
    margin = (product.selling_price - product.purchase_price) / product.purchase_price
    return (margin * 100).quantize(Decimal("0.1"))


def stock_value(product: Product) -> Decimal:
    """Стоимость остатка по цене продажи."""
    return (product.quantity * product.selling_price).quantize(Decimal("0.01"))
