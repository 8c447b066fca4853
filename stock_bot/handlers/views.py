"""Тексты и клавиатуры, которые бот показывает пользователю."""

from collections.abc import Iterable, Sequence
from decimal import Decimal

from aiogram.types import KeyboardButton, ReplyKeyboardMarkup, ReplyKeyboardRemove

from stock_bot.db.models import ChangeType, Product, StockLog, render_schema_sql
from stock_bot.services.errors import InventoryError, SchemaMissingError
from stock_bot.services.product_forms import profit_margin, stock_value

# Остаток, ниже которого товар помечается как критический
LOW_STOCK_THRESHOLD = 10
# Ограничение на число строк в одном ответе списка
MAX_LIST_ITEMS = 50

SKIP_TEXT = "-"
CONFIRM_TEXT = "evet"
DECLINE_TEXT = "hayır"

INTERNAL_ERROR_MESSAGE = "Beklenmeyen bir hata oluştu. Lütfen daha sonra tekrar deneyin."
EMPTY_INVENTORY_MESSAGE = (
    "Deponuzda hiç ürün yok. Hızlı başlangıç için /samples ile örnek ürünleri "
    "ekleyebilir veya /add ile yeni ürün girişi yapabilirsiniz."
)

HELP_TEXT = "\n".join(
    [
        "Komutlar:",
        "/list - Stok listesi (arama ve kategori filtresi uygulanır)",
        "/search <metin> - Ada, firmaya veya barkoda göre ara",
        "/scan - Barkod fotoğrafı ile ara",
        "/category <ad> - Kategoriye göre filtrele (boş bırakılırsa tümü)",
        "/clear - Filtreleri temizle",
        "/categories - Kategoriler",
        "/addcategory <ad> - Yeni kategori",
        "/product <id> - Ürün detayı",
        "/history <id> - Stok geçmişi",
        "/add - Yeni ürün",
        "/edit <id> - Ürünü düzenle",
        "/delete <id> - Ürünü sil",
        "/stock <id> <adet> - Stok adedini güncelle",
        "/sell <id> <adet> - Satış kaydet",
        "/samples - Örnek ürünleri ekle",
        "/ask - Yapay zeka asistanı",
        "/analyze - Görsel analizi",
        "/reload - Verileri yeniden yükle",
        "/cancel - İşlemi iptal et",
    ]
)

CHANGE_TYPE_LABELS = {
    ChangeType.INITIAL: "İlk giriş",
    ChangeType.UPDATE: "Güncelleme",
    ChangeType.SALE: "Satış",
}


def format_money(value: Decimal) -> str:
    """Форматирует сумму в турецком стиле: 1.234,50 ₺."""
    text = f"{value:,.2f}".replace(",", " ").replace(".", ",").replace(" ", ".")
    return f"{text} ₺"


def format_product_line(product: Product) -> str:
    """Строка списка; товары с остатком ниже порога помечаются красным."""
    marker = "🔴" if product.quantity < LOW_STOCK_THRESHOLD else "🟢"
    return (
        f"{marker} #{product.id} {product.name} ({product.company}) - "
        f"{product.quantity} adet - {format_money(product.selling_price)}"
    )


def format_product_list(
    products: Sequence[Product],
    search_term: str = "",
    category: str | None = None,
) -> str:
    """
    Собирает текст списка товаров с заголовком и учетом фильтров.
    """
    title = f"{category} Stokları" if category else "Depo Envanteri"
    if not products:
        if search_term:
            return f"{title}\n\"{search_term}\" ile eşleşen ürün yok."
        if category:
            return f"{title}\n\"{category}\" kategorisinde ürün bulunmuyor."
        return f"{title}\nÜrün bulunmuyor."

    total = sum(product.quantity for product in products)
    lines = [f"{title} ({len(products)} ürün, toplam {total} adet)"]
    if search_term:
        lines.append(f"Arama: \"{search_term}\"")
    lines.extend(format_product_line(product) for product in products[:MAX_LIST_ITEMS])
    if len(products) > MAX_LIST_ITEMS:
        lines.append(f"... ve {len(products) - MAX_LIST_ITEMS} ürün daha")
    return "\n".join(lines)


def format_product_details(product: Product) -> str:
    """Карточка товара с финансовой сводкой."""
    margin = profit_margin(product)
    status = "Kritik Stok" if product.quantity < LOW_STOCK_THRESHOLD else "Stokta Var"
    created = product.created_at.strftime("%d.%m.%Y") if product.created_at else "Bilinmiyor"
    lines = [
        f"#{product.id} {product.name}",
        f"Kategori: {product.category or 'Belirtilmemiş'}",
        f"Tedarikçi Firma: {product.company}",
        f"Barkod: {product.barcode}",
        f"Stok: {product.quantity} adet ({status})",
        f"Ekleme Tarihi: {created}",
        "",
        "Finansal Özet",
        f"Alış Birim: {format_money(product.purchase_price)}",
        f"Satış Birim: {format_money(product.selling_price)}",
        f"Kâr Marjı: % {margin}" if margin is not None else "Kâr Marjı: -",
        f"Toplam Stok Değeri: {format_money(stock_value(product))}",
    ]
    return "\n".join(lines)


def format_history(product: Product, entries: Sequence[StockLog]) -> str:
    """Журнал остатков, новые записи первыми."""
    if not entries:
        return f"#{product.id} {product.name}\nHenüz kayıtlı bir stok geçmişi bulunmamaktadır."

    lines = [f"Ürün Stok Geçmişi: #{product.id} {product.name}"]
    for entry in entries:
        diff = entry.new_quantity - entry.old_quantity
        label = CHANGE_TYPE_LABELS.get(entry.change_type, entry.change_type)
        lines.append(
            f"{entry.created_at:%d.%m.%Y %H:%M} {label}: "
            f"{entry.old_quantity} → {entry.new_quantity} ({diff:+d})"
        )
    return "\n".join(lines)


def format_error(error: InventoryError) -> str:
    """Текст ошибки; для отсутствующих таблиц добавляется SQL-схема."""
    if isinstance(error, SchemaMissingError):
        return f"{error.user_message}\n\n{render_schema_sql()}"
    return error.user_message


def choice_keyboard(options: Iterable[str], with_skip: bool = False) -> ReplyKeyboardMarkup:
    """Клавиатура выбора по одному варианту в строке, при необходимости с пропуском."""
    rows = [[KeyboardButton(text=option)] for option in options]
    if with_skip:
        rows.append([KeyboardButton(text=SKIP_TEXT)])
    return ReplyKeyboardMarkup(keyboard=rows, resize_keyboard=True, one_time_keyboard=True)


def confirm_keyboard() -> ReplyKeyboardMarkup:
    """Клавиатура подтверждения evet/hayır."""
    return ReplyKeyboardMarkup(
        keyboard=[[KeyboardButton(text=CONFIRM_TEXT), KeyboardButton(text=DECLINE_TEXT)]],
        resize_keyboard=True,
        one_time_keyboard=True,
    )


def remove_keyboard() -> ReplyKeyboardRemove:
    """Убирает клавиатуру выбора."""
    return ReplyKeyboardRemove()
