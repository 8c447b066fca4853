"""Тесты команд просмотра, поиска и изменения остатков."""

from collections.abc import Awaitable, Callable
from decimal import Decimal

from sqlalchemy.ext.asyncio import AsyncEngine
from sqlmodel import SQLModel

from stock_bot.db.models import ProductDraft
from stock_bot.handlers.views import EMPTY_INVENTORY_MESSAGE
from stock_bot.services.inventory import InventoryState

Send = Callable[[str], Awaitable[str]]


def product_id_by_name(inventory: InventoryState, name: str) -> int:
    for product in inventory.products:
        if product.name == name and product.id is not None:
            return product.id
    raise AssertionError(f"{name} is not in inventory")


async def test_start_shows_help(send: Send) -> None:
    reply = await send("/start")

    assert reply.startswith("Merhaba!")
    assert "/sell <id> <adet>" in reply


async def test_empty_inventory_offers_samples(send: Send) -> None:
    assert await send("/list") == EMPTY_INVENTORY_MESSAGE


async def test_samples_are_added_only_once(send: Send, inventory: InventoryState) -> None:
    assert await send("/samples") == "5 örnek ürün eklendi. /list ile görüntüleyin."
    assert (
        await send("/samples") == "Örnek ürünler yalnızca boş depoya eklenebilir."
    )

    assert len(inventory.products) == 5
    assert len(inventory.categories) == 4


async def test_list_search_and_category_filters(send: Send) -> None:
    await send("/samples")

    reply = await send("/list")
    assert reply.startswith("Depo Envanteri (5 ürün, toplam 115 adet)")

    reply = await send("/search süt")
    assert "Tam Yağlı Süt 1L" in reply
    assert "Çaykur" not in reply

    # Поиск сохраняется для следующих команд
    reply = await send("/list")
    assert 'Arama: "süt"' in reply

    reply = await send("/search 869099988877")
    assert "Beypazarı Maden Suyu" in reply

    reply = await send("/search bulunmayan")
    assert reply.endswith('"bulunmayan" ile eşleşen ürün yok.')

    await send("/search")
    reply = await send("/category İçecek")
    assert reply.startswith("İçecek Stokları (2 ürün, toplam 20 adet)")

    reply = await send("/clear")
    assert reply.startswith("Depo Envanteri (5 ürün")


async def test_unknown_category_is_rejected(send: Send) -> None:
    await send("/samples")

    reply = await send("/category Oyuncak")

    assert reply.startswith('"Oyuncak" adlı kategori yok.')
    assert "Bakliyat" in reply


async def test_add_category(send: Send, inventory: InventoryState) -> None:
    assert await send("/addcategory Atıştırmalık") == '"Atıştırmalık" kategorisi eklendi.'
    assert await send("/addcategory Atıştırmalık") == "Bu kategori zaten mevcut."
    assert inventory.category_names == ["Atıştırmalık"]

    reply = await send("/categories")
    assert reply == "Kategoriler:\n- Atıştırmalık"


async def test_update_quantity(send: Send, inventory: InventoryState) -> None:
    await send("/samples")
    tea_id = product_id_by_name(inventory, "Çaykur Rize Turist Çayı 1kg")

    reply = await send(f"/stock {tea_id} 30")

    assert reply == "'Çaykur Rize Turist Çayı 1kg' stoğu güncellendi. Yeni stok: 30 adet."
    assert inventory.get_product(tea_id).quantity == 30


async def test_update_quantity_usage(send: Send) -> None:
    assert await send("/stock 1") == "Kullanım: /stock <sayı> <sayı>"


async def test_sale_and_history(send: Send, inventory: InventoryState) -> None:
    await send("/samples")
    milk_id = product_id_by_name(inventory, "Tam Yağlı Süt 1L")

    assert await send(f"/sell {milk_id} 100") == "Stokta yeterli ürün yok."
    reply = await send(f"/sell {milk_id} 5")
    assert reply == (
        "'Tam Yağlı Süt 1L' için 5 adet satış kaydedildi. Kalan stok: 40 adet."
    )

    history = await send(f"/history {milk_id}")
    lines = history.splitlines()
    assert lines[0] == f"Ürün Stok Geçmişi: #{milk_id} Tam Yağlı Süt 1L"
    assert lines[1].endswith("Satış: 45 → 40 (-5)")
    assert lines[2].endswith("İlk giriş: 0 → 45 (+45)")


async def test_product_details(send: Send, inventory: InventoryState) -> None:
    await send("/samples")
    milk_id = product_id_by_name(inventory, "Tam Yağlı Süt 1L")

    reply = await send(f"/product {milk_id}")

    assert "Kâr Marjı: % 55.6" in reply
    assert "Toplam Stok Değeri: 1.575,00 ₺" in reply


async def test_missing_tables_show_schema(
    send: Send, engine: AsyncEngine, inventory: InventoryState
) -> None:
    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.drop_all)

    reply = await send("/reload")

    assert reply.startswith("Veritabanı tabloları bulunamadı.")
    assert "CREATE TABLE products" in reply
    assert inventory.loaded is False


async def test_stock_above_column_range_is_rejected(
    send: Send, inventory: InventoryState
) -> None:
    await send("/samples")
    milk_id = product_id_by_name(inventory, "Tam Yağlı Süt 1L")

    assert await send(f"/stock {milk_id} {2**31}") == "Stok adedi çok büyük."
    assert inventory.get_product(milk_id).quantity == 45


async def test_category_filter_accepts_product_categories(
    send: Send, inventory: InventoryState
) -> None:
    # Категория указана у товара, но не заведена в таблице categories
    await inventory.add_product(
        ProductDraft(
            name="Vanilyalı Dondurma",
            company="Algida",
            quantity=6,
            purchase_price=Decimal("40.00"),
            selling_price=Decimal("60.00"),
            barcode="869044433322",
            category="Dondurma",
        )
    )
    assert inventory.categories == []

    reply = await send("/category Dondurma")

    assert reply.startswith("Dondurma Stokları (1 ürün, toplam 6 adet)")
