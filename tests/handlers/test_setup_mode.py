"""Поведение бота, когда подключение к базе не настроено."""

from collections.abc import Awaitable, Callable

import pytest

from stock_bot.services.errors import StoreConfigurationError
from stock_bot.services.inventory import InventoryState

Send = Callable[[str], Awaitable[str]]


@pytest.fixture
def inventory() -> InventoryState:
    """Состояние склада без фабрики сессий."""
    return InventoryState(None)


async def test_list_shows_setup_instructions(send: Send, inventory: InventoryState) -> None:
    reply = await send("/list")

    assert reply == StoreConfigurationError.user_message
    assert isinstance(inventory.error, StoreConfigurationError)
    assert inventory.products == []


async def test_add_is_not_started_without_store(send: Send) -> None:
    assert await send("/add") == StoreConfigurationError.user_message
    assert await send("/cancel") == "İptal edilecek aktif bir işlem yok."


async def test_help_works_without_store(send: Send) -> None:
    assert (await send("/help")).startswith("Komutlar:")
