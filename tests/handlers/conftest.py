"""Фикстуры для тестов FSM-сценариев бота."""

import datetime
from collections.abc import Awaitable, Callable
from typing import Any
from unittest.mock import AsyncMock, patch

import pytest
from aiogram import Dispatcher, F, Router
from aiogram.filters import Command, CommandStart
from aiogram.fsm.storage.memory import MemoryStorage
from aiogram.types import Chat, Message, MessageEntity, PhotoSize, Update, User

# Импортируем сами функции-хендлеры
from stock_bot.fsm.product_states import AssistantState, ProductState, ScanState
from stock_bot.handlers import assistant as assistant_handlers
from stock_bot.handlers import barcode, commands
from stock_bot.handlers import product_management as pm
from stock_bot.middlewares.inventory import InventoryMiddleware
from stock_bot.services.assistant import AssistantBridge
from stock_bot.services.inventory import InventoryState

# Константы для тестов
TEST_CHAT = Chat(id=123, type="private")
TEST_USER = User(id=123, is_bot=False, first_name="Test")

COMMAND_HANDLERS = {
    "add": pm.handle_add_product_start,
    "edit": pm.handle_edit_product_start,
    "delete": pm.handle_delete_product_start,
    "help": commands.handle_help,
    "list": commands.handle_list_products,
    "search": commands.handle_search,
    "category": commands.handle_select_category,
    "clear": commands.handle_clear_filters,
    "categories": commands.handle_list_categories,
    "addcategory": commands.handle_add_category,
    "product": commands.handle_product_details,
    "history": commands.handle_product_history,
    "stock": commands.handle_update_quantity,
    "sell": commands.handle_record_sale,
    "samples": commands.handle_add_samples,
    "reload": commands.handle_reload,
}

STATE_HANDLERS = {
    ProductState.add_waiting_for_name: pm.process_add_product_name,
    ProductState.add_waiting_for_company: pm.process_add_product_company,
    ProductState.add_waiting_for_category: pm.process_add_product_category,
    ProductState.add_waiting_for_quantity: pm.process_add_product_quantity,
    ProductState.add_waiting_for_purchase_price: pm.process_add_product_purchase_price,
    ProductState.add_waiting_for_selling_price: pm.process_add_product_selling_price,
    ProductState.add_waiting_for_barcode: pm.process_add_product_barcode,
    ProductState.add_waiting_for_image: pm.process_add_product_image,
    ProductState.edit_waiting_for_field: pm.process_edit_product_field,
    ProductState.edit_waiting_for_value: pm.process_edit_product_value,
    ProductState.delete_waiting_for_confirmation: pm.process_delete_product_confirmation,
}

TEST_PHOTO = PhotoSize(file_id="photo", file_unique_id="photo-unique", width=640, height=480)


@pytest.fixture
def assistant() -> AsyncMock:
    """Мок ассистента: ответы задаются в самих тестах."""
    return AsyncMock(spec=AssistantBridge)


@pytest.fixture
def dp(inventory: InventoryState, assistant: AsyncMock) -> Dispatcher:
    """
    Фикстура для создания чистого экземпляра Dispatcher для каждого теста
    с вручную зарегистрированными хендлерами для полной изоляции.
    """
    storage = MemoryStorage()
    dp = Dispatcher(storage=storage)
    dp.update.middleware(InventoryMiddleware(inventory=inventory, assistant=assistant))

    test_router = Router()
    # Отмена регистрируется первой, как и в боевом роутере
    test_router.message.register(pm.cancel_handler, Command(commands=["cancel"]))
    test_router.message.register(pm.cancel_handler, F.text.casefold() == "iptal")
    test_router.message.register(
        pm.process_add_product_barcode_photo, ProductState.add_waiting_for_barcode, F.photo
    )
    test_router.message.register(
        pm.process_edit_product_photo, ProductState.edit_waiting_for_value, F.photo
    )
    for state, handler in STATE_HANDLERS.items():
        test_router.message.register(handler, state)
    test_router.message.register(commands.handle_start, CommandStart())
    for name, handler in COMMAND_HANDLERS.items():
        test_router.message.register(handler, Command(commands=[name]))

    test_router.message.register(barcode.handle_scan_start, Command(commands=["scan"]))
    test_router.message.register(
        barcode.process_scan_photo, ScanState.waiting_for_photo, F.photo
    )
    test_router.message.register(barcode.process_scan_not_photo, ScanState.waiting_for_photo)

    test_router.message.register(
        assistant_handlers.handle_ask_start, Command(commands=["ask"])
    )
    test_router.message.register(
        assistant_handlers.process_chat_message, AssistantState.chatting, F.text
    )
    test_router.message.register(
        assistant_handlers.handle_analyze_start, Command(commands=["analyze"])
    )
    test_router.message.register(
        assistant_handlers.process_image_analysis, AssistantState.chatting, F.photo
    )
    test_router.message.register(
        assistant_handlers.process_image_analysis, AssistantState.waiting_for_image, F.photo
    )
    test_router.message.register(
        assistant_handlers.process_analysis_not_photo, AssistantState.waiting_for_image
    )

    dp.include_router(test_router)
    return dp


@pytest.fixture
def bot() -> AsyncMock:
    return AsyncMock()


async def process_update(
    dp: Dispatcher, bot: AsyncMock, text: str | None, photo: bool = False
) -> None:
    """Хелпер для симуляции входящего сообщения (текст или фото с подписью)."""
    entities = []
    if text and text.startswith("/"):
        command_length = len(text.split()[0])
        entities.append(MessageEntity(type="bot_command", offset=0, length=command_length))

    if photo:
        message = Message(
            message_id=1,
            chat=TEST_CHAT,
            from_user=TEST_USER,
            photo=[TEST_PHOTO],
            caption=text,
            date=datetime.datetime.now(datetime.UTC),
        )
    else:
        message = Message(
            message_id=1,
            chat=TEST_CHAT,
            from_user=TEST_USER,
            text=text,
            entities=entities,
            date=datetime.datetime.now(datetime.UTC),
        )

    # Патчим метод answer, чтобы он перенаправлял вызов на наш mock bot
    async def mock_answer(self: Message, text: str, **kwargs: Any) -> Any:
        return await bot.send_message(chat_id=self.chat.id, text=text, **kwargs)

    with patch.object(Message, "answer", mock_answer):
        update = Update(update_id=1, message=message)
        await dp.feed_update(bot, update)


@pytest.fixture
def send(dp: Dispatcher, bot: AsyncMock) -> Callable[[str], Awaitable[str]]:
    """
    Отправляет сообщение боту и возвращает текст последнего ответа.
    """

    async def _send(text: str) -> str:
        bot.reset_mock()
        await process_update(dp, bot, text)
        assert bot.send_message.called, f"No reply to {text!r}"
        reply: str = bot.send_message.call_args.kwargs["text"]
        return reply

    return _send


@pytest.fixture
def send_photo(dp: Dispatcher, bot: AsyncMock) -> Callable[[str | None], Awaitable[list[str]]]:
    """
    Отправляет боту фото и возвращает тексты всех ответов.
    """

    async def _send_photo(caption: str | None = None) -> list[str]:
        bot.reset_mock()
        await process_update(dp, bot, caption, photo=True)
        return [call.kwargs["text"] for call in bot.send_message.call_args_list]

    return _send_photo
