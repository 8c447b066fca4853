"""Обработчики диалога с ИИ-ассистентом и анализа изображений."""

from aiogram import F, Router
from aiogram.filters import Command
from aiogram.fsm.context import FSMContext
from aiogram.types import Message

from stock_bot.fsm.product_states import AssistantState
from stock_bot.handlers.barcode import download_photo, encode_data_url
from stock_bot.services.assistant import AssistantBridge, ChatTurn
from stock_bot.services.errors import InventoryError

router = Router()

GREETING = (
    "Merhaba! Ben ASLAN AVM asistanıyım. Stok durumu, muhasebe işlemleri veya "
    "mağaza yönetimi hakkında size nasıl yardımcı olabilirim?\n"
    "Sohbeti bitirmek için /cancel yazın."
)
# Сколько последних реплик передается модели
MAX_HISTORY_TURNS = 20


@router.message(Command(commands=["ask"]))
async def handle_ask_start(message: Message, state: FSMContext) -> None:
    """
    Начало диалога с ассистентом. История хранится в данных FSM.
    """
    await state.set_state(AssistantState.chatting)
    await state.update_data(chat_history=[{"role": "model", "text": GREETING}])
    await message.answer(GREETING)


@router.message(AssistantState.chatting, F.text)
async def process_chat_message(
    message: Message, state: FSMContext, assistant: AssistantBridge
) -> None:
    """
    Отправляет сообщение ассистенту вместе с предыдущими репликами.
    """
    text = (message.text or "").strip()
    if not text:
        return

    data = await state.get_data()
    history: list[ChatTurn] = data.get("chat_history", [])
    reply = await assistant.converse(text, history[-MAX_HISTORY_TURNS:])

    history = [*history, {"role": "user", "text": text}, {"role": "model", "text": reply}]
    await state.update_data(chat_history=history[-MAX_HISTORY_TURNS:])
    await message.answer(reply)


@router.message(Command(commands=["analyze"]))
async def handle_analyze_start(message: Message, state: FSMContext) -> None:
    """Переводит бота в ожидание фото для анализа."""
    await state.set_state(AssistantState.waiting_for_image)
    await message.answer(
        "Analiz edilecek ürün görselini gönderin. "
        "Fotoğraf açıklamasına ne yapmamı istediğinizi yazabilirsiniz."
    )


@router.message(AssistantState.chatting, F.photo)
@router.message(AssistantState.waiting_for_image, F.photo)
async def process_image_analysis(
    message: Message, state: FSMContext, assistant: AssistantBridge
) -> None:
    """
    Отправляет фото ассистенту; подпись к фото используется как инструкция.
    """
    try:
        image_data = await download_photo(message)
    except InventoryError as e:
        await message.answer(e.user_message)
        return

    await message.answer("Görsel analiz ediliyor...")
    reply = await assistant.describe_image(
        encode_data_url(image_data), message.caption
    )
    await message.answer(reply)
    if await state.get_state() == AssistantState.waiting_for_image.state:
        await state.set_state(None)


@router.message(AssistantState.waiting_for_image)
async def process_analysis_not_photo(message: Message) -> None:
    """Напоминает, что для анализа нужна фотография."""
    await message.answer("Lütfen bir fotoğraf gönderin veya /cancel yazın.")
