"""Поиск товара по фотографии штрихкода."""

import base64
import logging

from aiogram import F, Router
from aiogram.filters import Command
from aiogram.fsm.context import FSMContext
from aiogram.types import Message

from stock_bot.fsm.product_states import ScanState, finish_scenario
from stock_bot.handlers import views
from stock_bot.handlers.commands import send_product_list
from stock_bot.services.barcode import capture_barcode
from stock_bot.services.errors import BarcodeCaptureError, InventoryError
from stock_bot.services.inventory import InventoryState

router = Router()


async def download_photo(message: Message) -> bytes:
    """
    Скачивает самую крупную версию фотографии из сообщения.

    Raises:
        BarcodeCaptureError: Если в сообщении нет фото или скачать его не удалось.
    """
    if not message.photo or message.bot is None:
        raise BarcodeCaptureError("Message has no photo.")
    buffer = await message.bot.download(message.photo[-1])
    if buffer is None:
        raise BarcodeCaptureError("Photo download returned nothing.")
    return buffer.getvalue()


def encode_data_url(image_data: bytes, mime_type: str = "image/jpeg") -> str:
    """Кодирует фото в data URL. Telegram присылает фотографии в JPEG."""
    encoded = base64.b64encode(image_data).decode("ascii")
    return f"data:{mime_type};base64,{encoded}"


@router.message(Command(commands=["scan"]))
async def handle_scan_start(message: Message, state: FSMContext) -> None:
    """
    Начало сценария сканирования: ждем фото штрихкода.
    """
    await state.set_state(ScanState.waiting_for_photo)
    await message.answer(
        "Barkodun fotoğrafını çekip gönderin. Vazgeçmek için /cancel yazın."
    )


@router.message(ScanState.waiting_for_photo, F.photo)
async def process_scan_photo(
    message: Message, state: FSMContext, inventory: InventoryState
) -> None:
    """
    Распознает штрихкод и использует его как поисковую строку.
    """
    decoded: list[str] = []
    try:
        image_data = await download_photo(message)
        await capture_barcode(image_data, decoded.append)
    except InventoryError as e:
        await message.answer(f"{e.user_message}\nVazgeçmek için /cancel yazın.")
        return
    except Exception:
        logging.exception("Error in process_scan_photo")
        await message.answer(views.INTERNAL_ERROR_MESSAGE)
        await finish_scenario(state)
        return

    if not decoded:
        await message.answer("Barkod bulunamadı. Lütfen daha net bir fotoğraf gönderin.")
        return

    await finish_scenario(state)
    await state.update_data(search_term=decoded[0])
    await message.answer(f"Barkod okundu: {decoded[0]}")
    await send_product_list(message, state, inventory)


@router.message(ScanState.waiting_for_photo)
async def process_scan_not_photo(message: Message) -> None:
    """Напоминает, что в этом сценарии нужна фотография."""
    await message.answer("Lütfen bir fotoğraf gönderin veya /cancel yazın.")
