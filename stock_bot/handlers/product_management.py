"""Обработчики для FSM-сценариев управления товарами."""

import logging

from aiogram import F, Router
from aiogram.filters import Command, CommandObject
from aiogram.fsm.context import FSMContext
from aiogram.fsm.state import State
from aiogram.types import Message

from stock_bot.fsm.product_states import ProductState, finish_scenario
from stock_bot.handlers import views
from stock_bot.handlers.barcode import download_photo, encode_data_url
from stock_bot.handlers.commands import ensure_inventory, parse_int_args
from stock_bot.services.barcode import capture_barcode
from stock_bot.services.errors import InventoryError
from stock_bot.services.inventory import InventoryState
from stock_bot.services.product_forms import (
    FIELD_LABELS,
    build_product_draft,
    build_replacement,
)

router = Router()

# Поля, доступные в сценарии редактирования (подпись -> поле)
EDIT_CHOICES = {label: field for field, label in FIELD_LABELS.items()}
OPTIONAL_FIELDS = ("category", "image")
# Поля, значение которых можно прислать фотографией
PHOTO_FIELDS = ("barcode", "image")


# --- Универсальный отменщик FSM ---
@router.message(Command(commands=["cancel"]))
@router.message(F.text.casefold() == "iptal")
async def cancel_handler(message: Message, state: FSMContext) -> None:
    """
    Позволяет пользователю отменить любое действие FSM.
    """
    current_state = await state.get_state()
    if current_state is None:
        await message.answer("İptal edilecek aktif bir işlem yok.")
        return

    logging.info("Cancelling state %r", current_state)
    await finish_scenario(state)
    await message.answer("İşlem iptal edildi.", reply_markup=views.remove_keyboard())


async def _ask_required_text(
    message: Message, state: FSMContext, field: str, next_state: State | None, prompt: str
) -> bool:
    """Сохраняет непустой текст в поле формы и задает следующий вопрос."""
    if not message.text or not message.text.strip():
        await message.answer(f"{FIELD_LABELS[field]} boş olamaz. Lütfen tekrar deneyin.")
        return False
    await state.update_data({field: message.text.strip()})
    if next_state is not None:
        await state.set_state(next_state)
    await message.answer(prompt)
    return True


# --- Сценарий добавления товара ---
@router.message(Command(commands=["add"]))
async def handle_add_product_start(
    message: Message, state: FSMContext, inventory: InventoryState
) -> None:
    """
    Начало сценария добавления товара.
    """
    if not await ensure_inventory(message, inventory):
        return
    await state.set_state(ProductState.add_waiting_for_name)
    await message.answer("Yeni ürünün adını girin:")


@router.message(ProductState.add_waiting_for_name)
async def process_add_product_name(message: Message, state: FSMContext) -> None:
    """Сохраняет название и спрашивает фирму."""
    await _ask_required_text(
        message, state, "name", ProductState.add_waiting_for_company, "Firma adını girin:"
    )


@router.message(ProductState.add_waiting_for_company)
async def process_add_product_company(
    message: Message, state: FSMContext, inventory: InventoryState
) -> None:
    """
    Обработка фирмы и запрос категории из списка известных.
    """
    if not message.text or not message.text.strip():
        await message.answer("Firma boş olamaz. Lütfen tekrar deneyin.")
        return
    await state.update_data(company=message.text.strip())
    await state.set_state(ProductState.add_waiting_for_category)
    await message.answer(
        f"Kategori seçin (atlamak için \"{views.SKIP_TEXT}\"):",
        reply_markup=views.choice_keyboard(inventory.category_names, with_skip=True),
    )


@router.message(ProductState.add_waiting_for_category)
async def process_add_product_category(
    message: Message, state: FSMContext, inventory: InventoryState
) -> None:
    """Принимает категорию из списка известных или пропуск."""
    text = (message.text or "").strip()
    if text and text != views.SKIP_TEXT and text not in inventory.category_names:
        await message.answer("Lütfen listeden bir kategori seçin.")
        return
    await state.update_data(category=None if text in ("", views.SKIP_TEXT) else text)
    await state.set_state(ProductState.add_waiting_for_quantity)
    await message.answer("Stok adedini girin:", reply_markup=views.remove_keyboard())


@router.message(ProductState.add_waiting_for_quantity)
async def process_add_product_quantity(message: Message, state: FSMContext) -> None:
    """Сохраняет остаток как текст; число разбирается при сборке товара."""
    await _ask_required_text(
        message,
        state,
        "quantity",
        ProductState.add_waiting_for_purchase_price,
        "Alış fiyatını girin (₺):",
    )


@router.message(ProductState.add_waiting_for_purchase_price)
async def process_add_product_purchase_price(message: Message, state: FSMContext) -> None:
    """Сохраняет цену закупки."""
    await _ask_required_text(
        message,
        state,
        "purchase_price",
        ProductState.add_waiting_for_selling_price,
        "Satış fiyatını girin (₺):",
    )


@router.message(ProductState.add_waiting_for_selling_price)
async def process_add_product_selling_price(message: Message, state: FSMContext) -> None:
    """Сохраняет цену продажи и просит штрихкод."""
    await _ask_required_text(
        message,
        state,
        "selling_price",
        ProductState.add_waiting_for_barcode,
        "Barkodu yazın veya barkodun fotoğrafını gönderin:",
    )


@router.message(ProductState.add_waiting_for_barcode, F.photo)
async def process_add_product_barcode_photo(message: Message, state: FSMContext) -> None:
    """
    Распознает штрихкод на фото и подставляет его в поле формы.
    """
    try:
        image_data = await download_photo(message)
        barcode = await capture_barcode(image_data)
    except InventoryError as e:
        await message.answer(e.user_message)
        return

    if barcode is None:
        await message.answer("Barkod bulunamadı. Tekrar deneyin veya barkodu yazın.")
        return

    await state.update_data(barcode=barcode)
    await state.set_state(ProductState.add_waiting_for_image)
    await message.answer(
        f"Barkod okundu: {barcode}\n"
        f"Ürün görselini gönderin (atlamak için \"{views.SKIP_TEXT}\"):"
    )


@router.message(ProductState.add_waiting_for_barcode)
async def process_add_product_barcode(message: Message, state: FSMContext) -> None:
    """Штрихкод, введенный вручную."""
    await _ask_required_text(
        message,
        state,
        "barcode",
        ProductState.add_waiting_for_image,
        f"Ürün görselini gönderin (atlamak için \"{views.SKIP_TEXT}\"):",
    )


@router.message(ProductState.add_waiting_for_image)
async def process_add_product_image(
    message: Message, state: FSMContext, inventory: InventoryState
) -> None:
    """
    Обработка изображения (или пропуска) и создание товара.
    """
    if not message.photo and (message.text or "").strip() != views.SKIP_TEXT:
        await message.answer(
            f"Lütfen bir fotoğraf gönderin veya atlamak için \"{views.SKIP_TEXT}\" yazın."
        )
        return

    try:
        if message.photo:
            image_data = await download_photo(message)
            await state.update_data(image=encode_data_url(image_data))
        form_data = await state.get_data()
        draft = build_product_draft(form_data)
        product = await inventory.add_product(draft)
        await message.answer(
            f"Ürün başarıyla eklendi! #{product.id} '{product.name}', "
            f"{product.quantity} adet."
        )
    except InventoryError as e:
        await message.answer(views.format_error(e))
    except Exception:
        logging.exception("Error in process_add_product_image")
        await message.answer(views.INTERNAL_ERROR_MESSAGE)
    finally:
        await finish_scenario(state)


# --- Сценарий редактирования товара ---
@router.message(Command(commands=["edit"]))
async def handle_edit_product_start(
    message: Message, command: CommandObject, state: FSMContext, inventory: InventoryState
) -> None:
    """
    Начало сценария редактирования: показывает товар и список полей.
    """
    if not await ensure_inventory(message, inventory):
        return
    try:
        (product_id,) = parse_int_args(command, 1)
        product = inventory.get_product(product_id)
    except InventoryError as e:
        await message.answer(e.user_message)
        return

    await state.update_data(product_id=product_id)
    await state.set_state(ProductState.edit_waiting_for_field)
    await message.answer(
        views.format_product_details(product) + "\n\nDüzenlenecek alanı seçin:",
        reply_markup=views.choice_keyboard(EDIT_CHOICES),
    )


@router.message(ProductState.edit_waiting_for_field)
async def process_edit_product_field(
    message: Message, state: FSMContext, inventory: InventoryState
) -> None:
    """Принимает выбранное поле и просит новое значение."""
    field = EDIT_CHOICES.get((message.text or "").strip())
    if field is None:
        await message.answer("Lütfen listeden bir alan seçin.")
        return

    await state.update_data(field=field)
    await state.set_state(ProductState.edit_waiting_for_value)
    if field == "category":
        await message.answer(
            f"Yeni kategoriyi seçin (kaldırmak için \"{views.SKIP_TEXT}\"):",
            reply_markup=views.choice_keyboard(inventory.category_names, with_skip=True),
        )
    elif field == "image":
        await message.answer(
            f"Yeni ürün görselini gönderin (kaldırmak için \"{views.SKIP_TEXT}\"):",
            reply_markup=views.remove_keyboard(),
        )
    elif field == "barcode":
        await message.answer(
            "Yeni barkodu yazın veya barkodun fotoğrafını gönderin:",
            reply_markup=views.remove_keyboard(),
        )
    else:
        await message.answer(
            f"Yeni {FIELD_LABELS[field]} değerini girin:",
            reply_markup=views.remove_keyboard(),
        )


async def _save_edited_field(
    message: Message,
    state: FSMContext,
    inventory: InventoryState,
    field: str,
    value: str | None,
) -> None:
    """Собирает полную замену товара с новым значением поля и сохраняет ее."""
    user_data = await state.get_data()
    try:
        product = inventory.get_product(user_data["product_id"])
        replacement = build_replacement(product, {field: value})
        updated = await inventory.edit_product(replacement)
        await message.answer(
            f"'{updated.name}' güncellendi.", reply_markup=views.remove_keyboard()
        )
    except InventoryError as e:
        await message.answer(views.format_error(e), reply_markup=views.remove_keyboard())
    except Exception:
        logging.exception("Error while saving edited product")
        await message.answer(views.INTERNAL_ERROR_MESSAGE)
    finally:
        await finish_scenario(state)


@router.message(ProductState.edit_waiting_for_value, F.photo)
async def process_edit_product_photo(
    message: Message, state: FSMContext, inventory: InventoryState
) -> None:
    """
    Фото на шаге значения: новый штрихкод со снимка или новый снимок товара.
    """
    field = (await state.get_data())["field"]
    if field not in PHOTO_FIELDS:
        await message.answer(f"Lütfen yeni {FIELD_LABELS[field]} değerini yazın.")
        return

    try:
        image_data = await download_photo(message)
        if field == "barcode":
            value = await capture_barcode(image_data)
        else:
            value = encode_data_url(image_data)
    except InventoryError as e:
        await message.answer(e.user_message)
        return

    if value is None:
        await message.answer("Barkod bulunamadı. Tekrar deneyin veya barkodu yazın.")
        return
    await _save_edited_field(message, state, inventory, field, value)


@router.message(ProductState.edit_waiting_for_value)
async def process_edit_product_value(
    message: Message, state: FSMContext, inventory: InventoryState
) -> None:
    """
    Обработка нового текстового значения и сохранение полной замены товара.
    """
    field = (await state.get_data())["field"]
    value: str | None = (message.text or "").strip()
    if field in OPTIONAL_FIELDS and value == views.SKIP_TEXT:
        value = None
    elif field == "image":
        await message.answer(
            f"Lütfen bir fotoğraf gönderin veya kaldırmak için \"{views.SKIP_TEXT}\" yazın."
        )
        return

    await _save_edited_field(message, state, inventory, field, value)


# --- Сценарий удаления товара ---
@router.message(Command(commands=["delete"]))
async def handle_delete_product_start(
    message: Message, command: CommandObject, state: FSMContext, inventory: InventoryState
) -> None:
    """
    Начало сценария удаления: запрос подтверждения.
    """
    if not await ensure_inventory(message, inventory):
        return
    try:
        (product_id,) = parse_int_args(command, 1)
        product = inventory.get_product(product_id)
    except InventoryError as e:
        await message.answer(e.user_message)
        return

    await state.update_data(product_id=product_id, product_name=product.name)
    await state.set_state(ProductState.delete_waiting_for_confirmation)
    await message.answer(
        f"'{product.name}' ürününü silmek istediğinize emin misiniz? "
        f"Bu işlem geri alınamaz. ({views.CONFIRM_TEXT}/{views.DECLINE_TEXT})",
        reply_markup=views.confirm_keyboard(),
    )


@router.message(ProductState.delete_waiting_for_confirmation)
async def process_delete_product_confirmation(
    message: Message, state: FSMContext, inventory: InventoryState
) -> None:
    """Удаляет товар после ответа evet, отменяет после hayır."""
    answer = (message.text or "").strip().casefold()
    if answer not in (views.CONFIRM_TEXT, views.DECLINE_TEXT):
        await message.answer(
            f"Lütfen \"{views.CONFIRM_TEXT}\" veya \"{views.DECLINE_TEXT}\" yazın."
        )
        return

    user_data = await state.get_data()
    try:
        if answer == views.DECLINE_TEXT:
            await message.answer("Silme iptal edildi.", reply_markup=views.remove_keyboard())
            return
        await inventory.delete_product(user_data["product_id"])
        await message.answer(
            f"'{user_data['product_name']}' silindi.", reply_markup=views.remove_keyboard()
        )
    except InventoryError as e:
        await message.answer(e.user_message, reply_markup=views.remove_keyboard())
    except Exception:
        logging.exception("Error in process_delete_product_confirmation")
        await message.answer(views.INTERNAL_ERROR_MESSAGE)
    finally:
        await finish_scenario(state)
