"""Состояния (FSM) для сценариев бота."""

from aiogram.fsm.context import FSMContext
from aiogram.fsm.state import State, StatesGroup


class ProductState(StatesGroup):
    """
    Состояния для сценариев добавления, редактирования и удаления товара.
    """

    # Состояния для добавления
    add_waiting_for_name = State()
    add_waiting_for_company = State()
    add_waiting_for_category = State()
    add_waiting_for_quantity = State()
    add_waiting_for_purchase_price = State()
    add_waiting_for_selling_price = State()
    add_waiting_for_barcode = State()
    add_waiting_for_image = State()

    # Состояния для редактирования
    edit_waiting_for_field = State()
    edit_waiting_for_value = State()

    # Подтверждение удаления
    delete_waiting_for_confirmation = State()


class ScanState(StatesGroup):
    """Ожидание фотографии штрихкода для поиска."""

    waiting_for_photo = State()


class AssistantState(StatesGroup):
    """Диалог с ассистентом и анализ изображения."""

    chatting = State()
    waiting_for_image = State()


# Ключи данных FSM, которые переживают завершение сценария
FILTER_KEYS = ("search_term", "selected_category")


async def finish_scenario(state: FSMContext) -> None:
    """
    Завершает текущий сценарий, сохраняя фильтры списка товаров.
    """
    data = await state.get_data()
    await state.set_state(None)
    await state.set_data({key: data[key] for key in FILTER_KEYS if key in data})
