"""Обработчики базовых команд бота: просмотр, поиск, остатки и категории."""

import logging

from aiogram import Router
from aiogram.filters import Command, CommandObject, CommandStart
from aiogram.fsm.context import FSMContext
from aiogram.types import Message

from stock_bot.handlers import views
from stock_bot.services.errors import FormValidationError, InventoryError
from stock_bot.services.inventory import InventoryState

# Создаем "роутер" для наших хендлеров.
router = Router()


async def ensure_inventory(message: Message, inventory: InventoryState) -> bool:
    """
    Проверяет, что данные склада загружены.

    Если состояние еще не загружено, пробует загрузить его. При ошибке
    отправляет пользователю экран настройки или сообщение о повторе.

    Returns:
        True, если с данными можно работать.
    """
    if not inventory.loaded and inventory.error is None:
        await inventory.load()
    if inventory.error is not None:
        await message.answer(views.format_error(inventory.error))
        return False
    return True


def parse_int_args(command: CommandObject, count: int) -> list[int]:
    """
    Разбирает целочисленные аргументы команды.

    Raises:
        FormValidationError: Если аргументов меньше нужного или они не числа.
    """
    parts = (command.args or "").split()
    if len(parts) < count or not all(part.isdecimal() for part in parts[:count]):
        raise FormValidationError(
            user_message=f"Kullanım: /{command.command} " + " ".join(["<sayı>"] * count)
        )
    return [int(part) for part in parts[:count]]


async def send_product_list(
    message: Message, state: FSMContext, inventory: InventoryState
) -> None:
    """Отправляет список товаров с учетом сохраненных фильтров."""
    if not await ensure_inventory(message, inventory):
        return

    data = await state.get_data()
    search_term = data.get("search_term", "")
    category = data.get("selected_category")

    if not inventory.products and not search_term and not category:
        await message.answer(views.EMPTY_INVENTORY_MESSAGE)
        return

    products = inventory.filtered(search_term, category)
    await message.answer(views.format_product_list(products, search_term, category))


@router.message(CommandStart())
async def handle_start(message: Message) -> None:
    """
    Обработчик команды /start.
    """
    await message.answer(
        "Merhaba! Ben ASLAN AVM stok asistanıyım.\n\n" + views.HELP_TEXT
    )


@router.message(Command(commands=["help"]))
async def handle_help(message: Message) -> None:
    """Показывает список команд."""
    await message.answer(views.HELP_TEXT)


@router.message(Command(commands=["list"]))
async def handle_list_products(
    message: Message, state: FSMContext, inventory: InventoryState
) -> None:
    """
    Обработчик команды /list.
    Показывает список товаров с учетом поиска и выбранной категории.

    Args:
        message: Объект сообщения от пользователя.
        state: Контекст FSM с сохраненными фильтрами.
        inventory: Состояние склада (передается через middleware).
    """
    try:
        await send_product_list(message, state, inventory)
    except Exception:
        # 🛡️ Логируем полную информацию об ошибке
        logging.exception("Произошла ошибка в хендлере handle_list_products")
        # 🗣️ Сообщаем пользователю, что что-то пошло не так
        await message.answer(views.INTERNAL_ERROR_MESSAGE)


@router.message(Command(commands=["search"]))
async def handle_search(
    message: Message, command: CommandObject, state: FSMContext, inventory: InventoryState
) -> None:
    """Сохраняет поисковую строку и показывает результат."""
    await state.update_data(search_term=(command.args or "").strip())
    await send_product_list(message, state, inventory)


@router.message(Command(commands=["category"]))
async def handle_select_category(
    message: Message, command: CommandObject, state: FSMContext, inventory: InventoryState
) -> None:
    """Выбирает категорию для фильтра. Без аргумента показываются все категории."""
    if not await ensure_inventory(message, inventory):
        return

    category = (command.args or "").strip()
    if category and category not in inventory.filter_category_names:
        known = ", ".join(inventory.filter_category_names) or "-"
        await message.answer(f"\"{category}\" adlı kategori yok. Kategoriler: {known}")
        return

    await state.update_data(selected_category=category or None)
    await send_product_list(message, state, inventory)


@router.message(Command(commands=["clear"]))
async def handle_clear_filters(
    message: Message, state: FSMContext, inventory: InventoryState
) -> None:
    """Сбрасывает поиск и категорию и показывает полный список."""
    await state.update_data(search_term="", selected_category=None)
    await send_product_list(message, state, inventory)


@router.message(Command(commands=["categories"]))
async def handle_list_categories(message: Message, inventory: InventoryState) -> None:
    """Показывает все категории по алфавиту."""
    if not await ensure_inventory(message, inventory):
        return
    if not inventory.categories:
        await message.answer("Henüz kategori yok. /addcategory <ad> ile ekleyebilirsiniz.")
        return
    lines = ["Kategoriler:"]
    lines.extend(f"- {name}" for name in inventory.category_names)
    await message.answer("\n".join(lines))


@router.message(Command(commands=["addcategory"]))
async def handle_add_category(
    message: Message, command: CommandObject, inventory: InventoryState
) -> None:
    """Создает новую категорию. Повторное имя не создает дубликат."""
    if not await ensure_inventory(message, inventory):
        return
    try:
        category = await inventory.add_category(command.args or "")
    except InventoryError as e:
        await message.answer(e.user_message)
        return

    if category is None:
        await message.answer("Bu kategori zaten mevcut.")
    else:
        await message.answer(f"\"{category.name}\" kategorisi eklendi.")


@router.message(Command(commands=["product"]))
async def handle_product_details(
    message: Message, command: CommandObject, inventory: InventoryState
) -> None:
    """Карточка товара: /product <id>."""
    if not await ensure_inventory(message, inventory):
        return
    try:
        (product_id,) = parse_int_args(command, 1)
        product = inventory.get_product(product_id)
    except InventoryError as e:
        await message.answer(e.user_message)
        return
    await message.answer(views.format_product_details(product))


@router.message(Command(commands=["history"]))
async def handle_product_history(
    message: Message, command: CommandObject, inventory: InventoryState
) -> None:
    """Показывает журнал изменений остатка товара."""
    if not await ensure_inventory(message, inventory):
        return
    try:
        (product_id,) = parse_int_args(command, 1)
        product = inventory.get_product(product_id)
        entries = await inventory.history(product_id)
    except InventoryError as e:
        await message.answer(e.user_message)
        return
    await message.answer(views.format_history(product, entries))


@router.message(Command(commands=["stock"]))
async def handle_update_quantity(
    message: Message, command: CommandObject, inventory: InventoryState
) -> None:
    """
    Обработчик команды /stock <id> <adet>.
    Устанавливает новый остаток товара.
    """
    if not await ensure_inventory(message, inventory):
        return
    try:
        product_id, quantity = parse_int_args(command, 2)
        product = await inventory.update_quantity(product_id, quantity)
    except InventoryError as e:
        await message.answer(e.user_message)
        return
    except Exception:
        logging.exception("Error in handle_update_quantity")
        await message.answer(views.INTERNAL_ERROR_MESSAGE)
        return

    await message.answer(
        f"'{product.name}' stoğu güncellendi. Yeni stok: {product.quantity} adet."
    )


@router.message(Command(commands=["sell"]))
async def handle_record_sale(
    message: Message, command: CommandObject, inventory: InventoryState
) -> None:
    """
    Обработчик команды /sell <id> <adet>.
    Списывает проданные единицы.
    """
    if not await ensure_inventory(message, inventory):
        return
    try:
        product_id, count = parse_int_args(command, 2)
        product = await inventory.record_sale(product_id, count)
    except InventoryError as e:
        await message.answer(e.user_message)
        return
    except Exception:
        logging.exception("Error in handle_record_sale")
        await message.answer(views.INTERNAL_ERROR_MESSAGE)
        return

    await message.answer(
        f"'{product.name}' için {count} adet satış kaydedildi. "
        f"Kalan stok: {product.quantity} adet."
    )


@router.message(Command(commands=["samples"]))
async def handle_add_samples(message: Message, inventory: InventoryState) -> None:
    """Добавляет демонстрационные товары, если склад пуст."""
    if not await ensure_inventory(message, inventory):
        return
    if inventory.products:
        await message.answer("Örnek ürünler yalnızca boş depoya eklenebilir.")
        return
    try:
        added = await inventory.add_sample_products()
    except InventoryError as e:
        await message.answer(e.user_message)
        return
    await message.answer(f"{len(added)} örnek ürün eklendi. /list ile görüntüleyin.")


@router.message(Command(commands=["reload"]))
async def handle_reload(message: Message, inventory: InventoryState) -> None:
    """Перечитывает все данные из базы."""
    await inventory.load()
    if inventory.error is not None:
        await message.answer(views.format_error(inventory.error))
        return
    await message.answer(
        f"Veriler yüklendi: {len(inventory.products)} ürün, "
        f"{len(inventory.categories)} kategori."
    )
