"""Хранилище состояния склада в памяти и его операции."""

import logging
from decimal import Decimal

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from stock_bot.db.models import Category, ChangeType, Product, ProductDraft, StockLog
from stock_bot.services import history_service, product_service
from stock_bot.services.errors import (
    FormValidationError,
    InventoryError,
    ProductNotFoundError,
    StoreConfigurationError,
    classify_store_error,
)
from stock_bot.services.filtering import filter_products
from stock_bot.services.product_forms import MAX_QUANTITY

SAMPLE_CATEGORIES = ("Süt & Kahvaltılık", "İçecek", "Bakliyat", "Temizlik")

SAMPLE_PRODUCTS = (
    ProductDraft(
        name="Tam Yağlı Süt 1L",
        company="Sütaş",
        quantity=45,
        purchase_price=Decimal("22.50"),
        selling_price=Decimal("35.00"),
        barcode="869012345678",
        category="Süt & Kahvaltılık",
    ),
    ProductDraft(
        name="Çaykur Rize Turist Çayı 1kg",
        company="Çaykur",
        quantity=12,
        purchase_price=Decimal("110.00"),
        selling_price=Decimal("145.90"),
        barcode="869055544433",
        category="İçecek",
    ),
    ProductDraft(
        name="Beypazarı Maden Suyu 6'lı",
        company="Beypazarı",
        quantity=8,
        purchase_price=Decimal("28.00"),
        selling_price=Decimal("42.50"),
        barcode="869099988877",
        category="İçecek",
    ),
    ProductDraft(
        name="Osmancık Pirinç 2.5kg",
        company="Yayla",
        quantity=20,
        purchase_price=Decimal("85.00"),
        selling_price=Decimal("115.00"),
        barcode="869011122233",
        category="Bakliyat",
    ),
    ProductDraft(
        name="Bulaşık Deterjanı 750ml",
        company="Fairy",
        quantity=30,
        purchase_price=Decimal("48.00"),
        selling_price=Decimal("64.90"),
        barcode="869077766655",
        category="Temizlik",
    ),
)


class InventoryState:
    """
    Единый источник данных о товарах и категориях для обработчиков.

    Держит кэш товаров (новые первыми) и категорий (по алфавиту).
    Все изменения проходят через методы этого класса: сначала запись
    в базу, затем обновление кэша. Исключение составляет update_quantity,
    который меняет кэш заранее и перечитывает все данные при ошибке.
    """

    def __init__(self, session_factory: async_sessionmaker[AsyncSession] | None):
        self._session_factory = session_factory
        self.products: list[Product] = []
        self.categories: list[Category] = []
        self.error: InventoryError | None = None
        self.loaded = False

    def _session(self) -> AsyncSession:
        if self._session_factory is None:
            raise StoreConfigurationError("Session factory is not configured.")
        return self._session_factory()

    @property
    def category_names(self) -> list[str]:
        return [category.name for category in self.categories]

    @property
    def filter_category_names(self) -> list[str]:
        """
        Категории, доступные для фильтра списка.

        Кроме таблицы categories учитываются категории, указанные у товаров:
        связь товара с категорией не проверяется базой.
        """
        names = set(self.category_names)
        names.update(product.category for product in self.products if product.category)
        return sorted(names)

    async def load(self) -> None:
        """
        Загружает все товары и категории.

        При ошибке кэш очищается, а классифицированная ошибка
        сохраняется в self.error. Исключения не пробрасываются.
        """
        try:
            async with self._session() as session:
                products = await product_service.get_all_products(session)
                categories = await product_service.get_all_categories(session)
        except (InventoryError, SQLAlchemyError, OSError) as exc:
            self.error = classify_store_error(exc)
            self.products = []
            self.categories = []
            self.loaded = False
            logging.warning("Inventory load failed: %s", type(self.error).__name__)
            return

        self.products = list(products)
        self.categories = list(categories)
        self.error = None
        self.loaded = True
        logging.info(
            "Inventory loaded: %d products, %d categories",
            len(self.products),
            len(self.categories),
        )

    def get_product(self, product_id: int) -> Product:
        """
        Возвращает товар из кэша.

        Raises:
            ProductNotFoundError: Если товара нет в кэше.
        """
        for product in self.products:
            if product.id == product_id:
                return product
        raise ProductNotFoundError(product_id)

    def filtered(self, search_term: str = "", category: str | None = None) -> list[Product]:
        """Товары из кэша, отобранные поиском и категорией."""
        return filter_products(self.products, search_term, category)

    async def add_product(self, draft: ProductDraft) -> Product:
        """
        Сохраняет новый товар и добавляет его в начало списка.

        Args:
            draft: Данные товара без ID.

        Returns:
            Сохраненный товар с ID из базы.

        Raises:
            InventoryError: Если запись не удалась; кэш не меняется.
        """
        try:
            async with self._session() as session:
                product = await product_service.create_product(session, draft)
        except (SQLAlchemyError, OSError) as exc:
            logging.exception("Error while adding product %r", draft.name)
            raise classify_store_error(exc) from exc

        self.products.insert(0, product)
        await self._log_change(product, 0, product.quantity, ChangeType.INITIAL)
        return product

    async def edit_product(self, product: Product) -> Product:
        """
        Полностью заменяет поля товара с тем же ID.

        Журнал остатков не пишется, даже если изменилось количество.

        Raises:
            InventoryError: Если запись не удалась; кэш не меняется.
        """
        try:
            async with self._session() as session:
                updated = await product_service.update_product(session, product)
        except (SQLAlchemyError, OSError) as exc:
            logging.exception("Error while editing product %s", product.id)
            raise classify_store_error(exc) from exc

        self.products = [
            updated if item.id == updated.id else item for item in self.products
        ]
        return updated

    async def delete_product(self, product_id: int) -> None:
        """
        Удаляет товар из базы и из кэша.

        Raises:
            ProductNotFoundError: Если в базе нет такого товара.
            InventoryError: Если удаление не удалось.
        """
        try:
            async with self._session() as session:
                deleted = await product_service.delete_product(session, product_id)
        except (SQLAlchemyError, OSError) as exc:
            logging.exception("Error while deleting product %s", product_id)
            raise classify_store_error(exc) from exc

        self.products = [item for item in self.products if item.id != product_id]
        if not deleted:
            raise ProductNotFoundError(product_id)

    async def update_quantity(
        self,
        product_id: int,
        new_quantity: int,
        change_type: ChangeType = ChangeType.UPDATE,
    ) -> Product:
        """
        Меняет остаток товара.

        Кэш обновляется до записи в базу. Если запись не удалась,
        состояние перечитывается целиком через load().

        Args:
            product_id: ID товара.
            new_quantity: Новый остаток, не меньше нуля.
            change_type: Тип записи в журнале.

        Returns:
            Товар с новым остатком.

        Raises:
            FormValidationError: Если остаток отрицательный или больше MAX_QUANTITY.
            InventoryError: Если запись не удалась.
        """
        if new_quantity < 0:
            raise FormValidationError(user_message="Stok adedi negatif olamaz.")
        if new_quantity > MAX_QUANTITY:
            raise FormValidationError(user_message="Stok adedi çok büyük.")

        product = self.get_product(product_id)
        old_quantity = product.quantity
        product.quantity = new_quantity

        try:
            async with self._session() as session:
                stored = await product_service.set_product_quantity(
                    session, product_id, new_quantity
                )
        except (InventoryError, SQLAlchemyError, OSError) as exc:
            logging.exception("Error while updating quantity of product %s", product_id)
            await self.load()
            raise classify_store_error(exc) from exc

        self.products = [
            stored if item.id == product_id else item for item in self.products
        ]
        await self._log_change(stored, old_quantity, new_quantity, change_type)
        return stored

    async def record_sale(self, product_id: int, count: int) -> Product:
        """
        Списывает проданные единицы товара.

        Raises:
            FormValidationError: Если количество не положительное
                или превышает остаток.
        """
        if count <= 0:
            raise FormValidationError(user_message="Satış adedi sıfırdan büyük olmalı.")

        product = self.get_product(product_id)
        if count > product.quantity:
            raise FormValidationError(user_message="Stokta yeterli ürün yok.")
        return await self.update_quantity(
            product_id, product.quantity - count, ChangeType.SALE
        )

    async def add_category(self, name: str) -> Category | None:
        """
        Создает категорию.

        Returns:
            Новая категория или None, если такое имя уже есть.

        Raises:
            FormValidationError: Если имя пустое.
            InventoryError: Если запись не удалась.
        """
        name = name.strip()
        if not name:
            raise FormValidationError(["Kategori"])

        try:
            async with self._session() as session:
                category = await product_service.create_category(session, name)
        except (SQLAlchemyError, OSError) as exc:
            logging.exception("Error while adding category %r", name)
            raise classify_store_error(exc) from exc

        if category is None:
            logging.warning("Category %r already exists", name)
            return None

        self.categories.append(category)
        self.categories.sort(key=lambda item: item.name)
        return category

    async def add_sample_products(self) -> list[Product]:
        """Добавляет демонстрационные категории и товары."""
        for name in SAMPLE_CATEGORIES:
            await self.add_category(name)

        added = []
        for draft in SAMPLE_PRODUCTS:
            added.append(await self.add_product(draft.model_copy()))
        return added

    async def history(self, product_id: int) -> list[StockLog]:
        """
        Возвращает журнал остатков товара.

        Raises:
            InventoryError: Если чтение не удалось.
        """
        try:
            async with self._session() as session:
                entries = await history_service.get_product_history(session, product_id)
        except (SQLAlchemyError, OSError) as exc:
            logging.exception("Error while reading history of product %s", product_id)
            raise classify_store_error(exc) from exc
        return list(entries)

    async def _log_change(
        self,
        product: Product,
        old_quantity: int,
        new_quantity: int,
        change_type: ChangeType,
    ) -> None:
        # Ошибка журнала не откатывает уже сохраненный товар
        if product.id is None:
            return
        try:
            async with self._session() as session:
                await history_service.log_stock_change(
                    session, product.id, old_quantity, new_quantity, change_type
                )
        except (InventoryError, SQLAlchemyError, OSError):
            logging.exception(
                "Stock history write failed for product %s (%s)",
                product.id,
                change_type,
            )
