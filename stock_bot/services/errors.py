"""Иерархия ошибок приложения и классификация ошибок хранилища."""

import logging

from sqlalchemy.exc import DBAPIError, SQLAlchemyError

# Код PostgreSQL для отсутствующей таблицы (undefined_table)
UNDEFINED_TABLE_SQLSTATE = "42P01"


class InventoryError(Exception):
    """Базовая ошибка приложения с сообщением для пользователя."""

    user_message = "Beklenmeyen bir hata oluştu. Lütfen daha sonra tekrar deneyin."

    def __init__(self, detail: str | None = None, user_message: str | None = None):
        super().__init__(detail or self.user_message)
        if user_message is not None:
            self.user_message = user_message


class StoreConfigurationError(InventoryError):
    """Не задано подключение к базе данных."""

    user_message = (
        "Veritabanı bağlantısı yapılandırılmamış.\n"
        "Lütfen .env dosyasında DATABASE_URL veya "
        "POSTGRES_USER, POSTGRES_PASSWORD, POSTGRES_DB, POSTGRES_HOST "
        "değerlerini tanımlayın ve botu yeniden başlatın."
    )


class SchemaMissingError(InventoryError):
    """В базе данных нет ожидаемой таблицы."""

    user_message = (
        "Veritabanı tabloları bulunamadı.\n"
        "Lütfen 'alembic upgrade head' komutunu çalıştırın veya aşağıdaki "
        "SQL betiğini veritabanınızda çalıştırın, ardından /reload yazın."
    )


class StoreUnavailableError(InventoryError):
    """Временная ошибка подключения к базе данных."""

    user_message = (
        "Veritabanına bağlanılamadı. Bağlantınızı kontrol edip "
        "/reload ile tekrar deneyin."
    )


class FormValidationError(InventoryError):
    """Некорректные или неполные данные формы."""

    user_message = "Lütfen tüm zorunlu alanları doldurun."

    def __init__(self, missing_fields: list[str] | None = None, user_message: str | None = None):
        self.missing_fields = missing_fields or []
        if user_message is None and self.missing_fields:
            user_message = (
                "Lütfen tüm zorunlu alanları doldurun: " + ", ".join(self.missing_fields)
            )
        super().__init__(user_message=user_message)


class ProductNotFoundError(InventoryError):
    """Товар с указанным ID не найден."""

    user_message = "Ürün bulunamadı."

    def __init__(self, product_id: int):
        self.product_id = product_id
        super().__init__(
            f"Product {product_id} not found.",
            user_message=f"#{product_id} numaralı ürün bulunamadı.",
        )


class BarcodeCaptureError(InventoryError):
    """Не удалось подготовить изображение для распознавания штрихкода."""

    user_message = "Görsel okunamadı. Lütfen barkodun net bir fotoğrafını gönderin."


class AssistantConfigurationError(InventoryError):
    """Не задан ключ API для Gemini."""

    user_message = "API anahtarı eksik. Lütfen GEMINI_API_KEY değerini tanımlayın."


def _is_missing_table(exc: BaseException) -> bool:
    orig = getattr(exc, "orig", None)
    for candidate in (orig, getattr(orig, "__cause__", None)):
        if candidate is None:
            continue
        if getattr(candidate, "sqlstate", None) == UNDEFINED_TABLE_SQLSTATE:
            return True
        if getattr(candidate, "pgcode", None) == UNDEFINED_TABLE_SQLSTATE:
            return True
    message = str(exc).lower()
    return "no such table" in message or "undefinedtableerror" in message


def classify_store_error(exc: BaseException) -> InventoryError:
    """
    Сопоставляет исключение хранилища с типом ошибки приложения.

    Args:
        exc: Исходное исключение (SQLAlchemy, OS или уже классифицированное).

    Returns:
        Экземпляр InventoryError соответствующего типа.
    """
    if isinstance(exc, InventoryError):
        return exc
    if isinstance(exc, DBAPIError) and _is_missing_table(exc):
        return SchemaMissingError(str(exc))
    if isinstance(exc, (SQLAlchemyError, OSError)):
        return StoreUnavailableError(str(exc))

    logging.error("Unclassified store error: %r", exc)
    return StoreUnavailableError(str(exc))
