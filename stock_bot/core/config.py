"""Настройки конфигурации приложения."""

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Загружает настройки из файла .env.

    Атрибуты:
        model_config: Конфигурация для Pydantic моделей.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # База данных. Без этих значений бот стартует и показывает экран настройки.
    DATABASE_URL: str | None = None
    POSTGRES_USER: str | None = None
    POSTGRES_PASSWORD: str | None = None
    POSTGRES_DB: str | None = None
    POSTGRES_HOST: str | None = None
    POSTGRES_PORT: int = 5432

    # Redis
    REDIS_HOST: str
    REDIS_PORT: int

    # Telegram Bot
    BOT_TOKEN: str
    # URL, на который будет установлен вебхук (например, https://your.domain)
    BASE_WEBHOOK_URL: str
    # Секретный ключ для проверки подлинности запросов от Telegram
    WEBHOOK_SECRET: str

    # Gemini
    GEMINI_API_KEY: str | None = None
    GEMINI_MODEL: str = "gemini-2.5-flash"

    # Логирование
    LOG_LEVEL: str = "INFO"
    LOG_JSON: bool = False

    @property
    def webhook_url(self) -> str:
        """
        Собирает полный URL для вебхука.

        Returns:
            Полный URL вебхука.
        """
        return f"{self.BASE_WEBHOOK_URL}/telegram/webhook/{self.BOT_TOKEN}"

    @property
    def database_url(self) -> str | None:
        """
        Собирает строку подключения к базе данных.

        DATABASE_URL имеет приоритет над набором POSTGRES_*.

        Returns:
            Строка подключения для SQLAlchemy или None, если база не настроена.
        """
        if self.DATABASE_URL:
            return self.DATABASE_URL
        if not all(
            (
                self.POSTGRES_USER,
                self.POSTGRES_PASSWORD,
                self.POSTGRES_DB,
                self.POSTGRES_HOST,
            )
        ):
            return None
        return (
            f"postgresql+asyncpg://{self.POSTGRES_USER}:{self.POSTGRES_PASSWORD}"
            f"@{self.POSTGRES_HOST}:{self.POSTGRES_PORT}/{self.POSTGRES_DB}"
        )


settings = Settings()  # type: ignore[call-arg]
