"""Главный файл приложения. Точка входа."""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import uvicorn
from aiogram import Bot, Dispatcher
from aiogram.fsm.storage.redis import RedisStorage
from fastapi import FastAPI, Request, Response
from fastapi.responses import JSONResponse
from redis.asyncio import Redis

from stock_bot.core.config import settings
from stock_bot.core.logging import setup_logging
from stock_bot.db.session import create_engine, create_session_factory
from stock_bot.handlers import assistant, barcode, commands, product_management
from stock_bot.middlewares.inventory import InventoryMiddleware
from stock_bot.services.assistant import AssistantBridge
from stock_bot.services.errors import StoreConfigurationError
from stock_bot.services.inventory import InventoryState


def build_dispatcher(
    storage: RedisStorage, inventory: InventoryState, assistant_bridge: AssistantBridge
) -> Dispatcher:
    """
    Создает Dispatcher с middleware и роутерами.

    Роутер с /cancel подключается первым, чтобы отмена работала
    в любом состоянии FSM.
    """
    dp = Dispatcher(storage=storage)
    dp.update.middleware(InventoryMiddleware(inventory=inventory, assistant=assistant_bridge))
    dp.include_router(product_management.router)
    dp.include_router(commands.router)
    dp.include_router(barcode.router)
    dp.include_router(assistant.router)
    return dp


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Контекстный менеджер для управления жизненным циклом приложения.
    """
    setup_logging(settings.LOG_LEVEL, settings.LOG_JSON)
    logging.info("Lifespan start")

    engine = None
    try:
        engine = create_engine(settings.database_url)
        inventory = InventoryState(create_session_factory(engine))
    except StoreConfigurationError:
        logging.error("Database is not configured, bot starts in setup mode")
        inventory = InventoryState(None)
    await inventory.load()

    assistant_bridge = AssistantBridge(
        api_key=settings.GEMINI_API_KEY, model=settings.GEMINI_MODEL
    )

    bot = Bot(token=settings.BOT_TOKEN)
    redis_client = Redis(host=settings.REDIS_HOST, port=settings.REDIS_PORT)
    storage = RedisStorage(redis=redis_client)
    dp = build_dispatcher(storage, inventory, assistant_bridge)

    # Сохраняем экземпляры в app.state для доступа в хендлерах
    app.state.bot = bot
    app.state.dp = dp
    app.state.redis = redis_client
    app.state.inventory = inventory
    logging.info("Bot, Dispatcher, Redis and FSM storage initialized")

    await bot.delete_webhook(drop_pending_updates=True)
    await bot.set_webhook(
        url=settings.webhook_url, secret_token=settings.WEBHOOK_SECRET
    )
    logging.info("Webhook set to %s", settings.webhook_url)

    yield

    logging.info("Lifespan shutdown")
    await app.state.bot.delete_webhook()
    await app.state.bot.session.close()
    await app.state.redis.aclose()
    if engine is not None:
        await engine.dispose()


# --- Приложение FastAPI ---
app = FastAPI(lifespan=lifespan)


@app.post("/telegram/webhook/{token}")
async def webhook_handler(request: Request, token: str) -> Response:
    """
    Обработчик вебхуков от Telegram.
    """
    if token != settings.BOT_TOKEN:
        return JSONResponse(content={"error": "Invalid token"}, status_code=403)

    telegram_secret_token = request.headers.get("X-Telegram-Bot-Api-Secret-Token")
    if telegram_secret_token != settings.WEBHOOK_SECRET:
        return JSONResponse(content={"error": "Invalid secret token"}, status_code=403)

    try:
        update = await request.json()
        dp: Dispatcher = request.app.state.dp
        bot: Bot = request.app.state.bot
        await dp.feed_webhook_update(bot=bot, update=update)
    except Exception:
        logging.exception("!!! Critical error in webhook handler !!!")
        return Response(status_code=500)

    return Response(status_code=200)


@app.get("/health")
async def health_handler(request: Request) -> JSONResponse:
    """
    Состояние загрузки склада: ok или тип ошибки хранилища.
    """
    inventory: InventoryState = request.app.state.inventory
    if inventory.error is not None:
        return JSONResponse(
            content={"status": "error", "error": type(inventory.error).__name__},
            status_code=503,
        )
    return JSONResponse(
        content={
            "status": "ok",
            "products": len(inventory.products),
            "categories": len(inventory.categories),
        }
    )


# --- Точка входа для локального запуска ---
if __name__ == "__main__":
    uvicorn.run(
        "stock_bot.main:app",
        host="0.0.0.0",  # noqa: B104
        port=8000,
        reload=True,
    )
