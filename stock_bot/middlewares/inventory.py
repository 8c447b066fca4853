"""Middleware, передающий общие сервисы в обработчики."""

from collections.abc import Awaitable, Callable
from typing import Any

from aiogram import BaseMiddleware
from aiogram.types import TelegramObject

from stock_bot.services.assistant import AssistantBridge
from stock_bot.services.inventory import InventoryState


class InventoryMiddleware(BaseMiddleware):
    """
    Добавляет в данные обработчика состояние склада и ассистента.

    Обработчики получают их как аргументы inventory и assistant.
    """

    def __init__(
        self, inventory: InventoryState, assistant: AssistantBridge | None = None
    ):
        super().__init__()
        self.inventory = inventory
        self.assistant = assistant

    async def __call__(
        self,
        handler: Callable[[TelegramObject, dict[str, Any]], Awaitable[Any]],
        event: TelegramObject,
        data: dict[str, Any],
    ) -> Any:
        data["inventory"] = self.inventory
        if self.assistant is not None:
            data["assistant"] = self.assistant
        return await handler(event, data)
