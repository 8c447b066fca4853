"""Обращения к Gemini: чат-ассистент и описание изображений."""

import base64
import logging
import re
from collections.abc import Sequence
from typing import TypedDict

from google import genai
from google.genai import types

from stock_bot.services.errors import AssistantConfigurationError

SYSTEM_INSTRUCTION = (
    "Sen ASLAN AVM'nin yardımsever, Türkçe konuşan yapay zeka asistanısın. "
    "Mağaza yönetimi, stok takibi ve genel muhasebe konularında uzmansın. "
    "Cevapların kısa, net ve profesyonel olmalı."
)
DEFAULT_IMAGE_PROMPT = (
    "Bu görseli analiz et ve perakende/stok yönetimi açısından ne içerdiğini "
    "Türkçe olarak açıkla."
)

CHAT_FAILURE_MESSAGE = (
    "Üzgünüm, şu anda hizmet veremiyorum. Lütfen API anahtarınızı kontrol edin."
)
CHAT_EMPTY_REPLY_MESSAGE = "Bir hata oluştu, cevap alınamadı."
IMAGE_FAILURE_MESSAGE = "Görsel analizi sırasında bir hata oluştu."
IMAGE_EMPTY_REPLY_MESSAGE = "Görsel analiz edilemedi."

DEFAULT_IMAGE_MIME_TYPE = "image/png"
_DATA_URL_RE = re.compile(r"^data:([a-zA-Z0-9]+/[a-zA-Z0-9.+-]+)[^,]*,(.*)$", re.DOTALL)


class ChatTurn(TypedDict):
    """Одна реплика диалога: role = "user" или "model"."""

    role: str
    text: str


def split_image_payload(image_data: bytes | str) -> tuple[bytes, str]:
    """
    Возвращает байты изображения и его MIME-тип.

    Строка может быть data URL ("data:image/jpeg;base64,...") или чистым
    base64. Для байтов и строк без заголовка тип по умолчанию image/png.
    """
    if isinstance(image_data, bytes):
        return image_data, DEFAULT_IMAGE_MIME_TYPE

    match = _DATA_URL_RE.match(image_data)
    if match:
        return base64.b64decode(match.group(2)), match.group(1)
    return base64.b64decode(image_data), DEFAULT_IMAGE_MIME_TYPE


class AssistantBridge:
    """
    Обертка над Gemini API.

    Клиент создается заново на каждый вызов. Ошибки не пробрасываются:
    вместо них возвращается фиксированный текст.
    """

    def __init__(self, api_key: str | None, model: str):
        self._api_key = api_key
        self._model = model

    def _client(self) -> genai.Client:
        if not self._api_key:
            raise AssistantConfigurationError("GEMINI_API_KEY is missing.")
        return genai.Client(api_key=self._api_key)

    async def converse(
        self, message: str, prior_turns: Sequence[ChatTurn] = ()
    ) -> str:
        """
        Отправляет сообщение пользователя вместе с историей диалога.

        Args:
            message: Текст пользователя.
            prior_turns: Предыдущие реплики диалога.

        Returns:
            Ответ модели или фиксированное сообщение об ошибке.
        """
        try:
            client = self._client()
            history = [
                types.Content(role=turn["role"], parts=[types.Part(text=turn["text"])])
                for turn in prior_turns
            ]
            chat = client.aio.chats.create(
                model=self._model,
                history=history,
                config=types.GenerateContentConfig(
                    system_instruction=SYSTEM_INSTRUCTION
                ),
            )
            response = await chat.send_message(message)
        except Exception:
            logging.exception("Gemini chat error")
            return CHAT_FAILURE_MESSAGE

        return response.text or CHAT_EMPTY_REPLY_MESSAGE

    async def describe_image(
        self, image_data: bytes | str, instruction_prompt: str | None = None
    ) -> str:
        """
        Отправляет изображение с инструкцией в мультимодальную модель.

        Args:
            image_data: Байты изображения, data URL или base64.
            instruction_prompt: Что нужно сделать с изображением.

        Returns:
            Описание изображения или фиксированное сообщение об ошибке.
        """
        try:
            client = self._client()
            data, mime_type = split_image_payload(image_data)
            response = await client.aio.models.generate_content(
                model=self._model,
                contents=[
                    types.Part.from_bytes(data=data, mime_type=mime_type),
                    instruction_prompt or DEFAULT_IMAGE_PROMPT,
                ],
            )
        except Exception:
            logging.exception("Gemini image analysis error")
            return IMAGE_FAILURE_MESSAGE

        return response.text or IMAGE_EMPTY_REPLY_MESSAGE
