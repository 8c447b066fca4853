"""Тесты обертки над Gemini API."""

import base64
from collections.abc import Iterator
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from stock_bot.services.assistant import (
    CHAT_EMPTY_REPLY_MESSAGE,
    CHAT_FAILURE_MESSAGE,
    DEFAULT_IMAGE_PROMPT,
    IMAGE_FAILURE_MESSAGE,
    SYSTEM_INSTRUCTION,
    AssistantBridge,
    split_image_payload,
)

MODEL = "gemini-test"


@pytest.fixture
def client_cls() -> Iterator[MagicMock]:
    """Подменяет genai.Client и возвращает мок класса."""
    with patch("stock_bot.services.assistant.genai.Client") as mocked:
        yield mocked


async def test_converse_without_api_key_returns_apology(client_cls: MagicMock) -> None:
    bridge = AssistantBridge(api_key=None, model=MODEL)

    reply = await bridge.converse("Stokta kaç süt var?")

    assert reply == CHAT_FAILURE_MESSAGE
    client_cls.assert_not_called()


async def test_converse_missing_key_is_checked_on_every_call(client_cls: MagicMock) -> None:
    bridge = AssistantBridge(api_key="", model=MODEL)

    assert await bridge.converse("bir") == CHAT_FAILURE_MESSAGE
    assert await bridge.converse("iki") == CHAT_FAILURE_MESSAGE
    client_cls.assert_not_called()


async def test_converse_sends_history_and_persona(client_cls: MagicMock) -> None:
    chat = MagicMock()
    chat.send_message = AsyncMock(return_value=SimpleNamespace(text="45 adet var."))
    client_cls.return_value.aio.chats.create.return_value = chat
    bridge = AssistantBridge(api_key="key", model=MODEL)

    reply = await bridge.converse(
        "Stokta kaç süt var?",
        [{"role": "model", "text": "Merhaba!"}, {"role": "user", "text": "Selam"}],
    )

    assert reply == "45 adet var."
    client_cls.assert_called_once_with(api_key="key")
    kwargs = client_cls.return_value.aio.chats.create.call_args.kwargs
    assert kwargs["model"] == MODEL
    assert [content.role for content in kwargs["history"]] == ["model", "user"]
    assert kwargs["history"][1].parts[0].text == "Selam"
    assert kwargs["config"].system_instruction == SYSTEM_INSTRUCTION
    chat.send_message.assert_awaited_once_with("Stokta kaç süt var?")


async def test_converse_empty_reply(client_cls: MagicMock) -> None:
    chat = MagicMock()
    chat.send_message = AsyncMock(return_value=SimpleNamespace(text=None))
    client_cls.return_value.aio.chats.create.return_value = chat

    reply = await AssistantBridge(api_key="key", model=MODEL).converse("?")

    assert reply == CHAT_EMPTY_REPLY_MESSAGE


async def test_converse_service_error_never_raises(client_cls: MagicMock) -> None:
    chat = MagicMock()
    chat.send_message = AsyncMock(side_effect=RuntimeError("503"))
    client_cls.return_value.aio.chats.create.return_value = chat

    reply = await AssistantBridge(api_key="key", model=MODEL).converse("?")

    assert reply == CHAT_FAILURE_MESSAGE


async def test_describe_image_sends_payload_with_mime_type(client_cls: MagicMock) -> None:
    generate = AsyncMock(return_value=SimpleNamespace(text="Bir şişe süt."))
    client_cls.return_value.aio.models.generate_content = generate
    data_url = "data:image/jpeg;base64," + base64.b64encode(b"jpeg-bytes").decode()

    reply = await AssistantBridge(api_key="key", model=MODEL).describe_image(data_url, "")

    assert reply == "Bir şişe süt."
    contents = generate.call_args.kwargs["contents"]
    assert contents[0].inline_data.mime_type == "image/jpeg"
    assert contents[0].inline_data.data == b"jpeg-bytes"
    assert contents[1] == DEFAULT_IMAGE_PROMPT


async def test_describe_image_failure(client_cls: MagicMock) -> None:
    client_cls.return_value.aio.models.generate_content = AsyncMock(
        side_effect=RuntimeError("quota")
    )

    reply = await AssistantBridge(api_key="key", model=MODEL).describe_image(b"png", "Nedir?")

    assert reply == IMAGE_FAILURE_MESSAGE


async def test_describe_image_without_api_key() -> None:
    reply = await AssistantBridge(api_key=None, model=MODEL).describe_image(b"png")

    assert reply == IMAGE_FAILURE_MESSAGE


def test_split_image_payload() -> None:
    raw = base64.b64encode(b"abc").decode()

    assert split_image_payload(b"abc") == (b"abc", "image/png")
    assert split_image_payload(raw) == (b"abc", "image/png")
    assert split_image_payload(f"data:image/webp;base64,{raw}") == (b"abc", "image/webp")
