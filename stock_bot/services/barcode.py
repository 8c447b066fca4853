"""Распознавание штрихкодов на фотографиях с камеры телефона."""

import asyncio
import io
import logging
from collections.abc import Callable
from types import TracebackType

import zxingcpp
from PIL import Image, UnidentifiedImageError

from stock_bot.services.errors import BarcodeCaptureError


class ScanSession:
    """
    Сеанс распознавания одного снимка.

    Снимок открывается при входе в контекст и всегда закрывается при выходе:
    после успешного распознавания, при его отсутствии и при ошибке.
    """

    def __init__(self, image_data: bytes):
        self._image_data = image_data
        self._image: Image.Image | None = None
        self._delivered = False

    def open(self) -> "ScanSession":
        """
        Открывает и декодирует снимок.

        Raises:
            BarcodeCaptureError: Если данные не являются изображением.
        """
        try:
            image = Image.open(io.BytesIO(self._image_data))
            image.load()
        except (UnidentifiedImageError, OSError) as exc:
            logging.warning("Barcode decoder initialization failed: %s", exc)
            raise BarcodeCaptureError(str(exc)) from exc
        self._image = image
        return self

    def close(self) -> None:
        if self._image is None:
            return
        try:
            self._image.close()
        except OSError:
            logging.exception("Failed to release scanned image")
        finally:
            self._image = None

    def __enter__(self) -> "ScanSession":
        return self.open()

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()

    def scan(self, on_decoded: Callable[[str], None]) -> str | None:
        """
        Ищет штрихкоды на снимке.

        Колбэк вызывается не более одного раза, с первым распознанным кодом.

        Returns:
            Распознанная строка или None.
        """
        if self._image is None:
            raise RuntimeError("Scan session is not open.")
        if self._delivered:
            return None

        for result in zxingcpp.read_barcodes(self._image.convert("L")):
            if result.text:
                self._delivered = True
                on_decoded(result.text)
                return result.text
        return None


def decode_barcode(
    image_data: bytes, on_decoded: Callable[[str], None] | None = None
) -> str | None:
    """
    Распознает первый штрихкод на снимке и освобождает снимок.

    Args:
        image_data: Байты фотографии.
        on_decoded: Колбэк, получающий распознанную строку.

    Returns:
        Распознанная строка или None, если код не найден.

    Raises:
        BarcodeCaptureError: Если снимок не удалось открыть.
    """
    with ScanSession(image_data) as session:
        return session.scan(on_decoded or (lambda _text: None))


async def capture_barcode(
    image_data: bytes, on_decoded: Callable[[str], None] | None = None
) -> str | None:
    """Выполняет decode_barcode в отдельном потоке, не блокируя цикл событий."""
    return await asyncio.to_thread(decode_barcode, image_data, on_decoded)
