"""Декодирование байтов в `ImageState` и кодирование обратно в целевой формат.

Принципы:
- SRP: класс отвечает только за кодеки Pillow и выбор выходного формата.
- OCP: новые форматы добавляются строкой в `OUTPUT_FORMATS` и, при необходимости,
  веткой в `_save_options`.
"""
from __future__ import annotations

import io
import logging
from typing import Any, Dict, Optional, Tuple

from PIL import Image, UnidentifiedImageError

from image_gateway.errors import DecodeError, EncodeError
from image_gateway.models.image_model import ImageState, OutputSpec

logger = logging.getLogger(__name__)

# имя в запросе -> (формат Pillow, MIME)
OUTPUT_FORMATS: Dict[str, Tuple[str, str]] = {
    "png": ("PNG", "image/png"),
    "jpeg": ("JPEG", "image/jpeg"),
    "jpg": ("JPEG", "image/jpeg"),
    "webp": ("WEBP", "image/webp"),
    "bmp": ("BMP", "image/bmp"),
    "ico": ("ICO", "image/x-icon"),
    "tiff": ("TIFF", "image/tiff"),
    "avif": ("AVIF", "image/avif"),
    "gif": ("GIF", "image/gif"),
}
DEFAULT_FORMAT = "png"

DEFAULT_LOSSY_QUALITY = 95
AVIF_SPEED = 8


def resolve_output(format_name: Optional[str], quality: Optional[int] = None) -> OutputSpec:
    """Возвращает `OutputSpec`; неизвестный или пустой формат даёт PNG."""
    key = (format_name or DEFAULT_FORMAT).strip().lower()
    if key not in OUTPUT_FORMATS:
        logger.debug(f"Unknown output format {format_name!r}, falling back to {DEFAULT_FORMAT}")
        key = DEFAULT_FORMAT
    pil_format, content_type = OUTPUT_FORMATS[key]
    return OutputSpec(format=pil_format, content_type=content_type, quality=quality)


class ImageService:
    def decode(self, data: bytes, source: str = "<memory>") -> ImageState:
        """Декодирует байты в RGBA-состояние.

        Args:
            data: Сырые байты изображения.
            source: Откуда получены байты (для сообщений об ошибках).

        Raises:
            DecodeError: если байты не распознаны как изображение или повреждены.
        """
        try:
            with Image.open(io.BytesIO(data)) as pil_image:
                pil_image.load()
                state = ImageState.from_pil(pil_image)
        except UnidentifiedImageError as exc:
            raise DecodeError(source, "unrecognized image format") from exc
        except Image.DecompressionBombError as exc:
            raise DecodeError(source, str(exc)) from exc
        except (OSError, ValueError, SyntaxError) as exc:
            # усечённые и повреждённые файлы
            raise DecodeError(source, str(exc)) from exc

        logger.debug(f"Decoded {state.width}x{state.height} image from {source}")
        return state

    def encode(self, state: ImageState, output: OutputSpec) -> bytes:
        """Кодирует состояние в формат `output.format`.

        Raises:
            ImageBufferError: если буфер нарушает инвариант размеров.
            EncodeError: если Pillow не смог записать формат.
        """
        image = state.to_pil()
        if output.format == "JPEG":
            image = image.convert("RGB")

        buf = io.BytesIO()
        try:
            image.save(buf, format=output.format, **self._save_options(output))
        except (OSError, ValueError, KeyError) as exc:
            raise EncodeError(output.format.lower(), str(exc)) from exc
        return buf.getvalue()

    def _save_options(self, output: OutputSpec) -> Dict[str, Any]:
        quality = output.quality
        if output.format == "JPEG":
            q = DEFAULT_LOSSY_QUALITY if quality is None else quality
            return {"quality": max(1, min(100, q))}
        if output.format == "PNG":
            # низкие значения качества выбирают максимальное сжатие
            if quality is not None and quality <= 9:
                return {"compress_level": 9}
            return {}
        if output.format == "WEBP":
            return {"lossless": True}
        if output.format == "AVIF":
            q = DEFAULT_LOSSY_QUALITY if quality is None else quality
            return {"quality": max(0, min(100, q)), "speed": AVIF_SPEED}
        return {}
