"""Модели данных запроса и изображения.

Принципы:
- SRP: только структуры данных и проверка инварианта буфера, без алгоритмов обработки.
- Запрос и выходная спецификация неизменяемы (`frozen=True`); состояние изображения
  изменяется на месте и принадлежит ровно одному запросу.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

import numpy as np
from PIL import Image

from image_gateway.errors import ImageBufferError


@dataclass
class ImageState:
    """Изменяемый RGBA8-буфер с размерами.

    Fields:
        width: Ширина, px.
        height: Высота, px.
        pixels: Массив `(height, width, 4)` uint8, построчно, начало координат слева сверху.
    """
    width: int
    height: int
    pixels: np.ndarray

    @classmethod
    def from_pixels(cls, pixels: np.ndarray) -> ImageState:
        height, width = pixels.shape[:2]
        return cls(width=width, height=height, pixels=pixels)

    @classmethod
    def from_pil(cls, image: Image.Image) -> ImageState:
        """Копирует изображение PIL в новый RGBA-буфер."""
        if image.mode != "RGBA":
            image = image.convert("RGBA")
        return cls.from_pixels(np.array(image, dtype=np.uint8))

    @property
    def buffer_length(self) -> int:
        return int(self.pixels.size)

    def replace(self, pixels: np.ndarray) -> None:
        """Подменяет буфер (например, после изменения размеров) и обновляет размеры."""
        self.pixels = np.ascontiguousarray(pixels, dtype=np.uint8)
        self.height, self.width = self.pixels.shape[:2]

    def replace_image(self, image: Image.Image) -> None:
        if image.mode != "RGBA":
            image = image.convert("RGBA")
        self.replace(np.array(image, dtype=np.uint8))

    def validate(self) -> None:
        """Проверяет инвариант `len(buffer) == width * height * 4`.

        Raises:
            ImageBufferError: если буфер не соответствует размерам.
        """
        expected = self.width * self.height * 4
        if (
            self.pixels.dtype != np.uint8
            or self.pixels.shape != (self.height, self.width, 4)
            or self.buffer_length != expected
        ):
            raise ImageBufferError(self.width, self.height, self.buffer_length)

    def to_pil(self) -> Image.Image:
        """Строит RGBA-изображение PIL для кодировщика или операций Pillow."""
        self.validate()
        return Image.fromarray(np.ascontiguousarray(self.pixels))


@dataclass(frozen=True)
class ActionRequest:
    """Параметры одного HTTP-запроса.

    Fields:
        url: Адрес исходного изображения (обязателен).
        action: Строка действий `name!p1,p2|name2`, может отсутствовать.
        format: Имя выходного формата, регистр не важен.
        quality: Качество 0–255, смысл зависит от формата.
    """
    url: str
    action: Optional[str] = None
    format: Optional[str] = None
    quality: Optional[int] = None


@dataclass(frozen=True)
class OutputSpec:
    """Разрешённый выходной формат: имя формата Pillow, MIME-тип и качество."""
    format: str
    content_type: str
    quality: Optional[int] = None


@dataclass(frozen=True)
class ProcessedImage:
    body: bytes
    content_type: str
