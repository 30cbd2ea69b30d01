"""Библиотека пиксельных операций над `ImageState`.

Каждый публичный метод соответствует одному действию и изменяет состояние на месте.
Проверка количества параметров и подстановка умолчаний сюда не входят: это делает
диспетчер действий. Здесь только обработка значений, которые уже имеют нужный тип.
"""
from __future__ import annotations

import logging
from enum import Enum
from typing import Callable, Dict, Sequence, Tuple

import numpy as np
from PIL import Image, ImageDraw, ImageEnhance, ImageFont

from image_gateway.models.image_model import ImageState

logger = logging.getLogger(__name__)

# Верхняя граница стороны результата resize, px
MAX_DIMENSION = 16384

# Допустимый диапазон кегля draw_text, px
MIN_FONT_SIZE = 1.0
MAX_FONT_SIZE = 1024.0


class SamplingFilter(str, Enum):
    NEAREST = "nearest"
    TRIANGLE = "triangle"
    CATMULL_ROM = "catmullrom"
    GAUSSIAN = "gaussian"
    LANCZOS3 = "lanczos3"


_RESAMPLING = {
    SamplingFilter.NEAREST: Image.Resampling.NEAREST,
    SamplingFilter.TRIANGLE: Image.Resampling.BILINEAR,
    SamplingFilter.CATMULL_ROM: Image.Resampling.BICUBIC,
    SamplingFilter.GAUSSIAN: Image.Resampling.HAMMING,
    SamplingFilter.LANCZOS3: Image.Resampling.LANCZOS,
}

# Ядра 3x3 для свёрточных фильтров
SHARPEN_KERNEL = ((0, -1, 0), (-1, 5, -1), (0, -1, 0))
BOX_BLUR_KERNEL = ((1 / 9, 1 / 9, 1 / 9),) * 3
EDGE_DETECTION_KERNEL = ((-1, -1, -1), (-1, 8, -1), (-1, -1, -1))
EMBOSS_KERNEL = ((-2, -1, 0), (-1, 1, 1), (0, 1, 2))

# Именованные цветовые фильтры: цвет наложения (r, g, b)
PRESET_FILTERS: Dict[str, Tuple[int, int, int]] = {
    "oceanic": (0, 89, 173),
    "islands": (0, 24, 95),
    "marine": (0, 14, 119),
    "seagreen": (0, 68, 62),
    "flagblue": (0, 0, 131),
    "liquid": (0, 10, 75),
    "diamante": (30, 82, 87),
    "radio": (255, 255, 0),
    "twenties": (116, 88, 71),
    "rosetint": (255, 20, 80),
    "mauve": (90, 40, 120),
    "bluechrome": (0, 60, 255),
    "vintage": (112, 66, 20),
    "perfume": (80, 40, 120),
    "serenity": (10, 40, 90),
}
PRESET_STRENGTH = 0.5

BlendFn = Callable[[np.ndarray, np.ndarray], np.ndarray]


def _soft_light(a: np.ndarray, b: np.ndarray) -> np.ndarray:
    return (1.0 - 2.0 * b) * a * a + 2.0 * b * a


def _color_burn(a: np.ndarray, b: np.ndarray) -> np.ndarray:
    with np.errstate(divide="ignore", invalid="ignore"):
        out = 1.0 - (1.0 - a) / b
    return np.where(b > 0, out, 0.0)


def _color_dodge(a: np.ndarray, b: np.ndarray) -> np.ndarray:
    with np.errstate(divide="ignore", invalid="ignore"):
        out = a / (1.0 - b)
    return np.where(b < 1, out, 1.0)


# a: нижнее изображение, b: верхнее; значения в [0..1]
BLEND_MODES: Dict[str, BlendFn] = {
    "over": lambda a, b: b,
    "atop": lambda a, b: b,
    "plus": lambda a, b: a + b,
    "multiply": lambda a, b: a * b,
    "screen": lambda a, b: 1.0 - (1.0 - a) * (1.0 - b),
    "overlay": lambda a, b: np.where(a <= 0.5, 2.0 * a * b, 1.0 - 2.0 * (1.0 - a) * (1.0 - b)),
    "hard_light": lambda a, b: np.where(b <= 0.5, 2.0 * a * b, 1.0 - 2.0 * (1.0 - a) * (1.0 - b)),
    "soft_light": _soft_light,
    "difference": lambda a, b: np.abs(a - b),
    "exclusion": lambda a, b: a + b - 2.0 * a * b,
    "lighten": np.maximum,
    "darken": np.minimum,
    "burn": _color_burn,
    "dodge": _color_dodge,
}


def _to_u8(arr: np.ndarray) -> np.ndarray:
    return np.clip(np.rint(arr), 0, 255).astype(np.uint8)


class ProcessService:
    # ---------- Вспомогательные функции ----------
    def _rgb(self, state: ImageState) -> np.ndarray:
        """Каналы RGB как int16, чтобы сложение не переполнялось."""
        return state.pixels[..., :3].astype(np.int16)

    def _set_rgb(self, state: ImageState, rgb: np.ndarray) -> None:
        state.pixels[..., :3] = _to_u8(rgb)

    def _convolve3x3(self, state: ImageState, kernel: Sequence[Sequence[float]]) -> None:
        """Свёртка RGB ядром 3x3, альфа-канал не меняется.

        Края дополняются повтором крайних пикселей, свёртка векторизована через сдвиги.
        """
        rgb = state.pixels[..., :3].astype(np.float32)
        h, w = rgb.shape[:2]
        p = np.pad(rgb, ((1, 1), (1, 1), (0, 0)), mode="edge")
        out = np.zeros_like(rgb)
        for dy in range(3):
            for dx in range(3):
                k = kernel[dy][dx]
                if k:
                    out += k * p[dy:dy + h, dx:dx + w]
        self._set_rgb(state, out)

    # ---------- Геометрия ----------
    def resize(self, state: ImageState, width: int, height: int,
               sampling: SamplingFilter = SamplingFilter.LANCZOS3) -> None:
        w = max(1, min(MAX_DIMENSION, width))
        h = max(1, min(MAX_DIMENSION, height))
        if (w, h) != (width, height):
            logger.debug(f"resize: {width}x{height} clamped to {w}x{h}")
        resized = state.to_pil().resize((w, h), _RESAMPLING[sampling])
        state.replace_image(resized)

    def crop(self, state: ImageState, x1: int, y1: int, x2: int, y2: int) -> None:
        """Вырезает прямоугольник [x1, x2) x [y1, y2).

        Координаты приводятся к границам изображения и упорядочиваются;
        прямоугольник нулевой площади оставляет изображение без изменений.
        """
        left, right = sorted((min(x1, state.width), min(x2, state.width)))
        top, bottom = sorted((min(y1, state.height), min(y2, state.height)))
        if right == left or bottom == top:
            logger.debug(f"crop: empty region ({x1}, {y1}, {x2}, {y2}) ignored")
            return
        state.replace(state.pixels[top:bottom, left:right].copy())

    def fliph(self, state: ImageState) -> None:
        state.replace(state.pixels[:, ::-1])

    def flipv(self, state: ImageState) -> None:
        state.replace(state.pixels[::-1, :])

    def rotate(self, state: ImageState, angle: float) -> None:
        """Поворот по часовой стрелке на `angle` градусов; холст расширяется, фон прозрачный."""
        if angle % 360 == 0:
            return
        rotated = state.to_pil().rotate(-angle, resample=Image.Resampling.BICUBIC, expand=True)
        state.replace_image(rotated)

    # ---------- Несколько изображений ----------
    def watermark(self, state: ImageState, mark: ImageState, x: int, y: int) -> None:
        """Накладывает `mark` с учётом альфы; левый верхний угол в (x, y)."""
        if x >= state.width or y >= state.height or x <= -mark.width or y <= -mark.height:
            logger.debug(f"watermark: offset ({x}, {y}) is outside the image")
            return
        base = state.to_pil()
        layer = Image.new("RGBA", base.size, (0, 0, 0, 0))
        layer.paste(mark.to_pil(), (x, y))
        state.replace_image(Image.alpha_composite(base, layer))

    def blend(self, state: ImageState, top: ImageState, mode: str) -> None:
        """Смешивает `top` с изображением в области их пересечения.

        Результат режима смешивания накладывается с учётом альфы верхнего изображения.
        Неизвестный режим логируется, изображение не меняется.
        """
        key = mode.strip().lower().replace(" ", "_").replace("-", "_")
        blend_fn = BLEND_MODES.get(key)
        if blend_fn is None:
            logger.warning(f"Unknown blend mode: {mode}")
            return

        h = min(state.height, top.height)
        w = min(state.width, top.width)
        base = state.pixels[:h, :w].astype(np.float32) / 255.0
        over = top.pixels[:h, :w].astype(np.float32) / 255.0

        mixed = np.clip(blend_fn(base[..., :3], over[..., :3]), 0.0, 1.0)
        alpha = over[..., 3:4]
        out = base[..., :3] * (1.0 - alpha) + mixed * alpha
        state.pixels[:h, :w, :3] = _to_u8(out * 255.0)

    def draw_text(self, state: ImageState, text: str, x: int, y: int, size: float = 24.0) -> None:
        image = state.to_pil()
        draw = ImageDraw.Draw(image)
        font = ImageFont.load_default(size=max(MIN_FONT_SIZE, min(MAX_FONT_SIZE, size)))
        draw.text((x, y), text, font=font, fill=(255, 255, 255, 255))
        state.replace_image(image)

    # ---------- Эффекты ----------
    def solarize(self, state: ImageState) -> None:
        r = state.pixels[..., 0].astype(np.int16)
        state.pixels[..., 0] = np.where(r < 200, 200 - r, r).astype(np.uint8)

    def colorize(self, state: ImageState) -> None:
        """Пиксели, близкие к базовому бирюзовому цвету, сдвигаются в зелёный."""
        rgb = state.pixels[..., :3].astype(np.float32)
        baseline = np.array([0.0, 255.0, 255.0], dtype=np.float32)
        dist2 = np.sum((rgb - baseline) ** 2, axis=-1)
        near = dist2 < 220.0 ** 2
        shifted = rgb * np.array([0.5, 1.25, 0.5], dtype=np.float32)
        self._set_rgb(state, np.where(near[..., None], shifted, rgb))

    def frosted_glass(self, state: ImageState) -> None:
        state.replace_image(state.to_pil().effect_spread(5))

    def inc_brightness(self, state: ImageState, amount: int) -> None:
        self._set_rgb(state, self._rgb(state) + amount)

    def adjust_contrast(self, state: ImageState, contrast: float) -> None:
        """Контраст в диапазоне [-255, 255], 0 оставляет как есть."""
        c = max(-255.0, min(255.0, contrast))
        factor = (259.0 * (c + 255.0)) / (255.0 * (259.0 - c))
        lut = _to_u8(factor * (np.arange(256, dtype=np.float32) - 128.0) + 128.0)
        state.pixels[..., :3] = lut[state.pixels[..., :3]]

    def tint(self, state: ImageState, r: int, g: int, b: int) -> None:
        offset = np.array([r, g, b], dtype=np.int16)
        self._set_rgb(state, self._rgb(state) + offset)

    # ---------- Фильтры ----------
    def filter(self, state: ImageState, name: str) -> None:
        color = PRESET_FILTERS.get(name.strip().lower())
        if color is None:
            logger.warning(f"Unknown filter preset: {name}")
            return
        rgb = state.pixels[..., :3].astype(np.float32)
        overlay = np.array(color, dtype=np.float32)
        self._set_rgb(state, rgb * (1.0 - PRESET_STRENGTH) + overlay * PRESET_STRENGTH)

    def dramatic(self, state: ImageState) -> None:
        self.grayscale(state)
        self.adjust_contrast(state, 60.0)

    def lofi(self, state: ImageState) -> None:
        saturated = ImageEnhance.Color(state.to_pil()).enhance(1.3)
        state.replace_image(saturated)
        self.adjust_contrast(state, 30.0)

    # ---------- Монохром ----------
    def grayscale(self, state: ImageState) -> None:
        avg = self._rgb(state).sum(axis=-1) // 3
        state.pixels[..., :3] = avg.astype(np.uint8)[..., None]

    def sepia(self, state: ImageState) -> None:
        rgb = state.pixels[..., :3].astype(np.float32)
        avg = 0.3 * rgb[..., 0] + 0.59 * rgb[..., 1] + 0.11 * rgb[..., 2]
        self._set_rgb(state, np.stack([avg + 100.0, avg + 50.0, avg], axis=-1))

    # ---------- Каналы ----------
    def alter_channel(self, state: ImageState, channel: int, amount: int) -> None:
        values = state.pixels[..., channel].astype(np.int32) + amount
        state.pixels[..., channel] = _to_u8(values)

    def swap_channels(self, state: ImageState, channel1: int, channel2: int) -> None:
        if channel1 == channel2:
            return
        state.pixels[..., [channel1, channel2]] = state.pixels[..., [channel2, channel1]]

    def remove_channel(self, state: ImageState, channel: int, min_filter: int = 255) -> None:
        """Обнуляет канал там, где его значение меньше `min_filter`."""
        values = state.pixels[..., channel]
        values[values < min_filter] = 0

    # ---------- Свёртки ----------
    def sharpen(self, state: ImageState) -> None:
        self._convolve3x3(state, SHARPEN_KERNEL)

    def box_blur(self, state: ImageState) -> None:
        self._convolve3x3(state, BOX_BLUR_KERNEL)

    def edge_detection(self, state: ImageState) -> None:
        self._convolve3x3(state, EDGE_DETECTION_KERNEL)

    def emboss(self, state: ImageState) -> None:
        self._convolve3x3(state, EMBOSS_KERNEL)
