"""Приведение строковых параметров действий к скалярным типам.

Нераспознанное или отсутствующее значение заменяется переданным умолчанием,
ошибка не поднимается. Целые числа разбираются строго: `[+-]?цифры` в пределах
диапазона типа; пробелы, подчёркивания и дробная часть делают значение невалидным.
"""
from __future__ import annotations

import logging
import math
import re
from typing import Optional, Sequence, Tuple, TypeVar

from image_gateway.services.process_service import SamplingFilter

logger = logging.getLogger(__name__)

_INT_RE = re.compile(r"[+-]?[0-9]+")

T = TypeVar("T", int, float)
Bounds = Tuple[int, int]

U8: Bounds = (0, 0xFF)
I16: Bounds = (-(1 << 15), (1 << 15) - 1)
I32: Bounds = (-(1 << 31), (1 << 31) - 1)
U32: Bounds = (0, (1 << 32) - 1)
I64: Bounds = (-(1 << 63), (1 << 63) - 1)

_SAMPLING_TOKENS = {
    "1": SamplingFilter.NEAREST,
    "nearest": SamplingFilter.NEAREST,
    "2": SamplingFilter.TRIANGLE,
    "triangle": SamplingFilter.TRIANGLE,
    "3": SamplingFilter.CATMULL_ROM,
    "catmullrom": SamplingFilter.CATMULL_ROM,
    "4": SamplingFilter.GAUSSIAN,
    "gaussian": SamplingFilter.GAUSSIAN,
}


def _fallback(token: str, default: T) -> T:
    logger.warning(f"Unparseable action parameter {token!r}, using default {default!r}")
    return default


def param_at(params: Sequence[str], index: int) -> Optional[str]:
    return params[index] if index < len(params) else None


def parse_int(token: Optional[str], default: int, bounds: Bounds = I64) -> int:
    if token is None:
        return default
    if not _INT_RE.fullmatch(token):
        return _fallback(token, default)
    value = int(token)
    lo, hi = bounds
    if value < lo or value > hi:
        return _fallback(token, default)
    return value


def parse_float(token: Optional[str], default: float) -> float:
    """Разбирает конечное число с плавающей точкой; `nan`/`inf` дают умолчание."""
    if token is None:
        return default
    if token != token.strip() or "_" in token:
        return _fallback(token, default)
    try:
        value = float(token)
    except ValueError:
        return _fallback(token, default)
    if not math.isfinite(value):
        return _fallback(token, default)
    return value


def parse_sampling(token: Optional[str]) -> SamplingFilter:
    """Код 1–4 или имя фильтра; иначе Lanczos3."""
    if token is None:
        return SamplingFilter.LANCZOS3
    return _SAMPLING_TOKENS.get(token, SamplingFilter.LANCZOS3)


def int_param(params: Sequence[str], index: int, default: int, bounds: Bounds = I64) -> int:
    return parse_int(param_at(params, index), default, bounds)


def float_param(params: Sequence[str], index: int, default: float) -> float:
    return parse_float(param_at(params, index), default)
