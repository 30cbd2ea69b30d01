from __future__ import annotations

import io
from typing import Callable, Dict, List, Tuple

import numpy as np
import pytest
from PIL import Image

from image_gateway.errors import FetchStatusError
from image_gateway.models.image_model import ImageState

Color = Tuple[int, int, int, int]


class FakeFetchService:
    """Отдаёт заранее заданные байты по URL и запоминает обращения."""

    def __init__(self, responses: Dict[str, bytes], statuses: Dict[str, int] | None = None) -> None:
        self.responses = responses
        self.statuses = statuses or {}
        self.calls: List[str] = []

    def fetch(self, url: str) -> bytes:
        self.calls.append(url)
        if url in self.statuses:
            raise FetchStatusError(url, self.statuses[url])
        if url not in self.responses:
            raise FetchStatusError(url, 404)
        return self.responses[url]


@pytest.fixture
def make_state() -> Callable[..., ImageState]:
    def factory(width: int = 4, height: int = 4, color: Color = (100, 150, 200, 255)) -> ImageState:
        pixels = np.empty((height, width, 4), dtype=np.uint8)
        pixels[...] = color
        return ImageState.from_pixels(pixels)
    return factory


@pytest.fixture
def png_bytes() -> Callable[..., bytes]:
    def factory(width: int = 8, height: int = 6, color: Color = (10, 20, 30, 255)) -> bytes:
        buf = io.BytesIO()
        Image.new("RGBA", (width, height), color).save(buf, format="PNG")
        return buf.getvalue()
    return factory


@pytest.fixture
def gradient_png() -> bytes:
    rng = np.random.default_rng(7)
    pixels = rng.integers(0, 256, size=(12, 16, 4), dtype=np.uint8)
    buf = io.BytesIO()
    Image.fromarray(pixels).save(buf, format="PNG")
    return buf.getvalue()


@pytest.fixture
def fake_fetch() -> Callable[..., FakeFetchService]:
    return FakeFetchService
