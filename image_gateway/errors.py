"""Типизированные ошибки шлюза и их HTTP-статусы.

Принципы:
- Каждая фатальная ошибка знает свой HTTP-статус; маршруты не содержат таблиц соответствия.
- Мягкие ошибки (неизвестное действие, нераспознанный параметр) сюда не попадают:
  они логируются и обрабатываются на месте.
"""
from __future__ import annotations


class GatewayError(Exception):
    """Базовая ошибка обработки запроса."""

    status_code: int = 500


class InvalidRequestError(GatewayError):
    """Запрос клиента некорректен (например, пустой `url`)."""

    status_code = 400


class SourceNotAllowedError(GatewayError):
    """Хост источника не входит в список разрешённых."""

    status_code = 403

    def __init__(self, url: str) -> None:
        super().__init__(f"Source host is not allowed: {url}")
        self.url = url


class FetchTransportError(GatewayError):
    """Сетевая ошибка при обращении к источнику."""

    status_code = 502

    def __init__(self, url: str, reason: str) -> None:
        super().__init__(f"Failed to fetch image from URL: {url} ({reason})")
        self.url = url
        self.reason = reason


class FetchStatusError(GatewayError):
    """Источник ответил не-2xx статусом."""

    status_code = 502

    def __init__(self, url: str, status: int) -> None:
        super().__init__(f"Upstream image fetch failed for url: {url} (status: {status})")
        self.url = url
        self.status = status


class DecodeError(GatewayError):
    """Байты не распознаны как изображение."""

    def __init__(self, url: str, reason: str) -> None:
        super().__init__(f"Failed to decode image from {url}: {reason}")
        self.url = url


class InvalidActionParameter(GatewayError):
    """У действия не хватает обязательных параметров."""

    status_code = 400

    def __init__(self, message: str) -> None:
        super().__init__(f"Invalid action parameter: {message}")


class EncodeError(GatewayError):
    """Не удалось закодировать изображение в целевой формат."""

    def __init__(self, format_name: str, reason: str) -> None:
        super().__init__(f"Failed to encode image to {format_name}: {reason}")
        self.format_name = format_name


class ImageBufferError(GatewayError):
    """Буфер пикселей не соответствует размерам изображения."""

    def __init__(self, width: int, height: int, length: int) -> None:
        super().__init__(
            f"Failed to create image buffer: {width}x{height} requires {width * height * 4} bytes, got {length}"
        )
