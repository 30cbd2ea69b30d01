"""Загрузка исходных байтов изображения по URL.

Принципы:
- SRP: только сетевой ввод-вывод и классификация ошибок транспорта/статуса.
- Без повторов: первая неудача завершает запрос.
"""
from __future__ import annotations

import logging
from typing import Iterable, Optional
from urllib.parse import urlparse

import requests

from image_gateway.errors import (
    FetchStatusError,
    FetchTransportError,
    InvalidRequestError,
    SourceNotAllowedError,
)

logger = logging.getLogger(__name__)


class FetchService:
    def __init__(
        self,
        timeout: float = 30.0,
        allowed_hosts: Iterable[str] = (),
        user_agent: Optional[str] = None,
        session: Optional[requests.Session] = None,
    ) -> None:
        self._timeout = timeout
        self._allowed_hosts = tuple(h.lower() for h in allowed_hosts)
        self._session = session or requests.Session()
        if user_agent:
            self._session.headers["User-Agent"] = user_agent

    def check_allowed(self, url: str) -> None:
        """Проверяет URL и список разрешённых хостов.

        Raises:
            InvalidRequestError: если у URL нет схемы http(s) или хоста.
            SourceNotAllowedError: если хост не оканчивается ни на один разрешённый суффикс.
        """
        parsed = urlparse(url)
        if parsed.scheme not in ("http", "https") or not parsed.hostname:
            raise InvalidRequestError(f"Invalid image URL: {url}")
        if not self._allowed_hosts:
            return
        hostname = parsed.hostname.lower()
        if not any(hostname.endswith(suffix) for suffix in self._allowed_hosts):
            raise SourceNotAllowedError(url)

    def fetch(self, url: str) -> bytes:
        """Загружает тело ответа целиком.

        Raises:
            FetchTransportError: при сетевой ошибке или таймауте.
            FetchStatusError: если ответ не 2xx.
        """
        self.check_allowed(url)
        try:
            response = self._session.get(url, timeout=self._timeout)
        except requests.RequestException as exc:
            logger.error(f"Failed to fetch image URL {url}: {exc}")
            raise FetchTransportError(url, str(exc)) from exc

        if not response.ok:
            logger.error(f"Failed to fetch image URL {url}: Status {response.status_code}")
            raise FetchStatusError(url, response.status_code)

        try:
            content = response.content
        except requests.RequestException as exc:
            logger.error(f"Failed to read image bytes from {url}: {exc}")
            raise FetchTransportError(url, str(exc)) from exc

        logger.debug(f"Fetched {len(content)} bytes from {url}")
        return content
