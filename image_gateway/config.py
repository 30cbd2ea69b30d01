"""Настройки сервиса из переменных окружения.

Все переменные имеют префикс `IMAGE_GATEWAY_`. Некорректные числовые значения
приводят к `ValueError` при старте, а не к молчаливой подстановке умолчаний.
"""
from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import Mapping, Optional, Tuple

APP_NAME = "image-gateway"
APP_VERSION = "0.1.0"

ENV_PREFIX = "IMAGE_GATEWAY_"


def _default_workers() -> int:
    return os.cpu_count() or 2


def _split_hosts(raw: str) -> Tuple[str, ...]:
    return tuple(host.strip().lower() for host in raw.split(",") if host.strip())


@dataclass(frozen=True)
class Settings:
    """Конфигурация процесса.

    Fields:
        host: Адрес для привязки HTTP-сервера.
        port: Порт HTTP-сервера.
        workers: Число процессов uvicorn.
        fetch_timeout: Таймаут загрузки изображений, секунды.
        allowed_hosts: Суффиксы разрешённых хостов (пустой список разрешает всё).
        log_level: Уровень логирования.
        user_agent: Заголовок User-Agent для загрузок.
    """
    host: str = "0.0.0.0"
    port: int = 8000
    workers: int = field(default_factory=_default_workers)
    fetch_timeout: float = 30.0
    allowed_hosts: Tuple[str, ...] = ()
    log_level: str = "INFO"
    user_agent: str = f"{APP_NAME}/{APP_VERSION}"

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "Settings":
        """Собирает настройки из окружения (по умолчанию `os.environ`)."""
        env = os.environ if environ is None else environ

        def get(name: str) -> Optional[str]:
            value = env.get(ENV_PREFIX + name)
            if value is None or not value.strip():
                return None
            return value.strip()

        defaults = cls()
        try:
            port = int(get("PORT") or defaults.port)
            workers = int(get("WORKERS") or defaults.workers)
            fetch_timeout = float(get("FETCH_TIMEOUT") or defaults.fetch_timeout)
        except ValueError as exc:
            raise ValueError(f"Invalid {ENV_PREFIX}* setting: {exc}") from exc

        if workers < 1:
            raise ValueError(f"{ENV_PREFIX}WORKERS must be positive, got {workers}")
        if fetch_timeout <= 0:
            raise ValueError(f"{ENV_PREFIX}FETCH_TIMEOUT must be positive, got {fetch_timeout}")

        return cls(
            host=get("HOST") or defaults.host,
            port=port,
            workers=workers,
            fetch_timeout=fetch_timeout,
            allowed_hosts=_split_hosts(get("ALLOWED_HOSTS") or ""),
            log_level=(get("LOG_LEVEL") or defaults.log_level).upper(),
            user_agent=get("USER_AGENT") or defaults.user_agent,
        )
