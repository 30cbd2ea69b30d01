"""Точка входа: запуск HTTP-сервера."""
import logging

import uvicorn

from image_gateway.app import configure_logging
from image_gateway.config import Settings

logger = logging.getLogger(__name__)


def main() -> None:
    """Читает настройки и запускает uvicorn с фабрикой приложения."""
    settings = Settings.from_env()
    configure_logging(settings.log_level)
    logger.info(
        f"Image gateway starting on http://{settings.host}:{settings.port} with {settings.workers} worker(s)"
    )
    uvicorn.run(
        "image_gateway.app:create_app",
        factory=True,
        host=settings.host,
        port=settings.port,
        workers=settings.workers,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    main()
