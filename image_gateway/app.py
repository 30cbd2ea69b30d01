from __future__ import annotations

import logging
import sys
from typing import Optional

from fastapi import FastAPI

from image_gateway.api.routes import gateway_error_handler, router
from image_gateway.config import APP_NAME, APP_VERSION, Settings
from image_gateway.controllers.pipeline_controller import PipelineController
from image_gateway.errors import GatewayError
from image_gateway.services.fetch_service import FetchService

LOG_FORMAT = "[%(levelname)s] %(name)s: %(message)s"


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(level=level, format=LOG_FORMAT, stream=sys.stderr)


def create_app(
    settings: Optional[Settings] = None,
    controller: Optional[PipelineController] = None,
) -> FastAPI:
    """Собирает приложение FastAPI.

    Args:
        settings: Настройки; по умолчанию читаются из окружения.
        controller: Готовый конвейер (тесты передают конвейер с подменённой загрузкой).
    """
    settings = settings or Settings.from_env()
    configure_logging(settings.log_level)

    if controller is None:
        fetch_service = FetchService(
            timeout=settings.fetch_timeout,
            allowed_hosts=settings.allowed_hosts,
            user_agent=settings.user_agent,
        )
        controller = PipelineController(fetch_service=fetch_service)

    app = FastAPI(title=APP_NAME, version=APP_VERSION)
    app.state.settings = settings
    app.state.controller = controller
    app.include_router(router)
    app.add_exception_handler(GatewayError, gateway_error_handler)
    return app
