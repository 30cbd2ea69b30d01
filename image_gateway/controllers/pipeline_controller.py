"""Конвейер обработки запроса: загрузка → декодирование → действия → кодирование.

SOLID:
- SRP: класс только упорядочивает этапы; сеть, кодеки и пиксельные операции живут в сервисах.
- DIP: сервисы передаются в конструктор, тесты подставляют заглушки.
Clean Code:
- Любая фатальная ошибка переводит конвейер в FAILED и пробрасывается как есть;
  частичных результатов и повторов нет.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional

from image_gateway.actions.parser import parse_actions
from image_gateway.actions.registry import ActionDispatcher
from image_gateway.errors import GatewayError, InvalidRequestError
from image_gateway.models.image_model import ActionRequest, ImageState, ProcessedImage
from image_gateway.services.fetch_service import FetchService
from image_gateway.services.image_service import ImageService, resolve_output
from image_gateway.services.process_service import ProcessService

logger = logging.getLogger(__name__)


class PipelineStage(str, Enum):
    FETCHING = "fetching"
    DECODING = "decoding"
    TRANSFORMING = "transforming"
    ENCODING = "encoding"
    DONE = "done"
    FAILED = "failed"


@dataclass
class PipelineRun:
    """Состояние одного прохода конвейера (живёт в пределах запроса)."""
    request: ActionRequest
    stage: Optional[PipelineStage] = None
    dispatched: int = 0
    history: List[PipelineStage] = field(default_factory=list)

    def enter(self, stage: PipelineStage) -> None:
        self.stage = stage
        self.history.append(stage)
        logger.debug(f"url: {self.request.url} stage -> {stage.value}")


@dataclass
class PipelineController:
    """Связывает сервисы в конвейер обработки одного запроса.

    Ответственности:
    - Загрузка и декодирование исходного изображения.
    - Последовательное применение действий через `ActionDispatcher`.
    - Выбор выходного формата и кодирование результата.
    """
    fetch_service: FetchService
    image_service: ImageService = field(default_factory=ImageService)
    process_service: ProcessService = field(default_factory=ProcessService)

    def process(self, request: ActionRequest, run: Optional[PipelineRun] = None) -> ProcessedImage:
        """Выполняет запрос и возвращает закодированные байты с MIME-типом.

        Args:
            request: Параметры запроса.
            run: Необязательный объект для наблюдения за этапами (например, в тестах).

        Raises:
            GatewayError: любая фатальная ошибка этапов (см. `image_gateway.errors`).
        """
        run = run or PipelineRun(request=request)
        logger.info(f"url: {request.url} Received new image processing request: {request}")
        try:
            return self._run(run)
        except GatewayError as exc:
            failed_at = run.stage
            run.enter(PipelineStage.FAILED)
            logger.error(
                f"url: {request.url} request failed at {failed_at.value if failed_at else 'start'}: {exc}"
            )
            raise

    def load_image(self, url: str) -> ImageState:
        """Загружает и декодирует изображение; используется и для вторичных изображений."""
        data = self.fetch_service.fetch(url)
        return self.image_service.decode(data, source=url)

    # ---- Stages ----
    def _run(self, run: PipelineRun) -> ProcessedImage:
        request = run.request
        if not request.url or not request.url.strip():
            raise InvalidRequestError("Query parameter 'url' is required")

        run.enter(PipelineStage.FETCHING)
        data = self.fetch_service.fetch(request.url)

        run.enter(PipelineStage.DECODING)
        state = self.image_service.decode(data, source=request.url)

        run.enter(PipelineStage.TRANSFORMING)
        dispatcher = ActionDispatcher(
            load_image=self.load_image,
            process_service=self.process_service,
            source_url=request.url,
        )
        for action in parse_actions(request.action):
            state = dispatcher.apply(state, action)
            run.dispatched += 1

        run.enter(PipelineStage.ENCODING)
        output = resolve_output(request.format, request.quality)
        body = self.image_service.encode(state, output)

        run.enter(PipelineStage.DONE)
        logger.debug(
            f"url: {request.url} encoded {state.width}x{state.height} as {output.format} "
            f"({len(body)} bytes, {run.dispatched} action(s))"
        )
        return ProcessedImage(body=body, content_type=output.content_type)
