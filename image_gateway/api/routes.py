"""HTTP-маршруты: преобразование изображения и статус сервиса."""
from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Query, Request
from fastapi.responses import PlainTextResponse, Response

from image_gateway.config import APP_NAME, APP_VERSION
from image_gateway.controllers.pipeline_controller import PipelineController
from image_gateway.errors import GatewayError
from image_gateway.models.image_model import ActionRequest

CACHE_CONTROL = "public, max-age=31536000"

router = APIRouter()


def _controller(request: Request) -> PipelineController:
    return request.app.state.controller


# Обработчик синхронный: FastAPI выполняет его в пуле потоков, запросы не блокируют друг друга
@router.get("/")
def transform_image(
    request: Request,
    url: str = Query(..., description="Source image URL."),
    action: Optional[str] = Query(None, description="Pipe-delimited action string, e.g. resize!300,200|grayscale."),
    format: Optional[str] = Query(None, description="Output format: png, jpeg, jpg, webp, bmp, ico, tiff, avif, gif."),
    quality: Optional[int] = Query(None, ge=0, le=255, description="Format-specific quality, 0-255."),
) -> Response:
    query = ActionRequest(url=url, action=action, format=format, quality=quality)
    result = _controller(request).process(query)
    return Response(
        content=result.body,
        media_type=result.content_type,
        headers={"Cache-Control": CACHE_CONTROL},
    )


@router.get("/status")
def status(request: Request) -> dict:
    return {
        "status": "ok",
        "name": APP_NAME,
        "version": APP_VERSION,
        "workers": request.app.state.settings.workers,
    }


async def gateway_error_handler(_request: Request, exc: GatewayError) -> PlainTextResponse:
    return PlainTextResponse(str(exc), status_code=exc.status_code)
