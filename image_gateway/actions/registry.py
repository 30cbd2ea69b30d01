"""Таблица действий и диспетчер.

Две ступени обработки ошибок:
- неизвестное имя действия: предупреждение в лог, изображение не меняется;
- недостаточно обязательных параметров: `InvalidActionParameter`, запрос прерывается.

Значения необязательных или нераспознанных параметров подменяются умолчаниями
конкретного действия (см. `image_gateway.actions.params`).
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Dict, Mapping, Optional, Sequence

from image_gateway.actions.params import (
    I16,
    I32,
    I64,
    U8,
    U32,
    float_param,
    int_param,
    param_at,
    parse_sampling,
)
from image_gateway.errors import InvalidActionParameter
from image_gateway.models.action_model import Action
from image_gateway.models.image_model import ImageState
from image_gateway.services.process_service import ProcessService

logger = logging.getLogger(__name__)

ImageLoader = Callable[[str], ImageState]

# Каналы, которые можно менять действиями над каналами (R, G, B)
MAX_CHANNEL = 2


@dataclass
class ActionContext:
    """Возможности, доступные обработчику действия.

    Fields:
        process: Библиотека пиксельных операций.
        load_image: Загрузка и декодирование вторичного изображения по URL.
        source_url: Адрес исходного изображения (только для логов).
    """
    process: ProcessService
    load_image: ImageLoader
    source_url: str = ""


Handler = Callable[[ImageState, Sequence[str], ActionContext], None]


@dataclass(frozen=True)
class ActionSpec:
    name: str
    handler: Handler
    min_params: int = 0
    requirement: str = ""

    def check_params(self, params: Sequence[str]) -> None:
        if len(params) < self.min_params:
            raise InvalidActionParameter(f"{self.name} requires {self.requirement}")


ACTIONS: Dict[str, ActionSpec] = {}


def register(name: str, min_params: int = 0, requirement: str = "") -> Callable[[Handler], Handler]:
    def decorator(handler: Handler) -> Handler:
        ACTIONS[name] = ActionSpec(name=name, handler=handler, min_params=min_params, requirement=requirement)
        return handler
    return decorator


def _register_simple(name: str, operation: Callable[[ProcessService, ImageState], None]) -> None:
    """Действие без параметров, например `grayscale`."""
    def handler(state: ImageState, _params: Sequence[str], ctx: ActionContext) -> None:
        operation(ctx.process, state)
    register(name)(handler)


# ---------- Геометрия ----------
@register("resize", min_params=2, requirement="at least 2 parameters: width, height")
def _resize(state: ImageState, params: Sequence[str], ctx: ActionContext) -> None:
    width = int_param(params, 0, 0, U32)
    height = int_param(params, 1, 0, U32)
    ctx.process.resize(state, width, height, parse_sampling(param_at(params, 2)))


@register("crop", min_params=4, requirement="4 parameters: x1, y1, x2, y2")
def _crop(state: ImageState, params: Sequence[str], ctx: ActionContext) -> None:
    # умолчания x2/y2 зависят от текущих размеров изображения
    x1 = int_param(params, 0, 0, U32)
    y1 = int_param(params, 1, 0, U32)
    x2 = int_param(params, 2, state.width, U32)
    y2 = int_param(params, 3, state.height, U32)
    ctx.process.crop(state, x1, y1, x2, y2)


@register("rotate", min_params=1, requirement="1 parameter: angle")
def _rotate(state: ImageState, params: Sequence[str], ctx: ActionContext) -> None:
    ctx.process.rotate(state, float_param(params, 0, 90.0))


# ---------- Несколько изображений ----------
@register("watermark", min_params=1, requirement="at least 1 parameter: watermark_url")
def _watermark(state: ImageState, params: Sequence[str], ctx: ActionContext) -> None:
    x = int_param(params, 1, 0, I64)
    y = int_param(params, 2, 0, I64)
    mark = ctx.load_image(params[0])
    ctx.process.watermark(state, mark, x, y)


@register("blend", min_params=2, requirement="2 parameters: blend_url, blend_mode")
def _blend(state: ImageState, params: Sequence[str], ctx: ActionContext) -> None:
    top = ctx.load_image(params[0])
    ctx.process.blend(state, top, params[1])


@register("draw_text", min_params=3, requirement="at least 3 parameters: text, x, y")
def _draw_text(state: ImageState, params: Sequence[str], ctx: ActionContext) -> None:
    x = int_param(params, 1, 0, I32)
    y = int_param(params, 2, 0, I32)
    size = float_param(params, 3, 24.0)
    ctx.process.draw_text(state, params[0], x, y, size)


# ---------- Эффекты ----------
@register("inc_brightness")
def _inc_brightness(state: ImageState, params: Sequence[str], ctx: ActionContext) -> None:
    ctx.process.inc_brightness(state, int_param(params, 0, 10, U8))


@register("adjust_contrast")
def _adjust_contrast(state: ImageState, params: Sequence[str], ctx: ActionContext) -> None:
    ctx.process.adjust_contrast(state, float_param(params, 0, 0.1))


@register("tint", min_params=3, requirement="3 parameters: r, g, b")
def _tint(state: ImageState, params: Sequence[str], ctx: ActionContext) -> None:
    r = int_param(params, 0, 0, U8)
    g = int_param(params, 1, 0, U8)
    b = int_param(params, 2, 0, U8)
    ctx.process.tint(state, r, g, b)


# ---------- Фильтры ----------
@register("filter", min_params=1, requirement="1 parameter: filter_name")
def _filter(state: ImageState, params: Sequence[str], ctx: ActionContext) -> None:
    ctx.process.filter(state, params[0])


# ---------- Каналы ----------
@register("alter_channel", min_params=2, requirement="2 parameters: channel, amount")
def _alter_channel(state: ImageState, params: Sequence[str], ctx: ActionContext) -> None:
    channel = int_param(params, 0, 0, U8)
    amount = int_param(params, 1, 10, I16)
    if channel <= MAX_CHANNEL:
        ctx.process.alter_channel(state, channel, amount)


@register("swap_channels", min_params=2, requirement="2 parameters: channel1, channel2")
def _swap_channels(state: ImageState, params: Sequence[str], ctx: ActionContext) -> None:
    channel1 = int_param(params, 0, 0, U8)
    channel2 = int_param(params, 1, 1, U8)
    if channel1 <= MAX_CHANNEL and channel2 <= MAX_CHANNEL:
        ctx.process.swap_channels(state, channel1, channel2)


def _register_remove_channel(name: str, channel: int) -> None:
    def handler(state: ImageState, params: Sequence[str], ctx: ActionContext) -> None:
        ctx.process.remove_channel(state, channel, int_param(params, 0, 255, U8))
    register(name)(handler)


_register_remove_channel("remove_red_channel", 0)
_register_remove_channel("remove_green_channel", 1)
_register_remove_channel("remove_blue_channel", 2)

for _name, _operation in (
    ("fliph", ProcessService.fliph),
    ("flipv", ProcessService.flipv),
    ("solarize", ProcessService.solarize),
    ("colorize", ProcessService.colorize),
    ("frosted_glass", ProcessService.frosted_glass),
    ("dramatic", ProcessService.dramatic),
    ("lofi", ProcessService.lofi),
    ("grayscale", ProcessService.grayscale),
    ("sepia", ProcessService.sepia),
    ("sharpen", ProcessService.sharpen),
    ("box_blur", ProcessService.box_blur),
    ("edge_detection", ProcessService.edge_detection),
    ("emboss", ProcessService.emboss),
):
    _register_simple(_name, _operation)


class ActionDispatcher:
    """Применяет действия к `ImageState` по таблице `ACTIONS`.

    Загрузка вторичных изображений (watermark, blend) передаётся как `load_image`,
    поэтому диспетчер можно тестировать без сети.
    """

    def __init__(
        self,
        load_image: ImageLoader,
        process_service: Optional[ProcessService] = None,
        actions: Optional[Mapping[str, ActionSpec]] = None,
        source_url: str = "",
    ) -> None:
        self._actions = ACTIONS if actions is None else actions
        self._context = ActionContext(
            process=process_service or ProcessService(),
            load_image=load_image,
            source_url=source_url,
        )

    def apply(self, state: ImageState, action: Action) -> ImageState:
        """Применяет одно действие и возвращает состояние для следующего шага.

        Raises:
            InvalidActionParameter: если параметров меньше обязательного минимума.
        """
        spec = self._actions.get(action.name)
        if spec is None:
            logger.warning(f"Unknown action: {action.name} {{ url: {self._context.source_url} }}")
            return state

        spec.check_params(action.params)
        logger.info(
            f"Applying action: {action.name} with params {list(action.params)} "
            f"{{ url: {self._context.source_url} }}"
        )
        spec.handler(state, action.params, self._context)
        return state
