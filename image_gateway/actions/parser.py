"""Разбор строки действий вида `resize!300,200|grayscale|watermark!url,10,10`.

Грамматика:
- действия разделяются `|`, пустые сегменты пропускаются;
- имя отделяется от параметров первым `!`;
- параметры разделяются `,`, пустые параметры пропускаются.

Экранирования нет: символы `|`, `!` и `,` не могут входить в значение параметра.
"""
from __future__ import annotations

from typing import Iterator, Optional

from image_gateway.models.action_model import Action

ACTION_SEPARATOR = "|"
OPTIONS_SEPARATOR = "!"
PARAM_SEPARATOR = ","


def parse_action(segment: str) -> Action:
    name, _, options = segment.partition(OPTIONS_SEPARATOR)
    params = tuple(p for p in options.split(PARAM_SEPARATOR) if p)
    return Action(name=name, params=params)


def parse_actions(action_str: Optional[str]) -> Iterator[Action]:
    """Лениво возвращает действия в порядке записи."""
    if not action_str:
        return
    for segment in action_str.split(ACTION_SEPARATOR):
        if segment:
            yield parse_action(segment)
