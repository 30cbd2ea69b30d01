from __future__ import annotations

from dataclasses import dataclass
from typing import Tuple


@dataclass(frozen=True)
class Action:
    """Одно разобранное действие: имя и сырые строковые параметры в порядке записи."""
    name: str
    params: Tuple[str, ...] = ()
