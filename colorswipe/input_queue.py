from __future__ import annotations

from collections import deque
from typing import Deque, List

from .enums import Direction


class InputQueue:
    """Directions collected from events, drained once per update tick."""

    def __init__(self) -> None:
        self._q: Deque[Direction] = deque()

    def push(self, direction: Direction) -> None:
        self._q.append(direction)

    def pop_all(self) -> List[Direction]:
        out: List[Direction] = list(self._q)
        self._q.clear()
        return out

    def clear(self) -> None:
        self._q.clear()

    def __len__(self) -> int:
        return len(self._q)


__all__ = ["InputQueue"]
