from __future__ import annotations

from typing import Dict, Optional, Tuple

import pygame

from .constants import SWIPE_THRESHOLD
from .enums import Direction

KEY_TO_DIRECTION: Dict[int, Direction] = {
    pygame.K_UP: Direction.UP,     pygame.K_w: Direction.UP,
    pygame.K_DOWN: Direction.DOWN, pygame.K_s: Direction.DOWN,
    pygame.K_LEFT: Direction.LEFT, pygame.K_a: Direction.LEFT,
    pygame.K_RIGHT: Direction.RIGHT, pygame.K_d: Direction.RIGHT,
}


def direction_for_key(key: int) -> Optional[Direction]:
    # pygame reports letter keys lower-case whether or not shift is held
    return KEY_TO_DIRECTION.get(key)


def classify_swipe(dx: float, dy: float, threshold: float = SWIPE_THRESHOLD) -> Optional[Direction]:
    """Direction of a drag, or ``None`` when it is too short to count.

    Screen coordinates: positive ``dy`` points down.
    """
    if abs(dx) < threshold and abs(dy) < threshold:
        return None
    if abs(dx) > abs(dy):
        return Direction.RIGHT if dx > 0 else Direction.LEFT
    return Direction.DOWN if dy > 0 else Direction.UP


class SwipeTracker:
    def __init__(self, threshold: float = SWIPE_THRESHOLD) -> None:
        self.threshold = float(threshold)
        self._start: Optional[Tuple[float, float]] = None

    @property
    def active(self) -> bool:
        return self._start is not None

    def begin(self, x: float, y: float) -> None:
        self._start = (float(x), float(y))

    def cancel(self) -> None:
        self._start = None

    def end(self, x: float, y: float) -> Optional[Direction]:
        if self._start is None:
            return None
        sx, sy = self._start
        self._start = None
        return classify_swipe(x - sx, y - sy, self.threshold)


__all__ = ["KEY_TO_DIRECTION", "direction_for_key", "classify_swipe", "SwipeTracker"]
