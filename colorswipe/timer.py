from __future__ import annotations

from typing import Callable, Optional


class RoundTimer:
    """Deadline countdown polled once per frame.

    ``arm`` sets ``deadline = now + budget``; expiry is only noticed when
    ``expired`` is polled, so it can fire up to one frame late. Every arm or
    disarm bumps ``generation`` so a caller holding an older token can tell its
    round is gone. While frozen the remaining time is held constant.
    """

    def __init__(self, now_fn: Callable[[], float]) -> None:
        self._now = now_fn
        self.budget_ms = 0
        self.deadline = 0.0
        self.armed = False
        self.frozen = False
        self.generation = 0
        self._held_ms = 0.0

    def arm(self, budget_ms: float) -> int:
        self.budget_ms = int(budget_ms)
        self.deadline = self._now() + self.budget_ms
        self.armed = True
        self.frozen = False
        self._held_ms = 0.0
        self.generation += 1
        return self.generation

    def disarm(self) -> None:
        self.armed = False
        self.frozen = False
        self._held_ms = 0.0
        self.generation += 1

    def freeze(self) -> None:
        if self.armed and not self.frozen:
            self._held_ms = max(0.0, self.deadline - self._now())
            self.frozen = True

    def thaw(self) -> None:
        if self.armed and self.frozen:
            self.deadline = self._now() + self._held_ms
            self.frozen = False

    def remaining(self) -> float:
        if not self.armed:
            return 0.0
        if self.frozen:
            return self._held_ms
        return max(0.0, self.deadline - self._now())

    def ratio(self) -> float:
        if self.budget_ms <= 0:
            return 0.0
        return max(0.0, min(1.0, self.remaining() / self.budget_ms))

    def expired(self, generation: Optional[int] = None) -> bool:
        if not self.armed or self.frozen:
            return False
        if generation is not None and generation != self.generation:
            return False
        return self._now() >= self.deadline


__all__ = ["RoundTimer"]
