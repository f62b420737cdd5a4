from __future__ import annotations

from typing import Iterable, List, Optional, Sequence, Tuple

from .constants import SCALE_EVERY_POINTS
from .enums import Direction
from .models import RequiredSwipe, ResolveResult
from .modes import ModeProfile


def resolve(direction: Direction, pending: Sequence[RequiredSwipe]) -> ResolveResult:
    """Match one input against the outstanding swipes.

    The first entry with the same direction is consumed, by id, so two blocks
    of the same colour each need their own swipe.
    """
    hit = next((req for req in pending if req.direction is direction), None)
    if hit is None:
        return ResolveResult(matched=False, remaining=tuple(pending))
    remaining = tuple(req for req in pending if req.id != hit.id)
    return ResolveResult(matched=True, remaining=remaining, completed_id=hit.id)


class RequirementSet:
    def __init__(self) -> None:
        self._pending: List[RequiredSwipe] = []
        self.completed_ids: List[str] = []

    def prime(self, swipes: Iterable[RequiredSwipe]) -> None:
        self._pending = list(swipes)
        self.completed_ids = []

    def clear(self) -> None:
        self._pending = []

    @property
    def pending(self) -> Tuple[RequiredSwipe, ...]:
        return tuple(self._pending)

    def is_empty(self) -> bool:
        return not self._pending

    def resolve(self, direction: Direction) -> Optional[ResolveResult]:
        if not self._pending:
            return None
        result = resolve(direction, self._pending)
        if result.matched:
            self._pending = list(result.remaining)
            self.completed_ids.append(result.completed_id)
        return result


def scale_budget(current_ms: int, profile: ModeProfile, new_score: int) -> int:
    if new_score <= 0 or new_score % SCALE_EVERY_POINTS != 0:
        return current_ms
    if current_ms > profile.floor_ms:
        # a step may overshoot the floor by less than one decrement; clamp it
        return max(profile.floor_ms, current_ms - profile.step_ms)
    return current_ms


class CountdownSequencer:
    def __init__(self, steps: Sequence[str], step_ms: int) -> None:
        self.steps = tuple(steps)
        self.step_ms = int(step_ms)
        self.total_ms = self.step_ms * len(self.steps)
        self.started_at: Optional[float] = None

    def start(self, now_ms: float) -> None:
        self.started_at = now_ms

    def stop(self) -> None:
        self.started_at = None

    def is_active(self, now_ms: float) -> bool:
        return self.started_at is not None and now_ms < self.started_at + self.total_ms

    def finished(self, now_ms: float) -> bool:
        return self.started_at is not None and now_ms >= self.started_at + self.total_ms

    def label(self, now_ms: float) -> str:
        if self.started_at is None or not self.steps:
            return ""
        idx = int(max(0.0, now_ms - self.started_at) // max(1, self.step_ms))
        return self.steps[min(idx, len(self.steps) - 1)]


__all__ = ["resolve", "RequirementSet", "scale_budget", "CountdownSequencer"]
