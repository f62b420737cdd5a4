from __future__ import annotations

import math
from typing import Callable, Dict, Tuple

from .constants import (
    POP_DURATION,
    POP_START_SCALE,
    PULSE_DURATION,
    PULSE_MAX_SCALE,
    SHAKE_AMPLITUDE_PX,
    SHAKE_DURATION,
    SHAKE_FREQ_HZ,
)


class EffectsManager:
    """Cosmetic timers. Nothing here feeds back into gameplay."""

    def __init__(self, now_fn: Callable[[], float]):
        self.now = now_fn
        self.shake_start = 0.0
        self.shake_until = 0.0
        self.pop_start = 0.0
        self._pulses: Dict[str, Tuple[float, float]] = {
            "score": (0.0, 0.0),
            "timer": (0.0, 0.0),
        }

    @staticmethod
    def _clamp01(t: float) -> float:
        return 0.0 if t <= 0.0 else 1.0 if t >= 1.0 else t

    def _ease_out_cubic(self, t: float) -> float:
        t = self._clamp01(t)
        return 1.0 - (1.0 - t) ** 3

    def clear_transients(self) -> None:
        self.shake_start = self.shake_until = 0.0
        self.pop_start = 0.0
        self._pulses = {k: (0.0, 0.0) for k in self._pulses}

    # ---------- triggers ----------
    def trigger_shake(self, duration: float = SHAKE_DURATION) -> None:
        now = self.now()
        self.shake_start = now
        self.shake_until = now + max(0.01, duration)

    def trigger_pop(self) -> None:
        self.pop_start = self.now()

    def trigger_pulse(self, kind: str, duration: float = PULSE_DURATION) -> None:
        if kind not in self._pulses:
            return
        now = self.now()
        self._pulses[kind] = (now, now + max(1e-3, duration))

    # ---------- sampling ----------
    def shake_offset(self) -> Tuple[int, int]:
        now = self.now()
        if now >= self.shake_until:
            return (0, 0)
        span = max(1e-6, self.shake_until - self.shake_start)
        decay = 1.0 - (now - self.shake_start) / span
        phase = (now - self.shake_start) * SHAKE_FREQ_HZ * 2 * math.pi
        return (int(math.sin(phase) * SHAKE_AMPLITUDE_PX * decay), 0)

    def pop_scale(self) -> float:
        t = (self.now() - self.pop_start) / max(1e-6, POP_DURATION)
        if t >= 1.0:
            return 1.0
        return POP_START_SCALE + (1.0 - POP_START_SCALE) * self._ease_out_cubic(t)

    def pulse_scale(self, kind: str) -> float:
        start, end = self._pulses.get(kind, (0.0, 0.0))
        now = self.now()
        if now >= end or end <= start:
            return 1.0
        t = (now - start) / (end - start)
        return 1.0 + (PULSE_MAX_SCALE - 1.0) * math.sin(math.pi * t)


__all__ = ["EffectsManager"]
