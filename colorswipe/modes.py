from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Dict, List, Optional

from .config import CFG
from .constants import (
    BUDGET_FLOOR_MS,
    BUDGET_STEP_MS,
    INITIAL_BUDGET_MS,
    REWARD_MULTIPLIER,
)
from .enums import GameMode

logger = logging.getLogger(__name__)


@dataclass
class ModeProfile:
    key: GameMode
    label: str
    tagline: str
    order: int
    initial_ms: int
    step_ms: int
    floor_ms: int
    reward_multiplier: int


def default_profiles() -> Dict[GameMode, ModeProfile]:
    return {
        GameMode.NORMAL: ModeProfile(
            GameMode.NORMAL, "NORMAL", "Match Color - Relaxed Speed", 0,
            INITIAL_BUDGET_MS[GameMode.NORMAL], BUDGET_STEP_MS[GameMode.NORMAL],
            BUDGET_FLOOR_MS[GameMode.NORMAL], REWARD_MULTIPLIER[GameMode.NORMAL],
        ),
        GameMode.HARD: ModeProfile(
            GameMode.HARD, "HARD", "Distractions - Faster Speed", 1,
            INITIAL_BUDGET_MS[GameMode.HARD], BUDGET_STEP_MS[GameMode.HARD],
            BUDGET_FLOOR_MS[GameMode.HARD], REWARD_MULTIPLIER[GameMode.HARD],
        ),
        GameMode.INSANE: ModeProfile(
            GameMode.INSANE, "INSANE", "Double Swipe - Extreme Speed", 2,
            INITIAL_BUDGET_MS[GameMode.INSANE], BUDGET_STEP_MS[GameMode.INSANE],
            BUDGET_FLOOR_MS[GameMode.INSANE], REWARD_MULTIPLIER[GameMode.INSANE],
        ),
    }


PROFILES: Dict[GameMode, ModeProfile] = default_profiles()


def apply_modes_from_cfg(cfg: dict | None = None, profiles: Dict[GameMode, ModeProfile] | None = None) -> None:
    cfg = cfg or CFG
    profiles = PROFILES if profiles is None else profiles
    for key, value in (cfg.get("modes", {}) or {}).items():
        try:
            mode = GameMode(str(key).upper())
        except ValueError:
            logger.warning("Ignoring unknown mode %r in config", key)
            continue
        if not isinstance(value, dict):
            continue
        prof = profiles[mode]
        try:
            if "initial_ms" in value:
                prof.initial_ms = int(max(100, min(10000, value["initial_ms"])))
            if "step_ms" in value:
                prof.step_ms = int(max(0, min(1000, value["step_ms"])))
            if "floor_ms" in value:
                prof.floor_ms = int(max(50, min(prof.initial_ms, value["floor_ms"])))
        except (TypeError, ValueError) as e:
            logger.warning("Ignoring invalid timing for %s: %s", mode.value, e)


class ModeRegistry:
    def __init__(self, profiles: List[ModeProfile], *, initial_key: GameMode) -> None:
        self.modes = sorted(list(profiles), key=lambda profile: profile.order)
        try:
            self.idx = next(i for i, mode in enumerate(self.modes) if mode.key == initial_key)
        except StopIteration:
            self.idx = 0

    def current(self) -> ModeProfile:
        return self.modes[self.idx]

    def next_index(self, delta: int) -> Optional[int]:
        target = self.idx + (1 if delta > 0 else -1)
        if 0 <= target < len(self.modes):
            return target
        return None

    def set_index(self, index: int) -> None:
        if 0 <= index < len(self.modes):
            self.idx = index


__all__ = ["ModeProfile", "ModeRegistry", "PROFILES", "default_profiles", "apply_modes_from_cfg"]
