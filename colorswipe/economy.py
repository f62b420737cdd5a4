from __future__ import annotations

import logging
import math
from typing import Dict, List, Optional

from .constants import FIRST_LAUNCH_REVIVE_GRANT, REVIVE_COST_TIERS, REVIVE_CREDIT_PRICE
from .enums import GameMode
from .modes import PROFILES, ModeProfile
from .storage import (
    EQUIPPED_SKIN_KEY,
    GEMS_KEY,
    OWNED_SKINS_KEY,
    REVIVE_CREDITS_KEY,
    REVIVE_GRANT_KEY,
    LocalStore,
)

logger = logging.getLogger(__name__)


def compute_reward(score: int, mode: GameMode, profiles: Optional[Dict[GameMode, ModeProfile]] = None) -> int:
    if score <= 0:
        return 0
    multiplier = (profiles or PROFILES)[mode].reward_multiplier
    return int(math.floor(score * multiplier))


def revive_cost(use_index: int) -> int:
    """Credits charged for the ``use_index``-th revive of one game (1-based).

    1, 3, 5, then doubling: 10, 20, 40, ...
    """
    if use_index < 1:
        raise ValueError(f"revive use index starts at 1, got {use_index}")
    if use_index <= len(REVIVE_COST_TIERS):
        return REVIVE_COST_TIERS[use_index - 1]
    return REVIVE_COST_TIERS[-1] * 2 ** (use_index - len(REVIVE_COST_TIERS))


class Wallet:
    """Gems, revive credits and owned block skins, persisted through the local store."""

    def __init__(self, store: LocalStore) -> None:
        self._store = store
        self._grant_first_launch()

    @property
    def gems(self) -> int:
        return max(0, self._store.get_int(GEMS_KEY, 0))

    @property
    def revive_credits(self) -> int:
        return max(0, self._store.get_int(REVIVE_CREDITS_KEY, 0))

    def add_gems(self, amount: int) -> int:
        amount = int(amount)
        if amount <= 0:
            return 0
        self._store.set(GEMS_KEY, self.gems + amount)
        return amount

    def add_reward(self, score: int, mode: GameMode, profiles: Optional[Dict[GameMode, ModeProfile]] = None) -> int:
        earned = compute_reward(score, mode, profiles)
        if earned > 0:
            self.add_gems(earned)
            logger.info("Earned %d gems for %d points in %s", earned, score, mode.value)
        return earned

    def spend_gems(self, amount: int) -> bool:
        if amount <= 0 or self.gems < amount:
            return False
        self._store.set(GEMS_KEY, self.gems - amount)
        return True

    def spend_revive_credits(self, amount: int) -> bool:
        if amount <= 0 or self.revive_credits < amount:
            return False
        self._store.set(REVIVE_CREDITS_KEY, self.revive_credits - amount)
        return True

    def buy_revive_credit(self) -> bool:
        if not self.spend_gems(REVIVE_CREDIT_PRICE):
            return False
        self._store.set(REVIVE_CREDITS_KEY, self.revive_credits + 1)
        return True

    # ---- skins ----

    @property
    def owned_skins(self) -> List[str]:
        raw = self._store.get(OWNED_SKINS_KEY, [])
        return [s for s in raw if isinstance(s, str)] if isinstance(raw, list) else []

    @property
    def equipped_skin(self) -> Optional[str]:
        slug = self._store.get(EQUIPPED_SKIN_KEY)
        return slug if isinstance(slug, str) and slug else None

    def owns_skin(self, slug: str) -> bool:
        return slug in self.owned_skins

    def buy_skin(self, slug: str, price: int) -> bool:
        """Unlock ``slug`` for ``price`` gems. Owned skins are never charged twice."""
        if not slug or price <= 0 or self.owns_skin(slug):
            return False
        if not self.spend_gems(price):
            return False
        self._store.update(OWNED_SKINS_KEY, lambda cur: (cur if isinstance(cur, list) else []) + [slug], [])
        logger.info("Unlocked skin %r for %d gems", slug, price)
        return True

    def equip_skin(self, slug: Optional[str]) -> bool:
        if not slug:
            self._store.remove(EQUIPPED_SKIN_KEY)
            return True
        if not self.owns_skin(slug):
            return False
        self._store.set(EQUIPPED_SKIN_KEY, slug)
        return True

    def _grant_first_launch(self) -> None:
        if self._store.get(REVIVE_GRANT_KEY):
            return
        self._store.set(REVIVE_CREDITS_KEY, self.revive_credits + FIRST_LAUNCH_REVIVE_GRANT)
        self._store.set(REVIVE_GRANT_KEY, True)
        logger.info("Granted %d revive credits on first launch", FIRST_LAUNCH_REVIVE_GRANT)


__all__ = ["compute_reward", "revive_cost", "Wallet"]
