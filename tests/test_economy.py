"""Tests for colorswipe.economy – rewards, revive pricing and the wallet."""

from __future__ import annotations

import dataclasses
import json

import pytest

from colorswipe.economy import Wallet, compute_reward, revive_cost
from colorswipe.enums import GameMode
from colorswipe.modes import default_profiles
from colorswipe.storage import EQUIPPED_SKIN_KEY, GEMS_KEY, OWNED_SKINS_KEY, REVIVE_CREDITS_KEY, REVIVE_GRANT_KEY, LocalStore


# ---------------------------------------------------------------------------
# Pure helpers
# ---------------------------------------------------------------------------

class TestReviveCost:
    @pytest.mark.parametrize("use_index,cost", [(1, 1), (2, 3), (3, 5), (4, 10), (5, 20), (6, 40)])
    def test_schedule(self, use_index, cost):
        assert revive_cost(use_index) == cost

    @pytest.mark.parametrize("bad", [0, -1])
    def test_index_starts_at_one(self, bad):
        with pytest.raises(ValueError):
            revive_cost(bad)


class TestReward:
    @pytest.mark.parametrize("mode,score,gems", [
        (GameMode.NORMAL, 12, 12),
        (GameMode.HARD, 12, 24),
        (GameMode.INSANE, 12, 36),
        (GameMode.INSANE, 0, 0),
    ])
    def test_multiplier(self, mode, score, gems):
        assert compute_reward(score, mode) == gems

    def test_multiplier_read_from_profile(self):
        profiles = default_profiles()
        profiles[GameMode.HARD] = dataclasses.replace(profiles[GameMode.HARD], reward_multiplier=5)
        assert compute_reward(12, GameMode.HARD, profiles) == 60
        assert compute_reward(12, GameMode.NORMAL, profiles) == 12


# ---------------------------------------------------------------------------
# Wallet
# ---------------------------------------------------------------------------

class TestWallet:
    def test_first_launch_grant(self, store: LocalStore):
        w = Wallet(store)
        assert w.revive_credits == 5
        assert store.get(REVIVE_GRANT_KEY) is True

    def test_grant_only_once(self, store_path):
        Wallet(LocalStore(store_path))
        w = Wallet(LocalStore(store_path))
        assert w.revive_credits == 5

    def test_grant_survives_spending(self, store_path):
        w = Wallet(LocalStore(store_path))
        assert w.spend_revive_credits(5)
        assert Wallet(LocalStore(store_path)).revive_credits == 0

    def test_add_reward(self, store: LocalStore):
        w = Wallet(store)
        assert w.add_reward(7, GameMode.HARD) == 14
        assert w.gems == 14

    def test_spend_revive_credits_insufficient(self, store: LocalStore):
        store.set(REVIVE_GRANT_KEY, True)
        store.set(REVIVE_CREDITS_KEY, 2)
        w = Wallet(store)
        assert not w.spend_revive_credits(3)
        assert w.revive_credits == 2
        assert w.spend_revive_credits(2)
        assert w.revive_credits == 0

    def test_buy_revive_credit(self, store: LocalStore):
        store.set(REVIVE_GRANT_KEY, True)
        store.set(GEMS_KEY, 1200)
        w = Wallet(store)
        assert w.buy_revive_credit()
        assert w.buy_revive_credit()
        assert not w.buy_revive_credit()
        assert w.gems == 200
        assert w.revive_credits == 2

    def test_corrupt_balances_read_as_zero(self, store: LocalStore):
        store.set(REVIVE_GRANT_KEY, True)
        store.set(GEMS_KEY, "lots")
        store.set(REVIVE_CREDITS_KEY, -3)
        w = Wallet(store)
        assert w.gems == 0
        assert w.revive_credits == 0

    def test_add_reward_uses_given_profiles(self, store: LocalStore):
        profiles = default_profiles()
        profiles[GameMode.NORMAL] = dataclasses.replace(profiles[GameMode.NORMAL], reward_multiplier=4)
        w = Wallet(store)
        assert w.add_reward(5, GameMode.NORMAL, profiles) == 20
        assert w.gems == 20


# ---------------------------------------------------------------------------
# Skins
# ---------------------------------------------------------------------------

@pytest.fixture()
def rich(store: LocalStore) -> Wallet:
    store.set(REVIVE_GRANT_KEY, True)
    store.set(GEMS_KEY, 2500)
    return Wallet(store)


class TestSkins:
    def test_nothing_owned_by_default(self, store: LocalStore):
        w = Wallet(store)
        assert w.owned_skins == []
        assert w.equipped_skin is None

    def test_buy_persists(self, rich: Wallet, store_path):
        assert rich.buy_skin("neon", 1000)
        assert rich.gems == 1500
        assert LocalStore(store_path).get(OWNED_SKINS_KEY) == ["neon"]

    def test_never_charged_twice(self, rich: Wallet):
        assert rich.buy_skin("neon", 1000)
        assert not rich.buy_skin("neon", 1000)
        assert rich.gems == 1500

    def test_not_enough_gems(self, rich: Wallet):
        assert rich.buy_skin("neon", 1000)
        assert rich.buy_skin("pastel", 1000)
        assert not rich.buy_skin("retro", 1000)
        assert rich.owned_skins == ["neon", "pastel"]
        assert rich.gems == 500

    @pytest.mark.parametrize("slug,price", [("", 1000), ("neon", 0), ("neon", -5)])
    def test_bad_purchase_rejected(self, rich: Wallet, slug, price):
        assert not rich.buy_skin(slug, price)
        assert rich.gems == 2500

    def test_equip_requires_ownership(self, rich: Wallet):
        assert not rich.equip_skin("neon")
        assert rich.equipped_skin is None
        rich.buy_skin("neon", 1000)
        assert rich.equip_skin("neon")
        assert rich.equipped_skin == "neon"

    def test_unequip_clears_stored_choice(self, rich: Wallet, store_path):
        rich.buy_skin("neon", 1000)
        rich.equip_skin("neon")
        assert rich.equip_skin(None)
        assert rich.equipped_skin is None
        on_disk = json.loads(store_path.read_text(encoding="utf-8"))
        assert EQUIPPED_SKIN_KEY not in on_disk
