"""Tests for colorswipe.session – the round loop, failure, revive and game over."""

from __future__ import annotations

import dataclasses
import random

import pytest

from colorswipe.constants import REASON_TIME_UP, REASON_WRONG_SWIPE
from colorswipe.economy import Wallet
from colorswipe.enums import ColorKey, Direction, GameMode
from colorswipe.models import Phase
from colorswipe.modes import default_profiles
from colorswipe.outbox import ScoreOutbox, ScoreService
from colorswipe.session import GameSession
from colorswipe.storage import GEMS_KEY, REVIVE_CREDITS_KEY, REVIVE_GRANT_KEY, LocalStore


class FixedRng:
    """``choice`` cycles through a fixed list of colours; ``random`` never distracts."""

    def __init__(self, colors):
        self.colors = list(colors)
        self.i = 0

    def choice(self, pool):
        c = self.colors[self.i % len(self.colors)]
        self.i += 1
        return c

    def random(self):
        return 0.99


def wallet_with(store: LocalStore, credits: int) -> Wallet:
    store.set(REVIVE_GRANT_KEY, True)
    store.set(REVIVE_CREDITS_KEY, credits)
    return Wallet(store)


def make_session(store, clock, client=None, *, credits=0, mode=GameMode.NORMAL, rng=None, username="amy"):
    scores = ScoreService(client, ScoreOutbox(store)) if client is not None else None
    return GameSession(
        now_fn=clock,
        store=store,
        wallet=wallet_with(store, credits),
        scores=scores,
        username_fn=lambda: username,
        mode=mode,
        rng=rng or random.Random(1),
    )


def answer(session: GameSession) -> None:
    for req in list(session.requirements.pending):
        session.handle_input(req.direction)


def wrong_direction(session: GameSession) -> Direction:
    wanted = {r.direction for r in session.requirements.pending}
    return next(d for d in Direction if d not in wanted)


# ---------------------------------------------------------------------------
# Start & idle
# ---------------------------------------------------------------------------

class TestStart:
    def test_idle_ignores_input(self, store, clock):
        s = make_session(store, clock)
        assert s.phase is Phase.IDLE
        assert s.handle_input(Direction.UP) is None

    def test_start_arms_first_round(self, store, clock):
        s = make_session(store, clock)
        s.start()
        assert s.phase is Phase.PLAYING
        assert s.score == 0
        assert s.budget_ms == 1500
        assert s.timer.remaining() == 1500
        assert len(s.requirements.pending) == 1

    def test_select_mode_loads_mode_state(self, store, clock):
        store.save_high_score(GameMode.HARD, 8)
        s = make_session(store, clock)
        s.select_mode(GameMode.HARD)
        assert s.high_score == 8
        assert s.budget_ms == 1200

    def test_select_mode_ignored_mid_game(self, store, clock):
        s = make_session(store, clock)
        s.start()
        s.select_mode(GameMode.INSANE)
        assert s.mode is GameMode.NORMAL


# ---------------------------------------------------------------------------
# Scoring & tempo
# ---------------------------------------------------------------------------

class TestScoring:
    def test_five_correct_then_wrong(self, store, clock, client):
        s = make_session(store, clock, client)
        s.start()
        for _ in range(5):
            answer(s)
            clock.advance(100)
            s.tick()
        assert s.score == 5
        assert s.budget_ms == 1450

        s.handle_input(wrong_direction(s))
        assert s.phase is Phase.GAME_OVER
        assert s.reason == REASON_WRONG_SWIPE
        assert s.submission.result() == "success"
        assert [(r.username, r.score, r.mode) for r in client.submitted] == [("amy", 5, GameMode.NORMAL)]

    def test_new_round_gets_new_budget(self, store, clock):
        s = make_session(store, clock)
        s.start()
        for _ in range(5):
            answer(s)
        assert s.timer.budget_ms == 1450

    def test_insane_two_swipes_any_order(self, store, clock):
        s = make_session(store, clock, mode=GameMode.INSANE,
                         rng=FixedRng([ColorKey.RED, ColorKey.BLUE, ColorKey.GREEN]))
        s.start()
        assert [r.direction for r in s.requirements.pending] == [Direction.UP, Direction.LEFT]
        first = s.handle_input(Direction.LEFT)
        assert first.matched and not first.round_complete
        assert s.score == 0
        second = s.handle_input(Direction.UP)
        assert second.round_complete
        assert s.score == 1

    def test_insane_wrong_second_swipe_fails(self, store, clock):
        s = make_session(store, clock, mode=GameMode.INSANE,
                         rng=FixedRng([ColorKey.RED, ColorKey.BLUE, ColorKey.GREEN]))
        s.start()
        s.handle_input(Direction.UP)
        s.handle_input(Direction.UP)
        assert s.phase is Phase.GAME_OVER
        assert s.reason == REASON_WRONG_SWIPE

    def test_timeout(self, store, clock):
        s = make_session(store, clock)
        s.start()
        clock.advance(1499)
        s.tick()
        assert s.phase is Phase.PLAYING
        clock.advance(1)
        s.tick()
        assert s.phase is Phase.GAME_OVER
        assert s.reason == REASON_TIME_UP

    def test_input_after_failure_ignored(self, store, clock):
        s = make_session(store, clock)
        s.start()
        s.handle_input(wrong_direction(s))
        assert s.handle_input(Direction.UP) is None


# ---------------------------------------------------------------------------
# Game over
# ---------------------------------------------------------------------------

class TestGameOver:
    def test_high_score_only_when_beaten(self, store, clock):
        store.save_high_score(GameMode.NORMAL, 2)
        s = make_session(store, clock)
        s.start()
        answer(s)
        answer(s)
        s.handle_input(wrong_direction(s))
        assert not s.summary.new_high_score
        assert store.load_high_score(GameMode.NORMAL) == 2

        s.start()
        for _ in range(3):
            answer(s)
        s.handle_input(wrong_direction(s))
        assert s.summary.new_high_score
        assert store.load_high_score(GameMode.NORMAL) == 3

    def test_reward_added(self, store, clock):
        s = make_session(store, clock, mode=GameMode.HARD)
        s.start()
        for _ in range(4):
            answer(s)
        s.handle_input(wrong_direction(s))
        assert s.summary.reward == 8
        assert store.get(GEMS_KEY) == 8

    def test_reward_follows_session_profiles(self, store, clock):
        profiles = default_profiles()
        profiles[GameMode.HARD] = dataclasses.replace(profiles[GameMode.HARD], reward_multiplier=3)
        s = GameSession(
            now_fn=clock,
            store=store,
            wallet=wallet_with(store, 0),
            profiles=profiles,
            mode=GameMode.HARD,
            rng=random.Random(1),
        )
        s.start()
        for _ in range(4):
            answer(s)
        s.handle_input(wrong_direction(s))
        assert s.summary.reward == 12

    def test_zero_score_not_submitted(self, store, clock, client):
        s = make_session(store, clock, client)
        s.start()
        s.handle_input(wrong_direction(s))
        assert s.submission is None
        assert client.submitted == []

    def test_restart_resets(self, store, clock):
        s = make_session(store, clock)
        s.start()
        for _ in range(5):
            answer(s)
        s.handle_input(wrong_direction(s))
        s.start()
        assert s.phase is Phase.PLAYING
        assert s.score == 0
        assert s.budget_ms == 1500
        assert s.summary is None

    def test_offline_score_queued_then_synced(self, store, clock, client):
        client.online = False
        s = make_session(store, clock, client)
        s.start()
        answer(s)
        s.handle_input(wrong_direction(s))
        assert s.submission.result() == "queued"
        assert len(s.scores.outbox) == 1

        client.online = True
        s.scores.sync()
        assert len(s.scores.outbox) == 0
        assert [r.score for r in client.submitted] == [1]


# ---------------------------------------------------------------------------
# Revive
# ---------------------------------------------------------------------------

class TestRevive:
    def test_prompt_when_credits_available(self, store, clock):
        s = make_session(store, clock, credits=1)
        s.start()
        s.handle_input(wrong_direction(s))
        assert s.phase is Phase.REVIVE_PROMPT
        assert s.next_revive_cost == 1

    def test_accept_keeps_score_and_budget(self, store, clock):
        s = make_session(store, clock, credits=1)
        s.start()
        for _ in range(5):
            answer(s)
        s.handle_input(wrong_direction(s))
        assert s.accept_revive()
        assert s.phase is Phase.REVIVING
        assert s.wallet.revive_credits == 0

        clock.advance(700 * 4 - 1)
        s.tick()
        assert s.phase is Phase.REVIVING
        clock.advance(1)
        s.tick()
        assert s.phase is Phase.PLAYING
        assert s.score == 5
        assert s.budget_ms == 1450
        assert s.timer.remaining() == 1450
        assert s.revive_uses == 1

    def test_timer_does_not_fire_during_revive(self, store, clock):
        s = make_session(store, clock, credits=1)
        s.start()
        clock.advance(1500)
        s.tick()
        assert s.phase is Phase.REVIVE_PROMPT
        clock.advance(1000)
        s.tick()
        assert s.phase is Phase.REVIVE_PROMPT
        assert s.reason == REASON_TIME_UP

    def test_prompt_times_out(self, store, clock):
        s = make_session(store, clock, credits=3)
        s.start()
        s.handle_input(wrong_direction(s))
        clock.advance(5000)
        s.tick()
        assert s.phase is Phase.GAME_OVER
        assert s.wallet.revive_credits == 3

    def test_decline(self, store, clock):
        s = make_session(store, clock, credits=3)
        s.start()
        s.handle_input(wrong_direction(s))
        s.decline_revive()
        assert s.phase is Phase.GAME_OVER

    def test_escalating_cost(self, store, clock):
        s = make_session(store, clock, credits=4)
        s.start()
        s.handle_input(wrong_direction(s))
        assert s.accept_revive()
        clock.advance(2800)
        s.tick()
        s.handle_input(wrong_direction(s))
        assert s.next_revive_cost == 3
        assert s.accept_revive()
        assert s.wallet.revive_credits == 0

    def test_cannot_afford_goes_to_game_over(self, store, clock):
        s = make_session(store, clock, credits=2)
        s.start()
        s.handle_input(wrong_direction(s))
        assert s.accept_revive()
        clock.advance(2800)
        s.tick()
        s.handle_input(wrong_direction(s))
        assert s.phase is Phase.REVIVE_PROMPT
        assert not s.accept_revive()
        assert s.phase is Phase.GAME_OVER
        assert s.wallet.revive_credits == 1

    @pytest.mark.parametrize("phase_action", ["accept", "decline"])
    def test_revive_answers_ignored_outside_prompt(self, store, clock, phase_action):
        s = make_session(store, clock, credits=1)
        s.start()
        if phase_action == "accept":
            assert not s.accept_revive()
        else:
            s.decline_revive()
        assert s.phase is Phase.PLAYING
