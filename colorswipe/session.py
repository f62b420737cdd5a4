from __future__ import annotations

import logging
from concurrent.futures import Future
from typing import Callable, Dict, Optional

from .challenges import generate_challenge
from .constants import (
    DEFAULT_USERNAME,
    REASON_TIME_UP,
    REASON_WRONG_SWIPE,
    REVIVE_COUNTDOWN_STEP_MS,
    REVIVE_COUNTDOWN_STEPS,
    REVIVE_PROMPT_MS,
)
from .economy import Wallet, revive_cost
from .enums import Direction, GameMode
from .managers import CountdownSequencer, RequirementSet, scale_budget
from .models import GameOverSummary, GeneratedChallenge, Phase, ResolveResult
from .modes import PROFILES, ModeProfile
from .outbox import ScoreService
from .storage import LocalStore
from .timer import RoundTimer

logger = logging.getLogger(__name__)


class GameSession:
    """Round loop and life cycle of one player's games.

    All state changes go through the transition methods below; the front-end
    only calls ``start``, ``handle_input``, ``tick`` and the revive answers,
    and reads the public attributes to draw. Time is in milliseconds from
    ``now_fn``.
    """

    def __init__(
        self,
        *,
        now_fn: Callable[[], float],
        store: LocalStore,
        wallet: Wallet,
        scores: Optional[ScoreService] = None,
        username_fn: Callable[[], str] = lambda: DEFAULT_USERNAME,
        profiles: Optional[Dict[GameMode, ModeProfile]] = None,
        mode: GameMode = GameMode.NORMAL,
        rng=None,
        prompt_ms: int = REVIVE_PROMPT_MS,
        countdown_step_ms: int = REVIVE_COUNTDOWN_STEP_MS,
    ) -> None:
        self.now = now_fn
        self.store = store
        self.wallet = wallet
        self.scores = scores
        self.username_fn = username_fn
        self.profiles = profiles or PROFILES
        self.rng = rng
        self.prompt_ms = int(prompt_ms)

        self.phase: Phase = Phase.IDLE
        self.mode: GameMode = mode
        self.score = 0
        self.high_score = store.load_high_score(mode)
        self.budget_ms = self.profile.initial_ms
        self.revive_uses = 0
        self.reason = ""

        self.current: Optional[GeneratedChallenge] = None
        self.requirements = RequirementSet()
        self.timer = RoundTimer(now_fn)
        self.countdown = CountdownSequencer(REVIVE_COUNTDOWN_STEPS, countdown_step_ms)
        self.prompt_until = 0.0

        self.summary: Optional[GameOverSummary] = None
        self.submission: Optional[Future] = None

    # ---- read-only views ----

    @property
    def profile(self) -> ModeProfile:
        return self.profiles[self.mode]

    @property
    def is_playing(self) -> bool:
        return self.phase is Phase.PLAYING

    @property
    def is_game_over(self) -> bool:
        return self.phase is Phase.GAME_OVER

    @property
    def next_revive_cost(self) -> int:
        return revive_cost(self.revive_uses + 1)

    def prompt_remaining_ms(self) -> float:
        if self.phase is not Phase.REVIVE_PROMPT:
            return 0.0
        return max(0.0, self.prompt_until - self.now())

    # ---- menu ----

    def select_mode(self, mode: GameMode) -> None:
        if self.phase not in (Phase.IDLE, Phase.GAME_OVER):
            return
        self.mode = mode
        self.high_score = self.store.load_high_score(mode)
        self.budget_ms = self.profile.initial_ms

    # ---- transitions ----

    def start(self) -> None:
        if self.phase not in (Phase.IDLE, Phase.GAME_OVER):
            return
        self.score = 0
        self.reason = ""
        self.revive_uses = 0
        self.summary = None
        self.submission = None
        self.countdown.stop()
        self.high_score = self.store.load_high_score(self.mode)
        self.budget_ms = self.profile.initial_ms
        self.phase = Phase.PLAYING
        logger.debug("Game started in %s with %d ms", self.mode.value, self.budget_ms)
        self._next_round()

    def _next_round(self) -> None:
        self.current = generate_challenge(self.mode, self.rng)
        self.requirements.prime(self.current.required_swipes)
        self.timer.arm(self.budget_ms)

    def handle_input(self, direction: Direction) -> Optional[ResolveResult]:
        if self.phase is not Phase.PLAYING:
            return None
        result = self.requirements.resolve(direction)
        if result is None:
            return None
        if not result.matched:
            self._fail(REASON_WRONG_SWIPE)
        elif result.round_complete:
            self.score += 1
            self.budget_ms = scale_budget(self.budget_ms, self.profile, self.score)
            self._next_round()
        return result

    def tick(self) -> None:
        """Per-frame poll. Input and ticks share the game loop, so they never race."""
        if self.phase is Phase.PLAYING:
            if self.timer.expired():
                self._fail(REASON_TIME_UP)
        elif self.phase is Phase.REVIVE_PROMPT:
            if self.now() >= self.prompt_until:
                self.decline_revive()
        elif self.phase is Phase.REVIVING:
            if self.countdown.finished(self.now()):
                self._resume()

    def _fail(self, reason: str) -> None:
        self.phase = Phase.ROUND_FAILED
        self.reason = reason
        self.timer.freeze()
        self.requirements.clear()
        logger.debug("Round failed: %s (score %d)", reason, self.score)

        if self.wallet.revive_credits >= 1:
            self.phase = Phase.REVIVE_PROMPT
            self.prompt_until = self.now() + self.prompt_ms
        else:
            self._game_over()

    def accept_revive(self) -> bool:
        if self.phase is not Phase.REVIVE_PROMPT:
            return False
        cost = self.next_revive_cost
        if not self.wallet.spend_revive_credits(cost):
            logger.debug("Revive refused: need %d credits, have %d", cost, self.wallet.revive_credits)
            self._game_over()
            return False
        self.phase = Phase.REVIVING
        self.countdown.start(self.now())
        logger.debug("Revive %d bought for %d credits", self.revive_uses + 1, cost)
        return True

    def decline_revive(self) -> None:
        if self.phase is Phase.REVIVE_PROMPT:
            self._game_over()

    def _resume(self) -> None:
        self.countdown.stop()
        self.revive_uses += 1
        self.reason = ""
        self.phase = Phase.PLAYING
        # budget stays where the failed round left it
        self._next_round()

    def _game_over(self) -> None:
        self.phase = Phase.GAME_OVER
        self.timer.disarm()
        self.requirements.clear()
        self.countdown.stop()

        new_best = self.score > self.high_score
        if new_best:
            self.high_score = self.score
            self.store.save_high_score(self.mode, self.score)

        reward = self.wallet.add_reward(self.score, self.mode, self.profiles)
        if self.score > 0 and self.scores is not None:
            self.submission = self.scores.submit(self.username_fn(), self.score, self.mode)

        self.summary = GameOverSummary(
            mode=self.mode,
            score=self.score,
            reason=self.reason,
            new_high_score=new_best,
            high_score=self.high_score,
            reward=reward,
        )
        logger.info("Game over in %s: %d points (%s)", self.mode.value, self.score, self.reason)


__all__ = ["GameSession"]
