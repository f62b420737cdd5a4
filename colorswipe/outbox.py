from __future__ import annotations

import logging
import time
from concurrent.futures import Executor, Future
from typing import Callable, List, Optional

from .backend import BackendError, BackendRejected, BackendUnavailable, ScoreClient
from .constants import DEFAULT_USERNAME, SYNC_INTERVAL_SEC, USERNAME_MAX_LEN
from .enums import GameMode, Timeframe
from .models import LeaderboardEntry, ScoreRecord
from .storage import PENDING_SCORES_KEY, LocalStore

logger = logging.getLogger(__name__)

SUBMIT_SENT = "success"
SUBMIT_QUEUED = "queued"


def clean_username(name: str) -> str:
    return (name or "").strip()[:USERNAME_MAX_LEN] or DEFAULT_USERNAME


def _log_failure(fut: Future) -> None:
    if fut.cancelled():
        return
    exc = fut.exception()
    if exc is not None:
        logger.error("Background score task failed", exc_info=exc)


class ScoreOutbox:
    """Scores the backend has not confirmed yet, kept in the local store."""

    def __init__(self, store: LocalStore) -> None:
        self._store = store

    def __len__(self) -> int:
        return len(self._raw())

    def _raw(self) -> list:
        raw = self._store.get(PENDING_SCORES_KEY, [])
        return raw if isinstance(raw, list) else []

    def pending(self) -> List[ScoreRecord]:
        out: List[ScoreRecord] = []
        for item in self._raw():
            try:
                out.append(ScoreRecord.from_pending(item))
            except (KeyError, TypeError, ValueError) as e:
                logger.warning("Skipping malformed pending score %r: %s", item, e)
        return out

    def append(self, record: ScoreRecord) -> None:
        if record.timestamp is None:
            record.timestamp = int(time.time() * 1000)
        entry = record.to_pending()

        def _add(current):
            items = current if isinstance(current, list) else []
            return items + [entry]

        self._store.update(PENDING_SCORES_KEY, _add, [])

    def discard(self, records: List[ScoreRecord]) -> None:
        doomed = [r.to_pending() for r in records]
        if not doomed:
            return

        def _drop(current):
            items = list(current) if isinstance(current, list) else []
            for d in doomed:
                if d in items:
                    items.remove(d)
            return items or None

        self._store.update(PENDING_SCORES_KEY, _drop, [])

    def flush(self, send: Callable[[ScoreRecord], None]) -> int:
        """Send every queued record; drop the ones that went through.

        Records appended while the flush runs are left alone. A record the
        backend rejects outright is dropped too, it would fail forever.
        """
        done: List[ScoreRecord] = []
        sent = 0
        for record in self.pending():
            try:
                send(record)
            except BackendRejected as e:
                logger.warning("Dropping pending score %s/%d: %s", record.mode.value, record.score, e)
                done.append(record)
                continue
            except BackendUnavailable as e:
                logger.info("Backend still unreachable, keeping %d pending scores: %s", len(self), e)
                break
            done.append(record)
            sent += 1
        self.discard(done)
        return sent


class ScoreService:
    """Fire-and-forget score submission on top of ``ScoreClient`` and ``ScoreOutbox``.

    With an executor every network call runs off the game loop and the
    caller gets a ``Future``; without one the calls run inline and the
    returned future is already resolved.
    """

    def __init__(
        self,
        client: ScoreClient,
        outbox: ScoreOutbox,
        *,
        executor: Optional[Executor] = None,
        sync_interval: float = SYNC_INTERVAL_SEC,
    ) -> None:
        self.client = client
        self.outbox = outbox
        self.executor = executor
        self.sync_interval = float(sync_interval)
        self._last_sync = float("-inf")
        self._sync_future: Optional[Future] = None

    def dispatch(self, fn: Callable, *args) -> Future:
        if self.executor is not None:
            return self.executor.submit(fn, *args)
        fut: Future = Future()
        try:
            fut.set_result(fn(*args))
        except Exception as e:  # mirrors what an executor would capture
            fut.set_exception(e)
        return fut

    # ---- submission ----

    def submit(self, username: str, score: int, mode: GameMode) -> Future:
        record = ScoreRecord(clean_username(username), int(score), mode)
        fut = self.dispatch(self._submit_now, record)
        fut.add_done_callback(_log_failure)
        return fut

    def _submit_now(self, record: ScoreRecord) -> str:
        try:
            self.client.submit(record)
        except BackendError as e:
            logger.warning("Score submit failed, queued for later: %s", e)
            self.outbox.append(record)
            return SUBMIT_QUEUED
        logger.info("Submitted %d points in %s for %s", record.score, record.mode.value, record.username)
        # we are online right now, good moment to empty the queue
        self._sync_now()
        return SUBMIT_SENT

    # ---- sync ----

    def sync(self) -> Future:
        self._sync_future = self.dispatch(self._sync_now)
        self._sync_future.add_done_callback(_log_failure)
        return self._sync_future

    def maybe_sync(self, now: float) -> Optional[Future]:
        if now - self._last_sync < self.sync_interval:
            return None
        if self._sync_future is not None and not self._sync_future.done():
            return None
        self._last_sync = now
        if not len(self.outbox):
            return None
        return self.sync()

    def _sync_now(self) -> int:
        if not len(self.outbox):
            return 0
        sent = self.outbox.flush(self.client.submit)
        if sent:
            logger.info("Synced %d pending scores, %d left", sent, len(self.outbox))
        return sent

    # ---- leaderboard ----

    def leaderboard(self, mode: GameMode, timeframe: Timeframe = Timeframe.WEEKLY) -> Future:
        return self.dispatch(self._leaderboard_now, mode, timeframe)

    def _leaderboard_now(self, mode: GameMode, timeframe: Timeframe) -> Optional[List[LeaderboardEntry]]:
        self._sync_now()
        try:
            return self.client.fetch_leaderboard(mode, timeframe)
        except BackendError as e:
            logger.warning("Failed to fetch leaderboard: %s", e)
            return None

    def shutdown(self) -> None:
        if self.executor is not None:
            self.executor.shutdown(wait=False)


__all__ = ["ScoreOutbox", "ScoreService", "clean_username", "SUBMIT_SENT", "SUBMIT_QUEUED"]
