"""Shared fixtures for the colorswipe test-suite."""

from __future__ import annotations

import os
import tempfile

# Point the config/storage home at a scratch dir before colorswipe is imported,
# so the suite never reads or writes ~/.colorswipe.
os.environ.setdefault("COLORSWIPE_HOME", tempfile.mkdtemp(prefix="colorswipe-tests-"))
os.environ.setdefault("SDL_VIDEODRIVER", "dummy")

from pathlib import Path
from typing import List

import pytest

from colorswipe.backend import BackendRejected, BackendUnavailable
from colorswipe.models import LeaderboardEntry, ScoreRecord
from colorswipe.storage import LocalStore


class FakeClock:
    """Manually advanced millisecond clock."""

    def __init__(self, start: float = 10_000.0) -> None:
        self.t = start

    def __call__(self) -> float:
        return self.t

    def advance(self, ms: float) -> None:
        self.t += ms


class FakeClient:
    """Stand-in for ``ScoreClient`` that records calls instead of doing HTTP."""

    def __init__(self) -> None:
        self.online = True
        self.reject_scores: set = set()
        self.submitted: List[ScoreRecord] = []
        self.taken: set = set()
        self.renames: List[tuple] = []
        self.board: List[LeaderboardEntry] = []

    def _check(self) -> None:
        if not self.online:
            raise BackendUnavailable("offline")

    def submit(self, record: ScoreRecord) -> None:
        self._check()
        if record.score in self.reject_scores:
            raise BackendRejected(400, "Bad Request")
        self.submitted.append(record)

    def fetch_leaderboard(self, mode, timeframe, **kwargs) -> List[LeaderboardEntry]:
        self._check()
        return list(self.board)

    def is_name_taken(self, username: str) -> bool:
        self._check()
        return username in self.taken

    def rename_history(self, old_name: str, new_name: str) -> None:
        self._check()
        self.renames.append((old_name, new_name))


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

@pytest.fixture()
def store_path(tmp_path: Path) -> Path:
    return tmp_path / "storage.json"


@pytest.fixture()
def store(store_path: Path) -> LocalStore:
    return LocalStore(store_path)


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture()
def client() -> FakeClient:
    return FakeClient()
