"""Client for the hosted score table (a PostgREST-style REST endpoint)."""

from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional

import requests

from .config import CFG
from .constants import LEADERBOARD_LIMIT
from .enums import GameMode, Timeframe
from .models import LeaderboardEntry, ScoreRecord

logger = logging.getLogger(__name__)


class BackendError(Exception):
    """Base class for score backend failures."""


class BackendUnavailable(BackendError):
    """The backend could not be reached or failed on its side; worth retrying."""


class BackendRejected(BackendError):
    """The backend refused the request; retrying the same request will not help."""

    def __init__(self, status: int, message: str = "") -> None:
        super().__init__(f"HTTP {status}: {message}" if message else f"HTTP {status}")
        self.status = status


def week_start(now: Optional[datetime] = None) -> datetime:
    """Monday 00:00 UTC of the ISO week containing ``now``."""
    now = (now or datetime.now(timezone.utc)).astimezone(timezone.utc)
    monday = now - timedelta(days=now.isoweekday() - 1)
    return monday.replace(hour=0, minute=0, second=0, microsecond=0)


def week_label(now: Optional[datetime] = None) -> str:
    now = now or datetime.now(timezone.utc)
    return f"Week {now.isocalendar()[1]:02d}"


class ScoreClient:
    def __init__(
        self,
        url: str,
        api_key: str,
        *,
        table: str = "scores",
        timeout: float = 5.0,
        session: Optional[requests.Session] = None,
    ) -> None:
        self.url = (url or "").rstrip("/")
        self.api_key = api_key or ""
        self.table = table
        self.timeout = float(timeout)
        self.session = session or requests.Session()

    @classmethod
    def from_cfg(cls, cfg: dict | None = None) -> "ScoreClient":
        b = (cfg or CFG)["backend"]
        return cls(b["url"], b["api_key"], table=b["table"], timeout=b["timeout_sec"])

    @property
    def configured(self) -> bool:
        return bool(self.url)

    @property
    def endpoint(self) -> str:
        return f"{self.url}/rest/v1/{self.table}"

    def _headers(self, *, json_body: bool = False) -> Dict[str, str]:
        h = {"apikey": self.api_key, "Authorization": f"Bearer {self.api_key}"}
        if json_body:
            h["Content-Type"] = "application/json"
        return h

    def _request(self, method: str, **kwargs: Any) -> requests.Response:
        if not self.configured:
            raise BackendUnavailable("no backend url configured")
        try:
            resp = self.session.request(method, self.endpoint, timeout=self.timeout, **kwargs)
        except requests.RequestException as e:
            raise BackendUnavailable(str(e)) from e
        if resp.status_code >= 500:
            raise BackendUnavailable(f"HTTP {resp.status_code}")
        if resp.status_code >= 400:
            raise BackendRejected(resp.status_code, resp.reason or "")
        return resp

    def submit(self, record: ScoreRecord) -> None:
        self._request("POST", headers=self._headers(json_body=True), json=record.to_payload())

    def fetch_leaderboard(
        self,
        mode: GameMode,
        timeframe: Timeframe = Timeframe.WEEKLY,
        *,
        limit: int = LEADERBOARD_LIMIT,
        now: Optional[datetime] = None,
    ) -> List[LeaderboardEntry]:
        params = {
            "select": "username,score,created_at",
            "mode": f"eq.{mode.value}",
            "order": "score.desc",
            "limit": str(int(limit)),
        }
        if timeframe is Timeframe.WEEKLY:
            params["created_at"] = f"gte.{week_start(now).isoformat()}"
        resp = self._request("GET", headers=self._headers(), params=params)
        try:
            rows = resp.json()
            entries = [
                LeaderboardEntry(str(r.get("username", "")), int(r.get("score", 0)), r.get("created_at"))
                for r in rows if isinstance(r, dict)
            ]
        except (TypeError, ValueError) as e:
            raise BackendUnavailable(f"malformed leaderboard response: {e}") from e
        entries.sort(key=lambda e: e.score, reverse=True)
        return entries[:limit]

    def is_name_taken(self, username: str) -> bool:
        resp = self._request(
            "GET",
            headers=self._headers(),
            params={"username": f"eq.{username}", "select": "username", "limit": "1"},
        )
        try:
            data = resp.json()
        except ValueError:
            return False
        return isinstance(data, list) and len(data) > 0

    def rename_history(self, old_name: str, new_name: str) -> None:
        headers = self._headers(json_body=True)
        headers["Prefer"] = "return=minimal"
        self._request(
            "PATCH",
            headers=headers,
            params={"username": f"eq.{old_name}"},
            json={"username": new_name},
        )


__all__ = [
    "BackendError",
    "BackendUnavailable",
    "BackendRejected",
    "ScoreClient",
    "week_start",
    "week_label",
]
