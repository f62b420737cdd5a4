from __future__ import annotations

import json
import logging
import threading
from pathlib import Path
from typing import Any, Callable, Dict, Optional

from .config import STORAGE_PATH
from .enums import GameMode

logger = logging.getLogger(__name__)

HIGHSCORE_KEY = "highscore.{mode}"
USERNAME_KEY = "username"
GEMS_KEY = "gems"
REVIVE_CREDITS_KEY = "revive_credits"
REVIVE_GRANT_KEY = "revive_grant_v1"
PENDING_SCORES_KEY = "pending_scores"
EQUIPPED_SKIN_KEY = "equipped_skin"
OWNED_SKINS_KEY = "owned_items"


class LocalStore:
    """Key/value player state persisted as one JSON object.

    Every write rewrites the whole file. ``update`` runs a read-modify-write
    under the store lock, which is what the score outbox relies on when the
    background sender and the game loop touch the same key.
    """

    def __init__(self, path: Optional[Path] = None) -> None:
        self._file_path = Path(path) if path else STORAGE_PATH
        self._lock = threading.RLock()
        self._data: Dict[str, Any] = self._load()

    @property
    def path(self) -> Path:
        return self._file_path

    def get(self, key: str, default: Any = None) -> Any:
        with self._lock:
            value = self._data.get(key, default)
            # hand out copies of containers so callers can't mutate our state
            return json.loads(json.dumps(value)) if isinstance(value, (list, dict)) else value

    def get_int(self, key: str, default: int = 0) -> int:
        try:
            return int(self.get(key, default))
        except (TypeError, ValueError):
            return default

    def set(self, key: str, value: Any) -> None:
        with self._lock:
            self._data[key] = value
            self._save()

    def remove(self, key: str) -> None:
        with self._lock:
            if self._data.pop(key, None) is not None:
                self._save()

    def update(self, key: str, fn: Callable[[Any], Any], default: Any = None) -> Any:
        with self._lock:
            value = fn(self.get(key, default))
            if value is None:
                self._data.pop(key, None)
            else:
                self._data[key] = value
            self._save()
            return value

    # ---- high scores ----

    def load_high_score(self, mode: GameMode) -> int:
        return max(0, self.get_int(HIGHSCORE_KEY.format(mode=mode.value), 0))

    def save_high_score(self, mode: GameMode, value: int) -> None:
        self.set(HIGHSCORE_KEY.format(mode=mode.value), int(value))

    def _load(self) -> Dict[str, Any]:
        if not self._file_path.exists():
            return {}
        try:
            payload = json.loads(self._file_path.read_text(encoding="utf-8"))
        except (json.JSONDecodeError, OSError) as e:
            logger.warning("Could not load player data from %s: %s", self._file_path, e)
            return {}
        if not isinstance(payload, dict):
            logger.warning("Ignoring player data in %s: not an object", self._file_path)
            return {}
        return payload

    def _save(self) -> None:
        try:
            self._file_path.parent.mkdir(parents=True, exist_ok=True)
            tmp = self._file_path.with_suffix(".tmp")
            tmp.write_text(json.dumps(self._data, indent=2), encoding="utf-8")
            tmp.replace(self._file_path)
        except OSError as e:
            logger.warning("Could not save player data to %s: %s", self._file_path, e)


__all__ = [
    "LocalStore",
    "HIGHSCORE_KEY",
    "USERNAME_KEY",
    "GEMS_KEY",
    "REVIVE_CREDITS_KEY",
    "REVIVE_GRANT_KEY",
    "PENDING_SCORES_KEY",
    "EQUIPPED_SKIN_KEY",
    "OWNED_SKINS_KEY",
]
