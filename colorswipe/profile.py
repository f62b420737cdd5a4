from __future__ import annotations

import logging

from .backend import BackendUnavailable, ScoreClient
from .constants import DEFAULT_USERNAME, USERNAME_MAX_LEN
from .storage import USERNAME_KEY, LocalStore

logger = logging.getLogger(__name__)


class InvalidNameError(ValueError):
    pass


class NameTakenError(Exception):
    def __init__(self, name: str) -> None:
        super().__init__(f"name {name!r} is already taken")
        self.name = name


class ProfileManager:
    def __init__(self, store: LocalStore, client: ScoreClient) -> None:
        self._store = store
        self._client = client

    @property
    def username(self) -> str:
        return str(self._store.get(USERNAME_KEY) or DEFAULT_USERNAME)

    def rename(self, new_name: str) -> str:
        """Validate and store a new player name.

        Raises ``InvalidNameError`` for an empty or over-long name and
        ``NameTakenError`` when the backend already has scores under it.
        Offline, the name is saved locally without the uniqueness check.
        """
        name = (new_name or "").strip()
        if not name:
            raise InvalidNameError("Name cannot be empty")
        if len(name) > USERNAME_MAX_LEN:
            raise InvalidNameError(f"Name too long (max {USERNAME_MAX_LEN} chars)")

        old = self.username
        if name == old:
            return name

        try:
            if self._client.is_name_taken(name):
                raise NameTakenError(name)
            if old != DEFAULT_USERNAME:
                self._client.rename_history(old, name)
        except BackendUnavailable as e:
            logger.info("Offline, saving name %r locally only: %s", name, e)

        self._store.set(USERNAME_KEY, name)
        logger.info("Player renamed from %r to %r", old, name)
        return name


__all__ = ["ProfileManager", "InvalidNameError", "NameTakenError"]
