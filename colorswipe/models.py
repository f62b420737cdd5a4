from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Any, Dict, List, Optional, Tuple

from .constants import COLOR_TO_DIRECTION
from .enums import ColorKey, Direction, GameMode


class Phase(Enum):
    IDLE = auto()
    PLAYING = auto()
    ROUND_FAILED = auto()
    REVIVE_PROMPT = auto()
    REVIVING = auto()
    GAME_OVER = auto()


class Scene(Enum):
    MENU = auto()
    GAME = auto()
    LEADERBOARD = auto()
    INSTRUCTIONS = auto()
    NAME = auto()


@dataclass(frozen=True)
class SequenceItem:
    color: ColorKey
    direction: Direction
    id: str


@dataclass(frozen=True)
class RequiredSwipe:
    direction: Direction
    id: str


@dataclass
class Challenge:
    """One round's obligation.

    ``text_color`` is the word printed above the block; ``label_color`` is the
    ink that word is drawn in (``None`` means plain white). Only ``block_color``
    (or each ``sequence`` entry in Insane mode) decides the answer.
    """

    block_color: ColorKey
    text_color: ColorKey
    required_direction: Direction
    label_color: Optional[ColorKey] = None
    sequence: List[SequenceItem] = field(default_factory=list)

    @property
    def is_distracting(self) -> bool:
        return self.text_color is not self.block_color

    def is_consistent(self) -> bool:
        if self.required_direction is not COLOR_TO_DIRECTION[self.block_color]:
            return False
        return all(item.direction is COLOR_TO_DIRECTION[item.color] for item in self.sequence)


@dataclass
class GeneratedChallenge:
    challenge: Challenge
    required_swipes: List[RequiredSwipe]
    accent_color: str


@dataclass(frozen=True)
class ResolveResult:
    matched: bool
    remaining: Tuple[RequiredSwipe, ...]
    completed_id: Optional[str] = None

    @property
    def round_complete(self) -> bool:
        return self.matched and not self.remaining


@dataclass
class ScoreRecord:
    username: str
    score: int
    mode: GameMode
    timestamp: Optional[int] = None   # epoch ms, set when the record is queued

    def to_payload(self) -> Dict[str, Any]:
        return {"username": self.username, "score": int(self.score), "mode": self.mode.value}

    def to_pending(self) -> Dict[str, Any]:
        out = self.to_payload()
        out["timestamp"] = int(self.timestamp or 0)
        return out

    @classmethod
    def from_pending(cls, raw: Dict[str, Any]) -> "ScoreRecord":
        return cls(
            username=str(raw["username"]),
            score=int(raw["score"]),
            mode=GameMode(raw["mode"]),
            timestamp=int(raw.get("timestamp", 0)),
        )


@dataclass(frozen=True)
class LeaderboardEntry:
    username: str
    score: int
    created_at: Optional[str] = None


@dataclass
class GameOverSummary:
    mode: GameMode
    score: int
    reason: str
    new_high_score: bool
    high_score: int
    reward: int


__all__ = [
    "Phase",
    "Scene",
    "SequenceItem",
    "RequiredSwipe",
    "Challenge",
    "GeneratedChallenge",
    "ResolveResult",
    "ScoreRecord",
    "LeaderboardEntry",
    "GameOverSummary",
]
