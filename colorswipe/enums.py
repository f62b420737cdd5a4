from enum import Enum


class GameMode(str, Enum):
    NORMAL = "NORMAL"
    HARD   = "HARD"
    INSANE = "INSANE"


class Direction(str, Enum):
    UP    = "UP"
    DOWN  = "DOWN"
    LEFT  = "LEFT"
    RIGHT = "RIGHT"


class ColorKey(str, Enum):
    RED    = "RED"
    BLUE   = "BLUE"
    GREEN  = "GREEN"
    YELLOW = "YELLOW"


class Timeframe(str, Enum):
    WEEKLY   = "WEEKLY"
    ALL_TIME = "ALL_TIME"
