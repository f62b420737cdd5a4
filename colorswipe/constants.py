from __future__ import annotations

from pathlib import Path
from types import MappingProxyType

from .config import CFG
from .enums import ColorKey, Direction, GameMode

PKG_DIR = Path(__file__).resolve().parent


# --- Rules ------------------------------------------------------------------
# Fixed bijection: every colour has exactly one swipe direction
COLOR_TO_DIRECTION = MappingProxyType({
    ColorKey.RED:    Direction.UP,
    ColorKey.BLUE:   Direction.LEFT,
    ColorKey.GREEN:  Direction.DOWN,
    ColorKey.YELLOW: Direction.RIGHT,
})
DIRECTION_TO_COLOR = MappingProxyType({d: c for c, d in COLOR_TO_DIRECTION.items()})
COLORS: tuple[ColorKey, ...] = tuple(COLOR_TO_DIRECTION.keys())

SINGLE_SWIPE_ID = "single"
INSANE_SEQUENCE_LEN = 2
HARD_DISTRACTION_CHANCE = 0.6
SCALE_EVERY_POINTS = 5

REASON_WRONG_SWIPE = "WRONG SWIPE!"
REASON_TIME_UP = "TIME'S UP!"

# --- Tempo (ms) -------------------------------------------------------------
INITIAL_BUDGET_MS = {
    GameMode.NORMAL: 1500,
    GameMode.HARD:   1200,
    GameMode.INSANE: 1300,
}
BUDGET_STEP_MS = {
    GameMode.NORMAL: 50,
    GameMode.HARD:   75,
    GameMode.INSANE: 40,
}
BUDGET_FLOOR_MS = {
    GameMode.NORMAL: 500,
    GameMode.HARD:   300,
    GameMode.INSANE: 400,
}

# --- Economy ----------------------------------------------------------------
REWARD_MULTIPLIER = {
    GameMode.NORMAL: 1,
    GameMode.HARD:   2,
    GameMode.INSANE: 3,
}
REVIVE_COST_TIERS = (1, 3, 5)       # uses 1..3; later uses double from the last tier
REVIVE_CREDIT_PRICE = 500           # gems per revive credit
FIRST_LAUNCH_REVIVE_GRANT = 5
SKIN_PRICE = int(CFG["skins"]["price"])   # gems per block skin

# --- Revive -----------------------------------------------------------------
REVIVE_PROMPT_MS = int(CFG["revive"]["prompt_sec"] * 1000)
REVIVE_COUNTDOWN_STEPS = ("3", "2", "1", "GO")
REVIVE_COUNTDOWN_STEP_MS = int(CFG["revive"]["countdown_step_ms"])

# --- Input ------------------------------------------------------------------
SWIPE_THRESHOLD = int(CFG["input"]["swipe_threshold_px"])

# --- Player -----------------------------------------------------------------
DEFAULT_USERNAME = "Anonymous"
USERNAME_MAX_LEN = 12

# --- Backend ----------------------------------------------------------------
LEADERBOARD_LIMIT = 10
SYNC_INTERVAL_SEC = float(CFG["backend"]["sync_interval_sec"])

# --- Palette ----------------------------------------------------------------
BG = (11, 11, 13)                 # default background
INK = (235, 235, 235)             # primary text colour
MUTED = (140, 146, 160)           # secondary labels
HIGHLIGHT = (0, 255, 136)         # best score / selected mode

HEX_COLORS = {
    ColorKey.RED:    "#ff5f52",
    ColorKey.BLUE:   "#2a8bff",
    ColorKey.GREEN:  "#00ff88",
    ColorKey.YELLOW: "#ffd700",
}
NEUTRAL_ACCENT = "#ffffff"

MODE_TINT = {
    GameMode.NORMAL: (0, 255, 136),
    GameMode.HARD:   (255, 95, 82),
    GameMode.INSANE: (168, 85, 247),
}

# --- Layout -----------------------------------------------------------------
FPS = int(CFG.get("display", {}).get("fps", 60))
WINDOWED_DEFAULT_SIZE = tuple(CFG.get("display", {}).get("windowed_size", (540, 960)))
UI_RADIUS = 24
BLOCK_SIZE_FACTOR = 0.36          # single block side relative to window width
INSANE_BLOCK_SIZE_FACTOR = 0.28
INSANE_BLOCK_GAP = 16
BLOCK_BORDER_W = 4
LABEL_GAP = 48

# --- Timer bar --------------------------------------------------------------
TIMER_BAR_HEIGHT = 8
TIMER_BAR_BG = (30, 32, 38)

# --- Effects (seconds) ------------------------------------------------------
POP_DURATION = 0.14
POP_START_SCALE = 0.6
PULSE_DURATION = 0.26
PULSE_MAX_SCALE = 1.15
SHAKE_DURATION = 0.18
SHAKE_AMPLITUDE_PX = 10
SHAKE_FREQ_HZ = 18.0

# --- Typography -------------------------------------------------------------
FONT_SIZE_SMALL = 18
FONT_SIZE_MID = 28
FONT_SIZE_BIG = 64
FONT_SIZE_LABEL = 44
