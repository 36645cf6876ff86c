"""
Configuration.

Deployment settings are read from environment variables (Config).
Product-tuned constants live at module level; players' expectations are calibrated against these values, so change with care.
"""

import os

# --- Engine
ENGINE_COMMAND_TIMEOUT_SEC = 15.0
ANALYSIS_TIMEOUT_SEC = 30.0
ANALYSIS_MAX_VISITS = 1000
GTP_LETTERS = "ABCDEFGHJKLMNOPQRSTUVWXYZ"  # no "I"
OWNERSHIP_TERRITORY_THRESHOLD = 0.90
OWNERSHIP_DEAD_STONE_THRESHOLD = 0.90

# --- Clock (ms unless the name says otherwise)
DISCONNECT_GRACE_MS = 90_000
MAX_DISCONNECTIONS = 3
NO_CONTEST_MOVE_THRESHOLD = 10
ITEM_USE_TIMEOUT_MS = 30_000
AI_THINK_BASE_MS = 1_000
AI_THINK_JITTER_MS = 1_500

# --- Colour assignment
NIGIRI_CHOOSING_MS = 2_000
NIGIRI_GUESS_MS = 30_000
NIGIRI_REVEAL_MS = 5_000
NIGIRI_MAX_STONES = 20
TURN_CHOICE_MS = 30_000
RPS_CHOICE_MS = 30_000
RPS_REVEAL_MS = 4_000
RPS_MAX_ROUNDS = 3

# --- Capture bidding
DEFAULT_CAPTURE_TARGET = 20
CAPTURE_BID_MS = 30_000
CAPTURE_REVEAL_MS = 10_000
CAPTURE_TIE_REVEAL_MS = 3_000
CAPTURE_TIEBREAKER_MS = 3_000
MAX_CAPTURE_BID = 50

# --- Base stones
DEFAULT_BASE_STONES = 4
BASE_KOMI = 0.5
BASE_PLACEMENT_MS = 30_000
KOMI_BID_MS = 30_000
KOMI_REVEAL_MS = 4_000
BASE_START_CONFIRMATION_MS = 30_000

# --- Items
MISSILE_ANIMATION_MS = 2_000
MISSILE_HIDDEN_ANIMATION_MS = 3_000
SCAN_ANIMATION_MS = 2_000
HIDDEN_REVEAL_ANIMATION_MS = 2_000
HIDDEN_FINAL_REVEAL_MS = 3_000

# --- Scoring
BASE_STONE_BONUS_POINTS = 5
HIDDEN_STONE_BONUS_POINTS = 5
TIME_BONUS_SECONDS_PER_POINT = 5

# --- Omok / Ttamok
OMOK_WIN_LENGTH = 5
DEFAULT_TTAMOK_CAPTURE_TARGET = 10

# --- Playful
PLAYFUL_MODE_FOUL_LIMIT = 5
PLAYFUL_TURN_TIME_MS = 30_000
ROUND_END_CONFIRMATION_MS = 20_000
DICE_INITIAL_WHITE_STONES_BY_ROUND = (15, 25, 35)
DICE_LAST_CAPTURE_BONUS_BY_TOTAL_ROUNDS = (5, 7, 10)
DICE_ROLL_ANIMATION_MS = 1_500
THIEF_TURNS_PER_ROUND = 10
THIEF_ROUNDS = 2
THIEF_ROLE_REVEAL_MS = 10_000
CURLING_SHEET_PX = 840.0
CURLING_FRICTION = 0.98
CURLING_SIM_STEP_MS = 1000 / 60
CURLING_ANIMATION_MS = 8_000
CURLING_ROUND_END_MS = 15_000
ALKKAGI_ANIMATION_MS = 5_000
ALKKAGI_ROUND_END_MS = 30_000
FLICK_STONE_RADIUS = (CURLING_SHEET_PX / 19) * 0.47
FLICK_MAX_SPEED = 25.0
CURLING_HOUSE_BANDS = ((0.5, 5), (2.0, 3), (4.0, 2), (6.0, 1))  # (cells from centre, points)

# --- Single player / tower
SP_REFRESH_COSTS = (0, 50, 100, 200, 300)
SP_ADD_STONES_COUNT = 3
SP_ADD_STONES_COST = 100


class Config:
    DATABASE_URL = os.environ.get("DATABASE_URL") or "sqlite:///./baduk_arena.db"
    GNUGO_PATH = os.environ.get("GNUGO_PATH")
    KATAGO_PATH = os.environ.get("KATAGO_PATH")
    KATAGO_MODEL = os.environ.get("KATAGO_MODEL")
    KATAGO_CONFIG = os.environ.get("KATAGO_CONFIG")
    GAME_LOOP_INTERVAL_SEC = float(os.environ.get("GAME_LOOP_INTERVAL_SEC", "1.0"))
    LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")
