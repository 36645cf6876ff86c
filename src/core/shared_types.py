"""
Type definitions used across layers
"""

from enum import IntEnum, StrEnum


class Player(IntEnum):
    """Occupant of a board point, and also the colour a participant plays."""

    NONE = 0
    BLACK = 1
    WHITE = 2

    @property
    def opponent(self) -> "Player":
        if self == Player.BLACK:
            return Player.WHITE
        if self == Player.WHITE:
            return Player.BLACK
        return Player.NONE


class GameMode(StrEnum):
    # --- strategic (Go) family
    STANDARD = "standard"
    CAPTURE = "capture"
    SPEED = "speed"
    BASE = "base"
    HIDDEN = "hidden"
    MISSILE = "missile"
    MIX = "mix"
    # --- playful family
    OMOK = "omok"
    TTAMOK = "ttamok"
    DICE = "dice"
    THIEF = "thief"
    CURLING = "curling"
    ALKKAGI = "alkkagi"


STRATEGIC_MODES = frozenset(
    {
        GameMode.STANDARD,
        GameMode.CAPTURE,
        GameMode.SPEED,
        GameMode.BASE,
        GameMode.HIDDEN,
        GameMode.MISSILE,
        GameMode.MIX,
    }
)
PLAYFUL_MODES = frozenset(
    {
        GameMode.OMOK,
        GameMode.TTAMOK,
        GameMode.DICE,
        GameMode.THIEF,
        GameMode.CURLING,
        GameMode.ALKKAGI,
    }
)


class GameCategory(StrEnum):
    """Who sits on the other side of the board."""

    NORMAL = "normal"
    AI = "ai"
    SINGLE_PLAYER = "single_player"
    TOWER = "tower"


class GameStatus(StrEnum):
    PENDING = "pending"
    # --- colour assignment
    NIGIRI_CHOOSING = "nigiri_choosing"
    NIGIRI_GUESSING = "nigiri_guessing"
    NIGIRI_REVEAL = "nigiri_reveal"
    TURN_PREFERENCE_SELECTION = "turn_preference_selection"
    RPS = "rps"
    RPS_REVEAL = "rps_reveal"
    # --- capture bidding
    CAPTURE_BIDDING = "capture_bidding"
    CAPTURE_REVEAL = "capture_reveal"
    CAPTURE_TIEBREAKER = "capture_tiebreaker"
    # --- base stones
    BASE_PLACEMENT = "base_placement"
    KOMI_BIDDING = "komi_bidding"
    KOMI_BID_REVEAL = "komi_bid_reveal"
    BASE_GAME_START_CONFIRMATION = "base_game_start_confirmation"
    # --- single player / tower
    SINGLE_PLAYER_INTRO = "single_player_intro"
    # --- play
    PLAYING = "playing"
    PAUSED = "paused"
    MISSILE_SELECTING = "missile_selecting"
    MISSILE_ANIMATING = "missile_animating"
    HIDDEN_PLACING = "hidden_placing"
    SCANNING = "scanning"
    SCANNING_ANIMATING = "scanning_animating"
    HIDDEN_REVEAL_ANIMATING = "hidden_reveal_animating"
    HIDDEN_FINAL_REVEAL = "hidden_final_reveal"
    # --- dice go
    DICE_ROLLING = "dice_rolling"
    DICE_ROLLING_ANIMATING = "dice_rolling_animating"
    DICE_PLACING = "dice_placing"
    DICE_ROUND_END = "dice_round_end"
    # --- thief & police
    THIEF_ROLE_CONFIRMED = "thief_role_confirmed"
    THIEF_ROLLING = "thief_rolling"
    THIEF_ROLLING_ANIMATING = "thief_rolling_animating"
    THIEF_PLACING = "thief_placing"
    THIEF_ROUND_END = "thief_round_end"
    # --- curling
    CURLING_PLAYING = "curling_playing"
    CURLING_ANIMATING = "curling_animating"
    CURLING_ROUND_END = "curling_round_end"
    # --- alkkagi
    ALKKAGI_PLACEMENT = "alkkagi_placement"
    ALKKAGI_PLAYING = "alkkagi_playing"
    ALKKAGI_ANIMATING = "alkkagi_animating"
    ALKKAGI_ROUND_END = "alkkagi_round_end"
    # --- end
    SCORING = "scoring"
    ENDED = "ended"
    NO_CONTEST = "no_contest"


FINISHED_STATUSES = frozenset({GameStatus.ENDED, GameStatus.NO_CONTEST})


class WinReason(StrEnum):
    RESIGN = "resign"
    TIMEOUT = "timeout"
    SCORE = "score"
    CAPTURE_LIMIT = "capture_limit"
    DISCONNECT = "disconnect"
    OMOK_WIN = "omok_win"
    DICE_WIN = "dice_win"
    ALKKAGI_WIN = "alkkagi_win"
    CURLING_WIN = "curling_win"
    TOTAL_SCORE = "total_score"
    FOUL_LIMIT = "foul_limit"
    STONE_LIMIT_EXCEEDED = "stone_limit_exceeded"


class ActionType(StrEnum):
    # --- shared
    PLACE_STONE = "PLACE_STONE"
    PASS_TURN = "PASS_TURN"
    RESIGN = "RESIGN"
    PAUSE_GAME = "PAUSE_GAME"
    RESUME_GAME = "RESUME_GAME"
    REQUEST_NO_CONTEST = "REQUEST_NO_CONTEST"
    # --- nigiri
    NIGIRI_GUESS = "NIGIRI_GUESS"
    CONFIRM_NIGIRI_RESULT = "CONFIRM_NIGIRI_RESULT"
    # --- turn preference / rps
    CHOOSE_TURN_PREFERENCE = "CHOOSE_TURN_PREFERENCE"
    SUBMIT_RPS_CHOICE = "SUBMIT_RPS_CHOICE"
    # --- capture
    UPDATE_CAPTURE_BID = "UPDATE_CAPTURE_BID"
    CONFIRM_CAPTURE_REVEAL = "CONFIRM_CAPTURE_REVEAL"
    # --- base
    PLACE_BASE_STONE = "PLACE_BASE_STONE"
    PLACE_REMAINING_BASE_STONES_RANDOMLY = "PLACE_REMAINING_BASE_STONES_RANDOMLY"
    UPDATE_KOMI_BID = "UPDATE_KOMI_BID"
    CONFIRM_BASE_REVEAL = "CONFIRM_BASE_REVEAL"
    # --- hidden
    START_HIDDEN_PLACEMENT = "START_HIDDEN_PLACEMENT"
    START_SCANNING = "START_SCANNING"
    SCAN_BOARD = "SCAN_BOARD"
    # --- missile
    START_MISSILE_SELECTION = "START_MISSILE_SELECTION"
    LAUNCH_MISSILE = "LAUNCH_MISSILE"
    CANCEL_MISSILE_SELECTION = "CANCEL_MISSILE_SELECTION"
    # --- single player / tower
    CONFIRM_SP_INTRO = "CONFIRM_SP_INTRO"
    REFRESH_PLACEMENT = "REFRESH_PLACEMENT"
    ADD_STONES = "ADD_STONES"
    # --- omok / ttamok
    OMOK_PLACE_STONE = "OMOK_PLACE_STONE"
    # --- dice go
    DICE_ROLL = "DICE_ROLL"
    DICE_PLACE_STONE = "DICE_PLACE_STONE"
    CONFIRM_ROUND_END = "CONFIRM_ROUND_END"
    # --- thief & police
    THIEF_UPDATE_ROLE_CHOICE = "THIEF_UPDATE_ROLE_CHOICE"
    CONFIRM_THIEF_ROLE = "CONFIRM_THIEF_ROLE"
    THIEF_ROLL_DICE = "THIEF_ROLL_DICE"
    THIEF_PLACE_STONE = "THIEF_PLACE_STONE"
    # --- curling / alkkagi
    CURLING_FLICK_STONE = "CURLING_FLICK_STONE"
    ALKKAGI_PLACE_STONE = "ALKKAGI_PLACE_STONE"
    ALKKAGI_FLICK_STONE = "ALKKAGI_FLICK_STONE"


class Direction(StrEnum):
    UP = "up"
    DOWN = "down"
    LEFT = "left"
    RIGHT = "right"

    @property
    def delta(self) -> tuple[int, int]:
        return {
            Direction.UP: (0, -1),
            Direction.DOWN: (0, 1),
            Direction.LEFT: (-1, 0),
            Direction.RIGHT: (1, 0),
        }[self]


class RPSChoice(StrEnum):
    ROCK = "rock"
    PAPER = "paper"
    SCISSORS = "scissors"

    def beats(self, other: "RPSChoice") -> bool:
        return (self, other) in {
            (RPSChoice.ROCK, RPSChoice.SCISSORS),
            (RPSChoice.SCISSORS, RPSChoice.PAPER),
            (RPSChoice.PAPER, RPSChoice.ROCK),
        }


class TurnChoice(StrEnum):
    FIRST = "first"
    SECOND = "second"


class ThiefRole(StrEnum):
    """The thief plays Black and moves first."""

    THIEF = "thief"
    POLICE = "police"

    @property
    def turn_choice(self) -> TurnChoice:
        return TurnChoice.FIRST if self == ThiefRole.THIEF else TurnChoice.SECOND
