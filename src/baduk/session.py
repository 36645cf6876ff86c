"""
The GameSession aggregate: one per live match.

Core fields are shared by every mode. Anything that only exists for one family lives in a mode sub-state
(a tagged variant keyed by GameMode), and every transitional phase with a deadline uses the single PendingTimer.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Annotated, Literal, Optional, Self, TypeVar, Union

from pydantic import Field, TypeAdapter

from src.baduk.board import Grid, KoInfo, empty_grid
from src.baduk.point import Point
from src.baduk.scoring import AnalysisResult
from src.core.exceptions import GameStateError, NotYourTurnError
from src.core.models import SessionModel
from src.core.shared_types import (
    FINISHED_STATUSES,
    PLAYFUL_MODES,
    GameCategory,
    GameMode,
    GameStatus,
    Player,
    RPSChoice,
    TurnChoice,
    WinReason,
)

logger = logging.getLogger(__name__)


# --- Per-colour containers
class _ByColor:
    def __getitem__(self, player: Player):
        if player == Player.BLACK:
            return self.black  # type: ignore[attr-defined]
        if player == Player.WHITE:
            return self.white  # type: ignore[attr-defined]
        raise KeyError(player)

    def __setitem__(self, player: Player, value) -> None:
        if player == Player.BLACK:
            self.black = value  # type: ignore[attr-defined]
        elif player == Player.WHITE:
            self.white = value  # type: ignore[attr-defined]
        else:
            raise KeyError(player)


@dataclass
class PlayerCounts(_ByColor):
    black: int = 0
    white: int = 0


@dataclass
class PlayerTimes(_ByColor):
    """Seconds. Never negative."""

    black: float = 0.0
    white: float = 0.0


# --- Core building blocks
@dataclass
class PlayerRef:
    id: str
    nickname: str
    is_ai: bool = False


@dataclass
class MoveRecord:
    player: Player
    x: int
    y: int
    hidden: bool = False

    @property
    def point(self) -> Point:
        return Point(self.x, self.y)


@dataclass
class Clock:
    time_left: PlayerTimes = field(default_factory=PlayerTimes)
    byoyomi_periods: PlayerCounts = field(default_factory=PlayerCounts)
    turn_deadline: Optional[int] = None  # epoch ms
    turn_start: Optional[int] = None  # epoch ms
    paused_time_left: Optional[float] = None  # seconds, while an item/pause freezes the turn


@dataclass
class PendingTimer:
    """The one deadline of a transitional phase. Expiry is resolved by the phase's handler."""

    phase: GameStatus
    deadline: int


@dataclass
class Disconnection:
    player_id: Optional[str] = None
    since: Optional[int] = None
    counts: dict[str, int] = field(default_factory=dict)


@dataclass
class StagePlacements:
    black: int = 0
    white: int = 0
    black_pattern: int = 0
    white_pattern: int = 0
    center_black_chance: int = 0  # percent


@dataclass
class GameSettings:
    board_size: int = 19
    komi: float = 6.5
    time_limit: int = 0  # minutes of main time
    byoyomi_time: int = 30  # seconds per period
    byoyomi_count: int = 0
    time_increment: int = 0  # fischer seconds
    capture_target: Optional[int] = None
    base_stones: int = 4
    hidden_stone_count: int = 0
    scan_count: int = 0
    missile_count: int = 0
    mixed_modes: list[GameMode] = field(default_factory=list)
    has_33_forbidden: bool = False
    has_overline_forbidden: bool = False
    ai_level: int = 1
    player1_color: Player = Player.BLACK
    # single player / tower stage
    black_stone_limit: Optional[int] = None
    target_black: Optional[int] = None
    target_white: Optional[int] = None
    placements: Optional[StagePlacements] = None
    # playful
    dice_rounds: int = 3
    curling_stone_count: int = 5
    curling_rounds: int = 3
    alkkagi_stone_count: int = 5
    alkkagi_rounds: int = 1


# --- Colour assignment (negotiation) variants
@dataclass
class NigiriState:
    kind: Literal["nigiri"] = "nigiri"
    holder_id: str = ""
    guesser_id: str = ""
    stones: int = 0
    guess: Optional[int] = None  # 1 = odd, 2 = even
    correct: Optional[bool] = None
    confirmations: dict[str, bool] = field(default_factory=dict)


@dataclass
class TurnPreferenceState:
    kind: Literal["turn_preference"] = "turn_preference"
    choices: dict[str, Optional[TurnChoice]] = field(default_factory=dict)
    rps_choices: dict[str, Optional[RPSChoice]] = field(default_factory=dict)
    rps_round: int = 1
    winner_id: Optional[str] = None


Negotiation = Annotated[
    Union[NigiriState, TurnPreferenceState], Field(discriminator="kind")
]


# --- Mode sub-states
@dataclass
class CaptureState:
    kind: Literal["capture"] = "capture"
    bids: dict[str, Optional[int]] = field(default_factory=dict)
    bid_round: int = 1
    targets: PlayerCounts = field(default_factory=PlayerCounts)
    confirmations: dict[str, bool] = field(default_factory=dict)


@dataclass
class KomiBid:
    color: Player
    komi: float


@dataclass
class BaseStone:
    point: Point
    player: Player


@dataclass
class BaseState:
    kind: Literal["base"] = "base"
    placements: dict[str, list[Point]] = field(default_factory=dict)
    base_stones: list[BaseStone] = field(default_factory=list)
    komi_bids: dict[str, Optional[KomiBid]] = field(default_factory=dict)
    bid_round: int = 1
    final_komi: Optional[float] = None
    confirmations: dict[str, bool] = field(default_factory=dict)

    def is_base_stone(self, point: Point) -> bool:
        return any(stone.point == point for stone in self.base_stones)


@dataclass
class HiddenState:
    kind: Literal["hidden"] = "hidden"
    stones_used: dict[str, int] = field(default_factory=dict)
    scans_left: dict[str, int] = field(default_factory=dict)
    revealed_to: dict[str, list[int]] = field(default_factory=dict)  # move indices
    revealed: list[int] = field(default_factory=list)  # visible to everyone
    last_scan: Optional[Point] = None
    last_scan_success: Optional[bool] = None


@dataclass
class MissileFlight:
    origin: Point
    landing: Point
    player: Player
    was_hidden: bool = False


@dataclass
class MissileState:
    kind: Literal["missile"] = "missile"
    missiles_left: dict[str, int] = field(default_factory=dict)
    used_this_turn: bool = False
    flight: Optional[MissileFlight] = None


@dataclass
class OmokState:
    kind: Literal["omok"] = "omok"
    winning_line: list[Point] = field(default_factory=list)


@dataclass
class DiceState:
    kind: Literal["dice"] = "dice"
    round: int = 1
    scores: dict[str, int] = field(default_factory=dict)
    bonuses: dict[str, int] = field(default_factory=dict)
    last_roll: Optional[int] = None
    stones_to_place: int = 0
    captures_this_turn: int = 0
    round_confirmations: dict[str, bool] = field(default_factory=dict)


@dataclass
class ThiefState:
    kind: Literal["thief"] = "thief"
    round: int = 1
    thief_id: Optional[str] = None
    scores: dict[str, int] = field(default_factory=dict)
    round_scores: list[dict[str, int]] = field(default_factory=list)
    turn_in_round: int = 1
    last_roll: list[int] = field(default_factory=list)
    stones_to_place: int = 0
    captures_this_round: int = 0
    is_deathmatch: bool = False
    confirmations: dict[str, bool] = field(default_factory=dict)


@dataclass
class FlickStone:
    id: int
    player: Player
    x: float
    y: float
    radius: float
    vx: float = 0.0
    vy: float = 0.0
    on_board: bool = True


@dataclass
class Flick:
    stone: FlickStone
    vx: float
    vy: float


@dataclass
class CurlingState:
    kind: Literal["curling"] = "curling"
    round: int = 1
    stones: list[FlickStone] = field(default_factory=list)
    scores: PlayerCounts = field(default_factory=PlayerCounts)
    thrown: dict[str, int] = field(default_factory=dict)
    hammer_player_id: Optional[str] = None
    pending_flick: Optional[Flick] = None
    house_scores: PlayerCounts = field(default_factory=PlayerCounts)  # last finished round
    round_winner: Player = Player.NONE
    round_confirmations: dict[str, bool] = field(default_factory=dict)


@dataclass
class AlkkagiState:
    kind: Literal["alkkagi"] = "alkkagi"
    round: int = 1
    stones: list[FlickStone] = field(default_factory=list)
    placed: dict[str, int] = field(default_factory=dict)
    round_wins: dict[str, int] = field(default_factory=dict)
    round_winner_id: Optional[str] = None
    pending_flick: Optional[Flick] = None
    round_confirmations: dict[str, bool] = field(default_factory=dict)


ModeState = Annotated[
    Union[
        CaptureState,
        BaseState,
        HiddenState,
        MissileState,
        OmokState,
        DiceState,
        ThiefState,
        CurlingState,
        AlkkagiState,
    ],
    Field(discriminator="kind"),
]

S = TypeVar(
    "S",
    CaptureState,
    BaseState,
    HiddenState,
    MissileState,
    OmokState,
    DiceState,
    ThiefState,
    CurlingState,
    AlkkagiState,
)


@dataclass
class StageState:
    """Single-player / tower bookkeeping."""

    black_stones_placed: int = 0
    black_stone_limit: Optional[int] = None
    refreshes_used: int = 0
    pattern_stones: list[Point] = field(default_factory=list)


# --- The aggregate
@dataclass
class GameSession:
    id: str
    mode: GameMode
    settings: GameSettings
    player1: PlayerRef
    player2: PlayerRef
    created_at: int
    category: GameCategory = GameCategory.NORMAL
    status: GameStatus = GameStatus.PENDING
    black_player_id: Optional[str] = None
    white_player_id: Optional[str] = None
    current_player: Player = Player.NONE
    board: Grid = field(default_factory=list)
    move_history: list[MoveRecord] = field(default_factory=list)
    last_move: Optional[Point] = None
    captures: PlayerCounts = field(default_factory=PlayerCounts)
    base_stone_captures: PlayerCounts = field(default_factory=PlayerCounts)
    hidden_stone_captures: PlayerCounts = field(default_factory=PlayerCounts)
    pass_count: int = 0
    ko_info: Optional[KoInfo] = None
    komi: float = 6.5
    clock: Clock = field(default_factory=Clock)
    timer: Optional[PendingTimer] = None
    negotiation: Optional[Negotiation] = None
    mode_states: dict[GameMode, ModeState] = field(default_factory=dict)
    stage: Optional[StageState] = None
    disconnection: Disconnection = field(default_factory=Disconnection)
    timeout_fouls: dict[str, int] = field(default_factory=dict)
    last_timeout_player_id: Optional[str] = None
    ai_turn_start: Optional[int] = None
    winner: Player = Player.NONE
    win_reason: Optional[WinReason] = None
    analysis: Optional[AnalysisResult] = None

    # --- persistence
    @classmethod
    def from_model(cls, model: SessionModel) -> Self:
        """Rebuild the aggregate from what the repository stored."""
        return _SESSION_ADAPTER.validate_python(model.state)

    def to_model(self) -> SessionModel:
        return SessionModel(
            id=self.id,
            mode=self.mode.value,
            status=self.status.value,
            state=_SESSION_ADAPTER.dump_python(self, mode="json"),
        )

    def snapshot(self) -> dict:
        """Client-visible copy of the whole session."""
        return _SESSION_ADAPTER.dump_python(self, mode="json")

    # --- players
    @property
    def player_ids(self) -> tuple[str, str]:
        return self.player1.id, self.player2.id

    def player_color(self, user_id: str) -> Player:
        if user_id == self.black_player_id:
            return Player.BLACK
        if user_id == self.white_player_id:
            return Player.WHITE
        return Player.NONE

    def player_id(self, color: Player) -> Optional[str]:
        if color == Player.BLACK:
            return self.black_player_id
        if color == Player.WHITE:
            return self.white_player_id
        return None

    def opponent_id(self, user_id: str) -> str:
        return self.player2.id if user_id == self.player1.id else self.player1.id

    def player_ref(self, user_id: str) -> PlayerRef:
        return self.player1 if user_id == self.player1.id else self.player2

    def assign_colors(self, black_id: str, white_id: str) -> None:
        self.black_player_id = black_id
        self.white_player_id = white_id

    @property
    def ai_player_id(self) -> Optional[str]:
        for player in (self.player1, self.player2):
            if player.is_ai:
                return player.id
        return None

    @property
    def ai_color(self) -> Player:
        ai_id = self.ai_player_id
        return self.player_color(ai_id) if ai_id else Player.NONE

    def is_ai_turn(self) -> bool:
        return self.ai_color != Player.NONE and self.ai_color == self.current_player

    def assert_participant(self, user_id: str) -> None:
        if user_id not in self.player_ids:
            raise GameStateError(f"User {user_id!r} is not playing in game {self.id}.")

    def assert_your_turn(self, user_id: str) -> Player:
        """Return the acting player's colour, or raise if it's not their move."""
        color = self.player_color(user_id)
        if color == Player.NONE or color != self.current_player:
            raise NotYourTurnError("Not your turn.")
        return color

    def assert_status(self, *statuses: GameStatus) -> None:
        if self.status not in statuses:
            raise GameStateError(
                f"Action not allowed in status {self.status.value!r}."
            )

    # --- mode helpers
    def has_mode(self, mode: GameMode) -> bool:
        return self.mode == mode or (
            self.mode == GameMode.MIX and mode in self.settings.mixed_modes
        )

    @property
    def is_playful(self) -> bool:
        return self.mode in PLAYFUL_MODES

    @property
    def is_pausable(self) -> bool:
        return self.category != GameCategory.NORMAL

    @property
    def is_stage_game(self) -> bool:
        return self.category in (GameCategory.SINGLE_PLAYER, GameCategory.TOWER)

    @property
    def is_finished(self) -> bool:
        return self.status in FINISHED_STATUSES

    def sub_state(self, mode: GameMode, kind: type[S]) -> S:
        state = self.mode_states.get(mode)
        if not isinstance(state, kind):
            raise GameStateError(f"Game {self.id} has no {mode.value} state.")
        return state

    def negotiation_as(self, kind: type[NigiriState] | type[TurnPreferenceState]):
        if not isinstance(self.negotiation, kind):
            raise GameStateError(f"Game {self.id} is not negotiating colours.")
        return self.negotiation

    # --- timer
    def set_timer(self, phase: GameStatus, deadline: int) -> None:
        self.status = phase
        self.timer = PendingTimer(phase=phase, deadline=deadline)

    def timer_due(self, now: int) -> bool:
        return (
            self.timer is not None
            and self.timer.phase == self.status
            and now >= self.timer.deadline
        )

    # --- board
    def reset_board(self) -> None:
        self.board = empty_grid(self.settings.board_size)

    def move_index_at(self, point: Point) -> Optional[int]:
        """Latest move-history index of a stone played at `point`."""
        for index in range(len(self.move_history) - 1, -1, -1):
            move = self.move_history[index]
            if move.x == point.x and move.y == point.y:
                return index
        return None

    # --- end of game
    def finish(self, winner: Player, reason: WinReason) -> None:
        """Freeze the session with a decided result. No-op for an already finished game."""
        if self.is_finished:
            return
        self.status = GameStatus.ENDED
        self.winner = winner
        self.win_reason = reason
        self.current_player = Player.NONE
        self.timer = None
        self.clock.turn_deadline = None
        self.clock.turn_start = None
        self.ai_turn_start = None
        logger.info(
            "Game %s ended: winner=%s reason=%s", self.id, winner.name, reason.value
        )

    def declare_no_contest(self) -> None:
        self.status = GameStatus.NO_CONTEST
        self.current_player = Player.NONE
        self.timer = None
        self.clock.turn_deadline = None
        logger.info("Game %s ended as no contest", self.id)


_SESSION_ADAPTER = TypeAdapter(GameSession)
