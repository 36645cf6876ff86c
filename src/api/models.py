"""Requests and Response models"""

from typing import Any, Optional

from pydantic import BaseModel, Field, ValidationInfo, field_validator

from src.baduk.actions import GameAction
from src.baduk.session import GameSettings
from src.core.exceptions import InvalidRequestError
from src.core.shared_types import (
    STRATEGIC_MODES,
    ActionType,
    GameCategory,
    GameMode,
    GameStatus,
)

MIN_BOARD_SIZE = 5
MAX_BOARD_SIZE = 19

# Payload keys an action cannot do without. Values are checked by the handlers themselves.
REQUIRED_PAYLOAD_KEYS: dict[ActionType, tuple[str, ...]] = {
    ActionType.PLACE_STONE: ("x", "y"),
    ActionType.OMOK_PLACE_STONE: ("x", "y"),
    ActionType.DICE_PLACE_STONE: ("x", "y"),
    ActionType.THIEF_PLACE_STONE: ("x", "y"),
    ActionType.PLACE_BASE_STONE: ("x", "y"),
    ActionType.ALKKAGI_PLACE_STONE: ("x", "y"),
    ActionType.SCAN_BOARD: ("x", "y"),
    ActionType.LAUNCH_MISSILE: ("x", "y", "direction"),
    ActionType.NIGIRI_GUESS: ("guess",),
    ActionType.CHOOSE_TURN_PREFERENCE: ("choice",),
    ActionType.SUBMIT_RPS_CHOICE: ("choice",),
    ActionType.THIEF_UPDATE_ROLE_CHOICE: ("choice",),
    ActionType.UPDATE_CAPTURE_BID: ("bid",),
    ActionType.UPDATE_KOMI_BID: ("color", "komi"),
    ActionType.CURLING_FLICK_STONE: ("x", "y", "vx", "vy"),
    ActionType.ALKKAGI_FLICK_STONE: ("stone_id", "vx", "vy"),
}


# --- REQUEST MODELS ---
class CreateSessionRequest(BaseModel):
    player1_id: str
    player2_id: str
    mode: GameMode
    category: GameCategory = GameCategory.NORMAL
    settings: GameSettings = Field(default_factory=GameSettings)

    @field_validator("player2_id")
    @classmethod
    def validate_opponent(cls, value: str, info: ValidationInfo) -> str:
        if value == info.data.get("player1_id"):
            raise InvalidRequestError("A game needs two different players.")
        return value

    @field_validator("settings")
    @classmethod
    def validate_settings(cls, value: GameSettings) -> GameSettings:
        if not MIN_BOARD_SIZE <= value.board_size <= MAX_BOARD_SIZE:
            raise InvalidRequestError(
                f"Board size must be between {MIN_BOARD_SIZE} and {MAX_BOARD_SIZE}, got {value.board_size}."
            )
        if value.time_limit < 0 or value.byoyomi_count < 0 or value.time_increment < 0:
            raise InvalidRequestError("Time settings cannot be negative.")
        unmixable = [m for m in value.mixed_modes if m not in STRATEGIC_MODES or m == GameMode.MIX]
        if unmixable:
            raise InvalidRequestError(
                f"Cannot mix in: {', '.join(m.value for m in unmixable)}."
            )
        return value


class ActionRequest(BaseModel):
    user_id: str
    type: ActionType
    payload: dict[str, Any] = Field(default_factory=dict)

    @field_validator("payload")
    @classmethod
    def validate_payload(cls, value: dict[str, Any], info: ValidationInfo) -> dict[str, Any]:
        action_type = info.data.get("type")
        missing = [
            key for key in REQUIRED_PAYLOAD_KEYS.get(action_type, ()) if value.get(key) is None
        ]
        if missing:
            raise InvalidRequestError(
                f"{action_type.value} payload is missing: {', '.join(missing)}."
            )
        return value

    def to_action(self) -> GameAction:
        return GameAction(type=self.type, user_id=self.user_id, payload=dict(self.payload))


class ConnectionRequest(BaseModel):
    user_id: str


# --- RESPONSE MODELS ---
class ActionResponse(BaseModel):
    ok: bool
    error: Optional[str] = None
    data: Optional[dict[str, Any]] = None


class SessionResponse(BaseModel):
    game_id: str
    mode: GameMode
    status: GameStatus
    state: dict[str, Any]
