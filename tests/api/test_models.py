import pytest

from src.api.models import ActionRequest, CreateSessionRequest
from src.baduk.actions import GameAction
from src.baduk.session import GameSettings
from src.core.exceptions import InvalidRequestError
from src.core.shared_types import ActionType, GameMode


# -- Validation - CreateSessionRequest --
def test_valid_create_request() -> None:
    """Defaults are filled in for everything but the players and the mode."""
    request = CreateSessionRequest(player1_id="p1", player2_id="p2", mode=GameMode.CAPTURE)
    assert request.settings == GameSettings()


def test_settings_from_json() -> None:
    request = CreateSessionRequest.model_validate(
        {
            "player1_id": "p1",
            "player2_id": "p2",
            "mode": "mix",
            "settings": {"board_size": 13, "mixed_modes": ["capture", "speed"]},
        }
    )
    assert request.mode == GameMode.MIX
    assert request.settings.board_size == 13
    assert request.settings.mixed_modes == [GameMode.CAPTURE, GameMode.SPEED]


def test_players_must_differ() -> None:
    with pytest.raises(InvalidRequestError):
        _ = CreateSessionRequest(player1_id="p1", player2_id="p1", mode=GameMode.STANDARD)


@pytest.mark.parametrize(
    "settings",
    [
        GameSettings(board_size=4),  # smaller than the smallest board
        GameSettings(board_size=21),  # bigger than 19x19
        GameSettings(time_limit=-1),
        GameSettings(byoyomi_count=-3),
        GameSettings(mixed_modes=[GameMode.OMOK]),  # playful modes cannot be mixed in
        GameSettings(mixed_modes=[GameMode.MIX]),
    ],
)
def test_invalid_settings(settings: GameSettings) -> None:
    with pytest.raises(InvalidRequestError):
        _ = CreateSessionRequest(
            player1_id="p1", player2_id="p2", mode=GameMode.STANDARD, settings=settings
        )


# -- Validation - ActionRequest --
def test_action_request_to_action() -> None:
    request = ActionRequest(user_id="p1", type=ActionType.PLACE_STONE, payload={"x": 3, "y": 5})
    action = request.to_action()
    assert action == GameAction(ActionType.PLACE_STONE, "p1", {"x": 3, "y": 5})

    # the action owns its payload
    action.payload["x"] = 0
    assert request.payload["x"] == 3


def test_payload_is_optional_for_simple_actions() -> None:
    request = ActionRequest(user_id="p1", type=ActionType.PASS_TURN)
    assert request.payload == {}


@pytest.mark.parametrize(
    "action_type, payload",
    [
        (ActionType.PLACE_STONE, {"x": 3}),
        (ActionType.LAUNCH_MISSILE, {"x": 3, "y": 3}),  # direction missing
        (ActionType.UPDATE_KOMI_BID, {"color": "black", "komi": None}),
        (ActionType.ALKKAGI_FLICK_STONE, {"vx": 1, "vy": 2}),
    ],
)
def test_missing_payload_keys(action_type: ActionType, payload: dict) -> None:
    with pytest.raises(InvalidRequestError, match="missing"):
        _ = ActionRequest(user_id="p1", type=action_type, payload=payload)
