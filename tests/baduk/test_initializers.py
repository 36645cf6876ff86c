"""Unit tests for src/baduk/initializers.py"""

import pytest

from src.baduk.initializers import create_session
from src.baduk.session import GameSettings, PlayerRef
from src.core.exceptions import InvalidRequestError
from src.core.shared_types import GameCategory, GameMode, GameStatus, Player

NOW = 5_000


def test_player_cannot_play_themselves() -> None:
    with pytest.raises(InvalidRequestError):
        create_session(
            "g", GameMode.STANDARD, GameSettings(), PlayerRef("p1", "A"), PlayerRef("p1", "A"), NOW
        )


def test_ai_categories_need_an_ai_player() -> None:
    with pytest.raises(InvalidRequestError):
        create_session(
            "g",
            GameMode.STANDARD,
            GameSettings(),
            PlayerRef("p1", "A"),
            PlayerRef("p2", "B"),
            NOW,
            category=GameCategory.AI,
        )


def test_clock_and_first_turn() -> None:
    session = create_session(
        "g",
        GameMode.STANDARD,
        GameSettings(board_size=13, time_limit=5, byoyomi_count=3),
        PlayerRef("p1", "A"),
        PlayerRef("p2", "Bot", is_ai=True),
        NOW,
        category=GameCategory.AI,
    )

    assert session.status == GameStatus.PLAYING
    assert session.current_player == Player.BLACK
    assert len(session.board) == 13
    assert session.clock.time_left.black == 300.0
    assert session.clock.byoyomi_periods.white == 3
    assert session.clock.turn_deadline == NOW + 300_000
    assert session.disconnection.counts == {"p1": 0, "p2": 0}
    assert session.created_at == NOW


def test_challenger_may_ask_for_white() -> None:
    session = create_session(
        "g",
        GameMode.STANDARD,
        GameSettings(player1_color=Player.WHITE),
        PlayerRef("p1", "A"),
        PlayerRef("p2", "Bot", is_ai=True),
        NOW,
        category=GameCategory.AI,
    )
    assert session.black_player_id == "p2"
    assert session.ai_color == Player.BLACK
    assert session.is_ai_turn()


def test_untimed_game_has_no_deadline(new_session) -> None:
    session = new_session()
    assert session.clock.turn_deadline is None


@pytest.mark.parametrize(
    "mode, status",
    [
        (GameMode.STANDARD, GameStatus.NIGIRI_CHOOSING),
        (GameMode.CAPTURE, GameStatus.CAPTURE_BIDDING),
        (GameMode.BASE, GameStatus.BASE_PLACEMENT),
        (GameMode.OMOK, GameStatus.TURN_PREFERENCE_SELECTION),
        (GameMode.DICE, GameStatus.TURN_PREFERENCE_SELECTION),
        (GameMode.THIEF, GameStatus.TURN_PREFERENCE_SELECTION),
    ],
)
def test_human_games_open_with_colour_negotiation(new_session, mode, status) -> None:
    session = new_session(mode=mode, category=GameCategory.NORMAL)
    assert session.status == status
    assert session.black_player_id is None
