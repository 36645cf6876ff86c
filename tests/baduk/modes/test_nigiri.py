"""Unit tests for src/baduk/modes/nigiri.py"""

import pytest

from src.baduk import dispatch
from src.baduk.actions import GameAction
from src.baduk.session import NigiriState
from src.core import config
from src.core.exceptions import GameStateError, InvalidRequestError
from src.core.shared_types import ActionType, GameCategory, GameStatus, Player


def guessing_session(new_session, now, stones: int):
    session = new_session(category=GameCategory.NORMAL)
    dispatch.update(session, now + config.NIGIRI_CHOOSING_MS)
    session.negotiation.stones = stones
    return session


def guess(session, user_id: str, value, now: int) -> None:
    dispatch.handle_action(
        session, GameAction(ActionType.NIGIRI_GUESS, user_id, {"guess": value}), now
    )


def test_human_game_opens_with_nigiri(new_session, now) -> None:
    session = new_session(category=GameCategory.NORMAL)
    state = session.negotiation

    assert session.status == GameStatus.NIGIRI_CHOOSING
    assert isinstance(state, NigiriState)
    assert {state.holder_id, state.guesser_id} == {"p1", "p2"}
    assert 1 <= state.stones <= config.NIGIRI_MAX_STONES
    assert session.black_player_id is None


def test_choosing_phase_moves_on_by_itself(new_session, now) -> None:
    session = new_session(category=GameCategory.NORMAL)
    dispatch.update(session, now + config.NIGIRI_CHOOSING_MS - 1)
    assert session.status == GameStatus.NIGIRI_CHOOSING
    dispatch.update(session, now + config.NIGIRI_CHOOSING_MS)
    assert session.status == GameStatus.NIGIRI_GUESSING


def test_correct_guess_gives_black(new_session, now) -> None:
    session = guessing_session(new_session, now, stones=4)
    guesser = session.negotiation.guesser_id
    guess(session, guesser, 2, now)

    assert session.negotiation.correct is True
    assert session.black_player_id == guesser
    assert session.status == GameStatus.NIGIRI_REVEAL


def test_wrong_guess_gives_black_to_holder(new_session, now) -> None:
    session = guessing_session(new_session, now, stones=4)
    state = session.negotiation
    guess(session, state.guesser_id, 1, now)

    assert state.correct is False
    assert session.black_player_id == state.holder_id


def test_only_the_guesser_guesses(new_session, now) -> None:
    session = guessing_session(new_session, now, stones=3)
    with pytest.raises(GameStateError):
        guess(session, session.negotiation.holder_id, 1, now)


def test_guess_must_be_odd_or_even(new_session, now) -> None:
    session = guessing_session(new_session, now, stones=3)
    with pytest.raises(InvalidRequestError):
        guess(session, session.negotiation.guesser_id, 3, now)


def test_both_confirm_starts_the_game(new_session, now) -> None:
    session = guessing_session(new_session, now, stones=3)
    guess(session, session.negotiation.guesser_id, 1, now)
    for user_id in ("p1", "p2"):
        dispatch.handle_action(
            session, GameAction(ActionType.CONFIRM_NIGIRI_RESULT, user_id), now
        )

    assert session.status == GameStatus.PLAYING
    assert session.current_player == Player.BLACK


def test_reveal_expiry_starts_the_game(new_session, now) -> None:
    session = guessing_session(new_session, now, stones=3)
    guess(session, session.negotiation.guesser_id, 1, now)
    dispatch.update(session, now + config.NIGIRI_REVEAL_MS)
    assert session.status == GameStatus.PLAYING


def test_missed_guess_is_made_at_random(new_session, now) -> None:
    session = guessing_session(new_session, now, stones=3)
    dispatch.update(session, now + config.NIGIRI_CHOOSING_MS + config.NIGIRI_GUESS_MS)

    assert session.status == GameStatus.NIGIRI_REVEAL
    assert session.negotiation.guess in (1, 2)
    assert session.black_player_id in ("p1", "p2")
